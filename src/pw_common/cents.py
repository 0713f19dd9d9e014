"""Integer arithmetic utilities for the play-money economy.

All amounts and balances are int in the smallest currency unit. No float, no Decimal.
"""

from src.pw_common.enums import Outcome
from src.pw_common.errors import InvalidAmountError, InvalidOutcomeError

CURRENCY_SYMBOL = "WSC"


def validate_amount(amount: object) -> int:
    """Return amount if it is a strictly positive int (bool rejected)."""
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise InvalidAmountError(amount)
    return amount


def parse_outcome(value: object) -> Outcome:
    """Convert boundary input ('YES'/'NO' or an Outcome) into an Outcome."""
    if isinstance(value, Outcome):
        return value
    if isinstance(value, str):
        try:
            return Outcome(value.strip().upper())
        except ValueError:
            pass
    raise InvalidOutcomeError(value)


def amount_to_display(amount: int) -> str:
    """Format an amount: 1500 -> '1,500 WSC', -200 -> '-200 WSC'."""
    return f"{amount:,} {CURRENCY_SYMBOL}"
