"""Global enums: must match DB CHECK constraints exactly.

Storage and HTTP layers exchange the string values; everything in between
works with the enum members.
"""

from enum import Enum


class MarketStatus(str, Enum):
    ACTIVE = "ACTIVE"
    LOCKED = "LOCKED"
    RESOLVED = "RESOLVED"
    DISPUTED = "DISPUTED"
    FINALIZED = "FINALIZED"


class Outcome(str, Enum):
    YES = "YES"
    NO = "NO"


class LedgerSource(str, Enum):
    WELCOME = "WELCOME"
    WAGER_PLACED = "WAGER_PLACED"
    WIN_PAYOUT = "WIN_PAYOUT"
    REFUND = "REFUND"
    BAILOUT = "BAILOUT"


class WagerStatus(str, Enum):
    """Derived per-wager status shown in bet history (never stored)."""
    PENDING = "PENDING"
    WON = "WON"
    LOST = "LOST"
    REFUNDED = "REFUNDED"


class ReferenceType(str, Enum):
    MARKET = "MARKET"
    WAGER = "WAGER"


# Statuses in which markets.outcome and markets.resolved_at are set
OUTCOME_BEARING_STATUSES = frozenset(
    {MarketStatus.RESOLVED, MarketStatus.DISPUTED, MarketStatus.FINALIZED}
)
