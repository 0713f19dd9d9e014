"""Parimutuel payout math: pure functions, integer arithmetic only.

Winners share the whole pool in proportion to their stake:

    payout = amount * total_pool // winning_pool

Floor division can strand a few units per market (`remainder`). They stay
with the house and are never redistributed. When nobody backed the winning
side every wager is refunded in full.
"""

from dataclasses import dataclass, field

from src.pw_common.enums import Outcome
from src.pw_wager.domain.models import Wager


@dataclass(frozen=True)
class Declared:
    """Settle on the outcome the creator recorded."""


@dataclass(frozen=True)
class Overridden:
    """Administrator-forced outcome; may confirm or reverse the declaration."""

    outcome: Outcome


OutcomeSource = Declared | Overridden


@dataclass(frozen=True)
class Credit:
    wager: Wager
    amount: int          # payout, or the original stake on refund

    @property
    def profit(self) -> int:
        return self.amount - self.wager.amount


@dataclass
class SettlementPlan:
    outcome: Outcome
    total_pool: int
    winning_pool: int
    refund: bool
    credits: list[Credit] = field(default_factory=list)
    losers: list[Wager] = field(default_factory=list)

    @property
    def total_paid(self) -> int:
        return sum(c.amount for c in self.credits)

    @property
    def remainder(self) -> int:
        """Units left unpaid by floor division (0 on refund or an empty pool)."""
        return self.total_pool - self.total_paid


def parimutuel_payout(amount: int, total_pool: int, winning_pool: int) -> int:
    if winning_pool <= 0:
        raise ValueError("winning_pool must be positive")
    return amount * total_pool // winning_pool


def plan_settlement(wagers: list[Wager], outcome: Outcome) -> SettlementPlan:
    total_pool = sum(w.amount for w in wagers)
    winning_pool = sum(w.amount for w in wagers if w.outcome is outcome)

    if winning_pool == 0:
        return SettlementPlan(
            outcome=outcome,
            total_pool=total_pool,
            winning_pool=0,
            refund=True,
            credits=[Credit(wager=w, amount=w.amount) for w in wagers],
        )

    plan = SettlementPlan(
        outcome=outcome,
        total_pool=total_pool,
        winning_pool=winning_pool,
        refund=False,
    )
    for w in wagers:
        if w.outcome is outcome:
            plan.credits.append(
                Credit(wager=w, amount=parimutuel_payout(w.amount, total_pool, winning_pool))
            )
        else:
            plan.losers.append(w)
    return plan
