"""Market status machine.

    ACTIVE ──► LOCKED ──► RESOLVED ──► DISPUTED ──► FINALIZED
      └──────────────────►    └─────────────────────►

FINALIZED is terminal. Any move not listed here is rejected.
"""

from src.pw_common.enums import MarketStatus
from src.pw_common.errors import InvalidStateTransitionError

_TRANSITIONS: dict[MarketStatus, frozenset[MarketStatus]] = {
    MarketStatus.ACTIVE: frozenset({MarketStatus.LOCKED, MarketStatus.RESOLVED}),
    MarketStatus.LOCKED: frozenset({MarketStatus.RESOLVED}),
    MarketStatus.RESOLVED: frozenset({MarketStatus.DISPUTED, MarketStatus.FINALIZED}),
    MarketStatus.DISPUTED: frozenset({MarketStatus.FINALIZED}),
    MarketStatus.FINALIZED: frozenset(),
}

# Statuses from which settlement may run
FINALIZABLE_STATUSES = frozenset({MarketStatus.RESOLVED, MarketStatus.DISPUTED})

# Unattended settlement never touches a DISPUTED market
AUTO_FINALIZE_STATUSES = frozenset({MarketStatus.RESOLVED})


def can_transition(current: MarketStatus, target: MarketStatus) -> bool:
    return target in _TRANSITIONS[current]


def ensure_transition(market_id: int, current: MarketStatus, target: MarketStatus) -> None:
    if not can_transition(current, target):
        raise InvalidStateTransitionError(market_id, current.value, target.value)
