"""Domain events published after a transaction commits.

Consumers (WebSocket fan-out, Discord bot, email) subscribe to the Redis
channel; the core never waits on them.
"""

from datetime import UTC, datetime

from pydantic import BaseModel, Field


class NotificationEvent(BaseModel):
    event_type: str
    market_id: int
    question: str
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


# --- broadcasts ---

class MarketCreated(NotificationEvent):
    event_type: str = "market.created"
    creator_id: int
    deadline: datetime


class MarketResolved(NotificationEvent):
    event_type: str = "market.resolved"
    outcome: str
    resolved_at: datetime


class DisputeRaised(NotificationEvent):
    event_type: str = "market.disputed"
    disputed_by: int
    outcome: str


class MarketFinalized(NotificationEvent):
    event_type: str = "market.finalized"
    outcome: str
    winners_count: int
    total_paid: int
    was_disputed: bool
    refunded: bool


# --- direct (one account) ---

class MarketLocked(NotificationEvent):
    """Tells the creator the betting deadline passed and an outcome is due."""
    event_type: str = "market.locked"
    creator_id: int


class WagerWon(NotificationEvent):
    event_type: str = "wager.won"
    account_id: int
    wager_id: int
    amount: int
    payout: int
    profit: int


class WagerLost(NotificationEvent):
    event_type: str = "wager.lost"
    account_id: int
    wager_id: int
    amount: int


class WagerRefunded(NotificationEvent):
    event_type: str = "wager.refunded"
    account_id: int
    wager_id: int
    amount: int
