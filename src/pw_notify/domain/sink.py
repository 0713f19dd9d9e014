from typing import Protocol

from src.pw_notify.domain.events import NotificationEvent


class NotificationSink(Protocol):
    def publish(self, event: NotificationEvent) -> None:
        """Hand off an event without blocking; delivery is best-effort."""
        ...
