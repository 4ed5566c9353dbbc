"""Change notification bus between service instances.

Replaces polling a shared timestamp key: every service publishes on its
collection channel after a successful write, and other instances sharing the
same storage reload their snapshot when notified.

Delivery is at-most-once with no ordering guarantee and no retry. A failing
subscriber is logged and skipped. There is no locking: the last writer wins.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class Channel(str, Enum):
    INVENTORY = "inventory"
    ASSETS = "assets"
    REQUESTS = "requests"
    USERS = "users"
    PROCUREMENT = "procurement"
    REPORTS = "reports"


@dataclass
class ChangeEvent:
    event_id: str
    channel: Channel
    source: str
    action: str
    payload: dict
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


ChangeHandler = Callable[[ChangeEvent], None]


class ChangeBus:
    """In-process publish/subscribe channel per collection."""

    def __init__(self) -> None:
        # {channel: [(subscriber_id, handler)]}
        self._subscribers: dict[Channel, list[tuple[str, ChangeHandler]]] = {}
        self._event_log: list[ChangeEvent] = []
        self._failed_deliveries: list[tuple[str, str, str]] = []

    def subscribe(self, channel: Channel, subscriber_id: str, handler: ChangeHandler) -> None:
        """Registers a handler; events published by the same subscriber_id are not echoed back."""
        self._subscribers.setdefault(channel, []).append((subscriber_id, handler))

    def unsubscribe(self, subscriber_id: str, channel: Optional[Channel] = None) -> int:
        removed = 0
        channels = [channel] if channel else list(self._subscribers)
        for ch in channels:
            before = len(self._subscribers.get(ch, []))
            self._subscribers[ch] = [s for s in self._subscribers.get(ch, []) if s[0] != subscriber_id]
            removed += before - len(self._subscribers[ch])
        return removed

    def publish(
        self, channel: Channel, source: str, action: str, payload: Optional[dict] = None
    ) -> int:
        """Delivers an event to every other subscriber of the channel; returns the delivered count."""
        event = ChangeEvent(
            event_id=str(uuid.uuid4()),
            channel=channel,
            source=source,
            action=action,
            payload=payload or {},
        )
        self._event_log.append(event)
        logger.debug("Change published: %s [%s] by %s", channel.value, action, source)

        delivered = 0
        for subscriber_id, handler in list(self._subscribers.get(channel, [])):
            if subscriber_id == source:
                continue
            try:
                handler(event)
                delivered += 1
            except Exception as e:
                logger.warning(
                    "Change delivery failed: %s -> %s (%s: %s)",
                    channel.value, subscriber_id, type(e).__name__, e,
                )
                self._failed_deliveries.append((event.event_id, subscriber_id, str(e)))
        return delivered

    def subscriber_count(self, channel: Channel) -> int:
        return len(self._subscribers.get(channel, []))

    def get_event_log(self) -> list[ChangeEvent]:
        return list(self._event_log)

    def get_channel_events(self, channel: Channel) -> list[ChangeEvent]:
        return [e for e in self._event_log if e.channel == channel]

    def get_failed_deliveries(self) -> list[tuple[str, str, str]]:
        return list(self._failed_deliveries)
