"""Event Log — bounded in-memory sink for TagCreated / TagDestroyed notifications.

Invariants:
    - Every published event is logged at INFO with the event kind and tag index
    - At most `maxlen` events are kept; oldest dropped first
    - Sequence numbers increase by one per published event, never reused

Design Decisions:
    - Module-level event_log: deliberate exception to no-global-state rule
      (ADR: single-process uvicorn, history lost on restart is acceptable — the
      tags table is the durable record, events are observability only)
"""

import logging
from collections import deque

from tag_registry.core.domain_types import TagCreated, TagEvent

logger = logging.getLogger(__name__)


def event_to_dict(event: TagEvent) -> dict:
    data = {"type": event.kind.value, "index": event.index, "who": event.who}
    if isinstance(event, TagCreated):
        data["deposit"] = event.deposit
    return data


class EventLog:
    """Records registry events and mirrors them to the structured log."""

    def __init__(self, maxlen: int = 1000):
        self._events: deque[tuple[int, TagEvent]] = deque(maxlen=maxlen)
        self._sequence = 0

    async def publish(self, event: TagEvent) -> None:
        self._events.append((self._sequence, event))
        self._sequence += 1
        logger.info(
            f"Event {event.kind.value}",
            extra={
                "event": event.kind.value,
                "tag_index": event.index,
                "account": event.who,
            },
        )

    def recent(self, limit: int = 50) -> list[dict]:
        """Newest last, like a chain's event list for the latest blocks."""
        items = list(self._events)[-limit:] if limit > 0 else []
        return [{"sequence": seq, **event_to_dict(e)} for seq, e in items]

    @property
    def last(self) -> TagEvent | None:
        return self._events[-1][1] if self._events else None

    def clear(self) -> None:
        self._events.clear()


event_log = EventLog()
