"""Event Route — recent TagCreated / TagDestroyed notifications.

Invariants:
    - Read-only view of the in-memory EventLog, oldest first
    - Events only appear after their transition committed
"""

from fastapi import APIRouter, Depends, Query

from tag_registry.api.dependencies import get_event_log
from tag_registry.infrastructure.event_log import EventLog
from tag_registry.schemas.tag import EventListResponse

router = APIRouter(prefix="/api/v1/events", tags=["events"])


@router.get("", response_model=EventListResponse)
async def list_events(
    limit: int = Query(50, ge=1, le=1000),
    events: EventLog = Depends(get_event_log),
):
    return EventListResponse(events=events.recent(limit))
