from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional

from ..core.enums import EventOutcome, EventType


@dataclass(frozen=True)
class AnalyticsEvent:
    """One learning interaction inside an organization page."""

    user_id: str
    user_name: str
    user_role: str
    page_id: Optional[str]
    content_id: str
    type: EventType
    channel_id: Optional[str] = None
    payload: Any = None
    related_topics: List[str] = field(default_factory=list)
    outcome: Optional[EventOutcome] = None
    timestamp: int = 0
    event_id: Optional[int] = None


def event_to_dict(e: AnalyticsEvent) -> dict:
    return {
        "id": e.event_id,
        "user_id": e.user_id,
        "user_name": e.user_name,
        "user_role": e.user_role,
        "page_id": e.page_id,
        "channel_id": e.channel_id,
        "content_id": e.content_id,
        "type": e.type.value,
        "payload": e.payload,
        "related_topics": list(e.related_topics),
        "outcome": e.outcome.value if e.outcome else None,
        "timestamp": e.timestamp,
    }
