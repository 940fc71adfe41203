from __future__ import annotations

from typing import Any, Dict, Sequence

from ..core.enums import EventOutcome, EventType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, from_json, to_json
from .model import AnalyticsEvent
from .repository import AnalyticsEventRepository

EVENT_COLUMNS = """
    event_id, organization_id, user_id, user_name, user_role, channel_id, content_id,
    type, payload, related_topics, outcome, timestamp
"""


def row_to_event(row: Dict[str, Any]) -> AnalyticsEvent:
    outcome = row.get("outcome")
    return AnalyticsEvent(
        event_id=int(row["event_id"]),
        user_id=str(row["user_id"]),
        user_name=row.get("user_name") or "",
        user_role=row.get("user_role") or "",
        page_id=row.get("organization_id"),
        channel_id=row.get("channel_id"),
        content_id=str(row["content_id"]),
        type=EventType(row["type"]),
        payload=from_json(row.get("payload")),
        related_topics=from_json(row.get("related_topics"), []),
        outcome=EventOutcome(outcome) if outcome else None,
        timestamp=int(row.get("timestamp") or 0),
    )


class MySQLAnalyticsEventRepository(AnalyticsEventRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def append(self, event: AnalyticsEvent) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO analytics_events(
                    organization_id, user_id, user_name, user_role, channel_id, content_id,
                    type, payload, related_topics, outcome, timestamp
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    event.page_id,
                    event.user_id,
                    event.user_name,
                    event.user_role,
                    event.channel_id,
                    event.content_id,
                    event.type.value,
                    to_json(event.payload),
                    to_json(event.related_topics),
                    event.outcome.value if event.outcome else None,
                    event.timestamp,
                ),
            )
            return int(cur.lastrowid)

    def list_recent(self, organization_id: str, *, limit: int) -> Sequence[AnalyticsEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {EVENT_COLUMNS} FROM analytics_events
                WHERE organization_id=%s
                ORDER BY timestamp DESC
                LIMIT %s
                """,
                (organization_id, int(limit)),
            )
            return [row_to_event(r) for r in fetchall(cur)]
