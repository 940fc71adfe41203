from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Notification
from .repository import NotificationRepository


def row_to_notification(row: Dict[str, Any]) -> Notification:
    return Notification(
        notification_id=int(row["notification_id"]),
        user_id=str(row["user_id"]),
        title=row["title"],
        message=row.get("message") or "",
        link=row.get("link"),
        type=row.get("type") or "system",
        is_read=bool(row.get("is_read")),
        created_at=int(row.get("created_at") or 0),
    )


class MySQLNotificationRepository(NotificationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, notification_id: int) -> Optional[Notification]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT * FROM notifications WHERE notification_id=%s", (int(notification_id),))
            row = fetchone(cur)
            return row_to_notification(row) if row else None

    def create_many(self, notifications: Sequence[Notification]) -> int:
        if not notifications:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.executemany(
                """
                INSERT INTO notifications(user_id, type, title, message, link, is_read, created_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                [(n.user_id, n.type, n.title, n.message, n.link, int(n.is_read), n.created_at) for n in notifications],
            )
            return len(notifications)

    def list_for_user(self, user_id: str, *, type: Optional[str] = None) -> Sequence[Notification]:
        sql = "SELECT * FROM notifications WHERE user_id=%s"
        params: list[Any] = [user_id]
        if type:
            sql += " AND type=%s"
            params.append(type)
        sql += " ORDER BY created_at DESC"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [row_to_notification(r) for r in fetchall(cur)]

    def mark_read(self, notification_id: int, user_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE notifications SET is_read=1 WHERE notification_id=%s AND user_id=%s",
                (int(notification_id), user_id),
            )
            return cur.rowcount > 0

    def delete(self, notification_id: int, user_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM notifications WHERE notification_id=%s AND user_id=%s",
                (int(notification_id), user_id),
            )
            return cur.rowcount > 0
