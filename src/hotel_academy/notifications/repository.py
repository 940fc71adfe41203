from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Notification


class NotificationRepository(Protocol):
    def get(self, notification_id: int) -> Optional[Notification]:
        raise NotImplementedError

    def create_many(self, notifications: Sequence[Notification]) -> int:
        raise NotImplementedError

    def list_for_user(self, user_id: str, *, type: Optional[str] = None) -> Sequence[Notification]:
        raise NotImplementedError

    def mark_read(self, notification_id: int, user_id: str) -> bool:
        raise NotImplementedError

    def delete(self, notification_id: int, user_id: str) -> bool:
        raise NotImplementedError
