from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..common.datetime_utils import now_ms
from ..common.validators import require_non_empty
from ..core.exceptions import NotFoundError
from ..users.repository import UserRepository
from .model import NOTIFICATION_INVITE, NOTIFICATION_SYSTEM, Notification
from .repository import NotificationRepository

logger = logging.getLogger(__name__)

ALL_DEPARTMENTS = "all"


class NotificationService:
    def __init__(self, notifications: NotificationRepository, users: UserRepository):
        self._notifications = notifications
        self._users = users

    def notify_department(
        self,
        *,
        organization_id: str,
        department: str,
        title: str,
        message: str,
        link: Optional[str] = None,
    ) -> int:
        """One system notification per member of the department ('all' = whole organization).

        Returns how many notifications were written.
        """
        title = require_non_empty(title, "Title")
        target = None if department == ALL_DEPARTMENTS else department
        recipients = self._users.list_by_department(organization_id=organization_id, department=target)
        if not recipients:
            return 0

        now = now_ms()
        count = self._notifications.create_many(
            [
                Notification(
                    notification_id=None,
                    user_id=u.user_id,
                    title=title,
                    message=message or "",
                    link=link,
                    type=NOTIFICATION_SYSTEM,
                    created_at=now,
                )
                for u in recipients
            ]
        )
        logger.info("notification sent to %d users in %s/%s", count, organization_id, department)
        return count

    def list_for_user(self, user_id: str) -> Sequence[Notification]:
        return self._notifications.list_for_user(user_id)

    def pending_invites(self, user_id: str) -> Sequence[Notification]:
        return self._notifications.list_for_user(user_id, type=NOTIFICATION_INVITE)

    def mark_read(self, user_id: str, notification_id: int) -> None:
        if not self._notifications.mark_read(notification_id, user_id):
            raise NotFoundError("Notification not found")
