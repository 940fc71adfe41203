from __future__ import annotations

import logging
from typing import Optional, Tuple

from ..core import constants
from ..core.enums import UserRole, UserStatus
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..users.repository import UserRepository
from .model import USER_FILTERS, SystemSettings, UserPage, settings_from_dict, settings_to_dict
from .repository import SettingsRepository

logger = logging.getLogger(__name__)

SYSTEM_SETTINGS_KEY = "global"
MANAGER_ROLES = (UserRole.MANAGER.value, UserRole.ADMIN.value)


def is_phone_search(term: str) -> bool:
    return term.startswith("+") or term[0].isdigit()


def encode_cursor(value, user_id: str) -> str:
    return f"{value}|{user_id}"


def decode_cursor(cursor: Optional[str]) -> Optional[Tuple[str, str]]:
    if not cursor:
        return None
    value, sep, user_id = cursor.rpartition("|")
    if not sep or not user_id:
        raise ValidationError("Invalid cursor")
    return value, user_id


def _join_date_cursor_value(value: str) -> int:
    # list mode pages on join_date; a cursor from a name or phone search does not fit
    try:
        return int(value)
    except ValueError:
        raise ValidationError("Cursor does not belong to this listing") from None


class SuperAdminService:
    """Platform back office; every operation requires a super admin."""

    def __init__(self, users: UserRepository, settings: SettingsRepository):
        self._users = users
        self._settings = settings

    def _require_super_admin(self, actor_id: str) -> None:
        actor = self._users.get_by_id(actor_id)
        if not actor or actor.role != UserRole.SUPER_ADMIN:
            raise AuthorizationError("Super admin only")

    def get_all_users(
        self,
        *,
        actor_id: str,
        cursor: Optional[str] = None,
        page_size: int = constants.DEFAULT_PAGE_SIZE,
        search_term: str = "",
        filter: str = "ALL",
    ) -> UserPage:
        """Prefix search by phone or name, otherwise a filtered list newest first."""
        self._require_super_admin(actor_id)
        if filter not in USER_FILTERS:
            raise ValidationError(f"Unknown filter: {filter}")
        if page_size <= 0:
            raise ValidationError("Page size must be positive")

        after = decode_cursor(cursor)
        search_term = (search_term or "").strip()
        if search_term:
            field = "phone_number" if is_phone_search(search_term) else "name"
            users = list(
                self._users.list_page(after=after, limit=page_size, search_term=search_term, search_field=field)
            )
        else:
            field = "join_date"
            if after is not None:
                after = (_join_date_cursor_value(after[0]), after[1])
            users = list(
                self._users.list_page(
                    after=after,
                    limit=page_size,
                    status=UserStatus.BANNED if filter == "BANNED" else None,
                    roles=MANAGER_ROLES if filter == "MANAGERS" else (),
                )
            )

        if not users:
            return UserPage()
        last = users[-1]
        return UserPage(users=users, next_cursor=encode_cursor(getattr(last, field) or "", last.user_id))

    def update_user_status(self, *, actor_id: str, user_id: str, status: str) -> None:
        self._require_super_admin(actor_id)
        try:
            new_status = UserStatus(status)
        except ValueError as e:
            raise ValidationError(str(e)) from e
        if not self._users.set_status(user_id, new_status):
            raise NotFoundError("User not found")
        logger.info("user %s set to %s by %s", user_id, new_status.value, actor_id)

    def delete_user_complete(self, *, actor_id: str, user_id: str) -> None:
        self._require_super_admin(actor_id)
        if actor_id == user_id:
            raise ValidationError("You cannot delete your own account here")
        if not self._users.delete_by_id(user_id):
            raise NotFoundError("User not found")
        logger.info("user %s deleted by %s", user_id, actor_id)

    def get_system_settings(self) -> SystemSettings:
        """Public: the login screen reads these before anyone signs in."""
        return settings_from_dict(self._settings.get(SYSTEM_SETTINGS_KEY))

    def update_system_settings(self, *, actor_id: str, fields: dict) -> SystemSettings:
        self._require_super_admin(actor_id)
        current = settings_to_dict(self.get_system_settings())
        merged = settings_from_dict({**current, **{k: v for k, v in fields.items() if k in current}})
        self._settings.put(SYSTEM_SETTINGS_KEY, settings_to_dict(merged))
        return merged
