from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.datetime_utils import now_ms
from ..common.validators import require_min_length, require_non_empty
from ..core.enums import ProgressStatus, UserRole, UserStatus
from ..core.exceptions import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from .model import CourseProgress, User
from .repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUser:
    """What we store into the Flask session after login."""

    user_id: str
    name: str
    role: UserRole
    current_organization_id: Optional[str]


class AuthService:
    """Use case: local username/password accounts."""

    def __init__(self, users: UserRepository):
        self._users = users

    def register(
        self,
        *,
        username: str,
        name: str,
        password: str,
        email: str = "",
        department: Optional[str] = None,
    ) -> str:
        username = require_non_empty(username, "Username").lower()
        name = require_non_empty(name, "Name")
        require_min_length(password, "Password", 6)

        if self._users.get_by_username(username):
            raise ValidationError("Username already taken")

        user = User(
            user_id=uuid.uuid4().hex,
            username=username,
            name=name,
            email=(email or "").strip(),
            password_hash=generate_password_hash(password),
            department=department or None,
            join_date=now_ms(),
        )
        return self._users.create_user(user)

    def authenticate(self, username: str, password: str) -> SessionUser:
        user = self._users.get_by_username((username or "").strip().lower())
        if not user or not user.password_hash:
            raise AuthenticationError("Invalid username or password")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # placeholder hashes or corrupted values
            ok = False
        if not ok:
            raise AuthenticationError("Invalid username or password")

        if user.status != UserStatus.ACTIVE:
            raise AuthenticationError(f"Account is {user.status.value.lower()}")

        return SessionUser(
            user_id=user.user_id,
            name=user.name,
            role=user.role,
            current_organization_id=user.current_organization_id,
        )


class UserService:
    """Use case: profile, learning progress and saved content of the signed-in user."""

    def __init__(self, users: UserRepository, organizations=None):
        self._users = users
        self._organizations = organizations

    def get_user(self, user_id: str) -> User:
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def update_profile(self, user_id: str, fields: dict) -> None:
        if "name" in fields:
            fields = {**fields, "name": require_non_empty(fields["name"], "Name")}
        if not self._users.update_profile(user_id, fields):
            raise ValidationError("Nothing to update")

    def toggle_save_course(self, user_id: str, course_id: str, *, saved: bool) -> None:
        self._users.set_saved_course(user_id, course_id, saved=saved)

    def start_course(self, user_id: str, course_id: str) -> None:
        user = self.get_user(user_id)
        if course_id in user.progress_map or course_id in user.started_courses:
            return
        self.save_course_progress(user_id, course_id, card_index=0, total_cards=0)

    def save_course_progress(self, user_id: str, course_id: str, *, card_index: int, total_cards: int) -> CourseProgress:
        if card_index < 0 or total_cards < 0:
            raise ValidationError("Progress cannot be negative")
        progress = CourseProgress(
            course_id=course_id,
            status=ProgressStatus.IN_PROGRESS,
            current_card_index=int(card_index),
            total_cards=int(total_cards),
            last_accessed_at=now_ms(),
        )
        self._users.save_progress(user_id, progress)
        return progress

    def complete_course(self, user_id: str, course_id: str, *, earned_xp: int, total_cards: int) -> CourseProgress:
        user = self.get_user(user_id)
        now = now_ms()
        progress = CourseProgress(
            course_id=course_id,
            status=ProgressStatus.COMPLETED,
            current_card_index=0,
            total_cards=int(total_cards),
            last_accessed_at=now,
            completed_at=now,
        )
        # completing twice must not pay twice
        xp = 0 if user.has_completed(course_id) else max(0, int(earned_xp))
        self._users.complete_course(user_id, progress, earned_xp=xp)
        return progress

    def set_career_vision(self, user_id: str, path_id: Optional[str]) -> None:
        if not self._users.set_assigned_path(user_id, path_id):
            raise NotFoundError("User not found")

    def delete_account(self, user_id: str, password: str) -> None:
        user = self.get_user(user_id)
        if not password:
            raise ValidationError("Password is required to confirm deletion")
        if not user.password_hash or not check_password_hash(user.password_hash, password):
            raise AuthenticationError("Password does not match")
        if self._organizations is not None and self._organizations.list_owned_by(user_id):
            raise AuthorizationError("Organization owners cannot delete their account")

        self._users.delete_by_id(user_id)
        logger.info("user %s deleted their account", user_id)
