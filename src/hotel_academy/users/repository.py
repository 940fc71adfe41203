from __future__ import annotations

from typing import Callable, Optional, Protocol, Sequence

from ..core.enums import UserStatus
from .model import CourseProgress, SkillMetric, User, UserSkillProfile


class UserRepository(Protocol):
    """Repository interface for User.

    Note (DIP): services depend on this interface, never on a concrete DB.
    """

    def get_by_id(self, user_id: str) -> Optional[User]:
        raise NotImplementedError

    def get_by_username(self, username: str) -> Optional[User]:
        raise NotImplementedError

    def list_by_ids(self, user_ids: Sequence[str]) -> Sequence[User]:
        raise NotImplementedError

    def list_searchable(self, *, limit: int) -> Sequence[User]:
        """Users whose privacy settings allow them to appear in search."""

        raise NotImplementedError

    def list_by_organization(self, organization_id: str) -> Sequence[User]:
        raise NotImplementedError

    def list_by_department(self, *, organization_id: str, department: Optional[str]) -> Sequence[User]:
        """department=None means every member of the organization."""

        raise NotImplementedError

    def list_page(
        self,
        *,
        after: Optional[tuple],
        limit: int,
        search_term: str = "",
        search_field: str = "name",
        status: Optional[UserStatus] = None,
        roles: Sequence[str] = (),
    ) -> Sequence[User]:
        """Cursor page ordered by (join_date DESC, user_id DESC), or by search_field ASC when searching."""

        raise NotImplementedError

    def create_user(self, user: User) -> str:
        raise NotImplementedError

    def update_profile(self, user_id: str, fields: dict) -> bool:
        raise NotImplementedError

    def set_status(self, user_id: str, status: UserStatus) -> bool:
        raise NotImplementedError

    def delete_by_id(self, user_id: str) -> bool:
        raise NotImplementedError

    def add_xp(self, user_id: str, amount: int) -> None:
        raise NotImplementedError

    def set_current_organization(self, user_id: str, organization_id: Optional[str]) -> bool:
        raise NotImplementedError

    def set_saved_course(self, user_id: str, course_id: str, *, saved: bool) -> bool:
        raise NotImplementedError

    def set_followed_tag(self, user_id: str, tag: str, *, following: bool) -> bool:
        raise NotImplementedError

    def set_channel_subscriptions(self, user_id: str, channel_ids: Sequence[str]) -> bool:
        raise NotImplementedError

    def set_assigned_path(self, user_id: str, path_id: Optional[str]) -> bool:
        raise NotImplementedError

    def save_progress(self, user_id: str, progress: CourseProgress) -> None:
        raise NotImplementedError

    def complete_course(self, user_id: str, progress: CourseProgress, *, earned_xp: int) -> None:
        raise NotImplementedError

    def get_skill_profile(self, user_id: str) -> Optional[UserSkillProfile]:
        raise NotImplementedError

    def update_skill(
        self, user_id: str, topic: str, fn: Callable[[SkillMetric], SkillMetric], *, initial: SkillMetric
    ) -> SkillMetric:
        """Apply `fn` to the stored metric (or `initial` when the topic is new) atomically."""
        raise NotImplementedError
