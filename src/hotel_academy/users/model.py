from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..core.enums import CreatorLevel, PageRole, ProgressStatus, UserRole, UserStatus


@dataclass(frozen=True)
class CourseProgress:
    course_id: str
    status: ProgressStatus
    current_card_index: int
    total_cards: int
    last_accessed_at: int
    completed_at: Optional[int] = None

    @property
    def percent(self) -> float:
        if self.total_cards <= 0:
            return 0.0
        return self.current_card_index / self.total_cards * 100


@dataclass(frozen=True)
class User:
    """Domain entity: User.

    Plain data object (no DB access). List fields are the denormalized
    social/corporate graph the feeds read from.
    """

    user_id: str
    username: str
    name: str
    role: UserRole = UserRole.USER
    status: UserStatus = UserStatus.ACTIVE
    email: str = ""
    avatar: str = ""
    password_hash: Optional[str] = None
    phone_number: Optional[str] = None
    bio: Optional[str] = None

    creator_level: CreatorLevel = CreatorLevel.NOVICE
    xp: int = 0
    reputation_points: int = 0

    department: Optional[str] = None
    role_title: Optional[str] = None
    position_id: Optional[str] = None
    assigned_path_id: Optional[str] = None
    current_organization_id: Optional[str] = None

    is_private: bool = False
    show_in_search: bool = True
    join_date: int = 0

    # social graph
    following_users: List[str] = field(default_factory=list)
    following_pages: List[str] = field(default_factory=list)
    followed_tags: List[str] = field(default_factory=list)
    followers: List[str] = field(default_factory=list)
    followers_count: int = 0
    following_count: int = 0

    # corporate graph
    joined_page_ids: List[str] = field(default_factory=list)
    managed_page_ids: List[str] = field(default_factory=list)
    channel_subscriptions: List[str] = field(default_factory=list)
    page_roles: Dict[str, PageRole] = field(default_factory=dict)
    organization_history: List[str] = field(default_factory=list)

    # learning history
    completed_courses: List[str] = field(default_factory=list)
    started_courses: List[str] = field(default_factory=list)
    saved_courses: List[str] = field(default_factory=list)
    progress_map: Dict[str, CourseProgress] = field(default_factory=dict)

    @property
    def is_staff_manager(self) -> bool:
        return self.role in {UserRole.MANAGER, UserRole.ADMIN, UserRole.SUPER_ADMIN}

    def has_completed(self, course_id: str) -> bool:
        if course_id in self.completed_courses:
            return True
        progress = self.progress_map.get(course_id)
        return bool(progress and progress.status == ProgressStatus.COMPLETED)


@dataclass(frozen=True)
class SkillMetric:
    level: int
    last_tested_at: int
    failure_count: int = 0
    success_count: int = 0


@dataclass(frozen=True)
class UserSkillProfile:
    user_id: str
    skills: Dict[str, SkillMetric] = field(default_factory=dict)


def user_to_public_dict(user: User) -> dict:
    """What the HTTP layer may expose about a user (no hashes)."""
    return {
        "id": user.user_id,
        "username": user.username,
        "name": user.name,
        "avatar": user.avatar,
        "role": user.role.value,
        "status": user.status.value,
        "xp": user.xp,
        "creator_level": user.creator_level.value,
        "department": user.department,
        "role_title": user.role_title,
        "current_organization_id": user.current_organization_id,
        "followers_count": user.followers_count,
        "following_count": user.following_count,
    }
