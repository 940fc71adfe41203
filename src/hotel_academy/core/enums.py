from __future__ import annotations

from enum import Enum


class UserRole(str, Enum):
    """Platform-wide role used for coarse authorization."""

    USER = "user"
    STAFF = "staff"
    MANAGER = "manager"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


class PageRole(str, Enum):
    """Role of a member inside one organization page."""

    ADMIN = "ADMIN"
    EDITOR = "EDITOR"
    MODERATOR = "MODERATOR"
    MEMBER = "MEMBER"


class UserStatus(str, Enum):
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"
    BANNED = "BANNED"


class CreatorLevel(str, Enum):
    NOVICE = "NOVICE"
    RISING_STAR = "RISING_STAR"
    EXPERT = "EXPERT"
    MASTER = "MASTER"


class ContentTier(str, Enum):
    """Moderation classification of a course."""

    COMMUNITY = "COMMUNITY"
    PRO = "PRO"
    OFFICIAL = "OFFICIAL"


class VerificationStatus(str, Enum):
    PENDING = "PENDING"
    VERIFIED = "VERIFIED"
    REJECTED = "REJECTED"
    UNDER_REVIEW = "UNDER_REVIEW"


class AuthorType(str, Enum):
    USER = "USER"
    ORGANIZATION = "ORGANIZATION"


class Visibility(str, Enum):
    PUBLIC = "PUBLIC"
    PRIVATE = "PRIVATE"
    FOLLOWERS_ONLY = "FOLLOWERS_ONLY"


class AssignmentType(str, Enum):
    GLOBAL = "GLOBAL"
    DEPARTMENT = "DEPARTMENT"
    OPTIONAL = "OPTIONAL"


class ContentTargetingScope(str, Enum):
    """How far down the organization a member may push content."""

    NONE = "NONE"
    BELOW_HIERARCHY = "BELOW_HIERARCHY"
    OWN_DEPT = "OWN_DEPT"
    ENTIRE_ORG = "ENTIRE_ORG"


class RelationshipStatus(str, Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"


class FollowStatus(str, Enum):
    NONE = "NONE"
    PENDING = "PENDING"
    FOLLOWING = "FOLLOWING"


class RequestStatus(str, Enum):
    """Join request approval flow."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class MembershipStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class OrganizationStatus(str, Enum):
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"
    ARCHIVED = "ARCHIVED"
    PENDING_DELETION = "PENDING_DELETION"


class SearchResultType(str, Enum):
    COURSE = "COURSE"
    PAGE = "PAGE"
    USER = "USER"
    JOURNEY = "JOURNEY"
    ORGANIZATION = "ORGANIZATION"


class ReviewTag(str, Enum):
    ACCURATE = "ACCURATE"
    ENGAGING = "ENGAGING"
    MISLEADING = "MISLEADING"
    OUTDATED = "OUTDATED"


class ContextType(str, Enum):
    PERSONAL = "PERSONAL"
    ORGANIZATION = "ORGANIZATION"


class ProgressStatus(str, Enum):
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class StoryStatus(str, Enum):
    HAS_NEW = "HAS_NEW"
    IN_PROGRESS = "IN_PROGRESS"
    ALL_CAUGHT_UP = "ALL_CAUGHT_UP"
    EMPTY = "EMPTY"


class EventType(str, Enum):
    VIEW = "VIEW"
    COMPLETE = "COMPLETE"
    QUIZ_ANSWER = "QUIZ_ANSWER"


class EventOutcome(str, Enum):
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"


class TargetType(str, Enum):
    """What a relationship points at."""

    USER = "USER"
    ORGANIZATION = "ORGANIZATION"
