from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .analytics.mysql_analytics_repository import MySQLAnalyticsEventRepository
from .analytics.repository import AnalyticsEventRepository
from .analytics.service import AnalyticsService
from .careers.mysql_career_repository import MySQLCareerPathRepository
from .careers.repository import CareerPathRepository
from .careers.service import CareerService
from .context.service import ContextRegistry
from .core import constants
from .courses.mysql_course_repository import MySQLCourseRepository
from .courses.repository import CourseRepository
from .courses.service import CourseService
from .database.connection import DBConfig, DatabaseConnection
from .notifications.mysql_notification_repository import MySQLNotificationRepository
from .notifications.repository import NotificationRepository
from .notifications.service import NotificationService
from .organizations.mysql_organization_repository import (
    MySQLJoinRequestRepository,
    MySQLMembershipRepository,
    MySQLOrganizationRepository,
    MySQLPositionRepository,
)
from .organizations.repository import (
    JoinRequestRepository,
    MembershipRepository,
    OrganizationRepository,
    PositionRepository,
)
from .organizations.service import OrganizationService
from .recommendations.service import RecommendationService
from .search.mysql_search_trend_repository import MySQLSearchTrendRepository
from .search.repository import QueryExpander, SearchTrendRepository
from .search.service import SearchService
from .social.mysql_social_repository import MySQLPostLikeRepository, MySQLRelationshipRepository
from .social.repository import PostLikeRepository, RelationshipRepository
from .social.service import SocialService
from .superadmin.mysql_settings_repository import MySQLSettingsRepository
from .superadmin.repository import SettingsRepository
from .superadmin.service import SuperAdminService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class Repositories:
    users: UserRepository
    organizations: OrganizationRepository
    memberships: MembershipRepository
    join_requests: JoinRequestRepository
    positions: PositionRepository
    notifications: NotificationRepository
    courses: CourseRepository
    career_paths: CareerPathRepository
    relationships: RelationshipRepository
    post_likes: PostLikeRepository
    search_trends: SearchTrendRepository
    analytics_events: AnalyticsEventRepository
    system_settings: SettingsRepository


@dataclass(frozen=True)
class Container:
    repos: Repositories
    conn: Optional[DatabaseConnection]

    auth_service: AuthService
    user_service: UserService
    organization_service: OrganizationService
    notification_service: NotificationService
    course_service: CourseService
    career_service: CareerService
    recommendation_service: RecommendationService
    search_service: SearchService
    social_service: SocialService
    superadmin_service: SuperAdminService
    analytics_service: AnalyticsService
    contexts: ContextRegistry


def _setting(settings: Any, name: str, default: int) -> int:
    return int(getattr(settings, name, default)) if settings is not None else default


def assemble_container(
    repos: Repositories,
    *,
    conn: Optional[DatabaseConnection] = None,
    settings: Any = None,
    expander: Optional[QueryExpander] = None,
) -> Container:
    """Wire services over any set of repositories (MySQL in the app, fakes in tests)."""
    user_service = UserService(repos.users, repos.organizations)
    course_service = CourseService(
        repos.courses,
        repos.users,
        repos.organizations,
        user_service,
        verified_feed_limit=_setting(settings, "SMART_FEED_VERIFIED_LIMIT", constants.SMART_FEED_VERIFIED_LIMIT),
        all_feed_limit=_setting(settings, "SMART_FEED_ALL_LIMIT", constants.SMART_FEED_ALL_LIMIT),
    )
    career_service = CareerService(repos.career_paths, repos.users, repos.organizations)

    return Container(
        repos=repos,
        conn=conn,
        auth_service=AuthService(repos.users),
        user_service=user_service,
        organization_service=OrganizationService(
            repos.organizations,
            repos.memberships,
            repos.join_requests,
            repos.positions,
            repos.users,
            repos.notifications,
        ),
        notification_service=NotificationService(repos.notifications, repos.users),
        course_service=course_service,
        career_service=career_service,
        recommendation_service=RecommendationService(
            repos.courses,
            repos.users,
            career_service,
            course_service,
            limit=_setting(settings, "RECOMMENDATION_LIMIT", constants.RECOMMENDATION_LIMIT),
        ),
        search_service=SearchService(
            repos.courses,
            repos.organizations,
            repos.users,
            repos.search_trends,
            expander,
            limit_per_category=_setting(settings, "SEARCH_LIMIT_PER_CATEGORY", constants.SEARCH_LIMIT_PER_CATEGORY),
        ),
        social_service=SocialService(repos.relationships, repos.post_likes, repos.users),
        superadmin_service=SuperAdminService(repos.users, repos.system_settings),
        analytics_service=AnalyticsService(repos.analytics_events, repos.users, repos.organizations),
        contexts=ContextRegistry(repos.users, repos.organizations, repos.memberships),
    )


def build_container(*, db_config: dict, settings: Any = None) -> Container:
    conn = DatabaseConnection(DBConfig.from_dict(db_config))

    repos = Repositories(
        users=MySQLUserRepository(conn),
        organizations=MySQLOrganizationRepository(conn),
        memberships=MySQLMembershipRepository(conn),
        join_requests=MySQLJoinRequestRepository(conn),
        positions=MySQLPositionRepository(conn),
        notifications=MySQLNotificationRepository(conn),
        courses=MySQLCourseRepository(conn),
        career_paths=MySQLCareerPathRepository(conn),
        relationships=MySQLRelationshipRepository(conn),
        post_likes=MySQLPostLikeRepository(conn),
        search_trends=MySQLSearchTrendRepository(conn),
        analytics_events=MySQLAnalyticsEventRepository(conn),
        system_settings=MySQLSettingsRepository(conn),
    )
    return assemble_container(repos, conn=conn, settings=settings)
