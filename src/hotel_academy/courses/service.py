from __future__ import annotations

import logging
import uuid
from typing import Dict, List, Optional, Sequence

from ..common.concurrency import run_all_settled
from ..common.datetime_utils import now_ms
from ..common.validators import require_range
from ..core import constants
from ..core.enums import (
    AssignmentType,
    AuthorType,
    ContentTier,
    CreatorLevel,
    ProgressStatus,
    ReviewTag,
    StoryStatus,
    UserRole,
    VerificationStatus,
    Visibility,
)
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..organizations.repository import OrganizationRepository
from ..permissions.resolver import PermissionResolver
from ..users.model import CourseProgress, User
from ..users.repository import UserRepository
from ..users.service import UserService
from .model import ChannelStory, Course, ExploreFeed, ReviewOutcome, card_from_dict
from .repository import CourseRepository

logger = logging.getLogger(__name__)

OFFICIAL_ROLES = {UserRole.MANAGER, UserRole.ADMIN, UserRole.SUPER_ADMIN}
PRO_LEVELS = {CreatorLevel.EXPERT, CreatorLevel.MASTER}

# Cap on ids per IN / overlap filter in one feed source.
FEED_FILTER_IDS = 10


def classify_author(user: User, duration: int) -> tuple[ContentTier, VerificationStatus]:
    """Tier and moderation status a new course starts with."""
    if user.role in OFFICIAL_ROLES:
        return ContentTier.OFFICIAL, VerificationStatus.VERIFIED
    if user.creator_level in PRO_LEVELS:
        return ContentTier.PRO, VerificationStatus.PENDING
    if duration > constants.COMMUNITY_MAX_DURATION_MINUTES:
        raise ValidationError(
            "Başlangıç seviyesindeki içerik üreticileri maks. "
            f"{constants.COMMUNITY_MAX_DURATION_MINUTES} dakikalık içerik üretebilir."
        )
    return ContentTier.COMMUNITY, VerificationStatus.VERIFIED


def review_outcome(course: Course, rating: int, tags: Sequence[ReviewTag]) -> ReviewOutcome:
    flagged = ReviewTag.MISLEADING in tags or ReviewTag.OUTDATED in tags
    if course.author_type != AuthorType.USER:
        return ReviewOutcome(rating=rating, flag_delta=1 if flagged else 0)

    reputation, xp = 0, 0
    if rating >= constants.REVIEW_HIGH_RATING:
        reputation, xp = constants.REVIEW_HIGH_REPUTATION, constants.REVIEW_HIGH_XP
    elif rating <= constants.REVIEW_LOW_RATING:
        reputation = constants.REVIEW_LOW_REPUTATION
    if ReviewTag.ACCURATE in tags or ReviewTag.ENGAGING in tags:
        reputation += constants.REVIEW_QUALITY_TAG_BONUS

    return ReviewOutcome(
        rating=rating,
        flag_delta=1 if flagged else 0,
        author_id=course.author_id,
        reputation_delta=reputation,
        xp_delta=xp,
    )


def newest_first(courses: Sequence[Course]) -> List[Course]:
    return sorted(courses, key=lambda c: c.created_at or 0, reverse=True)


def build_explore_feed(user: User, courses: Sequence[Course]) -> ExploreFeed:
    """Split courses into the priority, trending and discovery pools."""

    def assigned(c: Course) -> bool:
        if c.assignment_type == AssignmentType.GLOBAL:
            return True
        return c.assignment_type == AssignmentType.DEPARTMENT and user.department in c.target_departments

    priority = [
        c
        for c in courses
        if not user.has_completed(c.course_id)
        and (assigned(c) or c.category_id == constants.ONBOARDING_CATEGORY_ID)
    ]
    priority.sort(key=lambda c: c.priority == "HIGH", reverse=True)
    taken = {c.course_id for c in priority}

    trending = [c for c in courses if c.course_id not in taken and c.popularity_score > constants.TRENDING_POPULARITY]
    trending.sort(key=lambda c: c.popularity_score, reverse=True)
    taken.update(c.course_id for c in trending)

    discovery = [c for c in courses if c.course_id not in taken]
    discovery.sort(key=lambda c: c.is_new, reverse=True)
    return ExploreFeed(priority=priority, trending=trending, discovery=discovery)


def channel_story(channel, courses: Sequence[Course], user: User) -> ChannelStory:
    in_channel = [c for c in courses if c.in_channel(channel.channel_id)]
    if not in_channel:
        return ChannelStory(channel=channel, status=StoryStatus.EMPTY)

    pending = [c for c in in_channel if not user.has_completed(c.course_id)]
    if not pending:
        return ChannelStory(channel=channel, status=StoryStatus.ALL_CAUGHT_UP)

    for c in pending:
        progress: Optional[CourseProgress] = user.progress_map.get(c.course_id)
        if progress and progress.status == ProgressStatus.IN_PROGRESS:
            return ChannelStory(
                channel=channel,
                status=StoryStatus.IN_PROGRESS,
                next_course_id=c.course_id,
                progress_percent=progress.percent,
            )
    return ChannelStory(channel=channel, status=StoryStatus.HAS_NEW, next_course_id=pending[0].course_id)


class CourseService:
    """Use case: authoring, moderation and the learner-facing feeds."""

    def __init__(
        self,
        courses: CourseRepository,
        users: UserRepository,
        organizations: OrganizationRepository,
        user_service: UserService,
        *,
        verified_feed_limit: int = constants.SMART_FEED_VERIFIED_LIMIT,
        all_feed_limit: int = constants.SMART_FEED_ALL_LIMIT,
    ):
        self._courses = courses
        self._users = users
        self._organizations = organizations
        self._user_service = user_service
        self._verified_feed_limit = verified_feed_limit
        self._all_feed_limit = all_feed_limit

    def get_course(self, course_id: str) -> Course:
        course = self._courses.get_by_id(course_id)
        if not course:
            raise NotFoundError("Course not found")
        return course

    # ---- authoring ----

    def publish_content(self, *, user_id: str, data: dict) -> Course:
        user = self._user_service.get_user(user_id)
        title = data.get("title") or {}
        if isinstance(title, str):
            title = {"tr": title}
        if not any((v or "").strip() for v in title.values()):
            raise ValidationError("Title is required")
        duration = int(data.get("duration") or 0)
        if duration < 0:
            raise ValidationError("Duration cannot be negative")

        tier, status = classify_author(user, duration)

        author_type = AuthorType.USER
        author_id, author_name, author_avatar = user.user_id, user.name, user.avatar
        organization_id = data.get("organization_id") or None
        if data.get("owner_type") == AuthorType.ORGANIZATION.value and organization_id:
            author_type = AuthorType.ORGANIZATION
            author_id = organization_id
            org = self._organizations.get_by_id(organization_id)
            if org:
                author_name, author_avatar = org.name, org.logo_url

        assignment = data.get("assignment_type")
        course = Course(
            course_id=uuid.uuid4().hex,
            author_id=author_id,
            title=title,
            author_type=author_type,
            author_name=author_name,
            author_avatar_url=author_avatar,
            organization_id=organization_id,
            channel_id=data.get("channel_id") or None,
            target_channel_ids=list(data.get("target_channel_ids") or []),
            category_id=data.get("category_id") or None,
            visibility=Visibility(data.get("visibility") or Visibility.PUBLIC.value),
            description=data.get("description") or {},
            thumbnail_url=data.get("thumbnail_url") or "",
            duration=duration,
            xp_reward=int(data.get("xp_reward") or 0),
            steps=[card_from_dict(s) for s in data.get("steps") or []],
            tags=[str(t).lower().strip() for t in data.get("tags") or []],
            topics=list(data.get("topics") or []),
            priority=data.get("priority") or "NORMAL",
            is_new=True,
            price=int(data.get("price") or 0),
            assignment_type=AssignmentType(assignment) if assignment else None,
            target_departments=list(data.get("target_departments") or []),
            tier=tier,
            verification_status=status,
            quality_score=0,
            flag_count=0,
            created_at=now_ms(),
        )
        self._courses.create(course)
        self._users.add_xp(user.user_id, constants.PUBLISH_XP_REWARD)
        logger.info("course %s published by %s as %s/%s", course.course_id, user_id, tier.value, status.value)
        return course

    def update_course(self, *, actor_id: str, course_id: str, fields: dict) -> None:
        course = self.get_course(course_id)
        self._require_editor(actor_id, course)
        if not self._courses.update(course_id, fields):
            raise ValidationError("Nothing to update")

    def delete_course(self, *, actor_id: str, course_id: str) -> None:
        """Deleting a course that is already gone succeeds."""
        course = self._courses.get_by_id(course_id)
        if course is None:
            return
        self._require_editor(actor_id, course)
        self._courses.delete(course_id)
        logger.info("course %s deleted by %s", course_id, actor_id)

    def _require_editor(self, actor_id: str, course: Course) -> None:
        actor = self._user_service.get_user(actor_id)
        if course.author_id == actor.user_id or actor.role == UserRole.SUPER_ADMIN:
            return
        if course.organization_id:
            org = self._organizations.get_by_id(course.organization_id)
            if PermissionResolver(actor, org).can("can_create_content"):
                return
        raise AuthorizationError("You cannot edit this course")

    def get_admin_courses(self, *, user_id: str, organization_id: Optional[str] = None) -> List[Course]:
        if organization_id:
            found = self._courses.find(organization_ids=[organization_id])
        else:
            found = self._courses.find(author_ids=[user_id])
        return newest_first(found)

    def get_instructor_courses(self, author_id: str) -> List[Course]:
        return newest_first(self._courses.find(author_ids=[author_id]))

    # ---- moderation ----

    def submit_review(self, *, course_id: str, reviewer_id: str, rating: int, tags: Sequence[str] = ()) -> None:
        rating = require_range(rating, "Rating", 1, 5)
        try:
            review_tags = [ReviewTag(t) for t in tags]
        except ValueError as e:
            raise ValidationError(str(e)) from e

        course = self.get_course(course_id)
        if course.author_type == AuthorType.USER and course.author_id == reviewer_id:
            raise ValidationError("You cannot review your own course")

        outcome = review_outcome(course, rating, review_tags)
        if not self._courses.apply_review(course_id, outcome, flag_threshold=constants.REVIEW_FLAG_THRESHOLD):
            raise NotFoundError("Course not found")

    # ---- feeds ----

    def get_smart_feed(self, user: Optional[User], *, verified_only: bool) -> List[Course]:
        try:
            if verified_only:
                found = self._courses.find(
                    tiers=[ContentTier.PRO, ContentTier.OFFICIAL],
                    verification_status=VerificationStatus.VERIFIED,
                    limit=self._verified_feed_limit,
                )
            else:
                found = self._courses.find(
                    verification_status=VerificationStatus.VERIFIED,
                    limit=self._all_feed_limit,
                )
        except Exception:
            logger.exception("smart feed failed")
            return []
        return newest_first(found)

    def get_dashboard_feed(self, user: User) -> List[Course]:
        """Own content, followed people/pages, workspace channels and tag interests, newest first."""
        sources = [("own content", lambda: self._courses.find(author_ids=[user.user_id], limit=5))]

        if user.following_users:
            sources.append(
                (
                    "followed users",
                    lambda: self._courses.find(
                        author_ids=user.following_users[:FEED_FILTER_IDS],
                        visibilities=[Visibility.PUBLIC, Visibility.FOLLOWERS_ONLY],
                        limit=15,
                    ),
                )
            )
        if user.following_pages:
            sources.append(
                (
                    "followed pages",
                    lambda: self._courses.find(
                        organization_ids=user.following_pages[:FEED_FILTER_IDS],
                        visibilities=[Visibility.PUBLIC],
                        limit=15,
                    ),
                )
            )
        if user.joined_page_ids and user.channel_subscriptions:
            sources.append(
                (
                    "workspace channels",
                    lambda: self._courses.find(
                        organization_ids=user.joined_page_ids[:FEED_FILTER_IDS],
                        channels_any=user.channel_subscriptions[:FEED_FILTER_IDS],
                        limit=20,
                    ),
                )
            )
        if user.followed_tags:
            sources.append(
                (
                    "followed tags",
                    lambda: self._courses.find(
                        tags_any=user.followed_tags[:FEED_FILTER_IDS],
                        visibilities=[Visibility.PUBLIC],
                        limit=15,
                    ),
                )
            )

        merged: Dict[str, Course] = {}
        for batch in run_all_settled(sources, default=[]):
            for course in batch:
                merged[course.course_id] = course
        return newest_first(list(merged.values()))

    def get_channel_stories(self, user: User) -> List[ChannelStory]:
        if not user.current_organization_id or not user.channel_subscriptions:
            return []
        org = self._organizations.get_by_id(user.current_organization_id)
        if not org:
            return []

        courses = self._courses.find(organization_ids=[org.organization_id], visibilities=[Visibility.PRIVATE])
        stories = [
            channel_story(channel, courses, user)
            for channel in org.channels
            if channel.channel_id in user.channel_subscriptions
        ]
        visible = [s for s in stories if s.status in (StoryStatus.IN_PROGRESS, StoryStatus.HAS_NEW)]
        visible.sort(key=lambda s: s.status != StoryStatus.IN_PROGRESS)
        return visible

    def get_explore_feed(self, user: User, courses: Optional[Sequence[Course]] = None) -> ExploreFeed:
        if courses is None:
            if user.current_organization_id:
                courses = self._courses.find(organization_ids=[user.current_organization_id])
            else:
                courses = self._courses.find(
                    visibilities=[Visibility.PUBLIC],
                    verification_status=VerificationStatus.VERIFIED,
                    limit=self._all_feed_limit,
                )
        return build_explore_feed(user, courses)

    # ---- learning ----

    def start_course(self, *, user_id: str, course_id: str) -> None:
        self.get_course(course_id)
        self._user_service.start_course(user_id, course_id)

    def save_progress(self, *, user_id: str, course_id: str, card_index: int) -> CourseProgress:
        course = self.get_course(course_id)
        total = len(course.steps)
        if total and card_index >= total:
            raise ValidationError("Card index out of range")
        return self._user_service.save_course_progress(user_id, course_id, card_index=card_index, total_cards=total)

    def complete_course(self, *, user_id: str, course_id: str) -> CourseProgress:
        course = self.get_course(course_id)
        return self._user_service.complete_course(
            user_id, course_id, earned_xp=course.xp_reward, total_cards=len(course.steps)
        )

    def toggle_save_course(self, *, user_id: str, course_id: str, saved: bool) -> None:
        self.get_course(course_id)
        self._user_service.toggle_save_course(user_id, course_id, saved=saved)
