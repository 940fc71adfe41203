from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from ..careers.service import CareerService
from ..common.concurrency import run_all_settled
from ..common.datetime_utils import now_ms
from ..core import constants
from ..courses.model import Course
from ..courses.repository import CourseRepository
from ..courses.service import CourseService
from ..users.model import SkillMetric, User
from ..users.repository import UserRepository

logger = logging.getLogger(__name__)

REASON_WEAK = "Eksiklerini Tamamla"
REASON_STALE = "Bilgilerini Tazele"
REASON_PATH = "Kariyer Yolun"
REASON_FALLBACK = "Öne Çıkanlar"

SOURCE_PATH = "career_path"
SOURCE_SKILLS = "skills"
SOURCE_FEED = "smart_feed"


@dataclass(frozen=True)
class Recommendation:
    courses: List[Course] = field(default_factory=list)
    reason: str = ""
    sources: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class EngineResult:
    courses: List[Course] = field(default_factory=list)
    reason: str = ""


EMPTY = EngineResult()


def target_topics(skills: Dict[str, SkillMetric], now: int) -> Tuple[List[str], str]:
    """Weak topics win over stale ones; at most RECOMMENDATION_MAX_TOPICS of either."""
    weak: List[str] = []
    stale: List[str] = []
    for topic, metric in skills.items():
        if metric.level < constants.WEAK_SKILL_LEVEL or metric.failure_count > constants.WEAK_SKILL_FAILURES:
            weak.append(topic)
        elif now - metric.last_tested_at > constants.STALE_SKILL_AGE_MS and metric.level < constants.STALE_SKILL_LEVEL:
            stale.append(topic)

    if weak:
        return weak[: constants.RECOMMENDATION_MAX_TOPICS], REASON_WEAK
    if stale:
        return stale[: constants.RECOMMENDATION_MAX_TOPICS], REASON_STALE
    return [], ""


def merge_courses(batches: Sequence[Sequence[Course]], user: User, limit: int) -> List[Course]:
    seen = set()
    merged: List[Course] = []
    for batch in batches:
        for course in batch:
            if course.course_id in seen or user.has_completed(course.course_id):
                continue
            seen.add(course.course_id)
            merged.append(course)
    return merged[:limit]


class RecommendationService:
    """Two engines, run side by side.

    The career path engine walks the user's path in order; the skills
    engine targets weak or stale topics from quiz history. Path courses
    come first in the merged list. When neither has anything, the verified
    smart feed stands in.
    """

    def __init__(
        self,
        courses: CourseRepository,
        users: UserRepository,
        careers: CareerService,
        course_service: CourseService,
        *,
        limit: int = constants.RECOMMENDATION_LIMIT,
    ):
        self._courses = courses
        self._users = users
        self._careers = careers
        self._course_service = course_service
        self._limit = limit

    def career_path_engine(self, user: User) -> EngineResult:
        if not user.current_organization_id:
            return EMPTY
        path = self._careers.get_user_path(user)
        if not path or not path.course_ids:
            return EMPTY

        by_id = {c.course_id: c for c in self._courses.list_by_ids(path.course_ids)}
        ordered = [
            by_id[cid] for cid in path.course_ids if cid in by_id and not user.has_completed(cid)
        ]
        return EngineResult(courses=ordered, reason=REASON_PATH if ordered else "")

    def skills_engine(self, user: User, *, now: Optional[int] = None) -> EngineResult:
        if not user.current_organization_id:
            return EMPTY
        profile = self._users.get_skill_profile(user.user_id)
        if not profile or not profile.skills:
            return EMPTY

        topics, reason = target_topics(profile.skills, now if now is not None else now_ms())
        if not topics:
            return EMPTY
        found = self._courses.find(
            organization_ids=[user.current_organization_id],
            topics_any=topics,
            limit=self._limit,
        )
        return EngineResult(courses=list(found), reason=reason)

    def recommend(self, user: User) -> Recommendation:
        path, skills = run_all_settled(
            [
                ("career path engine", lambda: self.career_path_engine(user)),
                ("skills engine", lambda: self.skills_engine(user)),
            ],
            default=EMPTY,
        )

        courses = merge_courses([path.courses, skills.courses], user, self._limit)
        if courses:
            sources = [name for name, result in ((SOURCE_PATH, path), (SOURCE_SKILLS, skills)) if result.courses]
            return Recommendation(courses=courses, reason=skills.reason or path.reason, sources=sources)

        logger.info("no personalized recommendations for %s; using smart feed", user.user_id)
        feed = self._course_service.get_smart_feed(user, verified_only=True)
        return Recommendation(
            courses=merge_courses([feed], user, self._limit),
            reason=REASON_FALLBACK,
            sources=[SOURCE_FEED],
        )
