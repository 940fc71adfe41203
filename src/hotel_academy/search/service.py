from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from ..common.concurrency import run_all_settled
from ..common.datetime_utils import now_ms
from ..core import constants
from ..core.enums import SearchResultType
from ..courses.model import Course
from ..courses.repository import CourseRepository
from ..organizations.repository import OrganizationRepository
from ..users.repository import UserRepository
from .model import SearchResult, SearchTrend
from .repository import QueryExpander, SearchTrendRepository

logger = logging.getLogger(__name__)

FALLBACK_TRENDS = (
    ("Housekeeping", 100),
    ("Şarap Servisi", 80),
    ("Misafir İlişkileri", 60),
)


def fallback_trends() -> List[SearchTrend]:
    now = now_ms()
    return [SearchTrend(term=term, count=count, last_searched_at=now) for term, count in FALLBACK_TRENDS]


class SearchService:
    """Global search over courses, organizations and people.

    Every searcher scores its own hits; the merged list is ordered by
    relevance, ties keeping searcher order (courses, organizations, users).
    """

    def __init__(
        self,
        courses: CourseRepository,
        organizations: OrganizationRepository,
        users: UserRepository,
        trends: SearchTrendRepository,
        expander: Optional[QueryExpander] = None,
        *,
        limit_per_category: int = constants.SEARCH_LIMIT_PER_CATEGORY,
    ):
        self._courses = courses
        self._organizations = organizations
        self._users = users
        self._trends = trends
        self._expander = expander
        self._limit = limit_per_category

    def _terms(self, term: str) -> List[str]:
        if self._expander is None:
            return [term]
        try:
            expanded = [t.strip().lower() for t in self._expander.expand(term) if t and t.strip()]
        except Exception as e:
            logger.warning("query expansion failed for %r, using raw term: %s", term, e)
            return [term]
        return expanded or [term]

    def perform_global_search(self, raw_query: str, lang: Optional[str] = None) -> List[SearchResult]:
        term = (raw_query or "").strip().lower()
        if len(term) < constants.SEARCH_MIN_TERM_LENGTH:
            return []

        terms = self._terms(term)
        logger.debug("searching for %s", terms)
        batches = run_all_settled(
            [
                ("course search", lambda: self.search_courses(terms, lang)),
                ("organization search", lambda: self.search_organizations(terms)),
                ("user search", lambda: self.search_users(terms)),
            ],
            default=[],
        )
        merged = [r for batch in batches for r in batch]
        merged.sort(key=lambda r: r.relevance_score, reverse=True)
        return merged

    def search_courses(self, terms: Sequence[str], lang: Optional[str] = None) -> List[SearchResult]:
        query_terms = list(terms[: constants.SEARCH_MAX_QUERY_TERMS])
        main = terms[0]
        by_tag = self._courses.find(tags_any=query_terms, limit=self._limit)
        by_topic = self._courses.find(topics_any=query_terms, limit=self._limit)

        results: Dict[str, SearchResult] = {}

        def score(course: Course, base: int) -> None:
            title = course.localized_title(lang)
            relevance = base
            if main in title.lower():
                relevance += constants.SCORE_COURSE_TITLE_BOOST
            results[course.course_id] = SearchResult(
                type=SearchResultType.COURSE,
                result_id=course.course_id,
                title=title,
                subtitle=f"{course.duration} dk • {course.author_name}",
                image_url=course.thumbnail_url,
                relevance_score=relevance,
                url=f"/course/{course.course_id}",
            )

        for course in by_tag:
            score(course, constants.SCORE_COURSE_TAG)
        # a topic hit replaces the tag hit for the same course
        for course in by_topic:
            score(course, constants.SCORE_COURSE_TOPIC)
        return list(results.values())

    def search_organizations(self, terms: Sequence[str]) -> List[SearchResult]:
        main = terms[0]
        results: List[SearchResult] = []
        for org in self._organizations.list_recent(limit=constants.SEARCH_SCAN_LIMIT):
            name = org.name.lower()
            sector = (org.sector or "").lower()
            if main in name:
                relevance = constants.SCORE_ORG_NAME
            elif any(t in sector for t in terms):
                relevance = constants.SCORE_ORG_SECTOR
            else:
                continue
            results.append(
                SearchResult(
                    type=SearchResultType.ORGANIZATION,
                    result_id=org.organization_id,
                    title=org.name,
                    subtitle=f"{org.member_count} Üye • {org.location}",
                    image_url=org.logo_url,
                    relevance_score=relevance,
                    url=f"/org/{org.organization_id}",
                )
            )
        return results

    def search_users(self, terms: Sequence[str]) -> List[SearchResult]:
        main = terms[0]
        results: List[SearchResult] = []
        for user in self._users.list_searchable(limit=constants.SEARCH_SCAN_LIMIT):
            role = (user.role_title or "").lower()
            dept = (user.department or "").lower()
            if main in user.name.lower():
                relevance = constants.SCORE_USER_NAME
            elif any(t in role or t in dept for t in terms):
                relevance = constants.SCORE_USER_ROLE
            else:
                continue
            results.append(
                SearchResult(
                    type=SearchResultType.USER,
                    result_id=user.user_id,
                    title=user.name,
                    subtitle=user.role_title or "Üye",
                    image_url=user.avatar,
                    relevance_score=relevance,
                    url=f"/user/{user.user_id}",
                )
            )
        return results

    # ---- trends ----

    def get_trending_searches(self) -> List[SearchTrend]:
        try:
            return list(self._trends.top(limit=constants.TRENDING_LIMIT))
        except Exception:
            logger.exception("could not load search trends, serving defaults")
            return fallback_trends()

    def track_search(self, term: str) -> None:
        if not term or len(term) < constants.SEARCH_TRACK_MIN_LENGTH:
            return
        clean = term.lower().strip()
        try:
            self._trends.increment(clean, searched_at=now_ms())
        except Exception:
            logger.exception("could not track search term %r", clean)
