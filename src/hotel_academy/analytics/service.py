from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Optional, Sequence

from ..common.datetime_utils import now_ms
from ..core import constants
from ..core.enums import EventOutcome, EventType
from ..core.exceptions import NotFoundError
from ..organizations.repository import OrganizationRepository
from ..permissions.resolver import PermissionResolver
from ..users.model import SkillMetric, User
from ..users.repository import UserRepository
from .model import AnalyticsEvent
from .repository import AnalyticsEventRepository

logger = logging.getLogger(__name__)

DEFAULT_SKILL_LEVEL = 50
DEFAULT_USER_ROLE = "Member"


def create_event_payload(
    user: User,
    *,
    page_id: Optional[str],
    content_id: str,
    type: EventType,
    channel_id: Optional[str] = None,
    payload: Any = None,
    related_topics: Sequence[str] = (),
    outcome: Optional[EventOutcome] = None,
) -> AnalyticsEvent:
    return AnalyticsEvent(
        user_id=user.user_id,
        user_name=user.name,
        user_role=user.role_title or DEFAULT_USER_ROLE,
        page_id=page_id,
        channel_id=channel_id,
        content_id=content_id,
        type=type,
        payload=payload,
        related_topics=list(related_topics),
        outcome=outcome,
    )


def next_skill_metric(current: Optional[SkillMetric], outcome: EventOutcome, now: int) -> SkillMetric:
    metric = current or SkillMetric(level=DEFAULT_SKILL_LEVEL, last_tested_at=now)
    if outcome == EventOutcome.SUCCESS:
        return replace(
            metric,
            level=min(100, metric.level + constants.SKILL_SUCCESS_STEP),
            success_count=metric.success_count + 1,
            last_tested_at=now,
        )
    return replace(
        metric,
        level=max(0, metric.level - constants.SKILL_FAILURE_STEP),
        failure_count=metric.failure_count + 1,
        last_tested_at=now,
    )


class AnalyticsService:
    """Learning telemetry. Logging an event never fails the caller."""

    def __init__(self, events: AnalyticsEventRepository, users: UserRepository, organizations: OrganizationRepository):
        self._events = events
        self._users = users
        self._organizations = organizations

    def log_event(self, event: AnalyticsEvent) -> Optional[int]:
        if not event.page_id:
            logger.warning("analytics event %s for %s has no page id, dropped", event.type.value, event.content_id)
            return None

        now = now_ms()
        event_id = None
        try:
            event_id = self._events.append(replace(event, timestamp=now))
        except Exception:
            logger.exception("could not record analytics event %s", event.type.value)

        if event.type == EventType.QUIZ_ANSWER and event.outcome and event.related_topics:
            self._update_skills(event.user_id, event.related_topics, event.outcome, now)
        logger.debug("[analytics] %s %s by %s", event.type.value, event.content_id, event.user_id)
        return event_id

    def _update_skills(self, user_id: str, topics: Sequence[str], outcome: EventOutcome, now: int) -> None:
        initial = SkillMetric(level=DEFAULT_SKILL_LEVEL, last_tested_at=now)
        try:
            for topic in dict.fromkeys(topics):
                self._users.update_skill(
                    user_id, topic, lambda metric: next_skill_metric(metric, outcome, now), initial=initial
                )
        except Exception:
            logger.exception("could not update skills of %s", user_id)

    def recent_events(self, *, actor_id: str, organization_id: str, limit: int = 100) -> Sequence[AnalyticsEvent]:
        org = self._organizations.get_by_id(organization_id)
        if not org:
            raise NotFoundError("Organization not found")
        PermissionResolver(self._users.get_by_id(actor_id), org).require("view_analytics")
        return self._events.list_recent(organization_id, limit=limit)
