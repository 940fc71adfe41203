from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import ContentTier, VerificationStatus, Visibility
from .model import Course, ReviewOutcome


class CourseRepository(Protocol):
    def get_by_id(self, course_id: str) -> Optional[Course]:
        raise NotImplementedError

    def list_by_ids(self, course_ids: Sequence[str]) -> Sequence[Course]:
        raise NotImplementedError

    def find(
        self,
        *,
        author_ids: Sequence[str] = (),
        organization_ids: Sequence[str] = (),
        visibilities: Sequence[Visibility] = (),
        tiers: Sequence[ContentTier] = (),
        verification_status: Optional[VerificationStatus] = None,
        tags_any: Sequence[str] = (),
        topics_any: Sequence[str] = (),
        channels_any: Sequence[str] = (),
        limit: Optional[int] = None,
    ) -> Sequence[Course]:
        """Every non-empty filter must hold (AND); within a *_any filter one match is enough.

        channels_any matches either target_channel_ids or the single channel_id.
        """

        raise NotImplementedError

    def create(self, course: Course) -> str:
        raise NotImplementedError

    def update(self, course_id: str, fields: dict) -> bool:
        raise NotImplementedError

    def delete(self, course_id: str) -> bool:
        raise NotImplementedError

    def apply_review(self, course_id: str, outcome: ReviewOutcome, *, flag_threshold: int) -> bool:
        """Course score/flags and the author's reputation in one transaction."""

        raise NotImplementedError
