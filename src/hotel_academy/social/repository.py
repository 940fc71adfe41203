from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import TargetType
from .model import FollowResult, Relationship


class RelationshipRepository(Protocol):
    """Follow graph. Each write method is one transaction covering the
    relationship row and the denormalized lists/counters on both sides."""

    def get(self, follower_id: str, following_id: str) -> Optional[Relationship]:
        raise NotImplementedError

    def follow(self, follower_id: str, target_id: str, target_type: TargetType, *, created_at: int) -> FollowResult:
        """PENDING for private users, ACCEPTED otherwise; an existing pair is returned unchanged with success=False."""

        raise NotImplementedError

    def unfollow(self, follower_id: str, target_id: str, target_type: TargetType) -> bool:
        raise NotImplementedError

    def accept(self, follower_id: str, user_id: str) -> bool:
        """Accept a PENDING request from follower_id to user_id."""

        raise NotImplementedError

    def list_pending_for(self, user_id: str) -> Sequence[Relationship]:
        raise NotImplementedError


class PostLikeRepository(Protocol):
    def set_like(self, post_id: str, user_id: str, *, liked: bool, created_at: int) -> bool:
        """Returns True when the like state changed."""

        raise NotImplementedError

    def has_liked(self, post_id: str, user_id: str) -> bool:
        raise NotImplementedError
