from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import FollowStatus, RelationshipStatus, TargetType


@dataclass(frozen=True)
class Relationship:
    """Source of truth for one follow; at most one per (follower, following) pair."""

    relationship_id: int
    follower_id: str
    following_id: str
    target_type: TargetType
    status: RelationshipStatus
    created_at: int


@dataclass(frozen=True)
class FollowResult:
    status: FollowStatus
    success: bool


def follow_status(status: RelationshipStatus) -> FollowStatus:
    return FollowStatus.FOLLOWING if status == RelationshipStatus.ACCEPTED else FollowStatus.PENDING


def relationship_to_dict(r: Relationship) -> dict:
    return {
        "id": r.relationship_id,
        "follower_id": r.follower_id,
        "following_id": r.following_id,
        "target_type": r.target_type.value,
        "status": r.status.value,
        "created_at": r.created_at,
    }
