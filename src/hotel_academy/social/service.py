from __future__ import annotations

import logging
from typing import Sequence

from ..common.datetime_utils import now_ms
from ..core.enums import FollowStatus, TargetType
from ..core.exceptions import NotFoundError, ValidationError
from ..users.repository import UserRepository
from .model import FollowResult, Relationship, follow_status
from .repository import PostLikeRepository, RelationshipRepository

logger = logging.getLogger(__name__)


def clean_tag(tag: str) -> str:
    return (tag or "").lower().strip().replace("#", "")


class SocialService:
    """Use case: following people, pages and tags; liking posts."""

    def __init__(self, relationships: RelationshipRepository, posts: PostLikeRepository, users: UserRepository):
        self._relationships = relationships
        self._posts = posts
        self._users = users

    def check_follow_status(self, user_id: str, target_id: str) -> FollowStatus:
        rel = self._relationships.get(user_id, target_id)
        if rel is None:
            return FollowStatus.NONE
        return follow_status(rel.status)

    def follow_entity(self, user_id: str, target_id: str, target_type: TargetType = TargetType.USER) -> FollowResult:
        if user_id == target_id:
            raise ValidationError("You cannot follow yourself")
        result = self._relationships.follow(user_id, target_id, target_type, created_at=now_ms())
        if result.success:
            logger.info("%s follows %s %s (%s)", user_id, target_type.value, target_id, result.status.value)
        return result

    def unfollow_entity(self, user_id: str, target_id: str, target_type: TargetType = TargetType.USER) -> bool:
        return self._relationships.unfollow(user_id, target_id, target_type)

    def pending_follow_requests(self, user_id: str) -> Sequence[Relationship]:
        return self._relationships.list_pending_for(user_id)

    def accept_follow_request(self, *, user_id: str, follower_id: str) -> None:
        if not self._relationships.accept(follower_id, user_id):
            raise NotFoundError("Follow request not found")

    def toggle_tag_follow(self, user_id: str, tag: str, *, following: bool) -> str:
        tag = clean_tag(tag)
        if not tag:
            raise ValidationError("Tag is required")
        if not self._users.set_followed_tag(user_id, tag, following=following):
            raise NotFoundError("User not found")
        return tag

    def toggle_post_like(self, *, post_id: str, user_id: str, liked: bool) -> bool:
        return self._posts.set_like(post_id, user_id, liked=liked, created_at=now_ms())

    def has_user_liked_post(self, post_id: str, user_id: str) -> bool:
        return self._posts.has_liked(post_id, user_id)
