from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from ..core.enums import RelationshipStatus, TargetType
from ..core.exceptions import NotFoundError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from ..users.mysql_user_repository import array_remove, array_union, update_json_column
from .model import FollowResult, Relationship, follow_status
from .repository import PostLikeRepository, RelationshipRepository

RELATIONSHIP_COLUMNS = "relationship_id, follower_id, following_id, target_type, status, created_at"

TARGET_TABLES = {
    TargetType.USER: ("users", "user_id"),
    TargetType.ORGANIZATION: ("organizations", "organization_id"),
}


def row_to_relationship(row: Dict[str, Any]) -> Relationship:
    return Relationship(
        relationship_id=int(row["relationship_id"]),
        follower_id=str(row["follower_id"]),
        following_id=str(row["following_id"]),
        target_type=TargetType(row.get("target_type") or TargetType.USER.value),
        status=RelationshipStatus(row["status"]),
        created_at=int(row.get("created_at") or 0),
    )


def _apply_follow(cur, follower_id: str, target_id: str, target_type: TargetType, delta: int) -> None:
    """Mirror an accepted follow (delta=1) or its removal (delta=-1) into both sides' lists and counters."""
    op = array_union if delta > 0 else array_remove
    following_column = "following_users" if target_type == TargetType.USER else "following_pages"
    update_json_column(
        cur,
        table="users",
        key_column="user_id",
        key=follower_id,
        column=following_column,
        fn=lambda v: op(v, target_id),
        default=[],
    )
    cur.execute(
        "UPDATE users SET following_count = GREATEST(following_count + %s, 0) WHERE user_id=%s",
        (delta, follower_id),
    )

    table, key_column = TARGET_TABLES[target_type]
    update_json_column(
        cur,
        table=table,
        key_column=key_column,
        key=target_id,
        column="followers",
        fn=lambda v: op(v, follower_id),
        default=[],
    )
    cur.execute(
        f"UPDATE {table} SET followers_count = GREATEST(followers_count + %s, 0) WHERE {key_column}=%s",
        (delta, target_id),
    )


class MySQLRelationshipRepository(RelationshipRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, follower_id: str, following_id: str) -> Optional[Relationship]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {RELATIONSHIP_COLUMNS} FROM relationships WHERE follower_id=%s AND following_id=%s",
                (follower_id, following_id),
            )
            row = fetchone(cur)
            return row_to_relationship(row) if row else None

    def follow(self, follower_id: str, target_id: str, target_type: TargetType, *, created_at: int) -> FollowResult:
        table, key_column = TARGET_TABLES[target_type]
        with db_cursor(self._conn_factory) as (_, cur):
            private_column = "is_private" if target_type == TargetType.USER else "0 AS is_private"
            cur.execute(f"SELECT {private_column} FROM {table} WHERE {key_column}=%s FOR UPDATE", (target_id,))
            target = fetchone(cur)
            if not target:
                raise NotFoundError("Follow target not found")

            cur.execute(
                "SELECT status FROM relationships WHERE follower_id=%s AND following_id=%s FOR UPDATE",
                (follower_id, target_id),
            )
            existing = fetchone(cur)
            if existing:
                return FollowResult(status=follow_status(RelationshipStatus(existing["status"])), success=False)

            status = RelationshipStatus.PENDING if target.get("is_private") else RelationshipStatus.ACCEPTED
            cur.execute(
                """
                INSERT INTO relationships(follower_id, following_id, target_type, status, created_at)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (follower_id, target_id, target_type.value, status.value, created_at),
            )
            if status == RelationshipStatus.ACCEPTED:
                _apply_follow(cur, follower_id, target_id, target_type, 1)
            return FollowResult(status=follow_status(status), success=True)

    def unfollow(self, follower_id: str, target_id: str, target_type: TargetType) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT relationship_id, target_type, status FROM relationships
                WHERE follower_id=%s AND following_id=%s FOR UPDATE
                """,
                (follower_id, target_id),
            )
            row = fetchone(cur)
            if not row:
                return False
            cur.execute("DELETE FROM relationships WHERE relationship_id=%s", (row["relationship_id"],))
            if row["status"] == RelationshipStatus.ACCEPTED.value:
                # undo against the lists the follow was recorded in
                _apply_follow(cur, follower_id, target_id, TargetType(row["target_type"]), -1)
            return True

    def accept(self, follower_id: str, user_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE relationships SET status=%s
                WHERE follower_id=%s AND following_id=%s AND status=%s
                """,
                (RelationshipStatus.ACCEPTED.value, follower_id, user_id, RelationshipStatus.PENDING.value),
            )
            if cur.rowcount == 0:
                return False
            _apply_follow(cur, follower_id, user_id, TargetType.USER, 1)
            return True

    def list_pending_for(self, user_id: str) -> Sequence[Relationship]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {RELATIONSHIP_COLUMNS} FROM relationships
                WHERE following_id=%s AND status=%s
                ORDER BY created_at DESC
                """,
                (user_id, RelationshipStatus.PENDING.value),
            )
            return [row_to_relationship(r) for r in fetchall(cur)]


class MySQLPostLikeRepository(PostLikeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def set_like(self, post_id: str, user_id: str, *, liked: bool, created_at: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT post_id FROM posts WHERE post_id=%s FOR UPDATE", (post_id,))
            if not fetchone(cur):
                raise NotFoundError("Post not found")

            if liked:
                cur.execute(
                    "INSERT IGNORE INTO post_likes(post_id, user_id, created_at) VALUES(%s,%s,%s)",
                    (post_id, user_id, created_at),
                )
            else:
                cur.execute("DELETE FROM post_likes WHERE post_id=%s AND user_id=%s", (post_id, user_id))
            if cur.rowcount == 0:
                return False

            delta = 1 if liked else -1
            cur.execute(
                "UPDATE posts SET likes_count = GREATEST(likes_count + %s, 0) WHERE post_id=%s",
                (delta, post_id),
            )
            return True

    def has_liked(self, post_id: str, user_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT 1 AS liked FROM post_likes WHERE post_id=%s AND user_id=%s", (post_id, user_id))
            return fetchone(cur) is not None
