from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional, Sequence

from ..core.enums import AssignmentType, AuthorType, ContentTier, VerificationStatus, Visibility
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_json, placeholders, to_json
from .model import Course, ReviewOutcome, StoryCard, card_from_dict, card_to_dict
from .repository import CourseRepository

COURSE_COLUMNS = """
    course_id, author_type, author_id, author_name, author_avatar_url, organization_id, channel_id,
    target_channel_ids, category_id, visibility, title, description, thumbnail_url, duration, xp_reward,
    steps, tags, topics, likes_count, popularity_score, priority, is_new, is_featured, price,
    assignment_type, target_departments, tier, verification_status, quality_score, flag_count, created_at
"""

JSON_FIELDS = {"title", "description", "steps", "tags", "topics", "target_channel_ids", "target_departments"}
EDITABLE_FIELDS = JSON_FIELDS | {
    "thumbnail_url",
    "duration",
    "xp_reward",
    "visibility",
    "category_id",
    "channel_id",
    "priority",
    "is_new",
    "is_featured",
    "price",
    "assignment_type",
    "tier",
    "verification_status",
    "popularity_score",
}


def row_to_course(row: Dict[str, Any]) -> Course:
    assignment = row.get("assignment_type")
    return Course(
        course_id=str(row["course_id"]),
        author_id=str(row["author_id"]),
        title=from_json(row.get("title"), {}),
        author_type=AuthorType(row.get("author_type") or AuthorType.USER.value),
        author_name=row.get("author_name") or "",
        author_avatar_url=row.get("author_avatar_url") or "",
        organization_id=row.get("organization_id"),
        channel_id=row.get("channel_id"),
        target_channel_ids=from_json(row.get("target_channel_ids"), []),
        category_id=row.get("category_id"),
        visibility=Visibility(row.get("visibility") or Visibility.PUBLIC.value),
        description=from_json(row.get("description"), {}),
        thumbnail_url=row.get("thumbnail_url") or "",
        duration=int(row.get("duration") or 0),
        xp_reward=int(row.get("xp_reward") or 0),
        steps=[card_from_dict(s) for s in from_json(row.get("steps"), [])],
        tags=from_json(row.get("tags"), []),
        topics=from_json(row.get("topics"), []),
        likes_count=int(row.get("likes_count") or 0),
        popularity_score=int(row.get("popularity_score") or 0),
        priority=row.get("priority") or "NORMAL",
        is_new=bool(row.get("is_new")),
        is_featured=bool(row.get("is_featured")),
        price=int(row.get("price") or 0),
        assignment_type=AssignmentType(assignment) if assignment else None,
        target_departments=from_json(row.get("target_departments"), []),
        tier=ContentTier(row.get("tier") or ContentTier.COMMUNITY.value),
        verification_status=VerificationStatus(row.get("verification_status") or VerificationStatus.VERIFIED.value),
        quality_score=int(row.get("quality_score") or 0),
        flag_count=int(row.get("flag_count") or 0),
        created_at=int(row.get("created_at") or 0),
    )


def _column_value(name: str, value: Any) -> Any:
    if name == "steps":
        return to_json([card_to_dict(s) if isinstance(s, StoryCard) else s for s in (value or [])])
    if name in JSON_FIELDS:
        return to_json(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, bool):
        return int(value)
    return value


class MySQLCourseRepository(CourseRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _select_many(self, sql_tail: str, params: tuple) -> Sequence[Course]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {COURSE_COLUMNS} FROM courses {sql_tail}", params)
            return [row_to_course(r) for r in fetchall(cur)]

    def get_by_id(self, course_id: str) -> Optional[Course]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {COURSE_COLUMNS} FROM courses WHERE course_id=%s", (course_id,))
            row = fetchone(cur)
            return row_to_course(row) if row else None

    def list_by_ids(self, course_ids: Sequence[str]) -> Sequence[Course]:
        if not course_ids:
            return []
        return self._select_many(f"WHERE course_id IN ({placeholders(course_ids)})", tuple(course_ids))

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
        where: list[str] = []
        params: list[Any] = []

        for column, values in (
            ("author_id", list(author_ids)),
            ("organization_id", list(organization_ids)),
            ("visibility", [v.value for v in visibilities]),
            ("tier", [t.value for t in tiers]),
        ):
            if values:
                where.append(f"{column} IN ({placeholders(values)})")
                params.extend(values)

        if verification_status is not None:
            where.append("verification_status=%s")
            params.append(verification_status.value)
        if tags_any:
            where.append("JSON_OVERLAPS(tags, CAST(%s AS JSON))")
            params.append(to_json(list(tags_any)))
        if topics_any:
            where.append("JSON_OVERLAPS(topics, CAST(%s AS JSON))")
            params.append(to_json(list(topics_any)))
        if channels_any:
            channels = list(channels_any)
            where.append(f"(JSON_OVERLAPS(target_channel_ids, CAST(%s AS JSON)) OR channel_id IN ({placeholders(channels)}))")
            params.append(to_json(channels))
            params.extend(channels)

        sql = ("WHERE " + " AND ".join(where)) if where else ""
        if limit is not None:
            sql += " LIMIT %s"
            params.append(int(limit))
        return self._select_many(sql, tuple(params))

    def create(self, course: Course) -> str:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                INSERT INTO courses({COURSE_COLUMNS})
                VALUES({placeholders(range(31))})
                """,
                (
                    course.course_id,
                    course.author_type.value,
                    course.author_id,
                    course.author_name,
                    course.author_avatar_url,
                    course.organization_id,
                    course.channel_id,
                    to_json(course.target_channel_ids),
                    course.category_id,
                    course.visibility.value,
                    to_json(course.title),
                    to_json(course.description),
                    course.thumbnail_url,
                    course.duration,
                    course.xp_reward,
                    to_json([card_to_dict(s) for s in course.steps]),
                    to_json(course.tags),
                    to_json(course.topics),
                    course.likes_count,
                    course.popularity_score,
                    course.priority,
                    int(course.is_new),
                    int(course.is_featured),
                    course.price,
                    course.assignment_type.value if course.assignment_type else None,
                    to_json(course.target_departments),
                    course.tier.value,
                    course.verification_status.value,
                    course.quality_score,
                    course.flag_count,
                    course.created_at,
                ),
            )
            return course.course_id

    def update(self, course_id: str, fields: dict) -> bool:
        data = {k: _column_value(k, v) for k, v in fields.items() if k in EDITABLE_FIELDS}
        if not data:
            return False
        assignments = ", ".join(f"{k}=%s" for k in data)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE courses SET {assignments} WHERE course_id=%s", (*data.values(), course_id))
            return cur.rowcount > 0

    def delete(self, course_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM courses WHERE course_id=%s", (course_id,))
            return cur.rowcount > 0

    def apply_review(self, course_id: str, outcome: ReviewOutcome, *, flag_threshold: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            # single-table UPDATE assigns left to right: the CASE sees the new flag_count
            cur.execute(
                """
                UPDATE courses
                SET quality_score=%s,
                    flag_count = flag_count + %s,
                    verification_status = CASE
                        WHEN %s > 0 AND flag_count >= %s THEN %s
                        ELSE verification_status
                    END
                WHERE course_id=%s
                """,
                (
                    int(outcome.rating),
                    int(outcome.flag_delta),
                    int(outcome.flag_delta),
                    int(flag_threshold),
                    VerificationStatus.UNDER_REVIEW.value,
                    course_id,
                ),
            )
            if cur.rowcount == 0:
                return False
            if outcome.author_id:
                cur.execute(
                    """
                    UPDATE users
                    SET reputation_points = reputation_points + %s, xp = xp + %s
                    WHERE user_id=%s
                    """,
                    (int(outcome.reputation_delta), int(outcome.xp_delta), outcome.author_id),
                )
            return True
