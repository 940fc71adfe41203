from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Sequence

from ..core.enums import CreatorLevel, PageRole, ProgressStatus, UserRole, UserStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_json, placeholders, to_json
from .model import CourseProgress, SkillMetric, User, UserSkillProfile
from .repository import UserRepository

USER_COLUMNS = """
    user_id, email, username, name, password_hash, phone_number, avatar, bio, role, status,
    creator_level, xp, reputation_points, department, role_title, position_id, assigned_path_id,
    current_organization_id, is_private, show_in_search, join_date, followers_count, following_count,
    following_users, following_pages, followed_tags, followers, joined_page_ids, managed_page_ids,
    channel_subscriptions, page_roles, organization_history, completed_courses, started_courses,
    saved_courses, progress_map
"""

# Columns a profile edit may touch; everything else has a dedicated method.
PROFILE_FIELDS = {"name", "avatar", "bio", "email", "phone_number", "department", "role_title", "is_private", "show_in_search"}


def _progress_from_dict(course_id: str, d: dict) -> CourseProgress:
    return CourseProgress(
        course_id=str(d.get("course_id") or course_id),
        status=ProgressStatus(d.get("status", ProgressStatus.IN_PROGRESS.value)),
        current_card_index=int(d.get("current_card_index") or 0),
        total_cards=int(d.get("total_cards") or 0),
        last_accessed_at=int(d.get("last_accessed_at") or 0),
        completed_at=d.get("completed_at"),
    )


def _progress_to_dict(p: CourseProgress) -> dict:
    return {
        "course_id": p.course_id,
        "status": p.status.value,
        "current_card_index": p.current_card_index,
        "total_cards": p.total_cards,
        "last_accessed_at": p.last_accessed_at,
        "completed_at": p.completed_at,
    }


def row_to_user(row: Dict[str, Any]) -> User:
    progress = from_json(row.get("progress_map"), {}) or {}
    page_roles = from_json(row.get("page_roles"), {}) or {}
    return User(
        user_id=str(row["user_id"]),
        username=row["username"],
        name=row["name"],
        role=UserRole(row.get("role") or UserRole.USER.value),
        status=UserStatus(row.get("status") or UserStatus.ACTIVE.value),
        email=row.get("email") or "",
        avatar=row.get("avatar") or "",
        password_hash=row.get("password_hash"),
        phone_number=row.get("phone_number"),
        bio=row.get("bio"),
        creator_level=CreatorLevel(row.get("creator_level") or CreatorLevel.NOVICE.value),
        xp=int(row.get("xp") or 0),
        reputation_points=int(row.get("reputation_points") or 0),
        department=row.get("department"),
        role_title=row.get("role_title"),
        position_id=row.get("position_id"),
        assigned_path_id=row.get("assigned_path_id"),
        current_organization_id=row.get("current_organization_id"),
        is_private=bool(row.get("is_private")),
        show_in_search=bool(row.get("show_in_search", True)),
        join_date=int(row.get("join_date") or 0),
        following_users=from_json(row.get("following_users"), []),
        following_pages=from_json(row.get("following_pages"), []),
        followed_tags=from_json(row.get("followed_tags"), []),
        followers=from_json(row.get("followers"), []),
        followers_count=int(row.get("followers_count") or 0),
        following_count=int(row.get("following_count") or 0),
        joined_page_ids=from_json(row.get("joined_page_ids"), []),
        managed_page_ids=from_json(row.get("managed_page_ids"), []),
        channel_subscriptions=from_json(row.get("channel_subscriptions"), []),
        page_roles={k: PageRole(v) for k, v in page_roles.items()},
        organization_history=from_json(row.get("organization_history"), []),
        completed_courses=from_json(row.get("completed_courses"), []),
        started_courses=from_json(row.get("started_courses"), []),
        saved_courses=from_json(row.get("saved_courses"), []),
        progress_map={k: _progress_from_dict(k, v) for k, v in progress.items()},
    )


def array_union(values: Optional[List[Any]], *items: Any) -> List[Any]:
    out = list(values or [])
    for item in items:
        if item not in out:
            out.append(item)
    return out


def array_remove(values: Optional[List[Any]], *items: Any) -> List[Any]:
    return [v for v in (values or []) if v not in items]


def update_json_column(cur, *, table: str, key_column: str, key: str, column: str, fn: Callable[[Any], Any], default: Any) -> bool:
    """Read-modify-write one JSON column under a row lock (caller owns the transaction)."""
    cur.execute(f"SELECT {column} FROM {table} WHERE {key_column}=%s FOR UPDATE", (key,))
    row = fetchone(cur)
    if not row:
        return False
    new_value = fn(from_json(row.get(column), default))
    cur.execute(f"UPDATE {table} SET {column}=%s WHERE {key_column}=%s", (to_json(new_value), key))
    return True


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _select_one(self, where: str, params: tuple) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {USER_COLUMNS} FROM users WHERE {where}", params)
            row = fetchone(cur)
            return row_to_user(row) if row else None

    def _select_many(self, sql_tail: str, params: tuple) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {USER_COLUMNS} FROM users {sql_tail}", params)
            return [row_to_user(r) for r in fetchall(cur)]

    def get_by_id(self, user_id: str) -> Optional[User]:
        return self._select_one("user_id=%s", (user_id,))

    def get_by_username(self, username: str) -> Optional[User]:
        return self._select_one("username=%s", (username,))

    def list_by_ids(self, user_ids: Sequence[str]) -> Sequence[User]:
        if not user_ids:
            return []
        return self._select_many(f"WHERE user_id IN ({placeholders(user_ids)})", tuple(user_ids))

    def list_searchable(self, *, limit: int) -> Sequence[User]:
        return self._select_many("WHERE show_in_search=1 LIMIT %s", (int(limit),))

    def list_by_organization(self, organization_id: str) -> Sequence[User]:
        return self._select_many(
            "WHERE JSON_CONTAINS(joined_page_ids, JSON_QUOTE(%s))",
            (organization_id,),
        )

    def list_by_department(self, *, organization_id: str, department: Optional[str]) -> Sequence[User]:
        if department is None:
            return self.list_by_organization(organization_id)
        return self._select_many(
            "WHERE current_organization_id=%s AND department=%s",
            (organization_id, department),
        )

    def list_page(
        self,
        *,
        after: Optional[tuple],
        limit: int,
        search_term: str = "",
        search_field: str = "name",
        status: Optional[UserStatus] = None,
        roles: Sequence[str] = (),
    ) -> Sequence[User]:
        where: list[str] = []
        params: list[Any] = []

        if search_term:
            column = "phone_number" if search_field == "phone_number" else "name"
            where.append(f"{column} LIKE %s")
            params.append(search_term.replace("%", r"\%").replace("_", r"\_") + "%")
            if after:
                where.append(f"({column}, user_id) > (%s, %s)")
                params.extend([after[0], after[1]])
            order = f"ORDER BY {column} ASC, user_id ASC"
        else:
            if status is not None:
                where.append("status=%s")
                params.append(status.value)
            if roles:
                where.append(f"role IN ({placeholders(roles)})")
                params.extend(roles)
            if after:
                where.append("(join_date, user_id) < (%s, %s)")
                params.extend([int(after[0]), after[1]])
            order = "ORDER BY join_date DESC, user_id DESC"

        clause = ("WHERE " + " AND ".join(where)) if where else ""
        params.append(int(limit))
        return self._select_many(f"{clause} {order} LIMIT %s", tuple(params))

    def create_user(self, user: User) -> str:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO users(
                    user_id, email, username, name, password_hash, phone_number, avatar, role, status,
                    creator_level, department, role_title, is_private, show_in_search, join_date,
                    following_users, following_pages, followed_tags, followers, joined_page_ids,
                    managed_page_ids, channel_subscriptions, page_roles, organization_history,
                    completed_courses, started_courses, saved_courses, progress_map
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,
                       '[]','[]','[]','[]','[]','[]','[]','{}','[]','[]','[]','[]','{}')
                """,
                (
                    user.user_id,
                    user.email,
                    user.username,
                    user.name,
                    user.password_hash,
                    user.phone_number,
                    user.avatar,
                    user.role.value,
                    user.status.value,
                    user.creator_level.value,
                    user.department,
                    user.role_title,
                    int(user.is_private),
                    int(user.show_in_search),
                    user.join_date,
                ),
            )
            return user.user_id

    def update_profile(self, user_id: str, fields: dict) -> bool:
        data = {k: v for k, v in fields.items() if k in PROFILE_FIELDS}
        if not data:
            return False
        assignments = ", ".join(f"{k}=%s" for k in data)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE users SET {assignments} WHERE user_id=%s", (*data.values(), user_id))
            return cur.rowcount > 0

    def set_status(self, user_id: str, status: UserStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET status=%s WHERE user_id=%s", (status.value, user_id))
            return cur.rowcount > 0

    def delete_by_id(self, user_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM user_skills WHERE user_id=%s", (user_id,))
            cur.execute("DELETE FROM users WHERE user_id=%s", (user_id,))
            return cur.rowcount > 0

    def add_xp(self, user_id: str, amount: int) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET xp = xp + %s WHERE user_id=%s", (int(amount), user_id))

    def set_current_organization(self, user_id: str, organization_id: Optional[str]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE users SET current_organization_id=%s WHERE user_id=%s",
                (organization_id, user_id),
            )
            return cur.rowcount > 0

    def _update_list(self, user_id: str, column: str, fn: Callable[[Any], Any]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            return update_json_column(
                cur, table="users", key_column="user_id", key=user_id, column=column, fn=fn, default=[]
            )

    def set_saved_course(self, user_id: str, course_id: str, *, saved: bool) -> bool:
        op = array_union if saved else array_remove
        return self._update_list(user_id, "saved_courses", lambda v: op(v, course_id))

    def set_followed_tag(self, user_id: str, tag: str, *, following: bool) -> bool:
        op = array_union if following else array_remove
        return self._update_list(user_id, "followed_tags", lambda v: op(v, tag))

    def set_channel_subscriptions(self, user_id: str, channel_ids: Sequence[str]) -> bool:
        return self._update_list(user_id, "channel_subscriptions", lambda _: list(channel_ids))

    def set_assigned_path(self, user_id: str, path_id: Optional[str]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET assigned_path_id=%s WHERE user_id=%s", (path_id, user_id))
            return cur.rowcount > 0

    def save_progress(self, user_id: str, progress: CourseProgress) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            update_json_column(
                cur,
                table="users",
                key_column="user_id",
                key=user_id,
                column="progress_map",
                fn=lambda m: {**(m or {}), progress.course_id: _progress_to_dict(progress)},
                default={},
            )
            update_json_column(
                cur,
                table="users",
                key_column="user_id",
                key=user_id,
                column="started_courses",
                fn=lambda v: array_union(v, progress.course_id),
                default=[],
            )

    def complete_course(self, user_id: str, progress: CourseProgress, *, earned_xp: int) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            update_json_column(
                cur,
                table="users",
                key_column="user_id",
                key=user_id,
                column="progress_map",
                fn=lambda m: {**(m or {}), progress.course_id: _progress_to_dict(progress)},
                default={},
            )
            update_json_column(
                cur,
                table="users",
                key_column="user_id",
                key=user_id,
                column="completed_courses",
                fn=lambda v: array_union(v, progress.course_id),
                default=[],
            )
            cur.execute("UPDATE users SET xp = xp + %s WHERE user_id=%s", (int(earned_xp), user_id))

    def get_skill_profile(self, user_id: str) -> Optional[UserSkillProfile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT topic, level, last_tested_at, failure_count, success_count
                FROM user_skills
                WHERE user_id=%s
                """,
                (user_id,),
            )
            rows = fetchall(cur)
            if not rows:
                return None
            return UserSkillProfile(
                user_id=user_id,
                skills={
                    r["topic"]: SkillMetric(
                        level=int(r["level"]),
                        last_tested_at=int(r["last_tested_at"]),
                        failure_count=int(r["failure_count"]),
                        success_count=int(r["success_count"]),
                    )
                    for r in rows
                },
            )

    def update_skill(
        self, user_id: str, topic: str, fn: Callable[[SkillMetric], SkillMetric], *, initial: SkillMetric
    ) -> SkillMetric:
        with db_cursor(self._conn_factory) as (_, cur):
            # seed the row so concurrent answers on a new topic queue on the same lock
            cur.execute(
                """
                INSERT IGNORE INTO user_skills(user_id, topic, level, last_tested_at, failure_count, success_count)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (user_id, topic, initial.level, initial.last_tested_at, initial.failure_count, initial.success_count),
            )
            cur.execute(
                """
                SELECT level, last_tested_at, failure_count, success_count
                FROM user_skills WHERE user_id=%s AND topic=%s FOR UPDATE
                """,
                (user_id, topic),
            )
            row = fetchone(cur)
            metric = fn(
                SkillMetric(
                    level=int(row["level"]),
                    last_tested_at=int(row["last_tested_at"]),
                    failure_count=int(row["failure_count"]),
                    success_count=int(row["success_count"]),
                )
            )
            cur.execute(
                """
                UPDATE user_skills SET level=%s, last_tested_at=%s, failure_count=%s, success_count=%s
                WHERE user_id=%s AND topic=%s
                """,
                (metric.level, metric.last_tested_at, metric.failure_count, metric.success_count, user_id, topic),
            )
            return metric
