from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_json, to_json
from ..users.mysql_user_repository import update_json_column
from .model import CareerPath
from .repository import CareerPathRepository

PATH_COLUMNS = "path_id, organization_id, title, description, department, target_role, course_ids, created_at, updated_at"
EDITABLE_FIELDS = {"title", "description", "department", "target_role", "course_ids"}


def row_to_path(row: Dict[str, Any]) -> CareerPath:
    return CareerPath(
        path_id=str(row["path_id"]),
        organization_id=str(row["organization_id"]),
        title=row.get("title") or "",
        description=row.get("description") or "",
        department=row.get("department"),
        target_role=row.get("target_role") or "",
        course_ids=from_json(row.get("course_ids"), []),
        created_at=int(row.get("created_at") or 0),
        updated_at=int(row.get("updated_at") or 0),
    )


class MySQLCareerPathRepository(CareerPathRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, path_id: str) -> Optional[CareerPath]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {PATH_COLUMNS} FROM career_paths WHERE path_id=%s", (path_id,))
            row = fetchone(cur)
            return row_to_path(row) if row else None

    def list_by_organization(self, organization_id: str) -> Sequence[CareerPath]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {PATH_COLUMNS} FROM career_paths WHERE organization_id=%s ORDER BY updated_at DESC",
                (organization_id,),
            )
            return [row_to_path(r) for r in fetchall(cur)]

    def find_by_department(self, organization_id: str, department: str) -> Optional[CareerPath]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {PATH_COLUMNS} FROM career_paths WHERE organization_id=%s AND department=%s LIMIT 1",
                (organization_id, department),
            )
            row = fetchone(cur)
            return row_to_path(row) if row else None

    def create(self, path: CareerPath) -> str:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO career_paths({PATH_COLUMNS}) VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)",
                (
                    path.path_id,
                    path.organization_id,
                    path.title,
                    path.description,
                    path.department,
                    path.target_role,
                    to_json(path.course_ids),
                    path.created_at,
                    path.updated_at,
                ),
            )
            return path.path_id

    def update(self, path_id: str, fields: dict, *, updated_at: int) -> bool:
        data = {k: (to_json(v) if k == "course_ids" else v) for k, v in fields.items() if k in EDITABLE_FIELDS}
        data["updated_at"] = updated_at
        assignments = ", ".join(f"{k}=%s" for k in data)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE career_paths SET {assignments} WHERE path_id=%s", (*data.values(), path_id))
            return cur.rowcount > 0

    def update_course_ids(self, path_id: str, fn: Callable[[List[str]], List[str]], *, updated_at: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            found = update_json_column(
                cur, table="career_paths", key_column="path_id", key=path_id, column="course_ids", fn=fn, default=[]
            )
            if found:
                cur.execute("UPDATE career_paths SET updated_at=%s WHERE path_id=%s", (updated_at, path_id))
            return found

    def delete(self, path_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM career_paths WHERE path_id=%s", (path_id,))
            return cur.rowcount > 0
