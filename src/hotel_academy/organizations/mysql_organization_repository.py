from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from ..core.enums import MembershipStatus, OrganizationStatus, PageRole, RequestStatus
from ..core.exceptions import NotFoundError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_json, placeholders, to_json
from ..permissions.model import RolePermissions
from ..users.mysql_user_repository import array_union, update_json_column
from .model import (
    Channel,
    JoinRequest,
    MemberJoin,
    Membership,
    OrgDefinitions,
    Organization,
    OrganizationSettings,
    Position,
    channel_from_dict,
    channel_to_dict,
    definitions_from_dict,
    definitions_to_dict,
)
from .repository import JoinRequestRepository, MembershipRepository, OrganizationRepository, PositionRepository

ORG_COLUMNS = """
    organization_id, name, code, type, sector, logo_url, location, description, owner_id,
    admins, followers, members, channels, followers_count, member_count, status,
    deletion_reason, settings, definitions, created_at
"""

DETAIL_FIELDS = {"name", "logo_url", "location", "description", "sector", "type"}


def row_to_organization(row: Dict[str, Any]) -> Organization:
    settings = from_json(row.get("settings"), {}) or {}
    return Organization(
        organization_id=str(row["organization_id"]),
        name=row["name"],
        owner_id=str(row["owner_id"]),
        sector=row.get("sector") or "tourism",
        code=row.get("code"),
        type=row.get("type") or "PUBLIC",
        logo_url=row.get("logo_url") or "",
        location=row.get("location") or "Global",
        description=row.get("description") or "",
        admins=from_json(row.get("admins"), []),
        followers=from_json(row.get("followers"), []),
        members=from_json(row.get("members"), []),
        channels=[channel_from_dict(c) for c in from_json(row.get("channels"), [])],
        followers_count=int(row.get("followers_count") or 0),
        member_count=int(row.get("member_count") or 0),
        status=OrganizationStatus(row.get("status") or OrganizationStatus.ACTIVE.value),
        deletion_reason=row.get("deletion_reason"),
        settings=OrganizationSettings(
            allow_staff_content_creation=bool(settings.get("allow_staff_content_creation")),
            primary_color=settings.get("primary_color") or "#0B1E3B",
        ),
        definitions=definitions_from_dict(from_json(row.get("definitions"))),
        created_at=int(row.get("created_at") or 0),
    )


def row_to_membership(row: Dict[str, Any]) -> Membership:
    return Membership(
        membership_id=row["membership_id"],
        user_id=str(row["user_id"]),
        organization_id=str(row["organization_id"]),
        role=PageRole(row.get("role") or PageRole.MEMBER.value),
        department=row.get("department"),
        status=MembershipStatus(row.get("status") or MembershipStatus.ACTIVE.value),
        joined_at=int(row.get("joined_at") or 0),
    )


def row_to_request(row: Dict[str, Any]) -> JoinRequest:
    return JoinRequest(
        request_id=int(row["request_id"]),
        user_id=str(row["user_id"]),
        organization_id=str(row["organization_id"]),
        status=RequestStatus(row["status"]),
        created_at=int(row.get("created_at") or 0),
        type=row.get("type") or "REQUEST_TO_JOIN",
        target_department=row.get("target_department"),
        requested_role_title=row.get("requested_role_title"),
        position_id=row.get("position_id"),
    )


def row_to_position(row: Dict[str, Any]) -> Position:
    return Position(
        position_id=str(row["position_id"]),
        organization_id=str(row["organization_id"]),
        title=row["title"],
        department_id=row["department_id"],
        parent_id=row.get("parent_id"),
        occupant_id=row.get("occupant_id"),
        level=int(row.get("level") or 0),
        permissions=RolePermissions.from_dict(from_json(row.get("permissions"))),
    )


def _insert_membership(cur, m: Membership) -> None:
    cur.execute(
        """
        INSERT INTO memberships(membership_id, user_id, organization_id, role, department, status, joined_at)
        VALUES(%s,%s,%s,%s,%s,%s,%s)
        ON DUPLICATE KEY UPDATE role=VALUES(role), department=VALUES(department), status=VALUES(status)
        """,
        (m.membership_id, m.user_id, m.organization_id, m.role.value, m.department, m.status.value, m.joined_at),
    )


def _join_user_to_org(cur, *, user_id: str, organization_id: str, role: PageRole, channel_ids: Sequence[str]) -> None:
    """User-side half of joining: switch into the org and subscribe to the given channels."""
    cur.execute("UPDATE users SET current_organization_id=%s WHERE user_id=%s", (organization_id, user_id))
    for column, fn, default in (
        ("joined_page_ids", lambda v: array_union(v, organization_id), []),
        ("organization_history", lambda v: array_union(v, organization_id), []),
        ("channel_subscriptions", lambda v: array_union(v, *channel_ids), []),
        ("page_roles", lambda m: {**(m or {}), organization_id: role.value}, {}),
    ):
        update_json_column(cur, table="users", key_column="user_id", key=user_id, column=column, fn=fn, default=default)


class MySQLOrganizationRepository(OrganizationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _select_many(self, sql_tail: str, params: tuple) -> Sequence[Organization]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {ORG_COLUMNS} FROM organizations {sql_tail}", params)
            return [row_to_organization(r) for r in fetchall(cur)]

    def get_by_id(self, organization_id: str) -> Optional[Organization]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {ORG_COLUMNS} FROM organizations WHERE organization_id=%s", (organization_id,))
            row = fetchone(cur)
            return row_to_organization(row) if row else None

    def list_by_ids(self, organization_ids: Sequence[str]) -> Sequence[Organization]:
        if not organization_ids:
            return []
        return self._select_many(
            f"WHERE organization_id IN ({placeholders(organization_ids)})", tuple(organization_ids)
        )

    def list_recent(self, *, limit: int) -> Sequence[Organization]:
        return self._select_many("ORDER BY created_at DESC LIMIT %s", (int(limit),))

    def list_owned_by(self, user_id: str) -> Sequence[Organization]:
        return self._select_many("WHERE owner_id=%s", (user_id,))

    def list_managed_by(self, user_id: str) -> Sequence[Organization]:
        return self._select_many("WHERE JSON_CONTAINS(admins, JSON_QUOTE(%s))", (user_id,))

    def create_organization(self, org: Organization, *, owner_membership: Membership) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO organizations(
                    organization_id, name, code, type, sector, logo_url, location, description, owner_id,
                    admins, followers, members, channels, followers_count, member_count, status,
                    settings, definitions, created_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    org.organization_id,
                    org.name,
                    org.code,
                    org.type,
                    org.sector,
                    org.logo_url,
                    org.location,
                    org.description,
                    org.owner_id,
                    to_json(org.admins),
                    to_json(org.followers),
                    to_json(org.members),
                    to_json([channel_to_dict(c) for c in org.channels]),
                    org.followers_count,
                    org.member_count,
                    org.status.value,
                    to_json(
                        {
                            "allow_staff_content_creation": org.settings.allow_staff_content_creation,
                            "primary_color": org.settings.primary_color,
                        }
                    ),
                    to_json(definitions_to_dict(org.definitions)),
                    org.created_at,
                ),
            )
            _insert_membership(cur, owner_membership)
            _join_user_to_org(
                cur,
                user_id=org.owner_id,
                organization_id=org.organization_id,
                role=owner_membership.role,
                channel_ids=org.mandatory_channel_ids,
            )
            update_json_column(
                cur,
                table="users",
                key_column="user_id",
                key=org.owner_id,
                column="managed_page_ids",
                fn=lambda v: array_union(v, org.organization_id),
                default=[],
            )

    def update_details(self, organization_id: str, fields: dict) -> bool:
        data = {k: v for k, v in fields.items() if k in DETAIL_FIELDS}
        settings = fields.get("settings")
        if not data and settings is None:
            return False
        assignments = [f"{k}=%s" for k in data]
        params: list[Any] = list(data.values())
        if settings is not None:
            assignments.append("settings=%s")
            params.append(to_json(settings))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE organizations SET {', '.join(assignments)} WHERE organization_id=%s",
                (*params, organization_id),
            )
            return cur.rowcount > 0

    def _update_channels(self, organization_id: str, fn) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            return update_json_column(
                cur,
                table="organizations",
                key_column="organization_id",
                key=organization_id,
                column="channels",
                fn=fn,
                default=[],
            )

    def add_channel(self, organization_id: str, channel: Channel) -> bool:
        return self._update_channels(organization_id, lambda cs: list(cs or []) + [channel_to_dict(channel)])

    def remove_channel(self, organization_id: str, channel_id: str) -> bool:
        return self._update_channels(
            organization_id, lambda cs: [c for c in (cs or []) if str(c.get("id")) != channel_id]
        )

    def save_definitions(self, organization_id: str, definitions: OrgDefinitions) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE organizations SET definitions=%s WHERE organization_id=%s",
                (to_json(definitions_to_dict(definitions)), organization_id),
            )
            return cur.rowcount > 0

    def request_deletion(self, organization_id: str, reason: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE organizations SET status=%s, deletion_reason=%s WHERE organization_id=%s",
                (OrganizationStatus.PENDING_DELETION.value, reason, organization_id),
            )
            return cur.rowcount > 0


class MySQLMembershipRepository(MembershipRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, user_id: str, organization_id: str) -> Optional[Membership]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT * FROM memberships WHERE membership_id=%s",
                (Membership.make_id(user_id, organization_id),),
            )
            row = fetchone(cur)
            return row_to_membership(row) if row else None

    def list_for_user(self, user_id: str) -> Sequence[Membership]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT * FROM memberships WHERE user_id=%s ORDER BY joined_at", (user_id,))
            return [row_to_membership(r) for r in fetchall(cur)]

    def update_role(self, user_id: str, organization_id: str, role: PageRole) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE memberships SET role=%s WHERE membership_id=%s",
                (role.value, Membership.make_id(user_id, organization_id)),
            )
            if cur.rowcount == 0:
                return False
            update_json_column(
                cur,
                table="users",
                key_column="user_id",
                key=user_id,
                column="page_roles",
                fn=lambda m: {**(m or {}), organization_id: role.value},
                default={},
            )
            return True

    def apply_member_join(self, join: MemberJoin) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            # lock the org row first so concurrent joins serialize on the counter
            cur.execute(
                "SELECT organization_id FROM organizations WHERE organization_id=%s FOR UPDATE",
                (join.organization_id,),
            )
            if not fetchone(cur):
                raise NotFoundError("Organization not found")

            _insert_membership(
                cur,
                Membership(
                    membership_id=Membership.make_id(join.user_id, join.organization_id),
                    user_id=join.user_id,
                    organization_id=join.organization_id,
                    role=join.role,
                    department=join.department,
                    joined_at=join.joined_at,
                ),
            )
            _join_user_to_org(
                cur,
                user_id=join.user_id,
                organization_id=join.organization_id,
                role=join.role,
                channel_ids=join.mandatory_channel_ids,
            )
            if join.department or join.role_title or join.position_id:
                cur.execute(
                    """
                    UPDATE users
                    SET department=COALESCE(%s, department),
                        role_title=COALESCE(%s, role_title),
                        position_id=COALESCE(%s, position_id)
                    WHERE user_id=%s
                    """,
                    (join.department, join.role_title, join.position_id, join.user_id),
                )

            cur.execute(
                "UPDATE organizations SET member_count = member_count + 1 WHERE organization_id=%s",
                (join.organization_id,),
            )
            update_json_column(
                cur,
                table="organizations",
                key_column="organization_id",
                key=join.organization_id,
                column="members",
                fn=lambda v: array_union(v, join.user_id),
                default=[],
            )

            if join.request_id is not None:
                cur.execute(
                    "UPDATE join_requests SET status=%s WHERE request_id=%s",
                    (RequestStatus.APPROVED.value, join.request_id),
                )
            if join.notification_id is not None:
                cur.execute(
                    "DELETE FROM notifications WHERE notification_id=%s AND user_id=%s",
                    (join.notification_id, join.user_id),
                )


class MySQLJoinRequestRepository(JoinRequestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, request_id: int) -> Optional[JoinRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT * FROM join_requests WHERE request_id=%s", (int(request_id),))
            row = fetchone(cur)
            return row_to_request(row) if row else None

    def find_pending(self, user_id: str, organization_id: str) -> Optional[JoinRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT * FROM join_requests
                WHERE user_id=%s AND organization_id=%s AND status=%s
                LIMIT 1
                """,
                (user_id, organization_id, RequestStatus.PENDING.value),
            )
            row = fetchone(cur)
            return row_to_request(row) if row else None

    def create(self, request: JoinRequest) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO join_requests(
                    type, user_id, organization_id, status, target_department,
                    requested_role_title, position_id, created_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    request.type,
                    request.user_id,
                    request.organization_id,
                    request.status.value,
                    request.target_department,
                    request.requested_role_title,
                    request.position_id,
                    request.created_at,
                ),
            )
            return int(cur.lastrowid)

    def list_pending_for_user(self, user_id: str) -> Sequence[JoinRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT * FROM join_requests WHERE user_id=%s AND status=%s ORDER BY created_at DESC",
                (user_id, RequestStatus.PENDING.value),
            )
            return [row_to_request(r) for r in fetchall(cur)]

    def list_pending_for_org(self, organization_id: str, *, department: Optional[str] = None) -> Sequence[JoinRequest]:
        sql = "SELECT * FROM join_requests WHERE organization_id=%s AND status=%s"
        params: list[Any] = [organization_id, RequestStatus.PENDING.value]
        if department:
            sql += " AND target_department=%s"
            params.append(department)
        sql += " ORDER BY created_at"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [row_to_request(r) for r in fetchall(cur)]

    def set_status(self, request_id: int, status: RequestStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE join_requests SET status=%s WHERE request_id=%s", (status.value, int(request_id)))
            return cur.rowcount > 0

    def delete(self, request_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM join_requests WHERE request_id=%s", (int(request_id),))
            return cur.rowcount > 0


class MySQLPositionRepository(PositionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_by_organization(self, organization_id: str) -> Sequence[Position]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT * FROM positions WHERE organization_id=%s ORDER BY level, title", (organization_id,))
            return [row_to_position(r) for r in fetchall(cur)]

    def create(self, position: Position) -> str:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO positions(position_id, organization_id, title, department_id, parent_id, occupant_id, level, permissions)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    position.position_id,
                    position.organization_id,
                    position.title,
                    position.department_id,
                    position.parent_id,
                    position.occupant_id,
                    position.level,
                    to_json(position.permissions.to_dict() if position.permissions else None),
                ),
            )
            return position.position_id

    def delete(self, position_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM positions WHERE position_id=%s", (position_id,))
            return cur.rowcount > 0

    def update_permissions(self, position_id: str, permissions: RolePermissions) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE positions SET permissions=%s WHERE position_id=%s",
                (to_json(permissions.to_dict()), position_id),
            )
            return cur.rowcount > 0
