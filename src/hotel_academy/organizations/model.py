from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from ..core.enums import MembershipStatus, OrganizationStatus, PageRole, RequestStatus
from ..permissions.model import RolePermissions


@dataclass(frozen=True)
class Channel:
    """Named content-distribution bucket inside an organization."""

    channel_id: str
    name: str
    description: str = ""
    is_private: bool = False
    is_mandatory: bool = False
    created_at: int = 0
    manager_ids: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class OrgDepartmentDefinition:
    department_id: str
    name: str
    color: str = "#0B1E3B"


@dataclass(frozen=True)
class PositionPrototype:
    prototype_id: str
    title: str
    department_id: str
    default_level: int = 0
    is_managerial: bool = False
    permissions: Optional[RolePermissions] = None


@dataclass(frozen=True)
class OrgDefinitions:
    departments: List[OrgDepartmentDefinition] = field(default_factory=list)
    position_prototypes: List[PositionPrototype] = field(default_factory=list)


@dataclass(frozen=True)
class OrganizationSettings:
    allow_staff_content_creation: bool = False
    primary_color: str = "#0B1E3B"


@dataclass(frozen=True)
class Organization:
    organization_id: str
    name: str
    owner_id: str
    sector: str = "tourism"
    code: Optional[str] = None
    type: str = "PUBLIC"
    logo_url: str = ""
    location: str = "Global"
    description: str = ""
    admins: List[str] = field(default_factory=list)
    followers: List[str] = field(default_factory=list)
    members: List[str] = field(default_factory=list)
    channels: List[Channel] = field(default_factory=list)
    followers_count: int = 0
    member_count: int = 0
    status: OrganizationStatus = OrganizationStatus.ACTIVE
    deletion_reason: Optional[str] = None
    settings: OrganizationSettings = field(default_factory=OrganizationSettings)
    definitions: Optional[OrgDefinitions] = None
    created_at: int = 0

    @property
    def mandatory_channel_ids(self) -> List[str]:
        return [c.channel_id for c in self.channels if c.is_mandatory]

    def channel(self, channel_id: str) -> Optional[Channel]:
        return next((c for c in self.channels if c.channel_id == channel_id), None)


@dataclass(frozen=True)
class Position:
    position_id: str
    organization_id: str
    title: str
    department_id: str
    parent_id: Optional[str] = None
    occupant_id: Optional[str] = None
    level: int = 0
    permissions: Optional[RolePermissions] = None


@dataclass(frozen=True)
class Membership:
    """Join record linking a user to an organization with a role and department."""

    membership_id: str
    user_id: str
    organization_id: str
    role: PageRole = PageRole.MEMBER
    department: Optional[str] = None
    status: MembershipStatus = MembershipStatus.ACTIVE
    joined_at: int = 0

    @staticmethod
    def make_id(user_id: str, organization_id: str) -> str:
        return f"{user_id}_{organization_id}"


@dataclass(frozen=True)
class JoinRequest:
    request_id: int
    user_id: str
    organization_id: str
    status: RequestStatus
    created_at: int
    type: str = "REQUEST_TO_JOIN"
    target_department: Optional[str] = None
    requested_role_title: Optional[str] = None
    position_id: Optional[str] = None


@dataclass(frozen=True)
class MemberJoin:
    """Everything one atomic join (approval or invite acceptance) writes."""

    user_id: str
    organization_id: str
    role: PageRole
    joined_at: int
    mandatory_channel_ids: List[str]
    department: Optional[str] = None
    role_title: Optional[str] = None
    position_id: Optional[str] = None
    request_id: Optional[int] = None
    notification_id: Optional[int] = None


def channel_to_dict(c: Channel) -> dict:
    return {
        "id": c.channel_id,
        "name": c.name,
        "description": c.description,
        "is_private": c.is_private,
        "is_mandatory": c.is_mandatory,
        "created_at": c.created_at,
        "manager_ids": list(c.manager_ids),
    }


def channel_from_dict(d: dict) -> Channel:
    return Channel(
        channel_id=str(d["id"]),
        name=d.get("name", ""),
        description=d.get("description") or "",
        is_private=bool(d.get("is_private")),
        is_mandatory=bool(d.get("is_mandatory")),
        created_at=int(d.get("created_at") or 0),
        manager_ids=list(d.get("manager_ids") or []),
    )


def definitions_to_dict(defs: Optional[OrgDefinitions]) -> Optional[dict]:
    if defs is None:
        return None
    return {
        "departments": [{"id": d.department_id, "name": d.name, "color": d.color} for d in defs.departments],
        "position_prototypes": [
            {
                "id": p.prototype_id,
                "title": p.title,
                "department_id": p.department_id,
                "default_level": p.default_level,
                "is_managerial": p.is_managerial,
                "permissions": p.permissions.to_dict() if p.permissions else None,
            }
            for p in defs.position_prototypes
        ],
    }


def definitions_from_dict(d: Optional[dict]) -> Optional[OrgDefinitions]:
    if not d:
        return None
    return OrgDefinitions(
        departments=[
            OrgDepartmentDefinition(department_id=str(x["id"]), name=x.get("name", ""), color=x.get("color") or "#0B1E3B")
            for x in d.get("departments") or []
        ],
        position_prototypes=[
            PositionPrototype(
                prototype_id=str(x["id"]),
                title=x.get("title", ""),
                department_id=str(x.get("department_id") or ""),
                default_level=int(x.get("default_level") or 0),
                is_managerial=bool(x.get("is_managerial")),
                permissions=RolePermissions.from_dict(x.get("permissions")),
            )
            for x in d.get("position_prototypes") or []
        ],
    )


def organization_to_dict(org: Organization) -> dict:
    return {
        "id": org.organization_id,
        "name": org.name,
        "code": org.code,
        "type": org.type,
        "sector": org.sector,
        "logo_url": org.logo_url,
        "location": org.location,
        "description": org.description,
        "owner_id": org.owner_id,
        "channels": [channel_to_dict(c) for c in org.channels],
        "followers_count": org.followers_count,
        "member_count": org.member_count,
        "status": org.status.value,
        "settings": {
            "allow_staff_content_creation": org.settings.allow_staff_content_creation,
            "primary_color": org.settings.primary_color,
        },
        "definitions": definitions_to_dict(org.definitions),
        "created_at": org.created_at,
    }


def membership_to_dict(m: Membership) -> dict:
    return {
        "id": m.membership_id,
        "user_id": m.user_id,
        "organization_id": m.organization_id,
        "role": m.role.value,
        "department": m.department,
        "status": m.status.value,
        "joined_at": m.joined_at,
    }


def request_to_dict(r: JoinRequest) -> dict:
    return {
        "id": r.request_id,
        "type": r.type,
        "user_id": r.user_id,
        "organization_id": r.organization_id,
        "status": r.status.value,
        "target_department": r.target_department,
        "requested_role_title": r.requested_role_title,
        "position_id": r.position_id,
        "created_at": r.created_at,
    }


def position_to_dict(p: Position) -> dict:
    return {
        "id": p.position_id,
        "organization_id": p.organization_id,
        "title": p.title,
        "department_id": p.department_id,
        "parent_id": p.parent_id,
        "occupant_id": p.occupant_id,
        "level": p.level,
        "permissions": p.permissions.to_dict() if p.permissions else None,
    }
