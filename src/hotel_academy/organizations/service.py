from __future__ import annotations

import logging
import random
import re
import uuid
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..common.datetime_utils import now_ms
from ..common.validators import require_non_empty
from ..core.enums import PageRole, RequestStatus
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..notifications.model import NOTIFICATION_INVITE, Notification, invite_link, organization_from_link
from ..notifications.repository import NotificationRepository
from ..permissions.model import RolePermissions
from ..permissions.resolver import PermissionResolver, resolve_audience
from ..users.model import User
from ..users.repository import UserRepository
from .model import (
    Channel,
    JoinRequest,
    MemberJoin,
    Membership,
    OrgDefinitions,
    OrgDepartmentDefinition,
    Organization,
    Position,
    PositionPrototype,
)
from .repository import JoinRequestRepository, MembershipRepository, OrganizationRepository, PositionRepository

logger = logging.getLogger(__name__)

GENERAL_CHANNEL_ID = "ch_general"
WELCOME_CHANNEL_ID = "ch_welcome"


def make_organization_id(name: str) -> str:
    slug = re.sub(r"\s+", "_", name.strip().lower())
    slug = re.sub(r"[^\w]", "", slug)
    return f"{slug}_{random.randint(0, 999)}"


def make_join_code(name: str) -> str:
    return name.strip()[:3].upper() + str(random.randint(1000, 9999))


def default_channels(owner_id: str, created_at: int) -> List[Channel]:
    return [
        Channel(
            channel_id=GENERAL_CHANNEL_ID,
            name="Genel Duyurular",
            description="Tüm personel için",
            is_mandatory=True,
            created_at=created_at,
            manager_ids=[owner_id],
        ),
        Channel(
            channel_id=WELCOME_CHANNEL_ID,
            name="Oryantasyon",
            description="Aramıza hoş geldin!",
            is_mandatory=True,
            created_at=created_at,
            manager_ids=[owner_id],
        ),
    ]


@dataclass(frozen=True)
class RequestView:
    request: JoinRequest
    organization_name: Optional[str] = None
    user: Optional[User] = None


class OrganizationService:
    """Use case: organization lifecycle, channels, structure and staffing."""

    def __init__(
        self,
        organizations: OrganizationRepository,
        memberships: MembershipRepository,
        requests: JoinRequestRepository,
        positions: PositionRepository,
        users: UserRepository,
        notifications: NotificationRepository,
    ):
        self._organizations = organizations
        self._memberships = memberships
        self._requests = requests
        self._positions = positions
        self._users = users
        self._notifications = notifications

    # ---- lookups ----

    def get_organization(self, organization_id: str) -> Organization:
        org = self._organizations.get_by_id(organization_id)
        if not org:
            raise NotFoundError("Organization not found")
        return org

    def list_public(self, *, limit: int = 100) -> Sequence[Organization]:
        return self._organizations.list_recent(limit=limit)

    def find_organizations(self, term: str) -> List[Organization]:
        """Name contains the term, or the join code matches exactly."""
        term = (term or "").strip()
        if len(term) < 2:
            return []
        lowered = term.lower()
        return [
            o
            for o in self._organizations.list_recent(limit=50)
            if lowered in o.name.lower() or (o.code and o.code == term.upper())
        ]

    def managed_by(self, user_id: str) -> Sequence[Organization]:
        return self._organizations.list_managed_by(user_id)

    def memberships_for_user(self, user_id: str) -> Sequence[Membership]:
        return self._memberships.list_for_user(user_id)

    def organization_users(self, organization_id: str) -> Sequence[User]:
        return self._users.list_by_organization(organization_id)

    def _user(self, user_id: str) -> User:
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def resolver(self, user_id: str, organization_id: str) -> PermissionResolver:
        return PermissionResolver(self._users.get_by_id(user_id), self._organizations.get_by_id(organization_id))

    def permissions_for(self, user_id: str, organization_id: str) -> RolePermissions:
        return self.resolver(user_id, organization_id).permissions()

    def _require(self, actor_id: str, organization_id: str, key: str) -> Organization:
        org = self.get_organization(organization_id)
        PermissionResolver(self._users.get_by_id(actor_id), org).require(key)
        return org

    def audience_for(self, actor_id: str, organization_id: str) -> List[str]:
        """User ids the actor may target with content inside the organization."""
        org = self.get_organization(organization_id)
        actor = self._user(actor_id)
        scope = PermissionResolver(actor, org).scope()
        return resolve_audience(
            scope,
            author=actor,
            staff=self._users.list_by_organization(organization_id),
            positions=self._positions.list_by_organization(organization_id),
        )

    # ---- lifecycle ----

    def create_organization(self, *, owner_id: str, name: str, sector: str) -> Organization:
        owner = self._user(owner_id)
        name = require_non_empty(name, "Organization name")
        now = now_ms()

        org = Organization(
            organization_id=make_organization_id(name),
            name=name,
            owner_id=owner.user_id,
            sector=require_non_empty(sector, "Sector"),
            code=make_join_code(name),
            admins=[owner.user_id],
            followers=[owner.user_id],
            members=[owner.user_id],
            channels=default_channels(owner.user_id, now),
            followers_count=0,
            member_count=1,
            created_at=now,
        )
        self._organizations.create_organization(
            org,
            owner_membership=Membership(
                membership_id=Membership.make_id(owner.user_id, org.organization_id),
                user_id=owner.user_id,
                organization_id=org.organization_id,
                role=PageRole.ADMIN,
                joined_at=now,
            ),
        )
        logger.info("organization %s created by %s", org.organization_id, owner.user_id)
        return org

    def update_organization(self, *, actor_id: str, organization_id: str, fields: dict) -> None:
        self._require(actor_id, organization_id, "admin_access")
        if "name" in fields:
            fields = {**fields, "name": require_non_empty(fields["name"], "Organization name")}
        if not self._organizations.update_details(organization_id, fields):
            raise ValidationError("Nothing to update")

    def request_deletion(self, *, actor_id: str, organization_id: str, reason: str) -> None:
        org = self.get_organization(organization_id)
        if org.owner_id != actor_id:
            raise AuthorizationError("Only the owner can delete the organization")
        self._organizations.request_deletion(organization_id, require_non_empty(reason, "Reason"))
        logger.warning("organization %s marked for deletion", organization_id)

    # ---- channels ----

    def create_channel(
        self,
        *,
        actor_id: str,
        organization_id: str,
        name: str,
        description: str = "",
        is_private: bool = False,
        is_mandatory: bool = False,
    ) -> Channel:
        self._require(actor_id, organization_id, "manage_structure")
        channel = Channel(
            channel_id=f"ch_{now_ms()}_{uuid.uuid4().hex[:5]}",
            name=require_non_empty(name, "Channel name"),
            description=description or "",
            is_private=bool(is_private),
            is_mandatory=bool(is_mandatory),
            created_at=now_ms(),
            manager_ids=[],
        )
        self._organizations.add_channel(organization_id, channel)
        return channel

    def delete_channel(self, *, actor_id: str, organization_id: str, channel_id: str) -> None:
        org = self._require(actor_id, organization_id, "manage_structure")
        if org.channel(channel_id) is None:
            raise NotFoundError("Channel not found")
        self._organizations.remove_channel(organization_id, channel_id)

    def update_user_subscriptions(self, user_id: str, channel_ids: Sequence[str]) -> None:
        if not self._users.set_channel_subscriptions(user_id, list(dict.fromkeys(channel_ids))):
            raise NotFoundError("User not found")

    # ---- join requests ----

    def send_join_request(
        self,
        *,
        user_id: str,
        organization_id: str,
        department: Optional[str] = None,
        role_title: Optional[str] = None,
        position_id: Optional[str] = None,
    ) -> int:
        self.get_organization(organization_id)
        if self._memberships.get(user_id, organization_id):
            raise ConflictError("Already a member of this organization")
        if self._requests.find_pending(user_id, organization_id):
            raise ConflictError("Zaten bekleyen bir başvurunuz var.")

        return self._requests.create(
            JoinRequest(
                request_id=0,
                user_id=user_id,
                organization_id=organization_id,
                status=RequestStatus.PENDING,
                created_at=now_ms(),
                target_department=department or None,
                requested_role_title=role_title or None,
                position_id=position_id or None,
            )
        )

    def user_pending_requests(self, user_id: str) -> List[RequestView]:
        reqs = self._requests.list_pending_for_user(user_id)
        orgs = {o.organization_id: o for o in self._organizations.list_by_ids(list({r.organization_id for r in reqs}))}
        return [
            RequestView(request=r, organization_name=orgs[r.organization_id].name if r.organization_id in orgs else None)
            for r in reqs
        ]

    def cancel_join_request(self, *, user_id: str, request_id: int) -> None:
        req = self._requests.get(request_id)
        if not req or req.user_id != user_id:
            raise NotFoundError("Request not found")
        self._requests.delete(request_id)

    def list_join_requests(
        self, *, actor_id: str, organization_id: str, department: Optional[str] = None
    ) -> List[RequestView]:
        self._require(actor_id, organization_id, "can_approve_requests")
        reqs = self._requests.list_pending_for_org(organization_id, department=department)
        users = {u.user_id: u for u in self._users.list_by_ids(list({r.user_id for r in reqs}))}
        return [RequestView(request=r, user=users.get(r.user_id)) for r in reqs]

    def approve_join_request(self, *, actor_id: str, request_id: int, role_title: Optional[str] = None) -> None:
        req = self._requests.get(request_id)
        if not req:
            raise NotFoundError("Request not found")
        if req.status != RequestStatus.PENDING:
            raise ConflictError(f"Request already {req.status.value.lower()}")
        org = self._require(actor_id, req.organization_id, "can_approve_requests")

        self._memberships.apply_member_join(
            MemberJoin(
                user_id=req.user_id,
                organization_id=org.organization_id,
                role=PageRole.MEMBER,
                joined_at=now_ms(),
                mandatory_channel_ids=org.mandatory_channel_ids,
                department=req.target_department,
                role_title=role_title or req.requested_role_title,
                position_id=req.position_id,
                request_id=req.request_id,
            )
        )
        logger.info("join request %s approved by %s", request_id, actor_id)

    def reject_join_request(self, *, actor_id: str, request_id: int) -> None:
        req = self._requests.get(request_id)
        if not req:
            raise NotFoundError("Request not found")
        self._require(actor_id, req.organization_id, "can_approve_requests")
        self._requests.set_status(request_id, RequestStatus.REJECTED)

    # ---- invitations ----

    def invite_user(self, *, actor_id: str, organization_id: str, user_id: str) -> None:
        org = self._require(actor_id, organization_id, "manage_staff")
        self._user(user_id)
        if self._memberships.get(user_id, organization_id):
            raise ConflictError("Already a member of this organization")
        self._notifications.create_many(
            [
                Notification(
                    notification_id=None,
                    user_id=user_id,
                    title=org.name,
                    message=f"{org.name} invited you to join",
                    link=invite_link(org.organization_id),
                    type=NOTIFICATION_INVITE,
                    created_at=now_ms(),
                )
            ]
        )

    def pending_invites(self, user_id: str) -> Sequence[Notification]:
        return self._notifications.list_for_user(user_id, type=NOTIFICATION_INVITE)

    def _invite(self, user_id: str, notification_id: int) -> Notification:
        invite = self._notifications.get(notification_id)
        if not invite or invite.user_id != user_id or invite.type != NOTIFICATION_INVITE:
            raise NotFoundError("Invitation not found")
        return invite

    def accept_invite(self, *, user_id: str, notification_id: int) -> Organization:
        invite = self._invite(user_id, notification_id)
        organization_id = organization_from_link(invite.link)
        if not organization_id:
            raise ValidationError("Invitation link is malformed")
        org = self.get_organization(organization_id)

        self._memberships.apply_member_join(
            MemberJoin(
                user_id=user_id,
                organization_id=org.organization_id,
                role=PageRole.MEMBER,
                joined_at=now_ms(),
                mandatory_channel_ids=org.mandatory_channel_ids,
                notification_id=invite.notification_id,
            )
        )
        return org

    def decline_invite(self, *, user_id: str, notification_id: int) -> None:
        self._invite(user_id, notification_id)
        self._notifications.delete(notification_id, user_id)

    # ---- structure ----

    def save_definitions(
        self,
        *,
        actor_id: str,
        organization_id: str,
        departments: Sequence[OrgDepartmentDefinition],
        prototypes: Sequence[PositionPrototype],
    ) -> OrgDefinitions:
        self._require(actor_id, organization_id, "manage_structure")
        definitions = OrgDefinitions(departments=list(departments), position_prototypes=list(prototypes))
        self._organizations.save_definitions(organization_id, definitions)
        return definitions

    def list_positions(self, organization_id: str) -> Sequence[Position]:
        return self._positions.list_by_organization(organization_id)

    def create_position(
        self,
        *,
        actor_id: str,
        organization_id: str,
        title: str,
        department_id: str,
        parent_id: Optional[str] = None,
        occupant_id: Optional[str] = None,
        level: int = 0,
        permissions: Optional[RolePermissions] = None,
    ) -> Position:
        self._require(actor_id, organization_id, "manage_structure")
        position = Position(
            position_id=uuid.uuid4().hex,
            organization_id=organization_id,
            title=require_non_empty(title, "Title"),
            department_id=require_non_empty(department_id, "Department"),
            parent_id=parent_id or None,
            occupant_id=occupant_id or None,
            level=int(level),
            permissions=permissions,
        )
        self._positions.create(position)
        return position

    def delete_position(self, *, actor_id: str, organization_id: str, position_id: str) -> None:
        self._require(actor_id, organization_id, "manage_structure")
        if not self._positions.delete(position_id):
            raise NotFoundError("Position not found")

    def update_position_permissions(
        self, *, actor_id: str, organization_id: str, position_id: str, permissions: RolePermissions
    ) -> None:
        self._require(actor_id, organization_id, "manage_structure")
        if not self._positions.update_permissions(position_id, permissions):
            raise NotFoundError("Position not found")

    def update_page_role(self, *, actor_id: str, organization_id: str, user_id: str, role: PageRole) -> None:
        org = self._require(actor_id, organization_id, "manage_staff")
        if user_id == org.owner_id and role != PageRole.ADMIN:
            raise ValidationError("The owner must stay an admin")
        if not self._memberships.update_role(user_id, organization_id, role):
            raise NotFoundError("Membership not found")

