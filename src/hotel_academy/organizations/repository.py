from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import PageRole, RequestStatus
from ..permissions.model import RolePermissions
from .model import Channel, JoinRequest, MemberJoin, Membership, OrgDefinitions, Organization, Position


class OrganizationRepository(Protocol):
    """Organizations, their channels and their structure definitions."""

    def get_by_id(self, organization_id: str) -> Optional[Organization]:
        raise NotImplementedError

    def list_by_ids(self, organization_ids: Sequence[str]) -> Sequence[Organization]:
        raise NotImplementedError

    def list_recent(self, *, limit: int) -> Sequence[Organization]:
        raise NotImplementedError

    def list_owned_by(self, user_id: str) -> Sequence[Organization]:
        raise NotImplementedError

    def list_managed_by(self, user_id: str) -> Sequence[Organization]:
        raise NotImplementedError

    def create_organization(self, org: Organization, *, owner_membership: Membership) -> None:
        """Insert the org, the owner's membership and switch the owner into it (one transaction)."""

        raise NotImplementedError

    def update_details(self, organization_id: str, fields: dict) -> bool:
        raise NotImplementedError

    def add_channel(self, organization_id: str, channel: Channel) -> bool:
        raise NotImplementedError

    def remove_channel(self, organization_id: str, channel_id: str) -> bool:
        raise NotImplementedError

    def save_definitions(self, organization_id: str, definitions: OrgDefinitions) -> bool:
        raise NotImplementedError

    def request_deletion(self, organization_id: str, reason: str) -> bool:
        raise NotImplementedError


class MembershipRepository(Protocol):
    def get(self, user_id: str, organization_id: str) -> Optional[Membership]:
        raise NotImplementedError

    def list_for_user(self, user_id: str) -> Sequence[Membership]:
        raise NotImplementedError

    def update_role(self, user_id: str, organization_id: str, role: PageRole) -> bool:
        raise NotImplementedError

    def apply_member_join(self, join: MemberJoin) -> None:
        """Membership, user, org counters, request and invite in one transaction."""

        raise NotImplementedError


class JoinRequestRepository(Protocol):
    def get(self, request_id: int) -> Optional[JoinRequest]:
        raise NotImplementedError

    def find_pending(self, user_id: str, organization_id: str) -> Optional[JoinRequest]:
        raise NotImplementedError

    def create(self, request: JoinRequest) -> int:
        raise NotImplementedError

    def list_pending_for_user(self, user_id: str) -> Sequence[JoinRequest]:
        raise NotImplementedError

    def list_pending_for_org(self, organization_id: str, *, department: Optional[str] = None) -> Sequence[JoinRequest]:
        raise NotImplementedError

    def set_status(self, request_id: int, status: RequestStatus) -> bool:
        raise NotImplementedError

    def delete(self, request_id: int) -> bool:
        raise NotImplementedError


class PositionRepository(Protocol):
    def list_by_organization(self, organization_id: str) -> Sequence[Position]:
        raise NotImplementedError

    def create(self, position: Position) -> str:
        raise NotImplementedError

    def delete(self, position_id: str) -> bool:
        raise NotImplementedError

    def update_permissions(self, position_id: str, permissions: RolePermissions) -> bool:
        raise NotImplementedError
