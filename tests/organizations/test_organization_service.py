from __future__ import annotations

import pytest

from hotel_academy.core.enums import ContentTargetingScope, OrganizationStatus, PageRole, RequestStatus
from hotel_academy.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from hotel_academy.organizations.model import OrgDepartmentDefinition, PositionPrototype
from hotel_academy.organizations.service import GENERAL_CHANNEL_ID, WELCOME_CHANNEL_ID, make_join_code
from hotel_academy.permissions.model import RolePermissions

from fakes import make_user


@pytest.fixture
def orgs(container, repos):
    repos.users.add(make_user("owner", name="Owner"))
    repos.users.add(make_user("ali", name="Ali"))
    repos.users.add(make_user("ayse", name="Ayşe"))
    return container.organization_service


@pytest.fixture
def grand(orgs):
    return orgs.create_organization(owner_id="owner", name="Grand Hotel", sector="tourism")


def test_create_organization_sets_up_owner(orgs, repos, grand):
    assert grand.organization_id.startswith("grand_hotel_")
    assert grand.code.startswith("GRA")
    assert grand.member_count == 1
    assert grand.mandatory_channel_ids == [GENERAL_CHANNEL_ID, WELCOME_CHANNEL_ID]

    owner = repos.users.get_by_id("owner")
    assert owner.current_organization_id == grand.organization_id
    assert owner.managed_page_ids == [grand.organization_id]
    assert owner.page_roles[grand.organization_id] == PageRole.ADMIN
    assert set(owner.channel_subscriptions) == {GENERAL_CHANNEL_ID, WELCOME_CHANNEL_ID}
    assert repos.memberships.get("owner", grand.organization_id).role == PageRole.ADMIN


def test_create_organization_validation(orgs):
    with pytest.raises(ValidationError):
        orgs.create_organization(owner_id="owner", name=" ", sector="tourism")
    with pytest.raises(NotFoundError):
        orgs.create_organization(owner_id="ghost", name="X", sector="tourism")


def test_join_code_shape():
    code = make_join_code("  ritz ")
    assert code[:3] == "RIT"
    assert 1000 <= int(code[3:]) <= 9999


def test_find_by_name_or_code(orgs, grand):
    assert [o.organization_id for o in orgs.find_organizations("grand")] == [grand.organization_id]
    assert [o.organization_id for o in orgs.find_organizations(grand.code.lower())] == [grand.organization_id]
    assert orgs.find_organizations("g") == []


def test_join_request_approval(orgs, repos, grand):
    request_id = orgs.send_join_request(
        user_id="ali", organization_id=grand.organization_id, department="front", role_title="Receptionist"
    )
    with pytest.raises(ConflictError):
        orgs.send_join_request(user_id="ali", organization_id=grand.organization_id)

    views = orgs.list_join_requests(actor_id="owner", organization_id=grand.organization_id)
    assert [(v.request.request_id, v.user.name) for v in views] == [(request_id, "Ali")]
    assert [v.organization_name for v in orgs.user_pending_requests("ali")] == ["Grand Hotel"]

    orgs.approve_join_request(actor_id="owner", request_id=request_id)

    ali = repos.users.get_by_id("ali")
    assert ali.current_organization_id == grand.organization_id
    assert ali.department == "front"
    assert ali.role_title == "Receptionist"
    assert GENERAL_CHANNEL_ID in ali.channel_subscriptions
    assert ali.page_roles[grand.organization_id] == PageRole.MEMBER
    assert repos.organizations.get_by_id(grand.organization_id).member_count == 2
    assert repos.join_requests.get(request_id).status == RequestStatus.APPROVED

    with pytest.raises(ConflictError):
        orgs.approve_join_request(actor_id="owner", request_id=request_id)
    with pytest.raises(ConflictError):
        orgs.send_join_request(user_id="ali", organization_id=grand.organization_id)


def test_only_approvers_handle_requests(orgs, grand):
    request_id = orgs.send_join_request(user_id="ali", organization_id=grand.organization_id)
    with pytest.raises(AuthorizationError):
        orgs.approve_join_request(actor_id="ayse", request_id=request_id)
    with pytest.raises(AuthorizationError):
        orgs.list_join_requests(actor_id="ayse", organization_id=grand.organization_id)

    orgs.reject_join_request(actor_id="owner", request_id=request_id)
    with pytest.raises(ConflictError):
        orgs.approve_join_request(actor_id="owner", request_id=request_id)


def test_cancel_own_request(orgs, repos, grand):
    request_id = orgs.send_join_request(user_id="ali", organization_id=grand.organization_id)
    with pytest.raises(NotFoundError):
        orgs.cancel_join_request(user_id="ayse", request_id=request_id)
    orgs.cancel_join_request(user_id="ali", request_id=request_id)
    assert repos.join_requests.get(request_id) is None


def test_invite_accept_and_decline(orgs, repos, grand):
    orgs.invite_user(actor_id="owner", organization_id=grand.organization_id, user_id="ali")
    orgs.invite_user(actor_id="owner", organization_id=grand.organization_id, user_id="ayse")

    (invite,) = orgs.pending_invites("ali")
    joined = orgs.accept_invite(user_id="ali", notification_id=invite.notification_id)
    assert joined.organization_id == grand.organization_id
    assert repos.memberships.get("ali", grand.organization_id) is not None
    assert orgs.pending_invites("ali") == []

    (other,) = orgs.pending_invites("ayse")
    with pytest.raises(NotFoundError):
        orgs.accept_invite(user_id="ali", notification_id=other.notification_id)
    orgs.decline_invite(user_id="ayse", notification_id=other.notification_id)
    assert orgs.pending_invites("ayse") == []
    assert repos.memberships.get("ayse", grand.organization_id) is None

    with pytest.raises(ConflictError):
        orgs.invite_user(actor_id="owner", organization_id=grand.organization_id, user_id="ali")
    with pytest.raises(AuthorizationError):
        orgs.invite_user(actor_id="ali", organization_id=grand.organization_id, user_id="ayse")


def test_channels(orgs, repos, grand):
    channel = orgs.create_channel(actor_id="owner", organization_id=grand.organization_id, name="Mutfak", is_private=True)
    assert repos.organizations.get_by_id(grand.organization_id).channel(channel.channel_id).is_private

    orgs.delete_channel(actor_id="owner", organization_id=grand.organization_id, channel_id=channel.channel_id)
    with pytest.raises(NotFoundError):
        orgs.delete_channel(actor_id="owner", organization_id=grand.organization_id, channel_id=channel.channel_id)
    with pytest.raises(AuthorizationError):
        orgs.create_channel(actor_id="ali", organization_id=grand.organization_id, name="X")

    orgs.update_user_subscriptions("ali", ["a", "b", "a"])
    assert repos.users.get_by_id("ali").channel_subscriptions == ["a", "b"]


def test_structure_and_permissions(orgs, repos, grand):
    manager_perms = RolePermissions(manage_staff=True, content_targeting=ContentTargetingScope.OWN_DEPT)
    orgs.save_definitions(
        actor_id="owner",
        organization_id=grand.organization_id,
        departments=[OrgDepartmentDefinition(department_id="front", name="Ön Büro")],
        prototypes=[
            PositionPrototype(prototype_id="p1", title="FOM", department_id="front", permissions=manager_perms)
        ],
    )
    position = orgs.create_position(
        actor_id="owner", organization_id=grand.organization_id, title="FOM", department_id="front", occupant_id="ali"
    )
    assert [p.position_id for p in orgs.list_positions(grand.organization_id)] == [position.position_id]

    request_id = orgs.send_join_request(
        user_id="ali",
        organization_id=grand.organization_id,
        department="front",
        role_title="FOM",
        position_id=position.position_id,
    )
    orgs.approve_join_request(actor_id="owner", request_id=request_id)

    perms = orgs.permissions_for("ali", grand.organization_id)
    assert perms.manage_staff
    assert not perms.manage_structure
    assert perms.content_targeting == ContentTargetingScope.OWN_DEPT
    assert orgs.audience_for("ali", grand.organization_id) == ["ali"]

    orgs.update_position_permissions(
        actor_id="owner", organization_id=grand.organization_id, position_id=position.position_id, permissions=manager_perms
    )
    orgs.delete_position(actor_id="owner", organization_id=grand.organization_id, position_id=position.position_id)
    with pytest.raises(NotFoundError):
        orgs.delete_position(actor_id="owner", organization_id=grand.organization_id, position_id=position.position_id)


def test_page_roles(orgs, repos, grand):
    request_id = orgs.send_join_request(user_id="ali", organization_id=grand.organization_id)
    orgs.approve_join_request(actor_id="owner", request_id=request_id)

    orgs.update_page_role(actor_id="owner", organization_id=grand.organization_id, user_id="ali", role=PageRole.EDITOR)
    assert repos.memberships.get("ali", grand.organization_id).role == PageRole.EDITOR
    assert repos.users.get_by_id("ali").page_roles[grand.organization_id] == PageRole.EDITOR

    with pytest.raises(ValidationError):
        orgs.update_page_role(
            actor_id="owner", organization_id=grand.organization_id, user_id="owner", role=PageRole.MEMBER
        )
    with pytest.raises(NotFoundError):
        orgs.update_page_role(
            actor_id="owner", organization_id=grand.organization_id, user_id="ayse", role=PageRole.EDITOR
        )


def test_update_and_delete_organization(orgs, repos, grand):
    orgs.update_organization(actor_id="owner", organization_id=grand.organization_id, fields={"location": "Bodrum"})
    assert repos.organizations.get_by_id(grand.organization_id).location == "Bodrum"
    with pytest.raises(ValidationError):
        orgs.update_organization(actor_id="owner", organization_id=grand.organization_id, fields={"owner_id": "x"})

    with pytest.raises(AuthorizationError):
        orgs.request_deletion(actor_id="ali", organization_id=grand.organization_id, reason="bye")
    orgs.request_deletion(actor_id="owner", organization_id=grand.organization_id, reason="Sold")
    assert repos.organizations.get_by_id(grand.organization_id).status == OrganizationStatus.PENDING_DELETION
