from __future__ import annotations

from flask import Flask, request, session

from ..common.http import current_user_id, json_body, login_required, ok
from ..container import Container
from ..core.enums import PageRole
from ..core.exceptions import ValidationError
from ..notifications.model import notification_to_dict
from ..permissions.model import RolePermissions
from ..users.model import user_to_public_dict
from .model import (
    channel_to_dict,
    definitions_from_dict,
    membership_to_dict,
    organization_to_dict,
    position_to_dict,
    request_to_dict,
)
from .service import RequestView


def _request_view(v: RequestView) -> dict:
    d = request_to_dict(v.request)
    d["organization_name"] = v.organization_name
    d["user"] = user_to_public_dict(v.user) if v.user else None
    return d


def register(app: Flask, container: Container) -> None:
    orgs = container.organization_service

    @app.route("/api/organizations", methods=["GET"], endpoint="list_organizations")
    @login_required
    def list_organizations():
        term = request.args.get("q", "")
        found = orgs.find_organizations(term) if term else orgs.list_public()
        return ok([organization_to_dict(o) for o in found])

    @app.route("/api/organizations", methods=["POST"], endpoint="create_organization")
    @login_required
    def create_organization():
        data = json_body()
        org = orgs.create_organization(owner_id=current_user_id(), name=data.get("name", ""), sector=data.get("sector", ""))
        switcher = container.contexts.switcher_for(session)
        if not switcher.stores.read().auth.is_authenticated:
            switcher.hydrate(current_user_id())
        snapshot = switcher.switch_organization(org.organization_id)
        container.contexts.persist(session)
        return ok(organization_to_dict(org), 201, context=snapshot.to_dict()["context"])

    @app.route("/api/organizations/managed", methods=["GET"], endpoint="managed_organizations")
    @login_required
    def managed_organizations():
        return ok([organization_to_dict(o) for o in orgs.managed_by(current_user_id())])

    @app.route("/api/organizations/<organization_id>", methods=["GET"], endpoint="get_organization")
    @login_required
    def get_organization(organization_id: str):
        return ok(organization_to_dict(orgs.get_organization(organization_id)))

    @app.route("/api/organizations/<organization_id>", methods=["PATCH"], endpoint="update_organization")
    @login_required
    def update_organization(organization_id: str):
        orgs.update_organization(actor_id=current_user_id(), organization_id=organization_id, fields=json_body())
        return ok()

    @app.route("/api/organizations/<organization_id>/deletion", methods=["POST"], endpoint="request_org_deletion")
    @login_required
    def request_org_deletion(organization_id: str):
        orgs.request_deletion(
            actor_id=current_user_id(), organization_id=organization_id, reason=json_body().get("reason", "")
        )
        return ok()

    @app.route("/api/organizations/<organization_id>/users", methods=["GET"], endpoint="organization_users")
    @login_required
    def organization_users(organization_id: str):
        return ok([user_to_public_dict(u) for u in orgs.organization_users(organization_id)])

    @app.route("/api/organizations/<organization_id>/permissions", methods=["GET"], endpoint="my_permissions")
    @login_required
    def my_permissions(organization_id: str):
        return ok(orgs.permissions_for(current_user_id(), organization_id).to_dict())

    @app.route("/api/organizations/<organization_id>/audience", methods=["GET"], endpoint="content_audience")
    @login_required
    def content_audience(organization_id: str):
        return ok(orgs.audience_for(current_user_id(), organization_id))

    @app.route("/api/me/memberships", methods=["GET"], endpoint="my_memberships")
    @login_required
    def my_memberships():
        return ok([membership_to_dict(m) for m in orgs.memberships_for_user(current_user_id())])

    # ---- channels ----

    @app.route("/api/organizations/<organization_id>/channels", methods=["POST"], endpoint="create_channel")
    @login_required
    def create_channel(organization_id: str):
        data = json_body()
        channel = orgs.create_channel(
            actor_id=current_user_id(),
            organization_id=organization_id,
            name=data.get("name", ""),
            description=data.get("description", ""),
            is_private=bool(data.get("is_private")),
            is_mandatory=bool(data.get("is_mandatory")),
        )
        return ok(channel_to_dict(channel), 201)

    @app.route(
        "/api/organizations/<organization_id>/channels/<channel_id>", methods=["DELETE"], endpoint="delete_channel"
    )
    @login_required
    def delete_channel(organization_id: str, channel_id: str):
        orgs.delete_channel(actor_id=current_user_id(), organization_id=organization_id, channel_id=channel_id)
        return ok()

    @app.route("/api/me/subscriptions", methods=["PUT"], endpoint="update_subscriptions")
    @login_required
    def update_subscriptions():
        channel_ids = json_body().get("channel_ids")
        if not isinstance(channel_ids, list):
            raise ValidationError("channel_ids must be a list")
        orgs.update_user_subscriptions(current_user_id(), channel_ids)
        return ok()

    # ---- join requests ----

    @app.route("/api/organizations/<organization_id>/requests", methods=["POST"], endpoint="send_join_request")
    @login_required
    def send_join_request(organization_id: str):
        data = json_body()
        request_id = orgs.send_join_request(
            user_id=current_user_id(),
            organization_id=organization_id,
            department=data.get("department"),
            role_title=data.get("role_title"),
            position_id=data.get("position_id"),
        )
        return ok({"id": request_id}, 201)

    @app.route("/api/organizations/<organization_id>/requests", methods=["GET"], endpoint="list_join_requests")
    @login_required
    def list_join_requests(organization_id: str):
        views = orgs.list_join_requests(
            actor_id=current_user_id(), organization_id=organization_id, department=request.args.get("department")
        )
        return ok([_request_view(v) for v in views])

    @app.route("/api/me/requests", methods=["GET"], endpoint="my_join_requests")
    @login_required
    def my_join_requests():
        return ok([_request_view(v) for v in orgs.user_pending_requests(current_user_id())])

    @app.route("/api/me/requests/<int:request_id>", methods=["DELETE"], endpoint="cancel_join_request")
    @login_required
    def cancel_join_request(request_id: int):
        orgs.cancel_join_request(user_id=current_user_id(), request_id=request_id)
        return ok()

    @app.route("/api/requests/<int:request_id>/approve", methods=["POST"], endpoint="approve_join_request")
    @login_required
    def approve_join_request(request_id: int):
        orgs.approve_join_request(
            actor_id=current_user_id(), request_id=request_id, role_title=json_body().get("role_title")
        )
        return ok()

    @app.route("/api/requests/<int:request_id>/reject", methods=["POST"], endpoint="reject_join_request")
    @login_required
    def reject_join_request(request_id: int):
        orgs.reject_join_request(actor_id=current_user_id(), request_id=request_id)
        return ok()

    # ---- invitations ----

    @app.route("/api/organizations/<organization_id>/invites", methods=["POST"], endpoint="invite_user")
    @login_required
    def invite_user(organization_id: str):
        user_id = json_body().get("user_id")
        if not user_id:
            raise ValidationError("user_id is required")
        orgs.invite_user(actor_id=current_user_id(), organization_id=organization_id, user_id=user_id)
        return ok(status=201)

    @app.route("/api/me/invites", methods=["GET"], endpoint="my_invites")
    @login_required
    def my_invites():
        return ok([notification_to_dict(n) for n in orgs.pending_invites(current_user_id())])

    @app.route("/api/me/invites/<int:notification_id>/accept", methods=["POST"], endpoint="accept_invite")
    @login_required
    def accept_invite(notification_id: int):
        org = orgs.accept_invite(user_id=current_user_id(), notification_id=notification_id)
        return ok(organization_to_dict(org))

    @app.route("/api/me/invites/<int:notification_id>", methods=["DELETE"], endpoint="decline_invite")
    @login_required
    def decline_invite(notification_id: int):
        orgs.decline_invite(user_id=current_user_id(), notification_id=notification_id)
        return ok()

    # ---- structure ----

    @app.route("/api/organizations/<organization_id>/definitions", methods=["PUT"], endpoint="save_definitions")
    @login_required
    def save_definitions(organization_id: str):
        definitions = definitions_from_dict(json_body())
        orgs.save_definitions(
            actor_id=current_user_id(),
            organization_id=organization_id,
            departments=definitions.departments if definitions else [],
            prototypes=definitions.position_prototypes if definitions else [],
        )
        return ok()

    @app.route("/api/organizations/<organization_id>/positions", methods=["GET"], endpoint="list_positions")
    @login_required
    def list_positions(organization_id: str):
        return ok([position_to_dict(p) for p in orgs.list_positions(organization_id)])

    @app.route("/api/organizations/<organization_id>/positions", methods=["POST"], endpoint="create_position")
    @login_required
    def create_position(organization_id: str):
        data = json_body()
        position = orgs.create_position(
            actor_id=current_user_id(),
            organization_id=organization_id,
            title=data.get("title", ""),
            department_id=data.get("department_id", ""),
            parent_id=data.get("parent_id"),
            occupant_id=data.get("occupant_id"),
            level=int(data.get("level") or 0),
            permissions=RolePermissions.from_dict(data.get("permissions")),
        )
        return ok(position_to_dict(position), 201)

    @app.route(
        "/api/organizations/<organization_id>/positions/<position_id>", methods=["DELETE"], endpoint="delete_position"
    )
    @login_required
    def delete_position(organization_id: str, position_id: str):
        orgs.delete_position(actor_id=current_user_id(), organization_id=organization_id, position_id=position_id)
        return ok()

    @app.route(
        "/api/organizations/<organization_id>/positions/<position_id>/permissions",
        methods=["PUT"],
        endpoint="update_position_permissions",
    )
    @login_required
    def update_position_permissions(organization_id: str, position_id: str):
        permissions = RolePermissions.from_dict(json_body())
        orgs.update_position_permissions(
            actor_id=current_user_id(),
            organization_id=organization_id,
            position_id=position_id,
            permissions=permissions,
        )
        return ok()

    @app.route(
        "/api/organizations/<organization_id>/members/<user_id>/role", methods=["PUT"], endpoint="update_page_role"
    )
    @login_required
    def update_page_role(organization_id: str, user_id: str):
        try:
            role = PageRole(json_body().get("role"))
        except ValueError:
            raise ValidationError("Unknown page role")
        orgs.update_page_role(actor_id=current_user_id(), organization_id=organization_id, user_id=user_id, role=role)
        return ok()
