from __future__ import annotations

from flask import Flask, request

from ..common.http import current_user_id, int_arg, json_body, login_required, ok
from ..container import Container
from ..core import constants
from ..users.model import user_to_public_dict
from .model import settings_to_dict


def register(app: Flask, container: Container) -> None:
    admin = container.superadmin_service

    @app.route("/api/superadmin/users", methods=["GET"], endpoint="superadmin_users")
    @login_required
    def superadmin_users():
        page = admin.get_all_users(
            actor_id=current_user_id(),
            cursor=request.args.get("cursor"),
            page_size=int_arg("page_size", constants.DEFAULT_PAGE_SIZE),
            search_term=request.args.get("q", ""),
            filter=request.args.get("filter", "ALL"),
        )
        return ok([user_to_public_dict(u) for u in page.users], next_cursor=page.next_cursor)

    @app.route("/api/superadmin/users/<user_id>/status", methods=["PUT"], endpoint="superadmin_user_status")
    @login_required
    def superadmin_user_status(user_id: str):
        admin.update_user_status(actor_id=current_user_id(), user_id=user_id, status=json_body().get("status", ""))
        return ok()

    @app.route("/api/superadmin/users/<user_id>", methods=["DELETE"], endpoint="superadmin_delete_user")
    @login_required
    def superadmin_delete_user(user_id: str):
        admin.delete_user_complete(actor_id=current_user_id(), user_id=user_id)
        return ok()

    @app.route("/api/settings", methods=["GET"], endpoint="system_settings")
    def system_settings():
        return ok(settings_to_dict(admin.get_system_settings()))

    @app.route("/api/settings", methods=["PUT"], endpoint="update_system_settings")
    @login_required
    def update_system_settings():
        return ok(settings_to_dict(admin.update_system_settings(actor_id=current_user_id(), fields=json_body())))
