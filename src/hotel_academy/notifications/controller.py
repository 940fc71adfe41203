from __future__ import annotations

from flask import Flask

from ..common.http import current_user_id, json_body, login_required, ok
from ..container import Container
from .model import notification_to_dict


def register(app: Flask, container: Container) -> None:
    @app.route("/api/notifications", methods=["GET"], endpoint="list_notifications")
    @login_required
    def list_notifications():
        return ok([notification_to_dict(n) for n in container.notification_service.list_for_user(current_user_id())])

    @app.route("/api/notifications/<int:notification_id>/read", methods=["POST"], endpoint="mark_notification_read")
    @login_required
    def mark_notification_read(notification_id: int):
        container.notification_service.mark_read(current_user_id(), notification_id)
        return ok()

    @app.route("/api/organizations/<organization_id>/announcements", methods=["POST"], endpoint="notify_department")
    @login_required
    def notify_department(organization_id: str):
        container.organization_service.resolver(current_user_id(), organization_id).require("manage_staff")
        data = json_body()
        count = container.notification_service.notify_department(
            organization_id=organization_id,
            department=data.get("department") or "all",
            title=data.get("title", ""),
            message=data.get("message", ""),
            link=data.get("link"),
        )
        return ok({"count": count}, 201)
