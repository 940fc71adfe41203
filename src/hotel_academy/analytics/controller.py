from __future__ import annotations

from flask import Flask

from ..common.http import current_user_id, int_arg, json_body, login_required, ok
from ..container import Container
from ..core.enums import EventOutcome, EventType
from ..core.exceptions import ValidationError
from .model import event_to_dict
from .service import create_event_payload


def register(app: Flask, container: Container) -> None:
    analytics = container.analytics_service

    @app.route("/api/analytics/events", methods=["POST"], endpoint="log_event")
    @login_required
    def log_event():
        data = json_body()
        try:
            event_type = EventType(data.get("type"))
            outcome = EventOutcome(data["outcome"]) if data.get("outcome") else None
        except ValueError as e:
            raise ValidationError(str(e)) from e
        content_id = data.get("content_id")
        if not content_id:
            raise ValidationError("content_id is required")

        user = container.user_service.get_user(current_user_id())
        event = create_event_payload(
            user,
            page_id=data.get("page_id"),
            channel_id=data.get("channel_id"),
            content_id=content_id,
            type=event_type,
            payload=data.get("payload"),
            related_topics=data.get("related_topics") or [],
            outcome=outcome,
        )
        # accepted even when dropped or not stored; analytics never fails the client
        return ok({"id": analytics.log_event(event)}, 202)

    @app.route("/api/organizations/<organization_id>/analytics", methods=["GET"], endpoint="recent_events")
    @login_required
    def recent_events(organization_id: str):
        events = analytics.recent_events(
            actor_id=current_user_id(), organization_id=organization_id, limit=int_arg("limit", 100)
        )
        return ok([event_to_dict(e) for e in events])
