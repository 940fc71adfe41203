from __future__ import annotations

from flask import Flask, session

from ..common.http import current_user_id, json_body, login_required, ok
from ..container import Container
from ..core.exceptions import ValidationError
from .service import ContextSwitcher


def register(app: Flask, container: Container) -> None:
    def switcher() -> ContextSwitcher:
        sw = container.contexts.switcher_for(session)
        # stores of a restarted process start signed out
        if not sw.stores.read().auth.is_authenticated:
            sw.hydrate(current_user_id())
        return sw

    @app.route("/api/context", methods=["GET"], endpoint="context_snapshot")
    @login_required
    def context_snapshot():
        return ok(switcher().snapshot())

    @app.route("/api/context/organization", methods=["POST"], endpoint="switch_organization")
    @login_required
    def switch_organization():
        organization_id = json_body().get("organization_id")
        if not organization_id:
            raise ValidationError("organization_id is required")
        snapshot = switcher().switch_organization(organization_id)
        container.contexts.persist(session)
        return ok(snapshot.to_dict())

    @app.route("/api/context/personal", methods=["POST"], endpoint="switch_personal")
    @login_required
    def switch_personal():
        snapshot = switcher().switch_to_personal()
        container.contexts.persist(session)
        return ok(snapshot.to_dict())
