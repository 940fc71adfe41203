from __future__ import annotations

from flask import Flask, request

from ..common.http import current_user_id, login_required, ok
from ..container import Container
from ..courses.model import course_to_dict


def register(app: Flask, container: Container) -> None:
    @app.route("/api/recommendations", methods=["GET"], endpoint="recommendations")
    @login_required
    def recommendations():
        user = container.user_service.get_user(current_user_id())
        rec = container.recommendation_service.recommend(user)
        return ok(
            {
                "courses": [course_to_dict(c, request.args.get("lang")) for c in rec.courses],
                "reason": rec.reason,
                "sources": rec.sources,
            }
        )
