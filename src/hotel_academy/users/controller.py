from __future__ import annotations

import logging
from datetime import timedelta

from flask import Flask, request, session

from ..common.http import SESSION_USER_KEY, current_user_id, json_body, login_required, ok
from ..container import Container
from ..core import constants
from .model import user_to_public_dict

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/auth/register", methods=["POST"], endpoint="register")
    def register_account():
        data = json_body()
        user_id = container.auth_service.register(
            username=data.get("username", ""),
            name=data.get("name", ""),
            password=data.get("password", ""),
            email=data.get("email", ""),
            department=data.get("department"),
        )
        return ok({"id": user_id}, 201)

    @app.route("/api/auth/login", methods=["POST"], endpoint="login")
    def login():
        data = json_body()
        s_user = container.auth_service.authenticate(data.get("username", ""), data.get("password", ""))

        session.permanent = bool(data.get("remember_me"))
        app.permanent_session_lifetime = timedelta(days=constants.DEFAULT_SESSION_DAYS)
        session[SESSION_USER_KEY] = s_user.user_id
        session["name"] = s_user.name
        session["role"] = s_user.role.value

        # a new sign-in never reuses the stores of whoever used this cookie before
        container.contexts.drop(session)
        snapshot = container.contexts.switcher_for(session).hydrate(s_user.user_id)
        container.contexts.persist(session)
        logger.info("user %s signed in", s_user.user_id)
        return ok(snapshot.to_dict())

    @app.route("/api/auth/logout", methods=["POST"], endpoint="logout")
    def logout():
        if SESSION_USER_KEY in session:
            container.contexts.switcher_for(session).logout()
        container.contexts.drop(session)
        session.clear()
        return ok()

    @app.route("/api/me", methods=["GET"], endpoint="me")
    @login_required
    def me():
        return ok(user_to_public_dict(container.user_service.get_user(current_user_id())))

    @app.route("/api/me", methods=["PATCH"], endpoint="update_me")
    @login_required
    def update_me():
        container.user_service.update_profile(current_user_id(), json_body())
        return ok()

    @app.route("/api/me", methods=["DELETE"], endpoint="delete_me")
    @login_required
    def delete_me():
        container.user_service.delete_account(current_user_id(), json_body().get("password", ""))
        container.contexts.drop(session)
        session.clear()
        return ok()

    @app.route("/api/me/career-vision", methods=["PUT"], endpoint="career_vision")
    @login_required
    def career_vision():
        container.user_service.set_career_vision(current_user_id(), json_body().get("path_id"))
        return ok()

    @app.route("/api/users/<user_id>", methods=["GET"], endpoint="user_profile")
    @login_required
    def user_profile(user_id: str):
        return ok(user_to_public_dict(container.user_service.get_user(user_id)))

    @app.route("/api/me/progress", methods=["GET"], endpoint="my_progress")
    @login_required
    def my_progress():
        user = container.user_service.get_user(current_user_id())
        course_id = request.args.get("course_id")
        progress = [p for p in user.progress_map.values() if not course_id or p.course_id == course_id]
        return ok(
            [
                {
                    "course_id": p.course_id,
                    "status": p.status.value,
                    "current_card_index": p.current_card_index,
                    "total_cards": p.total_cards,
                    "percent": p.percent,
                    "last_accessed_at": p.last_accessed_at,
                    "completed_at": p.completed_at,
                }
                for p in progress
            ]
        )
