from __future__ import annotations

from flask import Flask, request

from ..common.http import current_user_id, json_body, login_required, ok
from ..container import Container
from ..core.enums import TargetType
from ..core.exceptions import ValidationError
from .model import relationship_to_dict


def _target_type(raw) -> TargetType:
    try:
        return TargetType(raw or TargetType.USER.value)
    except ValueError:
        raise ValidationError("target_type must be USER or ORGANIZATION")


def register(app: Flask, container: Container) -> None:
    social = container.social_service

    @app.route("/api/follows/<target_id>", methods=["GET"], endpoint="follow_status")
    @login_required
    def follow_status(target_id: str):
        return ok({"status": social.check_follow_status(current_user_id(), target_id).value})

    @app.route("/api/follows/<target_id>", methods=["POST"], endpoint="follow_entity")
    @login_required
    def follow_entity(target_id: str):
        result = social.follow_entity(current_user_id(), target_id, _target_type(json_body().get("target_type")))
        return ok({"status": result.status.value, "created": result.success})

    @app.route("/api/follows/<target_id>", methods=["DELETE"], endpoint="unfollow_entity")
    @login_required
    def unfollow_entity(target_id: str):
        removed = social.unfollow_entity(current_user_id(), target_id, _target_type(request.args.get("target_type")))
        return ok({"removed": removed})

    @app.route("/api/me/follow-requests", methods=["GET"], endpoint="follow_requests")
    @login_required
    def follow_requests():
        return ok([relationship_to_dict(r) for r in social.pending_follow_requests(current_user_id())])

    @app.route("/api/me/follow-requests/<follower_id>/accept", methods=["POST"], endpoint="accept_follow_request")
    @login_required
    def accept_follow_request(follower_id: str):
        social.accept_follow_request(user_id=current_user_id(), follower_id=follower_id)
        return ok()

    @app.route("/api/me/tags/<tag>", methods=["PUT", "DELETE"], endpoint="toggle_tag_follow")
    @login_required
    def toggle_tag_follow(tag: str):
        clean = social.toggle_tag_follow(current_user_id(), tag, following=request.method == "PUT")
        return ok({"tag": clean})

    @app.route("/api/posts/<post_id>/like", methods=["PUT", "DELETE"], endpoint="toggle_post_like")
    @login_required
    def toggle_post_like(post_id: str):
        changed = social.toggle_post_like(post_id=post_id, user_id=current_user_id(), liked=request.method == "PUT")
        return ok({"changed": changed})

    @app.route("/api/posts/<post_id>/like", methods=["GET"], endpoint="has_liked_post")
    @login_required
    def has_liked_post(post_id: str):
        return ok({"liked": social.has_user_liked_post(post_id, current_user_id())})
