from __future__ import annotations

from flask import Flask, request

from ..common.http import current_user_id, json_body, login_required, ok
from ..container import Container
from ..core.exceptions import ValidationError
from .model import course_to_dict, story_to_dict


def register(app: Flask, container: Container) -> None:
    courses = container.course_service

    def lang():
        return request.args.get("lang")

    def as_dicts(items):
        return [course_to_dict(c, lang()) for c in items]

    @app.route("/api/courses", methods=["POST"], endpoint="publish_content")
    @login_required
    def publish_content():
        course = courses.publish_content(user_id=current_user_id(), data=json_body())
        return ok(course_to_dict(course, lang()), 201)

    @app.route("/api/courses/<course_id>", methods=["GET"], endpoint="get_course")
    @login_required
    def get_course(course_id: str):
        return ok(course_to_dict(courses.get_course(course_id), lang()))

    @app.route("/api/courses/<course_id>", methods=["PATCH"], endpoint="update_course")
    @login_required
    def update_course(course_id: str):
        courses.update_course(actor_id=current_user_id(), course_id=course_id, fields=json_body())
        return ok()

    @app.route("/api/courses/<course_id>", methods=["DELETE"], endpoint="delete_course")
    @login_required
    def delete_course(course_id: str):
        courses.delete_course(actor_id=current_user_id(), course_id=course_id)
        return ok()

    @app.route("/api/courses/<course_id>/reviews", methods=["POST"], endpoint="submit_review")
    @login_required
    def submit_review(course_id: str):
        data = json_body()
        tags = data.get("tags") or []
        if not isinstance(tags, list):
            raise ValidationError("tags must be a list")
        courses.submit_review(course_id=course_id, reviewer_id=current_user_id(), rating=data.get("rating"), tags=tags)
        return ok(status=201)

    @app.route("/api/feed/smart", methods=["GET"], endpoint="smart_feed")
    @login_required
    def smart_feed():
        user = container.user_service.get_user(current_user_id())
        verified_only = request.args.get("verified_only", "1") not in ("0", "false")
        return ok(as_dicts(courses.get_smart_feed(user, verified_only=verified_only)))

    @app.route("/api/feed/dashboard", methods=["GET"], endpoint="dashboard_feed")
    @login_required
    def dashboard_feed():
        user = container.user_service.get_user(current_user_id())
        return ok(as_dicts(courses.get_dashboard_feed(user)))

    @app.route("/api/feed/stories", methods=["GET"], endpoint="channel_stories")
    @login_required
    def channel_stories():
        user = container.user_service.get_user(current_user_id())
        return ok([story_to_dict(s) for s in courses.get_channel_stories(user)])

    @app.route("/api/feed/explore", methods=["GET"], endpoint="explore_feed")
    @login_required
    def explore_feed():
        feed = courses.get_explore_feed(container.user_service.get_user(current_user_id()))
        return ok(
            {
                "priority": as_dicts(feed.priority),
                "trending": as_dicts(feed.trending),
                "discovery": as_dicts(feed.discovery),
            }
        )

    @app.route("/api/admin/courses", methods=["GET"], endpoint="admin_courses")
    @login_required
    def admin_courses():
        found = courses.get_admin_courses(user_id=current_user_id(), organization_id=request.args.get("organization_id"))
        return ok(as_dicts(found))

    @app.route("/api/instructors/<author_id>/courses", methods=["GET"], endpoint="instructor_courses")
    @login_required
    def instructor_courses(author_id: str):
        return ok(as_dicts(courses.get_instructor_courses(author_id)))

    @app.route("/api/courses/<course_id>/start", methods=["POST"], endpoint="start_course")
    @login_required
    def start_course(course_id: str):
        courses.start_course(user_id=current_user_id(), course_id=course_id)
        return ok()

    @app.route("/api/courses/<course_id>/progress", methods=["PUT"], endpoint="save_progress")
    @login_required
    def save_progress(course_id: str):
        try:
            card_index = int(json_body().get("card_index", 0))
        except (TypeError, ValueError):
            raise ValidationError("card_index must be a number")
        progress = courses.save_progress(user_id=current_user_id(), course_id=course_id, card_index=card_index)
        return ok({"percent": progress.percent, "current_card_index": progress.current_card_index})

    @app.route("/api/courses/<course_id>/complete", methods=["POST"], endpoint="complete_course")
    @login_required
    def complete_course(course_id: str):
        progress = courses.complete_course(user_id=current_user_id(), course_id=course_id)
        return ok({"status": progress.status.value, "completed_at": progress.completed_at})

    @app.route("/api/courses/<course_id>/save", methods=["PUT", "DELETE"], endpoint="toggle_save_course")
    @login_required
    def toggle_save_course(course_id: str):
        courses.toggle_save_course(user_id=current_user_id(), course_id=course_id, saved=request.method == "PUT")
        return ok()
