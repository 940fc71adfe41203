from __future__ import annotations

from flask import Flask

from ..common.http import current_user_id, json_body, login_required, ok
from ..container import Container
from ..core.exceptions import ValidationError
from .model import career_path_to_dict


def register(app: Flask, container: Container) -> None:
    careers = container.career_service

    @app.route("/api/organizations/<organization_id>/career-paths", methods=["GET"], endpoint="list_career_paths")
    @login_required
    def list_career_paths(organization_id: str):
        return ok([career_path_to_dict(p) for p in careers.list_paths(organization_id)])

    @app.route("/api/organizations/<organization_id>/career-paths", methods=["POST"], endpoint="create_career_path")
    @login_required
    def create_career_path(organization_id: str):
        data = json_body()
        path = careers.create_path(
            actor_id=current_user_id(),
            organization_id=organization_id,
            title=data.get("title", ""),
            description=data.get("description", ""),
            department=data.get("department"),
            target_role=data.get("target_role", ""),
            course_ids=data.get("course_ids") or [],
        )
        return ok(career_path_to_dict(path), 201)

    @app.route(
        "/api/organizations/<organization_id>/departments/<department>/career-path",
        methods=["GET"],
        endpoint="department_career_path",
    )
    @login_required
    def department_career_path(organization_id: str, department: str):
        path = careers.get_path_by_department(organization_id, department)
        return ok(career_path_to_dict(path) if path else None)

    @app.route("/api/career-paths/<path_id>", methods=["GET"], endpoint="get_career_path")
    @login_required
    def get_career_path(path_id: str):
        return ok(career_path_to_dict(careers.get_path(path_id)))

    @app.route("/api/career-paths/<path_id>", methods=["PATCH"], endpoint="update_career_path")
    @login_required
    def update_career_path(path_id: str):
        careers.update_path(actor_id=current_user_id(), path_id=path_id, fields=json_body())
        return ok()

    @app.route("/api/career-paths/<path_id>", methods=["DELETE"], endpoint="delete_career_path")
    @login_required
    def delete_career_path(path_id: str):
        careers.delete_path(actor_id=current_user_id(), path_id=path_id)
        return ok()

    @app.route("/api/career-paths/<path_id>/courses", methods=["POST"], endpoint="add_path_course")
    @login_required
    def add_path_course(path_id: str):
        course_id = json_body().get("course_id")
        if not course_id:
            raise ValidationError("course_id is required")
        careers.add_course(actor_id=current_user_id(), path_id=path_id, course_id=course_id)
        return ok()

    @app.route("/api/career-paths/<path_id>/courses/<course_id>", methods=["DELETE"], endpoint="remove_path_course")
    @login_required
    def remove_path_course(path_id: str, course_id: str):
        careers.remove_course(actor_id=current_user_id(), path_id=path_id, course_id=course_id)
        return ok()

    @app.route("/api/me/career-path", methods=["GET"], endpoint="my_career_path")
    @login_required
    def my_career_path():
        path = careers.get_user_path(container.user_service.get_user(current_user_id()))
        return ok(career_path_to_dict(path) if path else None)
