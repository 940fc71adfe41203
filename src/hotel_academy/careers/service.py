from __future__ import annotations

import logging
import uuid
from typing import Optional, Sequence

from ..common.datetime_utils import now_ms
from ..common.validators import require_non_empty
from ..core.exceptions import NotFoundError, ValidationError
from ..organizations.repository import OrganizationRepository
from ..permissions.resolver import PermissionResolver
from ..users.model import User
from ..users.repository import UserRepository
from .model import CareerPath
from .repository import CareerPathRepository

logger = logging.getLogger(__name__)


class CareerService:
    """Use case: career paths an organization builds for its departments.

    Writes need the manage_structure capability in the path's organization.
    """

    def __init__(self, paths: CareerPathRepository, users: UserRepository, organizations: OrganizationRepository):
        self._paths = paths
        self._users = users
        self._organizations = organizations

    def _require_structure(self, actor_id: str, organization_id: str) -> None:
        org = self._organizations.get_by_id(organization_id)
        if not org:
            raise NotFoundError("Organization not found")
        PermissionResolver(self._users.get_by_id(actor_id), org).require("manage_structure")

    def _path(self, path_id: str) -> CareerPath:
        path = self._paths.get_by_id(path_id)
        if not path:
            raise NotFoundError("Career path not found")
        return path

    def get_path(self, path_id: str) -> CareerPath:
        return self._path(path_id)

    def list_paths(self, organization_id: str) -> Sequence[CareerPath]:
        return self._paths.list_by_organization(organization_id)

    def get_path_by_department(self, organization_id: str, department: str) -> Optional[CareerPath]:
        return self._paths.find_by_department(organization_id, department)

    def create_path(
        self,
        *,
        actor_id: str,
        organization_id: str,
        title: str,
        description: str = "",
        department: Optional[str] = None,
        target_role: str = "",
        course_ids: Sequence[str] = (),
    ) -> CareerPath:
        title = require_non_empty(title, "Title")
        self._require_structure(actor_id, organization_id)
        now = now_ms()
        path = CareerPath(
            path_id=uuid.uuid4().hex,
            organization_id=organization_id,
            title=title,
            description=description or "",
            department=department or None,
            target_role=target_role or "",
            course_ids=list(course_ids),
            created_at=now,
            updated_at=now,
        )
        self._paths.create(path)
        logger.info("career path %s created in %s", path.path_id, organization_id)
        return path

    def update_path(self, *, actor_id: str, path_id: str, fields: dict) -> None:
        path = self._path(path_id)
        self._require_structure(actor_id, path.organization_id)
        if "title" in fields:
            fields = {**fields, "title": require_non_empty(fields["title"], "Title")}
        self._paths.update(path_id, fields, updated_at=now_ms())

    def delete_path(self, *, actor_id: str, path_id: str) -> None:
        """Linked courses stay; other paths may still use them."""
        path = self._path(path_id)
        self._require_structure(actor_id, path.organization_id)
        self._paths.delete(path_id)

    def add_course(self, *, actor_id: str, path_id: str, course_id: str) -> None:
        if not course_id:
            raise ValidationError("Course id is required")
        path = self._path(path_id)
        self._require_structure(actor_id, path.organization_id)
        if not self._paths.update_course_ids(path_id, lambda ids: [*ids, course_id], updated_at=now_ms()):
            raise NotFoundError("Career path not found")

    def remove_course(self, *, actor_id: str, path_id: str, course_id: str) -> None:
        path = self._path(path_id)
        self._require_structure(actor_id, path.organization_id)
        if not self._paths.update_course_ids(
            path_id, lambda ids: [c for c in ids if c != course_id], updated_at=now_ms()
        ):
            raise NotFoundError("Career path not found")

    def get_user_path(self, user: User) -> Optional[CareerPath]:
        """The explicitly assigned path, else the one for the user's department."""
        if user.assigned_path_id:
            path = self._paths.get_by_id(user.assigned_path_id)
            if path:
                return path
        if user.current_organization_id and user.department:
            return self._paths.find_by_department(user.current_organization_id, user.department)
        return None
