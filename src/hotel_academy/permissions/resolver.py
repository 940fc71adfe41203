from __future__ import annotations

from typing import Any, List, Optional, Sequence, Union

from ..core.enums import ContentTargetingScope, UserRole
from ..core.exceptions import AuthorizationError
from ..organizations.model import Organization, Position
from ..users.model import User
from .model import DEFAULT_PERMISSIONS, OWNER_PERMISSIONS, PERMISSION_KEYS, RolePermissions

PermissionValue = Union[bool, ContentTargetingScope]

ELEVATED_ROLES = {UserRole.ADMIN, UserRole.SUPER_ADMIN}


class PermissionResolver:
    """Effective capabilities of one user inside one organization.

    Precedence, first match wins:
      1. no user or no organization: nothing is allowed
      2. the organization owner: everything (targeting ENTIRE_ORG)
      3. platform admin / super_admin: everything (targeting ENTIRE_ORG)
      4. position prototype whose title equals the user's role title
      5. DEFAULT_PERMISSIONS
    """

    def __init__(self, user: Optional[User], organization: Optional[Organization]):
        self._user = user
        self._org = organization

    def check(self, key: str) -> PermissionValue:
        if key not in PERMISSION_KEYS:
            raise KeyError(key)

        user, org = self._user, self._org
        if not user or not org:
            return False

        if user.user_id == org.owner_id or user.role in ELEVATED_ROLES:
            return OWNER_PERMISSIONS.get(key)

        proto = self._prototype()
        if proto is not None:
            return proto.get(key)

        return DEFAULT_PERMISSIONS.get(key)

    def _prototype(self) -> Optional[RolePermissions]:
        user, org = self._user, self._org
        if not user.position_id or not org.definitions or not org.definitions.position_prototypes:
            return None
        match = next((p for p in org.definitions.position_prototypes if p.title == user.role_title), None)
        if match is None:
            return None
        return match.permissions

    def can(self, key: str) -> bool:
        # The targeting scope is never a yes/no capability.
        return self.check(key) is True

    def scope(self) -> ContentTargetingScope:
        value = self.check("content_targeting")
        if isinstance(value, ContentTargetingScope):
            return value
        return ContentTargetingScope.NONE

    def permissions(self) -> RolePermissions:
        """All keys resolved through the same precedence as `check`."""
        values: dict[str, Any] = {}
        for key in PERMISSION_KEYS:
            value = self.check(key)
            if key == "content_targeting":
                values[key] = value if isinstance(value, ContentTargetingScope) else ContentTargetingScope.NONE
            else:
                values[key] = value is True
        return RolePermissions(**values)

    def require(self, key: str) -> None:
        if not self.can(key):
            raise AuthorizationError(f"Missing permission: {key}")


def descendant_positions(root_id: str, positions: Sequence[Position]) -> List[str]:
    """Ids below root_id: direct children (input order), then each child's subtree."""
    return _descendants(root_id, positions, {root_id})


def _descendants(parent_id: str, positions: Sequence[Position], seen: set) -> List[str]:
    children = [p.position_id for p in positions if p.parent_id == parent_id and p.position_id not in seen]
    seen.update(children)
    out = list(children)
    for child_id in children:
        out.extend(_descendants(child_id, positions, seen))
    return out


def resolve_audience(
    scope: ContentTargetingScope,
    *,
    author: User,
    staff: Sequence[User],
    positions: Sequence[Position] = (),
) -> List[str]:
    """User ids that content authored under `scope` may be targeted at."""
    if scope == ContentTargetingScope.NONE:
        return []

    if scope == ContentTargetingScope.ENTIRE_ORG:
        return [u.user_id for u in staff]

    if scope == ContentTargetingScope.OWN_DEPT:
        if not author.department:
            return []
        return [u.user_id for u in staff if u.department == author.department]

    # BELOW_HIERARCHY
    if not author.position_id:
        return []
    below = set(descendant_positions(author.position_id, positions))
    occupants = {p.occupant_id for p in positions if p.position_id in below and p.occupant_id}
    by_position = {u.user_id for u in staff if u.position_id in below}
    wanted = occupants | by_position
    return [u.user_id for u in staff if u.user_id in wanted]
