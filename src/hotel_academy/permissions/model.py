from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any, Mapping, Optional

from ..core.enums import ContentTargetingScope


@dataclass(frozen=True)
class RolePermissions:
    """Capability flags attached to a position (or implied by ownership)."""

    admin_access: bool = False
    manage_structure: bool = False
    manage_staff: bool = False
    view_analytics: bool = False
    can_create_content: bool = False
    content_targeting: ContentTargetingScope = ContentTargetingScope.NONE
    can_post_feed: bool = True
    can_approve_requests: bool = False

    def get(self, key: str) -> Any:
        if key not in PERMISSION_KEYS:
            raise KeyError(key)
        return getattr(self, key)

    def to_dict(self) -> dict:
        d = asdict(self)
        d["content_targeting"] = self.content_targeting.value
        return d

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> Optional["RolePermissions"]:
        """Read a stored or submitted prototype. A key it leaves out is not granted."""
        if data is None:
            return None
        values: dict = {k: bool(data.get(k, False)) for k in BOOLEAN_KEYS}
        values["content_targeting"] = ContentTargetingScope(data.get("content_targeting", ContentTargetingScope.NONE))
        return cls(**values)


PERMISSION_KEYS = tuple(f.name for f in fields(RolePermissions))
BOOLEAN_KEYS = tuple(k for k in PERMISSION_KEYS if k != "content_targeting")

DEFAULT_PERMISSIONS = RolePermissions()

OWNER_PERMISSIONS = RolePermissions(
    admin_access=True,
    manage_structure=True,
    manage_staff=True,
    view_analytics=True,
    can_create_content=True,
    content_targeting=ContentTargetingScope.ENTIRE_ORG,
    can_post_feed=True,
    can_approve_requests=True,
)
