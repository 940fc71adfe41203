from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class CareerPath:
    """An ordered list of courses leading to a target role inside one organization."""

    path_id: str
    organization_id: str
    title: str
    description: str = ""
    department: Optional[str] = None
    target_role: str = ""
    course_ids: List[str] = field(default_factory=list)
    created_at: int = 0
    updated_at: int = 0


def career_path_to_dict(p: CareerPath) -> dict:
    return {
        "id": p.path_id,
        "organization_id": p.organization_id,
        "title": p.title,
        "description": p.description,
        "department": p.department,
        "target_role": p.target_role,
        "course_ids": list(p.course_ids),
        "created_at": p.created_at,
        "updated_at": p.updated_at,
    }
