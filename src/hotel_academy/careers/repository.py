from __future__ import annotations

from typing import Callable, List, Optional, Protocol, Sequence

from .model import CareerPath


class CareerPathRepository(Protocol):
    def get_by_id(self, path_id: str) -> Optional[CareerPath]:
        raise NotImplementedError

    def list_by_organization(self, organization_id: str) -> Sequence[CareerPath]:
        raise NotImplementedError

    def find_by_department(self, organization_id: str, department: str) -> Optional[CareerPath]:
        raise NotImplementedError

    def create(self, path: CareerPath) -> str:
        raise NotImplementedError

    def update(self, path_id: str, fields: dict, *, updated_at: int) -> bool:
        raise NotImplementedError

    def update_course_ids(self, path_id: str, fn: Callable[[List[str]], List[str]], *, updated_at: int) -> bool:
        """Read-modify-write of the ordered course list; False when the path does not exist."""

        raise NotImplementedError

    def delete(self, path_id: str) -> bool:
        raise NotImplementedError
