from __future__ import annotations

from typing import Any, Optional, Protocol


class SettingsRepository(Protocol):
    """Key/value store for platform-wide settings; values are JSON documents."""

    def get(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    def put(self, key: str, value: Any) -> None:
        raise NotImplementedError
