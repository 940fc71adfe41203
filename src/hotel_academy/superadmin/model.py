from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from ..users.model import User

USER_FILTERS = ("ALL", "BANNED", "MANAGERS")


@dataclass(frozen=True)
class SystemSettings:
    login_screen_image: str = ""


@dataclass(frozen=True)
class UserPage:
    users: List[User] = field(default_factory=list)
    next_cursor: Optional[str] = None


def settings_to_dict(s: SystemSettings) -> dict:
    return {"login_screen_image": s.login_screen_image}


def settings_from_dict(d: Optional[dict]) -> SystemSettings:
    d = d or {}
    return SystemSettings(login_screen_image=str(d.get("login_screen_image") or ""))
