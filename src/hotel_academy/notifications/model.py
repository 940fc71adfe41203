from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

NOTIFICATION_SYSTEM = "system"
NOTIFICATION_INVITE = "INVITE"


@dataclass(frozen=True)
class Notification:
    notification_id: Optional[int]
    user_id: str
    title: str
    message: str = ""
    link: Optional[str] = None
    type: str = NOTIFICATION_SYSTEM
    is_read: bool = False
    created_at: int = 0


def invite_link(organization_id: str) -> str:
    return f"/org/{organization_id}"


def organization_from_link(link: Optional[str]) -> Optional[str]:
    """'/org/<id>' -> '<id>'; anything else -> None."""
    if not link or "/org/" not in link:
        return None
    org_id = link.split("/org/", 1)[1].strip("/")
    return org_id or None


def notification_to_dict(n: Notification) -> dict:
    return {
        "id": n.notification_id,
        "type": n.type,
        "title": n.title,
        "message": n.message,
        "link": n.link,
        "is_read": n.is_read,
        "created_at": n.created_at,
    }
