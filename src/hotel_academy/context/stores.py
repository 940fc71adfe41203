"""Per-session application state: who is signed in, which organization is
open, and which identity (personal or organization) the UI acts as.

The three stores change together. Readers always get a consistent triple
from `SessionStores.read()`; writers go through `commit()` which replaces
all of them under one lock.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from typing import Callable, List, Optional, Tuple

from ..core.enums import ContextType
from ..organizations.model import Membership, Organization
from ..users.model import User


@dataclass(frozen=True)
class AuthState:
    is_authenticated: bool = False
    current_user: Optional[User] = None


@dataclass(frozen=True)
class OrganizationState:
    current_organization: Optional[Organization] = None
    memberships: Tuple[Membership, ...] = ()
    is_loading: bool = False


@dataclass(frozen=True)
class ContextState:
    context_type: ContextType = ContextType.PERSONAL
    active_entity_id: Optional[str] = None
    active_entity_name: Optional[str] = None
    active_entity_avatar: Optional[str] = None
    active_entity_role: Optional[str] = None
    is_hydrated: bool = False


@dataclass(frozen=True)
class StoreSnapshot:
    auth: AuthState = field(default_factory=AuthState)
    organization: OrganizationState = field(default_factory=OrganizationState)
    context: ContextState = field(default_factory=ContextState)

    def to_dict(self) -> dict:
        user = self.auth.current_user
        org = self.organization.current_organization
        return {
            "auth": {
                "is_authenticated": self.auth.is_authenticated,
                "user_id": user.user_id if user else None,
                "current_organization_id": user.current_organization_id if user else None,
            },
            "organization": {
                "organization_id": org.organization_id if org else None,
                "name": org.name if org else None,
                "memberships": [
                    {"organization_id": m.organization_id, "role": m.role.value} for m in self.organization.memberships
                ],
                "is_loading": self.organization.is_loading,
            },
            "context": {
                "context_type": self.context.context_type.value,
                "active_entity_id": self.context.active_entity_id,
                "active_entity_name": self.context.active_entity_name,
                "active_entity_avatar": self.context.active_entity_avatar,
                "active_entity_role": self.context.active_entity_role,
                "is_hydrated": self.context.is_hydrated,
            },
        }


Listener = Callable[[StoreSnapshot], None]


class SessionStores:
    def __init__(self, snapshot: Optional[StoreSnapshot] = None):
        self._state = snapshot or StoreSnapshot()
        self._token = 0
        self._listeners: List[Listener] = []
        self.lock = threading.RLock()

    def read(self) -> StoreSnapshot:
        with self.lock:
            return self._state

    @property
    def token(self) -> int:
        with self.lock:
            return self._token

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        with self.lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self.lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def commit(
        self,
        *,
        auth: Optional[AuthState] = None,
        organization: Optional[OrganizationState] = None,
        context: Optional[ContextState] = None,
    ) -> StoreSnapshot:
        with self.lock:
            current = self._state
            self._state = StoreSnapshot(
                auth=auth if auth is not None else current.auth,
                organization=organization if organization is not None else current.organization,
                context=context if context is not None else current.context,
            )
            snapshot = self._state
            listeners = list(self._listeners)
        for listener in listeners:
            listener(snapshot)
        return snapshot

    def begin_switch(self) -> int:
        """Mark the organization store loading and hand out a fresh switch token."""
        with self.lock:
            self._token += 1
            self.commit(organization=replace(self._state.organization, is_loading=True))
            return self._token

    def is_current(self, token: int) -> bool:
        with self.lock:
            return token == self._token

    def end_switch(self, token: int) -> None:
        """Clear loading, unless a newer switch still owns the flag."""
        with self.lock:
            org = self._state.organization
            if token == self._token and org.is_loading:
                self.commit(organization=replace(org, is_loading=False))

    def invalidate(self) -> None:
        """Make every in-flight switch stale."""
        with self.lock:
            self._token += 1
