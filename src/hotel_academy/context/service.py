from __future__ import annotations

import logging
import threading
import uuid
from collections import OrderedDict
from dataclasses import replace
from typing import MutableMapping, Optional

from ..core import constants
from ..core.enums import ContextType, PageRole
from ..core.exceptions import AuthenticationError, AuthorizationError, NotFoundError
from ..organizations.model import Membership, Organization
from ..organizations.repository import MembershipRepository, OrganizationRepository
from ..permissions.resolver import ELEVATED_ROLES
from ..users.model import User
from ..users.repository import UserRepository
from .stores import AuthState, ContextState, OrganizationState, SessionStores, StoreSnapshot

logger = logging.getLogger(__name__)

SESSION_ID_KEY = "ctx_sid"
SESSION_STATE_KEY = "ctx_state"


def _organization_role(user: User, org: Organization, membership: Optional[Membership]) -> Optional[str]:
    if membership is not None:
        return membership.role.value
    if user.user_id == org.owner_id:
        return PageRole.ADMIN.value
    if user.role in ELEVATED_ROLES:
        return user.role.value
    return None


def personal_context(user: User, *, is_hydrated: bool = True) -> ContextState:
    return ContextState(
        context_type=ContextType.PERSONAL,
        active_entity_id=user.user_id,
        active_entity_name=user.name,
        active_entity_avatar=user.avatar,
        active_entity_role=None,
        is_hydrated=is_hydrated,
    )


class ContextSwitcher:
    """Moves one session between its personal identity and an organization.

    A switch reads first and writes last: nothing in the stores changes until
    the organization and membership are known, then all three stores change
    in a single commit. A newer switch makes older in-flight ones stale.
    """

    def __init__(
        self,
        stores: SessionStores,
        users: UserRepository,
        organizations: OrganizationRepository,
        memberships: MembershipRepository,
    ):
        self._stores = stores
        self._users = users
        self._organizations = organizations
        self._memberships = memberships

    @property
    def stores(self) -> SessionStores:
        return self._stores

    def _current_user(self) -> User:
        state = self._stores.read().auth
        if not state.is_authenticated or state.current_user is None:
            raise AuthenticationError("Not signed in")
        return state.current_user

    def switch_organization(self, organization_id: str) -> StoreSnapshot:
        user = self._current_user()
        token = self._stores.begin_switch()
        try:
            org = self._organizations.get_by_id(organization_id)
            if org is None:
                raise NotFoundError("Organization not found")
            membership = self._memberships.get(user.user_id, organization_id)
            role = _organization_role(user, org, membership)
            if role is None:
                raise AuthorizationError("Not a member of this organization")
            memberships = tuple(self._memberships.list_for_user(user.user_id))

            with self._stores.lock:
                if not self._stores.is_current(token):
                    logger.info("discarding stale switch of %s to %s", user.user_id, organization_id)
                    return self._stores.read()

                self._users.set_current_organization(user.user_id, organization_id)
                current = self._stores.read()
                auth_user = current.auth.current_user or user
                return self._stores.commit(
                    auth=AuthState(
                        is_authenticated=True,
                        current_user=replace(auth_user, current_organization_id=organization_id),
                    ),
                    organization=OrganizationState(
                        current_organization=org,
                        memberships=memberships,
                        is_loading=False,
                    ),
                    context=ContextState(
                        context_type=ContextType.ORGANIZATION,
                        active_entity_id=org.organization_id,
                        active_entity_name=org.name,
                        active_entity_avatar=org.logo_url,
                        active_entity_role=role,
                        is_hydrated=True,
                    ),
                )
        finally:
            self._stores.end_switch(token)

    def switch_to_personal(self) -> StoreSnapshot:
        user = self._current_user()
        with self._stores.lock:
            self._stores.invalidate()
            current = self._stores.read()
            return self._stores.commit(
                organization=OrganizationState(memberships=current.organization.memberships),
                context=personal_context(user),
            )

    def hydrate(self, user_id: str) -> StoreSnapshot:
        """Sign the session in and reopen the organization the user last worked in."""
        user = self._users.get_by_id(user_id)
        if user is None:
            raise AuthenticationError("User no longer exists")
        memberships = tuple(self._memberships.list_for_user(user.user_id))

        with self._stores.lock:
            current = self._stores.read()
            previous = current.auth.current_user
            if previous is None or previous.user_id != user.user_id:
                # another identity's organization and role never carry over
                self._stores.invalidate()
                current = self._stores.commit(
                    auth=AuthState(), organization=OrganizationState(), context=ContextState()
                )
            context = current.context
            if context.active_entity_id is None:
                context = personal_context(user)
            self._stores.commit(
                auth=AuthState(is_authenticated=True, current_user=user),
                organization=replace(current.organization, memberships=memberships),
                context=replace(context, is_hydrated=True),
            )

        needs_org = self._stores.read().organization.current_organization is None
        if user.current_organization_id and needs_org:
            try:
                self.switch_organization(user.current_organization_id)
            except (NotFoundError, AuthorizationError) as e:
                logger.warning("could not reopen organization %s for %s: %s", user.current_organization_id, user_id, e)
        return self._stores.read()

    def logout(self) -> StoreSnapshot:
        with self._stores.lock:
            self._stores.invalidate()
            return self._stores.commit(auth=AuthState(), organization=OrganizationState(), context=ContextState())

    def snapshot(self) -> dict:
        return self._stores.read().to_dict()


class ContextRegistry:
    """Process-wide map from a session id to that session's stores.

    The Flask session keeps only the id and a small persisted copy of the
    state, so a fresh process can rebuild the stores from the repositories.
    The least recently used stores are evicted past `max_sessions`; an
    evicted session is rebuilt the same way on its next request.
    """

    def __init__(
        self,
        users: UserRepository,
        organizations: OrganizationRepository,
        memberships: MembershipRepository,
        *,
        max_sessions: int = constants.CONTEXT_SESSION_LIMIT,
    ):
        self._users = users
        self._organizations = organizations
        self._memberships = memberships
        self._max_sessions = max(1, max_sessions)
        self._sessions: "OrderedDict[str, SessionStores]" = OrderedDict()
        self._lock = threading.Lock()

    def switcher_for(self, session: MutableMapping) -> ContextSwitcher:
        return ContextSwitcher(self.stores_for(session), self._users, self._organizations, self._memberships)

    def stores_for(self, session: MutableMapping) -> SessionStores:
        sid = session.get(SESSION_ID_KEY)
        if not sid:
            sid = uuid.uuid4().hex
            session[SESSION_ID_KEY] = sid
        with self._lock:
            stores = self._sessions.get(sid)
            if stores is not None:
                self._sessions.move_to_end(sid)
                return stores
            stores = SessionStores(self._restore(session.get(SESSION_STATE_KEY)))
            self._sessions[sid] = stores
            while len(self._sessions) > self._max_sessions:
                evicted, _ = self._sessions.popitem(last=False)
                logger.debug("evicted context stores of session %s", evicted)
            return stores

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def persist(self, session: MutableMapping) -> None:
        stores = self.stores_for(session)
        snap = stores.read()
        user = snap.auth.current_user
        org = snap.organization.current_organization
        ctx = snap.context
        session[SESSION_STATE_KEY] = {
            "user_id": user.user_id if snap.auth.is_authenticated and user else None,
            "organization_id": org.organization_id if org else None,
            "context_type": ctx.context_type.value,
            "active_entity_role": ctx.active_entity_role,
        }

    def drop(self, session: MutableMapping) -> None:
        sid = session.pop(SESSION_ID_KEY, None)
        session.pop(SESSION_STATE_KEY, None)
        if sid:
            with self._lock:
                self._sessions.pop(sid, None)

    def _restore(self, data: Optional[dict]) -> StoreSnapshot:
        if not data or not data.get("user_id"):
            return StoreSnapshot()
        user = self._users.get_by_id(data["user_id"])
        if user is None:
            return StoreSnapshot()

        memberships = tuple(self._memberships.list_for_user(user.user_id))
        org = None
        if data.get("organization_id") and data.get("context_type") == ContextType.ORGANIZATION.value:
            org = self._organizations.get_by_id(data["organization_id"])

        if org is None:
            return StoreSnapshot(
                auth=AuthState(is_authenticated=True, current_user=user),
                organization=OrganizationState(memberships=memberships),
                context=personal_context(user),
            )
        return StoreSnapshot(
            auth=AuthState(is_authenticated=True, current_user=user),
            organization=OrganizationState(current_organization=org, memberships=memberships),
            context=ContextState(
                context_type=ContextType.ORGANIZATION,
                active_entity_id=org.organization_id,
                active_entity_name=org.name,
                active_entity_avatar=org.logo_url,
                active_entity_role=data.get("active_entity_role"),
                is_hydrated=True,
            ),
        )
