from __future__ import annotations

import threading
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional, Sequence

from hotel_academy.container import Container, Repositories, assemble_container
from hotel_academy.core.enums import (
    ContentTier,
    OrganizationStatus,
    PageRole,
    RelationshipStatus,
    RequestStatus,
    TargetType,
    UserStatus,
    VerificationStatus,
    Visibility,
)
from hotel_academy.core.exceptions import NotFoundError
from hotel_academy.analytics.model import AnalyticsEvent
from hotel_academy.careers.model import CareerPath
from hotel_academy.courses.model import Course, ReviewOutcome
from hotel_academy.notifications.model import Notification
from hotel_academy.organizations.model import (
    Channel,
    JoinRequest,
    MemberJoin,
    Membership,
    Organization,
    OrgDefinitions,
    OrganizationSettings,
    Position,
)
from hotel_academy.permissions.model import RolePermissions
from hotel_academy.search.model import SearchTrend
from hotel_academy.social.model import FollowResult, Relationship, follow_status
from hotel_academy.users.model import CourseProgress, SkillMetric, User, UserSkillProfile

PROFILE_FIELDS = {"name", "avatar", "bio", "email", "phone_number", "department", "role_title", "is_private", "show_in_search"}
COURSE_FIELDS = {"title", "description", "tags", "topics", "thumbnail_url", "duration", "xp_reward", "priority", "price", "is_new", "popularity_score"}


def _union(values: Sequence[Any], *items: Any) -> List[Any]:
    out = list(values)
    for item in items:
        if item not in out:
            out.append(item)
    return out


def _remove(values: Sequence[Any], *items: Any) -> List[Any]:
    return [v for v in values if v not in items]


class InMemoryUsers:
    def __init__(self, *users: User):
        self.users: Dict[str, User] = {u.user_id: u for u in users}
        self.skills: Dict[str, Dict[str, SkillMetric]] = {}
        self.skill_lock = threading.Lock()

    def add(self, user: User) -> User:
        self.users[user.user_id] = user
        return user

    def _change(self, user_id: str, **fields) -> bool:
        user = self.users.get(user_id)
        if not user:
            return False
        self.users[user_id] = replace(user, **fields)
        return True

    def get_by_id(self, user_id: str) -> Optional[User]:
        return self.users.get(user_id)

    def get_by_username(self, username: str) -> Optional[User]:
        return next((u for u in self.users.values() if u.username == username), None)

    def list_by_ids(self, user_ids: Sequence[str]) -> Sequence[User]:
        return [self.users[i] for i in user_ids if i in self.users]

    def list_searchable(self, *, limit: int) -> Sequence[User]:
        return [u for u in self.users.values() if u.show_in_search][:limit]

    def list_by_organization(self, organization_id: str) -> Sequence[User]:
        return [u for u in self.users.values() if organization_id in u.joined_page_ids]

    def list_by_department(self, *, organization_id: str, department: Optional[str]) -> Sequence[User]:
        if department is None:
            return self.list_by_organization(organization_id)
        return [
            u
            for u in self.users.values()
            if u.current_organization_id == organization_id and u.department == department
        ]

    def list_page(
        self,
        *,
        after: Optional[tuple],
        limit: int,
        search_term: str = "",
        search_field: str = "name",
        status: Optional[UserStatus] = None,
        roles: Sequence[str] = (),
    ) -> Sequence[User]:
        users = list(self.users.values())
        if search_term:
            column = "phone_number" if search_field == "phone_number" else "name"
            users = [u for u in users if (getattr(u, column) or "").startswith(search_term)]
            users.sort(key=lambda u: (getattr(u, column) or "", u.user_id))
            if after:
                users = [u for u in users if ((getattr(u, column) or ""), u.user_id) > (after[0], after[1])]
        else:
            if status is not None:
                users = [u for u in users if u.status == status]
            if roles:
                users = [u for u in users if u.role.value in roles]
            users.sort(key=lambda u: (u.join_date, u.user_id), reverse=True)
            if after:
                users = [u for u in users if (u.join_date, u.user_id) < (int(after[0]), after[1])]
        return users[:limit]

    def create_user(self, user: User) -> str:
        self.users[user.user_id] = user
        return user.user_id

    def update_profile(self, user_id: str, fields: dict) -> bool:
        data = {k: v for k, v in fields.items() if k in PROFILE_FIELDS}
        return bool(data) and self._change(user_id, **data)

    def set_status(self, user_id: str, status: UserStatus) -> bool:
        return self._change(user_id, status=status)

    def delete_by_id(self, user_id: str) -> bool:
        self.skills.pop(user_id, None)
        return self.users.pop(user_id, None) is not None

    def add_xp(self, user_id: str, amount: int) -> None:
        user = self.users.get(user_id)
        if user:
            self._change(user_id, xp=user.xp + amount)

    def set_current_organization(self, user_id: str, organization_id: Optional[str]) -> bool:
        return self._change(user_id, current_organization_id=organization_id)

    def set_saved_course(self, user_id: str, course_id: str, *, saved: bool) -> bool:
        user = self.users.get(user_id)
        if not user:
            return False
        op = _union if saved else _remove
        return self._change(user_id, saved_courses=op(user.saved_courses, course_id))

    def set_followed_tag(self, user_id: str, tag: str, *, following: bool) -> bool:
        user = self.users.get(user_id)
        if not user:
            return False
        op = _union if following else _remove
        return self._change(user_id, followed_tags=op(user.followed_tags, tag))

    def set_channel_subscriptions(self, user_id: str, channel_ids: Sequence[str]) -> bool:
        return self._change(user_id, channel_subscriptions=list(channel_ids))

    def set_assigned_path(self, user_id: str, path_id: Optional[str]) -> bool:
        return self._change(user_id, assigned_path_id=path_id)

    def save_progress(self, user_id: str, progress: CourseProgress) -> None:
        user = self.users[user_id]
        self._change(
            user_id,
            progress_map={**user.progress_map, progress.course_id: progress},
            started_courses=_union(user.started_courses, progress.course_id),
        )

    def complete_course(self, user_id: str, progress: CourseProgress, *, earned_xp: int) -> None:
        user = self.users[user_id]
        self._change(
            user_id,
            progress_map={**user.progress_map, progress.course_id: progress},
            completed_courses=_union(user.completed_courses, progress.course_id),
            xp=user.xp + earned_xp,
        )

    def get_skill_profile(self, user_id: str) -> Optional[UserSkillProfile]:
        if user_id not in self.skills:
            return None
        return UserSkillProfile(user_id=user_id, skills=dict(self.skills[user_id]))

    def add_skill(self, user_id: str, topic: str, metric: SkillMetric) -> None:
        self.skills.setdefault(user_id, {})[topic] = metric

    def update_skill(self, user_id: str, topic: str, fn, *, initial: SkillMetric) -> SkillMetric:
        with self.skill_lock:
            topics = self.skills.setdefault(user_id, {})
            topics[topic] = fn(topics.get(topic, initial))
            return topics[topic]


class InMemoryOrganizations:
    def __init__(self, users: InMemoryUsers, *orgs: Organization):
        self.users = users
        self.orgs: Dict[str, Organization] = {o.organization_id: o for o in orgs}
        self.memberships: Optional["InMemoryMemberships"] = None

    def add(self, org: Organization) -> Organization:
        self.orgs[org.organization_id] = org
        return org

    def get_by_id(self, organization_id: str) -> Optional[Organization]:
        return self.orgs.get(organization_id)

    def list_by_ids(self, organization_ids: Sequence[str]) -> Sequence[Organization]:
        return [self.orgs[i] for i in organization_ids if i in self.orgs]

    def list_recent(self, *, limit: int) -> Sequence[Organization]:
        return sorted(self.orgs.values(), key=lambda o: o.created_at, reverse=True)[:limit]

    def list_owned_by(self, user_id: str) -> Sequence[Organization]:
        return [o for o in self.orgs.values() if o.owner_id == user_id]

    def list_managed_by(self, user_id: str) -> Sequence[Organization]:
        return [o for o in self.orgs.values() if user_id in o.admins]

    def create_organization(self, org: Organization, *, owner_membership: Membership) -> None:
        self.orgs[org.organization_id] = org
        if self.memberships is not None:
            self.memberships.items[owner_membership.membership_id] = owner_membership
        _join_user(
            self.users,
            user_id=org.owner_id,
            organization_id=org.organization_id,
            role=owner_membership.role,
            channel_ids=org.mandatory_channel_ids,
        )
        owner = self.users.users[org.owner_id]
        self.users.users[org.owner_id] = replace(
            owner, managed_page_ids=_union(owner.managed_page_ids, org.organization_id)
        )

    def update_details(self, organization_id: str, fields: dict) -> bool:
        org = self.orgs.get(organization_id)
        if not org:
            return False
        data = {k: v for k, v in fields.items() if k in {"name", "sector", "logo_url", "location", "description", "type"}}
        if fields.get("settings") is not None:
            data["settings"] = OrganizationSettings(**{k: v for k, v in fields["settings"].items() if k in ("allow_staff_content_creation", "primary_color")})
        if not data:
            return False
        self.orgs[organization_id] = replace(org, **data)
        return True

    def add_channel(self, organization_id: str, channel: Channel) -> bool:
        org = self.orgs.get(organization_id)
        if not org:
            return False
        self.orgs[organization_id] = replace(org, channels=[*org.channels, channel])
        return True

    def remove_channel(self, organization_id: str, channel_id: str) -> bool:
        org = self.orgs.get(organization_id)
        if not org:
            return False
        self.orgs[organization_id] = replace(org, channels=[c for c in org.channels if c.channel_id != channel_id])
        return True

    def save_definitions(self, organization_id: str, definitions: OrgDefinitions) -> bool:
        org = self.orgs.get(organization_id)
        if not org:
            return False
        self.orgs[organization_id] = replace(org, definitions=definitions)
        return True

    def request_deletion(self, organization_id: str, reason: str) -> bool:
        org = self.orgs.get(organization_id)
        if not org:
            return False
        self.orgs[organization_id] = replace(org, status=OrganizationStatus.PENDING_DELETION, deletion_reason=reason)
        return True


def _join_user(users: InMemoryUsers, *, user_id: str, organization_id: str, role: PageRole, channel_ids) -> None:
    user = users.users[user_id]
    users.users[user_id] = replace(
        user,
        current_organization_id=organization_id,
        joined_page_ids=_union(user.joined_page_ids, organization_id),
        organization_history=_union(user.organization_history, organization_id),
        channel_subscriptions=_union(user.channel_subscriptions, *channel_ids),
        page_roles={**user.page_roles, organization_id: role},
    )


class InMemoryMemberships:
    def __init__(self, users: InMemoryUsers, organizations: InMemoryOrganizations, requests: "InMemoryJoinRequests", notifications: "InMemoryNotifications"):
        self.items: Dict[str, Membership] = {}
        self._users = users
        self._orgs = organizations
        self._requests = requests
        self._notifications = notifications
        organizations.memberships = self

    def add(self, membership: Membership) -> Membership:
        self.items[membership.membership_id] = membership
        return membership

    def get(self, user_id: str, organization_id: str) -> Optional[Membership]:
        return self.items.get(Membership.make_id(user_id, organization_id))

    def list_for_user(self, user_id: str) -> Sequence[Membership]:
        return sorted((m for m in self.items.values() if m.user_id == user_id), key=lambda m: m.joined_at)

    def update_role(self, user_id: str, organization_id: str, role: PageRole) -> bool:
        m = self.get(user_id, organization_id)
        if not m:
            return False
        self.items[m.membership_id] = replace(m, role=role)
        user = self._users.users.get(user_id)
        if user:
            self._users.users[user_id] = replace(user, page_roles={**user.page_roles, organization_id: role})
        return True

    def apply_member_join(self, join: MemberJoin) -> None:
        org = self._orgs.orgs.get(join.organization_id)
        if not org:
            raise NotFoundError("Organization not found")

        self.add(
            Membership(
                membership_id=Membership.make_id(join.user_id, join.organization_id),
                user_id=join.user_id,
                organization_id=join.organization_id,
                role=join.role,
                department=join.department,
                joined_at=join.joined_at,
            )
        )
        _join_user(
            self._users,
            user_id=join.user_id,
            organization_id=join.organization_id,
            role=join.role,
            channel_ids=join.mandatory_channel_ids,
        )
        user = self._users.users[join.user_id]
        self._users.users[join.user_id] = replace(
            user,
            department=join.department or user.department,
            role_title=join.role_title or user.role_title,
            position_id=join.position_id or user.position_id,
        )
        self._orgs.orgs[join.organization_id] = replace(
            org, member_count=org.member_count + 1, members=_union(org.members, join.user_id)
        )
        if join.request_id is not None:
            self._requests.set_status(join.request_id, RequestStatus.APPROVED)
        if join.notification_id is not None:
            self._notifications.delete(join.notification_id, join.user_id)


class InMemoryJoinRequests:
    def __init__(self):
        self.items: Dict[int, JoinRequest] = {}
        self._id = 0

    def get(self, request_id: int) -> Optional[JoinRequest]:
        return self.items.get(int(request_id))

    def find_pending(self, user_id: str, organization_id: str) -> Optional[JoinRequest]:
        return next(
            (
                r
                for r in self.items.values()
                if r.user_id == user_id and r.organization_id == organization_id and r.status == RequestStatus.PENDING
            ),
            None,
        )

    def create(self, request: JoinRequest) -> int:
        self._id += 1
        self.items[self._id] = replace(request, request_id=self._id)
        return self._id

    def list_pending_for_user(self, user_id: str) -> Sequence[JoinRequest]:
        items = [r for r in self.items.values() if r.user_id == user_id and r.status == RequestStatus.PENDING]
        return sorted(items, key=lambda r: r.created_at, reverse=True)

    def list_pending_for_org(self, organization_id: str, *, department: Optional[str] = None) -> Sequence[JoinRequest]:
        items = [
            r
            for r in self.items.values()
            if r.organization_id == organization_id
            and r.status == RequestStatus.PENDING
            and (department is None or r.target_department == department)
        ]
        return sorted(items, key=lambda r: r.created_at)

    def set_status(self, request_id: int, status: RequestStatus) -> bool:
        r = self.items.get(int(request_id))
        if not r:
            return False
        self.items[r.request_id] = replace(r, status=status)
        return True

    def delete(self, request_id: int) -> bool:
        return self.items.pop(int(request_id), None) is not None


class InMemoryPositions:
    def __init__(self):
        self.items: Dict[str, Position] = {}

    def list_by_organization(self, organization_id: str) -> Sequence[Position]:
        items = [p for p in self.items.values() if p.organization_id == organization_id]
        return sorted(items, key=lambda p: (p.level, p.title))

    def create(self, position: Position) -> str:
        self.items[position.position_id] = position
        return position.position_id

    def delete(self, position_id: str) -> bool:
        return self.items.pop(position_id, None) is not None

    def update_permissions(self, position_id: str, permissions: RolePermissions) -> bool:
        p = self.items.get(position_id)
        if not p:
            return False
        self.items[position_id] = replace(p, permissions=permissions)
        return True


class InMemoryNotifications:
    def __init__(self):
        self.items: Dict[int, Notification] = {}
        self._id = 0

    def add(self, notification: Notification) -> int:
        self._id += 1
        self.items[self._id] = replace(notification, notification_id=self._id)
        return self._id

    def get(self, notification_id: int) -> Optional[Notification]:
        return self.items.get(int(notification_id))

    def create_many(self, notifications: Sequence[Notification]) -> int:
        for n in notifications:
            self.add(n)
        return len(notifications)

    def list_for_user(self, user_id: str, *, type: Optional[str] = None) -> Sequence[Notification]:
        items = [n for n in self.items.values() if n.user_id == user_id and (type is None or n.type == type)]
        return sorted(items, key=lambda n: n.created_at, reverse=True)

    def mark_read(self, notification_id: int, user_id: str) -> bool:
        n = self.items.get(int(notification_id))
        if not n or n.user_id != user_id:
            return False
        self.items[n.notification_id] = replace(n, is_read=True)
        return True

    def delete(self, notification_id: int, user_id: str) -> bool:
        n = self.items.get(int(notification_id))
        if not n or n.user_id != user_id:
            return False
        del self.items[n.notification_id]
        return True


class InMemoryCourses:
    def __init__(self, users: InMemoryUsers, *courses: Course):
        self.users = users
        self.items: Dict[str, Course] = {c.course_id: c for c in courses}
        self.find_calls: List[dict] = []

    def add(self, course: Course) -> Course:
        self.items[course.course_id] = course
        return course

    def get_by_id(self, course_id: str) -> Optional[Course]:
        return self.items.get(course_id)

    def list_by_ids(self, course_ids: Sequence[str]) -> Sequence[Course]:
        return [self.items[i] for i in course_ids if i in self.items]

    def find(
        self,
        *,
        author_ids: Sequence[str] = (),
        organization_ids: Sequence[str] = (),
        visibilities: Sequence[Visibility] = (),
        tiers: Sequence[ContentTier] = (),
        verification_status: Optional[VerificationStatus] = None,
        tags_any: Sequence[str] = (),
        topics_any: Sequence[str] = (),
        channels_any: Sequence[str] = (),
        limit: Optional[int] = None,
    ) -> Sequence[Course]:
        self.find_calls.append(
            {
                "author_ids": list(author_ids),
                "organization_ids": list(organization_ids),
                "tags_any": list(tags_any),
                "topics_any": list(topics_any),
                "channels_any": list(channels_any),
            }
        )
        out = []
        for c in self.items.values():
            if author_ids and c.author_id not in author_ids:
                continue
            if organization_ids and c.organization_id not in organization_ids:
                continue
            if visibilities and c.visibility not in visibilities:
                continue
            if tiers and c.tier not in tiers:
                continue
            if verification_status is not None and c.verification_status != verification_status:
                continue
            if tags_any and not set(tags_any) & set(c.tags):
                continue
            if topics_any and not set(topics_any) & set(c.topics):
                continue
            if channels_any and not any(c.in_channel(ch) for ch in channels_any):
                continue
            out.append(c)
        return out if limit is None else out[:limit]

    def create(self, course: Course) -> str:
        self.items[course.course_id] = course
        return course.course_id

    def update(self, course_id: str, fields: dict) -> bool:
        course = self.items.get(course_id)
        data = {k: v for k, v in fields.items() if k in COURSE_FIELDS}
        if not course or not data:
            return False
        self.items[course_id] = replace(course, **data)
        return True

    def delete(self, course_id: str) -> bool:
        return self.items.pop(course_id, None) is not None

    def apply_review(self, course_id: str, outcome: ReviewOutcome, *, flag_threshold: int) -> bool:
        course = self.items.get(course_id)
        if not course:
            return False
        flags = course.flag_count + outcome.flag_delta
        status = course.verification_status
        if outcome.flag_delta > 0 and flags >= flag_threshold:
            status = VerificationStatus.UNDER_REVIEW
        self.items[course_id] = replace(course, quality_score=outcome.rating, flag_count=flags, verification_status=status)
        author = self.users.users.get(outcome.author_id) if outcome.author_id else None
        if author:
            self.users.users[author.user_id] = replace(
                author,
                reputation_points=author.reputation_points + outcome.reputation_delta,
                xp=author.xp + outcome.xp_delta,
            )
        return True


class InMemoryCareerPaths:
    def __init__(self, *paths: CareerPath):
        self.items: Dict[str, CareerPath] = {p.path_id: p for p in paths}

    def add(self, path: CareerPath) -> CareerPath:
        self.items[path.path_id] = path
        return path

    def get_by_id(self, path_id: str) -> Optional[CareerPath]:
        return self.items.get(path_id)

    def list_by_organization(self, organization_id: str) -> Sequence[CareerPath]:
        items = [p for p in self.items.values() if p.organization_id == organization_id]
        return sorted(items, key=lambda p: p.updated_at, reverse=True)

    def find_by_department(self, organization_id: str, department: str) -> Optional[CareerPath]:
        return next(
            (p for p in self.items.values() if p.organization_id == organization_id and p.department == department),
            None,
        )

    def create(self, path: CareerPath) -> str:
        self.items[path.path_id] = path
        return path.path_id

    def update(self, path_id: str, fields: dict, *, updated_at: int) -> bool:
        path = self.items.get(path_id)
        if not path:
            return False
        data = {k: v for k, v in fields.items() if k in {"title", "description", "department", "target_role", "course_ids"}}
        self.items[path_id] = replace(path, updated_at=updated_at, **data)
        return True

    def update_course_ids(self, path_id: str, fn: Callable[[List[str]], List[str]], *, updated_at: int) -> bool:
        path = self.items.get(path_id)
        if not path:
            return False
        self.items[path_id] = replace(path, course_ids=list(fn(list(path.course_ids))), updated_at=updated_at)
        return True

    def delete(self, path_id: str) -> bool:
        return self.items.pop(path_id, None) is not None


class InMemoryRelationships:
    def __init__(self, users: InMemoryUsers, organizations: InMemoryOrganizations):
        self.items: Dict[tuple, Relationship] = {}
        self._users = users
        self._orgs = organizations
        self._id = 0

    def _apply(self, follower_id: str, target_id: str, target_type: TargetType, delta: int) -> None:
        op = _union if delta > 0 else _remove
        follower = self._users.users.get(follower_id)
        if follower:
            if target_type == TargetType.USER:
                follower = replace(follower, following_users=op(follower.following_users, target_id))
            else:
                follower = replace(follower, following_pages=op(follower.following_pages, target_id))
            self._users.users[follower_id] = replace(follower, following_count=max(follower.following_count + delta, 0))
        if target_type == TargetType.USER:
            target = self._users.users[target_id]
            self._users.users[target_id] = replace(
                target,
                followers=op(target.followers, follower_id),
                followers_count=max(target.followers_count + delta, 0),
            )
        else:
            org = self._orgs.orgs[target_id]
            self._orgs.orgs[target_id] = replace(
                org,
                followers=op(org.followers, follower_id),
                followers_count=max(org.followers_count + delta, 0),
            )

    def get(self, follower_id: str, following_id: str) -> Optional[Relationship]:
        return self.items.get((follower_id, following_id))

    def follow(self, follower_id: str, target_id: str, target_type: TargetType, *, created_at: int) -> FollowResult:
        if target_type == TargetType.USER:
            target = self._users.users.get(target_id)
            private = bool(target and target.is_private)
        else:
            target = self._orgs.orgs.get(target_id)
            private = False
        if not target:
            raise NotFoundError("Target not found")

        existing = self.get(follower_id, target_id)
        if existing:
            return FollowResult(status=follow_status(existing.status), success=False)

        status = RelationshipStatus.PENDING if private else RelationshipStatus.ACCEPTED
        self._id += 1
        self.items[(follower_id, target_id)] = Relationship(
            relationship_id=self._id,
            follower_id=follower_id,
            following_id=target_id,
            target_type=target_type,
            status=status,
            created_at=created_at,
        )
        if status == RelationshipStatus.ACCEPTED:
            self._apply(follower_id, target_id, target_type, 1)
        return FollowResult(status=follow_status(status), success=True)

    def unfollow(self, follower_id: str, target_id: str, target_type: TargetType) -> bool:
        rel = self.items.pop((follower_id, target_id), None)
        if not rel:
            return False
        if rel.status == RelationshipStatus.ACCEPTED:
            self._apply(follower_id, target_id, rel.target_type, -1)
        return True

    def accept(self, follower_id: str, user_id: str) -> bool:
        rel = self.items.get((follower_id, user_id))
        if not rel or rel.status != RelationshipStatus.PENDING:
            return False
        self.items[(follower_id, user_id)] = replace(rel, status=RelationshipStatus.ACCEPTED)
        self._apply(follower_id, user_id, rel.target_type, 1)
        return True

    def list_pending_for(self, user_id: str) -> Sequence[Relationship]:
        return [r for r in self.items.values() if r.following_id == user_id and r.status == RelationshipStatus.PENDING]


class InMemoryPostLikes:
    def __init__(self, *post_ids: str):
        self.likes_count: Dict[str, int] = {p: 0 for p in post_ids}
        self.likes: set = set()

    def set_like(self, post_id: str, user_id: str, *, liked: bool, created_at: int) -> bool:
        if post_id not in self.likes_count:
            raise NotFoundError("Post not found")
        key = (post_id, user_id)
        if liked == (key in self.likes):
            return False
        if liked:
            self.likes.add(key)
            self.likes_count[post_id] += 1
        else:
            self.likes.discard(key)
            self.likes_count[post_id] = max(self.likes_count[post_id] - 1, 0)
        return True

    def has_liked(self, post_id: str, user_id: str) -> bool:
        return (post_id, user_id) in self.likes


class InMemorySearchTrends:
    def __init__(self, *trends: SearchTrend):
        self.items: Dict[str, SearchTrend] = {t.term: t for t in trends}
        self.fail = False

    def top(self, *, limit: int) -> Sequence[SearchTrend]:
        if self.fail:
            raise RuntimeError("trends unavailable")
        return sorted(self.items.values(), key=lambda t: t.count, reverse=True)[:limit]

    def increment(self, term: str, *, searched_at: int) -> None:
        current = self.items.get(term)
        count = current.count + 1 if current else 1
        self.items[term] = SearchTrend(term=term, count=count, last_searched_at=searched_at)


class InMemoryAnalyticsEvents:
    def __init__(self):
        self.items: List[AnalyticsEvent] = []

    def append(self, event: AnalyticsEvent) -> int:
        event_id = len(self.items) + 1
        self.items.append(replace(event, event_id=event_id))
        return event_id

    def list_recent(self, organization_id: str, *, limit: int) -> Sequence[AnalyticsEvent]:
        items = [e for e in self.items if e.page_id == organization_id]
        return sorted(items, key=lambda e: e.timestamp, reverse=True)[:limit]


class InMemorySettings:
    def __init__(self):
        self.items: Dict[str, Any] = {}

    def get(self, key: str) -> Optional[Any]:
        return self.items.get(key)

    def put(self, key: str, value: Any) -> None:
        self.items[key] = value


def make_repositories(*post_ids: str) -> Repositories:
    users = InMemoryUsers()
    organizations = InMemoryOrganizations(users)
    join_requests = InMemoryJoinRequests()
    notifications = InMemoryNotifications()
    memberships = InMemoryMemberships(users, organizations, join_requests, notifications)
    return Repositories(
        users=users,
        organizations=organizations,
        memberships=memberships,
        join_requests=join_requests,
        positions=InMemoryPositions(),
        notifications=notifications,
        courses=InMemoryCourses(users),
        career_paths=InMemoryCareerPaths(),
        relationships=InMemoryRelationships(users, organizations),
        post_likes=InMemoryPostLikes(*post_ids),
        search_trends=InMemorySearchTrends(),
        analytics_events=InMemoryAnalyticsEvents(),
        system_settings=InMemorySettings(),
    )


def make_container(repos: Optional[Repositories] = None, **kwargs) -> Container:
    return assemble_container(repos or make_repositories("post-1"), **kwargs)


def make_user(user_id: str, **fields) -> User:
    fields.setdefault("username", user_id)
    fields.setdefault("name", user_id.title())
    return User(user_id=user_id, **fields)


def make_org(organization_id: str, owner_id: str, **fields) -> Organization:
    fields.setdefault("name", organization_id.title())
    return Organization(organization_id=organization_id, owner_id=owner_id, **fields)


def make_course(course_id: str, author_id: str = "author", **fields) -> Course:
    fields.setdefault("title", {"tr": course_id, "en": course_id})
    return Course(course_id=course_id, author_id=author_id, **fields)
