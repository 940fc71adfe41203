from __future__ import annotations

from hotel_academy.core.enums import (
    AssignmentType,
    ContentTier,
    ProgressStatus,
    StoryStatus,
    VerificationStatus,
    Visibility,
)
from hotel_academy.courses.service import build_explore_feed, channel_story
from hotel_academy.organizations.model import Channel
from hotel_academy.users.model import CourseProgress

from fakes import make_course, make_org, make_user


def test_smart_feed_verified_only(container, repos):
    repos.courses.add(make_course("pro", tier=ContentTier.PRO, created_at=1))
    repos.courses.add(make_course("official", tier=ContentTier.OFFICIAL, created_at=2))
    repos.courses.add(make_course("community", created_at=3))
    repos.courses.add(make_course("pending", tier=ContentTier.PRO, verification_status=VerificationStatus.PENDING))

    verified = container.course_service.get_smart_feed(None, verified_only=True)
    everything = container.course_service.get_smart_feed(None, verified_only=False)

    assert [c.course_id for c in verified] == ["official", "pro"]
    assert [c.course_id for c in everything] == ["community", "official", "pro"]


def test_smart_feed_failure_is_empty(container, repos, monkeypatch):
    def broken(**_):
        raise RuntimeError("db down")

    monkeypatch.setattr(repos.courses, "find", broken)
    assert container.course_service.get_smart_feed(None, verified_only=True) == []


def test_dashboard_merges_every_source(container, repos):
    user = make_user(
        "ali",
        following_users=["ayse"],
        following_pages=["grand"],
        joined_page_ids=["work"],
        channel_subscriptions=["ch_general"],
        followed_tags=["wine"],
    )
    repos.courses.add(make_course("mine", "ali", created_at=1))
    repos.courses.add(make_course("friend", "ayse", created_at=2))
    repos.courses.add(make_course("friend-private", "ayse", visibility=Visibility.PRIVATE, created_at=3))
    repos.courses.add(make_course("page", "x", organization_id="grand", created_at=4))
    repos.courses.add(
        make_course("workspace", "x", organization_id="work", visibility=Visibility.PRIVATE, channel_id="ch_general", created_at=5)
    )
    repos.courses.add(make_course("tagged", "x", tags=["wine"], created_at=6))
    repos.courses.add(make_course("unrelated", "x", created_at=7))

    feed = container.course_service.get_dashboard_feed(user)
    assert [c.course_id for c in feed] == ["tagged", "workspace", "page", "friend", "mine"]


def test_dashboard_survives_a_failing_source(container, repos, monkeypatch):
    user = make_user("ali", followed_tags=["wine"])
    repos.courses.add(make_course("mine", "ali"))
    repos.courses.add(make_course("tagged", "x", tags=["wine"]))
    real_find = repos.courses.find

    def flaky(**filters):
        if filters.get("tags_any"):
            raise RuntimeError("index missing")
        return real_find(**filters)

    monkeypatch.setattr(repos.courses, "find", flaky)
    assert [c.course_id for c in container.course_service.get_dashboard_feed(user)] == ["mine"]


def test_dashboard_caps_filter_ids(container, repos):
    user = make_user("ali", following_users=[f"u{i}" for i in range(15)])
    container.course_service.get_dashboard_feed(user)
    assert max(len(call["author_ids"]) for call in repos.courses.find_calls) == 10


def test_explore_feed_pools():
    user = make_user("ali", department="front", completed_courses=["done"])
    courses = [
        make_course("global", assignment_type=AssignmentType.GLOBAL),
        make_course("dept", assignment_type=AssignmentType.DEPARTMENT, target_departments=["front"], priority="HIGH"),
        make_course("other-dept", assignment_type=AssignmentType.DEPARTMENT, target_departments=["hk"]),
        make_course("onboarding", category_id="cat_onboarding"),
        make_course("done", assignment_type=AssignmentType.GLOBAL, popularity_score=99),
        make_course("hot", popularity_score=80),
        make_course("hotter", popularity_score=95),
        make_course("fresh", is_new=True),
    ]

    feed = build_explore_feed(user, courses)
    assert [c.course_id for c in feed.priority] == ["dept", "global", "onboarding"]
    assert [c.course_id for c in feed.trending] == ["done", "hotter", "hot"]
    assert [c.course_id for c in feed.discovery] == ["fresh", "other-dept"]


def test_explore_feed_uses_current_organization(container, repos):
    repos.courses.add(make_course("org", organization_id="grand", visibility=Visibility.PRIVATE))
    repos.courses.add(make_course("public"))
    feed = container.course_service.get_explore_feed(make_user("ali", current_organization_id="grand"))
    assert [c.course_id for c in feed.discovery] == ["org"]


def _progress(course_id, index, total=4):
    return CourseProgress(
        course_id=course_id,
        status=ProgressStatus.IN_PROGRESS,
        current_card_index=index,
        total_cards=total,
        last_accessed_at=0,
    )


def test_channel_story_states():
    channel = Channel(channel_id="ch", name="General")
    courses = [make_course("a", channel_id="ch"), make_course("b", target_channel_ids=["ch"])]

    assert channel_story(Channel(channel_id="empty", name="E"), courses, make_user("u")).status == StoryStatus.EMPTY
    assert channel_story(channel, courses, make_user("u", completed_courses=["a", "b"])).status == StoryStatus.ALL_CAUGHT_UP

    fresh = channel_story(channel, courses, make_user("u"))
    assert (fresh.status, fresh.next_course_id) == (StoryStatus.HAS_NEW, "a")

    started = channel_story(channel, courses, make_user("u", progress_map={"b": _progress("b", 1)}))
    assert (started.status, started.next_course_id, started.progress_percent) == (StoryStatus.IN_PROGRESS, "b", 25.0)


def test_channel_stories_in_progress_first(container, repos):
    repos.organizations.add(
        make_org(
            "grand",
            "owner",
            channels=[
                Channel(channel_id="news", name="News"),
                Channel(channel_id="training", name="Training"),
                Channel(channel_id="done", name="Done"),
                Channel(channel_id="unsubscribed", name="Other"),
            ],
        )
    )
    for course_id, channel_id in (("n1", "news"), ("t1", "training"), ("d1", "done"), ("u1", "unsubscribed")):
        repos.courses.add(
            make_course(course_id, organization_id="grand", visibility=Visibility.PRIVATE, channel_id=channel_id)
        )
    user = make_user(
        "ali",
        current_organization_id="grand",
        channel_subscriptions=["news", "training", "done"],
        completed_courses=["d1"],
        progress_map={"t1": _progress("t1", 2)},
    )

    stories = container.course_service.get_channel_stories(user)
    assert [(s.channel.channel_id, s.status) for s in stories] == [
        ("training", StoryStatus.IN_PROGRESS),
        ("news", StoryStatus.HAS_NEW),
    ]


def test_channel_stories_need_an_organization(container):
    assert container.course_service.get_channel_stories(make_user("ali", channel_subscriptions=["x"])) == []
