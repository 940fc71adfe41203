from __future__ import annotations

import pytest

from hotel_academy.core.enums import SearchResultType
from hotel_academy.search.model import SearchTrend
from hotel_academy.search.service import fallback_trends

from fakes import make_container, make_course, make_org, make_user


class StaticExpander:
    def __init__(self, *terms):
        self.terms = list(terms)
        self.calls = []

    def expand(self, term):
        self.calls.append(term)
        return self.terms


class BrokenExpander:
    def expand(self, term):
        raise RuntimeError("model unavailable")


@pytest.fixture
def catalog(repos):
    repos.courses.add(
        make_course("c-tag", title={"tr": "Yatak Düzeni"}, tags=["housekeeping"], duration=4, author_name="Ayşe")
    )
    repos.courses.add(make_course("c-topic", title={"tr": "Oda Temizliği"}, topics=["housekeeping"]))
    repos.courses.add(
        make_course("c-both", title={"tr": "Housekeeping 101"}, tags=["housekeeping"], topics=["housekeeping"])
    )
    repos.organizations.add(make_org("hk-co", "o1", name="Housekeeping Pros", member_count=12, location="İzmir", created_at=2))
    repos.organizations.add(make_org("clean", "o2", name="Clean Co", sector="housekeeping services", created_at=1))
    repos.users.add(make_user("u1", name="Housekeeping Hero"))
    repos.users.add(make_user("u2", name="Ayşe", department="Housekeeping"))
    repos.users.add(make_user("u3", name="Housekeeping Hidden", show_in_search=False))
    return repos


def test_short_queries_return_nothing(container, catalog):
    assert container.search_service.perform_global_search(" h ") == []


def test_global_search_ranks_across_categories(container, catalog):
    results = container.search_service.perform_global_search("Housekeeping")
    ranked = [(r.type, r.result_id, r.relevance_score) for r in results]

    # equal scores keep searcher order: courses, organizations, users
    assert ranked == [
        (SearchResultType.COURSE, "c-both", 80),
        (SearchResultType.ORGANIZATION, "hk-co", 80),
        (SearchResultType.USER, "u1", 70),
        (SearchResultType.COURSE, "c-topic", 60),
        (SearchResultType.COURSE, "c-tag", 50),
        (SearchResultType.ORGANIZATION, "clean", 40),
        (SearchResultType.USER, "u2", 30),
    ]


def test_course_scores_and_subtitle(container, catalog):
    results = {r.result_id: r for r in container.search_service.search_courses(["housekeeping"])}

    assert results["c-tag"].relevance_score == 50
    assert results["c-topic"].relevance_score == 60
    assert results["c-both"].relevance_score == 80
    assert results["c-tag"].subtitle == "4 dk • Ayşe"
    assert results["c-tag"].url == "/course/c-tag"


def test_organization_and_user_hits(container, catalog):
    orgs = {r.result_id: r for r in container.search_service.search_organizations(["housekeeping"])}
    assert orgs["hk-co"].relevance_score == 80
    assert orgs["hk-co"].subtitle == "12 Üye • İzmir"
    assert orgs["clean"].relevance_score == 40

    users = {r.result_id: r for r in container.search_service.search_users(["housekeeping"])}
    assert users["u1"].subtitle == "Üye"
    assert users["u2"].relevance_score == 30
    assert "u3" not in users


def test_expanded_terms_replace_the_raw_term(repos, catalog):
    expander = StaticExpander("Kat Hizmetleri", "housekeeping")
    container = make_container(repos, expander=expander)

    results = container.search_service.perform_global_search("kat hiz")
    assert expander.calls == ["kat hiz"]
    assert {r.result_id for r in results if r.type == SearchResultType.COURSE} == {"c-tag", "c-topic", "c-both"}
    assert all(r.relevance_score < 80 for r in results if r.type == SearchResultType.COURSE)


def test_expander_failure_falls_back_to_raw_term(repos, catalog):
    container = make_container(repos, expander=BrokenExpander())
    results = container.search_service.perform_global_search("housekeeping")
    assert {r.result_id for r in results} >= {"c-both", "hk-co", "u1"}


def test_a_failing_searcher_does_not_sink_the_rest(container, catalog, monkeypatch):
    def broken(**_):
        raise RuntimeError("db down")

    monkeypatch.setattr(catalog.courses, "find", broken)
    results = container.search_service.perform_global_search("housekeeping")
    assert {r.type for r in results} == {SearchResultType.ORGANIZATION, SearchResultType.USER}


def test_trending_searches(container, repos):
    repos.search_trends.items["spa"] = SearchTrend(term="spa", count=3)
    repos.search_trends.items["wine"] = SearchTrend(term="wine", count=9)
    assert [t.term for t in container.search_service.get_trending_searches()] == ["wine", "spa"]


def test_trending_falls_back_to_defaults(container, repos):
    repos.search_trends.fail = True
    trends = container.search_service.get_trending_searches()
    assert [(t.term, t.count) for t in trends] == [(t.term, t.count) for t in fallback_trends()]
    assert trends[0].term == "Housekeeping"


def test_track_search_counts_terms(container, repos):
    container.search_service.track_search("  Wine ")
    container.search_service.track_search("wine")
    container.search_service.track_search("ab")
    assert repos.search_trends.items["wine"].count == 2
    assert "ab" not in repos.search_trends.items
