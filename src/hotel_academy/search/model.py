from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import SearchResultType


@dataclass(frozen=True)
class SearchResult:
    type: SearchResultType
    result_id: str
    title: str
    subtitle: str
    image_url: str
    relevance_score: int
    url: str


@dataclass(frozen=True)
class SearchTrend:
    term: str
    count: int
    last_searched_at: int = 0


def result_to_dict(r: SearchResult) -> dict:
    return {
        "type": r.type.value,
        "id": r.result_id,
        "title": r.title,
        "subtitle": r.subtitle,
        "image_url": r.image_url,
        "relevance_score": r.relevance_score,
        "url": r.url,
    }


def trend_to_dict(t: SearchTrend) -> dict:
    return {"term": t.term, "count": t.count, "last_searched_at": t.last_searched_at}
