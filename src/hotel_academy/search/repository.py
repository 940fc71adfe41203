from __future__ import annotations

from typing import Protocol, Sequence

from .model import SearchTrend


class SearchTrendRepository(Protocol):
    def top(self, *, limit: int) -> Sequence[SearchTrend]:
        raise NotImplementedError

    def increment(self, term: str, *, searched_at: int) -> None:
        raise NotImplementedError


class QueryExpander(Protocol):
    """Turns a search term into related terms; the first one is the main term."""

    def expand(self, term: str) -> Sequence[str]:
        raise NotImplementedError
