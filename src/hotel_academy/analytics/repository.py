from __future__ import annotations

from typing import Protocol, Sequence

from .model import AnalyticsEvent


class AnalyticsEventRepository(Protocol):
    def append(self, event: AnalyticsEvent) -> int:
        raise NotImplementedError

    def list_recent(self, organization_id: str, *, limit: int) -> Sequence[AnalyticsEvent]:
        raise NotImplementedError
