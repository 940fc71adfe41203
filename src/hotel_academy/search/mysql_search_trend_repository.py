from __future__ import annotations

from typing import Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import SearchTrend
from .repository import SearchTrendRepository


class MySQLSearchTrendRepository(SearchTrendRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def top(self, *, limit: int) -> Sequence[SearchTrend]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT term, count, last_searched_at FROM search_trends ORDER BY count DESC LIMIT %s",
                (int(limit),),
            )
            return [
                SearchTrend(term=r["term"], count=int(r["count"]), last_searched_at=int(r["last_searched_at"] or 0))
                for r in fetchall(cur)
            ]

    def increment(self, term: str, *, searched_at: int) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO search_trends(term, count, last_searched_at)
                VALUES(%s, 1, %s)
                ON DUPLICATE KEY UPDATE count = count + 1, last_searched_at = VALUES(last_searched_at)
                """,
                (term, searched_at),
            )
