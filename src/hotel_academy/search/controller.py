from __future__ import annotations

from flask import Flask, request

from ..common.http import login_required, ok
from ..container import Container
from .model import result_to_dict, trend_to_dict


def register(app: Flask, container: Container) -> None:
    search = container.search_service

    @app.route("/api/search", methods=["GET"], endpoint="global_search")
    @login_required
    def global_search():
        query = request.args.get("q", "")
        results = search.perform_global_search(query, request.args.get("lang"))
        search.track_search(query)
        return ok([result_to_dict(r) for r in results])

    @app.route("/api/search/trending", methods=["GET"], endpoint="trending_searches")
    def trending_searches():
        return ok([trend_to_dict(t) for t in search.get_trending_searches()])
