from __future__ import annotations

from flask import Flask, request

from ..common.web import login_required, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/search", methods=["GET"], endpoint="global_search")
    @login_required
    def global_search():
        return ok(container.search_service.global_search(request.args.get("q", "")))
