from __future__ import annotations

from flask import Flask, request

from ..common.web import ok, permission_required
from ..container import Container
from ..core.constants import DEFAULT_AUDIT_LIMIT
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    @app.route("/api/admin/security-events", methods=["GET"], endpoint="security_events")
    @permission_required("admin", "view")
    def security_events():
        try:
            limit = int(request.args.get("limit") or DEFAULT_AUDIT_LIMIT)
        except ValueError:
            raise ValidationError("limit must be a number")
        events = container.security_audit_service.list_events(
            event_type=request.args.get("event_type") or None,
            limit=max(1, min(limit, 500)),
        )
        return ok(events)
