from __future__ import annotations

from flask import Flask

from ..common.web import current_user_id, login_required, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/notifications", methods=["GET"], endpoint="notifications")
    @login_required
    def notifications():
        user_id = current_user_id()
        return ok(
            container.notification_service.list(user_id),
            unread=container.notification_service.unread_count(user_id),
        )

    @app.route("/api/notifications/<notification_id>/read", methods=["POST"], endpoint="mark_notification_read")
    @login_required
    def mark_notification_read(notification_id: str):
        container.notification_service.mark_read(current_user_id(), notification_id)
        return ok()

    @app.route("/api/notifications/read-all", methods=["POST"], endpoint="mark_all_notifications_read")
    @login_required
    def mark_all_notifications_read():
        updated = container.notification_service.mark_all_read(current_user_id())
        return ok({"updated": updated})
