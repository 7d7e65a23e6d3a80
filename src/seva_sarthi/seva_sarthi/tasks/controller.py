from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import now_local
from ..common.web import current_user_id, json_body, login_required, ok, permission_required
from ..container import Container
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    @app.route("/api/tasks", methods=["GET"], endpoint="tasks")
    @permission_required("tasks", "view")
    def tasks():
        scope = request.args.get("scope") or "all"
        return ok(container.task_service.list_tasks(user_id=current_user_id(), scope=scope))

    @app.route("/api/tasks/stats", methods=["GET"], endpoint="task_stats")
    @login_required
    def task_stats():
        user_id = current_user_id()
        return ok(
            container.task_service.dashboard_stats(user_id=user_id),
            chart=container.task_service.status_chart(user_id=user_id),
        )

    @app.route("/api/tasks/calendar", methods=["GET"], endpoint="task_calendar")
    @permission_required("tasks", "view")
    def task_calendar():
        today = now_local().date()
        try:
            year = int(request.args.get("year") or today.year)
            month = int(request.args.get("month") or today.month)
        except ValueError:
            raise ValidationError("year and month must be numbers")
        return ok(container.task_service.due_calendar(user_id=current_user_id(), year=year, month=month))

    @app.route("/api/tasks/<task_id>", methods=["GET"], endpoint="task")
    @permission_required("tasks", "view")
    def task(task_id: str):
        return ok(container.task_service.get_task(task_id))

    @app.route("/api/tasks", methods=["POST"], endpoint="create_task")
    @login_required
    def create_task():
        task_id = container.task_service.create_task(actor_id=current_user_id(), data=json_body())
        return ok({"id": task_id}, status=201, message="Task created successfully")

    @app.route("/api/tasks/<task_id>", methods=["PUT"], endpoint="update_task")
    @login_required
    def update_task(task_id: str):
        updated = container.task_service.update_task(actor_id=current_user_id(), task_id=task_id, data=json_body())
        return ok(updated, message="Task updated successfully")

    @app.route("/api/tasks/<task_id>/status", methods=["PUT"], endpoint="update_task_status")
    @login_required
    def update_task_status(task_id: str):
        container.task_service.update_status(
            actor_id=current_user_id(), task_id=task_id, status=json_body().get("status", "")
        )
        return ok(message="Task status updated")

    @app.route("/api/tasks/<task_id>", methods=["DELETE"], endpoint="delete_task")
    @login_required
    def delete_task(task_id: str):
        container.task_service.delete_task(actor_id=current_user_id(), task_id=task_id)
        return ok(message="Task deleted successfully")

    @app.route("/api/tasks/<task_id>/comments", methods=["GET"], endpoint="task_comments")
    @permission_required("tasks", "view")
    def task_comments(task_id: str):
        return ok(container.task_service.list_comments(task_id))

    @app.route("/api/tasks/<task_id>/comments", methods=["POST"], endpoint="add_task_comment")
    @login_required
    def add_task_comment(task_id: str):
        comment_id = container.task_service.add_comment(
            actor_id=current_user_id(), task_id=task_id, text=json_body().get("comment", "")
        )
        return ok({"id": comment_id}, status=201, message="Comment added")
