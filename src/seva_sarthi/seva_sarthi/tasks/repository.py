from __future__ import annotations

from datetime import date, datetime
from typing import Any, Mapping, Optional, Protocol, Sequence

from ..core.enums import TaskStatus
from .model import Task, TaskComment


class TaskRepository(Protocol):
    def get(self, task_id: str) -> Optional[Task]:
        raise NotImplementedError

    def create(self, fields: Mapping[str, Any]) -> str:
        raise NotImplementedError

    def update_fields(self, task_id: str, fields: Mapping[str, Any]) -> bool:
        raise NotImplementedError

    def set_status(self, task_id: str, status: TaskStatus) -> bool:
        raise NotImplementedError

    def delete(self, task_id: str) -> bool:
        raise NotImplementedError

    def list_for_user(self, user_id: str, *, scope: str = "all") -> Sequence[Task]:
        """scope: all (assigned to or by the user) | assigned | created. Newest first."""

        raise NotImplementedError

    def list_report(
        self,
        *,
        status: Optional[TaskStatus] = None,
        since: Optional[datetime] = None,
    ) -> Sequence[dict]:
        """Every task joined with assignee / assigner names, newest first."""

        raise NotImplementedError

    def list_due_between(self, user_id: str, *, start: date, end: date) -> Sequence[Task]:
        raise NotImplementedError

    def add_comment(self, *, task_id: str, user_id: str, comment: str) -> str:
        raise NotImplementedError

    def list_comments(self, task_id: str) -> Sequence[TaskComment]:
        raise NotImplementedError
