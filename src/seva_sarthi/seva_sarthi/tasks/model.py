from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..common.datetime_utils import fmt_date, fmt_dt
from ..core.enums import TaskPriority, TaskStatus, TaskType

# status -> the only status it may move to
STATUS_TRANSITIONS = {
    TaskStatus.PENDING: TaskStatus.IN_PROGRESS,
    TaskStatus.IN_PROGRESS: TaskStatus.COMPLETED,
}


@dataclass(frozen=True)
class Task:
    id: str
    title: str
    assigned_by: str
    status: TaskStatus = TaskStatus.PENDING
    priority: TaskPriority = TaskPriority.MEDIUM
    task_type: TaskType = TaskType.GENERAL
    description: Optional[str] = None
    assigned_to: Optional[str] = None
    due_date: Optional[date] = None
    mandir_id: Optional[str] = None
    kshetra_id: Optional[str] = None
    village_id: Optional[str] = None
    mandal_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    assigned_by_name: Optional[str] = None
    assigned_to_name: Optional[str] = None

    def is_overdue(self, today: date) -> bool:
        return bool(self.due_date and self.due_date < today and self.status != TaskStatus.COMPLETED)

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "assigned_by": self.assigned_by,
            "assigned_to": self.assigned_to,
            "assigned_by_name": self.assigned_by_name,
            "assigned_to_name": self.assigned_to_name,
            "status": self.status.value,
            "priority": self.priority.value,
            "task_type": self.task_type.value,
            "due_date": fmt_date(self.due_date),
            "mandir_id": self.mandir_id,
            "kshetra_id": self.kshetra_id,
            "village_id": self.village_id,
            "mandal_id": self.mandal_id,
            "created_at": fmt_dt(self.created_at),
            "updated_at": fmt_dt(self.updated_at),
        }


@dataclass(frozen=True)
class TaskComment:
    id: str
    task_id: str
    user_id: str
    comment: str
    created_at: Optional[datetime] = None
    user_name: Optional[str] = None

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "task_id": self.task_id,
            "user_id": self.user_id,
            "user_name": self.user_name,
            "comment": self.comment,
            "created_at": fmt_dt(self.created_at),
        }
