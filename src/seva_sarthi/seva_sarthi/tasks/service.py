from __future__ import annotations

import calendar
from datetime import date
from typing import Any, Dict, List, Mapping, Optional

from ..common.datetime_utils import fmt_date, now_local, parse_optional_date
from ..common.logging_utils import get_logger
from ..common.validators import optional_text, validate_text, validate_uuid
from ..core.enums import MasterTable, NotificationType, PermissionAction, PermissionModule, TaskPriority, TaskStatus, TaskType
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..karyakars.repository import ProfileRepository
from ..locations.repository import MasterDataRepository
from ..notifications.service import NotificationService
from ..permissions.service import PermissionService
from .model import STATUS_TRANSITIONS, Task
from .repository import TaskRepository

logger = get_logger(__name__)

TASK_SCOPES = ("all", "assigned", "created")
# task column -> master-data table it references
_LOCATION_COLUMNS = {
    "mandir_id": MasterTable.MANDIRS.value,
    "kshetra_id": MasterTable.KSHETRAS.value,
    "village_id": MasterTable.VILLAGES.value,
    "mandal_id": MasterTable.MANDALS.value,
}


def _enum(enum_cls, value: Any, label: str):
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(f"Invalid {label}: {value}")


class TaskService:
    """Use case: assign tasks, move them through their status flow, discuss them."""

    def __init__(
        self,
        tasks: TaskRepository,
        profiles: ProfileRepository,
        permissions: PermissionService,
        notifications: NotificationService,
        master: MasterDataRepository,
    ):
        self._tasks = tasks
        self._profiles = profiles
        self._master = master
        self._permissions = permissions
        self._notifications = notifications

    def _get(self, task_id: str) -> Task:
        task = self._tasks.get(task_id)
        if not task:
            raise NotFoundError("Task not found")
        return task

    def _parse(self, data: Mapping[str, Any], *, partial: bool) -> Dict[str, Any]:
        out: Dict[str, Any] = {}

        def given(key: str) -> bool:
            return not partial or key in data

        if given("title"):
            out["title"] = validate_text(data.get("title"), "Title")
        if given("description"):
            out["description"] = optional_text(data.get("description"), "Description", max_length=2000)
        if given("priority"):
            out["priority"] = _enum(TaskPriority, data.get("priority") or TaskPriority.MEDIUM.value, "priority")
        if given("task_type"):
            out["task_type"] = _enum(TaskType, data.get("task_type") or TaskType.GENERAL.value, "task type")
        if given("due_date"):
            out["due_date"] = parse_optional_date(data.get("due_date"))
        if given("assigned_to"):
            assignee = (data.get("assigned_to") or "").strip()
            if assignee:
                profile = self._profiles.get_by_id(validate_uuid(assignee, "Assignee"))
                if not profile or not profile.is_active:
                    raise ValidationError("Assignee does not exist or is inactive")
                out["assigned_to"] = profile.id
            else:
                out["assigned_to"] = None
        for column, table in _LOCATION_COLUMNS.items():
            if not given(column):
                continue
            raw = (data.get(column) or "").strip()
            if not raw:
                out[column] = None
                continue
            location_id = validate_uuid(raw, column)
            if location_id not in self._master.existing_ids(table, [location_id]):
                raise ValidationError(f"Selected {column[:-3]} does not exist or is inactive")
            out[column] = location_id
        return out

    def _notify_assignee(self, *, task_id: str, title: str, assignee: Optional[str], actor_id: str) -> None:
        if not assignee or assignee == actor_id:
            return
        self._notifications.create(
            user_id=assignee,
            title="New task assigned",
            message=f"You have been assigned: {title}",
            type=NotificationType.INFO,
        )
        logger.info("task %s: assignee %s notified", task_id, assignee)

    # --- queries ----------------------------------------------------------

    def list_tasks(self, *, user_id: str, scope: str = "all") -> List[dict]:
        if scope not in TASK_SCOPES:
            raise ValidationError(f"Invalid scope: {scope}")
        return [t.as_dict() for t in self._tasks.list_for_user(user_id, scope=scope)]

    def get_task(self, task_id: str) -> dict:
        return self._get(task_id).as_dict()

    def dashboard_stats(self, *, user_id: str, today: Optional[date] = None) -> dict:
        today = today or now_local().date()
        tasks = self._tasks.list_for_user(user_id, scope="all")
        return {
            "total": len(tasks),
            "completed": sum(1 for t in tasks if t.status == TaskStatus.COMPLETED),
            "pending": sum(1 for t in tasks if t.status == TaskStatus.PENDING),
            "in_progress": sum(1 for t in tasks if t.status == TaskStatus.IN_PROGRESS),
            "overdue": sum(1 for t in tasks if t.is_overdue(today)),
        }

    def status_chart(self, *, user_id: str) -> List[dict]:
        tasks = self._tasks.list_for_user(user_id, scope="all")
        return [{"status": s.value, "count": sum(1 for t in tasks if t.status == s)} for s in TaskStatus]

    def due_calendar(self, *, user_id: str, year: int, month: int) -> Dict[str, List[dict]]:
        """Tasks due in the given month, grouped by due date."""

        if not 1 <= int(month) <= 12:
            raise ValidationError("Invalid month")
        start = date(int(year), int(month), 1)
        end = date(int(year), int(month), calendar.monthrange(int(year), int(month))[1])

        by_day: Dict[str, List[dict]] = {}
        for t in self._tasks.list_due_between(user_id, start=start, end=end):
            by_day.setdefault(fmt_date(t.due_date), []).append(t.as_dict())
        return by_day

    def list_comments(self, task_id: str) -> List[dict]:
        self._get(task_id)
        return [c.as_dict() for c in self._tasks.list_comments(task_id)]

    # --- commands ---------------------------------------------------------

    def create_task(self, *, actor_id: str, data: Mapping[str, Any]) -> str:
        self._permissions.require(user_id=actor_id, module=PermissionModule.TASKS.value, action=PermissionAction.ADD.value)
        fields = self._parse(data, partial=False)
        fields["assigned_by"] = actor_id
        fields["status"] = TaskStatus.PENDING
        task_id = self._tasks.create(fields)
        logger.info("task %s created by %s", task_id, actor_id)
        self._notify_assignee(task_id=task_id, title=fields["title"], assignee=fields.get("assigned_to"), actor_id=actor_id)
        return task_id

    def update_status(self, *, actor_id: str, task_id: str, status: str) -> None:
        task = self._get(task_id)
        if task.assigned_to != actor_id:
            raise AuthorizationError("Only the assignee can change the task status")

        new_status = _enum(TaskStatus, status, "status")
        if task.status == TaskStatus.COMPLETED:
            raise ValidationError("Completed tasks cannot be changed")
        if STATUS_TRANSITIONS.get(task.status) != new_status:
            raise ValidationError(f"Cannot move a task from {task.status.value} to {new_status.value}")

        self._tasks.set_status(task_id, new_status)
        logger.info("task %s: %s -> %s by %s", task_id, task.status.value, new_status.value, actor_id)

    def update_task(self, *, actor_id: str, task_id: str, data: Mapping[str, Any]) -> dict:
        task = self._get(task_id)
        if task.assigned_by != actor_id:
            self._permissions.require(
                user_id=actor_id, module=PermissionModule.TASKS.value, action=PermissionAction.EDIT.value
            )

        fields = self._parse(data, partial=True)
        if fields:
            self._tasks.update_fields(task_id, fields)
        if "assigned_to" in fields and fields["assigned_to"] != task.assigned_to:
            self._notify_assignee(
                task_id=task_id,
                title=fields.get("title", task.title),
                assignee=fields["assigned_to"],
                actor_id=actor_id,
            )
        return self.get_task(task_id)

    def delete_task(self, *, actor_id: str, task_id: str) -> None:
        task = self._get(task_id)
        if task.assigned_by != actor_id:
            self._permissions.require(
                user_id=actor_id, module=PermissionModule.TASKS.value, action=PermissionAction.DELETE.value
            )
        self._tasks.delete(task_id)
        logger.info("task %s deleted by %s", task_id, actor_id)

    def add_comment(self, *, actor_id: str, task_id: str, text: str) -> str:
        task = self._get(task_id)
        if actor_id not in (task.assigned_to, task.assigned_by):
            self._permissions.require(
                user_id=actor_id, module=PermissionModule.TASKS.value, action=PermissionAction.VIEW.value
            )
        comment = validate_text(text, "Comment", max_length=2000)
        return self._tasks.add_comment(task_id=task_id, user_id=actor_id, comment=comment)
