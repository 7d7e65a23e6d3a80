from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import fmt_date, fmt_dt, now_local, range_start
from ..core.enums import PermissionAction, PermissionModule, TaskStatus
from ..core.exceptions import ValidationError
from ..karyakars.model import KaryakarFilters
from ..karyakars.repository import ProfileRepository
from ..permissions.service import PermissionService
from ..tasks.repository import TaskRepository
from .export import CSV_MIMETYPE, EXPORT_FORMATS, XLSX_MIMETYPE, ExportFile, rows_to_frame, to_csv_bytes, to_xlsx_bytes

KARYAKAR_COLUMNS = (
    "full_name",
    "email",
    "mobile_number",
    "role",
    "status",
    "mandir",
    "village",
    "mandal",
    "profession",
    "seva_type",
    "date_of_birth",
    "registered_at",
)

TASK_COLUMNS = (
    "title",
    "status",
    "priority",
    "task_type",
    "assigned_to",
    "assigned_by",
    "due_date",
    "created_at",
)

REPORT_TYPES = ("karyakars", "tasks")


@dataclass(frozen=True)
class ReportData:
    rows: list[dict]
    summary: list[dict]


class ReportService:
    def __init__(self, profiles: ProfileRepository, tasks: TaskRepository, permissions: PermissionService):
        self._profiles = profiles
        self._tasks = tasks
        self._permissions = permissions

    def karyakar_report(
        self,
        *,
        role: str = "",
        status: str = "",
        date_range: str = "all",
        now: Optional[datetime] = None,
    ) -> ReportData:
        if status not in ("", "all", "active", "inactive"):
            raise ValidationError("Status must be active or inactive")

        filters = KaryakarFilters(
            role="" if role in ("", "all") else role,
            status="" if status == "all" else status,
            created_since=range_start(date_range, now=now or now_local()),
        )
        rows: list[dict] = []
        summary_map: dict[str, dict] = {}
        for r in self._profiles.list_view(filters):
            rows.append(
                {
                    "full_name": r["full_name"],
                    "email": r.get("email") or "",
                    "mobile_number": r.get("mobile_number") or "",
                    "role": r["role"],
                    "status": "active" if r.get("is_active") else "inactive",
                    "mandir": r.get("mandir_name") or "-",
                    "village": r.get("village_name") or "-",
                    "mandal": r.get("mandal_name") or "-",
                    "profession": r.get("profession_name") or "-",
                    "seva_type": r.get("seva_type_name") or "-",
                    "date_of_birth": fmt_date(r.get("date_of_birth")) or "",
                    "registered_at": fmt_dt(r.get("created_at")) or "",
                }
            )
            s = summary_map.setdefault(r["role"], {"role": r["role"], "total": 0, "active": 0})
            s["total"] += 1
            if r.get("is_active"):
                s["active"] += 1

        summary = sorted(summary_map.values(), key=lambda s: s["role"])
        return ReportData(rows=rows, summary=summary)

    def task_report(self, *, status: str = "", date_range: str = "all", now: Optional[datetime] = None) -> ReportData:
        task_status = None
        if status and status != "all":
            try:
                task_status = TaskStatus(status)
            except ValueError:
                raise ValidationError(f"Invalid status: {status}")

        tasks = self._tasks.list_report(status=task_status, since=range_start(date_range, now=now or now_local()))
        rows = [
            {
                "title": t["title"],
                "status": t["status"],
                "priority": t["priority"],
                "task_type": t["task_type"],
                "assigned_to": t.get("assigned_to_name") or "-",
                "assigned_by": t.get("assigned_by_name") or "-",
                "due_date": t.get("due_date") or "",
                "created_at": t.get("created_at") or "",
            }
            for t in tasks
        ]
        summary = [{"status": s.value, "total": sum(1 for r in rows if r["status"] == s.value)} for s in TaskStatus]
        return ReportData(rows=rows, summary=summary)

    def export(
        self,
        *,
        actor_id: str,
        report_type: str,
        fmt: str = "csv",
        role: str = "",
        status: str = "",
        date_range: str = "all",
        now: Optional[datetime] = None,
    ) -> ExportFile:
        self._permissions.require(
            user_id=actor_id, module=PermissionModule.REPORTS.value, action=PermissionAction.EXPORT.value
        )
        if report_type not in REPORT_TYPES:
            raise ValidationError(f"Unknown report: {report_type}")
        if fmt not in EXPORT_FORMATS:
            raise ValidationError(f"Unsupported export format: {fmt}")

        now = now or now_local()
        if report_type == "karyakars":
            data = self.karyakar_report(role=role, status=status, date_range=date_range, now=now)
            df = rows_to_frame(data.rows, KARYAKAR_COLUMNS)
        else:
            data = self.task_report(status=status, date_range=date_range, now=now)
            df = rows_to_frame(data.rows, TASK_COLUMNS)

        stem = f"{report_type}-report-{now.strftime('%Y%m%d')}"
        if fmt == "xlsx":
            return ExportFile(to_xlsx_bytes(df, sheet_name=report_type), f"{stem}.xlsx", XLSX_MIMETYPE)
        return ExportFile(to_csv_bytes(df), f"{stem}.csv", CSV_MIMETYPE)
