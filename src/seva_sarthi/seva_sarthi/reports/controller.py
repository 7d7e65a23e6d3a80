from __future__ import annotations

import io

from flask import Flask, request, send_file

from ..common.web import current_user_id, login_required, ok, permission_required
from ..container import Container


def register(app: Flask, container: Container) -> None:
    def _filters() -> dict:
        return {
            "role": request.args.get("role", ""),
            "status": request.args.get("status", ""),
            "date_range": request.args.get("date_range") or "all",
        }

    @app.route("/api/reports/karyakars", methods=["GET"], endpoint="karyakar_report")
    @permission_required("reports", "view")
    def karyakar_report():
        data = container.report_service.karyakar_report(**_filters())
        return ok(data.rows, summary=data.summary)

    @app.route("/api/reports/tasks", methods=["GET"], endpoint="task_report")
    @permission_required("reports", "view")
    def task_report():
        f = _filters()
        data = container.report_service.task_report(status=f["status"], date_range=f["date_range"])
        return ok(data.rows, summary=data.summary)

    @app.route("/api/reports/<report_type>/export", methods=["GET"], endpoint="export_report")
    @login_required
    def export_report(report_type: str):
        export = container.report_service.export(
            actor_id=current_user_id(),
            report_type=report_type,
            fmt=request.args.get("format") or "csv",
            **_filters(),
        )
        return send_file(
            io.BytesIO(export.content),
            mimetype=export.mimetype,
            as_attachment=True,
            download_name=export.filename,
        )
