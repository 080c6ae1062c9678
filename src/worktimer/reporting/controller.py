from __future__ import annotations

import io
from datetime import date

from flask import Flask, jsonify, request, send_file

from ..common.datetime_utils import format_duration, format_hours
from ..core.exceptions import ValidationError
from ..container import Container


def _int_arg(name: str, default: int) -> int:
    raw = request.args.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValidationError(f"Invalid {name}: {raw}") from e


def register(app: Flask, container: Container) -> None:
    reports = container.report_service

    @app.route("/api/reports/month", methods=["GET"], endpoint="report_month")
    def report_month():
        today = date.today()
        year = _int_arg("year", today.year)
        month = _int_arg("month", today.month)
        if not 1 <= month <= 12:
            raise ValidationError("month must be between 1 and 12")
        return jsonify(reports.month_summary(year, month).to_dict())

    @app.route("/api/reports/year", methods=["GET"], endpoint="report_year")
    def report_year():
        year = _int_arg("year", date.today().year)
        policy = container.policy_store.get()
        summary = reports.year_summary(year)
        cumulative = reports.cumulative_overtime(year)
        return jsonify(
            {
                **summary.to_dict(),
                "total_hours_display": format_hours(summary.total_hours, use_decimal=policy.use_decimal_hours),
                "overtime_display": format_duration(summary.overtime_seconds),
                "cumulative_overtime_seconds": cumulative,
                "cumulative_overtime_display": format_duration(cumulative),
                "months": [m.to_dict() for m in reports.monthly_breakdown(year)],
            }
        )

    @app.route("/api/reports/vacations", methods=["GET"], endpoint="report_vacations")
    def report_vacations():
        year = _int_arg("year", date.today().year)
        return jsonify(reports.vacation_balance(year, container.policy_store.get()).to_dict())

    @app.route("/api/reports/export", methods=["GET"], endpoint="report_export")
    def report_export():
        year = _int_arg("year", date.today().year)
        content = reports.export_year_excel(year, container.policy_store.get())
        return send_file(
            io.BytesIO(content),
            download_name=f"worktimer_{year}.xlsx",
            as_attachment=True,
            mimetype="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        )
