from __future__ import annotations

from datetime import date
from typing import Any

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date, parse_iso_datetime
from ..core.enums import WorkDayType
from ..core.exceptions import ValidationError
from ..container import Container
from .model import WorkRecord


def record_to_dict(r: WorkRecord) -> dict[str, Any]:
    return {
        "id": r.identity,
        "date": r.date.isoformat(),
        "type": r.type.value,
        "start_time": r.start_time.isoformat() if r.start_time else None,
        "end_time": r.end_time.isoformat() if r.end_time else None,
        "break_seconds": r.break_seconds,
        "bonus_amount": r.bonus_amount,
        "total_hours": round(r.total_hours, 4),
        "overtime_seconds": r.overtime_seconds,
        "note": r.note,
        "created_at": r.created_at.isoformat(),
        "last_modified": r.last_modified.isoformat(),
        "dirty": r.dirty,
        "is_valid": r.is_valid,
    }


def _parse_changes(data: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    try:
        if "date" in data:
            out["date"] = parse_iso_date(str(data["date"]))
        if "type" in data:
            out["type"] = WorkDayType(data["type"])
        for key in ("start_time", "end_time"):
            if key in data:
                out[key] = parse_iso_datetime(data[key])
        for key in ("break_seconds", "bonus_amount"):
            if key in data and data[key] is not None:
                out[key] = float(data[key])
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid record payload: {e}") from e
    if "note" in data:
        out["note"] = data["note"]
    return out


def _date_arg(name: str, default: date) -> date:
    raw = request.args.get(name)
    if not raw:
        return default
    try:
        return parse_iso_date(raw)
    except ValueError as e:
        raise ValidationError(f"Invalid {name}: {raw}") from e


def register(app: Flask, container: Container) -> None:
    store = container.local_store

    @app.route("/api/records", methods=["GET"], endpoint="list_records")
    def list_records():
        today = date.today()
        start = _date_arg("start", today.replace(day=1))
        end = _date_arg("end", today)
        rows = store.query_by_date_range(start, end)
        return jsonify({"records": [record_to_dict(r) for r in rows]})

    @app.route("/api/records", methods=["POST"], endpoint="create_record")
    def create_record():
        data = request.get_json(silent=True) or {}
        changes = _parse_changes(data)
        if "date" not in changes:
            raise ValidationError("date is required")
        record = store.create(
            day=changes.pop("date"),
            type=changes.pop("type", WorkDayType.WORK),
            identity=data.get("id"),
            **changes,
        )
        return jsonify(record_to_dict(record)), 201

    @app.route("/api/records/<identity>", methods=["GET"], endpoint="get_record")
    def get_record(identity: str):
        return jsonify(record_to_dict(store.require(identity)))

    @app.route("/api/records/<identity>", methods=["PUT", "PATCH"], endpoint="update_record")
    def update_record(identity: str):
        data = request.get_json(silent=True) or {}
        record = store.update(identity, **_parse_changes(data))
        return jsonify(record_to_dict(record))

    @app.route("/api/records/<identity>", methods=["DELETE"], endpoint="delete_record")
    def delete_record(identity: str):
        store.soft_delete(identity)
        return jsonify({"success": True, "id": identity})
