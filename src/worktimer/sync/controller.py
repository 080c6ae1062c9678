from __future__ import annotations

from flask import Flask, jsonify, request

from ..container import Container
from .model import SyncReport


def _report_to_dict(report: SyncReport) -> dict:
    return {
        "ok": report.ok,
        "pulled": report.pulled,
        "inserted": report.inserted,
        "updated": report.updated,
        "discarded": report.discarded,
        "pushed": report.pushed,
        "conflicts": report.conflicts,
        "purged": report.purged,
        "superseded": report.superseded,
        "skipped": report.skipped,
        "error": report.error,
        "failed_pushes": list(report.failed_pushes),
    }


def register(app: Flask, container: Container) -> None:
    engine = container.sync_engine

    @app.route("/api/sync/status", methods=["GET"], endpoint="sync_status")
    def sync_status():
        return jsonify(engine.status.to_dict())

    @app.route("/api/sync/check", methods=["POST"], endpoint="sync_check")
    def sync_check():
        force = request.args.get("force", "0") in {"1", "true", "yes"}
        return jsonify(engine.check_availability(force=force).to_dict())

    @app.route("/api/sync", methods=["POST"], endpoint="sync_trigger")
    def sync_trigger():
        if request.args.get("wait", "1") in {"0", "false", "no"}:
            engine.trigger_sync_async()
            return jsonify({"accepted": True}), 202
        report = engine.trigger_sync()
        return jsonify({"report": _report_to_dict(report), "status": engine.status.to_dict()})

    @app.route("/api/sync/restore", methods=["POST"], endpoint="sync_restore")
    def sync_restore():
        if request.args.get("wait", "1") in {"0", "false", "no"}:
            engine.trigger_full_restore_async()
            return jsonify({"accepted": True}), 202
        report = engine.trigger_full_restore()
        return jsonify({"report": _report_to_dict(report), "status": engine.status.to_dict()})

    @app.route("/api/sync/notify", methods=["POST"], endpoint="sync_notify")
    def sync_notify():
        """Webhook called by the remote peer when a subscription fires."""
        data = request.get_json(silent=True) or {}
        engine.notify_remote_change(data.get("subscription_id"))
        engine.process_events_async()
        return jsonify({"accepted": True}), 202

    @app.route("/api/sync/reset", methods=["POST"], endpoint="sync_reset")
    def sync_reset():
        engine.reset()
        return jsonify(engine.status.to_dict())
