from __future__ import annotations

from flask import Flask, jsonify, request

from ..container import Container


def register(app: Flask, container: Container) -> None:
    policy_store = container.policy_store

    @app.route("/api/policy", methods=["GET"], endpoint="get_policy")
    def get_policy():
        return jsonify(policy_store.get().to_dict())

    @app.route("/api/policy", methods=["PUT", "PATCH"], endpoint="update_policy")
    def update_policy():
        data = dict(request.get_json(silent=True) or {})
        # Weekly hours drive the daily figure when given
        if "weekly_hours" in data:
            policy_store.set_weekly_hours(data.pop("weekly_hours"), working_days=data.pop("working_days", None))
        if data:
            policy_store.update(**data)
        # Derived fields follow the new policy right away; a queued sync runs in the background
        container.sync_engine.process_events(defer_sync=True)
        return jsonify(policy_store.get().to_dict())

    @app.route("/api/policy/reset", methods=["POST"], endpoint="reset_policy")
    def reset_policy():
        policy = policy_store.reset_to_defaults()
        container.sync_engine.process_events(defer_sync=True)
        return jsonify(policy.to_dict())
