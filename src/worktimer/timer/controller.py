from __future__ import annotations

from flask import Flask, jsonify

from ..container import Container
from ..records.controller import record_to_dict


def register(app: Flask, container: Container) -> None:
    timer = container.work_timer

    def _state():
        return {
            **timer.snapshot.to_dict(),
            "elapsed_seconds": round(timer.elapsed_seconds(), 1),
            "remaining_seconds": round(timer.remaining_seconds(), 1),
        }

    @app.route("/api/timer", methods=["GET"], endpoint="timer_state")
    def timer_state():
        return jsonify(_state())

    @app.route("/api/timer/start", methods=["POST"], endpoint="timer_start")
    def timer_start():
        record = timer.start_day()
        return jsonify({"timer": _state(), "record": record_to_dict(record)}), 201

    @app.route("/api/timer/pause", methods=["POST"], endpoint="timer_pause")
    def timer_pause():
        timer.pause()
        return jsonify({"timer": _state()})

    @app.route("/api/timer/resume", methods=["POST"], endpoint="timer_resume")
    def timer_resume():
        timer.resume()
        return jsonify({"timer": _state()})

    @app.route("/api/timer/end", methods=["POST"], endpoint="timer_end")
    def timer_end():
        record = timer.end_day()
        return jsonify({"timer": _state(), "record": record_to_dict(record)})

    @app.route("/api/timer/toggle", methods=["POST"], endpoint="timer_toggle")
    def timer_toggle():
        timer.toggle()
        return jsonify({"timer": _state()})

    @app.route("/api/timer/reset", methods=["POST"], endpoint="timer_reset")
    def timer_reset():
        timer.reset()
        return jsonify({"timer": _state()})
