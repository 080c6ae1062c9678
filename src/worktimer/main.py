from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify

from config import get_settings_module

from .core.exceptions import NotFoundError, PersistenceError, ValidationError
from .database.bootstrap import apply_schema, list_tables
from .logging_config import setup_logging

from .container import Container, build_container
from .policy.controller import register as register_policy
from .records.controller import register as register_records
from .reporting.controller import register as register_reports
from .sync.controller import register as register_sync
from .timer.controller import register as register_timer

logger = logging.getLogger(__name__)


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ValidationError)
    def _validation(e: ValidationError):
        return jsonify({"success": False, "message": str(e)}), 400

    @app.errorhandler(NotFoundError)
    def _not_found(e: NotFoundError):
        return jsonify({"success": False, "message": str(e)}), 404

    @app.errorhandler(PersistenceError)
    def _persistence(e: PersistenceError):
        logger.error("Request failed on local store: %s", e)
        return jsonify({"success": False, "message": "Saving failed, please retry"}), 500


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    setup_logging(
        log_level=getattr(settings, "LOG_LEVEL", "INFO"),
        log_file=getattr(settings, "LOG_FILE", None),
    )
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            schema_path = Path(__file__).resolve().parents[2] / "database" / "schema.sql"
            apply_schema(db_config, schema_path=schema_path)
            logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))

        container = build_container(
            db_config=db_config,
            remote_config=getattr(settings, "REMOTE_CONFIG", None),
            status_check_interval=float(getattr(settings, "STATUS_CHECK_INTERVAL_SECONDS", 60)),
            remote_timeout=float(getattr(settings, "REMOTE_TIMEOUT_SECONDS", 30)),
        )

    app.extensions["worktimer"] = container
    _register_error_handlers(app)

    register_records(app, container)
    register_policy(app, container)
    register_sync(app, container)
    register_reports(app, container)
    register_timer(app, container)

    return app
