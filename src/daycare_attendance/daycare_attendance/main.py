from __future__ import annotations

import importlib
import logging
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask, jsonify

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .common.logging import configure_logging
from .container import Container, build_container
from .database.bootstrap import apply_procedures, apply_schema, apply_seed_sql, list_tables
from .kiosk.controller import register as register_kiosk
from .pickups.controller import register as register_pickups

logger = logging.getLogger(__name__)

DATABASE_DIR = Path(__file__).resolve().parents[3] / "database"


def _bootstrap_database(settings, db_config: dict) -> None:
    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        apply_schema(db_config, schema_path=DATABASE_DIR / "schema.sql")
        apply_procedures(db_config, procedures_path=DATABASE_DIR / "procedures.sql")
        logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))
    if bool(getattr(settings, "AUTO_SEED_DB", False)):
        apply_seed_sql(db_config, seed_path=DATABASE_DIR / "seed.sql")
        logger.info("Demo seed ready")


def create_app(container: Container | None = None) -> Flask:
    """Application factory.

    Tests pass a container built over in-memory repositories; otherwise the
    MySQL container is built from the ``APP_ENV`` settings module.
    """

    load_dotenv(override=False)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(
        level=str(getattr(settings, "LOG_LEVEL", "INFO")),
        json=bool(getattr(settings, "LOG_JSON", False)),
    )

    app = Flask(__name__)
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
        _bootstrap_database(settings, db_config)
        container = build_container(db_config=db_config, settings=settings)

    app.extensions["daycare_container"] = container

    @app.route("/health", endpoint="health")
    def health():
        return jsonify({"success": True, "status": "ok"})

    register_attendance(app, container)
    register_pickups(app, container)
    register_kiosk(app, container)

    return app
