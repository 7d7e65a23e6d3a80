from __future__ import annotations

import importlib
from datetime import timedelta
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .common.logging_utils import configure_logging, get_logger
from .common.web import CONTAINER_KEY, IsoJSONProvider, register_error_handlers
from .container import AppSettings, Container, build_container
from .database.bootstrap import apply_schema, apply_seed_sql, ensure_super_admin, list_tables

from .auth.controller import register as register_auth
from .chat.controller import register as register_chat
from .karyakars.controller import register as register_karyakars
from .locations.controller import register as register_locations
from .notifications.controller import register as register_notifications
from .permissions.controller import register as register_permissions
from .reports.controller import register as register_reports
from .roles.controller import register as register_roles
from .search.controller import register as register_search
from .security.controller import register as register_security
from .tasks.controller import register as register_tasks

logger = get_logger(__name__)

_DATABASE_DIR = Path(__file__).resolve().parents[3] / "database"


def _prepare_database(settings, db_config: dict) -> None:
    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        apply_schema(db_config, schema_path=_DATABASE_DIR / "schema.sql")
        logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
    if bool(getattr(settings, "AUTO_SEED_DB", False)):
        apply_seed_sql(db_config, seed_path=_DATABASE_DIR / "seed.sql")
        email = getattr(settings, "SUPER_ADMIN_EMAIL", "")
        password = getattr(settings, "SUPER_ADMIN_PASSWORD", "")
        if email and password:
            ensure_super_admin(db_config, email=email, password=password)
        logger.info("seed data ready")


def create_app(container: Optional[Container] = None) -> Flask:
    """Build the Flask app; tests pass a container wired with in-memory repositories."""

    load_dotenv(override=False)
    app = Flask(__name__)
    app.json = IsoJSONProvider(app)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["MAX_CONTENT_LENGTH"] = int(getattr(settings, "MAX_PHOTO_BYTES", 5 * 1024 * 1024)) + 64 * 1024
    app.permanent_session_lifetime = timedelta(days=7)

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
        _prepare_database(settings, db_config)
        container = build_container(db_config=db_config, settings=AppSettings.from_module(settings))

    app.extensions[CONTAINER_KEY] = container

    register_auth(app, container)
    register_permissions(app, container)
    register_roles(app, container)
    register_locations(app, container)
    register_karyakars(app, container)
    register_tasks(app, container)
    register_chat(app, container)
    register_notifications(app, container)
    register_reports(app, container)
    register_search(app, container)
    register_security(app, container)
    register_error_handlers(app)

    return app
