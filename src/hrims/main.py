from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from .auth.controller import register as register_auth
from .auth.guards import CONTAINER_KEY
from .common.http import register_error_handlers
from .container import Container, build_container
from .database.bootstrap import apply_schema, apply_seed_sql, ensure_demo_users, list_tables
from .departments.controller import register as register_departments
from .employees.controller import register as register_employees
from .grades.controller import register as register_grades
from .loans.controller import register as register_loans
from .overtime.controller import register as register_overtime
from .positions.controller import register as register_positions
from .settings import get_settings_module
from .travel.controller import register as register_travel

logger = logging.getLogger(__name__)

DATABASE_DIR = Path(__file__).resolve().parent / "database"


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    db_config = getattr(settings, "DB_CONFIG")

    logging.basicConfig(
        level=str(getattr(settings, "LOG_LEVEL", "INFO")).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if container is None:
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=DATABASE_DIR / "schema.sql")
            logger.info("schema ready (tables=%s)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            apply_seed_sql(db_config, seed_path=DATABASE_DIR / "seed.sql")
            ensure_demo_users(db_config)
            logger.info("seed data ready")

        container = build_container(
            db_config=db_config,
            auth_config={
                "secret": getattr(settings, "JWT_SECRET"),
                "algorithm": getattr(settings, "JWT_ALGORITHM", "HS256"),
                "access_expires_seconds": getattr(settings, "ACCESS_TOKEN_EXPIRES_SECONDS"),
                "refresh_expires_days": getattr(settings, "REFRESH_TOKEN_EXPIRES_DAYS"),
            },
            avatar_dir=getattr(settings, "AVATAR_DIR", "uploads/avatars"),
        )

    register_error_handlers(app)
    app.extensions[CONTAINER_KEY] = container

    register_auth(app, container)
    register_employees(app, container)
    register_departments(app, container)
    register_positions(app, container)
    register_grades(app, container)
    register_loans(app, container)
    register_overtime(app, container)
    register_travel(app, container)

    return app
