from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .analytics.controller import register as register_analytics
from .careers.controller import register as register_careers
from .common.http import register_error_handlers
from .common.log import configure_logging
from .container import Container, build_container
from .context.controller import register as register_context
from .courses.controller import register as register_courses
from .database.bootstrap import apply_schema, list_tables
from .database.connection import DBConfig
from .notifications.controller import register as register_notifications
from .organizations.controller import register as register_organizations
from .recommendations.controller import register as register_recommendations
from .search.controller import register as register_search
from .social.controller import register as register_social
from .superadmin.controller import register as register_superadmin
from .users.controller import register as register_users

logger = logging.getLogger(__name__)


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.json.ensure_ascii = False

    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    logger.info("settings=%s db=%s", settings_module, DBConfig.from_dict(db_config).describe())

    if container is None:
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            schema_path = Path(__file__).resolve().parents[2] / "database" / "schema.sql"
            apply_schema(db_config, schema_path=schema_path)
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
        container = build_container(db_config=db_config, settings=settings)

    register_error_handlers(app)
    register_users(app, container)
    register_context(app, container)
    register_organizations(app, container)
    register_notifications(app, container)
    register_courses(app, container)
    register_careers(app, container)
    register_recommendations(app, container)
    register_search(app, container)
    register_social(app, container)
    register_superadmin(app, container)
    register_analytics(app, container)

    return app
