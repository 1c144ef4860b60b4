"""Application factory for the TheraLink web application."""
from __future__ import annotations

import logging

from flask import Flask
from flask_cors import CORS

from theralink.config import get_config
from theralink.app.demo_data import seed_demo_data
from theralink.app.middleware import register_audit_middleware
from theralink.extensions import db, jwt, migrate


def create_app(config_name: str | None = None) -> Flask:
    """Create and configure the Flask application."""

    app = Flask(__name__)
    config_cls = get_config(config_name or app.config.get("ENV"))
    app.config.from_object(config_cls)

    configure_logging(app)
    register_extensions(app)
    register_blueprints(app)

    if app.config.get("SEED_DEMO_DATA"):
        _seed_demo_data(app)

    register_audit_middleware(app)

    CORS(app)
    return app


def configure_logging(app: Flask) -> None:
    """Route module loggers through the application's log level."""

    level = logging.DEBUG if app.config.get("DEBUG") else logging.INFO
    logging.getLogger("theralink").setLevel(level)
    app.logger.setLevel(level)


def register_extensions(app: Flask) -> None:
    """Initialize Flask extensions."""

    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)


def register_blueprints(app: Flask) -> None:
    """Register application blueprints."""

    from theralink.app.api import api_bp
    from theralink.app.frontend import frontend_bp

    app.register_blueprint(api_bp, url_prefix="/api")
    app.register_blueprint(frontend_bp)


def _seed_demo_data(app: Flask) -> None:
    """Create the schema and load the mock therapists and bookings."""
    with app.app_context():
        db.create_all()
        if seed_demo_data():
            app.logger.info("Seeded demo therapists and bookings")
