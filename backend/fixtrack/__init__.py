# backend/fixtrack/__init__.py
from __future__ import annotations

import logging

from flask import Flask

from .config import Config, engine_options_for
from .extensions import db, migrate


def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)

    # Store location is explicit: overrides land before the engine is built
    if config_overrides:
        app.config.update(config_overrides)
    if "SQLALCHEMY_ENGINE_OPTIONS" not in app.config:
        app.config["SQLALCHEMY_ENGINE_OPTIONS"] = engine_options_for(
            app.config["SQLALCHEMY_DATABASE_URI"], app.config["SQLITE_BUSY_TIMEOUT"],
        )

    app.logger.setLevel(getattr(logging, str(app.config["LOG_LEVEL"]).upper(), logging.INFO))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.documents import documents_bp
    from .routes.parties import parties_bp
    from .routes.inventory import inventory_bp
    from .routes.sessions import sessions_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(documents_bp)
    app.register_blueprint(parties_bp)
    app.register_blueprint(inventory_bp)
    app.register_blueprint(sessions_bp)

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
