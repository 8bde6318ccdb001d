# backend/daybook/__init__.py
from flask import Flask

from .config import Config
from .extensions import db, migrate


def create_app(test_config: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    app.logger.setLevel(str(app.config.get("LOG_LEVEL", "INFO")).upper())

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Append-only guards for the drawer audit trail and expenses
    from .immutability import register_immutability_listeners
    register_immutability_listeners()

    # Register blueprints
    from .routes.system import system_bp
    from .routes.cash_drawer import cash_drawer_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(cash_drawer_bp)

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
