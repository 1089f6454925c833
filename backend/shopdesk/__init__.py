# backend/shopdesk/__init__.py
import os

from flask import Flask, request

from .config import Config
from .extensions import db, migrate
from .services.backend_config_service import BackendConfigError, override_path, resolve_database_uri


def _configure_backend(app: Flask) -> None:
    path = override_path(app.instance_path, app.config["BACKEND_CONFIG_FILENAME"])
    try:
        resolved = resolve_database_uri(path)
    except BackendConfigError as e:
        # Start anyway so the override can be fixed from the Setup page
        app.logger.error("Ignoring backend override: %s", e)
        resolved = resolve_database_uri(path, use_override=False)
    app.config["SQLALCHEMY_DATABASE_URI"] = resolved.database_uri
    app.config["BACKEND_SOURCE"] = resolved.source


def create_app(config_overrides: dict | None = None, instance_path: str | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True, instance_path=instance_path)
    app.config.from_object(Config)

    # Backend database: instance override -> DATABASE_URL -> bundled SQLite.
    # Explicit overrides (tests, embedding) win over all three.
    if not (config_overrides or {}).get("SQLALCHEMY_DATABASE_URI"):
        _configure_backend(app)

    if config_overrides:
        app.config.update(config_overrides)
        if "SQLALCHEMY_DATABASE_URI" in config_overrides and "BACKEND_SOURCE" not in config_overrides:
            app.config["BACKEND_SOURCE"] = "explicit"

    app.logger.setLevel(app.config["LOG_LEVEL"])
    os.makedirs(app.instance_path, exist_ok=True)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.products import products_bp
    from .routes.customers import customers_bp
    from .routes.sales import sales_bp
    from .routes.refunds import refunds_bp
    from .routes.reports import reports_bp
    from .routes.settings import settings_bp
    from .routes.permissions import permissions_bp
    from .routes.admin import admin_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(customers_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(refunds_bp)
    app.register_blueprint(reports_bp)
    app.register_blueprint(settings_bp)
    app.register_blueprint(permissions_bp)
    app.register_blueprint(admin_bp)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allowed_origins = {
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:8080",
            "http://127.0.0.1:8080",
        }
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    app.logger.info("Shopdesk backend: source=%s", app.config["BACKEND_SOURCE"])
    return app
