# rentdesk/__init__.py
from __future__ import annotations

import logging
import os
from datetime import datetime
from typing import Any, Optional

import click
from flask import Flask, jsonify
from werkzeug.middleware.proxy_fix import ProxyFix
from werkzeug.utils import import_string

from .errors import register_error_handlers
from .extensions import cors, db, jwt


# --- Config ------------------------------------------------------------------
def _get_allowed_origins(app: Flask) -> list[str]:
    """Allowed CORS origins: the local dev servers plus CORS_ALLOWED_ORIGINS."""
    default = [
        "http://localhost:5173",
        "http://localhost:5174",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:5174",
    ]
    extra = app.config.get("CORS_ALLOWED_ORIGINS", "")
    extra_list = [o.strip() for o in extra.split(",") if o.strip()]
    return sorted(set(default + extra_list))


def _configure_logging(app: Flask) -> None:
    """JSON logs to stdout."""
    level = str(app.config.get("LOG_LEVEL", "INFO")).upper()
    app.logger.setLevel(level)
    root = logging.getLogger()
    root.setLevel(level)

    # avoid duplicate handlers in reloaders
    if not any(isinstance(h, logging.StreamHandler) for h in root.handlers):
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            fmt='{"ts":"%(asctime)s","level":"%(levelname)s","msg":"%(message)s","name":"%(name)s"}',
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )
        handler.setFormatter(formatter)
        root.addHandler(handler)


def _configure_cors(app: Flask) -> None:
    cors.init_app(
        app,
        resources={r"/api/*": {"origins": _get_allowed_origins(app)}},
        supports_credentials=True,
        methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
        max_age=86400,
    )


def _configure_proxy(app: Flask) -> None:
    """Respect X-Forwarded-* from the hosting proxy."""
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)  # type: ignore


def _register_blueprints(app: Flask) -> None:
    from .routes import notices_bp, rent_bp

    prefix = app.config["API_PREFIX"]
    for bp in (rent_bp, notices_bp):
        app.register_blueprint(bp, url_prefix=prefix)
        app.logger.debug("Registered blueprint %s at %s", bp.name, prefix)


def _register_cli(app: Flask) -> None:
    @app.cli.command("init-db")
    def init_db():
        """Create all tables."""
        from . import models  # noqa: F401

        db.create_all()
        click.echo("Database schema created.")


# --- Application Factory ------------------------------------------------------
def create_app(config_object: Optional[str | Any] = None) -> Flask:
    """
    Standard Flask application factory.

    `config_object` may be:
      - a config object
      - dotted path to a config class (e.g., "rentdesk.config.ProductionConfig")
      - None (then CONFIG_CLASS env or rentdesk.config.Config)
    """
    app = Flask(__name__)

    if config_object is None:
        config_object = os.getenv("CONFIG_CLASS", "rentdesk.config.Config")
    if isinstance(config_object, str):
        config_object = import_string(config_object)
    if hasattr(config_object, "validate"):
        config_object.validate()
    app.config.from_object(config_object)

    app.config.setdefault("API_PREFIX", "/api")

    # Core middleware/logging/CORS
    _configure_logging(app)
    _configure_proxy(app)
    _configure_cors(app)

    # Init extensions & blueprints
    db.init_app(app)
    jwt.init_app(app)
    register_error_handlers(app)
    _register_blueprints(app)
    _register_cli(app)

    @app.get(app.config["API_PREFIX"] + "/health")
    def health():
        return jsonify(
            {
                "status": "ok",
                "time": datetime.utcnow().isoformat() + "Z",
                "service": "rentdesk",
            }
        ), 200

    return app
