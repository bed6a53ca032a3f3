# flagcore/__init__.py
from __future__ import annotations

import logging
import os
import time
from typing import Any, Optional

from flask import Flask, g, request
from flask_cors import CORS
from werkzeug.middleware.proxy_fix import ProxyFix

from .errors import register_error_handlers
from .extensions import db, jwt, migrate
from .models import parse_environment
from .models.audit_hooks import log_audit_event
from .repository import InMemoryFlagStore, SqlAlchemyFlagStore
from .services import FlagLifecycleManager

__all__ = ["create_app", "db"]


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
    prefix = app.config["API_PREFIX"]
    CORS(
        app,
        resources={prefix + "/*": {"origins": app.config.get("CORS_ALLOWED_ORIGINS") or []}},
        supports_credentials=True,
        methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
        max_age=86400,
    )


def _configure_request_logging(app: Flask) -> None:
    """One INFO line per request: method, path, status, duration."""
    request_log = logging.getLogger("flagcore.requests")

    @app.before_request
    def _start_timer():
        g.request_started = time.perf_counter()

    @app.after_request
    def _log_request(resp):
        started = g.get("request_started")
        elapsed_ms = (time.perf_counter() - started) * 1000 if started is not None else 0.0
        request_log.info("%s %s -> %s (%.1f ms)", request.method, request.path, resp.status_code, elapsed_ms)
        return resp


def _configure_proxy(app: Flask) -> None:
    """Respect X-Forwarded-* from the load balancer."""
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)  # type: ignore


def _load_config(app: Flask, config_object: Optional[str | Any]) -> None:
    if config_object is None:
        config_object = os.getenv("CONFIG_CLASS", "config.Config")
    if isinstance(config_object, str):
        # load "package.ClassName"
        module, _, cls = config_object.rpartition(".")
        if module:
            config_object = getattr(__import__(module, fromlist=[cls]), cls)
    app.config.from_object(config_object)

    if not app.config.get("SQLALCHEMY_DATABASE_URI"):
        app.config["SQLALCHEMY_DATABASE_URI"] = "sqlite:///" + os.path.join(app.instance_path, "flags.db")
    app.config.setdefault("API_PREFIX", "/api")
    app.config.setdefault("FLAGS_STORE", "sql")
    app.config.setdefault("FLAGS_DEFAULT_ENVIRONMENT", "local")
    # fail at startup, not on the first request
    app.config["FLAGS_DEFAULT_ENVIRONMENT"] = parse_environment(app.config["FLAGS_DEFAULT_ENVIRONMENT"]).value


def _build_manager(app: Flask, store=None) -> FlagLifecycleManager:
    if store is None:
        kind = app.config["FLAGS_STORE"]
        if kind == "memory":
            store = InMemoryFlagStore()
        elif kind == "sql":
            store = SqlAlchemyFlagStore(db)
        else:
            raise ValueError(f"unknown FLAGS_STORE {kind!r} (expected 'sql' or 'memory')")
    else:
        kind = type(store).__name__
    audit = log_audit_event if app.config.get("FLAGS_AUDIT_LOG") else None
    app.logger.info("Flag store: %s (audit log %s)", kind, "on" if audit else "off")
    return FlagLifecycleManager(store, audit=audit)


def create_app(config_object: Optional[str | Any] = None, store=None) -> Flask:
    """
    Standard Flask application factory.

    `config_object` may be a config object, a dotted path to a config class
    (e.g. "config.TestConfig") or None (CONFIG_CLASS env, default
    config.Config). `store` overrides the FlagStore picked from FLAGS_STORE.
    """
    app = Flask(__name__, instance_relative_config=True)
    os.makedirs(app.instance_path, exist_ok=True)

    _load_config(app, config_object)

    _configure_logging(app)
    _configure_proxy(app)
    _configure_cors(app)
    _configure_request_logging(app)

    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)

    app.extensions["flag_manager"] = _build_manager(app, store)

    from .cli import flags_cli
    from .routes import flags_bp, ops_bp

    app.register_blueprint(flags_bp, url_prefix=app.config["API_PREFIX"])
    app.register_blueprint(ops_bp)
    app.cli.add_command(flags_cli)

    register_error_handlers(app)
    return app
