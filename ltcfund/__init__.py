# ltcfund/__init__.py
# Open-Source Fund: Flask app factory
# - env-first config selection
# - request-id logging, JSON errors under /api, HTML elsewhere
# - proxy-correct behind a reverse proxy

from __future__ import annotations

import logging
import os
import secrets
import time
from importlib import import_module
from typing import Any, Dict, List, Optional, Tuple, Type, Union
from uuid import uuid4

import sentry_sdk
from dotenv import load_dotenv
from flask import Blueprint, Flask, g, jsonify, render_template, request
from flask_compress import Compress
from flask_talisman import Talisman
from sentry_sdk.integrations.flask import FlaskIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration
from werkzeug.exceptions import HTTPException, InternalServerError
from werkzeug.middleware.proxy_fix import ProxyFix
from werkzeug.utils import import_string

# never override real env vars
load_dotenv(override=False)

from ltcfund.config import CONFIG_BY_NAME, DevelopmentConfig  # noqa: E402
from ltcfund.extensions import cors, db, init_all_extensions  # noqa: E402

ConfigLike = Union[str, Type[Any]]

__version__ = "1.0.0"


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------
def _env_bool(name: str) -> Optional[bool]:
    v = os.getenv(name)
    if v is None:
        return None
    s = str(v).strip().lower()
    if s in {"1", "true", "t", "yes", "y", "on"}:
        return True
    if s in {"0", "false", "f", "no", "n", "off"}:
        return False
    return None


def _env_mode(app: Optional[Flask] = None) -> str:
    """
    Priority:
      1) app.config["ENV"] when meaningful
      2) APP_ENV / ENV / FLASK_ENV
      3) "development"
    """
    if app is not None:
        v = str(app.config.get("ENV") or "").strip().lower()
        if v and v != "base":
            return v

    for key in ("APP_ENV", "ENV", "FLASK_ENV"):
        val = (os.getenv(key) or "").strip().lower()
        if val:
            if val == "prod":
                return "production"
            if val == "dev":
                return "development"
            return val

    return "development"


def _resolve_config(target: Optional[ConfigLike]) -> ConfigLike:
    if target is not None:
        return target

    explicit = (os.getenv("FLASK_CONFIG") or "").strip()
    if explicit:
        return CONFIG_BY_NAME.get(explicit.lower(), explicit)

    return CONFIG_BY_NAME.get(_env_mode(None), DevelopmentConfig)


def _is_prod(app: Flask) -> bool:
    return _env_mode(app) == "production"


def _json_error(message: str, status: int, **extra: Any):
    payload: Dict[str, Any] = {"ok": False, "error": {"code": int(status), "message": str(message)}}
    rid = extra.pop("request_id", None)
    if rid:
        payload["error"]["request_id"] = rid
    if extra:
        payload["error"].update(extra)

    resp = jsonify(payload)
    resp.status_code = int(status)
    return resp


def _wants_json_response() -> bool:
    path = request.path or ""
    if path.startswith("/api/"):
        return True
    accept = (request.headers.get("Accept") or "").lower()
    return "application/json" in accept or bool(request.is_json)


def _parse_cors_origins(env: str) -> Union[str, List[str]]:
    default_prod = os.getenv("PRIMARY_ORIGIN", "https://litecoin.com").strip()
    raw = (os.getenv("CORS_ORIGINS") or ("*" if env != "production" else default_prod)).strip()
    if raw in {"", "*"}:
        return raw
    if "," in raw:
        return [o.strip() for o in raw.split(",") if o.strip()]
    return raw


# -----------------------------------------------------------------------------
# Logging with request_id
# -----------------------------------------------------------------------------
class _RequestIDFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        try:
            record.request_id = getattr(g, "request_id", "-")
        except RuntimeError:
            # outside an app/request context
            record.request_id = "-"
        return True


def _configure_logging(app: Flask) -> None:
    fmt = "%(asctime)s [%(levelname)s] %(name)s [rid=%(request_id)s]: %(message)s"
    root = logging.getLogger()

    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(fmt))
        handler.addFilter(_RequestIDFilter())
        root.addHandler(handler)
    else:
        for h in root.handlers:
            if not any(isinstance(f, _RequestIDFilter) for f in h.filters):
                h.addFilter(_RequestIDFilter())
            fmt_in_use = getattr(h.formatter, "_fmt", "") or ""
            if "%(request_id)s" not in fmt_in_use:
                h.setFormatter(logging.Formatter(fmt))

    root.setLevel(str(app.config.get("LOG_LEVEL", "INFO")).upper())
    logging.getLogger("werkzeug").setLevel(str(app.config.get("WERKZEUG_LOG_LEVEL", "WARNING")).upper())
    app.logger.info("Loaded config: ENV=%s DEBUG=%s", app.config.get("ENV", "?"), app.debug)


# -----------------------------------------------------------------------------
# Jinja helpers
# -----------------------------------------------------------------------------
def _register_jinja_helpers(app: Flask) -> None:
    from ltcfund.config import SITE_METADATA
    from ltcfund.filters import register_filters

    register_filters(app)

    @app.context_processor
    def _site_context():
        return {"site": SITE_METADATA, "current_year": time.gmtime().tm_year}


# -----------------------------------------------------------------------------
# ProxyFix (reverse proxy)
# -----------------------------------------------------------------------------
def _apply_proxyfix(app: Flask) -> None:
    trust = _env_bool("TRUST_PROXY")
    if trust is None:
        trust = bool(app.config.get("TRUST_PROXY", False))

    if not trust:
        return

    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1, x_prefix=1)
    app.logger.info("ProxyFix enabled (trusting X-Forwarded-* headers).")


# -----------------------------------------------------------------------------
# Blueprint registration
# -----------------------------------------------------------------------------
BLUEPRINTS: List[Tuple[str, str, Optional[str]]] = [
    ("ltcfund.blueprints.api", "bp", "/api"),
    ("ltcfund.blueprints.health", "bp", None),
    ("ltcfund.blueprints.pages", "pages_bp", None),
]


def _register_blueprints(app: Flask) -> None:
    disabled = {p.strip().lower() for p in (os.getenv("DISABLE_BPS", "")).split(",") if p.strip()}
    for dotted, attr, prefix in BLUEPRINTS:
        if dotted.split(".")[-1].lower() in disabled:
            app.logger.info("Disabled module: %s", dotted)
            continue

        blueprint = getattr(import_module(dotted), attr)
        if not isinstance(blueprint, Blueprint):
            raise RuntimeError(f"{dotted}.{attr} is not a Blueprint")

        app.register_blueprint(blueprint, url_prefix=prefix)
        app.logger.debug("Registered blueprint: %-8s → %s", blueprint.name, prefix or "/")


# -----------------------------------------------------------------------------
# Integrations
# -----------------------------------------------------------------------------
def _init_sentry(app: Flask) -> None:
    dsn = (os.getenv("SENTRY_DSN") or "").strip()
    if not dsn:
        return
    sentry_sdk.init(
        dsn=dsn,
        integrations=[
            FlaskIntegration(),
            LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
            SqlalchemyIntegration(),
        ],
        traces_sample_rate=float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.0")),
        send_default_pii=False,
        environment=app.config.get("ENV", "development"),
        release=os.getenv("GIT_COMMIT"),
    )
    app.logger.info("Sentry initialized")


def _init_talisman(app: Flask) -> None:
    if not _is_prod(app):
        return
    Talisman(app, content_security_policy=None)


def _init_cors(app: Flask, cors_origins: Union[str, List[str]]) -> None:
    supports_credentials = (os.getenv("CORS_SUPPORTS_CREDENTIALS", "")).strip().lower() in {"1", "true", "yes", "on"}
    if cors_origins == "*":
        supports_credentials = False

    cors.init_app(
        app,
        supports_credentials=supports_credentials,
        resources={r"/api/*": {"origins": cors_origins}},
        expose_headers=["X-Request-ID"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
        methods=["GET", "POST", "OPTIONS"],
    )


def _maybe_create_sqlite_tables(app: Flask) -> None:
    uri = (app.config.get("SQLALCHEMY_DATABASE_URI") or "").strip()
    if not uri.startswith("sqlite"):
        return
    if app.config.get("AUTO_CREATE_SQLITE", True) is not True:
        return
    from ltcfund import models  # noqa: F401

    with app.app_context():
        db.create_all()


# -----------------------------------------------------------------------------
# Request lifecycle + errors
# -----------------------------------------------------------------------------
def _register_request_lifecycle(app: Flask) -> None:
    @app.before_request
    def _bootstrap_request():
        g.request_id = request.headers.get("X-Request-ID") or uuid4().hex
        g._start_ts = time.perf_counter()

    @app.after_request
    def _attach_request_headers(resp):
        resp.headers["X-Request-ID"] = getattr(g, "request_id", "-")
        start = getattr(g, "_start_ts", None)
        if start:
            resp.headers["X-Response-Time-ms"] = str(int((time.perf_counter() - start) * 1000))
        return resp


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(HTTPException)
    def _http_err(err: HTTPException):
        if _wants_json_response():
            return _json_error(err.description or err.name, err.code or 500, request_id=getattr(g, "request_id", "-"))
        if err.code == 404:
            return render_template("errors/404.html"), 404
        return err

    @app.errorhandler(Exception)
    def _uncaught(err: Exception):
        app.logger.exception("Unhandled error")
        if _wants_json_response():
            return _json_error("Internal Server Error", 500, request_id=getattr(g, "request_id", "-"))
        return InternalServerError()


# -----------------------------------------------------------------------------
# Health endpoints
# -----------------------------------------------------------------------------
def _register_health_endpoints(app: Flask) -> None:
    @app.get("/healthz")
    def _healthz():
        return {
            "status": "ok",
            "env": app.config.get("ENV", "unknown"),
            "request_id": getattr(g, "request_id", "-"),
        }

    @app.get("/version")
    def _version():
        return {
            "version": os.getenv("GIT_COMMIT") or __version__,
            "env": app.config.get("ENV"),
            "public_base_url": app.config.get("PUBLIC_BASE_URL") or "",
        }


# -----------------------------------------------------------------------------
# App Factory
# -----------------------------------------------------------------------------
def create_app(config_class: Optional[ConfigLike] = None) -> Flask:
    app = Flask(__name__)

    # ---- Config loading
    cfg = _resolve_config(config_class)
    app.config.from_object(cfg)
    config_obj = import_string(cfg) if isinstance(cfg, str) else cfg
    if hasattr(config_obj, "init_app"):
        config_obj.init_app(app)

    env = _env_mode(app)
    app.config["ENV"] = env
    app.url_map.strict_slashes = False

    app.config.setdefault("JSON_SORT_KEYS", False)
    if not app.config.get("SECRET_KEY"):
        app.config["SECRET_KEY"] = secrets.token_urlsafe(32)

    # ---- Proxy handling first
    _apply_proxyfix(app)

    # ---- Logging / Jinja helpers
    _configure_logging(app)
    _register_jinja_helpers(app)

    # ---- Optional integrations
    _init_sentry(app)
    _init_talisman(app)
    _init_cors(app, _parse_cors_origins(env))

    # ---- Core extensions
    init_all_extensions(app)
    _maybe_create_sqlite_tables(app)
    Compress(app)

    # ---- Request lifecycle / errors
    _register_request_lifecycle(app)
    _register_error_handlers(app)

    # ---- Blueprints + health + CLI
    _register_blueprints(app)
    _register_health_endpoints(app)

    from ltcfund.cli import init_cli

    init_cli(app)
    return app
