# ltcfund/config/config.py
# Canonical site configuration (env-first, production-safe)

from __future__ import annotations

import os
from datetime import timedelta
from typing import List, Optional


# ----------------------------
# Env helpers
# ----------------------------
_TRUTHY = {"1", "true", "yes", "on", "y"}
_FALSY = {"0", "false", "no", "off", "n"}


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(name)
    if v is None:
        return default
    s = str(v).strip()
    return s if s else default


def _bool(name: str, default: bool = False) -> bool:
    v = _env(name)
    if v is None:
        return default
    s = v.strip().lower()
    if s in _TRUTHY:
        return True
    if s in _FALSY:
        return False
    return default


def _int(name: str, default: int) -> int:
    v = _env(name)
    if v is None:
        return default
    try:
        return int(str(v).strip())
    except Exception:
        return default


def _list(name: str, default: List[str], sep: str = ",") -> List[str]:
    raw = _env(name)
    if not raw:
        return list(default)
    return [p.strip() for p in raw.split(sep) if p.strip()]


def _clean_base_url(v: Optional[str]) -> str:
    s = (v or "").strip().rstrip("/")
    return s


DEFAULT_PROJECT_ORDER = [
    "Litecoin Foundation",
    "Litecoin Core",
    "MWEB",
    "Ordinals Lite",
    "Litewallet",
    "Litecoin Development Kit",
    "Litecoin Mempool Explorer",
]


# ----------------------------
# Config classes
# ----------------------------
class BaseConfig:
    """
    Env-first config:
    - all important settings can be overridden via environment variables
    - safe defaults for local dev
    """

    ENV = (_env("APP_ENV") or _env("ENV") or _env("FLASK_ENV") or "base").strip().lower()

    DEBUG = _bool("FLASK_DEBUG", False)
    TESTING = _bool("TESTING", False)
    LOG_LEVEL = _env("LOG_LEVEL", "INFO")

    # Security
    SECRET_KEY = _env("SECRET_KEY", "dev-change-me")

    # URLs / scheme
    PUBLIC_BASE_URL = _clean_base_url(_env("PUBLIC_BASE_URL", ""))
    PREFERRED_URL_SCHEME = _env("PREFERRED_URL_SCHEME", "https")
    TRUST_PROXY = _bool("TRUST_PROXY", False)

    # Cookies
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = _env("SESSION_COOKIE_SAMESITE", "Lax")
    SESSION_COOKIE_SECURE = True
    PERMANENT_SESSION_LIFETIME = timedelta(days=_int("SESSION_DAYS", 31))

    # SQLAlchemy
    SQLALCHEMY_DATABASE_URI = _env("DATABASE_URL", _env("SQLALCHEMY_DATABASE_URI", "sqlite:///ltcfund-dev.db"))
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}

    # KV cache (redis); empty disables caching
    KV_URL = _env("KV_URL", _env("REDIS_URL", ""))
    KV_PREFIX = _env("KV_PREFIX", "")
    PROJECTS_CACHE_TTL = _int("PROJECTS_CACHE_TTL", 259200)  # 3 days
    STATS_CACHE_TTL = _int("STATS_CACHE_TTL", 600)
    PROJECT_INFO_CACHE_TTL = _int("PROJECT_INFO_CACHE_TTL", 900)

    # The Giving Block
    TGB_API_BASE = _clean_base_url(_env("TGB_API_BASE", "https://public-api.tgbwidget.com/v1"))
    GIVING_BLOCK_LOGIN = _env("GIVING_BLOCK_LOGIN", "")
    GIVING_BLOCK_PASSWORD = _env("GIVING_BLOCK_PASSWORD", "")
    TGB_TIMEOUT = _int("TGB_TIMEOUT", 15)
    TGB_TOKEN_TTL_SECONDS = _int("TGB_TOKEN_TTL_SECONDS", 2 * 60 * 60)

    # Webflow CMS
    WEBFLOW_API_BASE = _clean_base_url(_env("WEBFLOW_API_BASE", "https://api.webflow.com/v2"))
    WEBFLOW_API_TOKEN = _env("WEBFLOW_API_TOKEN", "")
    WEBFLOW_COLLECTION_ID_PROJECTS = _env("WEBFLOW_COLLECTION_ID_PROJECTS", "")
    WEBFLOW_COLLECTION_ID_CONTRIBUTORS = _env("WEBFLOW_COLLECTION_ID_CONTRIBUTORS", "")
    WEBFLOW_TIMEOUT = _int("WEBFLOW_TIMEOUT", 20)
    PROJECT_DISPLAY_ORDER = _list("PROJECT_DISPLAY_ORDER", DEFAULT_PROJECT_ORDER)

    # Project submissions -> GitHub issues
    GITHUB_ACCESS_TOKEN = _env("GITHUB_ACCESS_TOKEN", "")
    GITHUB_SUBMISSIONS_REPO = _env("GITHUB_SUBMISSIONS_REPO", "")
    GITHUB_API_BASE = _clean_base_url(_env("GITHUB_API_BASE", "https://api.github.com"))

    # Default TGB organization for the donate page
    TGB_ORGANIZATION_ID = _int("TGB_ORGANIZATION_ID", 0)

    @classmethod
    def init_app(cls, app) -> None:
        """
        Boot hardening hook, called from create_app() after from_object().
        """
        uri = str(app.config.get("SQLALCHEMY_DATABASE_URI") or "")

        # Heroku-style URLs
        if uri.startswith("postgres://"):
            app.config["SQLALCHEMY_DATABASE_URI"] = "postgresql://" + uri[len("postgres://"):]

        if uri.startswith("sqlite:"):
            opts = dict(app.config.get("SQLALCHEMY_ENGINE_OPTIONS") or {})
            connect_args = dict(opts.get("connect_args") or {})
            connect_args.setdefault("check_same_thread", False)
            opts["connect_args"] = connect_args
            opts.setdefault("pool_pre_ping", True)
            app.config["SQLALCHEMY_ENGINE_OPTIONS"] = opts

        if not app.config.get("TGB_ORGANIZATION_ID"):
            app.logger.warning("TGB_ORGANIZATION_ID is not set; donate page pledges will be rejected")


class DevelopmentConfig(BaseConfig):
    ENV = "development"
    DEBUG = True

    SESSION_COOKIE_SECURE = False
    PREFERRED_URL_SCHEME = _env("PREFERRED_URL_SCHEME", "http")
    TRUST_PROXY = _bool("TRUST_PROXY", False)


class TestingConfig(BaseConfig):
    ENV = "testing"
    TESTING = True
    DEBUG = False

    SECRET_KEY = "testing"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SESSION_COOKIE_SECURE = False
    WTF_CSRF_ENABLED = False
    AUTO_CREATE_SQLITE = False

    KV_URL = ""
    TGB_API_BASE = "https://tgb.test/v1"
    GIVING_BLOCK_LOGIN = "login@example.org"
    GIVING_BLOCK_PASSWORD = "secret"
    WEBFLOW_API_BASE = "https://webflow.test/v2"
    WEBFLOW_API_TOKEN = "wf-token"
    WEBFLOW_COLLECTION_ID_PROJECTS = "projects-collection"
    WEBFLOW_COLLECTION_ID_CONTRIBUTORS = ""
    GITHUB_ACCESS_TOKEN = "gh-token"
    GITHUB_SUBMISSIONS_REPO = "example/submissions"
    GITHUB_API_BASE = "https://github.test"
    TGB_ORGANIZATION_ID = 1189132


class ProductionConfig(BaseConfig):
    ENV = "production"
    DEBUG = False

    SESSION_COOKIE_SECURE = True
    PREFERRED_URL_SCHEME = _env("PREFERRED_URL_SCHEME", "https")
    TRUST_PROXY = _bool("TRUST_PROXY", True)

    @classmethod
    def init_app(cls, app) -> None:
        super().init_app(app)

        # ---- Production guardrails (fail fast) ----
        sk = app.config.get("SECRET_KEY")
        if not sk or sk == "dev-change-me":
            raise RuntimeError("SECRET_KEY must be set to a strong random value in production.")

        base = (app.config.get("PUBLIC_BASE_URL") or "").strip()
        if base and base.startswith("http://"):
            raise RuntimeError("PUBLIC_BASE_URL must be https:// in production.")

        if _bool("FLASK_DEBUG", False):
            raise RuntimeError("FLASK_DEBUG must be 0 in production.")
