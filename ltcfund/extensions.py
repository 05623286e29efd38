import logging
import time
from typing import Any, Callable

from flask_cors import CORS
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from flask_wtf.csrf import CSRFProtect

from ltcfund.services.kv import init_kv

log = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────
# Core singletons
# ─────────────────────────────────────────────────────────────
db = SQLAlchemy()
migrate = Migrate()
csrf = CSRFProtect()
cors = CORS()


# ─────────────────────────────────────────────────────────────
# Safe DB helpers
# ─────────────────────────────────────────────────────────────
def safe_commit() -> bool:
    try:
        db.session.commit()
        return True
    except Exception as e:
        log.error("DB commit failed: %s", e, exc_info=True)
        db.session.rollback()
        return False


def with_db_retry(retries: int = 2, backoff: float = 0.2):
    def _wrap(fn: Callable[..., Any]) -> Callable[..., Any]:
        def _inner(*args: Any, **kwargs: Any):
            attempt = 0
            while True:
                try:
                    return fn(*args, **kwargs)
                except Exception:
                    db.session.rollback()
                    attempt += 1
                    if attempt > retries:
                        raise
                    time.sleep(float(backoff) * attempt)

        return _inner

    return _wrap


# ─────────────────────────────────────────────────────────────
# Init all extensions
# ─────────────────────────────────────────────────────────────
def init_all_extensions(app: Any) -> None:
    """
    CORS is configured by create_app() with per-route resources, so it is
    not initialized here.
    """
    db.init_app(app)
    migrate.init_app(app, db, compare_type=True, render_as_batch=True)
    csrf.init_app(app)
    init_kv(app)


__all__ = [
    "db",
    "migrate",
    "csrf",
    "cors",
    "safe_commit",
    "with_db_retry",
    "init_all_extensions",
]
