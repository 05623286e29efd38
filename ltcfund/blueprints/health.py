from __future__ import annotations

import os
import socket
import time
from datetime import datetime, timezone
from typing import Any, Dict

from flask import Blueprint, current_app, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from ltcfund.extensions import db
from ltcfund.models import Token
from ltcfund.services.kv import get_kv

bp = Blueprint("health", __name__)

APP_STARTED_AT = time.time()
HOSTNAME = socket.gethostname()

STRICT_HEALTH = os.getenv("STRICT_HEALTH", "0").lower() in {"1", "true", "yes", "on"}

BUILD_VERSION = (
    os.getenv("BUILD_VERSION") or os.getenv("RELEASE") or os.getenv("VERSION") or "dev"
)
GIT_SHA = os.getenv("GIT_SHA", "")[:12]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def _overall_status(parts: Dict[str, Dict[str, Any]]) -> str:
    states = [p.get("status", "ok") for p in parts.values()]
    if any(s == "fail" for s in states):
        return "fail"
    if any(s == "degraded" for s in states):
        return "degraded"
    return "ok"


def _database_check() -> Dict[str, Any]:
    try:
        db.session.execute(text("SELECT 1"))
        return {"status": "ok", "ok": True}
    except SQLAlchemyError as e:
        db.session.rollback()
        return {"status": "fail", "ok": False, "error": str(e)}


def _kv_check() -> Dict[str, Any]:
    kv = get_kv()
    if not kv.enabled:
        return {"status": "ok", "ok": True, "reason": "disabled"}
    if kv.ping():
        return {"status": "ok", "ok": True}
    return {"status": "fail" if STRICT_HEALTH else "degraded", "ok": False, "reason": "ping-failed"}


def _tgb_check() -> Dict[str, Any]:
    cfg = current_app.config
    if not (cfg.get("GIVING_BLOCK_LOGIN") and cfg.get("GIVING_BLOCK_PASSWORD")):
        return {"status": "degraded", "ok": False, "reason": "no-credentials"}
    try:
        token = Token.latest()
    except SQLAlchemyError as e:
        db.session.rollback()
        return {"status": "degraded", "ok": False, "error": str(e)}
    return {
        "status": "ok",
        "ok": True,
        "token": "valid" if token and token.is_valid() else ("expired" if token else "none"),
    }


def _webflow_check() -> Dict[str, Any]:
    cfg = current_app.config
    if not (cfg.get("WEBFLOW_API_TOKEN") and cfg.get("WEBFLOW_COLLECTION_ID_PROJECTS")):
        return {"status": "degraded", "ok": False, "reason": "not-configured"}
    return {"status": "ok", "ok": True}


def _summary_payload() -> Dict[str, Any]:
    parts = {
        "database": _database_check(),
        "kv": _kv_check(),
        "tgb": _tgb_check(),
        "webflow": _webflow_check(),
    }
    overall = _overall_status(parts)
    return {
        "status": overall,
        "version": BUILD_VERSION,
        "git": GIT_SHA,
        "hostname": HOSTNAME,
        "started_at": datetime.fromtimestamp(APP_STARTED_AT, tz=timezone.utc).isoformat(
            timespec="seconds"
        ),
        "uptime_s": int(time.time() - APP_STARTED_AT),
        "now": _now_iso(),
        "parts": parts,
        "flags": {"strict": STRICT_HEALTH},
    }


@bp.get("/health")
def health():
    return jsonify(_summary_payload())


@bp.get("/status")
def status():
    p = _summary_payload()
    return jsonify({"status": p["status"], "version": p["version"], "now": p["now"]})


@bp.get("/ready")
def ready():
    p = _summary_payload()
    code = 200 if p["status"] != "fail" else 503
    return jsonify(p), code


@bp.get("/live")
def live():
    return jsonify(
        {
            "status": "ok",
            "now": _now_iso(),
            "uptime_s": int(time.time() - APP_STARTED_AT),
        }
    )
