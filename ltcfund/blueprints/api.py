"""
JSON API consumed by the donation widgets and project pages.

Mount: /api  (CSRF-exempt, CORS-enabled, never cached except /api/stats)

Error bodies keep the shapes the front-end reads:
  {"error": "..."}                          most endpoints
  {"message": "..."}                        getCryptoRate / getInfoTGB
  {"error": "...", "details": ...}          crypto donation, webflow
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional

from flask import Blueprint, current_app, jsonify, request

from ltcfund.extensions import csrf
from ltcfund.services import donations, stats
from ltcfund.services.errors import ServiceError
from ltcfund.services.submissions import create_submission_issue
from ltcfund.services.webflow import get_all_published_projects, get_project_by_slug

bp = Blueprint("api", __name__)
csrf.exempt(bp)

STATS_CACHE_CONTROL = "s-maxage=600, stale-while-revalidate"


# ----------------------------
# Small utilities
# ----------------------------
def _json_response(payload: Any, status: int = 200, cache_control: Optional[str] = None):
    resp = jsonify(payload)
    resp.status_code = int(status)
    if cache_control:
        resp.headers["Cache-Control"] = cache_control
    else:
        resp.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
        resp.headers["Pragma"] = "no-cache"
        resp.headers["Expires"] = "0"
    return resp


def _request_payload() -> Optional[Dict[str, Any]]:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else None


def _invalid_json():
    return _json_response({"error": "Invalid JSON body"}, 400)


def _service_error(e: ServiceError, what: str, key: str = "error"):
    if e.status_code >= 500:
        current_app.logger.error("Error %s: %s", what, e.message)
    else:
        current_app.logger.info("Rejected %s: %s", what, e.message)
    return _json_response({key: e.message}, e.status_code)


def _unexpected_error(e: Exception, what: str, key: str = "error"):
    current_app.logger.exception("Error %s", what)
    return _json_response({key: str(e) or "Internal Server Error"}, 500)


def _run(fn: Callable[[Dict[str, Any]], Dict[str, Any]], what: str):
    data = _request_payload()
    if data is None:
        return _invalid_json()
    try:
        return _json_response(fn(data))
    except ServiceError as e:
        return _service_error(e, what)
    except Exception as e:
        return _unexpected_error(e, what)


# ----------------------------
# Fiat
# ----------------------------
@bp.post("/createFiatDonationPledge")
@bp.post("/tgb/donations/fiat", endpoint="tgb_fiat_donation")
def create_fiat_donation_pledge():
    return _run(donations.create_fiat_pledge, "creating fiat donation pledge")


@bp.post("/chargeFiatDonationPledge")
def charge_fiat_donation_pledge():
    return _run(donations.charge_fiat_pledge, "charging fiat donation pledge")


# ----------------------------
# Crypto
# ----------------------------
@bp.post("/createDepositAddress")
def create_deposit_address():
    return _run(donations.create_deposit_address, "creating crypto donation pledge")


@bp.post("/tgb/donations/crypto")
def create_crypto_donation():
    data = _request_payload()
    if data is None:
        return _invalid_json()
    try:
        return _json_response(donations.create_crypto_donation(data))
    except ServiceError as e:
        if e.status_code == 400:
            return _service_error(e, "creating crypto donation")
        current_app.logger.error("Error creating crypto donation: %s", e.message)
        return _json_response(
            {"error": "Failed to create crypto donation", "details": e.payload or e.message},
            500,
        )
    except Exception as e:
        current_app.logger.exception("Error creating crypto donation")
        return _json_response({"error": "Failed to create crypto donation", "details": str(e)}, 500)


# ----------------------------
# Stock
# ----------------------------
@bp.post("/createStockDonationPledge")
def create_stock_donation_pledge():
    return _run(donations.create_stock_pledge, "creating stock donation pledge")


@bp.post("/signStockDonation")
def sign_stock_donation():
    return _run(donations.sign_stock_donation, "signing stock donation")


@bp.post("/getTickerList")
def get_ticker_list():
    return _run(donations.get_ticker_list, "fetching ticker list")


@bp.get("/getTickerCost")
def get_ticker_cost():
    try:
        return _json_response(donations.get_ticker_cost(request.args.get("ticker")))
    except ServiceError as e:
        return _service_error(e, "fetching ticker cost")
    except Exception as e:
        return _unexpected_error(e, "fetching ticker cost")


# ----------------------------
# Rates & stats
# ----------------------------
@bp.get("/getCryptoRate")
def get_crypto_rate():
    currency = request.args.get("currency")
    if not currency:
        return _json_response({"message": "Currency code is required"}, 400)
    try:
        return _json_response(donations.get_crypto_rate(currency))
    except ServiceError as e:
        return _service_error(e, "fetching crypto rate")
    except Exception as e:
        return _unexpected_error(e, "fetching crypto rate")


@bp.get("/getInfoTGB")
def get_info_tgb():
    try:
        return _json_response(stats.get_project_donation_info(request.args.get("slug")))
    except ServiceError as e:
        return _service_error(e, "fetching donation info", key="message")
    except Exception as e:
        return _unexpected_error(e, "fetching donation info", key="message")


@bp.get("/stats")
def site_stats():
    debug = current_app.config.get("ENV") != "production" and request.args.get("debug") == "1"
    try:
        payload = stats.get_site_stats(debug=debug)
    except Exception:
        current_app.logger.exception("[stats] Error fetching stats")
        return _json_response({"error": "Internal Server Error"}, 500)
    if debug:
        return _json_response(payload)
    return _json_response(payload, cache_control=STATS_CACHE_CONTROL)


# ----------------------------
# Webflow catalog
# ----------------------------
@bp.get("/webflow/projects")
def webflow_projects():
    try:
        projects = get_all_published_projects()
    except ServiceError as e:
        current_app.logger.error("Error fetching projects: %s", e.message)
        return _json_response({"error": "Failed to fetch projects", "details": e.message}, 500)
    return _json_response({"projects": [p.as_dict() for p in projects]})


@bp.get("/webflow/projects/<slug>")
def webflow_project(slug: str):
    try:
        project = get_project_by_slug(slug)
    except ServiceError as e:
        current_app.logger.error("Error fetching project %s: %s", slug, e.message)
        return _json_response({"error": "Failed to fetch project", "details": e.message}, 500)
    if project is None:
        return _json_response({"error": "Project not found"}, 404)
    return _json_response({"project": project.as_dict()})


# ----------------------------
# Project submissions
# ----------------------------
@bp.post("/github")
def submit_project():
    data = _request_payload()
    if data is None:
        return _invalid_json()
    try:
        create_submission_issue(data)
    except ServiceError as e:
        return _service_error(e, "submitting project")
    except Exception as e:
        return _unexpected_error(e, "submitting project")
    return _json_response({"message": "success"})
