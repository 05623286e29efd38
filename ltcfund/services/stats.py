# ltcfund/services/stats.py
"""
Site-wide and per-project donation statistics.

Two schemas may coexist in a deployment: the legacy `donations` +
`matching_donation_logs` tables and the newer `donation_pledges` table.
Legacy sums win when they are positive; pledges are the fallback. A table
that is missing is not an error here, it only changes which source is used.
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional

from flask import current_app
from sqlalchemy import case, func, inspect, or_, select
from sqlalchemy.exc import OperationalError, ProgrammingError

from ltcfund.extensions import db
from ltcfund.models import COMPLETED_STATUSES, Donation, DonationPledge, MatchingDonationLog
from ltcfund.services.errors import NotFoundError, PledgeValidationError
from ltcfund.services.kv import get_kv
from ltcfund.services.webflow import get_all_published_projects

log = logging.getLogger(__name__)

STATS_CACHE_KEY = "stats:all:v3"
MIN_PROCESSED_USD = 2

# Order matters: the first positive sum is reported.
LEGACY_SOURCES = ("success", "processed", "complete", "any")

_DB_ERRORS = (OperationalError, ProgrammingError)


def project_info_cache_key(slug: str) -> str:
    return f"tgb-info-{slug}"


def _to_float(v: Any) -> float:
    if v is None:
        return 0.0
    return float(v)


# ----------------------------
# Donation sums
# ----------------------------
def legacy_donation_sums() -> Dict[str, float]:
    usd = func.coalesce(Donation.value_at_donation_time_usd, Donation.pledge_amount, 0)

    def _sum_when(cond):
        return func.sum(case((cond, usd), else_=0))

    row = db.session.execute(
        select(
            _sum_when(Donation.success.is_(True)).label("success"),
            _sum_when(Donation.processed.is_(True)).label("processed"),
            _sum_when(Donation.status.in_(COMPLETED_STATUSES)).label("complete"),
            func.sum(usd).label("any"),
        )
    ).one()
    return {name: _to_float(getattr(row, name)) for name in LEGACY_SOURCES}


def _usd_pledge_filter():
    return or_(func.upper(DonationPledge.pledge_currency) == "USD", DonationPledge.donation_type == "fiat")


def pledge_usd_sum() -> float:
    total = db.session.execute(
        select(func.sum(DonationPledge.pledge_amount)).where(_usd_pledge_filter())
    ).scalar()
    return _to_float(total)


def matched_sum() -> float:
    total = db.session.execute(select(func.sum(MatchingDonationLog.matched_amount))).scalar()
    return _to_float(total)


def _rollback_quietly() -> None:
    try:
        db.session.rollback()
    except _DB_ERRORS:
        pass


def _compute_donations(debug_info: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    raised = 0.0
    matched: Optional[float] = None

    def _note(where: str, err: Exception) -> None:
        log.warning("Stats source %s unavailable: %s", where, err)
        if debug_info is not None:
            debug_info["errors"].append({"where": where, "message": str(err)})

    if debug_info is not None:
        try:
            debug_info["tables"] = sorted(inspect(db.engine).get_table_names())
        except _DB_ERRORS as e:
            _note("inspect:tables", e)

    try:
        sums = legacy_donation_sums()
        if debug_info is not None:
            debug_info["legacyDonations"] = sums
        for source in LEGACY_SOURCES:
            if sums[source] > 0:
                raised = sums[source]
                if debug_info is not None:
                    debug_info["used"] = f"legacy:donations({source})"
                break
    except _DB_ERRORS as e:
        _rollback_quietly()
        _note("legacy:donations", e)

    if raised == 0:
        try:
            raised = pledge_usd_sum()
            if debug_info is not None:
                debug_info["donationPledge"] = {"sum": raised}
                debug_info["used"] = "donation_pledges"
        except _DB_ERRORS as e:
            _rollback_quietly()
            _note("donation_pledges", e)

    try:
        matched = matched_sum()
        if debug_info is not None:
            debug_info["legacyMatching"] = {"sum": matched}
    except _DB_ERRORS as e:
        _rollback_quietly()
        _note("legacy:matching_donation_logs", e)
        matched = None

    return {"donationsRaised": raised, "donationsMatched": matched}


def get_site_stats(debug: bool = False) -> Dict[str, Any]:
    kv = get_kv()
    if not debug:
        cached = kv.get(STATS_CACHE_KEY)
        if cached:
            return cached

    projects = get_all_published_projects()
    total_paid = sum(p.total_paid for p in projects if isinstance(p.total_paid, (int, float)))

    debug_info: Optional[Dict[str, Any]] = None
    if debug:
        debug_info = {
            "used": None,
            "tables": None,
            "donationPledge": None,
            "legacyDonations": None,
            "legacyMatching": None,
            "errors": [],
        }

    stats = {
        "projectsSupported": len(projects),
        "totalPaid": total_paid,
        **_compute_donations(debug_info),
    }

    kv.set(STATS_CACHE_KEY, stats, ex=int(current_app.config.get("STATS_CACHE_TTL", 600)))

    if debug_info is not None:
        return {**stats, "_debug": debug_info}
    return stats


# ----------------------------
# Per-project info
# ----------------------------
def _processed_donations(slug: str) -> List[Donation]:
    return list(
        db.session.execute(
            select(Donation)
            .where(
                Donation.project_slug == slug,
                Donation.status.in_(COMPLETED_STATUSES),
                Donation.value_at_donation_time_usd >= MIN_PROCESSED_USD,
            )
            .order_by(Donation.created_at)
        ).scalars()
    )


def _usd_pledges(slug: str) -> List[DonationPledge]:
    return list(
        db.session.execute(
            select(DonationPledge)
            .where(DonationPledge.project_slug == slug, _usd_pledge_filter())
            .order_by(DonationPledge.created_at)
        ).scalars()
    )


def get_project_donation_info(slug: Optional[str]) -> Dict[str, Any]:
    if not slug:
        raise PledgeValidationError("Slug is required")

    kv = get_kv()
    key = project_info_cache_key(slug)
    cached = kv.get(key)
    if cached:
        return cached

    rows: List[Any] = []
    total = Decimal("0")
    try:
        rows = _processed_donations(slug)
        total = sum((Decimal(d.value_at_donation_time_usd or 0) for d in rows), Decimal("0"))
    except _DB_ERRORS as e:
        _rollback_quietly()
        log.info("Legacy donations unavailable for %s: %s", slug, e)

    if not rows:
        try:
            rows = _usd_pledges(slug)
        except _DB_ERRORS as e:
            _rollback_quietly()
            log.info("Pledge table unavailable for %s: %s", slug, e)
            rows = []
        if not rows:
            raise NotFoundError("No donations found for this slug.")
        total = sum((Decimal(p.pledge_amount or 0) for p in rows), Decimal("0"))

    info = {
        "funded_txo_sum": float(total.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)),
        "tx_count": len(rows),
        "supporters": [r.social_x for r in rows if r.social_x],
        "donatedCreatedTime": [
            {
                "valueAtDonationTimeUSD": float(r.usd_value),
                "createdTime": r.created_at.isoformat() if r.created_at else None,
            }
            for r in rows
        ],
    }
    kv.set(key, info, ex=int(current_app.config.get("PROJECT_INFO_CACHE_TTL", 900)))
    return info
