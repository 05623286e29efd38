# ltcfund/services/donations.py
"""
Donation workflows proxied to The Giving Block.

Each function takes the decoded JSON body of an API call, validates it,
records what we keep locally and returns the slice of the vendor reply the
front-end needs.

Raises:
  PledgeValidationError   bad or missing input (400)
  TGBError / TGBAuthError vendor or token failures (vendor status, else 500)
  InvalidTGBResponse      the vendor reply lacks an expected key (500)
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError

from ltcfund.extensions import db, safe_commit
from ltcfund.models import Donation, DonationPledge
from ltcfund.services.errors import InvalidTGBResponse, PledgeValidationError
from ltcfund.services.tgb import TGBError, create_tgb_client

log = logging.getLogger(__name__)

DONOR_FIELDS = ("firstName", "lastName", "addressLine1", "country", "state", "city", "zipcode")

CRYPTO_DONATION_FIELDS = (
    "organizationId",
    "projectSlug",
    "pledgeCurrency",
    "pledgeAmount",
    "receiptEmail",
    "firstName",
    "lastName",
    "addressLine1",
    "country",
    "city",
    "zipcode",
)

CRYPTO_FORWARD_FIELDS = CRYPTO_DONATION_FIELDS + (
    "addressLine2",
    "state",
    "taxReceipt",
    "isAnonymous",
    "joinMailingList",
    "socialX",
    "socialFacebook",
    "socialLinkedIn",
)

STOCK_FIELDS = (
    "projectSlug",
    "assetSymbol",
    "assetDescription",
    "pledgeAmount",
    "receiptEmail",
    "firstName",
    "lastName",
    "addressLine1",
    "country",
    "city",
    "zipcode",
    "phoneNumber",
)

AMOUNT_ERROR = "Pledge amount must be greater than zero."


# ----------------------------
# Validation helpers
# ----------------------------
def _missing(data: Dict[str, Any], fields: Iterable[str]) -> List[str]:
    return [f for f in fields if not data.get(f)]


def _raise_missing(missing: List[str]) -> None:
    if missing:
        raise PledgeValidationError(f"Missing required fields: {', '.join(missing)}")


def _org_is_null(data: Dict[str, Any]) -> bool:
    return data.get("organizationId") is None


def _named_donor_missing(data: Dict[str, Any]) -> List[str]:
    # Donor details are only enforced when the donor opted out of anonymity explicitly.
    if data.get("isAnonymous") is False:
        return _missing(data, DONOR_FIELDS)
    return []


def parse_amount(raw: Any) -> Decimal:
    try:
        amount = Decimal(str(raw).strip())
    except (InvalidOperation, ValueError):
        raise PledgeValidationError(AMOUNT_ERROR)
    if not amount.is_finite() or amount <= 0:
        raise PledgeValidationError(AMOUNT_ERROR)
    return amount


def _org_int(raw: Any) -> Optional[int]:
    try:
        return int(str(raw).strip())
    except (TypeError, ValueError):
        return None


def _blank(v: Any) -> Any:
    return v if v else " "


def _reply_data(body: Dict[str, Any]) -> Dict[str, Any]:
    data = body.get("data") if isinstance(body, dict) else None
    return data if isinstance(data, dict) else {}


# ----------------------------
# Fiat
# ----------------------------
def create_fiat_pledge(data: Dict[str, Any]) -> Dict[str, Any]:
    missing = _missing(data, ("organizationId", "pledgeCurrency", "pledgeAmount", "projectSlug"))
    missing += _named_donor_missing(data)
    _raise_missing(missing)

    amount = parse_amount(data.get("pledgeAmount"))

    donation = Donation(
        project_slug=data["projectSlug"],
        organization_id=_org_int(data["organizationId"]),
        donation_type="fiat",
        asset_symbol=data["pledgeCurrency"],
        pledge_amount=amount,
        first_name=data.get("firstName") or None,
        last_name=data.get("lastName") or None,
        donor_email=data.get("receiptEmail") or None,
        is_anonymous=bool(data.get("isAnonymous") or False),
        tax_receipt=bool(data.get("taxReceipt") or False),
        join_mailing_list=bool(data.get("joinMailingList") or False),
        social_x=data.get("socialX") or None,
        social_facebook=data.get("socialFacebook") or None,
        social_linkedin=data.get("socialLinkedIn") or None,
    )
    db.session.add(donation)
    db.session.commit()

    payload = {
        "organizationId": str(data["organizationId"]),
        "isAnonymous": bool(data.get("isAnonymous") or False),
        "pledgeAmount": str(amount),
        "firstName": _blank(data.get("firstName")),
        "lastName": _blank(data.get("lastName")),
        "receiptEmail": _blank(data.get("receiptEmail")),
        "addressLine1": _blank(data.get("addressLine1")),
        "addressLine2": _blank(data.get("addressLine2")),
        "country": _blank(data.get("country")),
        "state": _blank(data.get("state")),
        "city": _blank(data.get("city")),
        "zipcode": _blank(data.get("zipcode")),
    }
    reply = _reply_data(create_tgb_client().post("/donation/fiat", payload))
    pledge_id = reply.get("pledgeId")
    if not pledge_id:
        raise InvalidTGBResponse(payload=reply)

    donation.pledge_id = str(pledge_id)
    db.session.commit()
    log.info("Fiat pledge %s created for %s (donation %s)", pledge_id, donation.project_slug, donation.id)
    return {"pledgeId": pledge_id}


def _mark_charge(pledge_id: str, success: bool) -> int:
    result = db.session.execute(
        update(Donation).where(Donation.pledge_id == pledge_id).values(success=success)
    )
    return int(result.rowcount or 0)


def charge_fiat_pledge(data: Dict[str, Any]) -> Dict[str, Any]:
    pledge_id = data.get("pledgeId")
    card_token = data.get("cardToken")
    if not pledge_id or not card_token:
        raise PledgeValidationError("Missing required fields: pledgeId, cardToken")

    try:
        reply = _reply_data(
            create_tgb_client().post("/donation/fiat/charge", {"pledgeId": pledge_id, "cardToken": card_token})
        )
    except Exception:
        try:
            _mark_charge(pledge_id, False)
            safe_commit()
        except SQLAlchemyError as db_err:
            db.session.rollback()
            log.error("Error updating donation failure status: %s", db_err)
        raise

    success = bool(reply.get("success"))
    if _mark_charge(pledge_id, success) == 0:
        log.warning("Charge for pledge %s has no matching donation row", pledge_id)
    db.session.commit()
    return {"success": success}


# ----------------------------
# Crypto
# ----------------------------
def create_deposit_address(data: Dict[str, Any]) -> Dict[str, Any]:
    missing = ["organizationId"] if _org_is_null(data) else []
    missing += _missing(data, ("pledgeCurrency", "pledgeAmount", "projectSlug"))
    missing += _named_donor_missing(data)
    _raise_missing(missing)

    try:
        amount = float(data.get("pledgeAmount"))
    except (TypeError, ValueError):
        raise PledgeValidationError(AMOUNT_ERROR)
    if not amount > 0:
        raise PledgeValidationError(AMOUNT_ERROR)

    payload: Dict[str, Any] = {
        "organizationId": data["organizationId"],
        "isAnonymous": bool(data.get("isAnonymous") or False),
        "pledgeCurrency": data["pledgeCurrency"],
        "pledgeAmount": str(data.get("pledgeAmount")).strip(),
        "receiptEmail": data.get("receiptEmail"),
    }
    if data.get("isAnonymous") is False:
        for f in DONOR_FIELDS:
            payload[f] = data.get(f)
        if data.get("addressLine2"):
            payload["addressLine2"] = data["addressLine2"]

    reply = _reply_data(create_tgb_client().post("/deposit-address", payload))
    if not (reply.get("depositAddress") and reply.get("pledgeId") and reply.get("qrCode")):
        raise InvalidTGBResponse(payload=reply)

    _record_crypto_pledge(data, Decimal(str(amount)), reply)
    return {
        "depositAddress": reply["depositAddress"],
        "pledgeId": reply["pledgeId"],
        "qrCode": reply["qrCode"],
    }


def _record_crypto_pledge(data: Dict[str, Any], amount: Decimal, reply: Dict[str, Any]) -> None:
    pledge = DonationPledge(
        project_slug=data["projectSlug"],
        organization_id=_org_int(data["organizationId"]),
        donation_type="crypto",
        pledge_currency=str(data["pledgeCurrency"]),
        pledge_amount=amount,
        receipt_email=data.get("receiptEmail") or None,
        first_name=data.get("firstName") or None,
        last_name=data.get("lastName") or None,
        is_anonymous=bool(data.get("isAnonymous") or False),
        tax_receipt=bool(data.get("taxReceipt") or False),
        join_mailing_list=bool(data.get("joinMailingList") or False),
        social_x=data.get("socialX") or None,
        social_facebook=data.get("socialFacebook") or None,
        social_linkedin=data.get("socialLinkedIn") or None,
        pledge_id=str(reply["pledgeId"]),
        deposit_address=str(reply["depositAddress"]),
    )
    db.session.add(pledge)
    if not safe_commit():
        log.warning("Deposit address %s issued but pledge row not stored", reply["pledgeId"])


def create_crypto_donation(data: Dict[str, Any]) -> Dict[str, Any]:
    for field in CRYPTO_DONATION_FIELDS:
        if not data.get(field):
            raise PledgeValidationError(f"Missing required field: {field}")

    payload = {f: data.get(f) for f in CRYPTO_FORWARD_FIELDS}
    return _reply_data(create_tgb_client().post("/donation/crypto", payload))


# ----------------------------
# Stock
# ----------------------------
def create_stock_pledge(data: Dict[str, Any]) -> Dict[str, Any]:
    missing = ["organizationId"] if _org_is_null(data) else []
    missing += _missing(data, STOCK_FIELDS)
    _raise_missing(missing)

    shares = parse_amount(data.get("pledgeAmount"))

    donation = Donation(
        project_slug=data["projectSlug"],
        organization_id=_org_int(data["organizationId"]),
        donation_type="stock",
        asset_symbol=data["assetSymbol"],
        asset_description=data["assetDescription"],
        pledge_amount=shares,
        first_name=data.get("firstName") or None,
        last_name=data.get("lastName") or None,
        donor_email=data.get("receiptEmail") or None,
        tax_receipt=True,
        is_anonymous=False,
        join_mailing_list=bool(data.get("joinMailingList") or False),
        social_x=data.get("socialX") or None,
        social_facebook=data.get("socialFacebook") or None,
        social_linkedin=data.get("socialLinkedIn") or None,
    )
    db.session.add(donation)
    db.session.commit()

    payload = {
        "organizationId": str(data["organizationId"]),
        "assetSymbol": data["assetSymbol"],
        "assetDescription": data["assetDescription"],
        "pledgeAmount": str(shares),
        "receiptEmail": data["receiptEmail"],
        "firstName": data["firstName"],
        "lastName": data["lastName"],
        "addressLine1": data["addressLine1"],
        "addressLine2": data.get("addressLine2"),
        "country": data["country"],
        "state": data.get("state"),
        "city": data["city"],
        "zipcode": data["zipcode"],
        "phoneNumber": data["phoneNumber"],
    }
    reply = _reply_data(create_tgb_client().post("/donation/stocks", payload))
    donation_uuid = reply.get("donationUuid")
    if not donation_uuid:
        raise InvalidTGBResponse(payload=reply)

    donation.donation_uuid = str(donation_uuid)
    db.session.commit()
    log.info("Stock pledge %s created for %s", donation_uuid, donation.project_slug)
    return {"donationUuid": donation_uuid}


def sign_stock_donation(data: Dict[str, Any]) -> Dict[str, Any]:
    donation_uuid = data.get("donationUuid")
    signature = data.get("signature")
    if not donation_uuid or not signature:
        raise PledgeValidationError("Missing required fields: donationUuid, signature")

    signed_at = _parse_date(data.get("date")) or datetime.utcnow()
    payload = {
        "donationUuid": donation_uuid,
        "date": signed_at.isoformat(),
        "signature": signature,
    }
    reply = create_tgb_client().post("/donation/sign", payload)

    donation = db.session.execute(
        select(Donation).where(Donation.donation_uuid == donation_uuid)
    ).scalar_one_or_none()
    if donation is None:
        log.warning("Signed stock donation %s has no matching donation row", donation_uuid)
    else:
        donation.signature_date = signed_at
        safe_commit()
    return reply


def _parse_date(raw: Any) -> Optional[datetime]:
    if not raw:
        return None
    s = str(raw).strip()
    if s.endswith("Z"):
        s = s[:-1]
    try:
        return datetime.fromisoformat(s).replace(tzinfo=None)
    except ValueError:
        raise PledgeValidationError("Invalid signature date")


# ----------------------------
# Rates & tickers
# ----------------------------
def get_crypto_rate(currency: Optional[str]) -> Dict[str, Any]:
    if not currency:
        raise PledgeValidationError("Currency code is required")
    return create_tgb_client().get("/crypto-to-usd-rate", {"currency": currency})


def get_ticker_cost(ticker: Optional[str]) -> Dict[str, Any]:
    if not ticker:
        raise PledgeValidationError("Ticker symbol is required")
    return create_tgb_client().get("/stocks/ticker-cost", {"ticker": ticker})


def get_ticker_list(data: Dict[str, Any]) -> Dict[str, Any]:
    pagination = data.get("pagination")
    if not pagination:
        raise PledgeValidationError("Pagination is required")

    if not isinstance(pagination, dict):
        pagination = {}
    filters = data.get("filters")
    if not isinstance(filters, dict):
        filters = {}
    name, ticker = filters.get("name"), filters.get("ticker")
    if not name and not ticker:
        raise PledgeValidationError("Please provide a filter, either name or ticker.")

    page = {
        "page": pagination.get("page") or 1,
        "itemsPerPage": pagination.get("itemsPerPage") or 50,
    }
    queries = [q for q in ({"name": name}, {"ticker": ticker}) if next(iter(q.values()))]

    client = create_tgb_client()
    seen = set()
    tickers: List[Dict[str, Any]] = []
    for query in queries:
        reply = _reply_data(client.post("/stocks/tickers", {"filters": query, "pagination": page}))
        for item in reply.get("tickers") or []:
            key = f"{item.get('name')}-{item.get('ticker')}"
            if key not in seen:
                seen.add(key)
                tickers.append(item)

    return {
        "data": {
            "tickers": tickers,
            "pagination": {
                "count": len(tickers),
                "page": page["page"],
                "itemsPerPage": page["itemsPerPage"],
            },
        }
    }


__all__ = [
    "TGBError",
    "charge_fiat_pledge",
    "create_crypto_donation",
    "create_deposit_address",
    "create_fiat_pledge",
    "create_stock_pledge",
    "get_crypto_rate",
    "get_ticker_cost",
    "get_ticker_list",
    "parse_amount",
    "sign_stock_donation",
]
