from datetime import datetime
from decimal import Decimal

import pytest

from ltcfund.extensions import db
from ltcfund.models import Donation, DonationPledge

TGB = "https://tgb.test/v1"

FIAT_PLEDGE = {
    "organizationId": 1189132,
    "projectSlug": "mweb",
    "pledgeCurrency": "USD",
    "pledgeAmount": "25.50",
    "isAnonymous": True,
}

NAMED_DONOR = {
    "isAnonymous": False,
    "firstName": "Satoshi",
    "lastName": "Nakamoto",
    "receiptEmail": "satoshi@example.org",
    "addressLine1": "1 Main St",
    "country": "US",
    "state": "CA",
    "city": "San Francisco",
    "zipcode": "94105",
}

STOCK_PLEDGE = {
    "organizationId": 1189132,
    "projectSlug": "litewallet",
    "assetSymbol": "AAPL",
    "assetDescription": "Apple Inc",
    "pledgeAmount": "10",
    "receiptEmail": "donor@example.org",
    "firstName": "Ada",
    "lastName": "Lovelace",
    "addressLine1": "2 Market St",
    "country": "US",
    "city": "Austin",
    "zipcode": "73301",
    "phoneNumber": "+15555550100",
}


def _donations():
    return db.session.query(Donation).all()


# ----------------------------
# Fiat
# ----------------------------
def test_fiat_pledge_lists_missing_fields(client):
    resp = client.post("/api/createFiatDonationPledge", json={})

    assert resp.status_code == 400
    assert resp.get_json() == {
        "error": "Missing required fields: organizationId, pledgeCurrency, pledgeAmount, projectSlug"
    }


def test_fiat_pledge_requires_donor_fields_when_not_anonymous(client):
    resp = client.post("/api/createFiatDonationPledge", json={**FIAT_PLEDGE, "isAnonymous": False})

    assert resp.status_code == 400
    assert resp.get_json()["error"] == (
        "Missing required fields: firstName, lastName, addressLine1, country, state, city, zipcode"
    )


@pytest.mark.parametrize("amount", ["0", "-5", "abc"])
def test_fiat_pledge_rejects_non_positive_amount(client, amount):
    resp = client.post("/api/createFiatDonationPledge", json={**FIAT_PLEDGE, "pledgeAmount": amount})

    assert resp.status_code == 400
    assert resp.get_json() == {"error": "Pledge amount must be greater than zero."}
    assert _donations() == []


def test_fiat_pledge_records_donation_and_returns_pledge_id(client, http, tgb_token):
    http.add("POST", f"{TGB}/donation/fiat", {"data": {"pledgeId": "p-1"}})

    resp = client.post("/api/createFiatDonationPledge", json=FIAT_PLEDGE)

    assert resp.status_code == 200
    assert resp.get_json() == {"pledgeId": "p-1"}
    assert "no-store" in resp.headers["Cache-Control"]

    sent = http.calls_to(f"{TGB}/donation/fiat")[0]
    assert sent.headers["Authorization"] == "Bearer access-1"
    assert sent.json["organizationId"] == "1189132"
    assert sent.json["pledgeAmount"] == "25.50"
    assert sent.json["firstName"] == " "
    assert sent.json["isAnonymous"] is True

    [row] = _donations()
    assert row.pledge_id == "p-1"
    assert row.project_slug == "mweb"
    assert row.donation_type == "fiat"
    assert row.pledge_amount == Decimal("25.50")
    assert row.is_anonymous is True


def test_fiat_pledge_forwards_named_donor(client, http, tgb_token):
    http.add("POST", f"{TGB}/donation/fiat", {"data": {"pledgeId": "p-2"}})

    resp = client.post("/api/tgb/donations/fiat", json={**FIAT_PLEDGE, **NAMED_DONOR})

    assert resp.status_code == 200
    sent = http.calls[0].json
    assert sent["firstName"] == "Satoshi"
    assert sent["addressLine2"] == " "
    assert _donations()[0].donor_name == "Satoshi Nakamoto"


def test_fiat_pledge_vendor_error_keeps_status_and_message(client, http, tgb_token):
    http.add("POST", f"{TGB}/donation/fiat", {"data": {"meta": {"message": "Bad amount"}}}, status=422)

    resp = client.post("/api/createFiatDonationPledge", json=FIAT_PLEDGE)

    assert resp.status_code == 422
    assert resp.get_json() == {"error": "Bad amount"}
    [row] = _donations()
    assert row.pledge_id is None


def test_fiat_pledge_without_pledge_id_is_invalid_response(client, http, tgb_token):
    http.add("POST", f"{TGB}/donation/fiat", {"data": {}})

    resp = client.post("/api/createFiatDonationPledge", json=FIAT_PLEDGE)

    assert resp.status_code == 500
    assert resp.get_json() == {"error": "Invalid response from external API."}


def test_fiat_pledge_token_failure_is_500(client, http):
    resp = client.post("/api/createFiatDonationPledge", json=FIAT_PLEDGE)

    assert resp.status_code == 500
    assert resp.get_json() == {"error": "Unable to obtain access token"}


def test_invalid_json_body(client):
    resp = client.post("/api/createFiatDonationPledge", data="not json", content_type="application/json")

    assert resp.status_code == 400
    assert resp.get_json() == {"error": "Invalid JSON body"}


# ----------------------------
# Charge
# ----------------------------
def _pending_donation(pledge_id="p-9"):
    row = Donation(project_slug="mweb", donation_type="fiat", asset_symbol="USD",
                   pledge_amount=Decimal("5"), pledge_id=pledge_id)
    db.session.add(row)
    db.session.commit()
    return row


def test_charge_requires_pledge_and_card_token(client):
    resp = client.post("/api/chargeFiatDonationPledge", json={"pledgeId": "p-9"})

    assert resp.status_code == 400
    assert resp.get_json() == {"error": "Missing required fields: pledgeId, cardToken"}


def test_charge_marks_donation_successful(client, http, tgb_token):
    row = _pending_donation()
    http.add("POST", f"{TGB}/donation/fiat/charge", {"data": {"success": True}})

    resp = client.post("/api/chargeFiatDonationPledge", json={"pledgeId": "p-9", "cardToken": "card-1"})

    assert resp.status_code == 200
    assert resp.get_json() == {"success": True}
    assert http.calls[0].json == {"pledgeId": "p-9", "cardToken": "card-1"}
    db.session.refresh(row)
    assert row.success is True


def test_charge_failure_marks_donation_unsuccessful(client, http, tgb_token):
    row = _pending_donation()
    http.add("POST", f"{TGB}/donation/fiat/charge", {"message": "Card declined"}, status=402)

    resp = client.post("/api/chargeFiatDonationPledge", json={"pledgeId": "p-9", "cardToken": "card-1"})

    assert resp.status_code == 402
    assert resp.get_json() == {"error": "Card declined"}
    db.session.refresh(row)
    assert row.success is False


def test_charge_for_unknown_pledge_still_reports_vendor_result(client, http, tgb_token):
    http.add("POST", f"{TGB}/donation/fiat/charge", {"data": {"success": True}})

    resp = client.post("/api/chargeFiatDonationPledge", json={"pledgeId": "ghost", "cardToken": "card-1"})

    assert resp.status_code == 200
    assert resp.get_json() == {"success": True}


# ----------------------------
# Crypto
# ----------------------------
DEPOSIT_REPLY = {
    "data": {
        "depositAddress": "ltc1qexampleaddress",
        "pledgeId": "dp-1",
        "qrCode": "data:image/png;base64,AAAA",
        "extra": "ignored",
    }
}


def test_deposit_address_accepts_zero_organization_and_records_pledge(client, http, tgb_token):
    http.add("POST", f"{TGB}/deposit-address", DEPOSIT_REPLY)

    resp = client.post(
        "/api/createDepositAddress",
        json={"organizationId": 0, "projectSlug": "mweb", "pledgeCurrency": "LTC", "pledgeAmount": "0.5"},
    )

    assert resp.status_code == 200
    assert resp.get_json() == {
        "depositAddress": "ltc1qexampleaddress",
        "pledgeId": "dp-1",
        "qrCode": "data:image/png;base64,AAAA",
    }
    sent = http.calls[0].json
    assert sent["organizationId"] == 0
    assert sent["pledgeAmount"] == "0.5"
    assert "firstName" not in sent

    [pledge] = db.session.query(DonationPledge).all()
    assert pledge.pledge_id == "dp-1"
    assert pledge.pledge_currency == "LTC"
    assert pledge.deposit_address == "ltc1qexampleaddress"
    assert pledge.donation_type == "crypto"


def test_deposit_address_requires_organization(client):
    resp = client.post(
        "/api/createDepositAddress",
        json={"projectSlug": "mweb", "pledgeCurrency": "LTC", "pledgeAmount": "1"},
    )

    assert resp.status_code == 400
    assert resp.get_json() == {"error": "Missing required fields: organizationId"}


def test_deposit_address_forwards_named_donor(client, http, tgb_token):
    http.add("POST", f"{TGB}/deposit-address", DEPOSIT_REPLY)

    body = {"organizationId": 1, "projectSlug": "mweb", "pledgeCurrency": "LTC", "pledgeAmount": "2",
            **NAMED_DONOR, "addressLine2": "Apt 4"}
    resp = client.post("/api/createDepositAddress", json=body)

    assert resp.status_code == 200
    sent = http.calls[0].json
    assert sent["firstName"] == "Satoshi"
    assert sent["addressLine2"] == "Apt 4"


def test_deposit_address_incomplete_reply_is_invalid(client, http, tgb_token):
    http.add("POST", f"{TGB}/deposit-address", {"data": {"pledgeId": "dp-1"}})

    resp = client.post(
        "/api/createDepositAddress",
        json={"organizationId": 1, "projectSlug": "mweb", "pledgeCurrency": "LTC", "pledgeAmount": "1"},
    )

    assert resp.status_code == 500
    assert resp.get_json() == {"error": "Invalid response from external API."}
    assert db.session.query(DonationPledge).count() == 0


CRYPTO_DONATION = {
    "organizationId": 1189132,
    "projectSlug": "mweb",
    "pledgeCurrency": "LTC",
    "pledgeAmount": "1.5",
    "receiptEmail": "donor@example.org",
    "firstName": "Ada",
    "lastName": "Lovelace",
    "addressLine1": "2 Market St",
    "country": "US",
    "city": "Austin",
    "zipcode": "73301",
}


def test_crypto_donation_reports_first_missing_field(client):
    body = {k: v for k, v in CRYPTO_DONATION.items() if k not in ("receiptEmail", "city")}

    resp = client.post("/api/tgb/donations/crypto", json=body)

    assert resp.status_code == 400
    assert resp.get_json() == {"error": "Missing required field: receiptEmail"}


def test_crypto_donation_returns_vendor_data(client, http, tgb_token):
    http.add("POST", f"{TGB}/donation/crypto", {"data": {"depositAddress": "ltc1q", "pledgeId": "c-1"}})

    resp = client.post("/api/tgb/donations/crypto", json={**CRYPTO_DONATION, "unknown": "dropped"})

    assert resp.status_code == 200
    assert resp.get_json() == {"depositAddress": "ltc1q", "pledgeId": "c-1"}
    assert "unknown" not in http.calls[0].json


def test_crypto_donation_vendor_failure_is_500_with_details(client, http, tgb_token):
    http.add("POST", f"{TGB}/donation/crypto", {"message": "upstream down"}, status=502)

    resp = client.post("/api/tgb/donations/crypto", json=CRYPTO_DONATION)

    assert resp.status_code == 500
    assert resp.get_json() == {
        "error": "Failed to create crypto donation",
        "details": {"message": "upstream down"},
    }


# ----------------------------
# Stock
# ----------------------------
def test_stock_pledge_records_donation(client, http, tgb_token):
    http.add("POST", f"{TGB}/donation/stocks", {"data": {"donationUuid": "u-1"}})

    resp = client.post("/api/createStockDonationPledge", json=STOCK_PLEDGE)

    assert resp.status_code == 200
    assert resp.get_json() == {"donationUuid": "u-1"}
    assert http.calls[0].json["assetSymbol"] == "AAPL"

    [row] = _donations()
    assert row.donation_type == "stock"
    assert row.donation_uuid == "u-1"
    assert row.tax_receipt is True
    assert row.is_anonymous is False
    assert row.pledge_amount == Decimal("10")


def test_stock_pledge_missing_phone(client):
    body = {k: v for k, v in STOCK_PLEDGE.items() if k != "phoneNumber"}

    resp = client.post("/api/createStockDonationPledge", json=body)

    assert resp.status_code == 400
    assert resp.get_json() == {"error": "Missing required fields: phoneNumber"}


def test_sign_stock_donation_stores_signature_date(client, http, tgb_token):
    row = Donation(project_slug="litewallet", donation_type="stock", asset_symbol="AAPL",
                   pledge_amount=Decimal("10"), donation_uuid="u-1")
    db.session.add(row)
    db.session.commit()
    http.add("POST", f"{TGB}/donation/sign", {"data": {"signed": True}})

    resp = client.post(
        "/api/signStockDonation",
        json={"donationUuid": "u-1", "signature": "data:image/png;base64,SIG", "date": "2024-05-01T10:00:00Z"},
    )

    assert resp.status_code == 200
    assert resp.get_json() == {"data": {"signed": True}}
    assert http.calls[0].json["date"] == "2024-05-01T10:00:00"
    db.session.refresh(row)
    assert row.signature_date == datetime(2024, 5, 1, 10, 0, 0)


def test_sign_stock_donation_rejects_bad_date(client):
    resp = client.post(
        "/api/signStockDonation",
        json={"donationUuid": "u-1", "signature": "sig", "date": "yesterday"},
    )

    assert resp.status_code == 400
    assert resp.get_json() == {"error": "Invalid signature date"}


# ----------------------------
# Rates & tickers
# ----------------------------
def test_crypto_rate_requires_currency(client):
    resp = client.get("/api/getCryptoRate")

    assert resp.status_code == 400
    assert resp.get_json() == {"message": "Currency code is required"}


def test_crypto_rate_passes_vendor_body_through(client, http, tgb_token):
    http.add("GET", f"{TGB}/crypto-to-usd-rate", {"data": {"rate": 72.5}})

    resp = client.get("/api/getCryptoRate?currency=LTC")

    assert resp.status_code == 200
    assert resp.get_json() == {"data": {"rate": 72.5}}
    assert http.calls[0].params == {"currency": "LTC"}


def test_ticker_cost_requires_ticker(client):
    resp = client.get("/api/getTickerCost")

    assert resp.status_code == 400
    assert resp.get_json() == {"error": "Ticker symbol is required"}


def test_ticker_cost(client, http, tgb_token):
    http.add("GET", f"{TGB}/stocks/ticker-cost", {"data": {"rate": 189.1}})

    resp = client.get("/api/getTickerCost?ticker=AAPL")

    assert resp.get_json() == {"data": {"rate": 189.1}}
    assert http.calls[0].params == {"ticker": "AAPL"}


@pytest.mark.parametrize(
    "body, message",
    [
        ({"filters": {"name": "apple"}}, "Pagination is required"),
        ({"pagination": {"page": 1, "itemsPerPage": 10}, "filters": {}},
         "Please provide a filter, either name or ticker."),
    ],
)
def test_ticker_list_validation(client, body, message):
    resp = client.post("/api/getTickerList", json=body)

    assert resp.status_code == 400
    assert resp.get_json() == {"error": message}


def test_ticker_list_merges_name_and_ticker_results(client, http, tgb_token):
    url = f"{TGB}/stocks/tickers"
    apple = {"name": "Apple Inc", "ticker": "AAPL"}
    http.add("POST", url, {"data": {"tickers": [apple]}})
    http.add("POST", url, {"data": {"tickers": [apple, {"name": "Apple Hospitality", "ticker": "APLE"}]}})

    resp = client.post(
        "/api/getTickerList",
        json={"pagination": {"page": 1, "itemsPerPage": 10}, "filters": {"name": "apple", "ticker": "AAPL"}},
    )

    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert [t["ticker"] for t in data["tickers"]] == ["AAPL", "APLE"]
    assert data["pagination"] == {"count": 2, "page": 1, "itemsPerPage": 10}
    assert [c.json["filters"] for c in http.calls_to(url)] == [{"name": "apple"}, {"ticker": "AAPL"}]


def test_ticker_list_accepts_bare_pagination_flag(client, http, tgb_token):
    url = f"{TGB}/stocks/tickers"
    http.add("POST", url, {"data": {"tickers": [{"name": "Apple Inc", "ticker": "AAPL"}]}})

    resp = client.post("/api/getTickerList", json={"filters": {"name": "Apple"}, "pagination": True})

    assert resp.status_code == 200
    assert resp.get_json()["data"]["pagination"] == {"count": 1, "page": 1, "itemsPerPage": 50}
    assert http.calls_to(url)[0].json == {"filters": {"name": "Apple"}, "pagination": {"page": 1, "itemsPerPage": 50}}


def test_ticker_list_with_scalar_filters(client, http):
    resp = client.post("/api/getTickerList", json={"filters": "Apple", "pagination": {"page": 1}})

    assert resp.status_code == 400
    assert resp.get_json() == {"error": "Please provide a filter, either name or ticker."}
    assert http.calls == []


def test_unexpected_failure_keeps_error_shape(client, monkeypatch):
    def _boom(data):
        raise RuntimeError("ledger offline")

    monkeypatch.setattr("ltcfund.services.donations.create_stock_pledge", _boom)

    resp = client.post("/api/createStockDonationPledge", json=STOCK_PLEDGE)

    assert resp.status_code == 500
    assert resp.get_json() == {"error": "ledger offline"}


def test_unexpected_ticker_cost_failure(client, monkeypatch):
    def _boom(ticker):
        raise RuntimeError("quote feed down")

    monkeypatch.setattr("ltcfund.services.donations.get_ticker_cost", _boom)

    resp = client.get("/api/getTickerCost?ticker=AAPL")

    assert resp.status_code == 500
    assert resp.get_json() == {"error": "quote feed down"}
