from datetime import datetime, timedelta

from ltcfund.models import Token


def test_health_reports_each_part(client):
    body = client.get("/health").get_json()

    assert body["status"] == "ok"
    assert set(body["parts"]) == {"database", "kv", "tgb", "webflow"}
    assert body["parts"]["kv"]["reason"] == "disabled"
    assert body["parts"]["tgb"]["token"] == "none"


def test_health_token_state(app, client):
    Token.upsert("a", "r", datetime.utcnow() - timedelta(minutes=5))

    assert client.get("/health").get_json()["parts"]["tgb"]["token"] == "expired"


def test_missing_vendor_config_is_degraded_not_failed(app, client):
    app.config["WEBFLOW_API_TOKEN"] = ""
    app.config["GIVING_BLOCK_PASSWORD"] = ""

    resp = client.get("/ready")

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["status"] == "degraded"
    assert body["parts"]["webflow"]["reason"] == "not-configured"
    assert body["parts"]["tgb"]["reason"] == "no-credentials"


def test_live_status_and_version(client):
    assert client.get("/live").get_json()["status"] == "ok"
    assert client.get("/status").get_json()["status"] == "ok"
    assert client.get("/healthz").get_json()["env"] == "testing"
    assert "version" in client.get("/version").get_json()


def test_request_id_is_echoed(client):
    resp = client.get("/live", headers={"X-Request-ID": "abc123"})

    assert resp.headers["X-Request-ID"] == "abc123"
