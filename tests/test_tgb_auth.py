from datetime import datetime, timedelta

import pytest
from sqlalchemy.exc import OperationalError

from ltcfund.extensions import db
from ltcfund.models import Token
from ltcfund.services.tgb import TGBAuthError, get_access_token, login_and_save_tokens

LOGIN_URL = "https://tgb.test/v1/login"
REFRESH_URL = "https://tgb.test/v1/refresh-tokens"


def _tokens(access, refresh):
    return {"data": {"accessToken": access, "refreshToken": refresh}}


def _token_rows():
    return db.session.query(Token).count()


def test_valid_token_is_reused_without_network(app, http):
    Token.upsert("still-good", "r", datetime.utcnow() + timedelta(minutes=30))

    assert get_access_token() == "still-good"
    assert http.calls == []


def test_missing_token_logs_in(app, http):
    http.add("POST", LOGIN_URL, _tokens("fresh", "fresh-r"))

    assert get_access_token() == "fresh"

    call = http.calls_to(LOGIN_URL)[0]
    assert call.json == {"login": "login@example.org", "password": "secret"}
    assert "Authorization" not in call.headers
    assert _token_rows() == 1


def test_expired_token_is_refreshed(app, http):
    Token.upsert("old", "old-r", datetime.utcnow() - timedelta(minutes=1))
    http.add("POST", REFRESH_URL, _tokens("new", "new-r"))

    assert get_access_token() == "new"

    assert http.calls_to(REFRESH_URL)[0].json == {"refreshToken": "old-r"}
    assert http.calls_to(LOGIN_URL) == []
    row = Token.latest()
    assert row.access_token == "new"
    assert row.refresh_token == "new-r"
    assert row.is_valid()
    assert _token_rows() == 1


def test_failed_refresh_falls_back_to_login(app, http):
    Token.upsert("old", "old-r", datetime.utcnow() - timedelta(minutes=1))
    http.add("POST", REFRESH_URL, {"message": "refresh token expired"}, status=401)
    http.add("POST", LOGIN_URL, _tokens("relogged", "relogged-r"))

    assert get_access_token() == "relogged"
    assert [c.url for c in http.calls] == [REFRESH_URL, LOGIN_URL]
    assert Token.latest().access_token == "relogged"


def test_refresh_reply_without_tokens_falls_back_to_login(app, http):
    Token.upsert("old", "old-r", datetime.utcnow() - timedelta(minutes=1))
    http.add("POST", REFRESH_URL, {"data": {}})
    http.add("POST", LOGIN_URL, _tokens("relogged", "relogged-r"))

    assert get_access_token() == "relogged"


def test_login_without_credentials_fails(app, http):
    app.config["GIVING_BLOCK_LOGIN"] = ""

    with pytest.raises(TGBAuthError) as exc:
        get_access_token()

    assert exc.value.message == "Unable to obtain access token"
    assert exc.value.status_code == 500
    assert http.calls == []


def test_rejected_login_raises_auth_error(app, http):
    http.add("POST", LOGIN_URL, {"message": "bad credentials"}, status=401)

    with pytest.raises(TGBAuthError):
        login_and_save_tokens()
    assert _token_rows() == 0


def test_token_row_is_upserted_not_appended(app):
    later = datetime.utcnow() + timedelta(hours=2)
    Token.upsert("a1", "r1", later)
    Token.upsert("a2", "r2", later)

    assert _token_rows() == 1
    assert Token.latest().access_token == "a2"


def test_token_validity_boundary(app):
    now = datetime(2024, 1, 1, 12, 0, 0)
    token = Token(access_token="a", refresh_token="r", expires_at=now)

    assert not token.is_valid(now)
    assert token.is_valid(now - timedelta(seconds=1))


def _locked_upsert(*args, **kwargs):
    raise OperationalError("UPDATE tgb_tokens", {}, Exception("database is locked"))


def test_unstorable_login_raises_auth_error(app, http, monkeypatch):
    monkeypatch.setattr(Token, "upsert", _locked_upsert)
    http.add("POST", LOGIN_URL, _tokens("fresh", "fresh-r"))

    with pytest.raises(TGBAuthError) as exc:
        get_access_token()

    assert exc.value.message == "Unable to obtain access token"


def test_unstorable_refresh_falls_back_to_login(app, http, monkeypatch):
    Token.upsert("old", "old-r", datetime.utcnow() - timedelta(minutes=1))
    monkeypatch.setattr(Token, "upsert", _locked_upsert)
    http.add("POST", REFRESH_URL, _tokens("new", "new-r"))
    http.add("POST", LOGIN_URL, _tokens("fresh", "fresh-r"))

    with pytest.raises(TGBAuthError):
        get_access_token()

    assert [c.url for c in http.calls] == [REFRESH_URL, LOGIN_URL]


def test_unreadable_token_table_raises_auth_error(app, http, monkeypatch):
    def _broken_latest():
        raise OperationalError("SELECT tgb_tokens", {}, Exception("no such table"))

    monkeypatch.setattr(Token, "latest", _broken_latest)

    with pytest.raises(TGBAuthError):
        get_access_token()
    assert http.calls == []
