# ltcfund/services/tgb/auth.py
"""
Service-token management for The Giving Block.

The newest stored token is reused while it is valid. An expired token is
refreshed; if the refresh fails we log in again with the account
credentials. Whatever comes back is written to the single token row.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Tuple

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ltcfund.extensions import with_db_retry
from ltcfund.models import Token
from ltcfund.services.errors import ServiceError

from .client import TGBError, create_public_client

log = logging.getLogger(__name__)


class TGBAuthError(ServiceError):
    def __init__(self, message: str = "Unable to obtain access token") -> None:
        super().__init__(message, 500)


def get_access_token() -> str:
    try:
        token = Token.latest()
    except SQLAlchemyError as e:
        log.error("Error in get_access_token: %s", e, exc_info=True)
        raise TGBAuthError() from e

    if token is None:
        return login_and_save_tokens()

    if token.is_valid():
        return token.access_token

    return refresh_access_token(token.refresh_token)


def refresh_access_token(refresh_token: str) -> str:
    try:
        body = create_public_client().post("/refresh-tokens", {"refreshToken": refresh_token})
        access, refresh = _token_pair(body)
        _save_tokens(access, refresh)
        log.info("TGB access token refreshed")
        return access
    except (TGBError, SQLAlchemyError, KeyError, TypeError) as e:
        log.warning("Error refreshing access token: %s; logging in again", e)
        return login_and_save_tokens()


def login_and_save_tokens() -> str:
    login = (current_app.config.get("GIVING_BLOCK_LOGIN") or "").strip()
    password = current_app.config.get("GIVING_BLOCK_PASSWORD") or ""
    if not login or not password:
        log.error("Giving Block credentials not configured")
        raise TGBAuthError()

    try:
        body = create_public_client().post("/login", {"login": login, "password": password})
        access, refresh = _token_pair(body)
        _save_tokens(access, refresh)
    except (TGBError, SQLAlchemyError, KeyError, TypeError) as e:
        log.error("Error logging in to get new tokens: %s", e)
        raise TGBAuthError() from e

    log.info("TGB login succeeded; tokens stored")
    return access


def _token_pair(body: dict) -> Tuple[str, str]:
    data = body["data"]
    access, refresh = data["accessToken"], data["refreshToken"]
    if not access or not refresh:
        raise KeyError("accessToken/refreshToken")
    return str(access), str(refresh)


@with_db_retry(retries=1)
def _save_tokens(access_token: str, refresh_token: str) -> None:
    ttl = int(current_app.config.get("TGB_TOKEN_TTL_SECONDS", 7200))
    Token.upsert(access_token, refresh_token, datetime.utcnow() + timedelta(seconds=ttl))
