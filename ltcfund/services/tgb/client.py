# ltcfund/services/tgb/client.py
"""
Thin HTTP client for The Giving Block public API.

Every call returns the decoded JSON body. Non-2xx replies and transport
failures raise TGBError carrying the vendor status (when there is one) and
the best message the reply offers.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests
from flask import current_app

from ltcfund.services.errors import ServiceError

log = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://public-api.tgbwidget.com/v1"


class TGBError(ServiceError):
    pass


def extract_error_message(payload: Any, fallback: str = "") -> str:
    """
    Pull a human-readable message out of a TGB error body.
    Order: data.meta.message, message, error, fallback.
    """
    if isinstance(payload, dict):
        data = payload.get("data")
        if isinstance(data, dict):
            meta = data.get("meta")
            if isinstance(meta, dict) and meta.get("message"):
                return str(meta["message"])
        for key in ("message", "error"):
            v = payload.get(key)
            if isinstance(v, str) and v:
                return v
            if isinstance(v, dict) and v.get("message"):
                return str(v["message"])
    return fallback


class TGBClient:
    def __init__(
        self,
        base_url: str = DEFAULT_API_BASE,
        access_token: Optional[str] = None,
        timeout: int = 15,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = (base_url or DEFAULT_API_BASE).rstrip("/")
        self.access_token = access_token
        self.timeout = timeout
        self.session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        return headers

    def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            resp = self.session.request(
                method,
                url,
                params=params,
                json=payload,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            log.error("TGB %s %s failed: %s", method, path, e)
            raise TGBError(str(e) or "TGB request failed") from e

        try:
            body = resp.json()
        except ValueError:
            body = {}

        if resp.status_code >= 400:
            message = extract_error_message(body, fallback=f"TGB request failed with status {resp.status_code}")
            log.warning("TGB %s %s -> %s: %s", method, path, resp.status_code, message)
            raise TGBError(message, status=resp.status_code, payload=body)

        return body if isinstance(body, dict) else {"data": body}

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self.request("GET", path, params=params)

    def post(self, path: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self.request("POST", path, payload=payload or {})


def _client_settings() -> Dict[str, Any]:
    return {
        "base_url": str(current_app.config.get("TGB_API_BASE") or DEFAULT_API_BASE),
        "timeout": int(current_app.config.get("TGB_TIMEOUT", 15)),
    }


def create_public_client() -> TGBClient:
    """Unauthenticated client (login / refresh calls)."""
    return TGBClient(**_client_settings())


def create_tgb_client() -> TGBClient:
    """Client carrying a valid bearer token."""
    from .auth import get_access_token

    return TGBClient(access_token=get_access_token(), **_client_settings())
