from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests
from flask import current_app

from ltcfund.services.errors import NotConfiguredError, ServiceError

log = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://api.webflow.com/v2"
PAGE_LIMIT = 100


class WebflowError(ServiceError):
    pass


class WebflowConfigError(NotConfiguredError):
    def __init__(self, message: str = "Webflow API credentials not configured") -> None:
        super().__init__(message)


class WebflowClient:
    def __init__(
        self,
        api_token: str,
        base_url: str = DEFAULT_API_BASE,
        timeout: int = 20,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = (base_url or DEFAULT_API_BASE).rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {api_token}",
                "accept-version": "1.0.0",
                "Content-Type": "application/json",
            }
        )

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            resp = self.session.get(url, params=params, timeout=self.timeout)
            resp.raise_for_status()
            return resp.json()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise WebflowError(f"Webflow request failed: {e}", status=status) from e
        except (requests.RequestException, ValueError) as e:
            raise WebflowError(f"Webflow request failed: {e}") from e

    def list_collection_items(self, collection_id: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Fetch every item of a collection, following limit/offset pagination."""
        items: List[Dict[str, Any]] = []
        offset = 0
        while True:
            try:
                page = self.get(
                    f"/collections/{collection_id}/items",
                    params={"limit": PAGE_LIMIT, "offset": offset, **(params or {})},
                )
            except WebflowError as e:
                log.error("Error fetching items from collection %s: %s", collection_id, e)
                raise

            batch = page.get("items") or []
            items.extend(batch)
            total = int(page.get("total") or (page.get("pagination") or {}).get("total") or 0)
            offset += PAGE_LIMIT
            if not batch or len(items) >= total:
                return items


def create_webflow_client() -> WebflowClient:
    token = (current_app.config.get("WEBFLOW_API_TOKEN") or "").strip()
    if not token:
        raise WebflowConfigError()
    return WebflowClient(
        token,
        base_url=str(current_app.config.get("WEBFLOW_API_BASE") or DEFAULT_API_BASE),
        timeout=int(current_app.config.get("WEBFLOW_TIMEOUT", 20)),
    )
