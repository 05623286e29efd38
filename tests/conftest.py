"""
Shared pytest fixtures.

Vendor HTTP (The Giving Block, Webflow, GitHub) is stubbed at
requests.Session.request, which Session.get/post also go through, so no
test ever leaves the process.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Dict, List, NamedTuple, Optional

import pytest
import requests

from ltcfund import create_app
from ltcfund.config import TestingConfig
from ltcfund.extensions import db
from ltcfund.models import Token

TGB = "https://tgb.test/v1"
WEBFLOW_ITEMS = "https://webflow.test/v2/collections/projects-collection/items"


class FakeResponse:
    def __init__(self, body: Any = None, status_code: int = 200) -> None:
        self._body = body
        self.status_code = status_code
        self.text = "" if body is None else str(body)

    def json(self):
        if self._body is None:
            raise ValueError("No JSON body")
        return self._body

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)


class Call(NamedTuple):
    method: str
    url: str
    params: Optional[Dict[str, Any]]
    json: Optional[Dict[str, Any]]
    headers: Optional[Dict[str, str]]


class FakeHTTP:
    """
    Route table keyed by (METHOD, url). Each route holds a queue of replies;
    the last reply is sticky so repeated calls keep getting it.
    """

    def __init__(self) -> None:
        self.routes: Dict[tuple, List[Any]] = {}
        self.calls: List[Call] = []

    def add(self, method: str, url: str, body: Any = None, status: int = 200) -> "FakeHTTP":
        self.routes.setdefault((method.upper(), url), []).append(FakeResponse(body, status))
        return self

    def fail(self, method: str, url: str, exc: Exception) -> "FakeHTTP":
        self.routes.setdefault((method.upper(), url), []).append(exc)
        return self

    def calls_to(self, url: str) -> List[Call]:
        return [c for c in self.calls if c.url == url]

    def handle(self, method: str, url: str, **kwargs: Any):
        self.calls.append(
            Call(method.upper(), url, kwargs.get("params"), kwargs.get("json"), kwargs.get("headers"))
        )
        queue = self.routes.get((method.upper(), url))
        if not queue:
            raise requests.ConnectionError(f"no route for {method} {url}")
        reply = queue[0] if len(queue) == 1 else queue.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def http(monkeypatch):
    fake = FakeHTTP()

    def _request(session, method, url, **kwargs):
        return fake.handle(method, url, **kwargs)

    monkeypatch.setattr(requests.Session, "request", _request)
    return fake


@pytest.fixture
def tgb_token(app):
    """A stored, still-valid service token so TGB calls skip the login."""
    return Token.upsert("access-1", "refresh-1", datetime.utcnow() + timedelta(hours=1))


def webflow_item(
    item_id: str,
    name: str,
    slug: str,
    status: str = "Open",
    draft: bool = False,
    archived: bool = False,
    **fields: Any,
) -> Dict[str, Any]:
    field_data = {"name": name, "slug": slug, "status": status}
    field_data.update({k.replace("_", "-"): v for k, v in fields.items()})
    return {
        "id": item_id,
        "isDraft": draft,
        "isArchived": archived,
        "createdOn": "2024-01-01T00:00:00.000Z",
        "lastUpdated": "2024-02-01T00:00:00.000Z",
        "lastPublished": "2024-02-01T00:00:00.000Z",
        "fieldData": field_data,
    }


@pytest.fixture
def make_item():
    return webflow_item


@pytest.fixture
def webflow_projects(http):
    """Serve a single page of project items from the fake Webflow API."""

    def _serve(*items: Dict[str, Any]) -> FakeHTTP:
        return http.add(
            "GET",
            WEBFLOW_ITEMS,
            {"items": list(items), "pagination": {"limit": 100, "offset": 0, "total": len(items)}},
        )

    return _serve
