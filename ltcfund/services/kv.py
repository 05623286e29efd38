# ltcfund/services/kv.py
"""
TTL key/value cache.

Backed by redis when KV_URL / REDIS_URL is configured. Without a URL the
store is disabled: reads miss, writes are dropped. A redis outage is logged
and treated the same way so callers never fail because of the cache.
"""

from __future__ import annotations

import json
import logging
from typing import Any, List, Optional

from flask import current_app
from redis import Redis
from redis.exceptions import RedisError

log = logging.getLogger(__name__)

EXTENSION_KEY = "ltcfund.kv"


class DisabledKV:
    """Stand-in used when no cache URL is configured."""

    enabled = False

    def get(self, key: str) -> Optional[Any]:
        return None

    def set(self, key: str, value: Any, ex: Optional[int] = None) -> bool:
        return True

    def delete(self, *keys: str) -> int:
        return 0

    def exists(self, key: str) -> int:
        return 0

    def keys(self, pattern: str = "*") -> List[str]:
        return []

    def ping(self) -> bool:
        return False


class RedisKV:
    enabled = True

    def __init__(self, client: Redis, prefix: str = "") -> None:
        self.client = client
        self.prefix = prefix

    def _k(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def get(self, key: str) -> Optional[Any]:
        try:
            raw = self.client.get(self._k(key))
        except RedisError as e:
            log.warning("KV get failed for %s: %s", key, e)
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError):
            log.warning("KV value for %s is not JSON; ignoring", key)
            return None

    def set(self, key: str, value: Any, ex: Optional[int] = None) -> bool:
        try:
            payload = json.dumps(value, default=str)
            return bool(self.client.set(self._k(key), payload, ex=ex))
        except RedisError as e:
            log.warning("KV set failed for %s: %s", key, e)
            return False

    def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        try:
            return int(self.client.delete(*[self._k(k) for k in keys]))
        except RedisError as e:
            log.warning("KV delete failed: %s", e)
            return 0

    def exists(self, key: str) -> int:
        try:
            return int(self.client.exists(self._k(key)))
        except RedisError as e:
            log.warning("KV exists failed for %s: %s", key, e)
            return 0

    def keys(self, pattern: str = "*") -> List[str]:
        try:
            found = self.client.keys(self._k(pattern))
        except RedisError as e:
            log.warning("KV keys failed: %s", e)
            return []
        out: List[str] = []
        for k in found:
            s = k.decode() if isinstance(k, bytes) else str(k)
            out.append(s[len(self.prefix):] if self.prefix and s.startswith(self.prefix) else s)
        return out

    def ping(self) -> bool:
        try:
            return bool(self.client.ping())
        except RedisError:
            return False


def build_kv(url: Optional[str], prefix: str = ""):
    url = (url or "").strip()
    if not url:
        return DisabledKV()
    return RedisKV(Redis.from_url(url, socket_timeout=2, socket_connect_timeout=2), prefix=prefix)


def init_kv(app) -> None:
    url = app.config.get("KV_URL") or app.config.get("REDIS_URL")
    store = build_kv(url, prefix=str(app.config.get("KV_PREFIX") or ""))
    app.extensions[EXTENSION_KEY] = store
    if store.enabled:
        app.logger.info("KV cache enabled (redis)")
    else:
        app.logger.info("KV cache disabled (no KV_URL / REDIS_URL)")


def get_kv():
    store = current_app.extensions.get(EXTENSION_KEY)
    if store is None:
        store = DisabledKV()
        current_app.extensions[EXTENSION_KEY] = store
    return store
