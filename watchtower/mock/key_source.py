"""In-memory key source for local development and tests.

Serves a fixed key map without network access. ``rotate()`` replaces the
published keys, which mirrors a key rotation at the real endpoint.
"""

from __future__ import annotations

import threading
from typing import Any, Dict, Mapping, Optional

from watchtower.core.key_source import KeySource
from watchtower.models import KeySetResponse


class StaticKeySource(KeySource):
    """Key source backed by an in-memory dict of kid -> PEM string or JWK."""

    def __init__(self, keys: Mapping[str, Any], max_age: Optional[int] = None):
        self._keys: Dict[str, Any] = dict(keys)
        self._max_age = max_age
        self._lock = threading.Lock()
        self.fetch_count = 0

    def __repr__(self) -> str:
        return f"StaticKeySource(kids={sorted(self._keys)!r})"

    def fetch(self) -> KeySetResponse:
        with self._lock:
            self.fetch_count += 1
            return KeySetResponse(keys=dict(self._keys), max_age=self._max_age)

    def rotate(self, keys: Mapping[str, Any]) -> None:
        """Publish a new key map. Cached copies keep the old keys until refreshed."""
        with self._lock:
            self._keys = dict(keys)
