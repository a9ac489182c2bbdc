"""HTTP key source for certificate and JWKS endpoints."""

from __future__ import annotations

import re
from typing import Any, Dict, Mapping, Optional

import requests
import structlog

from watchtower.core.key_source import KeySource
from watchtower.models import KeySetResponse

log = structlog.get_logger()

_MAX_AGE_PATTERN = re.compile(r"(?:^|,)\s*max-age\s*=\s*\"?(\d+)\"?\s*(?:,|$)", re.IGNORECASE)


def parse_max_age(headers: Mapping[str, str]) -> Optional[int]:
    """Derive the remaining cache lifetime from response headers.

    Uses ``Cache-Control: max-age`` minus ``Age`` (time already spent in
    intermediate caches). Returns None if no max-age is present.
    """
    cache_control = headers.get("Cache-Control") or ""
    match = _MAX_AGE_PATTERN.search(cache_control)
    if not match:
        return None
    max_age = int(match.group(1))

    age = headers.get("Age")
    if age and age.strip().isdigit():
        max_age -= int(age.strip())
    return max(max_age, 0)


def parse_key_document(document: Any) -> Dict[str, Any]:
    """Index a key endpoint response by key id.

    Two response shapes are accepted:
        - A JSON object mapping key id to a PEM string (X.509 certificate or
          public key), as served by the Google certificate endpoints
        - A JWKS document: ``{"keys": [{"kid": ..., "kty": "RSA", ...}]}``

    Raises:
        ValueError: If the document matches neither shape
    """
    if not isinstance(document, dict):
        raise ValueError("Key document must be a JSON object")

    if isinstance(document.get("keys"), list):
        keys: Dict[str, Any] = {}
        for jwk in document["keys"]:
            if not isinstance(jwk, dict) or not isinstance(jwk.get("kid"), str):
                raise ValueError("JWKS entry is missing a kid")
            keys[jwk["kid"]] = jwk
        return keys

    for kid, pem in document.items():
        if not isinstance(pem, str):
            raise ValueError(f"Key '{kid}' is not a PEM string")
    return dict(document)


class HttpKeySource(KeySource):
    """Fetches signing keys from an HTTP endpoint.

    Example:
        source = HttpKeySource(ID_TOKEN_CERT_URL, timeout=5.0)
        cache = PublicKeyCache(source)
    """

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,  # 10 seconds default
        session: Optional[requests.Session] = None,
    ):
        """Initialize HTTP key source.

        Args:
            url: Certificate or JWKS endpoint URL
            timeout: HTTP request timeout in seconds (default: 10.0)
            session: Optional requests session (connection pooling, retries)
        """
        self.url = url
        self.timeout = timeout
        self._session = session

    def __repr__(self) -> str:
        return f"HttpKeySource(url={self.url!r})"

    def fetch(self) -> KeySetResponse:
        """Fetch and index the keys published at ``url``.

        Raises:
            requests.RequestException: On transport or HTTP status errors
            ValueError: If the body is not a supported key document
        """
        getter = self._session.get if self._session is not None else requests.get
        response = getter(self.url, timeout=self.timeout)
        response.raise_for_status()

        keys = parse_key_document(response.json())
        max_age = parse_max_age(response.headers)
        log.debug("keys_fetched", url=self.url, key_count=len(keys), max_age=max_age)
        return KeySetResponse(keys=keys, max_age=max_age)
