"""Public key cache with refresh-on-miss.

This module provides the signing-key cache used by signed-token verifiers:
- Keys cached until the lifetime advertised by the key source
- Automatic refresh on cache miss (handles key rotation)
- Atomic replacement of the whole key set on refresh
"""

from __future__ import annotations

import json
import threading
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Union

import structlog
from cryptography import x509
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import load_pem_public_key
from jwt.algorithms import RSAAlgorithm

from watchtower.core.clock import Clock, SystemClock
from watchtower.core.key_source import KeySource
from watchtower.exceptions import KeyFetchError, KeyNotFoundError
from watchtower.models import AuthErrorCode, CachedKeySet

log = structlog.get_logger()

DEFAULT_MAX_AGE_SECONDS = 3600

_EMPTY = CachedKeySet(keys=MappingProxyType({}), expires_at=0.0)


def load_public_key(material: Union[str, Mapping[str, Any]]) -> rsa.RSAPublicKey:
    """Convert key source material into an RSA public key.

    Supports X.509 certificates and bare public keys in PEM form, and JWK
    dicts as served by JWKS endpoints.

    Raises:
        ValueError: If the material cannot be decoded or is not an RSA key
    """
    if isinstance(material, Mapping):
        key = RSAAlgorithm.from_jwk(json.dumps(dict(material)))
    elif isinstance(material, str):
        data = material.encode("utf-8")
        if b"BEGIN CERTIFICATE" in data:
            key = x509.load_pem_x509_certificate(data).public_key()
        else:
            key = load_pem_public_key(data)
    else:
        raise ValueError(f"Unsupported key material type: {type(material).__name__}")

    if not isinstance(key, rsa.RSAPublicKey):
        raise ValueError(f"Expected an RSA public key, got {type(key).__name__}")
    return key


class PublicKeyCache:
    """In-memory cache of the signing keys published by a key source.

    The cache holds a single reference to an immutable CachedKeySet. A refresh
    builds a complete new set and swaps the reference under a lock, so readers
    always see either the old set or the new one, never a mix. Concurrent
    refreshes may both fetch; the later swap wins.

    Args:
        key_source: Where to fetch keys from.
        clock: Time source for freshness checks. Defaults to the system clock.
        default_max_age: Cache lifetime in seconds when the key source does not
            advertise one. Defaults to 1 hour.
        not_found_code: Error code for KeyNotFoundError, so that misses are
            reported under the token flavor using this cache.
    """

    def __init__(
        self,
        key_source: KeySource,
        clock: Optional[Clock] = None,
        default_max_age: int = DEFAULT_MAX_AGE_SECONDS,
        not_found_code: AuthErrorCode = AuthErrorCode.INVALID_ID_TOKEN,
    ):
        self.key_source = key_source
        self.clock = clock or SystemClock()
        self.default_max_age = default_max_age
        self.not_found_code = not_found_code

        self._snapshot: CachedKeySet = _EMPTY
        self._lock = threading.Lock()

    @property
    def snapshot(self) -> CachedKeySet:
        """The key set currently in use."""
        return self._snapshot

    @property
    def key_ids(self) -> List[str]:
        return sorted(self._snapshot.keys)

    def get_key(self, key_id: str) -> rsa.RSAPublicKey:
        """Return the public key for ``key_id``, refreshing the cache if needed.

        Raises:
            KeyFetchError: If a needed refresh failed
            KeyNotFoundError: If the key id is absent after a refresh
        """
        snapshot = self._snapshot
        if snapshot.is_fresh(self.clock.now()) and key_id in snapshot.keys:
            return snapshot.keys[key_id]

        log.debug(
            "key_cache_miss",
            kid=key_id,
            stale=not snapshot.is_fresh(self.clock.now()),
        )
        snapshot = self.refresh()
        key = snapshot.keys.get(key_id)
        if key is None:
            log.warning("signing_key_not_found", kid=key_id, available_kids=sorted(snapshot.keys))
            raise KeyNotFoundError(key_id, code=self.not_found_code)
        return key

    def refresh(self) -> CachedKeySet:
        """Fetch the key source and replace the cached key set.

        Returns:
            The new CachedKeySet

        Raises:
            KeyFetchError: On any fetch or key decoding failure. The previous
                key set stays in place.
        """
        fetched_at = self.clock.now()
        try:
            response = self.key_source.fetch()
            keys: Dict[str, rsa.RSAPublicKey] = {
                kid: load_public_key(material) for kid, material in response.keys.items()
            }
        except Exception as e:
            log.error("key_fetch_failed", source=repr(self.key_source), error=str(e))
            raise KeyFetchError(f"Error while fetching public key certificates: {e}", cause=e) from e

        max_age = response.max_age if response.max_age is not None else self.default_max_age
        snapshot = CachedKeySet(
            keys=MappingProxyType(keys),
            expires_at=fetched_at + max_age,
            fetched_at=fetched_at,
        )
        with self._lock:
            self._snapshot = snapshot

        log.debug("keys_cached", key_count=len(keys), max_age=max_age)
        return snapshot
