"""Abstract key source interface.

A key source publishes the current signing keys of the identity backend,
indexed by key id. Implementations only fetch; caching and key decoding
belong to PublicKeyCache.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from watchtower.models import KeySetResponse


class KeySource(ABC):
    """Abstract interface for fetching signing keys.

    Implementations:
        - HttpKeySource: fetches a certificate/JWKS endpoint over HTTP
        - StaticKeySource: serves an in-memory key map (tests, local runs)
    """

    @abstractmethod
    def fetch(self) -> KeySetResponse:
        """Fetch the current key set.

        Returns:
            KeySetResponse mapping key ids to PEM strings (public keys or
            X.509 certificates) or JWK dicts, plus the advertised cache
            lifetime in seconds if the source stated one.

        Raises:
            Any transport or decoding error. PublicKeyCache wraps these
            into KeyFetchError.
        """
