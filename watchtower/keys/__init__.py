"""Signing key sources and the public key cache."""

from watchtower.keys.cache import PublicKeyCache, load_public_key
from watchtower.keys.http import HttpKeySource

__all__ = [
    "HttpKeySource",
    "PublicKeyCache",
    "load_public_key",
]
