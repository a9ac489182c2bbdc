"""Core abstractions for Watchtower token verification."""

from watchtower.core.clock import Clock, FixedClock, SystemClock
from watchtower.core.factory import VerifierFactory, create_factory, factory_from_env
from watchtower.core.key_source import KeySource
from watchtower.core.token_verifier import TokenVerifier

__all__ = [
    "Clock",
    "FixedClock",
    "SystemClock",
    "KeySource",
    "TokenVerifier",
    "VerifierFactory",
    "create_factory",
    "factory_from_env",
]
