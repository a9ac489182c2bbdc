"""Local development helpers: in-memory keys and unsigned emulator tokens."""

from watchtower.mock.key_source import StaticKeySource
from watchtower.mock.tokens import create_emulator_token

__all__ = [
    "StaticKeySource",
    "create_emulator_token",
]
