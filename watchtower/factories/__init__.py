"""Factory implementations for creating Watchtower verifiers."""

from watchtower.factories.emulator import EmulatorFactory
from watchtower.factories.google import GoogleFactory

__all__ = [
    "EmulatorFactory",
    "GoogleFactory",
]
