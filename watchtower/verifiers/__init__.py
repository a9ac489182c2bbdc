"""Token verifier implementations."""

from watchtower.verifiers.revocation import RevocationCheckDecorator
from watchtower.verifiers.token_verifier import TokenVerifierImpl

__all__ = [
    "RevocationCheckDecorator",
    "TokenVerifierImpl",
]
