"""Abstract token verifier interface.

This module defines the interface for credential verification. Implementations
verify ID tokens or session cookies, and decorators (such as the revocation
check) wrap another TokenVerifier.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict

from watchtower.models import ValidatedToken


class TokenVerifier(ABC):
    """Abstract interface for token verification.

    Implementations handle:
    - Token parsing and structural checks
    - Signing key lookup through a PublicKeyCache
    - Signature verification
    - Claim validation (issuer, audience, subject, timestamps, tenant)

    Implementations:
        - TokenVerifierImpl: signed and emulator tokens of one flavor
        - RevocationCheckDecorator: adds a revocation check to another verifier
    """

    @abstractmethod
    def verify(self, token: str) -> ValidatedToken:
        """Verify a token and return its validated claims.

        Args:
            token: The compact serialized token (without 'Bearer ' prefix)

        Returns:
            ValidatedToken with the token's claims

        Raises:
            VerificationError: A subclass naming the specific failure
        """

    @abstractmethod
    def get_unverified_claims(self, token: str) -> Dict[str, Any]:
        """Extract claims from a token WITHOUT verifying it.

        WARNING: Only use this for debugging or logging purposes.
        Never trust unverified claims for authorization decisions.

        Args:
            token: The token

        Returns:
            The raw payload claims

        Raises:
            MalformedTokenError: If the token cannot be decoded
        """
