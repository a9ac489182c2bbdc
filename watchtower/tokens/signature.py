"""RS256 signature verification.

Only one algorithm exists here. The header algorithm has already been
checked by the claim validator; it is never used to pick a routine.
"""

from __future__ import annotations

from typing import Any

from jwt.algorithms import RSAAlgorithm

from watchtower.models import ParsedToken

_RS256 = RSAAlgorithm(RSAAlgorithm.SHA256)


def verify_signature(parsed: ParsedToken, public_key: Any) -> bool:
    """Check the token signature over ``header.payload`` with an RSA public key.

    Args:
        parsed: The parsed token
        public_key: A cryptography RSAPublicKey

    Returns:
        True if the signature is valid for the key, False otherwise
    """
    if not parsed.signature:
        return False
    return _RS256.verify(parsed.signing_input, public_key, parsed.signature)
