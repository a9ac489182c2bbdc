"""Revocation check layered on top of another token verifier.

Revocation is not part of token verification itself: it needs the user's
"tokens valid after" time, which only the user store knows. The decorator
asks a caller-supplied lookup for that time after the wrapped verifier has
accepted the token.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional

import structlog

from watchtower.core.token_verifier import TokenVerifier
from watchtower.exceptions import ConfigurationError, RevokedTokenError
from watchtower.models import AuthErrorCode, ValidatedToken

log = structlog.get_logger()

# uid -> epoch seconds before which the user's tokens are revoked, or None
ValidAfterLookup = Callable[[str], Optional[float]]


class RevocationCheckDecorator(TokenVerifier):
    """Rejects tokens issued before the user's revocation time.

    Args:
        verifier: The verifier that checks the token itself.
        valid_after_lookup: Returns the user's "tokens valid after" time in
            epoch seconds, or None if the user never revoked tokens. Errors
            raised by the lookup propagate to the caller.
        revoked_code: Error code for RevokedTokenError.
        short_name: Token flavor name used in error messages.
    """

    def __init__(
        self,
        verifier: TokenVerifier,
        valid_after_lookup: ValidAfterLookup,
        revoked_code: AuthErrorCode,
        short_name: str,
    ):
        if not short_name:
            raise ConfigurationError("short_name must be specified")
        self.verifier = verifier
        self.valid_after_lookup = valid_after_lookup
        self.revoked_code = revoked_code
        self.short_name = short_name

    def verify(self, token: str) -> ValidatedToken:
        validated = self.verifier.verify(token)
        valid_after = self.valid_after_lookup(validated.uid)
        if valid_after is not None and validated.issued_at < valid_after:
            log.info("token_revoked", token_type=self.short_name, sub=validated.uid)
            raise RevokedTokenError(
                f"Firebase {self.short_name} has been revoked.", code=self.revoked_code
            )
        return validated

    def get_unverified_claims(self, token: str) -> Dict[str, Any]:
        return self.verifier.get_unverified_claims(token)


def decorate_id_token_verifier(
    verifier: TokenVerifier, valid_after_lookup: ValidAfterLookup
) -> RevocationCheckDecorator:
    return RevocationCheckDecorator(
        verifier, valid_after_lookup, AuthErrorCode.REVOKED_ID_TOKEN, "ID token"
    )


def decorate_session_cookie_verifier(
    verifier: TokenVerifier, valid_after_lookup: ValidAfterLookup
) -> RevocationCheckDecorator:
    return RevocationCheckDecorator(
        verifier, valid_after_lookup, AuthErrorCode.REVOKED_SESSION_COOKIE, "session cookie"
    )
