"""Token verifier for ID tokens and session cookies.

This module composes the parser, claim validator, key cache and signature
verifier into one verification pipeline:

    parse -> structural checks -> key lookup -> signature -> claim checks

One class serves every token flavor; the flavor is carried by its
VerifierConfig. Emulator mode is chosen when the verifier is constructed and
is never inferred from the token, so a forged ``alg: "none"`` token cannot
skip signature verification on a production verifier.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import structlog

from watchtower.core.clock import Clock, SystemClock
from watchtower.core.token_verifier import TokenVerifier
from watchtower.exceptions import (
    ConfigurationError,
    InvalidSignatureError,
    KeyNotFoundError,
    MalformedTokenError,
    TokenExpiredError,
    VerificationError,
)
from watchtower.models import ParsedToken, ValidatedToken, VerifierConfig
from watchtower.tokens.parser import parse
from watchtower.tokens.signature import verify_signature
from watchtower.tokens.validator import check_claims, check_structure, is_expired

log = structlog.get_logger()


class TokenVerifierImpl(TokenVerifier):
    """Verifies tokens of one flavor for one project.

    Args:
        config: Flavor configuration (issuer, audience, key cache, error codes).
        emulator: Accept unsigned emulator tokens instead of signed ones.
            Defaults to False.
        clock: Time source for issued-at/expiry checks. Defaults to the
            system clock.
    """

    def __init__(
        self,
        config: VerifierConfig,
        emulator: bool = False,
        clock: Optional[Clock] = None,
    ):
        if not emulator and config.key_cache is None:
            raise ConfigurationError(
                f"A key cache is required to verify signed {config.short_name}s"
            )
        self.config = config
        self.emulator = emulator
        self.clock = clock or SystemClock()

    def verify(self, token: str) -> ValidatedToken:
        """Verify a token and return its validated claims."""
        try:
            parsed = self._parse(token)
            check_structure(parsed, self.config, self.emulator)
            if not self.emulator:
                self._check_signature(parsed)
            check_claims(parsed, self.config, self.clock.now())
        except VerificationError as e:
            log.info(
                "token_rejected",
                token_type=self.config.short_name,
                kind=e.kind.value,
                code=e.code,
                emulator=self.emulator,
            )
            raise

        validated = ValidatedToken.from_payload(parsed.payload)
        log.debug(
            "token_verified",
            token_type=self.config.short_name,
            sub=validated.subject,
            tenant_id=validated.tenant_id,
            emulator=self.emulator,
        )
        return validated

    def _parse(self, token: str) -> ParsedToken:
        config = self.config
        try:
            return parse(token, code=config.invalid_token_code)
        except MalformedTokenError as e:
            raise MalformedTokenError(
                f"Failed to parse {config.display_name}. Make sure you passed a string "
                f"that represents a complete and valid JWT. See "
                f"{config.doc_url} for details on how to retrieve "
                f"{config.articled_short_name}.",
                code=config.invalid_token_code,
                cause=e,
            ) from e

    def _check_signature(self, parsed: ParsedToken) -> None:
        config = self.config
        try:
            key = config.key_cache.get_key(parsed.header.key_id)
        except KeyNotFoundError as e:
            self._raise_if_expired(parsed, e)
            raise KeyNotFoundError(
                parsed.header.key_id,
                message=(
                    f'{config.display_name} has "kid" claim "{parsed.header.key_id}" which '
                    f"does not correspond to a known public key. Most likely the "
                    f"{config.short_name} is expired, so get a fresh token from your "
                    f"client app and try again."
                ),
                code=config.invalid_token_code,
            ) from e

        if not verify_signature(parsed, key):
            error = InvalidSignatureError(
                f"Failed to verify the signature of {config.display_name}. See "
                f"{config.doc_url} for details on how to retrieve "
                f"{config.articled_short_name}.",
                code=config.invalid_token_code,
            )
            self._raise_if_expired(parsed, error)
            raise error

    def _raise_if_expired(self, parsed: ParsedToken, cause: VerificationError) -> None:
        # An expired token is reported as expired even when its key is gone or
        # its signature is bad. Both outcomes reject the token.
        if is_expired(parsed, self.clock.now()):
            raise TokenExpiredError(
                f"{self.config.display_name} has expired. Get a fresh "
                f"{self.config.short_name} and try again.",
                code=self.config.expired_token_code,
                cause=cause,
            ) from cause

    def get_unverified_claims(self, token: str) -> Dict[str, Any]:
        """Extract claims from a token WITHOUT verifying it."""
        return dict(self._parse(token).payload.claims)
