"""Claim validation.

Checks run in a fixed order so that error messages are deterministic:

Structural (before any key lookup):
    1. algorithm (RS256, or "none" with an empty signature in emulator mode)
    2. key id present (signed tokens only)

Semantic:
    3. issuer   4. audience   5. subject   6. issued-at   7. expiry   8. tenant

Every failing check raises immediately with a specific VerificationError.
"""

from __future__ import annotations

from typing import Any, Mapping

from watchtower.exceptions import (
    AudienceMismatchError,
    EmulatorModeViolationError,
    InvalidSubjectError,
    IssuerMismatchError,
    MissingKeyIdError,
    MissingSubjectError,
    NotYetValidError,
    TenantMismatchError,
    TokenExpiredError,
    UnsupportedAlgorithmError,
)
from watchtower.models import ParsedToken, VerifierConfig

RS256 = "RS256"
UNSIGNED_ALGORITHM = "none"
MAX_SUBJECT_LENGTH = 128

# Audience of custom tokens minted for sign-in; never valid for verification.
CUSTOM_TOKEN_AUDIENCE = (
    "https://identitytoolkit.googleapis.com/google.identity.identitytoolkit.v1.IdentityToolkit"
)


def _retrieval_hint(config: VerifierConfig) -> str:
    return f"See {config.doc_url} for details on how to retrieve {config.articled_short_name}."


def _project_hint(config: VerifierConfig) -> str:
    return (
        f"Make sure the {config.short_name} comes from the same project as the "
        "credentials used to configure this verifier."
    )


def _is_custom_token(claims: Mapping[str, Any]) -> bool:
    return claims.get("aud") == CUSTOM_TOKEN_AUDIENCE


def _is_legacy_custom_token(algorithm: Any, claims: Mapping[str, Any]) -> bool:
    data = claims.get("d")
    version = claims.get("v")
    return (
        algorithm == "HS256"
        and version == 0
        and not isinstance(version, bool)
        and isinstance(data, dict)
        and data.get("uid") is not None
    )


def check_structure(parsed: ParsedToken, config: VerifierConfig, emulator: bool) -> None:
    """Run the checks that need neither keys nor a clock.

    Raises:
        EmulatorModeViolationError: Unsigned token on the signed path, or a
            signed token on the emulator path
        UnsupportedAlgorithmError: Header algorithm is not the required one
        MissingKeyIdError: Signed token without a "kid" header
    """
    header = parsed.header
    code = config.invalid_token_code

    if emulator:
        if not parsed.is_unsigned:
            raise EmulatorModeViolationError(
                f"{config.method} is running in emulator mode and expects an unsigned "
                f"{config.short_name}, but the token carries a signature. "
                f"{_retrieval_hint(config)}",
                code=code,
            )
        if header.algorithm != UNSIGNED_ALGORITHM:
            raise UnsupportedAlgorithmError(
                f'{config.display_name} has incorrect algorithm. Expected "{UNSIGNED_ALGORITHM}" '
                f'but got "{header.algorithm}". {_retrieval_hint(config)}',
                code=code,
            )
        return

    if parsed.is_unsigned or header.algorithm == UNSIGNED_ALGORITHM:
        raise EmulatorModeViolationError(
            f"{config.method} expects a signed {config.short_name}, but was given an "
            f"unsigned token. Unsigned tokens are only accepted in emulator mode. "
            f"{_retrieval_hint(config)}",
            code=code,
        )
    if header.algorithm != RS256:
        if _is_legacy_custom_token(header.algorithm, parsed.payload.claims):
            message = (
                f"{config.method} expects {config.articled_short_name}, but was given "
                "a legacy custom token."
            )
        else:
            message = (
                f'{config.display_name} has incorrect algorithm. Expected "{RS256}" but got '
                f'"{header.algorithm}".'
            )
        raise UnsupportedAlgorithmError(f"{message} {_retrieval_hint(config)}", code=code)

    if not header.key_id:
        if _is_custom_token(parsed.payload.claims):
            message = (
                f"{config.method} expects {config.articled_short_name}, but was given "
                "a custom token."
            )
        else:
            message = f'{config.display_name} has no "kid" claim.'
        raise MissingKeyIdError(f"{message} {_retrieval_hint(config)}", code=code)


def check_claims(parsed: ParsedToken, config: VerifierConfig, now: float) -> None:
    """Run the issuer, audience, subject, time and tenant checks.

    Args:
        parsed: The parsed token
        config: Flavor configuration holding the expected values
        now: Current time in epoch seconds

    Raises:
        IssuerMismatchError, AudienceMismatchError, MissingSubjectError,
        InvalidSubjectError, NotYetValidError, TokenExpiredError,
        TenantMismatchError
    """
    payload = parsed.payload
    code = config.invalid_token_code
    hint = _retrieval_hint(config)

    expected_issuer = config.issuer
    if payload.issuer != expected_issuer:
        raise IssuerMismatchError(
            f'{config.display_name} has incorrect "iss" (issuer) claim. Expected '
            f'"{expected_issuer}" but got "{payload.issuer}". {_project_hint(config)} {hint}',
            expected=expected_issuer,
            actual=payload.issuer,
            code=code,
        )

    expected_audience = config.expected_audience
    if not isinstance(payload.audience, str) or payload.audience != expected_audience:
        raise AudienceMismatchError(
            f'{config.display_name} has incorrect "aud" (audience) claim. Expected '
            f'"{expected_audience}" but got "{payload.audience}". {_project_hint(config)} {hint}',
            expected=expected_audience,
            actual=payload.audience,
            code=code,
        )

    if payload.subject is None:
        raise MissingSubjectError(
            f'{config.display_name} has no "sub" (subject) claim. {hint}', code=code
        )
    if payload.subject == "":
        raise MissingSubjectError(
            f'{config.display_name} has an empty string "sub" (subject) claim. {hint}',
            code=code,
        )
    if len(payload.subject) > MAX_SUBJECT_LENGTH:
        raise InvalidSubjectError(
            f'{config.display_name} has "sub" (subject) claim longer than '
            f"{MAX_SUBJECT_LENGTH} characters. {hint}",
            code=code,
        )

    if payload.issued_at is None or payload.issued_at > now:
        raise NotYetValidError(f"{config.display_name} is not yet valid. {hint}", code=code)

    if payload.expires_at is None or payload.expires_at <= now:
        raise TokenExpiredError(
            f"{config.display_name} has expired. Get a fresh {config.short_name} "
            f"and try again. {hint}",
            code=config.expired_token_code,
        )

    if config.tenant_id is not None and payload.tenant_id != config.tenant_id:
        raise TenantMismatchError(
            f"The tenant ID ('{payload.tenant_id or ''}') of the token did not match "
            f"the expected value ('{config.tenant_id}')",
            expected=config.tenant_id,
            actual=payload.tenant_id,
        )


def is_expired(parsed: ParsedToken, now: float) -> bool:
    """Whether the token's (unverified) "exp" claim is already past."""
    return parsed.payload.expires_at is not None and parsed.payload.expires_at <= now
