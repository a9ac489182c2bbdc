"""Watchtower exceptions.

All exceptions inherit from WatchtowerError for easy catching. Every
verification failure is a VerificationError carrying a specific ``kind``
alongside the flavor-specific error ``code``.
"""

from __future__ import annotations

from typing import Any, Optional

from watchtower.models import AuthErrorCode, ErrorKind


class WatchtowerError(Exception):
    """Base exception for Watchtower errors."""

    def __init__(self, message: str, code: str):
        self.message = message
        self.code = code
        super().__init__(message)


class ConfigurationError(WatchtowerError):
    """Raised when a verifier or factory is set up with invalid settings."""

    def __init__(self, message: str):
        super().__init__(message=message, code="CONFIGURATION_ERROR")


# ==================== Verification Errors ====================


class VerificationError(WatchtowerError):
    """Base class for token verification failures."""

    kind: ErrorKind = ErrorKind.MALFORMED_TOKEN

    def __init__(
        self,
        message: str,
        code: str = AuthErrorCode.INVALID_ID_TOKEN,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message=message, code=getattr(code, "value", code))
        self.cause = cause


class MalformedTokenError(VerificationError):
    """Raised when a token cannot be decoded into header and payload."""

    kind = ErrorKind.MALFORMED_TOKEN


class UnsupportedAlgorithmError(VerificationError):
    """Raised when the header algorithm is not the one required."""

    kind = ErrorKind.UNSUPPORTED_ALGORITHM


class MissingKeyIdError(VerificationError):
    """Raised when a signed token has no "kid" header."""

    kind = ErrorKind.MISSING_KEY_ID


class KeyFetchError(VerificationError):
    """Raised when the signing keys could not be fetched or decoded."""

    kind = ErrorKind.KEY_FETCH_FAILED

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(
            message=message,
            code=AuthErrorCode.CERTIFICATE_FETCH_FAILED,
            cause=cause,
        )


class KeyNotFoundError(VerificationError):
    """Raised when no signing key matches the token's key id."""

    kind = ErrorKind.KEY_NOT_FOUND

    def __init__(
        self,
        key_id: str,
        message: Optional[str] = None,
        code: str = AuthErrorCode.INVALID_ID_TOKEN,
    ):
        super().__init__(
            message=message or f"No signing key found for kid: {key_id}",
            code=code,
        )
        self.key_id = key_id


class InvalidSignatureError(VerificationError):
    """Raised when token signature verification fails."""

    kind = ErrorKind.INVALID_SIGNATURE


class ClaimMismatchError(VerificationError):
    """Base class for claims that did not match the expected value."""

    def __init__(
        self,
        message: str,
        expected: Any,
        actual: Any,
        code: str = AuthErrorCode.INVALID_ID_TOKEN,
    ):
        super().__init__(message=message, code=code)
        self.expected = expected
        self.actual = actual


class IssuerMismatchError(ClaimMismatchError):
    """Raised when the "iss" claim is not the expected issuer."""

    kind = ErrorKind.ISSUER_MISMATCH


class AudienceMismatchError(ClaimMismatchError):
    """Raised when the "aud" claim is not the expected project."""

    kind = ErrorKind.AUDIENCE_MISMATCH


class TenantMismatchError(ClaimMismatchError):
    """Raised when the token tenant differs from the configured tenant."""

    kind = ErrorKind.TENANT_MISMATCH

    def __init__(self, message: str, expected: Any, actual: Any):
        super().__init__(
            message=message,
            expected=expected,
            actual=actual,
            code=AuthErrorCode.TENANT_ID_MISMATCH,
        )


class MissingSubjectError(VerificationError):
    """Raised when the "sub" claim is missing or empty."""

    kind = ErrorKind.MISSING_SUBJECT


class InvalidSubjectError(VerificationError):
    """Raised when the "sub" claim is longer than allowed."""

    kind = ErrorKind.INVALID_SUBJECT


class TokenExpiredError(VerificationError):
    """Raised when token has expired."""

    kind = ErrorKind.TOKEN_EXPIRED


class NotYetValidError(VerificationError):
    """Raised when the "iat" claim lies in the future."""

    kind = ErrorKind.NOT_YET_VALID


class EmulatorModeViolationError(VerificationError):
    """Raised when an unsigned token meets a signed verifier, or vice versa."""

    kind = ErrorKind.EMULATOR_MODE_VIOLATION


class RevokedTokenError(VerificationError):
    """Raised when a valid token was issued before the user's revocation time."""

    kind = ErrorKind.REVOKED
