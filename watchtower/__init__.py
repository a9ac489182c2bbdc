"""Watchtower - bearer credential verification for Google identity tokens.

Watchtower verifies ID tokens and session cookies without calling the
identity backend for every request.

Features:
- RS256 signature verification against rotating, cached public keys
- Exact issuer, audience, subject, issued-at and expiry checks
- Optional tenant scoping and revocation checks
- Emulator mode for local development with unsigned tokens
- A specific error for every rejection reason
"""

from watchtower.core.clock import Clock, FixedClock, SystemClock
from watchtower.core.factory import VerifierFactory, create_factory, factory_from_env
from watchtower.core.key_source import KeySource
from watchtower.core.token_verifier import TokenVerifier
from watchtower.factories import EmulatorFactory, GoogleFactory
from watchtower.keys import HttpKeySource, PublicKeyCache
from watchtower.mock import StaticKeySource, create_emulator_token
from watchtower.verifiers import RevocationCheckDecorator, TokenVerifierImpl
from watchtower.flavors import id_token_config, session_cookie_config
from watchtower.exceptions import (
    AudienceMismatchError,
    ConfigurationError,
    EmulatorModeViolationError,
    InvalidSignatureError,
    InvalidSubjectError,
    IssuerMismatchError,
    KeyFetchError,
    KeyNotFoundError,
    MalformedTokenError,
    MissingKeyIdError,
    MissingSubjectError,
    NotYetValidError,
    RevokedTokenError,
    TenantMismatchError,
    TokenExpiredError,
    UnsupportedAlgorithmError,
    VerificationError,
    WatchtowerError,
)
from watchtower.models import (
    AuthErrorCode,
    CachedKeySet,
    ErrorKind,
    KeySetResponse,
    ParsedToken,
    ValidatedToken,
    VerifierConfig,
)

__version__ = "0.1.0"

__all__ = [
    # Core interfaces
    "Clock",
    "KeySource",
    "TokenVerifier",
    # Factory (recommended entry point)
    "create_factory",
    "factory_from_env",
    "VerifierFactory",
    "GoogleFactory",
    "EmulatorFactory",
    # Building blocks
    "FixedClock",
    "SystemClock",
    "HttpKeySource",
    "StaticKeySource",
    "PublicKeyCache",
    "TokenVerifierImpl",
    "RevocationCheckDecorator",
    "id_token_config",
    "session_cookie_config",
    "create_emulator_token",
    # Models
    "AuthErrorCode",
    "CachedKeySet",
    "ErrorKind",
    "KeySetResponse",
    "ParsedToken",
    "ValidatedToken",
    "VerifierConfig",
    # Exceptions - Base
    "WatchtowerError",
    "ConfigurationError",
    "VerificationError",
    # Exceptions - Structure
    "MalformedTokenError",
    "UnsupportedAlgorithmError",
    "MissingKeyIdError",
    "EmulatorModeViolationError",
    # Exceptions - Keys and signature
    "KeyFetchError",
    "KeyNotFoundError",
    "InvalidSignatureError",
    # Exceptions - Claims
    "IssuerMismatchError",
    "AudienceMismatchError",
    "MissingSubjectError",
    "InvalidSubjectError",
    "NotYetValidError",
    "TokenExpiredError",
    "TenantMismatchError",
    "RevokedTokenError",
]
