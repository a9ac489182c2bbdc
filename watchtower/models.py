"""Token verification models - immutable data structures shared by all components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Mapping, Optional, Union

if TYPE_CHECKING:
    from watchtower.keys.cache import PublicKeyCache


class AuthErrorCode(str, Enum):
    """Error codes reported to callers, chosen per token flavor."""

    INVALID_ID_TOKEN = "INVALID_ID_TOKEN"
    EXPIRED_ID_TOKEN = "EXPIRED_ID_TOKEN"
    REVOKED_ID_TOKEN = "REVOKED_ID_TOKEN"
    INVALID_SESSION_COOKIE = "INVALID_SESSION_COOKIE"
    EXPIRED_SESSION_COOKIE = "EXPIRED_SESSION_COOKIE"
    REVOKED_SESSION_COOKIE = "REVOKED_SESSION_COOKIE"
    CERTIFICATE_FETCH_FAILED = "CERTIFICATE_FETCH_FAILED"
    TENANT_ID_MISMATCH = "TENANT_ID_MISMATCH"


class ErrorKind(str, Enum):
    """The specific reason a verification call failed."""

    MALFORMED_TOKEN = "MALFORMED_TOKEN"
    UNSUPPORTED_ALGORITHM = "UNSUPPORTED_ALGORITHM"
    MISSING_KEY_ID = "MISSING_KEY_ID"
    KEY_FETCH_FAILED = "KEY_FETCH_FAILED"
    KEY_NOT_FOUND = "KEY_NOT_FOUND"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"
    ISSUER_MISMATCH = "ISSUER_MISMATCH"
    AUDIENCE_MISMATCH = "AUDIENCE_MISMATCH"
    TENANT_MISMATCH = "TENANT_MISMATCH"
    MISSING_SUBJECT = "MISSING_SUBJECT"
    INVALID_SUBJECT = "INVALID_SUBJECT"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    NOT_YET_VALID = "NOT_YET_VALID"
    EMULATOR_MODE_VIOLATION = "EMULATOR_MODE_VIOLATION"
    REVOKED = "REVOKED"


# Claims with a dedicated accessor on ValidatedToken; everything else is custom.
RESERVED_CLAIMS = frozenset(
    {
        "acr",
        "amr",
        "at_hash",
        "aud",
        "auth_time",
        "azp",
        "cnf",
        "c_hash",
        "exp",
        "firebase",
        "iat",
        "iss",
        "jti",
        "nbf",
        "nonce",
        "sub",
        "uid",
        "user_id",
        "email",
        "email_verified",
        "name",
        "picture",
        "phone_number",
    }
)


def _freeze(value: Any) -> Any:
    """Copy decoded JSON into read-only form: mappings to proxies, lists to tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(v) for v in value)
    return value


@dataclass(frozen=True)
class VerifierConfig:
    """Configuration for one token flavor (ID token or session cookie).

    Fully determined at construction time and never mutated, so a single
    instance may be shared by any number of concurrent verify calls.
    """

    short_name: str  # e.g., "ID token"
    method: str  # e.g., "verify_id_token()"
    doc_url: str
    issuer_template: str  # e.g., https://securetoken.google.com/{project_id}
    project_id: str
    invalid_token_code: AuthErrorCode
    expired_token_code: AuthErrorCode
    key_cache: Optional["PublicKeyCache"] = None
    tenant_id: Optional[str] = None

    @property
    def articled_short_name(self) -> str:
        if self.short_name[:1] in "aeiouAEIOU":
            return f"an {self.short_name}"
        return f"a {self.short_name}"

    @property
    def display_name(self) -> str:
        return f"Firebase {self.short_name}"

    @property
    def issuer(self) -> str:
        return self.issuer_template.format(project_id=self.project_id)

    @property
    def expected_audience(self) -> str:
        return self.project_id


@dataclass(frozen=True)
class KeySetResponse:
    """Keys returned by a key source, with the lifetime it advertised."""

    keys: Mapping[str, Union[str, Mapping[str, Any]]]  # kid -> PEM text or JWK
    max_age: Optional[int] = None  # seconds; None if the source gave no lifetime


@dataclass(frozen=True)
class CachedKeySet:
    """Immutable snapshot of the signing keys held by a PublicKeyCache."""

    keys: Mapping[str, Any]  # kid -> cryptography public key
    expires_at: float
    fetched_at: float = 0.0

    def is_fresh(self, now: float) -> bool:
        return now < self.expires_at


@dataclass(frozen=True)
class TokenHeader:
    """Decoded JWS header."""

    algorithm: Optional[str]
    key_id: Optional[str] = None
    type: Optional[str] = None
    raw: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TokenPayload:
    """Decoded, not yet trusted, token payload."""

    issuer: Optional[str]
    audience: Any
    subject: Optional[str]
    issued_at: Optional[int]
    expires_at: Optional[int]
    tenant_id: Optional[str] = None
    claims: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ParsedToken:
    """A token split into its parts. Built fresh for every verify call."""

    header: TokenHeader
    payload: TokenPayload
    signature: bytes
    signing_input: bytes

    @property
    def is_unsigned(self) -> bool:
        return not self.signature


@dataclass(frozen=True)
class ValidatedToken:
    """Claims of a token that passed every verification check."""

    issuer: str
    audience: str
    subject: str
    issued_at: int
    expires_at: int
    tenant_id: Optional[str] = None
    claims: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: TokenPayload) -> "ValidatedToken":
        return cls(
            issuer=payload.issuer,
            audience=payload.audience,
            subject=payload.subject,
            issued_at=payload.issued_at,
            expires_at=payload.expires_at,
            tenant_id=payload.tenant_id,
            claims=_freeze(payload.claims),
        )

    @property
    def uid(self) -> str:
        return self.subject

    @property
    def custom_claims(self) -> Mapping[str, Any]:
        """Developer claims, without the registered and provider claims."""
        return MappingProxyType(
            {k: v for k, v in self.claims.items() if k not in RESERVED_CLAIMS}
        )

    @property
    def email(self) -> Optional[str]:
        return self.claims.get("email")

    @property
    def email_verified(self) -> bool:
        return bool(self.claims.get("email_verified", False))

    @property
    def name(self) -> Optional[str]:
        return self.claims.get("name")

    @property
    def picture(self) -> Optional[str]:
        return self.claims.get("picture")

    @property
    def auth_time(self) -> Optional[int]:
        return self.claims.get("auth_time")

    @property
    def sign_in_provider(self) -> Optional[str]:
        firebase = self.claims.get("firebase")
        if isinstance(firebase, Mapping):
            return firebase.get("sign_in_provider")
        return None
