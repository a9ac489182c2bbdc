"""Token flavors: the per-flavor settings behind ID token and session cookie verification.

Both flavors share one verification algorithm. They differ only in issuer,
key endpoint, error codes and the wording of error messages.
"""

from __future__ import annotations

from typing import Optional

from watchtower.exceptions import ConfigurationError
from watchtower.keys.cache import PublicKeyCache
from watchtower.models import AuthErrorCode, VerifierConfig

ID_TOKEN_CERT_URL = (
    "https://www.googleapis.com/robot/v1/metadata/x509/securetoken@system.gserviceaccount.com"
)
ID_TOKEN_ISSUER_TEMPLATE = "https://securetoken.google.com/{project_id}"
ID_TOKEN_DOC_URL = "https://firebase.google.com/docs/auth/admin/verify-id-tokens"

SESSION_COOKIE_CERT_URL = "https://www.googleapis.com/identitytoolkit/v3/relyingparty/publicKeys"
SESSION_COOKIE_ISSUER_TEMPLATE = "https://session.firebase.google.com/{project_id}"
SESSION_COOKIE_DOC_URL = "https://firebase.google.com/docs/auth/admin/manage-cookies"


def _require_project_id(project_id: Optional[str], method: str) -> str:
    if not project_id:
        raise ConfigurationError(
            f"A project ID is required to call {method}. Set it explicitly or through "
            "the GOOGLE_CLOUD_PROJECT environment variable."
        )
    return project_id


def id_token_config(
    project_id: str,
    key_cache: Optional[PublicKeyCache],
    tenant_id: Optional[str] = None,
) -> VerifierConfig:
    """Build the configuration for verifying ID tokens of a project."""
    return VerifierConfig(
        short_name="ID token",
        method="verify_id_token()",
        doc_url=ID_TOKEN_DOC_URL,
        issuer_template=ID_TOKEN_ISSUER_TEMPLATE,
        project_id=_require_project_id(project_id, "verify_id_token()"),
        invalid_token_code=AuthErrorCode.INVALID_ID_TOKEN,
        expired_token_code=AuthErrorCode.EXPIRED_ID_TOKEN,
        key_cache=key_cache,
        tenant_id=tenant_id,
    )


def session_cookie_config(
    project_id: str,
    key_cache: Optional[PublicKeyCache],
    tenant_id: Optional[str] = None,
) -> VerifierConfig:
    """Build the configuration for verifying session cookies of a project."""
    return VerifierConfig(
        short_name="session cookie",
        method="verify_session_cookie()",
        doc_url=SESSION_COOKIE_DOC_URL,
        issuer_template=SESSION_COOKIE_ISSUER_TEMPLATE,
        project_id=_require_project_id(project_id, "verify_session_cookie()"),
        invalid_token_code=AuthErrorCode.INVALID_SESSION_COOKIE,
        expired_token_code=AuthErrorCode.EXPIRED_SESSION_COOKIE,
        key_cache=key_cache,
        tenant_id=tenant_id,
    )
