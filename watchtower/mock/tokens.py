"""Unsigned token minting for emulator mode.

Emulator tokens have ``alg: "none"`` and an empty signature segment. They are
only ever accepted by verifiers constructed with ``emulator=True``.
"""

from __future__ import annotations

import json
import time
from typing import Any, Dict, Optional

from jwt.utils import base64url_encode


def _encode_segment(data: Dict[str, Any]) -> str:
    raw = json.dumps(data, separators=(",", ":"), sort_keys=True).encode("utf-8")
    return base64url_encode(raw).decode("ascii")


def create_emulator_token(
    project_id: str,
    uid: str,
    issuer_template: str = "https://securetoken.google.com/{project_id}",
    tenant_id: Optional[str] = None,
    claims: Optional[Dict[str, Any]] = None,
    issued_at: Optional[int] = None,
    expires_in: int = 3600,
) -> str:
    """Create an unsigned token such as a local auth emulator would issue.

    Args:
        project_id: Audience and issuer project
        uid: Subject of the token
        issuer_template: Issuer format string (ID token issuer by default)
        tenant_id: Optional tenant, placed in the "firebase" claim
        claims: Extra claims merged into the payload
        issued_at: "iat" in epoch seconds (defaults to now)
        expires_in: Lifetime in seconds (default: 3600)

    Returns:
        A compact token string ending in "." (empty signature)
    """
    iat = int(time.time()) if issued_at is None else issued_at
    payload: Dict[str, Any] = dict(claims or {})
    payload.update(
        {
            "iss": issuer_template.format(project_id=project_id),
            "aud": project_id,
            "sub": uid,
            "iat": iat,
            "exp": iat + expires_in,
        }
    )
    firebase: Dict[str, Any] = dict(payload.get("firebase") or {})
    firebase.setdefault("sign_in_provider", "custom")
    if tenant_id is not None:
        firebase["tenant"] = tenant_id
    payload["firebase"] = firebase

    header = {"alg": "none", "typ": "JWT"}
    return f"{_encode_segment(header)}.{_encode_segment(payload)}."
