"""Compact token parsing.

Splits a ``header.payload.signature`` string and decodes the parts. Parsing
makes no trust or time decisions; an empty signature segment is legal here
and is judged later by the claim validator.
"""

from __future__ import annotations

import binascii
import json
import re
from typing import Any, Dict, Mapping, Optional

from jwt.utils import base64url_decode

from watchtower.exceptions import MalformedTokenError
from watchtower.models import (
    AuthErrorCode,
    ParsedToken,
    TokenHeader,
    TokenPayload,
)

_INT_CLAIMS = ("iat", "exp", "auth_time")
_STR_CLAIMS = ("iss", "sub")

# Unpadded base64url alphabet. The decoder skips other characters silently.
_BASE64URL_SEGMENT = re.compile(r"[A-Za-z0-9_-]*")


def _decode_segment(segment: str, name: str, code: str) -> bytes:
    if not _BASE64URL_SEGMENT.fullmatch(segment):
        raise MalformedTokenError(
            f"Token {name} is not valid base64url: unexpected characters or padding",
            code=code,
        )
    try:
        return base64url_decode(segment.encode("ascii"))
    except (binascii.Error, ValueError) as e:
        raise MalformedTokenError(
            f"Token {name} is not valid base64url: {e}", code=code, cause=e
        ) from e


def _decode_json_object(segment: str, name: str, code: str) -> Dict[str, Any]:
    raw = _decode_segment(segment, name, code)
    try:
        obj = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as e:
        raise MalformedTokenError(
            f"Token {name} is not valid JSON: {e}", code=code, cause=e
        ) from e
    if not isinstance(obj, dict):
        raise MalformedTokenError(f"Token {name} must be a JSON object", code=code)
    return obj


def _check_claim_types(claims: Mapping[str, Any], code: str) -> None:
    for name in _INT_CLAIMS:
        value = claims.get(name)
        if value is not None and (isinstance(value, bool) or not isinstance(value, int)):
            raise MalformedTokenError(
                f'Token "{name}" claim must be an integer', code=code
            )
    for name in _STR_CLAIMS:
        value = claims.get(name)
        if value is not None and not isinstance(value, str):
            raise MalformedTokenError(f'Token "{name}" claim must be a string', code=code)


def _tenant_of(claims: Mapping[str, Any]) -> Optional[str]:
    firebase = claims.get("firebase")
    if isinstance(firebase, dict):
        tenant = firebase.get("tenant")
        if isinstance(tenant, str):
            return tenant
    return None


def parse(token: str, code: str = AuthErrorCode.INVALID_ID_TOKEN) -> ParsedToken:
    """Decode a compact token into header, payload and signature.

    Args:
        token: The compact serialized token
        code: Error code to attach to MalformedTokenError, so that the
            failure is reported under the caller's token flavor

    Returns:
        ParsedToken with decoded, untrusted contents

    Raises:
        MalformedTokenError: If the token is not three segments, or a
            segment cannot be decoded
    """
    if not isinstance(token, str) or not token:
        raise MalformedTokenError("Token must be a non-empty string", code=code)

    segments = token.split(".")
    if len(segments) != 3:
        raise MalformedTokenError(
            f"Token must have 3 dot-separated segments, got {len(segments)}",
            code=code,
        )
    header_segment, payload_segment, signature_segment = segments
    if not header_segment or not payload_segment:
        raise MalformedTokenError("Token header and payload must not be empty", code=code)

    header = _decode_json_object(header_segment, "header", code)
    claims = _decode_json_object(payload_segment, "payload", code)
    _check_claim_types(claims, code)
    signature = (
        _decode_segment(signature_segment, "signature", code) if signature_segment else b""
    )

    kid = header.get("kid")
    return ParsedToken(
        header=TokenHeader(
            algorithm=header.get("alg"),
            key_id=kid if isinstance(kid, str) else None,
            type=header.get("typ"),
            raw=header,
        ),
        payload=TokenPayload(
            issuer=claims.get("iss"),
            audience=claims.get("aud"),
            subject=claims.get("sub"),
            issued_at=claims.get("iat"),
            expires_at=claims.get("exp"),
            tenant_id=_tenant_of(claims),
            claims=claims,
        ),
        signature=signature,
        signing_input=f"{header_segment}.{payload_segment}".encode("ascii"),
    )
