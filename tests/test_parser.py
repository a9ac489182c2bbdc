"""Tests for token parsing."""

import pytest

from watchtower.exceptions import MalformedTokenError
from watchtower.models import AuthErrorCode
from watchtower.tokens.parser import parse


# ==================== Well-formed Tokens ====================


def test_parse_signed_token(make_token, claims):
    """Test parsing splits header, payload and signature."""
    token = make_token()
    parsed = parse(token)

    assert parsed.header.algorithm == "RS256"
    assert parsed.header.key_id == "K1"
    assert parsed.header.type == "JWT"
    assert parsed.payload.issuer == claims["iss"]
    assert parsed.payload.audience == "proj-1"
    assert parsed.payload.subject == "user-1"
    assert parsed.payload.issued_at == claims["iat"]
    assert parsed.payload.expires_at == claims["exp"]
    assert parsed.payload.claims["email"] == "user@example.com"
    assert parsed.signature
    assert parsed.signing_input == token.rsplit(".", 1)[0].encode("ascii")


def test_parse_unsigned_token(raw_token):
    """Test an empty third segment is legal and yields an empty signature."""
    token = raw_token({"alg": "none"}, {"sub": "user-1"})
    assert token.endswith(".")

    parsed = parse(token)

    assert parsed.signature == b""
    assert parsed.is_unsigned
    assert parsed.header.key_id is None


def test_parse_extracts_tenant(raw_token):
    """Test the tenant is read from the "firebase" claim."""
    token = raw_token({"alg": "none"}, {"sub": "u", "firebase": {"tenant": "tenant-a"}})
    assert parse(token).payload.tenant_id == "tenant-a"


def test_parse_without_tenant(make_token):
    assert parse(make_token()).payload.tenant_id is None


# ==================== Malformed Tokens ====================


@pytest.mark.parametrize(
    "token",
    [
        "",
        "not-a-jwt",
        "a.b",
        "a.b.c.d",
        ".payload.sig",
        "header..sig",
    ],
)
def test_parse_rejects_wrong_shape(token):
    """Test tokens without three non-empty leading segments are rejected."""
    with pytest.raises(MalformedTokenError):
        parse(token)


def test_parse_rejects_non_string():
    with pytest.raises(MalformedTokenError):
        parse(None)


def test_parse_rejects_invalid_base64():
    """Test a segment with an impossible base64 length is rejected."""
    with pytest.raises(MalformedTokenError) as exc:
        parse("abcde.abcde.")

    assert "base64url" in str(exc.value)


def test_parse_rejects_invalid_json():
    with pytest.raises(MalformedTokenError) as exc:
        parse("bm90LWpzb24.bm90LWpzb24.")  # "not-json"

    assert "JSON" in str(exc.value)


def test_parse_rejects_non_object_payload(raw_token):
    token = raw_token({"alg": "RS256"}, ["not", "an", "object"])
    with pytest.raises(MalformedTokenError):
        parse(token)


@pytest.mark.parametrize(
    "payload",
    [
        {"iat": "1700000000"},
        {"exp": 1.5},
        {"exp": True},
        {"iss": 42},
        {"sub": ["user-1"]},
    ],
)
def test_parse_rejects_mistyped_claims(raw_token, payload):
    """Test registered claims with the wrong JSON type are rejected."""
    with pytest.raises(MalformedTokenError):
        parse(raw_token({"alg": "RS256", "kid": "K1"}, payload, b"sig"))


def test_parse_uses_given_error_code():
    """Test the error code follows the caller's token flavor."""
    with pytest.raises(MalformedTokenError) as exc:
        parse("a.b", code=AuthErrorCode.INVALID_SESSION_COOKIE)

    assert exc.value.code == "INVALID_SESSION_COOKIE"


@pytest.mark.parametrize(
    "tamper",
    [
        lambda h, p, s: f"{h}.{p}.{s}**==",
        lambda h, p, s: f"{h}.{p}.{s}=",
        lambda h, p, s: f"{h[:4]}!{h[4:]}.{p}.{s}",
        lambda h, p, s: f"{h}.{p} .{s}",
        lambda h, p, s: f"{h}.{p}.{s}\n",
    ],
)
def test_parse_rejects_characters_outside_base64url(make_token, tamper):
    """Test every segment must use only the unpadded base64url alphabet."""
    header, payload, signature = make_token().split(".")

    with pytest.raises(MalformedTokenError) as exc:
        parse(tamper(header, payload, signature))

    assert "base64url" in str(exc.value)
