"""Shared pytest fixtures for watchtower tests."""

import base64
import datetime
import json

import jwt
import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID

from watchtower.core.clock import FixedClock
from watchtower.flavors import id_token_config, session_cookie_config
from watchtower.keys.cache import PublicKeyCache
from watchtower.mock.key_source import StaticKeySource
from watchtower.verifiers.token_verifier import TokenVerifierImpl

# Issue time of every test token.
T = 1_700_000_000
PROJECT_ID = "proj-1"


def _generate_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


def _public_pem(private_key) -> str:
    return (
        private_key.public_key()
        .public_bytes(
            serialization.Encoding.PEM,
            serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        .decode("ascii")
    )


def _certificate_pem(private_key) -> str:
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "securetoken.system")])
    not_before = datetime.datetime(2020, 1, 1, tzinfo=datetime.timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(private_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(not_before)
        .not_valid_after(not_before + datetime.timedelta(days=3650))
        .sign(private_key, hashes.SHA256())
    )
    return cert.public_bytes(serialization.Encoding.PEM).decode("ascii")


def _b64(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


@pytest.fixture(scope="session")
def signing_key():
    """Private key published as "K1"."""
    return _generate_key()


@pytest.fixture(scope="session")
def rotated_key():
    """Private key published as "K2" after a rotation."""
    return _generate_key()


@pytest.fixture(scope="session")
def public_pem():
    return _public_pem


@pytest.fixture(scope="session")
def certificate_pem():
    return _certificate_pem


@pytest.fixture
def clock():
    """Clock 10 seconds after the test tokens were issued."""
    return FixedClock(T + 10)


@pytest.fixture
def key_source(signing_key):
    return StaticKeySource({"K1": _certificate_pem(signing_key)})


@pytest.fixture
def key_cache(key_source, clock):
    return PublicKeyCache(key_source, clock=clock)


@pytest.fixture
def id_config(key_cache):
    return id_token_config(PROJECT_ID, key_cache)


@pytest.fixture
def cookie_config(key_cache):
    return session_cookie_config(PROJECT_ID, key_cache)


@pytest.fixture
def verifier(id_config, clock):
    return TokenVerifierImpl(id_config, clock=clock)


@pytest.fixture
def claims():
    """Valid ID token claims for proj-1, issued at T."""
    return {
        "iss": f"https://securetoken.google.com/{PROJECT_ID}",
        "aud": PROJECT_ID,
        "sub": "user-1",
        "iat": T,
        "exp": T + 3600,
        "auth_time": T,
        "email": "user@example.com",
        "email_verified": True,
        "firebase": {"sign_in_provider": "password"},
    }


@pytest.fixture
def make_token(signing_key, claims):
    """Sign claims with RS256. Overrides replace claims; None values remove them."""

    def _make(overrides=None, key=None, kid="K1", headers=None):
        payload = dict(claims)
        for name, value in (overrides or {}).items():
            if value is None:
                payload.pop(name, None)
            else:
                payload[name] = value
        token_headers = {"kid": kid} if kid is not None else {}
        token_headers.update(headers or {})
        return jwt.encode(payload, key or signing_key, algorithm="RS256", headers=token_headers)

    return _make


@pytest.fixture
def raw_token():
    """Assemble a token from raw header/payload dicts and signature bytes."""

    def _raw(header, payload, signature=b""):
        return ".".join(
            [
                _b64(json.dumps(header).encode("utf-8")),
                _b64(json.dumps(payload).encode("utf-8")),
                _b64(signature),
            ]
        )

    return _raw
