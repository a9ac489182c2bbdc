"""Tests for the public key cache."""

import threading
from unittest.mock import Mock

import pytest
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.hazmat.primitives import serialization
from jwt.algorithms import RSAAlgorithm

from watchtower.core.clock import FixedClock
from watchtower.core.key_source import KeySource
from watchtower.exceptions import KeyFetchError, KeyNotFoundError
from watchtower.keys.cache import DEFAULT_MAX_AGE_SECONDS, PublicKeyCache, load_public_key
from watchtower.mock.key_source import StaticKeySource


def _numbers(key):
    return key.public_numbers()


# ==================== Key Material ====================


def test_load_public_key_from_certificate(signing_key, certificate_pem):
    key = load_public_key(certificate_pem(signing_key))
    assert isinstance(key, rsa.RSAPublicKey)
    assert _numbers(key) == _numbers(signing_key.public_key())


def test_load_public_key_from_public_pem(signing_key, public_pem):
    key = load_public_key(public_pem(signing_key))
    assert _numbers(key) == _numbers(signing_key.public_key())


def test_load_public_key_from_jwk(signing_key):
    jwk = RSAAlgorithm.to_jwk(signing_key.public_key(), as_dict=True)
    key = load_public_key(jwk)
    assert _numbers(key) == _numbers(signing_key.public_key())


def test_load_public_key_rejects_garbage():
    with pytest.raises(ValueError):
        load_public_key("-----BEGIN PUBLIC KEY-----\nnope\n-----END PUBLIC KEY-----\n")


def test_load_public_key_rejects_non_rsa():
    ec_pem = (
        ec.generate_private_key(ec.SECP256R1())
        .public_key()
        .public_bytes(
            serialization.Encoding.PEM,
            serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        .decode("ascii")
    )
    with pytest.raises(ValueError) as exc:
        load_public_key(ec_pem)

    assert "RSA" in str(exc.value)


# ==================== Caching ====================


def test_cache_fetches_on_first_use(key_cache, key_source, signing_key):
    key = key_cache.get_key("K1")

    assert _numbers(key) == _numbers(signing_key.public_key())
    assert key_source.fetch_count == 1
    assert key_cache.key_ids == ["K1"]


def test_cache_hit_does_not_fetch(key_cache, key_source):
    key_cache.get_key("K1")
    key_cache.get_key("K1")
    key_cache.get_key("K1")

    assert key_source.fetch_count == 1


def test_cache_refreshes_when_stale(key_source, clock):
    cache = PublicKeyCache(key_source, clock=clock, default_max_age=100)
    cache.get_key("K1")

    clock.advance(99)
    cache.get_key("K1")
    assert key_source.fetch_count == 1

    clock.advance(1)
    cache.get_key("K1")
    assert key_source.fetch_count == 2


def test_cache_uses_source_max_age(signing_key, certificate_pem):
    clock = FixedClock(1000)
    source = StaticKeySource({"K1": certificate_pem(signing_key)}, max_age=60)
    cache = PublicKeyCache(source, clock=clock)

    cache.get_key("K1")

    assert cache.snapshot.expires_at == 1060
    assert cache.snapshot.fetched_at == 1000


def test_cache_falls_back_to_default_max_age(key_cache, clock):
    key_cache.get_key("K1")
    assert key_cache.snapshot.expires_at == clock.now() + DEFAULT_MAX_AGE_SECONDS


def test_cache_miss_triggers_refresh(key_source, key_cache, signing_key, rotated_key, certificate_pem):
    """Test an unknown kid in a fresh cache forces a refresh (key rotation)."""
    key_cache.get_key("K1")
    key_source.rotate({"K2": certificate_pem(rotated_key)})

    key = key_cache.get_key("K2")

    assert _numbers(key) == _numbers(rotated_key.public_key())
    assert key_source.fetch_count == 2
    assert key_cache.key_ids == ["K2"]


def test_cache_key_not_found_after_refresh(key_cache, key_source):
    with pytest.raises(KeyNotFoundError) as exc:
        key_cache.get_key("missing")

    assert exc.value.key_id == "missing"
    assert key_source.fetch_count == 1


def test_cache_fetch_failure_wraps_cause(clock):
    source = Mock(spec=KeySource)
    error = ConnectionError("network down")
    source.fetch.side_effect = error
    cache = PublicKeyCache(source, clock=clock)

    with pytest.raises(KeyFetchError) as exc:
        cache.get_key("K1")

    assert exc.value.cause is error
    assert exc.value.__cause__ is error
    assert exc.value.code == "CERTIFICATE_FETCH_FAILED"
    assert "network down" in str(exc.value)


def test_cache_bad_key_material_is_fetch_failure(clock):
    source = StaticKeySource({"K1": "not a pem"})
    cache = PublicKeyCache(source, clock=clock)

    with pytest.raises(KeyFetchError):
        cache.get_key("K1")


def test_cache_keeps_old_keys_when_refresh_fails(key_source, clock):
    cache = PublicKeyCache(key_source, clock=clock, default_max_age=10)
    cache.get_key("K1")
    old = cache.snapshot

    key_source.rotate({"K1": "not a pem"})
    clock.advance(11)
    with pytest.raises(KeyFetchError):
        cache.get_key("K1")

    assert cache.snapshot is old


def test_refresh_replaces_whole_key_set(key_source, key_cache, rotated_key, certificate_pem):
    first = key_cache.refresh()
    key_source.rotate({"K2": certificate_pem(rotated_key)})

    second = key_cache.refresh()

    assert first is not second
    assert "K1" in first.keys
    assert list(second.keys) == ["K2"]


def test_snapshot_keys_are_read_only(key_cache):
    snapshot = key_cache.refresh()
    with pytest.raises(TypeError):
        snapshot.keys["K9"] = object()


# ==================== Concurrency ====================


def test_concurrent_readers_see_complete_key_sets(signing_key, rotated_key, certificate_pem):
    """Test readers racing with refreshes only ever see whole key sets."""
    set_a = {"A1": certificate_pem(signing_key), "A2": certificate_pem(signing_key)}
    set_b = {"B1": certificate_pem(rotated_key), "B2": certificate_pem(rotated_key)}
    source = StaticKeySource(set_a)
    cache = PublicKeyCache(source, clock=FixedClock(0))
    cache.refresh()

    seen = set()
    stop = threading.Event()

    def reader():
        while not stop.is_set():
            seen.add(frozenset(cache.snapshot.keys))

    def writer():
        for i in range(20):
            source.rotate(set_b if i % 2 == 0 else set_a)
            cache.refresh()
        stop.set()

    threads = [threading.Thread(target=reader) for _ in range(4)]
    threads.append(threading.Thread(target=writer))
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert seen <= {frozenset(set_a), frozenset(set_b)}


def test_concurrent_get_key(key_cache, signing_key):
    results = []

    def worker():
        results.append(key_cache.get_key("K1"))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(results) == 8
    assert all(_numbers(k) == _numbers(signing_key.public_key()) for k in results)
