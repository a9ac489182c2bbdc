"""Factory for verifying RS256 tokens signed by the Google identity backend."""

from __future__ import annotations

import threading
from typing import Optional

import requests
import structlog

from watchtower.core.clock import Clock, SystemClock
from watchtower.core.factory import VerifierFactory
from watchtower.core.token_verifier import TokenVerifier
from watchtower.flavors import (
    ID_TOKEN_CERT_URL,
    SESSION_COOKIE_CERT_URL,
    id_token_config,
    session_cookie_config,
)
from watchtower.keys.cache import DEFAULT_MAX_AGE_SECONDS, PublicKeyCache
from watchtower.keys.http import HttpKeySource
from watchtower.models import AuthErrorCode
from watchtower.verifiers.revocation import (
    ValidAfterLookup,
    decorate_id_token_verifier,
    decorate_session_cookie_verifier,
)
from watchtower.verifiers.token_verifier import TokenVerifierImpl

log = structlog.get_logger()


class GoogleFactory(VerifierFactory):
    """Factory for signed ID token and session cookie verifiers.

    Each flavor has its own key endpoint. The factory creates one
    PublicKeyCache per flavor on first use and shares it between all
    verifiers it creates, so keys are fetched once per project, not once per
    verifier.

    Args:
        project_id: Project whose tokens are accepted (issuer and audience).
        tenant_id: Optional tenant every verifier requires by default.
        clock: Time source for claim checks and key freshness.
        timeout: HTTP timeout in seconds for key fetches (default: 10.0).
        default_max_age: Key cache lifetime in seconds when the endpoint sends
            no Cache-Control max-age (default: 3600).
        session: Optional requests session for key fetches.
        id_token_cert_url: Override of the ID token key endpoint.
        session_cookie_cert_url: Override of the session cookie key endpoint.

    Examples:
        >>> factory = GoogleFactory(project_id="proj-1")
        >>> verifier = factory.create_id_token_verifier()
        >>> token = verifier.verify(id_token)
    """

    def __init__(
        self,
        project_id: str,
        tenant_id: Optional[str] = None,
        clock: Optional[Clock] = None,
        timeout: float = 10.0,
        default_max_age: int = DEFAULT_MAX_AGE_SECONDS,
        session: Optional[requests.Session] = None,
        id_token_cert_url: str = ID_TOKEN_CERT_URL,
        session_cookie_cert_url: str = SESSION_COOKIE_CERT_URL,
    ):
        self.project_id = project_id
        self.tenant_id = tenant_id
        self.clock = clock or SystemClock()
        self.timeout = timeout
        self.default_max_age = default_max_age
        self.session = session
        self.id_token_cert_url = id_token_cert_url
        self.session_cookie_cert_url = session_cookie_cert_url

        self._id_token_keys: Optional[PublicKeyCache] = None
        self._session_cookie_keys: Optional[PublicKeyCache] = None
        self._lock = threading.Lock()
        log.info("Initialized Google token verifier factory", project_id=project_id)

    def _new_key_cache(self, url: str, not_found_code: AuthErrorCode) -> PublicKeyCache:
        return PublicKeyCache(
            HttpKeySource(url, timeout=self.timeout, session=self.session),
            clock=self.clock,
            default_max_age=self.default_max_age,
            not_found_code=not_found_code,
        )

    def id_token_key_cache(self) -> PublicKeyCache:
        """Create or return the cached key cache for ID tokens."""
        with self._lock:
            if self._id_token_keys is None:
                self._id_token_keys = self._new_key_cache(
                    self.id_token_cert_url, AuthErrorCode.INVALID_ID_TOKEN
                )
            return self._id_token_keys

    def session_cookie_key_cache(self) -> PublicKeyCache:
        """Create or return the cached key cache for session cookies."""
        with self._lock:
            if self._session_cookie_keys is None:
                self._session_cookie_keys = self._new_key_cache(
                    self.session_cookie_cert_url, AuthErrorCode.INVALID_SESSION_COOKIE
                )
            return self._session_cookie_keys

    def create_id_token_verifier(
        self,
        tenant_id: Optional[str] = None,
        valid_after_lookup: Optional[ValidAfterLookup] = None,
    ) -> TokenVerifier:
        config = id_token_config(
            self.project_id, self.id_token_key_cache(), tenant_id or self.tenant_id
        )
        verifier: TokenVerifier = TokenVerifierImpl(config, clock=self.clock)
        if valid_after_lookup is not None:
            verifier = decorate_id_token_verifier(verifier, valid_after_lookup)
        return verifier

    def create_session_cookie_verifier(
        self,
        tenant_id: Optional[str] = None,
        valid_after_lookup: Optional[ValidAfterLookup] = None,
    ) -> TokenVerifier:
        config = session_cookie_config(
            self.project_id, self.session_cookie_key_cache(), tenant_id or self.tenant_id
        )
        verifier: TokenVerifier = TokenVerifierImpl(config, clock=self.clock)
        if valid_after_lookup is not None:
            verifier = decorate_session_cookie_verifier(verifier, valid_after_lookup)
        return verifier
