"""Factory for emulator-mode verifiers (local development without real keys)."""

from __future__ import annotations

from typing import Optional

import structlog

from watchtower.core.clock import Clock, SystemClock
from watchtower.core.factory import VerifierFactory
from watchtower.core.token_verifier import TokenVerifier
from watchtower.flavors import id_token_config, session_cookie_config
from watchtower.verifiers.revocation import (
    ValidAfterLookup,
    decorate_id_token_verifier,
    decorate_session_cookie_verifier,
)
from watchtower.verifiers.token_verifier import TokenVerifierImpl

log = structlog.get_logger()


class EmulatorFactory(VerifierFactory):
    """Factory for verifiers that accept unsigned emulator tokens.

    Emulator verifiers skip key lookup and signature checks entirely and
    reject any signed token. Issuer, audience, subject, time and tenant
    checks still apply. Never use this factory in production.

    Args:
        project_id: Project whose tokens are accepted.
        tenant_id: Optional tenant every verifier requires by default.
        clock: Time source for claim checks.
        emulator_host: Host of the auth emulator, for logging only.

    Examples:
        >>> from watchtower.mock import create_emulator_token
        >>> factory = EmulatorFactory(project_id="demo-proj")
        >>> verifier = factory.create_id_token_verifier()
        >>> verifier.verify(create_emulator_token("demo-proj", "user-1")).uid
        'user-1'
    """

    def __init__(
        self,
        project_id: str,
        tenant_id: Optional[str] = None,
        clock: Optional[Clock] = None,
        emulator_host: Optional[str] = None,
    ):
        self.project_id = project_id
        self.tenant_id = tenant_id
        self.clock = clock or SystemClock()
        self.emulator_host = emulator_host
        log.warning(
            "Token verification is running in emulator mode; signatures are not checked",
            project_id=project_id,
            emulator_host=emulator_host,
        )

    def create_id_token_verifier(
        self,
        tenant_id: Optional[str] = None,
        valid_after_lookup: Optional[ValidAfterLookup] = None,
    ) -> TokenVerifier:
        config = id_token_config(self.project_id, None, tenant_id or self.tenant_id)
        verifier: TokenVerifier = TokenVerifierImpl(config, emulator=True, clock=self.clock)
        if valid_after_lookup is not None:
            verifier = decorate_id_token_verifier(verifier, valid_after_lookup)
        return verifier

    def create_session_cookie_verifier(
        self,
        tenant_id: Optional[str] = None,
        valid_after_lookup: Optional[ValidAfterLookup] = None,
    ) -> TokenVerifier:
        config = session_cookie_config(self.project_id, None, tenant_id or self.tenant_id)
        verifier: TokenVerifier = TokenVerifierImpl(config, emulator=True, clock=self.clock)
        if valid_after_lookup is not None:
            verifier = decorate_session_cookie_verifier(verifier, valid_after_lookup)
        return verifier
