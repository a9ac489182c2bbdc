"""Abstract factory for creating token verifiers."""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Mapping, Optional

from watchtower.core.token_verifier import TokenVerifier
from watchtower.exceptions import ConfigurationError

if TYPE_CHECKING:
    from watchtower.verifiers.revocation import ValidAfterLookup

EMULATOR_HOST_ENV = "FIREBASE_AUTH_EMULATOR_HOST"
PROJECT_ID_ENVS = ("GOOGLE_CLOUD_PROJECT", "GCLOUD_PROJECT")


class VerifierFactory(ABC):
    """Abstract factory for creating token verifiers.

    This is the base class for the signed (Google) and emulator factories.
    Once configured for a project, the factory creates verifiers for every
    token flavor, sharing one key cache per flavor between them.

    Usage:
        Do not instantiate this class directly. Use create_factory() instead:

        >>> from watchtower import create_factory
        >>> factory = create_factory("google", project_id="my-project")

    See Also:
        - create_factory(): Main entry point for creating factories
        - factory_from_env(): Same, configured from environment variables
        - GoogleFactory: Verifies RS256-signed tokens
        - EmulatorFactory: Verifies unsigned emulator tokens
    """

    @abstractmethod
    def create_id_token_verifier(
        self,
        tenant_id: Optional[str] = None,
        valid_after_lookup: Optional[ValidAfterLookup] = None,
    ) -> TokenVerifier:
        """Create an ID token verifier.

        Args:
            tenant_id: Require tokens of this tenant. Defaults to the
                factory's tenant, if any.
            valid_after_lookup: If given, the verifier also rejects revoked
                tokens, using this callable to look up the user's
                "tokens valid after" time (epoch seconds).

        Returns:
            TokenVerifier for ID tokens of the factory's project.

        Examples:
            >>> verifier = factory.create_id_token_verifier()
            >>> token = verifier.verify(id_token)
            >>> token.uid
        """

    @abstractmethod
    def create_session_cookie_verifier(
        self,
        tenant_id: Optional[str] = None,
        valid_after_lookup: Optional[ValidAfterLookup] = None,
    ) -> TokenVerifier:
        """Create a session cookie verifier.

        Args:
            tenant_id: Require cookies of this tenant.
            valid_after_lookup: Enables the revocation check, as for
                create_id_token_verifier().

        Returns:
            TokenVerifier for session cookies of the factory's project.
        """


def create_factory(provider_type: str, **kwargs) -> VerifierFactory:
    """Create a factory for the specified provider type.

    This is the main entry point for configuring Watchtower.

    Args:
        provider_type: Which kind of tokens to verify.
            Valid values: "google", "emulator"

        **kwargs: Provider-specific configuration arguments.

            For provider_type="google":
                project_id (str, required): Project whose tokens are accepted.
                tenant_id (str, optional): Only accept tokens of this tenant.
                clock (Clock, optional): Time source; system clock by default.
                timeout (float, optional): Key fetch timeout in seconds.
                default_max_age (int, optional): Key cache lifetime when the
                    key endpoint sends no Cache-Control max-age.
                session (requests.Session, optional): HTTP session for key fetches.

            For provider_type="emulator":
                project_id (str, required), tenant_id, clock, emulator_host.

    Returns:
        VerifierFactory: A configured factory.

    Raises:
        ConfigurationError: If provider_type is unknown or project_id is missing.

    Examples:
        >>> factory = create_factory("google", project_id="proj-1")
        >>> verifier = factory.create_session_cookie_verifier()

        Local development against an auth emulator:
            >>> factory = create_factory("emulator", project_id="demo-proj")
    """
    if not kwargs.get("project_id"):
        raise ConfigurationError(
            f"Missing required argument 'project_id' for provider_type='{provider_type}'. "
            f"Example: create_factory('{provider_type}', project_id='my-project')"
        )

    if provider_type == "google":
        from watchtower.factories.google import GoogleFactory

        return GoogleFactory(**kwargs)
    elif provider_type == "emulator":
        from watchtower.factories.emulator import EmulatorFactory

        return EmulatorFactory(**kwargs)
    else:
        raise ConfigurationError(
            f"Unknown provider type: '{provider_type}'. "
            f"Valid types: 'google', 'emulator'. "
            f"Example: create_factory('google', project_id='my-project')"
        )


def factory_from_env(env: Optional[Mapping[str, str]] = None, **kwargs) -> VerifierFactory:
    """Create a factory from environment variables.

    - GOOGLE_CLOUD_PROJECT, then GCLOUD_PROJECT: project ID, unless
      project_id is passed explicitly
    - FIREBASE_AUTH_EMULATOR_HOST: when non-empty, selects the emulator factory

    Args:
        env: Environment mapping (defaults to os.environ)
        **kwargs: Passed on to create_factory()

    Raises:
        ConfigurationError: If no project ID can be determined
    """
    env = os.environ if env is None else env
    if not kwargs.get("project_id"):
        kwargs["project_id"] = next((env[name] for name in PROJECT_ID_ENVS if env.get(name)), None)

    emulator_host = env.get(EMULATOR_HOST_ENV)
    if emulator_host:
        return create_factory("emulator", emulator_host=emulator_host, **kwargs)
    return create_factory("google", **kwargs)
