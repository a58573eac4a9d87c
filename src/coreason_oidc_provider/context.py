# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_oidc_provider

"""
ProviderContext: the process-wide set of provider components, constructed once at startup
and passed to request handlers.
"""

from collections.abc import Mapping
from typing import Any

import httpx
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from pydantic import ValidationError

from coreason_oidc_provider.authorization import AuthorizationRequestValidator, parse_authorization_request
from coreason_oidc_provider.client_directory import ClientDirectory, HttpClientDirectory, InMemoryClientDirectory
from coreason_oidc_provider.config import ProviderSettings
from coreason_oidc_provider.exceptions import ProtocolError, ProviderConfigurationError
from coreason_oidc_provider.models import AuthorizationRequest, ProviderConfig
from coreason_oidc_provider.provider_service import ProviderService
from coreason_oidc_provider.utils.logger import logger


def _validated_service(config: ProviderConfig) -> ProviderService:
    provider_service = ProviderService(config)
    try:
        provider_service.validate_config()
    except ProtocolError as e:
        raise ProviderConfigurationError(f"Invalid provider configuration: {e.error_description}") from e
    return provider_service


class ProviderContext:
    """
    Holds the provider service, the client directory and the authorization request
    validator. All members are read-only after construction; reloading the
    configuration means building a new context.

    Handles an internally created HTTP client via async context manager.
    """

    def __init__(
        self,
        provider_service: ProviderService,
        client_directory: ClientDirectory,
        lookup_timeout: float | None = None,
        production: bool = True,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize the ProviderContext. Prefer `create` or `from_settings`, which
        validate the configuration first.

        Args:
            provider_service: The provider capabilities.
            client_directory: The client directory.
            lookup_timeout: Deadline in seconds for client lookups.
            production: Hide internal error details in responses.
            http_client: An HTTP client owned by this context, closed on exit.
        """
        self.provider_service = provider_service
        self.client_directory = client_directory
        self.production = production
        self.authorization = AuthorizationRequestValidator(provider_service, client_directory, lookup_timeout)
        self._http_client = http_client

    @classmethod
    def create(
        cls,
        config: ProviderConfig,
        client_directory: ClientDirectory | None = None,
        lookup_timeout: float | None = None,
        production: bool = True,
    ) -> "ProviderContext":
        """
        Builds a context from a configuration, validating it first.

        Raises:
            ProviderConfigurationError: If the configuration is invalid. Startup must abort.
        """
        provider_service = _validated_service(config)
        logger.info(f"OpenID Provider initialized for issuer {config.issuer}")
        return cls(provider_service, client_directory or InMemoryClientDirectory(), lookup_timeout, production)

    @classmethod
    def from_settings(
        cls,
        settings: ProviderSettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> "ProviderContext":
        """
        Builds a context from settings (read from the environment when omitted).

        Uses an HttpClientDirectory when `client_directory_url` is set, otherwise an
        in-memory directory.

        Args:
            settings: The settings. Loaded from `COREASON_OIDC_*` variables if None.
            client: External async client (optional). If not provided and a client
                directory URL is configured, an internal client is created and closed on exit.

        Raises:
            ProviderConfigurationError: If the settings or the resulting configuration are invalid.
        """
        if settings is None:
            try:
                settings = ProviderSettings()  # type: ignore[call-arg]
            except ValidationError as e:
                raise ProviderConfigurationError(f"Invalid provider settings: {e}") from e

        provider_service = _validated_service(settings.to_provider_config())

        directory: ClientDirectory
        owned_client: httpx.AsyncClient | None = None
        if settings.client_directory_url:
            if client is None:
                client = owned_client = httpx.AsyncClient(timeout=settings.http_timeout)
            # Instrument the client for distributed tracing
            HTTPXClientInstrumentor().instrument_client(client)
            directory = HttpClientDirectory(settings.client_directory_url, client)
        else:
            directory = InMemoryClientDirectory()

        logger.info(f"OpenID Provider initialized for issuer {settings.issuer}")
        return cls(
            provider_service,
            directory,
            lookup_timeout=settings.client_lookup_timeout,
            production=settings.production,
            http_client=owned_client,
        )

    async def __aenter__(self) -> "ProviderContext":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()

    def discovery_document(self) -> dict[str, Any]:
        """
        Serves the discovery document, revalidating the configuration first.

        Raises:
            ProtocolError: If the configuration no longer validates.
        """
        self.provider_service.validate_config()
        return self.provider_service.get_discovery_document().to_json()

    async def authorize(self, params: Mapping[str, Any]) -> AuthorizationRequest:
        """
        Parses and validates the query parameters of an authorization request.

        Returns:
            AuthorizationRequest: The accepted request, for the downstream flow.

        Raises:
            ProtocolError: If the request is malformed or not permitted.
        """
        request = parse_authorization_request(params)
        await self.authorization.validate(request)
        return request
