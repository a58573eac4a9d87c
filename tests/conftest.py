# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_oidc_provider

from collections.abc import Callable, Generator
from typing import Any

import pytest
from loguru import logger

from coreason_oidc_provider.authorization import AuthorizationRequestValidator
from coreason_oidc_provider.client_directory import InMemoryClientDirectory
from coreason_oidc_provider.models import Client, ProviderConfig
from coreason_oidc_provider.provider_service import ProviderService

ISSUER = "https://idp.example"


def base_config_fields() -> dict[str, Any]:
    return {
        "issuer": ISSUER,
        "authorization_endpoint": f"{ISSUER}/authorize",
        "token_endpoint": f"{ISSUER}/token",
        "jwks_uri": f"{ISSUER}/jwks",
        "userinfo_endpoint": f"{ISSUER}/userinfo",
        "scopes_supported": ["openid", "profile", "email"],
        "response_types_supported": ["code", "code id_token", "id_token"],
        "subject_types_supported": ["public"],
        "id_token_signing_alg_values_supported": ["RS256"],
    }


@pytest.fixture
def config_factory() -> Callable[..., ProviderConfig]:
    """Builds a ProviderConfig from a valid baseline, with field overrides."""

    def factory(**overrides: Any) -> ProviderConfig:
        fields = base_config_fields()
        fields.update(overrides)
        return ProviderConfig(**{k: v for k, v in fields.items() if v is not None})

    return factory


@pytest.fixture
def provider_config(config_factory: Callable[..., ProviderConfig]) -> ProviderConfig:
    return config_factory()


@pytest.fixture
def provider_service(provider_config: ProviderConfig) -> ProviderService:
    return ProviderService(provider_config)


@pytest.fixture
def client() -> Client:
    return Client(
        client_id="client-123",
        name="Demo App",
        redirect_uris=["https://client.example/cb"],
        response_types=["code"],
        grant_types=["authorization_code"],
        scopes=["openid", "profile"],
    )


@pytest.fixture
def directory(client: Client) -> InMemoryClientDirectory:
    return InMemoryClientDirectory([client])


@pytest.fixture
def validator(provider_service: ProviderService, directory: InMemoryClientDirectory) -> AuthorizationRequestValidator:
    return AuthorizationRequestValidator(provider_service, directory)


@pytest.fixture
def log_messages() -> Generator[list[str], None, None]:
    """Collects the messages logged through loguru during the test."""
    messages: list[str] = []
    handler_id = logger.add(lambda msg: messages.append(msg.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)
