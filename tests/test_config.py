# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_oidc_provider

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from coreason_oidc_provider.config import ProviderSettings
from coreason_oidc_provider.provider_service import ProviderService


def test_settings_from_environment() -> None:
    env = {
        "COREASON_OIDC_ISSUER": "https://auth.example.com",
        "COREASON_OIDC_SCOPES_SUPPORTED": '["openid", "email"]',
        "COREASON_OIDC_PRODUCTION": "false",
    }
    with patch.dict(os.environ, env):
        settings = ProviderSettings()  # type: ignore[call-arg]

    assert settings.issuer == "https://auth.example.com"
    assert settings.scopes_supported == ["openid", "email"]
    assert settings.production is False
    assert settings.client_directory_url is None
    assert settings.client_lookup_timeout == 5.0


def test_issuer_is_required() -> None:
    with patch.dict(os.environ, {}, clear=True):
        with pytest.raises(ValidationError):
            ProviderSettings()  # type: ignore[call-arg]


@pytest.mark.parametrize("issuer", ["http://localhost:8080", "http://127.0.0.1", "https://auth.example.com/"])
def test_valid_issuers(issuer: str) -> None:
    assert ProviderSettings(issuer=issuer).issuer == issuer


def test_plain_http_issuer_rejected() -> None:
    with pytest.raises(ValidationError, match="HTTPS is required"):
        ProviderSettings(issuer="http://auth.example.com")


@pytest.mark.parametrize("issuer", ["auth.example.com", "https://auth.example.com?x=1", "https://auth.example.com#f"])
def test_malformed_issuer_rejected(issuer: str) -> None:
    with pytest.raises(ValidationError):
        ProviderSettings(issuer=issuer)


@pytest.mark.parametrize(
    "base_path, expected",
    [("/api/oidc", "/api/oidc"), ("api/oidc/", "/api/oidc"), ("/", ""), ("", "")],
)
def test_base_path_normalization(base_path: str, expected: str) -> None:
    settings = ProviderSettings(issuer="https://auth.example.com", base_path=base_path)
    assert settings.base_path == expected
    assert settings.endpoint("authorize") == f"https://auth.example.com{expected}/authorize"


def test_non_positive_timeouts_rejected() -> None:
    with pytest.raises(ValidationError):
        ProviderSettings(issuer="https://auth.example.com", http_timeout=0)


def test_default_settings_produce_valid_configuration() -> None:
    config = ProviderSettings(issuer="https://auth.example.com").to_provider_config()

    assert config.authorization_endpoint == "https://auth.example.com/api/oidc/authorize"
    assert config.token_endpoint == "https://auth.example.com/api/oidc/token"
    assert config.jwks_uri == "https://auth.example.com/api/oidc/.well-known/jwks.json"
    assert config.userinfo_endpoint == "https://auth.example.com/api/oidc/userinfo"
    assert config.registration_endpoint is None
    ProviderService(config).validate_config()


def test_optional_endpoints_toggle() -> None:
    config = ProviderSettings(
        issuer="https://auth.example.com",
        enable_userinfo=False,
        enable_registration=True,
    ).to_provider_config()

    assert config.userinfo_endpoint is None
    assert config.registration_endpoint == "https://auth.example.com/api/oidc/registration"
