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
Configuration for the coreason-oidc-provider package.
"""

from urllib.parse import urlsplit

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from coreason_oidc_provider.models import ProviderConfig
from coreason_oidc_provider.provider_builder import ProviderConfigBuilder
from coreason_oidc_provider.uri_validator import is_absolute_uri, is_loopback_uri


class ProviderSettings(BaseSettings):
    """
    Settings of the OpenID Provider, loaded from `COREASON_OIDC_*` environment variables.

    List settings are read from the environment as JSON arrays,
    e.g. COREASON_OIDC_SCOPES_SUPPORTED='["openid", "profile"]'.

    Attributes:
        issuer (str): The issuer URL, e.g. https://auth.coreason.com. Endpoints are derived from it.
        base_path (str): Path prefix of the OIDC endpoints under the issuer.
        enable_userinfo (bool): Advertise the userinfo endpoint.
        enable_registration (bool): Advertise the dynamic registration endpoint.
        client_directory_url (str | None): Base URL of the client registration service.
            The in-memory directory is used when unset.
        client_lookup_timeout (float | None): Deadline in seconds for client lookups.
        http_timeout (float): Timeout in seconds for calls to the client registration service.
        production (bool): Hide internal error details in responses.
    """

    model_config = SettingsConfigDict(
        env_prefix="COREASON_OIDC_",
        case_sensitive=False,
    )

    issuer: str
    base_path: str = "/api/oidc"
    enable_userinfo: bool = True
    enable_registration: bool = False

    scopes_supported: list[str] = Field(
        default_factory=lambda: ["openid", "profile", "email", "address", "phone", "offline_access"]
    )
    response_types_supported: list[str] = Field(
        default_factory=lambda: ["code", "code id_token", "code token", "code id_token token"]
    )
    subject_types_supported: list[str] = Field(default_factory=lambda: ["public"])
    id_token_signing_alg_values_supported: list[str] = Field(default_factory=lambda: ["RS256"])
    response_modes_supported: list[str] = Field(default_factory=lambda: ["query", "fragment"])
    grant_types_supported: list[str] = Field(default_factory=lambda: ["authorization_code"])
    token_endpoint_auth_methods_supported: list[str] = Field(
        default_factory=lambda: ["client_secret_basic", "client_secret_post"]
    )
    claims_supported: list[str] = Field(
        default_factory=lambda: [
            "sub",
            "given_name",
            "middle_name",
            "family_name",
            "nickname",
            "email",
            "email_verified",
            "address",
            "birthdate",
            "gender",
            "picture",
            "website",
            "phone_number",
            "phone_number_verified",
        ]
    )
    code_challenge_methods_supported: list[str] = Field(default_factory=lambda: ["S256"])

    client_directory_url: str | None = None
    client_lookup_timeout: float | None = Field(default=5.0, gt=0)
    http_timeout: float = Field(default=5.0, gt=0)
    production: bool = True

    @field_validator("issuer")
    @classmethod
    def validate_issuer(cls, v: str) -> str:
        """
        Ensures the issuer is an absolute URL without query or fragment that uses
        HTTPS, unless it points at a loopback host for local development.
        """
        v = v.strip()
        if not is_absolute_uri(v):
            raise ValueError(f"issuer must be an absolute http(s) URL, got {v!r}")

        parts = urlsplit(v)
        if parts.query or parts.fragment:
            raise ValueError("issuer must not contain a query or fragment component")
        if parts.scheme == "http" and not is_loopback_uri(v):
            raise ValueError("HTTPS is required for the issuer. Plain HTTP is only accepted on loopback hosts.")
        return v

    @field_validator("base_path")
    @classmethod
    def normalize_base_path(cls, v: str) -> str:
        """Ensures the base path starts with a single slash and has no trailing slash."""
        v = v.strip().strip("/")
        return f"/{v}" if v else ""

    def endpoint(self, path: str) -> str:
        """Returns the absolute URL of an endpoint `path` under the issuer and base path."""
        return f"{self.issuer.rstrip('/')}{self.base_path}/{path.lstrip('/')}"

    def to_provider_config(self) -> ProviderConfig:
        """
        Builds the provider configuration described by these settings.

        Raises:
            ProviderConfigurationError: If the settings cannot produce a configuration.
        """
        builder = (
            ProviderConfigBuilder()
            .with_issuer(self.issuer)
            .with_authorization_endpoint(self.endpoint("authorize"))
            .with_token_endpoint(self.endpoint("token"))
            .with_jwks_uri(self.endpoint(".well-known/jwks.json"))
            .with_scopes_supported(self.scopes_supported)
            .with_response_types_supported(self.response_types_supported)
            .with_subject_types_supported(self.subject_types_supported)
            .with_id_token_signing_alg_values_supported(self.id_token_signing_alg_values_supported)
            .with_response_modes_supported(self.response_modes_supported)
            .with_grant_types_supported(self.grant_types_supported)
            .with_token_endpoint_auth_methods_supported(self.token_endpoint_auth_methods_supported)
            .with_claims_supported(self.claims_supported)
            .with_code_challenge_methods_supported(self.code_challenge_methods_supported)
        )
        if self.enable_userinfo:
            builder.with_userinfo_endpoint(self.endpoint("userinfo"))
        if self.enable_registration:
            builder.with_registration_endpoint(self.endpoint("registration"))
        return builder.build()
