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
ProviderConfigBuilder component for assembling a ProviderConfig with defaults.
"""

from collections.abc import Iterable
from typing import Any

from pydantic import ValidationError

from coreason_oidc_provider.exceptions import ProviderConfigurationError
from coreason_oidc_provider.models import ProviderConfig
from coreason_oidc_provider.validation_rules import DEFAULT_CONFIG_VALUES, apply_defaults

REQUIRED_FIELDS = (
    "issuer",
    "authorization_endpoint",
    "token_endpoint",
    "jwks_uri",
    "response_types_supported",
    "subject_types_supported",
    "id_token_signing_alg_values_supported",
)


class ProviderConfigBuilder:
    """
    Fluent builder for ProviderConfig.

    Example:
        config = (
            ProviderConfigBuilder()
            .with_issuer("https://idp.example")
            .with_authorization_endpoint("https://idp.example/authorize")
            .with_token_endpoint("https://idp.example/token")
            .with_jwks_uri("https://idp.example/jwks")
            .with_response_types_supported(["code"])
            .with_subject_types_supported(["public"])
            .with_id_token_signing_alg_values_supported(["RS256"])
            .build()
        )
    """

    def __init__(self) -> None:
        self._fields: dict[str, Any] = {}

    @classmethod
    def from_config(cls, config: ProviderConfig) -> "ProviderConfigBuilder":
        """Starts a builder from an existing configuration, e.g. to derive a variant of it."""
        builder = cls()
        builder._fields = {k: v for k, v in config.model_dump().items() if v is not None}
        return builder

    def _set(self, name: str, value: Any) -> "ProviderConfigBuilder":
        self._fields[name] = value
        return self

    def _union(self, name: str, values: Iterable[str]) -> "ProviderConfigBuilder":
        existing = self._fields.get(name)
        if existing is None:
            existing = DEFAULT_CONFIG_VALUES[name]
        # dict preserves first-seen order while dropping duplicates
        self._fields[name] = list(dict.fromkeys([*existing, *values]))
        return self

    def with_issuer(self, issuer: str) -> "ProviderConfigBuilder":
        return self._set("issuer", issuer)

    def with_authorization_endpoint(self, authorization_endpoint: str) -> "ProviderConfigBuilder":
        return self._set("authorization_endpoint", authorization_endpoint)

    def with_token_endpoint(self, token_endpoint: str) -> "ProviderConfigBuilder":
        return self._set("token_endpoint", token_endpoint)

    def with_jwks_uri(self, jwks_uri: str) -> "ProviderConfigBuilder":
        return self._set("jwks_uri", jwks_uri)

    def with_userinfo_endpoint(self, userinfo_endpoint: str) -> "ProviderConfigBuilder":
        return self._set("userinfo_endpoint", userinfo_endpoint)

    def with_registration_endpoint(self, registration_endpoint: str) -> "ProviderConfigBuilder":
        return self._set("registration_endpoint", registration_endpoint)

    def with_scopes_supported(self, scopes: Iterable[str]) -> "ProviderConfigBuilder":
        return self._set("scopes_supported", list(scopes))

    def add_scopes(self, *scopes: str) -> "ProviderConfigBuilder":
        """Adds scopes to the existing list, or to the default ["openid"]."""
        return self._union("scopes_supported", scopes)

    def with_response_types_supported(self, response_types: Iterable[str]) -> "ProviderConfigBuilder":
        return self._set("response_types_supported", list(response_types))

    def with_subject_types_supported(self, subject_types: Iterable[str]) -> "ProviderConfigBuilder":
        return self._set("subject_types_supported", list(subject_types))

    def with_id_token_signing_alg_values_supported(self, algs: Iterable[str]) -> "ProviderConfigBuilder":
        return self._set("id_token_signing_alg_values_supported", list(algs))

    def with_response_modes_supported(self, modes: Iterable[str]) -> "ProviderConfigBuilder":
        return self._set("response_modes_supported", list(modes))

    def with_grant_types_supported(self, grant_types: Iterable[str]) -> "ProviderConfigBuilder":
        return self._set("grant_types_supported", list(grant_types))

    def add_grant_types(self, *grant_types: str) -> "ProviderConfigBuilder":
        """Adds grant types to the existing list, or to the default ["authorization_code"]."""
        return self._union("grant_types_supported", grant_types)

    def with_token_endpoint_auth_methods_supported(self, methods: Iterable[str]) -> "ProviderConfigBuilder":
        return self._set("token_endpoint_auth_methods_supported", list(methods))

    def with_claims_supported(self, claims: Iterable[str]) -> "ProviderConfigBuilder":
        return self._set("claims_supported", list(claims))

    def add_claims(self, *claims: str) -> "ProviderConfigBuilder":
        """Adds claims to the existing list, or to the default ["sub"]."""
        return self._union("claims_supported", claims)

    def with_code_challenge_methods_supported(self, methods: Iterable[str]) -> "ProviderConfigBuilder":
        return self._set("code_challenge_methods_supported", list(methods))

    def reset(self) -> "ProviderConfigBuilder":
        self._fields = {}
        return self

    def build(self) -> ProviderConfig:
        """
        Builds the configuration with defaults applied to absent optional fields.

        Returns:
            ProviderConfig: The immutable configuration.

        Raises:
            ProviderConfigurationError: If a required field is missing or a value has the wrong type.
        """
        missing = [name for name in REQUIRED_FIELDS if not self._fields.get(name)]
        if missing:
            raise ProviderConfigurationError(f"ProviderConfigBuilder: Missing required fields: {', '.join(missing)}")

        try:
            config = ProviderConfig(**self._fields)
        except ValidationError as e:
            raise ProviderConfigurationError(f"ProviderConfigBuilder: Invalid configuration: {e}") from e

        return apply_defaults(config)
