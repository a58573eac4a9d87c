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
ProviderService component: validates the provider configuration and projects it
into the discovery document.
"""

from collections.abc import Iterable
from dataclasses import replace

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from coreason_oidc_provider.exceptions import ProtocolError
from coreason_oidc_provider.models import DiscoveryDocument, ProviderConfig
from coreason_oidc_provider.string_set_validator import StringSetValidator, normalize_space_delimited
from coreason_oidc_provider.uri_validator import URIValidator, UriRules
from coreason_oidc_provider.utils.logger import logger
from coreason_oidc_provider.validation_rules import (
    STRING_SET_VALIDATION_RULES,
    URI_VALIDATION_RULES,
    UriRuleEntry,
    apply_defaults,
)

tracer = trace.get_tracer(__name__)


class ProviderService:
    """
    Holds the provider capabilities and validates them.

    The configuration is defaulted once at construction and is read-only
    afterwards, so a single instance can be shared by concurrent requests.
    """

    def __init__(self, config: ProviderConfig) -> None:
        """
        Initialize the ProviderService.

        Args:
            config: The provider configuration. Absent optional "supported" fields
                are filled with their defaults; `config` itself is not modified.
        """
        self._config = apply_defaults(config)
        self._uri_validator = URIValidator(self._config.issuer)
        self._string_set_validator = StringSetValidator()

    @property
    def config(self) -> ProviderConfig:
        return self._config

    def validate_config(self) -> None:
        """
        Validates every URI and "supported" field of the configuration.

        Idempotent and side-effect free apart from logging, so it may run on
        every discovery request.

        Raises:
            ProtocolError: On the first violation encountered.
        """
        with tracer.start_as_current_span("validate_provider_config") as span:
            span.set_attribute("oidc.issuer", self._config.issuer)
            try:
                for field_name, entry in URI_VALIDATION_RULES.items():
                    uri = getattr(self._config, field_name)
                    self._uri_validator.validate(uri, field_name, self._resolve_uri_rules(entry, uri))

                for field_name, rules in STRING_SET_VALIDATION_RULES.items():
                    self._string_set_validator.validate(field_name, getattr(self._config, field_name), rules)
            except ProtocolError as e:
                logger.warning(f"Provider configuration rejected: {e.error_description}")
                span.set_status(Status(StatusCode.ERROR, e.error_description))
                raise

            span.set_status(Status(StatusCode.OK))
            logger.debug(f"Provider configuration for {self._config.issuer} is valid")

    def _resolve_uri_rules(self, entry: UriRuleEntry, uri: str | None) -> UriRules:
        rules = entry.rules
        if entry.when_present and not uri:
            rules = UriRules()
        if entry.required_when_scope and entry.required_when_scope in (self._config.scopes_supported or ()):
            rules = replace(rules, required=True)
        return rules

    def get_discovery_document(self) -> DiscoveryDocument:
        """
        Projects the configuration into the discovery document. Never raises.
        """
        return DiscoveryDocument.model_validate(self._config.model_dump())

    def supports_response_type(self, response_type: str) -> bool:
        """Returns True if the normalized `response_type` is advertised by the provider."""
        normalized = normalize_space_delimited(response_type)
        return normalized in self.normalized_response_types

    @property
    def normalized_response_types(self) -> list[str]:
        return [normalize_space_delimited(rt) for rt in self._config.response_types_supported]

    def unsupported_scopes(self, scopes: Iterable[str]) -> list[str]:
        """Returns the members of `scopes` that the provider does not advertise."""
        supported = self.scopes_supported
        return [scope for scope in scopes if scope not in supported]

    @property
    def issuer(self) -> str:
        return self._config.issuer

    @property
    def authorization_endpoint(self) -> str:
        return self._config.authorization_endpoint

    @property
    def token_endpoint(self) -> str:
        return self._config.token_endpoint

    @property
    def jwks_uri(self) -> str:
        return self._config.jwks_uri

    @property
    def userinfo_endpoint(self) -> str | None:
        return self._config.userinfo_endpoint

    @property
    def registration_endpoint(self) -> str | None:
        return self._config.registration_endpoint

    @property
    def scopes_supported(self) -> tuple[str, ...]:
        return self._config.scopes_supported or ()

    @property
    def response_types_supported(self) -> tuple[str, ...]:
        return self._config.response_types_supported

    @property
    def subject_types_supported(self) -> tuple[str, ...]:
        return self._config.subject_types_supported

    @property
    def id_token_signing_alg_values_supported(self) -> tuple[str, ...]:
        return self._config.id_token_signing_alg_values_supported

    @property
    def response_modes_supported(self) -> tuple[str, ...]:
        return self._config.response_modes_supported or ()

    @property
    def grant_types_supported(self) -> tuple[str, ...]:
        return self._config.grant_types_supported or ()

    @property
    def token_endpoint_auth_methods_supported(self) -> tuple[str, ...]:
        return self._config.token_endpoint_auth_methods_supported or ()

    @property
    def claims_supported(self) -> tuple[str, ...]:
        return self._config.claims_supported or ()

    @property
    def code_challenge_methods_supported(self) -> tuple[str, ...]:
        return self._config.code_challenge_methods_supported or ()
