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
Declarative validation rule tables and configuration defaults for the provider metadata.
"""

from dataclasses import dataclass
from enum import StrEnum
from types import MappingProxyType

from coreason_oidc_provider.exceptions import ErrorCode
from coreason_oidc_provider.models import (
    Claim,
    CodeChallengeMethod,
    GrantType,
    ProviderConfig,
    ResponseMode,
    ResponseType,
    SigningAlgorithm,
    SubjectType,
    TokenEndpointAuthMethod,
)
from coreason_oidc_provider.string_set_validator import StringSetRules
from coreason_oidc_provider.uri_validator import UriRules


def _values(vocabulary: type[StrEnum]) -> tuple[str, ...]:
    return tuple(member.value for member in vocabulary)


@dataclass(frozen=True)
class UriRuleEntry:
    """
    URI rules for one config field.

    Attributes:
        rules: The checks to run.
        when_present: Only run the checks if the field has a value.
        required_when_scope: The field becomes required when this scope is supported.
    """

    rules: UriRules
    when_present: bool = False
    required_when_scope: str | None = None


_ENDPOINT_RULES = UriRules(
    required=True,
    valid_absolute_uri=True,
    https_only=True,
    no_fragment=True,
    no_query=True,
    same_origin_as_issuer=True,
)

_OPTIONAL_ENDPOINT_RULES = UriRules(
    valid_absolute_uri=True,
    https_only=True,
    no_fragment=True,
    no_query=True,
    same_origin_as_issuer=True,
)

# Iteration order is the validation order.
URI_VALIDATION_RULES: MappingProxyType[str, UriRuleEntry] = MappingProxyType(
    {
        "issuer": UriRuleEntry(
            UriRules(
                required=True,
                valid_absolute_uri=True,
                https_only=True,
                no_path=True,
                no_fragment=True,
                no_query=True,
            )
        ),
        "authorization_endpoint": UriRuleEntry(_ENDPOINT_RULES),
        "jwks_uri": UriRuleEntry(_ENDPOINT_RULES),
        "token_endpoint": UriRuleEntry(_ENDPOINT_RULES),
        "userinfo_endpoint": UriRuleEntry(
            _OPTIONAL_ENDPOINT_RULES, when_present=True, required_when_scope="openid"
        ),
        "registration_endpoint": UriRuleEntry(_OPTIONAL_ENDPOINT_RULES, when_present=True),
    }
)

STRING_SET_VALIDATION_RULES: MappingProxyType[str, StringSetRules] = MappingProxyType(
    {
        "scopes_supported": StringSetRules(
            must_not_be_empty=True,
            required=("openid",),
            error_code=ErrorCode.INVALID_SCOPE,
        ),
        "response_types_supported": StringSetRules(
            must_not_be_empty=True,
            required=("code",),
            allowed=_values(ResponseType),
            error_code=ErrorCode.UNSUPPORTED_RESPONSE_TYPE,
            normalize=True,
        ),
        "subject_types_supported": StringSetRules(
            must_not_be_empty=True,
            required=("public",),
            allowed=_values(SubjectType),
        ),
        "id_token_signing_alg_values_supported": StringSetRules(
            must_not_be_empty=True,
            required=("RS256",),
            allowed=_values(SigningAlgorithm),
        ),
        "response_modes_supported": StringSetRules(
            must_not_be_empty=True,
            allowed=_values(ResponseMode),
        ),
        "grant_types_supported": StringSetRules(
            must_not_be_empty=True,
            required=("authorization_code",),
            allowed=_values(GrantType),
            error_code=ErrorCode.UNSUPPORTED_GRANT_TYPE,
        ),
        "token_endpoint_auth_methods_supported": StringSetRules(
            must_not_be_empty=True,
            required=("client_secret_basic",),
            allowed=_values(TokenEndpointAuthMethod),
        ),
        "claims_supported": StringSetRules(
            must_not_be_empty=True,
            required=("sub",),
            allowed=_values(Claim),
        ),
        "code_challenge_methods_supported": StringSetRules(
            must_not_be_empty=True,
            allowed=_values(CodeChallengeMethod),
            recommended=("S256",),
        ),
    }
)

DEFAULT_CONFIG_VALUES: MappingProxyType[str, tuple[str, ...]] = MappingProxyType(
    {
        "scopes_supported": ("openid",),
        "response_modes_supported": ("query", "fragment"),
        "grant_types_supported": ("authorization_code",),
        "token_endpoint_auth_methods_supported": ("client_secret_basic",),
        "claims_supported": ("sub",),
        "code_challenge_methods_supported": ("S256",),
    }
)


def apply_defaults(config: ProviderConfig) -> ProviderConfig:
    """
    Returns a copy of `config` with every absent optional field set to its default.
    Explicit values are never overwritten and `config` itself is left untouched.
    """
    missing = {
        name: default for name, default in DEFAULT_CONFIG_VALUES.items() if getattr(config, name) is None
    }
    if not missing:
        return config
    return config.model_copy(update=missing)
