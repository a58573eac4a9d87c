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
OpenID Connect provider metadata and authorization request validation engine.
"""

__version__ = "0.1.0"
__author__ = "Gowtham A Rao"
__email__ = "gowtham.rao@coreason.ai"

from .authorization import AuthorizationRequestValidator, parse_authorization_request
from .client_directory import ClientDirectory, HttpClientDirectory, InMemoryClientDirectory
from .config import ProviderSettings
from .context import ProviderContext
from .error_handler import error_redirect, render_error
from .exceptions import (
    ClientDirectoryError,
    ClientNotFoundError,
    CoreasonOIDCError,
    ErrorCode,
    ProtocolError,
    ProviderConfigurationError,
)
from .models import AuthorizationRequest, Client, DiscoveryDocument, ProviderConfig
from .provider_builder import ProviderConfigBuilder
from .provider_service import ProviderService
from .string_set_validator import StringSetRules, StringSetValidator, normalize_space_delimited
from .uri_validator import URIValidator, UriRules

__all__ = [
    "AuthorizationRequest",
    "AuthorizationRequestValidator",
    "Client",
    "ClientDirectory",
    "ClientDirectoryError",
    "ClientNotFoundError",
    "CoreasonOIDCError",
    "DiscoveryDocument",
    "ErrorCode",
    "HttpClientDirectory",
    "InMemoryClientDirectory",
    "ProtocolError",
    "ProviderConfig",
    "ProviderConfigBuilder",
    "ProviderConfigurationError",
    "ProviderContext",
    "ProviderService",
    "ProviderSettings",
    "StringSetRules",
    "StringSetValidator",
    "URIValidator",
    "UriRules",
    "error_redirect",
    "normalize_space_delimited",
    "parse_authorization_request",
    "render_error",
]
