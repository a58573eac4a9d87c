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
Custom exceptions for the coreason-oidc-provider package.
"""

from enum import StrEnum
from urllib.parse import urlencode

from authlib.common.urls import add_params_to_uri


class CoreasonOIDCError(Exception):
    """Base exception for all coreason-oidc-provider errors."""


class ErrorCode(StrEnum):
    """Error codes defined by OAuth 2.0 (RFC 6749) and OpenID Connect Core."""

    INVALID_REQUEST = "invalid_request"
    UNAUTHORIZED_CLIENT = "unauthorized_client"
    ACCESS_DENIED = "access_denied"
    UNSUPPORTED_RESPONSE_TYPE = "unsupported_response_type"
    UNSUPPORTED_GRANT_TYPE = "unsupported_grant_type"
    INVALID_SCOPE = "invalid_scope"
    SERVER_ERROR = "server_error"
    TEMPORARILY_UNAVAILABLE = "temporarily_unavailable"
    INTERACTION_REQUIRED = "interaction_required"
    LOGIN_REQUIRED = "login_required"
    ACCOUNT_SELECTION_REQUIRED = "account_selection_required"
    CONSENT_REQUIRED = "consent_required"
    INVALID_REQUEST_URI = "invalid_request_uri"
    INVALID_REQUEST_OBJECT = "invalid_request_object"
    REQUEST_NOT_SUPPORTED = "request_not_supported"
    REQUEST_URI_NOT_SUPPORTED = "request_uri_not_supported"
    REGISTRATION_NOT_SUPPORTED = "registration_not_supported"


class ProtocolError(CoreasonOIDCError):
    """
    A client-facing OAuth 2.0 / OIDC protocol error.

    Raised at the point where validation fails and propagated unchanged to the
    HTTP boundary, which serializes it either as a JSON body (token and
    discovery endpoints) or as redirect parameters (authorization endpoint).

    Attributes:
        error (ErrorCode): The protocol error code.
        error_description (str | None): Human readable explanation.
        error_uri (str | None): URI of a page documenting the error.
        state (str | None): The ``state`` of the originating request, echoed back.
        status_code (int): The HTTP status code to respond with.
    """

    def __init__(
        self,
        error: ErrorCode | str,
        error_description: str | None = None,
        error_uri: str | None = None,
        state: str | None = None,
        status_code: int = 400,
    ) -> None:
        super().__init__(error_description or str(error))
        self._error = ErrorCode(error)
        self._error_description = error_description
        self._error_uri = error_uri
        self._state = state
        self._status_code = status_code

    @property
    def error(self) -> ErrorCode:
        return self._error

    @property
    def error_description(self) -> str | None:
        return self._error_description

    @property
    def error_uri(self) -> str | None:
        return self._error_uri

    @property
    def state(self) -> str | None:
        return self._state

    @property
    def status_code(self) -> int:
        return self._status_code

    def __repr__(self) -> str:
        return (
            f"ProtocolError(error={self._error.value!r}, "
            f"error_description={self._error_description!r}, "
            f"status_code={self._status_code})"
        )

    def to_json(self) -> dict[str, str]:
        """
        Returns the error as a JSON object (token and discovery endpoint responses).
        """
        body = {"error": self._error.value}
        if self._error_description:
            body["error_description"] = self._error_description
        if self._error_uri:
            body["error_uri"] = self._error_uri
        return body

    def _params(self) -> list[tuple[str, str]]:
        params = list(self.to_json().items())
        if self._state:
            params.append(("state", self._state))
        return params

    def to_query_params(self) -> str:
        """
        Returns the error as an URL-encoded query string (authorization endpoint redirects).
        """
        return urlencode(self._params())

    def to_redirect_uri(self, redirect_uri: str, fragment: bool = False) -> str:
        """
        Appends the error parameters to the client's redirect URI.

        Args:
            redirect_uri: The registered redirect URI of the client.
            fragment: Put the parameters in the fragment instead of the query.

        Returns:
            str: The URI the user agent should be redirected to.
        """
        return add_params_to_uri(redirect_uri, self._params(), fragment=fragment)  # type: ignore[no-any-return]


class ProviderConfigurationError(CoreasonOIDCError):
    """
    Raised at startup when the provider configuration cannot be built.
    This is fatal to the process and is never turned into a ProtocolError.
    """


class ClientNotFoundError(CoreasonOIDCError):
    """Raised by a client directory when the client identifier is unknown."""

    def __init__(self, client_id: str) -> None:
        super().__init__(f"Unknown client: {client_id}")
        self.client_id = client_id


class ClientDirectoryError(CoreasonOIDCError):
    """Raised when the client directory cannot be reached or returns invalid data."""
