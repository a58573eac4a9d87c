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
AuthorizationRequestValidator component for validating inbound authorization requests
against the provider capabilities and the requesting client's registration.
"""

from collections.abc import Mapping
from typing import Any

import anyio
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
from pydantic import ValidationError

from coreason_oidc_provider.client_directory import ClientDirectory
from coreason_oidc_provider.exceptions import ClientNotFoundError, ErrorCode, ProtocolError
from coreason_oidc_provider.models import AuthorizationRequest, Client
from coreason_oidc_provider.provider_service import ProviderService
from coreason_oidc_provider.string_set_validator import find_duplicates, normalize_space_delimited
from coreason_oidc_provider.utils.logger import logger

tracer = trace.get_tracer(__name__)


def parse_authorization_request(params: Mapping[str, Any]) -> AuthorizationRequest:
    """
    Builds an AuthorizationRequest from the query parameters of the request.

    Raises:
        ProtocolError: `invalid_request` if a parameter is missing or malformed
            (e.g. client_id absent, redirect_uri not an absolute URI).
    """
    try:
        return AuthorizationRequest.model_validate(dict(params))
    except ValidationError as e:
        state = params.get("state")
        first = e.errors()[0]
        name = ".".join(str(part) for part in first["loc"]) or "request"
        raise ProtocolError(
            ErrorCode.INVALID_REQUEST,
            error_description=f"Invalid '{name}' parameter: {first['msg']}",
            state=state if isinstance(state, str) else None,
        ) from e


class AuthorizationRequestValidator:
    """
    Validates authorization requests.

    The response_type is always checked before the scope. Within each, a missing
    parameter is reported first, then malformed or duplicated values, then values
    the provider does not support, then values the client is not entitled to.

    Attributes:
        provider_service (ProviderService): The provider capabilities.
        client_directory (ClientDirectory): Resolves client registrations.
        lookup_timeout (float | None): Optional deadline in seconds for the client lookup.
    """

    def __init__(
        self,
        provider_service: ProviderService,
        client_directory: ClientDirectory,
        lookup_timeout: float | None = None,
    ) -> None:
        self.provider_service = provider_service
        self.client_directory = client_directory
        self.lookup_timeout = lookup_timeout

    async def validate(self, request: AuthorizationRequest) -> None:
        """
        Validates the request. Returns nothing; a rejected request raises.

        Emits an OpenTelemetry span `validate_authorization_request`.

        Args:
            request: The parsed authorization request.

        Raises:
            ProtocolError: On the first violation. Carries the request `state`.
            ClientDirectoryError: If the client directory fails. Not retried here.
            TimeoutError: If the lookup exceeds `lookup_timeout`.
        """
        with tracer.start_as_current_span("validate_authorization_request") as span:
            span.set_attribute("oauth.client_id", request.client_id)
            try:
                client = await self._resolve_client(request)
                self._validate_response_type(request, client)
                self._validate_scope(request, client)
            except ProtocolError as e:
                logger.info(f"Authorization request rejected for client {request.client_id}: {e.error.value}")
                span.set_status(Status(StatusCode.ERROR, e.error.value))
                raise
            except Exception as e:
                logger.error(f"Authorization request for client {request.client_id} could not be validated: {e}")
                span.record_exception(e)
                span.set_status(Status(StatusCode.ERROR, str(e)))
                raise

            span.set_status(Status(StatusCode.OK))
            logger.debug(f"Authorization request accepted for client {request.client_id}")

    async def _resolve_client(self, request: AuthorizationRequest) -> Client:
        try:
            if self.lookup_timeout is None:
                return await self.client_directory.get(request.client_id)
            with anyio.fail_after(self.lookup_timeout):
                return await self.client_directory.get(request.client_id)
        except ClientNotFoundError as e:
            raise ProtocolError(
                ErrorCode.UNAUTHORIZED_CLIENT,
                error_description="Unknown client",
                state=request.state,
                status_code=401,
            ) from e

    def _validate_response_type(self, request: AuthorizationRequest, client: Client) -> None:
        if not request.response_type or not request.response_type.strip():
            raise ProtocolError(
                ErrorCode.INVALID_REQUEST,
                error_description="Missing response_type parameter",
                state=request.state,
            )

        response_type = normalize_space_delimited(request.response_type)

        if not self.provider_service.supports_response_type(response_type):
            supported = ", ".join(self.provider_service.response_types_supported)
            raise ProtocolError(
                ErrorCode.UNSUPPORTED_RESPONSE_TYPE,
                error_description=f"response_type must be one of: [{supported}]",
                state=request.state,
            )

        if response_type not in {normalize_space_delimited(rt) for rt in client.response_types}:
            raise ProtocolError(
                ErrorCode.UNAUTHORIZED_CLIENT,
                error_description="client not allowed to use this response_type",
                state=request.state,
            )

    def _validate_scope(self, request: AuthorizationRequest, client: Client) -> None:
        if not request.scope or not request.scope.strip():
            raise ProtocolError(
                ErrorCode.INVALID_REQUEST,
                error_description="Missing 'scope' parameter",
                state=request.state,
            )

        scopes = normalize_space_delimited(request.scope).split(" ")

        if "openid" not in scopes:
            raise ProtocolError(
                ErrorCode.INVALID_SCOPE,
                error_description="The 'scope' parameter must include openid",
                state=request.state,
            )

        duplicates = find_duplicates(scopes)
        if duplicates:
            raise ProtocolError(
                ErrorCode.INVALID_SCOPE,
                error_description=f"Duplicate scope values not allowed: [{', '.join(duplicates)}]",
                state=request.state,
            )

        invalid = self.provider_service.unsupported_scopes(scopes)
        if invalid:
            allowed = ", ".join(self.provider_service.scopes_supported)
            raise ProtocolError(
                ErrorCode.INVALID_SCOPE,
                error_description=f"Invalid scope(s): [{', '.join(invalid)}]. Allowed scopes: [{allowed}]",
                state=request.state,
            )

        disallowed = [scope for scope in scopes if scope not in client.scopes]
        if disallowed:
            raise ProtocolError(
                ErrorCode.INVALID_SCOPE,
                error_description=f"client not allowed to request scope(s): [{', '.join(disallowed)}]",
                state=request.state,
            )
