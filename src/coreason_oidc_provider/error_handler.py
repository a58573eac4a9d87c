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
Error boundary: maps exceptions raised while serving a request to their wire form.
"""

from typing import Any

from coreason_oidc_provider.exceptions import ErrorCode, ProtocolError
from coreason_oidc_provider.utils.logger import logger

GENERIC_SERVER_ERROR = "The server encountered an unexpected condition."


def _as_protocol_error(exc: BaseException, production: bool, state: str | None = None) -> ProtocolError:
    if isinstance(exc, ProtocolError):
        return exc
    logger.opt(exception=exc).error("Unhandled error while serving an OIDC request")
    return ProtocolError(
        ErrorCode.SERVER_ERROR,
        error_description=GENERIC_SERVER_ERROR if production else f"{type(exc).__name__}: {exc}",
        state=state,
        status_code=500,
    )


def render_error(exc: BaseException, production: bool = True) -> tuple[int, dict[str, Any]]:
    """
    Renders an exception as a JSON error response (token and discovery endpoints).

    Args:
        exc: The raised exception.
        production: Hide the details of unclassified errors.

    Returns:
        tuple[int, dict[str, Any]]: The HTTP status code and the JSON body.
    """
    error = _as_protocol_error(exc, production)
    return error.status_code, error.to_json()


def error_redirect(
    exc: BaseException,
    redirect_uri: str,
    response_mode: str = "query",
    state: str | None = None,
    production: bool = True,
) -> str:
    """
    Renders an exception as the redirect URI of an authorization endpoint error response.

    Args:
        exc: The raised exception.
        redirect_uri: The client's redirect URI.
        response_mode: "fragment" puts the parameters in the fragment, anything else in the query.
        state: The request state, used for unclassified errors which do not carry it.
        production: Hide the details of unclassified errors.

    Returns:
        str: The redirect target.
    """
    error = _as_protocol_error(exc, production, state=state)
    return error.to_redirect_uri(redirect_uri, fragment=response_mode == "fragment")
