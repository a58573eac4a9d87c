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
URIValidator component for validating provider endpoint URIs against declarative rules.
"""

from dataclasses import dataclass
from typing import NoReturn
from urllib.parse import SplitResult, urlsplit

from coreason_oidc_provider.exceptions import ErrorCode, ProtocolError

LOOPBACK_HOSTS = frozenset({"127.0.0.1", "::1", "localhost"})

DEFAULT_PORTS = {"http": 80, "https": 443}


@dataclass(frozen=True)
class UriRules:
    """
    Independently togglable URI checks. Unset checks are not enforced.
    """

    required: bool = False
    valid_absolute_uri: bool = False
    https_only: bool = False
    no_path: bool = False
    no_fragment: bool = False
    no_query: bool = False
    same_origin_as_issuer: bool = False


def _split(uri: str) -> SplitResult | None:
    try:
        return urlsplit(uri)
    except ValueError:
        # e.g. unbalanced brackets in an IPv6 host
        return None


def _origin(parts: SplitResult) -> tuple[str, str, int | None] | None:
    try:
        port = parts.port
    except ValueError:
        # non-numeric or out of range port
        return None
    scheme = parts.scheme.lower()
    return scheme, (parts.hostname or ""), port or DEFAULT_PORTS.get(scheme)


def is_absolute_uri(uri: str | None) -> bool:
    """Returns True if `uri` is an absolute URI with an http or https scheme and a host."""
    if not uri:
        return False
    parts = _split(uri)
    return parts is not None and parts.scheme in ("http", "https") and bool(parts.hostname)


def is_loopback_uri(uri: str | None) -> bool:
    """Returns True if the host of `uri` is a loopback address."""
    if not uri:
        return False
    parts = _split(uri)
    return parts is not None and parts.hostname in LOOPBACK_HOSTS


class URIValidator:
    """
    Validates single endpoint URIs.

    Attributes:
        issuer (str): The provider issuer, anchor of the same-origin check.
    """

    def __init__(self, issuer: str) -> None:
        self.issuer = issuer

    def validate(self, uri: str | None, field_name: str, rules: UriRules) -> None:
        """
        Validates `uri` against `rules`, stopping at the first violation.

        Args:
            uri: The URI to validate. May be None or empty.
            field_name: The discovery document field name, used in error messages.
            rules: The checks to enforce.

        Raises:
            ProtocolError: `invalid_request` naming the field and the violation.
        """
        if rules.required and not uri:
            self._fail(f"Missing required field: {field_name}")

        if rules.valid_absolute_uri and not is_absolute_uri(uri):
            self._fail(f"{field_name} must be a valid absolute URI")

        parts = _split(uri) if uri else None

        if rules.https_only and parts is not None:
            secure = parts.scheme == "https"
            local_http = parts.scheme == "http" and parts.hostname in LOOPBACK_HOSTS
            if not (secure or local_http):
                self._fail(f"{field_name} must use https, except for localhost/loopback")

        if parts is None:
            return

        if rules.no_path and parts.path not in ("", "/"):
            self._fail(f"{field_name} should not include a path. Use root URL as issuer. Got {parts.path}")

        # "https://host/#" and "https://host/?" carry empty components, which are tolerated
        if rules.no_fragment and parts.fragment:
            self._fail(f"{field_name} must not contain a fragment component. Got #{parts.fragment}")

        if rules.no_query and parts.query:
            self._fail(f"{field_name} must not contain a query component. Got ?{parts.query}")

        if rules.same_origin_as_issuer and not self._under_issuer(parts):
            self._fail(f"{field_name} must be under the issuer URL")

    def _under_issuer(self, parts: SplitResult) -> bool:
        """True if `parts` has the issuer's scheme, host and port and a path at or below the issuer path."""
        issuer = _split(self.issuer)
        origin = _origin(parts)
        if issuer is None or origin is None or origin != _origin(issuer):
            return False
        base = issuer.path.rstrip("/")
        return parts.path == base or parts.path.startswith(f"{base}/")

    @staticmethod
    def _fail(description: str) -> NoReturn:
        raise ProtocolError(ErrorCode.INVALID_REQUEST, error_description=description, status_code=400)
