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
StringSetValidator component for validating "supported" string collections.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from opentelemetry import trace

from coreason_oidc_provider.exceptions import ErrorCode, ProtocolError
from coreason_oidc_provider.utils.logger import logger


def normalize_space_delimited(value: str) -> str:
    """
    Normalizes a space-delimited set such as a response_type or scope parameter.

    Splits on whitespace, drops empty members, sorts lexicographically and joins
    with single spaces, so that "id_token code" and "code id_token" compare equal.
    Duplicated members are kept so that callers can still detect them.
    """
    return " ".join(sorted(value.split()))


@dataclass(frozen=True)
class StringSetRules:
    """
    Rules for a string collection.

    Attributes:
        must_not_be_empty: Reject empty collections.
        required: Values that must be present.
        allowed: The vocabulary every member must belong to. None disables the check.
        error_code: Error code for emptiness, duplicate, required and allowed violations.
        normalize: Normalize members as space-delimited sets before checking.
        recommended: Values whose absence only emits a warning.
    """

    must_not_be_empty: bool = False
    required: tuple[str, ...] = ()
    allowed: tuple[str, ...] | None = None
    error_code: ErrorCode = ErrorCode.INVALID_REQUEST
    normalize: bool = False
    recommended: tuple[str, ...] = ()


class StringSetValidator:
    """
    Validates a string collection. Checks run in a fixed order and the first
    violation is raised.
    """

    def validate(self, field_name: str, value: Any, rules: StringSetRules) -> list[str]:
        """
        Validates `value` against `rules`.

        Args:
            field_name: The discovery document field name, used in error messages.
            value: The collection to validate.
            rules: The rules to enforce.

        Returns:
            list[str]: The validated members (normalized if `rules.normalize`).

        Raises:
            ProtocolError: On the first violated rule.
        """
        if not isinstance(value, (list, tuple)) or (rules.must_not_be_empty and len(value) == 0):
            raise ProtocolError(
                rules.error_code,
                error_description=f"{field_name} must be a non-empty array of strings",
            )

        if not all(isinstance(item, str) and item.strip() for item in value):
            raise ProtocolError(
                ErrorCode.INVALID_REQUEST,
                error_description=f"{field_name} must contain only non-empty strings",
            )

        members = [normalize_space_delimited(item) for item in value] if rules.normalize else list(value)

        duplicates = find_duplicates(members)
        if duplicates:
            raise ProtocolError(
                rules.error_code,
                error_description=f"{field_name} contains duplicate values: [{', '.join(duplicates)}]",
            )

        missing = [req for req in rules.required if req not in members]
        if missing:
            raise ProtocolError(
                rules.error_code,
                error_description=f"{field_name} must include: [{', '.join(missing)}]",
            )

        if rules.allowed is not None:
            for member in members:
                if member not in rules.allowed:
                    raise ProtocolError(
                        rules.error_code,
                        error_description=(
                            f"Invalid {field_name} value: {member}. Allowed values: {', '.join(rules.allowed)}"
                        ),
                    )

        for recommended in rules.recommended:
            if recommended not in members:
                self._advise(field_name, recommended)

        return members

    @staticmethod
    def _advise(field_name: str, recommended: str) -> None:
        if field_name == "code_challenge_methods_supported" and recommended == "S256":
            message = "PKCE without S256 is discouraged. Support for S256 is RECOMMENDED."
        else:
            message = f"{field_name} does not include {recommended}, which is RECOMMENDED."
        logger.warning(message)
        trace.get_current_span().add_event(
            "recommended_value_missing", {"field": field_name, "value": recommended}
        )


def find_duplicates(values: Sequence[str]) -> list[str]:
    """Returns the values occurring more than once, deduplicated, in first-seen order."""
    seen: set[str] = set()
    duplicates: dict[str, None] = {}
    for value in values:
        if value in seen:
            duplicates[value] = None
        seen.add(value)
    return list(duplicates)
