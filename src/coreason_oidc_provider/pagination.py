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
Offset pagination helper for client directory listings.
"""

import math
from collections.abc import Sequence
from typing import TypeVar

from coreason_oidc_provider.models import PaginatedResult, PaginationMetadata, PaginationOptions

T = TypeVar("T")


def paginate(items: Sequence[T], options: PaginationOptions | None = None) -> PaginatedResult[T]:
    """
    Slices `items` into the requested page.

    Args:
        items: The full, ordered collection.
        options: Page (1-based) and page size. Defaults to page 1 of 10.

    Returns:
        PaginatedResult: The page and its metadata. Pages past the end are empty.
    """
    options = options or PaginationOptions()
    offset = (options.page - 1) * options.limit
    total = len(items)

    return PaginatedResult(
        data=list(items[offset : offset + options.limit]),
        metadata=PaginationMetadata(
            items_per_page=options.limit,
            current_page=options.page,
            total_items=total,
            total_pages=math.ceil(total / options.limit),
        ),
    )
