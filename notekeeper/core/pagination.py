"""
Pagination Utilities.

Page-number pagination with sorting for list endpoints. Pages are 0-based.
"""

import math
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from fastapi import Query
from pydantic import BaseModel

from notekeeper.core.exceptions import ValidationError
from notekeeper.schemas.base import PaginatedResponse, PaginationInfo, ResponseMetadata

T = TypeVar("T")

SORT_DIRECTIONS = frozenset({"asc", "desc"})


# =============================================================================
# Pagination Parameters
# =============================================================================


@dataclass
class PageParams:
    """Pagination and sort parameters extracted from the query string."""

    page: int = 0
    size: int = 10
    sort_by: str = "created_at"
    sort_direction: str = "desc"

    @property
    def offset(self) -> int:
        return self.page * self.size

    @property
    def descending(self) -> bool:
        return self.sort_direction == "desc"


def get_page_params(
    page: int = Query(
        default=0,
        ge=0,
        description="Page number (0-based)",
    ),
    size: int = Query(
        default=10,
        ge=1,
        le=100,
        description="Page size",
    ),
    sort_by: str = Query(
        default="created_at",
        description="Field to sort by",
    ),
    sort_direction: str = Query(
        default="desc",
        description="Sort direction (asc or desc)",
    ),
) -> PageParams:
    """
    FastAPI dependency for pagination parameters.

    Usage:
        @router.get("/items")
        async def list_items(
            paging: PageParams = Depends(get_page_params),
        ):
            ...
    """
    direction = sort_direction.lower()
    if direction not in SORT_DIRECTIONS:
        raise ValidationError(
            "Invalid sort direction",
            details={"sort_direction": "Must be 'asc' or 'desc'"},
        )
    return PageParams(page=page, size=size, sort_by=sort_by, sort_direction=direction)


# =============================================================================
# Paginated Result
# =============================================================================


@dataclass
class Page(Generic[T]):
    """One page of results plus the totals needed to navigate."""

    items: list[T]
    total: int
    page: int
    size: int
    sort_by: str | None = None
    sort_direction: str | None = None

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.size) if self.size else 0

    @property
    def has_next(self) -> bool:
        return self.page + 1 < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 0

    @property
    def first(self) -> bool:
        return self.page == 0

    @property
    def last(self) -> bool:
        return not self.has_next

    def map(self, func: Any) -> "Page[Any]":
        """Return a page with ``func`` applied to every item."""
        return Page(
            items=[func(item) for item in self.items],
            total=self.total,
            page=self.page,
            size=self.size,
            sort_by=self.sort_by,
            sort_direction=self.sort_direction,
        )

    def info(self) -> PaginationInfo:
        return PaginationInfo(
            page=self.page,
            size=self.size,
            total_elements=self.total,
            total_pages=self.total_pages,
            first=self.first,
            last=self.last,
            has_next=self.has_next,
            has_previous=self.has_previous,
            sort_by=self.sort_by,
            sort_direction=self.sort_direction,
        )


def create_paginated_response(
    page: Page[Any],
    item_schema: type[BaseModel],
    request_id: str | None = None,
) -> dict[str, Any]:
    """
    Create a standardized paginated response.

    Args:
        page: Page of items (model instances, DTOs or dicts)
        item_schema: Pydantic schema to validate items
        request_id: Request ID for metadata

    Returns:
        Dict matching PaginatedResponse structure
    """
    validated_items = [
        item_schema.model_validate(item).model_dump(mode="json")
        for item in page.items
    ]

    response = PaginatedResponse(
        data=validated_items,
        pagination=page.info(),
        metadata=ResponseMetadata(request_id=request_id),
    )

    return response.model_dump(mode="json")
