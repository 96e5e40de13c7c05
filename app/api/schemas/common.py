"""Response envelope and paging schemas shared by all endpoints."""

from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.repos.pagination import Page


class CamelModel(BaseModel):
    """Base model serialized with camelCase field names.

    Snake-case names are accepted on input as well.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ApiResponse[T](CamelModel):
    """Envelope wrapping every API response."""

    success: bool
    data: T | None = None
    message: str | None = None
    errors: list[str] = Field(default_factory=list)


class PagedResponse[T](CamelModel):
    items: list[T]
    total_count: int
    page_number: int
    page_size: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool

    @classmethod
    def from_page(cls, page: Page[Any], mapper: Callable[[Any], T]) -> "PagedResponse[T]":
        return cls(
            items=[mapper(item) for item in page.items],
            total_count=page.total_count,
            page_number=page.page_number,
            page_size=page.page_size,
            total_pages=page.total_pages,
            has_next_page=page.has_next,
            has_previous_page=page.has_previous,
        )
