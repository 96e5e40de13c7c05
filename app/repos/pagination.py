"""Shared utilities for page-number/page-size pagination."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class Page[T]:
    """One page of results with enough metadata to request the next one."""

    items: Sequence[T]
    total_count: int
    page_number: int
    page_size: int

    @property
    def total_pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return math.ceil(self.total_count / self.page_size)

    @property
    def has_next(self) -> bool:
        return self.page_number < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page_number > 1


def page_offset(page_number: int, page_size: int) -> int:
    """Row offset of a 1-based page.

    Raises:
        ValueError: If page_number or page_size is not positive
    """
    if page_number < 1:
        raise ValueError("page_number must be >= 1")
    if page_size < 1:
        raise ValueError("page_size must be >= 1")
    return (page_number - 1) * page_size


async def count_rows(db: AsyncSession, stmt: Select) -> int:
    """Count the rows an (unordered, unpaginated) select would return."""
    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    result = await db.execute(count_stmt)
    return int(result.scalar_one())


async def fetch_page(
    db: AsyncSession,
    stmt: Select,
    *,
    page_number: int,
    page_size: int,
) -> tuple[Sequence, int]:
    """Run ``stmt`` for one page and return (rows, total_count).

    The statement must already carry a deterministic ORDER BY.
    """
    offset = page_offset(page_number, page_size)
    total_count = await count_rows(db, stmt)
    result = await db.execute(stmt.offset(offset).limit(page_size))
    return result.all(), total_count
