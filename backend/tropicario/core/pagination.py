"""
Page-number pagination and allowlisted sorting for list endpoints.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    """One page of results plus the numbers needed to describe it."""

    items: list[T] = field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 10

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    def meta(self) -> dict[str, Any]:
        return {
            "currentPage": self.page,
            "totalPages": self.total_pages,
            "totalItems": self.total,
            "limit": self.limit,
            "hasNextPage": self.page < self.total_pages,
            "hasPrevPage": self.page > 1,
        }


def order_clauses(
    sort_columns: dict[str, InstrumentedAttribute],
    sort_by: str,
    sort_order: str,
    tiebreaker: InstrumentedAttribute,
    pinned: InstrumentedAttribute | None = None,
) -> list[Any]:
    """
    Build ORDER BY clauses for an allowlisted sort key.

    Args:
        sort_columns: Public sort key -> column
        sort_by: Requested key (already validated against sort_columns)
        sort_order: "asc" or "desc"
        tiebreaker: Column appended last to keep pages stable
        pinned: Flag column that always sorts first when given

    Returns:
        Clauses for Select.order_by
    """
    column = sort_columns[sort_by]
    clauses: list[Any] = []
    if pinned is not None:
        clauses.append(pinned.desc())
    clauses.append(column.desc() if sort_order == "desc" else column.asc())
    clauses.append(tiebreaker.desc() if sort_order == "desc" else tiebreaker.asc())
    return clauses


async def paginate(db: AsyncSession, query: Select, page: int, limit: int) -> Page:
    """Count the unpaged query and fetch the requested page."""
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = (await db.execute(count_query)).scalar_one()

    result = await db.execute(query.offset((page - 1) * limit).limit(limit))
    return Page(items=list(result.scalars().all()), total=total, page=page, limit=limit)
