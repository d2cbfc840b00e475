"""
Pagination Utility Module

Offset pagination for list pages (admin student index).
"""
from typing import List, Any, Optional
from pydantic import BaseModel
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select


class Page(BaseModel):
    """One page of results plus the numbers templates need for navigation"""
    items: List[Any]
    total: int
    page: int
    page_size: int
    total_pages: int
    has_next: bool
    has_previous: bool

    @property
    def first_index(self) -> int:
        """1-based index of the first item shown (0 when empty)"""
        return (self.page - 1) * self.page_size + 1 if self.total else 0

    @property
    def last_index(self) -> int:
        return (self.page - 1) * self.page_size + len(self.items)

    def page_numbers(self, window: int = 2) -> List[int]:
        """Page links around the current page"""
        start = max(1, self.page - window)
        end = min(self.total_pages, self.page + window)
        return list(range(start, end + 1))


async def paginate(
    db: AsyncSession,
    query: Select,
    page: int = 1,
    page_size: int = 15,
    count_query: Optional[Select] = None
) -> Page:
    """
    Apply pagination to a SQLAlchemy query.

    Args:
        db: Database session
        query: Base SQLAlchemy query, already ordered
        page: Page number (1-indexed); values past the end give an empty page
        page_size: Items per page
        count_query: Optional custom count query

    Returns:
        Page with items, total, page, page_size, total_pages, has_next, has_previous
    """
    page = max(1, page)
    page_size = max(1, min(100, page_size))  # Cap at 100 items per page

    offset = (page - 1) * page_size

    if count_query is not None:
        count_result = await db.execute(count_query)
    else:
        count_stmt = select(func.count()).select_from(query.order_by(None).subquery())
        count_result = await db.execute(count_stmt)

    total = count_result.scalar() or 0
    total_pages = (total + page_size - 1) // page_size if total > 0 else 1

    result = await db.execute(query.offset(offset).limit(page_size))
    items = list(result.scalars().all())

    return Page(
        items=items,
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages,
        has_next=page < total_pages,
        has_previous=page > 1,
    )
