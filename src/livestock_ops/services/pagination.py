"""Offset pagination for list queries."""

from __future__ import annotations

from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession


async def paginate(
    session: AsyncSession,
    query: Select[Any],
    page: int = 1,
    page_size: int = 20,
) -> tuple[list[Any], int]:
    """Return one page of scalars plus the total row count.

    ``query`` should already be ordered.
    """
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = await session.scalar(count_query) or 0

    result = await session.execute(query.offset((page - 1) * page_size).limit(page_size))
    return list(result.scalars().all()), total
