"""Pagination helpers shared by the list use cases."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")

DEFAULT_LIMIT = 20
MAX_LIMIT = 200


def page_bounds(page: int, limit: int) -> tuple[int, int, int]:
    """Clamp (page, limit) and return (page, limit, offset). Pages are 1-indexed."""
    page = max(page, 1)
    limit = min(max(limit, 1), MAX_LIMIT)
    return page, limit, (page - 1) * limit


@dataclass
class Page(Generic[T]):
    items: list[T]
    page: int
    limit: int
    total_count: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.limit) if self.limit else 0

    @property
    def has_next(self) -> bool:
        return self.page * self.limit < self.total_count

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    def meta(self) -> dict:
        return {
            "currentPage": self.page,
            "totalPages": self.total_pages,
            "totalCount": self.total_count,
            "hasNext": self.has_next,
            "hasPrev": self.has_prev,
            "limit": self.limit,
        }
