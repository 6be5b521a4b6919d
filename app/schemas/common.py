from __future__ import annotations

"""Shared response envelopes."""

import math
from typing import Generic, List, TypeVar

from pydantic import BaseModel

T = TypeVar("T")

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10


def normalize_page(page: int, limit: int, *, default_limit: int = DEFAULT_LIMIT) -> tuple[int, int]:
    """Clamp pagination inputs: `page <= 0 → 1`, `limit <= 0 → default_limit`."""
    if page is None or page <= 0:
        page = DEFAULT_PAGE
    if limit is None or limit <= 0:
        limit = default_limit
    return page, limit


class Page(BaseModel, Generic[T]):
    data: List[T]
    total: int
    page: int
    limit: int
    total_pages: int

    @classmethod
    def build(cls, data: List[T], total: int, page: int, limit: int) -> "Page[T]":
        pages = math.ceil(total / limit) if limit > 0 else 0
        return cls(data=data, total=total, page=page, limit=limit, total_pages=pages)
