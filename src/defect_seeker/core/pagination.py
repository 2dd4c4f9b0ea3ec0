"""Paginator for ordered defect lists."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Page(Generic[T]):
    """One slice of an ordered sequence."""

    items: list[T]
    total_pages: int


def page_count(count: int, page_size: int) -> int:
    if page_size < 1:
        raise ValueError("page_size must be >= 1")
    return math.ceil(count / page_size)


def paginate(ordered: Sequence[T], page: int, page_size: int) -> Page[T]:
    """Return page ``page`` (1-based) of ``ordered``.

    Out-of-range pages yield an empty slice; clamping is left to the caller.
    """
    if page < 1:
        raise ValueError("page must be >= 1")
    total = page_count(len(ordered), page_size)
    start = (page - 1) * page_size
    end = start + page_size
    return Page(items=list(ordered[start:end]), total_pages=total)
