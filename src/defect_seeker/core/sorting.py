"""Sort engine for the defect inventory."""

from __future__ import annotations

import locale
from collections.abc import Callable, Iterable, Mapping
from types import MappingProxyType
from typing import Any

from .models import Defect, DefectSeverity
from .time_window import as_utc

SEVERITY_WEIGHTS: Mapping[DefectSeverity, int] = MappingProxyType(
    {
        DefectSeverity.LOW: 1,
        DefectSeverity.MEDIUM: 2,
        DefectSeverity.HIGH: 3,
        DefectSeverity.CRITICAL: 4,
    }
)


def severity_weight(value: DefectSeverity | str | None) -> int:
    """Return the sort weight of a severity; unrecognized values weigh 0."""
    try:
        sev = DefectSeverity(value)
    except ValueError:
        return 0
    return SEVERITY_WEIGHTS.get(sev, 0)


def _text_key(s: str) -> tuple[str, str]:
    # case-insensitive collation first, original text breaks ties deterministically
    return locale.strxfrm(s.casefold()), s


SORT_KEYS: Mapping[str, Callable[[Defect], Any]] = MappingProxyType(
    {
        "createdAt": lambda d: as_utc(d.created_at),
        "severity": lambda d: severity_weight(d.severity),
        "status": lambda d: _text_key(d.status.value),
        "title": lambda d: _text_key(d.title),
    }
)


def sort_defects(defects: Iterable[Defect], sort_by: str, sort_order: str = "desc") -> list[Defect]:
    """Return a new, stably sorted list.

    Records with equal keys keep their input order in both directions.
    """
    try:
        key = SORT_KEYS[sort_by]
    except KeyError as e:
        valid = ", ".join(SORT_KEYS)
        raise ValueError(f"Unknown sort key '{sort_by}'. Valid values: {valid}.") from e
    if sort_order not in ("asc", "desc"):
        raise ValueError("sort_order must be 'asc' or 'desc'")
    # sorted() stays stable with reverse=True
    return sorted(defects, key=key, reverse=sort_order == "desc")
