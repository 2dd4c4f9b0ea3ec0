"""Persisted filter / sort / paging state of the defect inventory.

The state is stored as one JSON object with camelCase keys. Loading always merges the
stored object over the defaults and re-validates it, so state written by an older
version (missing fields) or a hand-edited file (bad values) still yields a usable state.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .models import DefectSeverity, DefectStatus
from .storage import QUERY_STATE_KEY, KeyValueStorage, save_document
from .time_window import day_start

logger = logging.getLogger(__name__)

ALL = "All"
UNASSIGNED = "unassigned"
PAGE_SIZE_CHOICES: tuple[int, ...] = (10, 25, 50)

SortKey = Literal["createdAt", "severity", "status", "title"]
SortOrder = Literal["asc", "desc"]

FILTER_FIELDS = (
    "status",
    "severity",
    "search",
    "reporter_id",
    "assignee_id",
    "start_date",
    "end_date",
)


class QueryState(BaseModel):
    """Filter, sort and paging preferences for the defect list."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    status: str = ALL
    severity: str = ALL
    search: str = ""
    reporter_id: str = Field(default=ALL, alias="reporterId")
    assignee_id: str = Field(default=ALL, alias="assigneeId")
    start_date: str = Field(default="", alias="startDate")
    end_date: str = Field(default="", alias="endDate")
    sort_by: SortKey = Field(default="createdAt", alias="sortBy")
    sort_order: SortOrder = Field(default="desc", alias="sortOrder")
    page: int = Field(default=1, ge=1, alias="currentPage")
    page_size: int = Field(default=PAGE_SIZE_CHOICES[0], alias="pageSize")

    @field_validator("status")
    @classmethod
    def _check_status(cls, v: str) -> str:
        if v not in ("", ALL):
            DefectStatus(v)
        return v or ALL

    @field_validator("severity")
    @classmethod
    def _check_severity(cls, v: str) -> str:
        if v not in ("", ALL):
            DefectSeverity(v)
        return v or ALL

    @field_validator("reporter_id", "assignee_id")
    @classmethod
    def _default_person(cls, v: str) -> str:
        return v or ALL

    @field_validator("start_date", "end_date")
    @classmethod
    def _check_date(cls, v: str) -> str:
        if v:
            day_start(v)
        return v

    @field_validator("page_size")
    @classmethod
    def _check_page_size(cls, v: int) -> int:
        if v not in PAGE_SIZE_CHOICES:
            raise ValueError(f"page size must be one of {PAGE_SIZE_CHOICES}")
        return v

    def _evolve(self, **changes: Any) -> QueryState:
        # model_copy skips validation
        return QueryState.model_validate({**self.model_dump(), **changes})

    def with_filters(self, **changes: Any) -> QueryState:
        """Change filter fields; the page goes back to 1."""
        unknown = set(changes) - set(FILTER_FIELDS)
        if unknown:
            raise ValueError(f"Unknown filter field(s): {', '.join(sorted(unknown))}")
        return self._evolve(**changes, page=1)

    def with_sort(self, sort_by: str, sort_order: str | None = None) -> QueryState:
        """Change the sort key and/or direction; the page goes back to 1."""
        return self._evolve(sort_by=sort_by, sort_order=sort_order or self.sort_order, page=1)

    def toggled_sort(self, sort_by: str) -> QueryState:
        """Flip direction when re-selecting the current key, else sort descending by it."""
        if sort_by == self.sort_by:
            return self.with_sort(sort_by, "asc" if self.sort_order == "desc" else "desc")
        return self.with_sort(sort_by, "desc")

    def with_page_size(self, page_size: int) -> QueryState:
        return self._evolve(page_size=page_size, page=1)

    def with_page(self, page: int) -> QueryState:
        """Change only the page number."""
        return self._evolve(page=page)

    def reset_filters(self) -> QueryState:
        """Restore the neutral filters, keeping sort and page size."""
        neutral = DEFAULT_QUERY_STATE
        return self._evolve(**{name: getattr(neutral, name) for name in FILTER_FIELDS}, page=1)

    def active_filters(self) -> dict[str, str]:
        """Return filter fields that currently narrow the list."""
        neutral = DEFAULT_QUERY_STATE
        return {
            name: getattr(self, name)
            for name in FILTER_FIELDS
            if getattr(self, name) != getattr(neutral, name)
        }

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


DEFAULT_QUERY_STATE = QueryState()


def _keyed_by_alias(stored: dict[str, Any]) -> dict[str, Any]:
    """Rename field-name keys (``sort_by``) to their aliases; an alias key wins."""
    doc = dict(stored)
    for name, field in QueryState.model_fields.items():
        if field.alias and name in doc:
            doc.setdefault(field.alias, doc.pop(name))
    return doc


def merge_with_defaults(stored: dict[str, Any]) -> QueryState:
    """Overlay stored values on the defaults, dropping fields that fail validation.

    Keys may be camelCase aliases or Python field names.
    """
    defaults = DEFAULT_QUERY_STATE.to_document()
    merged = {**defaults, **_keyed_by_alias(stored)}
    try:
        return QueryState.model_validate(merged)
    except ValidationError as exc:
        bad = {str(err["loc"][0]) for err in exc.errors() if err["loc"]}
        logger.warning("Resetting invalid query state field(s) to defaults: %s", ", ".join(sorted(bad)))
        kept = {k: v for k, v in merged.items() if k not in bad}
        return QueryState.model_validate({**defaults, **kept})


def load_query_state(storage: KeyValueStorage) -> QueryState:
    """Load the persisted state: read, merge with defaults, validate."""
    try:
        raw = storage.get(QUERY_STATE_KEY)
        if raw is None:
            return DEFAULT_QUERY_STATE
        stored = json.loads(raw)
    except ValueError as exc:
        # JSONDecodeError and UnicodeDecodeError
        logger.warning("Discarding unreadable query state: %s", exc)
        return DEFAULT_QUERY_STATE
    if not isinstance(stored, dict):
        logger.warning("Discarding query state of type %s", type(stored).__name__)
        return DEFAULT_QUERY_STATE
    return merge_with_defaults(stored)


def save_query_state(storage: KeyValueStorage, state: QueryState) -> None:
    save_document(storage, QUERY_STATE_KEY, state.to_document())
