"""Defect inventory view: persisted query state, selection and bulk actions.

Each render derives the visible page as filter -> sort -> paginate over the store.
Query-state changes are written to storage immediately. The selection is cleared
whenever the query state changes (including page navigation), so a bulk action
only ever touches rows the user could see when selecting them.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import tzinfo
from typing import Any

from .errors import ActionNotPermittedError
from .filtering import filter_defects
from .models import Defect, DefectStatus, User
from .pagination import paginate
from .permissions import require
from .query_state import QueryState, load_query_state, save_query_state
from .selection import Selection
from .sorting import sort_defects
from .storage import KeyValueStorage
from .store import DefectStore

logger = logging.getLogger(__name__)

ConfirmCallback = Callable[[int], bool]


@dataclass(frozen=True, slots=True)
class PageView:
    """The rows on the current page plus what navigation controls need."""

    items: list[Defect]
    page: int
    page_size: int
    total_pages: int
    total_count: int

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def ids(self) -> list[str]:
        return [d.id for d in self.items]


def derive_page(
    defects: Sequence[Defect],
    state: QueryState,
    *,
    tz: tzinfo | None = None,
) -> PageView:
    """Run the filter -> sort -> paginate pipeline for ``state``."""
    filtered = filter_defects(defects, state, tz=tz)
    ordered = sort_defects(filtered, state.sort_by, state.sort_order)
    page = paginate(ordered, state.page, state.page_size)
    return PageView(
        items=page.items,
        page=state.page,
        page_size=state.page_size,
        total_pages=page.total_pages,
        total_count=len(ordered),
    )


class InventoryView:
    def __init__(
        self,
        store: DefectStore,
        storage: KeyValueStorage | None = None,
        *,
        tz: tzinfo | None = None,
    ) -> None:
        self.store = store
        self.storage = storage if storage is not None else store.storage
        self.tz = tz
        self.selection = Selection()
        self._state = load_query_state(self.storage)

    @property
    def state(self) -> QueryState:
        return self._state

    def _set_state(self, state: QueryState) -> QueryState:
        self._state = state
        self.selection.clear()
        save_query_state(self.storage, state)
        return state

    # ---- query state -------------------------------------------------------

    def update_filters(self, **changes: Any) -> QueryState:
        return self._set_state(self._state.with_filters(**changes))

    def reset_filters(self) -> QueryState:
        return self._set_state(self._state.reset_filters())

    def set_sort(self, sort_by: str, sort_order: str | None = None) -> QueryState:
        return self._set_state(self._state.with_sort(sort_by, sort_order))

    def toggle_sort(self, sort_by: str) -> QueryState:
        return self._set_state(self._state.toggled_sort(sort_by))

    def set_page_size(self, page_size: int) -> QueryState:
        return self._set_state(self._state.with_page_size(page_size))

    def go_to_page(self, page: int) -> QueryState:
        return self._set_state(self._state.with_page(page))

    def current_page(self) -> PageView:
        """Derive the visible rows and drop selected ids that are not on them."""
        view = derive_page(self.store.defects, self._state, tz=self.tz)
        self.selection.retain(view.ids)
        return view

    # ---- selection ---------------------------------------------------------

    def toggle(self, defect_id: str) -> bool:
        return self.selection.toggle(defect_id)

    def toggle_all(self) -> None:
        self.selection.toggle_all(self.current_page().ids)

    # ---- bulk actions ------------------------------------------------------

    def bulk_update_status(self, actor: User | None, status: DefectStatus) -> list[Defect]:
        """Apply ``status`` to every selected defect, then clear the selection."""
        if actor is None:
            raise ActionNotPermittedError("Sign in first.")
        if not self.selection:
            return []
        changed = self.store.bulk_update_status(self.selection.ids, status)
        self.selection.clear()
        return changed

    def bulk_delete(self, actor: User | None, confirm: ConfirmCallback) -> int:
        """Delete every selected defect after ``confirm(count)`` agrees.

        Declining leaves records and selection untouched.
        """
        require(actor, "delete_defect")
        count = len(self.selection)
        if not count:
            return 0
        if not confirm(count):
            logger.debug("Bulk delete of %d defect(s) declined", count)
            return 0
        removed = self.store.bulk_delete(self.selection.ids)
        self.selection.clear()
        return removed

    def delete_one(self, actor: User | None, defect_id: str, confirm: ConfirmCallback) -> bool:
        """Delete a single defect after confirmation; return whether it was removed."""
        require(actor, "delete_defect")
        self.store.get_defect(defect_id)
        if not confirm(1):
            return False
        self.store.delete_defect(defect_id)
        self.selection.retain(self.selection.ids - {defect_id})
        return True
