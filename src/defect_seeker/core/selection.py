"""Checked-row selection for bulk actions."""

from __future__ import annotations

from collections.abc import Iterable, Iterator


class Selection:
    """A set of selected defect ids. Never persisted."""

    def __init__(self, ids: Iterable[str] = ()) -> None:
        self._ids: set[str] = set(ids)

    def __contains__(self, defect_id: object) -> bool:
        return defect_id in self._ids

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._ids))

    def __len__(self) -> int:
        return len(self._ids)

    @property
    def ids(self) -> frozenset[str]:
        return frozenset(self._ids)

    def toggle(self, defect_id: str) -> bool:
        """Flip one id; return whether it is selected afterwards."""
        if defect_id in self._ids:
            self._ids.discard(defect_id)
            return False
        self._ids.add(defect_id)
        return True

    def all_selected(self, page_ids: Iterable[str]) -> bool:
        page = set(page_ids)
        return bool(page) and page <= self._ids

    def toggle_all(self, page_ids: Iterable[str]) -> None:
        """Clear the page's ids if all are selected, otherwise select them all.

        Ids outside ``page_ids`` are left alone.
        """
        page = set(page_ids)
        if page and page <= self._ids:
            self._ids -= page
        else:
            self._ids |= page

    def retain(self, visible_ids: Iterable[str]) -> None:
        """Drop ids that are no longer visible."""
        self._ids &= set(visible_ids)

    def clear(self) -> None:
        self._ids.clear()
