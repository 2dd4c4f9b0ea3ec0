from __future__ import annotations

import json
from datetime import UTC, datetime

import pytest

from defect_seeker.core.errors import ActionNotPermittedError
from defect_seeker.core.inventory import InventoryView, derive_page
from defect_seeker.core.models import DefectSeverity, DefectStatus
from defect_seeker.core.query_state import DEFAULT_QUERY_STATE, load_query_state
from defect_seeker.core.storage import DEFECTS_KEY, MemoryStorage
from defect_seeker.core.store import DefectStore


@pytest.fixture
def view(now, make_defect) -> InventoryView:
    """24 Open defects DEF-1..DEF-24, newest first by number."""
    defects = [make_defect(n) for n in range(1, 25)]
    storage = MemoryStorage({DEFECTS_KEY: json.dumps([d.to_dict() for d in defects])})
    store = DefectStore(storage, clock=lambda: now)
    return InventoryView(store, tz=UTC)


def _sign_in(view: InventoryView, email: str):
    return view.store.login(email)


def test_derive_page_reports_navigation(make_defect) -> None:
    defects = [make_defect(n) for n in range(1, 13)]
    page = derive_page(defects, DEFAULT_QUERY_STATE.with_page(2), tz=UTC)
    assert page.total_pages == 2
    assert page.total_count == 12
    assert page.ids == ["DEF-11", "DEF-12"]
    assert page.has_previous and not page.has_next


def test_open_filter_sorted_by_severity(make_defect) -> None:
    sevs = [DefectSeverity.LOW, DefectSeverity.CRITICAL, DefectSeverity.HIGH, DefectSeverity.MEDIUM]
    defects = [make_defect(n, severity=sevs[n % 4]) for n in range(1, 9)]
    defects += [make_defect(n, status=DefectStatus.CLOSED, severity=DefectSeverity.CRITICAL) for n in range(9, 13)]
    state = DEFAULT_QUERY_STATE.with_filters(status="Open").with_sort("severity", "desc")

    page = derive_page(defects, state, tz=UTC)

    assert page.total_count == 8
    assert [d.severity for d in page.items[:2]] == [DefectSeverity.CRITICAL, DefectSeverity.CRITICAL]
    assert [d.severity for d in page.items[-2:]] == [DefectSeverity.LOW, DefectSeverity.LOW]


def test_state_changes_are_persisted(view: InventoryView) -> None:
    view.update_filters(search="DEF-1")
    view.set_sort("title", "asc")
    assert load_query_state(view.storage) == view.state
    assert view.state.search == "DEF-1"
    assert view.state.sort_by == "title"


def test_restored_view_resumes_persisted_state(view: InventoryView) -> None:
    view.go_to_page(2)
    again = InventoryView(view.store, view.storage, tz=UTC)
    assert again.state.page == 2
    assert again.current_page().ids[0] == "DEF-11"


def test_selection_cleared_on_page_change(view: InventoryView) -> None:
    view.toggle_all()
    assert len(view.selection) == 10
    view.go_to_page(2)
    assert len(view.selection) == 0


def test_selection_cleared_on_filter_change(view: InventoryView) -> None:
    view.toggle("DEF-1")
    view.update_filters(severity="Medium")
    assert len(view.selection) == 0


def test_current_page_keeps_selection_of_visible_rows(view: InventoryView) -> None:
    view.toggle("DEF-1")
    view.toggle("DEF-99")
    view.current_page()
    assert list(view.selection) == ["DEF-1"]


def test_bulk_update_status_applies_to_selection(view: InventoryView) -> None:
    _sign_in(view, "charlie@defectseeker.pro")
    for defect_id in ("DEF-2", "DEF-4", "DEF-6"):
        view.toggle(defect_id)

    changed = view.bulk_update_status(view.store.current_user, DefectStatus.RESOLVED)

    assert sorted(d.id for d in changed) == ["DEF-2", "DEF-4", "DEF-6"]
    assert len(view.selection) == 0
    resolved = [d.id for d in view.store.defects if d.status is DefectStatus.RESOLVED]
    assert sorted(resolved) == ["DEF-2", "DEF-4", "DEF-6"]


def test_bulk_update_with_empty_selection_is_a_no_op(view: InventoryView) -> None:
    actor = _sign_in(view, "bob@defectseeker.pro")
    assert view.bulk_update_status(actor, DefectStatus.CLOSED) == []


def test_bulk_update_requires_sign_in(view: InventoryView) -> None:
    view.toggle("DEF-1")
    with pytest.raises(ActionNotPermittedError):
        view.bulk_update_status(None, DefectStatus.CLOSED)


def test_bulk_delete_confirmed(view: InventoryView) -> None:
    actor = _sign_in(view, "alice@defectseeker.pro")
    view.toggle("DEF-1")
    view.toggle("DEF-2")
    asked: list[int] = []

    removed = view.bulk_delete(actor, lambda count: asked.append(count) or True)

    assert removed == 2
    assert asked == [2]
    assert view.store.find_defect("DEF-1") is None
    assert len(view.selection) == 0


def test_bulk_delete_declined_changes_nothing(view: InventoryView) -> None:
    actor = _sign_in(view, "admin@defectseeker.pro")
    view.toggle("DEF-1")
    assert view.bulk_delete(actor, lambda count: False) == 0
    assert view.store.find_defect("DEF-1") is not None
    assert list(view.selection) == ["DEF-1"]


def test_bulk_delete_with_empty_selection_does_not_ask(view: InventoryView) -> None:
    actor = _sign_in(view, "admin@defectseeker.pro")

    def never(count: int) -> bool:
        raise AssertionError("confirmation should not be requested")

    assert view.bulk_delete(actor, never) == 0


@pytest.mark.parametrize("email", ["bob@defectseeker.pro", "charlie@defectseeker.pro"])
def test_bulk_delete_hidden_from_qa_and_developers(view: InventoryView, email: str) -> None:
    actor = _sign_in(view, email)
    view.toggle("DEF-1")
    with pytest.raises(ActionNotPermittedError):
        view.bulk_delete(actor, lambda count: True)
    assert view.store.find_defect("DEF-1") is not None


def test_delete_one(view: InventoryView) -> None:
    actor = _sign_in(view, "alice@defectseeker.pro")
    view.toggle("DEF-3")
    assert view.delete_one(actor, "DEF-3", lambda count: count == 1) is True
    assert view.store.find_defect("DEF-3") is None
    assert "DEF-3" not in view.selection
    assert view.delete_one(actor, "DEF-4", lambda count: False) is False


def test_current_page_with_naive_timestamp(view: InventoryView, make_defect) -> None:
    view.store.add_defect(make_defect(999, created_at=datetime(2025, 1, 1)))
    page = view.current_page()
    assert page.total_count == 25
    assert page.ids[0] == "DEF-1"
