from __future__ import annotations

from defect_seeker.core.selection import Selection


def test_toggle_flips_membership() -> None:
    sel = Selection()
    assert sel.toggle("DEF-1") is True
    assert "DEF-1" in sel
    assert sel.toggle("DEF-1") is False
    assert len(sel) == 0


def test_toggle_all_twice_restores_empty_selection() -> None:
    page = ["DEF-1", "DEF-2", "DEF-3"]
    sel = Selection()
    sel.toggle_all(page)
    assert sel.ids == frozenset(page)
    sel.toggle_all(page)
    assert len(sel) == 0


def test_toggle_all_with_partial_selection_selects_everything() -> None:
    page = ["DEF-1", "DEF-2"]
    sel = Selection(["DEF-1"])
    sel.toggle_all(page)
    assert sel.all_selected(page)


def test_toggle_all_leaves_other_pages_alone() -> None:
    sel = Selection(["DEF-9"])
    sel.toggle_all(["DEF-1"])
    sel.toggle_all(["DEF-1"])
    assert list(sel) == ["DEF-9"]


def test_retain_drops_ids_no_longer_visible() -> None:
    sel = Selection(["DEF-1", "DEF-2"])
    sel.retain(["DEF-2", "DEF-3"])
    assert list(sel) == ["DEF-2"]


def test_empty_page_is_never_all_selected() -> None:
    assert Selection(["DEF-1"]).all_selected([]) is False
