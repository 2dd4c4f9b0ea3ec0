from __future__ import annotations

from datetime import UTC, datetime

from defect_seeker.core.filtering import build_predicates, filter_defects
from defect_seeker.core.models import DefectSeverity, DefectStatus
from defect_seeker.core.query_state import DEFAULT_QUERY_STATE


def test_neutral_state_keeps_everything_in_order(make_defect) -> None:
    defects = [make_defect(n) for n in (3, 1, 2)]
    assert build_predicates(DEFAULT_QUERY_STATE) == []
    assert filter_defects(defects, DEFAULT_QUERY_STATE) == defects


def test_status_and_severity_are_exact_matches(make_defect) -> None:
    defects = [
        make_defect(1, status=DefectStatus.OPEN, severity=DefectSeverity.HIGH),
        make_defect(2, status=DefectStatus.CLOSED, severity=DefectSeverity.HIGH),
        make_defect(3, status=DefectStatus.OPEN, severity=DefectSeverity.LOW),
    ]
    state = DEFAULT_QUERY_STATE.with_filters(status="Open", severity="High")
    assert [d.id for d in filter_defects(defects, state)] == ["DEF-1"]


def test_search_matches_title_or_id_case_insensitively(make_defect) -> None:
    defects = [
        make_defect(1, title="Login button broken"),
        make_defect(2, title="Slow report"),
        make_defect(42, title="Other"),
    ]
    by_title = DEFAULT_QUERY_STATE.with_filters(search="LOGIN")
    assert [d.id for d in filter_defects(defects, by_title)] == ["DEF-1"]

    by_id = DEFAULT_QUERY_STATE.with_filters(search="def-42")
    assert [d.id for d in filter_defects(defects, by_id)] == ["DEF-42"]


def test_reporter_filter(make_defect) -> None:
    defects = [make_defect(1, reporter_id="u2"), make_defect(2, reporter_id="u1")]
    state = DEFAULT_QUERY_STATE.with_filters(reporter_id="u1")
    assert [d.id for d in filter_defects(defects, state)] == ["DEF-2"]


def test_assignee_filter_and_unassigned_sentinel(make_defect) -> None:
    defects = [
        make_defect(1, assignee_id="u3"),
        make_defect(2, assignee_id=None),
        make_defect(3, assignee_id="u1"),
    ]
    assigned = DEFAULT_QUERY_STATE.with_filters(assignee_id="u3")
    assert [d.id for d in filter_defects(defects, assigned)] == ["DEF-1"]

    unassigned = DEFAULT_QUERY_STATE.with_filters(assignee_id="unassigned")
    assert [d.id for d in filter_defects(defects, unassigned)] == ["DEF-2"]


def test_end_date_includes_the_whole_day(make_defect) -> None:
    late = make_defect(1, created_at=datetime(2025, 12, 30, 23, 30, tzinfo=UTC))
    next_day = make_defect(2, created_at=datetime(2025, 12, 31, 0, 0, tzinfo=UTC))
    state = DEFAULT_QUERY_STATE.with_filters(end_date="2025-12-30")
    assert [d.id for d in filter_defects([late, next_day], state, tz=UTC)] == ["DEF-1"]


def test_start_date_is_inclusive(make_defect) -> None:
    midnight = make_defect(1, created_at=datetime(2025, 12, 30, 0, 0, tzinfo=UTC))
    before = make_defect(2, created_at=datetime(2025, 12, 29, 23, 59, 59, tzinfo=UTC))
    state = DEFAULT_QUERY_STATE.with_filters(start_date="2025-12-30")
    assert [d.id for d in filter_defects([midnight, before], state, tz=UTC)] == ["DEF-1"]


def test_filters_combine_with_and(make_defect) -> None:
    defects = [
        make_defect(1, status=DefectStatus.OPEN, assignee_id="u3", title="Crash on save"),
        make_defect(2, status=DefectStatus.OPEN, assignee_id=None, title="Crash on load"),
        make_defect(3, status=DefectStatus.CLOSED, assignee_id="u3", title="Crash on exit"),
    ]
    state = DEFAULT_QUERY_STATE.with_filters(status="Open", assignee_id="u3", search="crash")
    assert [d.id for d in filter_defects(defects, state)] == ["DEF-1"]
