"""Filter engine: narrow a defect list by the inventory's query state.

Seven independent predicates are combined with a logical AND. Each one matches
everything while its query-state value is the ``All`` sentinel or an empty string.
Input order is preserved; sorting happens afterwards.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import tzinfo

from .models import Defect
from .query_state import ALL, UNASSIGNED, QueryState
from .time_window import as_utc, resolve_date_bounds

DefectPredicate = Callable[[Defect], bool]


def _is_neutral(value: str) -> bool:
    return value in ("", ALL)


def build_predicates(state: QueryState, *, tz: tzinfo | None = None) -> list[DefectPredicate]:
    """Return the active predicates for ``state`` (neutral filters are omitted)."""
    preds: list[DefectPredicate] = []

    if not _is_neutral(state.status):
        status = state.status
        preds.append(lambda d: d.status.value == status)

    if not _is_neutral(state.severity):
        severity = state.severity
        preds.append(lambda d: d.severity.value == severity)

    if state.search:
        needle = state.search.lower()
        preds.append(lambda d: needle in d.title.lower() or needle in d.id.lower())

    if not _is_neutral(state.reporter_id):
        reporter = state.reporter_id
        preds.append(lambda d: d.reporter_id == reporter)

    if state.assignee_id == UNASSIGNED:
        preds.append(lambda d: not d.assignee_id)
    elif not _is_neutral(state.assignee_id):
        assignee = state.assignee_id
        preds.append(lambda d: d.assignee_id == assignee)

    since, until = resolve_date_bounds(state.start_date, state.end_date, tz=tz)
    if since is not None:
        preds.append(lambda d: as_utc(d.created_at) >= since)
    if until is not None:
        preds.append(lambda d: as_utc(d.created_at) <= until)

    return preds


def filter_defects(
    defects: Iterable[Defect],
    state: QueryState,
    *,
    tz: tzinfo | None = None,
) -> list[Defect]:
    """Return the defects passing every active predicate, in input order.

    Date bounds are calendar days in ``tz`` (process-local time by default); the end
    date includes the whole day.
    """
    preds = build_predicates(state, tz=tz)
    return [d for d in defects if all(p(d) for p in preds)]
