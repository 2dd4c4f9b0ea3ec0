"""Aggregates behind the dashboard and report screens."""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, tzinfo

from .models import Defect, DefectSeverity, DefectStatus
from .time_window import local_tz

ACTIVE_STATUSES = frozenset({DefectStatus.OPEN, DefectStatus.IN_PROGRESS, DefectStatus.REOPENED})
HIGH_PRIORITY = frozenset({DefectSeverity.HIGH, DefectSeverity.CRITICAL})
TREND_DAYS = 7


@dataclass(frozen=True, slots=True)
class DashboardStats:
    total: int
    active_issues: int
    high_priority: int
    by_status: dict[str, int]
    by_severity: dict[str, int]
    by_category: dict[str, int]
    by_project: dict[str, int]
    # ISO date -> defects created that day, oldest first
    trend: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        return {
            "total": self.total,
            "active_issues": self.active_issues,
            "high_priority": self.high_priority,
            "by_status": self.by_status,
            "by_severity": self.by_severity,
            "by_category": self.by_category,
            "by_project": self.by_project,
            "trend": self.trend,
        }


def _trend(defects: Sequence[Defect], now: datetime, tz: tzinfo) -> dict[str, int]:
    today = now.astimezone(tz).date()
    days = [today - timedelta(days=offset) for offset in range(TREND_DAYS - 1, -1, -1)]
    created: Counter[date] = Counter(d.created_at.astimezone(tz).date() for d in defects)
    return {day.isoformat(): created.get(day, 0) for day in days}


def dashboard_stats(
    defects: Sequence[Defect],
    *,
    now: datetime,
    tz: tzinfo | None = None,
) -> DashboardStats:
    """Compute counts for the dashboard tiles and charts."""
    tz = tz or local_tz()
    status_counts = Counter(d.status for d in defects)
    severity_counts = Counter(d.severity for d in defects)

    by_category: dict[str, int] = {}
    by_project: dict[str, int] = {}
    for d in defects:
        by_category[d.category] = by_category.get(d.category, 0) + 1
        by_project[d.project_id] = by_project.get(d.project_id, 0) + 1

    return DashboardStats(
        total=len(defects),
        active_issues=sum(status_counts[s] for s in ACTIVE_STATUSES),
        high_priority=sum(severity_counts[s] for s in HIGH_PRIORITY),
        by_status={s.value: status_counts[s] for s in DefectStatus},
        by_severity={s.value: severity_counts[s] for s in DefectSeverity},
        by_category=by_category,
        by_project=by_project,
        trend=_trend(defects, now, tz),
    )
