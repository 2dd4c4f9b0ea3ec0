"""Export defect lists to CSV or JSON files."""

from __future__ import annotations

import csv
import io
import json
from collections.abc import Mapping, Sequence
from pathlib import Path

import aiofiles

from .models import Defect, User
from .time_window import format_iso_dt

CSV_COLUMNS = (
    "id",
    "title",
    "status",
    "severity",
    "category",
    "project",
    "reporter",
    "assignee",
    "created_at",
    "updated_at",
    "comments",
)
EXPORT_FORMATS = ("csv", "json")


def _csv_text(defects: Sequence[Defect], users: Mapping[str, User]) -> str:
    def name(user_id: str | None) -> str:
        if not user_id:
            return ""
        user = users.get(user_id)
        return user.name if user else user_id

    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(CSV_COLUMNS)
    for d in defects:
        writer.writerow(
            [
                d.id,
                d.title,
                d.status.value,
                d.severity.value,
                d.category,
                d.project_id,
                name(d.reporter_id),
                name(d.assignee_id),
                format_iso_dt(d.created_at),
                format_iso_dt(d.updated_at),
                len(d.comments),
            ]
        )
    return buf.getvalue()


async def export_defects(
    defects: Sequence[Defect],
    path: str | Path,
    *,
    fmt: str = "csv",
    users: Sequence[User] = (),
) -> int:
    """Write ``defects`` to ``path``; return the number of records written."""
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"Unknown export format '{fmt}'. Valid values: {', '.join(EXPORT_FORMATS)}.")
    if fmt == "csv":
        text = _csv_text(defects, {u.id: u for u in users})
    else:
        text = json.dumps([d.to_dict() for d in defects], indent=2, ensure_ascii=False) + "\n"

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    async with aiofiles.open(path, mode="w", encoding="utf-8", newline="") as f:
        await f.write(text)
    return len(defects)
