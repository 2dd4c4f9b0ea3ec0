from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from defect_seeker.core.app import DefectApp, open_app
from defect_seeker.core.models import Defect, DefectSeverity, DefectStatus
from defect_seeker.core.storage import MemoryStorage

NOW = datetime(2025, 12, 30, 12, 0, tzinfo=UTC)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def make_defect() -> Callable[..., Defect]:
    def _make(n: int, **overrides: Any) -> Defect:
        created = overrides.pop("created_at", NOW - timedelta(hours=n))
        fields: dict[str, Any] = {
            "id": f"DEF-{n}",
            "title": f"Defect number {n}",
            "description": "Steps to reproduce.",
            "status": DefectStatus.OPEN,
            "severity": DefectSeverity.MEDIUM,
            "category": "Functional",
            "reporter_id": "u2",
            "project_id": "p1",
            "created_at": created,
            "updated_at": created,
        }
        fields.update(overrides)
        return Defect(**fields)

    return _make


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def app(storage: MemoryStorage) -> DefectApp:
    """An app over in-memory storage holding the seed dataset, nobody signed in."""
    return open_app(storage)


@pytest.fixture
def sign_in(app: DefectApp) -> Callable[[str], None]:
    def _sign_in(email: str) -> None:
        app.store.login(email)

    return _sign_in
