"""MCP resource registry.

Resources are addressable by URI and can be fetched by the MCP client on demand.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from mcp.server.fastmcp import FastMCP

from defect_seeker.core.app import DefectApp
from defect_seeker.core.predictor import SeverityPrediction
from defect_seeker.core.query_state import DEFAULT_QUERY_STATE, PAGE_SIZE_CHOICES
from defect_seeker.core.seed import CATEGORIES
from defect_seeker.core.sorting import SEVERITY_WEIGHTS, SORT_KEYS
from defect_seeker.core.storage import resolve_data_dir


def _render_defect(app: DefectApp, defect_id: str) -> str:
    """Render one defect as a plain-text report."""
    d = app.store.get_defect(defect_id)
    reporter = app.store.find_user(d.reporter_id)
    assignee = app.store.find_user(d.assignee_id)
    lines = [
        f"{d.id}: {d.title}",
        f"Status: {d.status.value}    Severity: {d.severity.value}    Category: {d.category}",
        f"Project: {d.project_id}",
        f"Reporter: {reporter.name if reporter else d.reporter_id}",
        f"Assignee: {assignee.name if assignee else 'Unassigned'}",
        f"Created: {d.created_at.isoformat()}    Updated: {d.updated_at.isoformat()}",
        "",
        d.description,
    ]
    if d.ai_reasoning:
        lines += ["", f"AI reasoning: {d.ai_reasoning}"]
    if d.comments:
        lines += ["", "Comments:"]
        lines += [f"- [{c.created_at.isoformat()}] {c.author_name}: {c.content}" for c in d.comments]
    return "\n".join(lines) + "\n"


def register_resources(mcp: FastMCP, get_app: Callable[[], DefectApp]) -> None:
    """Register resource handlers on the MCP server."""

    @mcp.resource("app://defect-seeker/help")
    def help_resource() -> str:
        """Return a short list of available resource URIs."""
        return (
            "Resources:\n"
            "- app://defect-seeker/help\n"
            "- app://defect-seeker/config/categories\n"
            "- app://defect-seeker/config/query-defaults\n"
            "- app://defect-seeker/schemas/severity-prediction\n"
            "- defect://{defect_id} (a defect with description and comments)\n"
            f"\nData directory: {resolve_data_dir()}\n"
        )

    @mcp.resource("app://defect-seeker/config/categories")
    def categories() -> list[str]:
        """Return the defect categories offered by the report form."""
        return list(CATEGORIES)

    @mcp.resource("app://defect-seeker/config/query-defaults")
    def query_defaults() -> dict[str, Any]:
        """Return the default inventory query and the accepted sort/paging values."""
        return {
            "defaults": DEFAULT_QUERY_STATE.to_document(),
            "sort_keys": list(SORT_KEYS),
            "page_sizes": list(PAGE_SIZE_CHOICES),
            "severity_weights": {s.value: w for s, w in SEVERITY_WEIGHTS.items()},
        }

    @mcp.resource("app://defect-seeker/schemas/severity-prediction")
    def prediction_schema() -> dict[str, Any]:
        """Return the JSON schema for severity predictions."""
        return SeverityPrediction.model_json_schema()

    @mcp.resource("defect://{defect_id}")
    def read_defect(defect_id: str) -> str:
        """Return one defect as text."""
        return _render_defect(get_app(), defect_id)
