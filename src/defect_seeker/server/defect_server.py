"""MCP server entrypoint (stdio transport).

This module wires together:
- Tools: inventory queries, selection, bulk actions and record edits
- Resources: addressable data blobs (e.g., a defect via URI)
- Prompts: reusable conversation templates that clients can invoke

The server keeps one app instance (store, persisted view, selection) for the life of
the process; state is stored under DEFECT_SEEKER_DATA_DIR.

Run locally (stdio):
    python -m defect_seeker.server.defect_server
"""

from __future__ import annotations

import functools
import logging
import os
import sys
from collections.abc import Sequence
from typing import Any

from mcp.server.fastmcp import FastMCP

from defect_seeker.core.app import DefectApp, open_data_dir
from defect_seeker.prompts.registry import register_prompts
from defect_seeker.resources.registry import register_resources
from defect_seeker.tools import defects as impl

LOGGER = logging.getLogger(__name__)


def _configure_logging() -> None:
    """Configure a reasonable default logging setup.

    The MCP client typically captures stderr; keeping logs concise makes them easier to consume.
    """
    level_name = os.getenv("DEFECT_SEEKER_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@functools.cache
def get_app() -> DefectApp:
    """Open the process-wide app on first use."""
    return open_data_dir()


mcp = FastMCP("defect-seeker", json_response=True)

register_resources(mcp, get_app)
register_prompts(mcp)


@mcp.tool()
def login(email: str) -> dict[str, Any]:
    """Sign in as the user with this email. Returns the user and the sections their role sees."""
    return impl.login_impl(get_app(), email=email)


@mcp.tool()
def logout() -> dict[str, Any]:
    """Sign out the current user and clear the selection."""
    return impl.logout_impl(get_app())


@mcp.tool()
def register_user(
    name: str,
    email: str,
    password: str,
    confirm_password: str,
    accept_terms: bool,
    role: str = "QA Tester",
) -> dict[str, Any]:
    """Create an account and sign in as it."""
    return impl.register_impl(
        get_app(),
        name=name,
        email=email,
        role=role,
        password=password,
        confirm_password=confirm_password,
        accept_terms=accept_terms,
    )


@mcp.tool()
def update_profile(name: str | None = None, avatar: str | None = None) -> dict[str, Any]:
    """Change the signed-in user's display name or avatar URL."""
    return impl.update_profile_impl(get_app(), name=name, avatar=avatar)


@mcp.tool()
def list_defects(
    status: str | None = None,
    severity: str | None = None,
    search: str | None = None,
    reporter_id: str | None = None,
    assignee_id: str | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
    sort_by: str | None = None,
    sort_order: str | None = None,
    page: int | None = None,
    page_size: int | None = None,
) -> dict[str, Any]:
    """Return one page of the defect inventory.

    Parameters
    ----------
    status/severity:
        Exact status (Open, In Progress, Resolved, Closed, Reopened) or severity
        (Low, Medium, High, Critical); "All" clears the filter.
    search:
        Case-insensitive substring of the title or the defect id.
    reporter_id/assignee_id:
        User id, or "All". assignee_id also accepts "unassigned".
    start_date/end_date:
        Inclusive YYYY-MM-DD bounds on the creation date; "" clears a bound.
    sort_by/sort_order:
        createdAt | severity | status | title, and asc | desc.
    page/page_size:
        1-based page number; page size is one of 10, 25, 50.

    Omitted parameters keep the previously persisted values. Changing any filter,
    the sort or the page size returns to page 1 and clears the selection.

    Returns
    -------
    dict:
        {"page", "total_pages", "total_count", "has_previous", "has_next",
         "selected", "entries", "query", ...}
    """
    return impl.list_defects_impl(
        get_app(),
        status=status,
        severity=severity,
        search=search,
        reporter_id=reporter_id,
        assignee_id=assignee_id,
        start_date=start_date,
        end_date=end_date,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        page_size=page_size,
    )


@mcp.tool()
def reset_defect_filters() -> dict[str, Any]:
    """Clear all seven filters (sort and page size are kept) and return page 1."""
    return impl.reset_filters_impl(get_app())


@mcp.tool()
def toggle_defect_sort(sort_by: str) -> dict[str, Any]:
    """Sort by a column: re-selecting the active column flips the direction, a new column sorts descending."""
    return impl.toggle_sort_impl(get_app(), sort_by=sort_by)


@mcp.tool()
def get_defect(defect_id: str) -> dict[str, Any]:
    """Return a defect with description, AI reasoning and comments."""
    return impl.get_defect_impl(get_app(), defect_id=defect_id)


@mcp.tool()
def create_defect(
    title: str,
    description: str,
    category: str,
    severity: str = "Medium",
    project_id: str = "p1",
    assignee_id: str | None = None,
    ai_reasoning: str | None = None,
    predicted_severity: str | None = None,
) -> dict[str, Any]:
    """Log a new defect as the signed-in user (QA Tester, Project Manager or Admin).

    Call predict_severity first to obtain a suggested severity and reasoning.
    """
    return impl.create_defect_impl(
        get_app(),
        title=title,
        description=description,
        category=category,
        severity=severity,
        project_id=project_id,
        assignee_id=assignee_id,
        ai_reasoning=ai_reasoning,
        predicted_severity=predicted_severity,
    )


@mcp.tool()
def update_defect_status(defect_id: str, status: str) -> dict[str, Any]:
    """Set the status of one defect."""
    return impl.update_status_impl(get_app(), defect_id=defect_id, status=status)


@mcp.tool()
def assign_defect(defect_id: str, assignee_id: str | None = None) -> dict[str, Any]:
    """Assign a defect to a user, or unassign it when assignee_id is omitted."""
    return impl.assign_defect_impl(get_app(), defect_id=defect_id, assignee_id=assignee_id)


@mcp.tool()
def add_comment(defect_id: str, content: str) -> dict[str, Any]:
    """Append a comment to a defect's discussion as the signed-in user."""
    return impl.add_comment_impl(get_app(), defect_id=defect_id, content=content)


@mcp.tool()
def select_defects(defect_ids: Sequence[str]) -> dict[str, Any]:
    """Toggle the selection of rows on the current page."""
    return impl.toggle_selection_impl(get_app(), defect_ids=list(defect_ids))


@mcp.tool()
def toggle_page_selection() -> dict[str, Any]:
    """Select every row on the current page, or clear them if all are selected."""
    return impl.toggle_page_selection_impl(get_app())


@mcp.tool()
def bulk_update_status(status: str) -> dict[str, Any]:
    """Apply a status to every selected defect, then clear the selection."""
    return impl.bulk_update_status_impl(get_app(), status=status)


@mcp.tool()
def bulk_delete_defects(confirm: bool = False) -> dict[str, Any]:
    """Permanently delete the selected defects (Project Manager or Admin).

    Pass confirm=true only after the user explicitly agreed; otherwise nothing changes.
    """
    return impl.bulk_delete_impl(get_app(), confirm=confirm)


@mcp.tool()
def delete_defect(defect_id: str, confirm: bool = False) -> dict[str, Any]:
    """Permanently delete one defect (Project Manager or Admin) after confirmation."""
    return impl.delete_defect_impl(get_app(), defect_id=defect_id, confirm=confirm)


@mcp.tool()
async def predict_severity(title: str, description: str, category: str) -> dict[str, Any]:
    """Suggest a severity and a short rationale for a defect draft.

    Falls back to Medium with a fixed "unavailable" reasoning when the model cannot
    be reached or answers badly.
    """
    return await impl.predict_severity_impl(title=title, description=description, category=category)


@mcp.tool()
def dashboard_stats() -> dict[str, Any]:
    """Counts by status, severity, category and project, plus a 7-day creation trend."""
    return impl.dashboard_stats_impl(get_app())


@mcp.tool()
async def export_defects(path: str, fmt: str = "csv", scope: str = "view") -> dict[str, Any]:
    """Write the current filtered view (scope="view") or every defect (scope="all") to a file."""
    return await impl.export_defects_impl(get_app(), path=path, fmt=fmt, scope=scope)


@mcp.tool()
def list_projects() -> list[dict[str, Any]]:
    """List projects."""
    return impl.list_projects_impl(get_app())


@mcp.tool()
def list_users(search: str = "") -> list[dict[str, Any]]:
    """List users whose name, email or role contains the search text."""
    return impl.list_users_impl(get_app(), search=search)


@mcp.tool()
def update_user_role(user_id: str, role: str) -> dict[str, Any]:
    """Change a user's role (Project Manager or Admin)."""
    return impl.update_user_role_impl(get_app(), user_id=user_id, role=role)


@mcp.tool()
def delete_user(user_id: str) -> dict[str, Any]:
    """Remove a user (Project Manager or Admin). You cannot remove yourself."""
    return impl.delete_user_impl(get_app(), user_id=user_id)


@mcp.tool()
def list_notifications(unread_only: bool = False) -> list[dict[str, Any]]:
    """Notifications addressed to the signed-in user or to everyone."""
    return impl.list_notifications_impl(get_app(), unread_only=unread_only)


@mcp.tool()
def mark_notification_read(notification_id: str) -> dict[str, Any]:
    """Mark one notification as read."""
    return impl.mark_notification_read_impl(get_app(), notification_id=notification_id)


def main(argv: Sequence[str] | None = None) -> None:
    """Start the MCP server over stdio."""
    _configure_logging()
    LOGGER.debug("Starting MCP server (transport=stdio)")
    _ = argv or sys.argv[1:]
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
