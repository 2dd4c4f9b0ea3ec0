"""Tool implementations for the defect inventory.

This module contains the *implementation* behind the exposed MCP tools and CLI
commands. Keep this layer thin: validate inputs, translate them into core calls, and
return JSON-serializable data structures. Role gating lives here, at the same layer
that decides which actions a user is offered.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

from defect_seeker.core.app import DefectApp
from defect_seeker.core.errors import ActionNotPermittedError
from defect_seeker.core.export import export_defects
from defect_seeker.core.filtering import filter_defects
from defect_seeker.core.inventory import PageView
from defect_seeker.core.models import Defect, DefectStatus, User, UserRole
from defect_seeker.core.permissions import can_delete_defects, navigation_for, require
from defect_seeker.core.predictor import predict_severity
from defect_seeker.core.sorting import sort_defects
from defect_seeker.core.stats import dashboard_stats
from defect_seeker.core.time_window import format_iso_dt
from defect_seeker.core.validation import DefectDraft, RegistrationForm

ALL_STATUSES = [s.value for s in DefectStatus]


def _actor(app: DefectApp) -> User:
    user = app.store.current_user
    if user is None:
        raise ActionNotPermittedError("Sign in first.")
    return user


def _parse_status(status: str) -> DefectStatus:
    """Parse a status name case-insensitively."""
    wanted = status.strip().lower()
    for s in DefectStatus:
        if s.value.lower() == wanted:
            return s
    valid = ", ".join(ALL_STATUSES)
    raise ValueError(f"Unknown status '{status}'. Valid values: {valid}.")


def _user_to_dict(user: User) -> dict[str, Any]:
    d = user.to_dict()
    d["navigation"] = navigation_for(user.role)
    d["can_delete_defects"] = can_delete_defects(user.role)
    return d


def _defect_to_dict(app: DefectApp, defect: Defect, *, detail: bool = False) -> dict[str, Any]:
    """Convert a Defect into a JSON-serializable dict."""
    reporter = app.store.find_user(defect.reporter_id)
    assignee = app.store.find_user(defect.assignee_id)
    d: dict[str, Any] = {
        "id": defect.id,
        "title": defect.title,
        "status": defect.status.value,
        "severity": defect.severity.value,
        "category": defect.category,
        "project_id": defect.project_id,
        "reporter": reporter.name if reporter else defect.reporter_id,
        "assignee": assignee.name if assignee else None,
        "created_at": format_iso_dt(defect.created_at),
        "updated_at": format_iso_dt(defect.updated_at),
    }
    if detail:
        d["description"] = defect.description
        d["ai_reasoning"] = defect.ai_reasoning
        d["predicted_severity"] = defect.predicted_severity.value if defect.predicted_severity else None
        d["comments"] = [c.to_dict() for c in defect.comments]
    return d


def _page_to_dict(app: DefectApp, view: PageView) -> dict[str, Any]:
    return {
        "query": app.view.state.to_document(),
        "active_filters": app.view.state.active_filters(),
        "page": view.page,
        "page_size": view.page_size,
        "total_pages": view.total_pages,
        "total_count": view.total_count,
        "store_count": len(app.store.defects),
        "has_previous": view.has_previous,
        "has_next": view.has_next,
        "selected": list(app.view.selection),
        "entries": [_defect_to_dict(app, d) for d in view.items],
    }


# ---- session ---------------------------------------------------------------


def login_impl(app: DefectApp, *, email: str) -> dict[str, Any]:
    return _user_to_dict(app.store.login(email))


def logout_impl(app: DefectApp) -> dict[str, Any]:
    app.store.logout()
    app.view.selection.clear()
    return {"signed_in": False}


def register_impl(app: DefectApp, **form: Any) -> dict[str, Any]:
    return _user_to_dict(app.store.register(RegistrationForm(**form)))


def update_profile_impl(app: DefectApp, *, name: str | None = None, avatar: str | None = None) -> dict[str, Any]:
    _actor(app)
    return _user_to_dict(app.store.update_profile(name=name, avatar=avatar))


# ---- inventory view ----------------------------------------------------------


def list_defects_impl(
    app: DefectApp,
    *,
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
    """Apply any given view changes to the persisted query state and return the page.

    Omitted arguments keep their persisted values, so a bare call resumes the
    previous view. Filter, sort and page-size changes send the view back to page 1
    before ``page`` is applied.
    """
    filters = {
        name: value
        for name, value in (
            ("status", status),
            ("severity", severity),
            ("search", search),
            ("reporter_id", reporter_id),
            ("assignee_id", assignee_id),
            ("start_date", start_date),
            ("end_date", end_date),
        )
        if value is not None
    }
    view = app.view
    if filters:
        view.update_filters(**filters)
    if sort_by is not None or sort_order is not None:
        view.set_sort(sort_by or view.state.sort_by, sort_order)
    if page_size is not None:
        view.set_page_size(page_size)
    if page is not None:
        view.go_to_page(page)
    return _page_to_dict(app, view.current_page())


def reset_filters_impl(app: DefectApp) -> dict[str, Any]:
    app.view.reset_filters()
    return _page_to_dict(app, app.view.current_page())


def toggle_sort_impl(app: DefectApp, *, sort_by: str) -> dict[str, Any]:
    """Column-header behaviour: flip the direction of the active key, else sort by ``sort_by`` descending."""
    app.view.toggle_sort(sort_by)
    return _page_to_dict(app, app.view.current_page())


def toggle_selection_impl(app: DefectApp, *, defect_ids: Sequence[str]) -> dict[str, Any]:
    """Toggle individual rows on the current page."""
    on_page = set(app.view.current_page().ids)
    missing = [i for i in defect_ids if i not in on_page]
    if missing:
        raise ValueError(f"Not on the current page: {', '.join(missing)}")
    for defect_id in defect_ids:
        app.view.toggle(defect_id)
    return {"selected": list(app.view.selection)}


def toggle_page_selection_impl(app: DefectApp) -> dict[str, Any]:
    app.view.toggle_all()
    return {"selected": list(app.view.selection)}


def bulk_update_status_impl(app: DefectApp, *, status: str) -> dict[str, Any]:
    target = _parse_status(status)
    changed = app.view.bulk_update_status(_actor(app), target)
    return {"updated": [d.id for d in changed], "status": target.value}


def bulk_delete_impl(app: DefectApp, *, confirm: bool) -> dict[str, Any]:
    """Delete the selection; ``confirm=False`` stands for a declined confirmation."""
    removed = app.view.bulk_delete(_actor(app), lambda _count: confirm)
    return {"deleted": removed, "confirmed": confirm, "selected": list(app.view.selection)}


def delete_defect_impl(app: DefectApp, *, defect_id: str, confirm: bool) -> dict[str, Any]:
    removed = app.view.delete_one(_actor(app), defect_id, lambda _count: confirm)
    return {"deleted": defect_id if removed else None, "confirmed": confirm}


# ---- single records --------------------------------------------------------------


def get_defect_impl(app: DefectApp, *, defect_id: str) -> dict[str, Any]:
    return _defect_to_dict(app, app.store.get_defect(defect_id), detail=True)


def create_defect_impl(
    app: DefectApp,
    *,
    title: str,
    description: str,
    category: str,
    severity: str = "Medium",
    project_id: str = "p1",
    assignee_id: str | None = None,
    ai_reasoning: str | None = None,
    predicted_severity: str | None = None,
) -> dict[str, Any]:
    actor = require(app.store.current_user, "create_defect")
    draft = DefectDraft(
        title=title,
        description=description,
        category=category,
        severity=severity,
        project_id=project_id,
        assignee_id=assignee_id,
        ai_reasoning=ai_reasoning,
        predicted_severity=predicted_severity,
    )
    if app.store.get_project(draft.project_id) is None:
        raise ValueError(f"Unknown project: {draft.project_id}")
    defect = app.store.create_defect(draft, actor)
    return _defect_to_dict(app, defect, detail=True)


def update_status_impl(app: DefectApp, *, defect_id: str, status: str) -> dict[str, Any]:
    _actor(app)
    return _defect_to_dict(app, app.store.update_status(defect_id, _parse_status(status)), detail=True)


def assign_defect_impl(app: DefectApp, *, defect_id: str, assignee_id: str | None) -> dict[str, Any]:
    _actor(app)
    if assignee_id and app.store.find_user(assignee_id) is None:
        raise ValueError(f"Unknown user: {assignee_id}")
    return _defect_to_dict(app, app.store.assign(defect_id, assignee_id), detail=True)


def add_comment_impl(app: DefectApp, *, defect_id: str, content: str) -> dict[str, Any]:
    return app.store.add_comment(defect_id, _actor(app), content).to_dict()


async def predict_severity_impl(*, title: str, description: str, category: str) -> dict[str, Any]:
    prediction = await predict_severity(title, description, category)
    return prediction.model_dump(mode="json")


# ---- reports, directory, notifications ------------------------------------------


def dashboard_stats_impl(app: DefectApp) -> dict[str, Any]:
    return dashboard_stats(app.store.defects, now=datetime.now(UTC), tz=app.view.tz).to_dict()


async def export_defects_impl(
    app: DefectApp,
    *,
    path: str,
    fmt: str = "csv",
    scope: str = "view",
) -> dict[str, Any]:
    """Export the filtered, sorted view (all pages) or the whole store."""
    if scope == "view":
        state = app.view.state
        defects = sort_defects(
            filter_defects(app.store.defects, state, tz=app.view.tz),
            state.sort_by,
            state.sort_order,
        )
    elif scope == "all":
        defects = list(app.store.defects)
    else:
        raise ValueError("scope must be 'view' or 'all'")
    count = await export_defects(defects, path, fmt=fmt, users=app.store.users)
    return {"path": path, "format": fmt, "count": count}


def list_projects_impl(app: DefectApp) -> list[dict[str, Any]]:
    return [p.to_dict() for p in app.store.projects]


def list_users_impl(app: DefectApp, *, search: str = "") -> list[dict[str, Any]]:
    return [u.to_dict() for u in app.store.search_users(search)]


def update_user_role_impl(app: DefectApp, *, user_id: str, role: str) -> dict[str, Any]:
    require(app.store.current_user, "manage_personnel")
    try:
        new_role = UserRole(role)
    except ValueError as e:
        valid = ", ".join(r.value for r in UserRole)
        raise ValueError(f"Unknown role '{role}'. Valid values: {valid}.") from e
    return app.store.update_user_role(user_id, new_role).to_dict()


def delete_user_impl(app: DefectApp, *, user_id: str) -> dict[str, Any]:
    require(app.store.current_user, "manage_personnel")
    app.store.delete_user(user_id)
    return {"deleted": user_id}


def list_notifications_impl(app: DefectApp, *, unread_only: bool = False) -> list[dict[str, Any]]:
    notes = app.store.notifications_for(_actor(app))
    return [n.to_dict() for n in notes if not (unread_only and n.read)]


def mark_notification_read_impl(app: DefectApp, *, notification_id: str) -> dict[str, Any]:
    _actor(app)
    app.store.mark_notification_read(notification_id)
    return {"read": notification_id}
