"""Role-gated visibility of inventory actions.

These checks decide which actions each role is offered. They are not a security
boundary; the store itself never consults them.
"""

from __future__ import annotations

from .errors import ActionNotPermittedError
from .models import User, UserRole

CREATE_DEFECT_ROLES = frozenset({UserRole.QA, UserRole.MANAGER, UserRole.ADMIN})
DELETE_DEFECT_ROLES = frozenset({UserRole.MANAGER, UserRole.ADMIN})
MANAGE_PERSONNEL_ROLES = frozenset({UserRole.MANAGER, UserRole.ADMIN})

_ACTION_ROLES = {
    "create_defect": CREATE_DEFECT_ROLES,
    "delete_defect": DELETE_DEFECT_ROLES,
    "manage_personnel": MANAGE_PERSONNEL_ROLES,
}


def can_create_defects(role: UserRole) -> bool:
    return role in CREATE_DEFECT_ROLES


def can_delete_defects(role: UserRole) -> bool:
    return role in DELETE_DEFECT_ROLES


def can_manage_personnel(role: UserRole) -> bool:
    return role in MANAGE_PERSONNEL_ROLES


def require(actor: User | None, action: str) -> User:
    """Return ``actor`` if its role is offered ``action``, else raise."""
    if actor is None:
        raise ActionNotPermittedError("Sign in first.")
    roles = _ACTION_ROLES[action]
    if actor.role not in roles:
        allowed = ", ".join(sorted(r.value for r in roles))
        raise ActionNotPermittedError(
            f"'{action}' is not available to {actor.role.value}. Allowed roles: {allowed}."
        )
    return actor


def navigation_for(role: UserRole) -> list[str]:
    """Return the sections shown in the navigation for ``role``."""
    sections = ["dashboard", "defects", "projects", "reports"]
    if can_create_defects(role):
        sections.append("report-defect")
    if can_manage_personnel(role):
        sections.extend(["team-directory", "system-config"])
    return sections
