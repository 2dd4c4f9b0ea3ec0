"""Seed dataset used when nothing has been persisted yet."""

from __future__ import annotations

from datetime import datetime, timedelta

from .models import (
    Defect,
    DefectSeverity,
    DefectStatus,
    Notification,
    NotificationType,
    Project,
    ProjectStatus,
    User,
    UserRole,
)

CATEGORIES: tuple[str, ...] = (
    "UI/UX",
    "Backend API",
    "Database",
    "Performance",
    "Security",
    "Functional",
    "Integration",
)

_AVATAR = "https://api.dicebear.com/7.x/avataaars/svg?seed={}"


def seed_users() -> list[User]:
    return [
        User("admin", "System Admin", "admin@defectseeker.pro", UserRole.ADMIN, _AVATAR.format("admin")),
        User("u1", "Alice Smith", "alice@defectseeker.pro", UserRole.MANAGER, _AVATAR.format("Alice")),
        User("u2", "Bob Johnson", "bob@defectseeker.pro", UserRole.QA, _AVATAR.format("Bob")),
        User("u3", "Charlie Davis", "charlie@defectseeker.pro", UserRole.DEVELOPER, _AVATAR.format("Charlie")),
    ]


def seed_projects(now: datetime) -> list[Project]:
    return [
        Project(
            "p1",
            "Phoenix Redesign",
            "Major overhaul of the main customer dashboard.",
            ProjectStatus.ACTIVE,
            now - timedelta(days=30),
        ),
        Project(
            "p2",
            "API Gateway v2",
            "Upgrading the core infrastructure to support gRPC.",
            ProjectStatus.ACTIVE,
            now - timedelta(days=60),
        ),
        Project(
            "p3",
            "Security Audit 2024",
            "Internal security patching and pen-testing.",
            ProjectStatus.PLANNING,
            now,
        ),
    ]


def seed_defects(now: datetime) -> list[Defect]:
    return [
        Defect(
            id="DEF-101",
            title="Authentication bypass via token manipulation",
            description="Exploit found where modifying the JWT sub field allows acting as another user.",
            status=DefectStatus.OPEN,
            severity=DefectSeverity.CRITICAL,
            predicted_severity=DefectSeverity.CRITICAL,
            category="Security",
            reporter_id="u2",
            assignee_id="u3",
            project_id="p2",
            created_at=now - timedelta(days=2),
            updated_at=now - timedelta(days=1),
            ai_reasoning="Security vulnerability involving authentication bypass is a critical threat.",
        ),
        Defect(
            id="DEF-102",
            title="Button color mismatch on dark mode",
            description="The primary button is indigo-600 in light mode but hard to see in dark mode.",
            status=DefectStatus.IN_PROGRESS,
            severity=DefectSeverity.LOW,
            predicted_severity=DefectSeverity.LOW,
            category="UI/UX",
            reporter_id="u2",
            assignee_id="u3",
            project_id="p1",
            created_at=now - timedelta(days=1),
            updated_at=now,
            ai_reasoning="Visual inconsistency without functional impact is typically low severity.",
        ),
    ]


def seed_notifications(now: datetime) -> list[Notification]:
    return [
        Notification(
            id="n1",
            user_id="admin",
            type=NotificationType.ALERT,
            title="System Initialization",
            message="Welcome to DefectSeeker Pro. All modules are online.",
            created_at=now,
        )
    ]
