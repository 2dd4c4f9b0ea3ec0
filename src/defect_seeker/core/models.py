"""Core data models for the defect inventory."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from .time_window import format_iso_dt, parse_iso_dt


class DefectStatus(str, Enum):
    """Lifecycle states of a defect record."""

    OPEN = "Open"
    IN_PROGRESS = "In Progress"
    RESOLVED = "Resolved"
    CLOSED = "Closed"
    REOPENED = "Reopened"


class DefectSeverity(str, Enum):
    """Severity levels, listed from lowest to highest weight."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class UserRole(str, Enum):
    QA = "QA Tester"
    DEVELOPER = "Developer"
    MANAGER = "Project Manager"
    ADMIN = "Admin"


class ProjectStatus(str, Enum):
    ACTIVE = "Active"
    ARCHIVED = "Archived"
    PLANNING = "Planning"


class NotificationType(str, Enum):
    ASSIGNMENT = "Assignment"
    UPDATE = "Update"
    ALERT = "Alert"


@dataclass(frozen=True, slots=True)
class User:
    id: str
    name: str
    email: str
    role: UserRole
    avatar: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role.value,
            "avatar": self.avatar,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> User:
        return cls(
            id=str(d["id"]),
            name=str(d["name"]),
            email=str(d["email"]),
            role=UserRole(d["role"]),
            avatar=str(d.get("avatar") or ""),
        )


@dataclass(frozen=True, slots=True)
class Comment:
    """A single entry in a defect's discussion thread."""

    id: str
    author_id: str
    author_name: str
    content: str
    created_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "authorId": self.author_id,
            "authorName": self.author_name,
            "content": self.content,
            "createdAt": format_iso_dt(self.created_at),
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Comment:
        return cls(
            id=str(d["id"]),
            author_id=str(d["authorId"]),
            author_name=str(d["authorName"]),
            content=str(d["content"]),
            created_at=parse_iso_dt(d["createdAt"]),
        )


@dataclass(frozen=True, slots=True)
class Defect:
    """A tracked software issue.

    Records are immutable; the store swaps in updated copies built with
    ``dataclasses.replace``.
    """

    id: str
    title: str
    description: str
    status: DefectStatus
    severity: DefectSeverity
    category: str
    reporter_id: str
    project_id: str
    created_at: datetime
    updated_at: datetime
    assignee_id: str | None = None
    comments: tuple[Comment, ...] = field(default_factory=tuple)
    ai_reasoning: str | None = None
    # what the model suggested; ``severity`` stays authoritative
    predicted_severity: DefectSeverity | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "severity": self.severity.value,
            "category": self.category,
            "reporterId": self.reporter_id,
            "projectId": self.project_id,
            "createdAt": format_iso_dt(self.created_at),
            "updatedAt": format_iso_dt(self.updated_at),
            "comments": [c.to_dict() for c in self.comments],
        }
        if self.assignee_id is not None:
            d["assigneeId"] = self.assignee_id
        if self.ai_reasoning is not None:
            d["aiReasoning"] = self.ai_reasoning
        if self.predicted_severity is not None:
            d["predictedSeverity"] = self.predicted_severity.value
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Defect:
        predicted = d.get("predictedSeverity")
        return cls(
            id=str(d["id"]),
            title=str(d["title"]),
            description=str(d.get("description") or ""),
            status=DefectStatus(d["status"]),
            severity=DefectSeverity(d["severity"]),
            category=str(d.get("category") or ""),
            reporter_id=str(d["reporterId"]),
            project_id=str(d.get("projectId") or ""),
            created_at=parse_iso_dt(d["createdAt"]),
            updated_at=parse_iso_dt(d["updatedAt"]),
            assignee_id=d.get("assigneeId") or None,
            comments=tuple(Comment.from_dict(c) for c in d.get("comments") or ()),
            ai_reasoning=d.get("aiReasoning") or None,
            predicted_severity=DefectSeverity(predicted) if predicted else None,
        )


@dataclass(frozen=True, slots=True)
class Project:
    id: str
    name: str
    description: str
    status: ProjectStatus
    created_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "status": self.status.value,
            "createdAt": format_iso_dt(self.created_at),
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Project:
        return cls(
            id=str(d["id"]),
            name=str(d["name"]),
            description=str(d.get("description") or ""),
            status=ProjectStatus(d["status"]),
            created_at=parse_iso_dt(d["createdAt"]),
        )


@dataclass(frozen=True, slots=True)
class Notification:
    id: str
    user_id: str  # recipient id, or "all"
    type: NotificationType
    title: str
    message: str
    created_at: datetime
    read: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "type": self.type.value,
            "title": self.title,
            "message": self.message,
            "read": self.read,
            "createdAt": format_iso_dt(self.created_at),
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Notification:
        return cls(
            id=str(d["id"]),
            user_id=str(d["userId"]),
            type=NotificationType(d["type"]),
            title=str(d["title"]),
            message=str(d["message"]),
            created_at=parse_iso_dt(d["createdAt"]),
            read=bool(d.get("read", False)),
        )
