"""Record store: the application state container.

Holds the signed-in actor, defects, users, projects and notifications. Every
collection is loaded from storage on construction and written back after each
mutation; all mutation goes through the methods below.
"""

from __future__ import annotations

import logging
import re
import uuid
from collections.abc import Callable, Iterable
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any

from .errors import DefectNotFoundError
from .models import (
    Comment,
    Defect,
    DefectStatus,
    Notification,
    NotificationType,
    Project,
    User,
    UserRole,
)
from .seed import seed_defects, seed_notifications, seed_projects, seed_users
from .storage import (
    CURRENT_USER_KEY,
    DEFECTS_KEY,
    NOTIFICATIONS_KEY,
    PROJECTS_KEY,
    USERS_KEY,
    KeyValueStorage,
    load_document,
    save_document,
)
from .time_window import as_utc
from .validation import DefectDraft, RegistrationForm

logger = logging.getLogger(__name__)

_DEFECT_ID_RE = re.compile(r"^DEF-(?P<n>\d+)$")
FIRST_DEFECT_NUMBER = 101
BROADCAST = "all"


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _decode_list(factory: Callable[[dict[str, Any]], Any]) -> Callable[[Any], list[Any]]:
    def decode(doc: Any) -> list[Any]:
        if not isinstance(doc, list):
            raise TypeError(f"expected a list, got {type(doc).__name__}")
        return [factory(item) for item in doc]

    return decode


def _decode_user(doc: Any) -> User | None:
    if doc is None:
        return None
    if not isinstance(doc, dict):
        raise TypeError(f"expected an object, got {type(doc).__name__}")
    return User.from_dict(doc)


def next_defect_id(existing: Iterable[str]) -> str:
    """Return ``DEF-<n>`` one above the highest numeric suffix in use."""
    highest = FIRST_DEFECT_NUMBER - 1
    for defect_id in existing:
        m = _DEFECT_ID_RE.match(defect_id)
        if m:
            highest = max(highest, int(m.group("n")))
    return f"DEF-{highest + 1}"


class DefectStore:
    def __init__(
        self,
        storage: KeyValueStorage,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.storage = storage
        self._clock = clock
        now = clock()

        self._current_user: User | None = load_document(
            storage, CURRENT_USER_KEY, decode=_decode_user, default=lambda: None
        )
        self._defects: list[Defect] = load_document(
            storage, DEFECTS_KEY, decode=_decode_list(Defect.from_dict), default=lambda: seed_defects(now)
        )
        self._users: list[User] = load_document(
            storage, USERS_KEY, decode=_decode_list(User.from_dict), default=seed_users
        )
        self._projects: list[Project] = load_document(
            storage, PROJECTS_KEY, decode=_decode_list(Project.from_dict), default=lambda: seed_projects(now)
        )
        self._notifications: list[Notification] = load_document(
            storage,
            NOTIFICATIONS_KEY,
            decode=_decode_list(Notification.from_dict),
            default=lambda: seed_notifications(now),
        )

        unique: dict[str, Defect] = {}
        for d in self._defects:
            unique.setdefault(d.id, d)
        if len(unique) != len(self._defects):
            logger.warning("Duplicate defect ids in storage; keeping the first of each")
            self._defects = list(unique.values())

    # ---- read access -------------------------------------------------------

    @property
    def current_user(self) -> User | None:
        return self._current_user

    @property
    def defects(self) -> tuple[Defect, ...]:
        return tuple(self._defects)

    @property
    def users(self) -> tuple[User, ...]:
        return tuple(self._users)

    @property
    def projects(self) -> tuple[Project, ...]:
        return tuple(self._projects)

    @property
    def notifications(self) -> tuple[Notification, ...]:
        return tuple(self._notifications)

    def find_defect(self, defect_id: str) -> Defect | None:
        for d in self._defects:
            if d.id == defect_id:
                return d
        return None

    def get_defect(self, defect_id: str) -> Defect:
        d = self.find_defect(defect_id)
        if d is None:
            raise DefectNotFoundError(defect_id)
        return d

    def find_user(self, user_id: str | None) -> User | None:
        if user_id is None:
            return None
        return next((u for u in self._users if u.id == user_id), None)

    def get_project(self, project_id: str) -> Project | None:
        return next((p for p in self._projects if p.id == project_id), None)

    def notifications_for(self, user: User) -> list[Notification]:
        return [n for n in self._notifications if n.user_id in (user.id, BROADCAST)]

    def search_users(self, term: str = "") -> list[User]:
        """Match ``term`` against name, email or role (case-insensitive)."""
        needle = term.lower()
        return [
            u
            for u in self._users
            if needle in u.name.lower() or needle in u.email.lower() or needle in u.role.value.lower()
        ]

    # ---- persistence -------------------------------------------------------

    def _save_defects(self) -> None:
        save_document(self.storage, DEFECTS_KEY, [d.to_dict() for d in self._defects])

    def _save_users(self) -> None:
        save_document(self.storage, USERS_KEY, [u.to_dict() for u in self._users])

    def _save_notifications(self) -> None:
        save_document(self.storage, NOTIFICATIONS_KEY, [n.to_dict() for n in self._notifications])

    def _save_current_user(self) -> None:
        if self._current_user is None:
            self.storage.delete(CURRENT_USER_KEY)
        else:
            save_document(self.storage, CURRENT_USER_KEY, self._current_user.to_dict())

    def save_all(self) -> None:
        """Write every collection, e.g. to materialize the seed dataset."""
        self._save_current_user()
        self._save_defects()
        self._save_users()
        save_document(self.storage, PROJECTS_KEY, [p.to_dict() for p in self._projects])
        self._save_notifications()

    # ---- defects -----------------------------------------------------------

    def _touched(self, defect: Defect, **changes: Any) -> Defect:
        created = as_utc(defect.created_at)
        now = as_utc(self._clock())
        return replace(defect, **changes, created_at=created, updated_at=max(now, created))

    def _notify(self, user_id: str, type_: NotificationType, title: str, message: str) -> None:
        self._notifications.insert(
            0,
            Notification(
                id=f"notif-{uuid.uuid4().hex[:12]}",
                user_id=user_id,
                type=type_,
                title=title,
                message=message,
                created_at=self._clock(),
            ),
        )
        self._save_notifications()

    def add_defect(self, defect: Defect) -> Defect:
        """Insert a new record at the top of the list."""
        if self.find_defect(defect.id) is not None:
            raise ValueError(f"Defect id already exists: {defect.id}")
        # naive timestamps are stored as UTC so they order against aware ones
        created, updated = as_utc(defect.created_at), as_utc(defect.updated_at)
        defect = replace(defect, created_at=created, updated_at=max(updated, created))
        self._defects.insert(0, defect)
        self._save_defects()
        logger.info("Logged defect %s", defect.id)
        self._notify(BROADCAST, NotificationType.ALERT, "New Defect Logged", f"[{defect.id}] {defect.title}")
        return defect

    def create_defect(self, draft: DefectDraft, reporter: User) -> Defect:
        """Build a record from a validated draft and add it."""
        now = self._clock()
        defect = Defect(
            id=next_defect_id(d.id for d in self._defects),
            title=draft.title,
            description=draft.description,
            status=DefectStatus.OPEN,
            severity=draft.severity,
            category=draft.category,
            reporter_id=reporter.id,
            project_id=draft.project_id,
            created_at=now,
            updated_at=now,
            assignee_id=draft.assignee_id,
            ai_reasoning=draft.ai_reasoning,
            predicted_severity=draft.predicted_severity,
        )
        self.add_defect(defect)
        if defect.assignee_id:
            self._notify_assignment(defect)
        return defect

    def update_defect(self, defect: Defect) -> Defect:
        """Replace the stored record with the same id, refreshing ``updated_at``."""
        for i, d in enumerate(self._defects):
            if d.id == defect.id:
                updated = self._touched(defect)
                self._defects[i] = updated
                self._save_defects()
                return updated
        raise DefectNotFoundError(defect.id)

    def update_status(self, defect_id: str, status: DefectStatus) -> Defect:
        return self.update_defect(replace(self.get_defect(defect_id), status=DefectStatus(status)))

    def assign(self, defect_id: str, assignee_id: str | None) -> Defect:
        updated = self.update_defect(replace(self.get_defect(defect_id), assignee_id=assignee_id or None))
        if updated.assignee_id:
            self._notify_assignment(updated)
        return updated

    def _notify_assignment(self, defect: Defect) -> None:
        self._notify(
            defect.assignee_id,
            NotificationType.ASSIGNMENT,
            "Defect Assigned",
            f"[{defect.id}] {defect.title}",
        )

    def add_comment(self, defect_id: str, author: User, content: str) -> Comment:
        """Append a comment to a defect's discussion."""
        content = content.strip()
        if not content:
            raise ValueError("Comment text is required.")
        defect = self.get_defect(defect_id)
        comment = Comment(
            id=f"c-{uuid.uuid4().hex[:12]}",
            author_id=author.id,
            author_name=author.name,
            content=content,
            created_at=self._clock(),
        )
        self.update_defect(replace(defect, comments=(*defect.comments, comment)))
        return comment

    def delete_defect(self, defect_id: str) -> None:
        before = len(self._defects)
        self._defects = [d for d in self._defects if d.id != defect_id]
        if len(self._defects) == before:
            raise DefectNotFoundError(defect_id)
        self._save_defects()
        logger.info("Deleted defect %s", defect_id)

    def bulk_update_status(self, defect_ids: Iterable[str], status: DefectStatus) -> list[Defect]:
        """Set ``status`` on every listed defect; unknown ids are ignored."""
        status = DefectStatus(status)
        wanted = set(defect_ids)
        if not wanted:
            return []
        changed: list[Defect] = []
        for i, d in enumerate(self._defects):
            if d.id in wanted:
                self._defects[i] = self._touched(d, status=status)
                changed.append(self._defects[i])
        if changed:
            self._save_defects()
            logger.info("Set status %s on %d defect(s)", status.value, len(changed))
        return changed

    def bulk_delete(self, defect_ids: Iterable[str]) -> int:
        """Remove every listed defect; return how many were removed."""
        wanted = set(defect_ids)
        if not wanted:
            return 0
        before = len(self._defects)
        self._defects = [d for d in self._defects if d.id not in wanted]
        removed = before - len(self._defects)
        if removed:
            self._save_defects()
            logger.info("Deleted %d defect(s)", removed)
        return removed

    # ---- session and personnel --------------------------------------------

    def login(self, email: str) -> User:
        """Sign in by email (passwords are not checked)."""
        needle = email.strip().lower()
        user = next((u for u in self._users if u.email.lower() == needle), None)
        if user is None:
            raise ValueError("Invalid email or password.")
        self._current_user = user
        self._save_current_user()
        return user

    def logout(self) -> None:
        self._current_user = None
        self._save_current_user()

    def register(self, form: RegistrationForm) -> User:
        """Add a user from a validated form and sign them in."""
        if any(u.email.lower() == form.email.lower() for u in self._users):
            raise ValueError(f"An account already exists for {form.email}.")
        first_name = form.name.split(" ")[0]
        user = User(
            id=f"u-{uuid.uuid4().hex[:12]}",
            name=form.name,
            email=form.email,
            role=form.role,
            avatar=f"https://picsum.photos/seed/{first_name}/100",
        )
        self._users.append(user)
        self._save_users()
        self._current_user = user
        self._save_current_user()
        return user

    def _replace_user(self, user: User) -> User:
        self._users = [user if u.id == user.id else u for u in self._users]
        self._save_users()
        if self._current_user is not None and self._current_user.id == user.id:
            self._current_user = user
            self._save_current_user()
        return user

    def update_profile(self, *, name: str | None = None, avatar: str | None = None) -> User:
        if self._current_user is None:
            raise ValueError("No user is signed in.")
        changes = {k: v for k, v in (("name", name), ("avatar", avatar)) if v}
        return self._replace_user(replace(self._current_user, **changes))

    def update_user_role(self, user_id: str, role: UserRole) -> User:
        user = self.find_user(user_id)
        if user is None:
            raise LookupError(f"User not found: {user_id}")
        return self._replace_user(replace(user, role=UserRole(role)))

    def delete_user(self, user_id: str) -> None:
        if self._current_user is not None and self._current_user.id == user_id:
            raise ValueError("You cannot remove your own account.")
        if self.find_user(user_id) is None:
            raise LookupError(f"User not found: {user_id}")
        self._users = [u for u in self._users if u.id != user_id]
        self._save_users()

    def mark_notification_read(self, notification_id: str) -> None:
        self._notifications = [
            replace(n, read=True) if n.id == notification_id else n for n in self._notifications
        ]
        self._save_notifications()
