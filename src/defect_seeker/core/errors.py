"""Exceptions raised by the defect inventory."""

from __future__ import annotations


class DefectNotFoundError(LookupError):
    """Raised when a defect identifier does not exist in the store."""

    def __init__(self, defect_id: str) -> None:
        super().__init__(f"Defect not found: {defect_id}")
        self.defect_id = defect_id


class ActionNotPermittedError(PermissionError):
    """Raised when the acting user's role does not expose an action.

    Role gating mirrors what the dashboard shows to each role; it is not an
    authorization boundary.
    """
