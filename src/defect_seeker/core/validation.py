"""Form models for defect submission and account registration."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator, model_validator

from .models import DefectSeverity, UserRole
from .seed import CATEGORIES


class DefectDraft(BaseModel):
    """Fields a reporter fills in before committing a defect."""

    title: str = Field(description="Brief summary of the issue.")
    description: str = Field(description="Reproduction steps, expected and actual results.")
    category: str = Field(default=CATEGORIES[0])
    severity: DefectSeverity = DefectSeverity.MEDIUM
    project_id: str = "p1"
    assignee_id: str | None = None
    ai_reasoning: str | None = None
    predicted_severity: DefectSeverity | None = None

    @field_validator("title", "description", "category")
    @classmethod
    def _required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("This field is required.")
        return v

    @field_validator("category")
    @classmethod
    def _known_category(cls, v: str) -> str:
        if v not in CATEGORIES:
            raise ValueError(f"Unknown category. Choose one of: {', '.join(CATEGORIES)}.")
        return v

    @field_validator("assignee_id", "ai_reasoning")
    @classmethod
    def _blank_is_none(cls, v: str | None) -> str | None:
        return v or None


class RegistrationForm(BaseModel):
    name: str
    email: str
    role: UserRole = UserRole.QA
    password: str = Field(min_length=6)
    confirm_password: str
    accept_terms: bool = False

    @field_validator("name")
    @classmethod
    def _name_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required.")
        return v

    @field_validator("email")
    @classmethod
    def _email_shape(cls, v: str) -> str:
        v = v.strip()
        local, sep, domain = v.partition("@")
        if not (local and sep and "." in domain):
            raise ValueError("Enter a valid email address.")
        return v

    @model_validator(mode="after")
    def _check_confirmation(self) -> RegistrationForm:
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match.")
        if not self.accept_terms:
            raise ValueError("You must accept the terms to register.")
        return self
