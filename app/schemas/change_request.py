"""Change request schemas for request/response validation."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from app.models.change_request import ChangePriority, ChangeStatus, ChangeType
from app.utils.validation import (
    normalize_optional_text,
    to_naive_utc,
    validate_email,
    validate_required_text,
)

REQUIRED_TEXT_FIELDS = {
    "title": ("Title", 256),
    "description": ("Description", None),
    "requester_name": ("Requester name", 256),
    "business_justification": ("Business justification", None),
    "implementation_plan": ("Implementation plan", None),
    "rollback_plan": ("Rollback plan", None),
}


class ChangeAction(str, Enum):
    """Lifecycle actions a caller can trigger on a change request."""

    apply = "apply"
    request_permission = "request_permission"
    execute = "execute"
    done = "done"


def _check_schedule(start: Optional[datetime], end: Optional[datetime]) -> None:
    if start is not None and end is not None and end < start:
        raise ValueError("Scheduled end must not be before scheduled start")


class ChangeRequestCreate(BaseModel):
    """Schema for creating a change request. Status is always draft on creation."""

    title: str
    description: str
    change_type: ChangeType
    priority: ChangePriority
    requester_name: str
    requester_email: str
    business_justification: str
    implementation_plan: str
    rollback_plan: str
    risk_assessment: Optional[str] = None
    impact_assessment: Optional[str] = None
    scheduled_start: Optional[datetime] = None
    scheduled_end: Optional[datetime] = None

    @field_validator(*REQUIRED_TEXT_FIELDS.keys(), mode="before")
    @classmethod
    def required_text(cls, value, info):
        label, max_length = REQUIRED_TEXT_FIELDS[info.field_name]
        return validate_required_text(value, label, max_length)

    @field_validator("requester_email", mode="before")
    @classmethod
    def email(cls, value):
        return validate_email(value)

    @field_validator("risk_assessment", "impact_assessment")
    @classmethod
    def optional_text(cls, value):
        return normalize_optional_text(value)

    @field_validator("scheduled_start", "scheduled_end")
    @classmethod
    def naive_utc(cls, value):
        return to_naive_utc(value)

    @model_validator(mode="after")
    def schedule_window(self):
        _check_schedule(self.scheduled_start, self.scheduled_end)
        return self


class ChangeRequestUpdate(BaseModel):
    """
    Schema for a partial change request update.

    Only fields present in the payload are applied. Required text fields may
    be changed but not cleared. ``status`` may be set directly, which is how
    approvals, rejections and scheduling recorded outside the lifecycle
    actions reach the record.
    """

    title: Optional[str] = None
    description: Optional[str] = None
    change_type: Optional[ChangeType] = None
    priority: Optional[ChangePriority] = None
    status: Optional[ChangeStatus] = None
    requester_name: Optional[str] = None
    requester_email: Optional[str] = None
    business_justification: Optional[str] = None
    implementation_plan: Optional[str] = None
    rollback_plan: Optional[str] = None
    risk_assessment: Optional[str] = None
    impact_assessment: Optional[str] = None
    scheduled_start: Optional[datetime] = None
    scheduled_end: Optional[datetime] = None

    @field_validator(*REQUIRED_TEXT_FIELDS.keys(), mode="before")
    @classmethod
    def required_text(cls, value, info):
        label, max_length = REQUIRED_TEXT_FIELDS[info.field_name]
        return validate_required_text(value, label, max_length)

    @field_validator("requester_email", mode="before")
    @classmethod
    def email(cls, value):
        return validate_email(value)

    @field_validator("change_type", "priority", "status", mode="before")
    @classmethod
    def not_null(cls, value, info):
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return value

    @field_validator("risk_assessment", "impact_assessment")
    @classmethod
    def optional_text(cls, value):
        return normalize_optional_text(value)

    @field_validator("scheduled_start", "scheduled_end")
    @classmethod
    def naive_utc(cls, value):
        return to_naive_utc(value)

    @model_validator(mode="after")
    def schedule_window(self):
        _check_schedule(self.scheduled_start, self.scheduled_end)
        return self

    def changes(self) -> Dict[str, Any]:
        """Return only the fields the caller supplied."""
        return self.model_dump(exclude_unset=True)


class ChangeRequestActionNotes(BaseModel):
    """Optional body for the per-action endpoints."""

    notes: Optional[str] = Field(None, max_length=2000)


class ChangeRequestActionInput(BaseModel):
    """Schema for the generic action endpoint."""

    id: int
    action: ChangeAction
    notes: Optional[str] = Field(None, max_length=2000)


class ActionResult(BaseModel):
    """Outcome of a lifecycle action, as reported to the ITIL frontend."""

    success: bool
    message: str
    data: Optional[Dict[str, Any]] = None


class AvailableActionsOut(BaseModel):
    changeId: int
    status: ChangeStatus
    actions: List[ChangeAction]


class ChangeRequestOut(BaseModel):
    """Schema for change request response."""

    id: int
    title: str
    description: str
    change_type: ChangeType
    priority: ChangePriority
    status: ChangeStatus
    requester_name: str
    requester_email: str
    business_justification: str
    implementation_plan: str
    rollback_plan: str
    risk_assessment: Optional[str] = None
    impact_assessment: Optional[str] = None
    scheduled_start: Optional[datetime] = None
    scheduled_end: Optional[datetime] = None
    actual_start: Optional[datetime] = None
    actual_end: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
