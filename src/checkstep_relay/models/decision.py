"""Webhook decision, incident and notification models."""

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from .content import ContentType, HostId


# Shown to users and stored on warnings when CheckStep gives no reason
DEFAULT_REASON = "a violation of our community guidelines"


class DecisionAction(str, Enum):
    """Moderation outcomes CheckStep can report."""

    DELETE = "delete"
    HIDE = "hide"
    WARN = "warn"
    BAN_USER = "ban_user"
    NO_ACTION = "no_action"
    UPHELD = "upheld"  # Appeal refused
    OVERTURN = "overturn"  # Appeal accepted

    @property
    def mutates_content(self) -> bool:
        return self in (
            DecisionAction.DELETE,
            DecisionAction.HIDE,
            DecisionAction.WARN,
            DecisionAction.BAN_USER,
        )


class WebhookEventType(str, Enum):
    """Inbound webhook event types."""

    DECISION_TAKEN = "decision_taken"
    INCIDENT_CLOSED = "incident_closed"


class Decision(BaseModel):
    """A moderation ruling delivered by the decision_taken webhook."""

    content_id: HostId = Field(..., min_length=1)
    action: DecisionAction
    reason: str = ""
    decision_id: HostId | None = None  # Optional; used for appeal links

    @field_validator("reason", mode="before")
    @classmethod
    def _none_reason(cls, value: Any) -> Any:
        return "" if value is None else value


class Incident(BaseModel):
    """A closed CheckStep incident."""

    incident_id: HostId = Field(..., min_length=1)
    content_id: HostId = Field(..., min_length=1)
    resolution: str = ""


class DecisionHandled(BaseModel):
    """Emitted after a decision has been applied to host content."""

    content_id: str
    action: DecisionAction
    reason: str = ""
    decision_id: str | None = None
    content_type: ContentType | None = None
    author_id: str | None = None


class IncidentClosed(BaseModel):
    """Emitted after an incident_closed webhook has been accepted."""

    incident_id: str
    content_id: str
    resolution: str = ""
    content_type: ContentType
    author_id: str


class Notification(BaseModel):
    """A message delivered to a user through the host."""

    user_id: str
    subject: str
    message: str


class SubmissionResult(BaseModel):
    """Successful response from the content endpoint."""

    content_id: str
    content_type: ContentType
    status_code: int = 200
    body: dict[str, Any] = Field(default_factory=dict)


class ReportResult(BaseModel):
    """Successful response from the reports endpoint."""

    report_id: str | None = None
    body: dict[str, Any] = Field(default_factory=dict)


class WebhookResponse(BaseModel):
    """Body returned to the webhook caller."""

    status: Literal["success", "queued", "error"]
    message: str
    event_type: WebhookEventType | None = None
    content_id: str | None = None
    action: DecisionAction | None = None
