"""Pydantic models for queue entries, content payloads and webhook events."""

from .content import (
    ContentField,
    ContentRecord,
    ContentRef,
    ContentType,
    MediaItem,
    PayloadDocument,
    UserProfile,
)
from .decision import (
    Decision,
    DecisionAction,
    DecisionHandled,
    Incident,
    IncidentClosed,
    Notification,
    ReportResult,
    SubmissionResult,
    WebhookEventType,
    WebhookResponse,
)
from .queue import MAX_RETRIES, QueueEntry, QueueStats, QueueStatus, SweepResult

__all__ = [
    "ContentField",
    "ContentRecord",
    "ContentRef",
    "ContentType",
    "MediaItem",
    "PayloadDocument",
    "UserProfile",
    "Decision",
    "DecisionAction",
    "DecisionHandled",
    "Incident",
    "IncidentClosed",
    "Notification",
    "ReportResult",
    "SubmissionResult",
    "WebhookEventType",
    "WebhookResponse",
    "MAX_RETRIES",
    "QueueEntry",
    "QueueStats",
    "QueueStatus",
    "SweepResult",
]
