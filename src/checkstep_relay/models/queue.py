"""Queue models for the moderation ingestion queue."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from .content import ContentRef, ContentType

# Attempts allowed before an entry is marked failed for good
MAX_RETRIES = 3


class QueueStatus(str, Enum):
    """Queue entry lifecycle status."""

    PENDING = "pending"
    PROCESSING = "processing"  # Claimed by a sweep; never survives a crash
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (QueueStatus.COMPLETED, QueueStatus.FAILED)


class QueueEntry(BaseModel):
    """One unit of content awaiting submission to CheckStep."""

    id: int
    content_type: ContentType
    content_id: str
    status: QueueStatus = QueueStatus.PENDING
    retries: int = Field(0, ge=0, le=MAX_RETRIES)
    created_at: datetime
    claimed_at: datetime | None = None
    claim_token: str | None = None  # Identifies the current claim
    processed_at: datetime | None = None
    last_error: str | None = None

    @property
    def ref(self) -> ContentRef:
        return ContentRef(content_type=self.content_type, content_id=self.content_id)


class QueueStats(BaseModel):
    """Entry counts per status."""

    pending: int = 0
    processing: int = 0
    completed: int = 0
    failed: int = 0
    last_processed_at: datetime | None = None

    @property
    def total(self) -> int:
        return self.pending + self.processing + self.completed + self.failed


class SweepResult(BaseModel):
    """Summary of one queue processor sweep."""

    claimed: int = 0
    completed: int = 0
    retrying: int = 0
    failed: int = 0
    skipped: bool = False  # Another sweep was already running
    started_at: datetime | None = None
    finished_at: datetime | None = None
