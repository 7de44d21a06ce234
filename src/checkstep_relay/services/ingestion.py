"""Turn host content events into moderation queue entries."""

import logging
from enum import Enum

from pydantic import BaseModel, Field

from ..config import Settings
from ..models.content import ContentType, HostId
from ..models.queue import QueueEntry
from .queue_store import ModerationQueue

logger = logging.getLogger(__name__)


class HostEvent(str, Enum):
    """Content lifecycle events emitted by the host site."""

    POST_SAVED = "post_saved"
    BLOG_PUBLISHED = "blog_published"
    ACTIVITY_POSTED = "activity_posted"
    FORUM_REPLY_CREATED = "forum_reply_created"
    DISCUSSION_CREATED = "discussion_created"
    USER_ACTIVATED = "user_activated"
    MEDIA_UPLOADED = "media_uploaded"
    IMAGE_UPLOADED = "image_uploaded"
    VIDEO_UPLOADED = "video_uploaded"


EVENT_CONTENT_TYPES = {
    HostEvent.POST_SAVED: ContentType.POST,
    HostEvent.BLOG_PUBLISHED: ContentType.BLOG,
    HostEvent.ACTIVITY_POSTED: ContentType.ACTIVITY,
    HostEvent.FORUM_REPLY_CREATED: ContentType.FORUM_POST,
    HostEvent.DISCUSSION_CREATED: ContentType.DISCUSSION,
    HostEvent.USER_ACTIVATED: ContentType.PROFILE,
    HostEvent.MEDIA_UPLOADED: ContentType.MEDIA,
    HostEvent.IMAGE_UPLOADED: ContentType.IMAGE,
    HostEvent.VIDEO_UPLOADED: ContentType.VIDEO,
}

PUBLISHED_STATUS = "publish"


class ContentEvent(BaseModel):
    """A content-creation or update notification from the host."""

    event: HostEvent
    content_id: HostId = Field(..., min_length=1)
    post_status: str | None = Field(None, description="Post status for post_saved events")
    is_revision: bool = False
    is_autosave: bool = False
    is_update: bool = False


class IngestionResult(BaseModel):
    """Outcome of an ingestion event."""

    queued: bool
    reason: str | None = None
    entry: QueueEntry | None = None


class IngestionService:
    """Filters host events and enqueues the content that needs review."""

    def __init__(self, queue: ModerationQueue, settings: Settings):
        self._queue = queue
        self._settings = settings

    def handle_event(self, event: ContentEvent) -> IngestionResult:
        if not self._settings.auto_moderation:
            logger.debug(f"Auto moderation disabled; ignoring {event.event.value} {event.content_id}")
            return IngestionResult(queued=False, reason="auto_moderation_disabled")

        if event.event == HostEvent.POST_SAVED:
            if event.is_revision or event.is_autosave:
                return IngestionResult(queued=False, reason="revision")
            if event.post_status != PUBLISHED_STATUS:
                return IngestionResult(queued=False, reason="not_published")

        content_type = EVENT_CONTENT_TYPES[event.event]
        entry = self._queue.enqueue(content_type, event.content_id)
        logger.debug(f"{event.event.value} queued {content_type.value} {event.content_id} (update={event.is_update})")
        return IngestionResult(queued=True, entry=entry)
