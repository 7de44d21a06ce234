"""Format host content into CheckStep payload documents."""

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from ..errors import ContentNotFound
from ..models.content import ContentRecord, ContentRef, ContentType, PayloadDocument
from .host import ContentHost

logger = logging.getLogger(__name__)

# Media field type sent for each media-like content type
MEDIA_FIELD_TYPES = {
    ContentType.IMAGE: "image",
    ContentType.VIDEO: "video",
}


class ContentFormatter:
    """Builds one fixed document shape per content type.

    Read-only: the formatter only queries the host. Missing content raises
    ``ContentNotFound``, which the processor counts as a failed attempt.
    """

    def __init__(self, host: ContentHost):
        self._host = host
        self._builders: dict[ContentType, Callable[[ContentRef], PayloadDocument]] = {
            ContentType.POST: self._format_text_content,
            ContentType.BLOG: self._format_text_content,
            ContentType.ACTIVITY: self._format_text_content,
            ContentType.FORUM_POST: self._format_text_content,
            ContentType.DISCUSSION: self._format_text_content,
            ContentType.MEDIA: self._format_media,
            ContentType.IMAGE: self._format_media,
            ContentType.VIDEO: self._format_media,
            ContentType.PROFILE: self._format_profile,
        }

    def format(self, content_type: ContentType | str, content_id: str) -> PayloadDocument:
        """Build the payload document for a content reference.

        Args:
            content_type: Content type (enum member or its value)
            content_id: Host identifier

        Returns:
            PayloadDocument ready for submission

        Raises:
            ContentNotFound: The content no longer exists on the host
        """
        ref = ContentRef(content_type=ContentType(content_type), content_id=content_id)
        document = self._builders[ref.content_type](ref)
        logger.debug(f"Formatted {ref} with {len(document.fields)} fields")
        return document

    def _get_record(self, ref: ContentRef) -> ContentRecord:
        record = self._host.get_record(ref)
        if record is None:
            logger.warning(f"Content not found: {ref}")
            raise ContentNotFound(ref.content_type.value, ref.content_id)
        return record

    def _base_document(self, record: ContentRecord) -> PayloadDocument:
        author = self._host.get_user(record.author_id) if record.author_id else None
        return PayloadDocument(
            id=record.id,
            type=record.content_type,
            author=author,
            parent_id=record.parent_id,
            group_id=record.group_id,
            created_at=record.created_at,
            updated_at=record.updated_at,
            taxonomies={name: list(terms) for name, terms in record.terms.items()},
            metadata=dict(record.meta),
        )

    def _format_text_content(self, ref: ContentRef) -> PayloadDocument:
        """Posts, blog entries, activity updates, forum replies and discussions."""
        record = self._get_record(ref)
        document = self._base_document(record)

        if record.title:
            document.add_text_field(record.title, field_id="title")
        document.add_text_field(record.body)

        for item in record.media:
            document.media.append(item)
            document.add_media_field(item.url, item.media_type, field_id=f"media-{item.id}")

        return document

    def _format_media(self, ref: ContentRef) -> PayloadDocument:
        record = self._get_record(ref)
        if not record.url:
            raise ContentNotFound(ref.content_type.value, ref.content_id, "media URL not found")

        media_type = MEDIA_FIELD_TYPES.get(ref.content_type) or record.meta.get("media_type", "image")
        document = self._base_document(record)
        document.add_media_field(record.url, media_type)

        if record.title:
            document.add_text_field(record.title, field_id="title")
        # Captions and alt text are user-written and reviewed like any text
        if caption := record.meta.get("caption"):
            document.add_text_field(caption, field_id="caption")
        if alt_text := record.meta.get("alt_text"):
            document.add_text_field(alt_text, field_id="alt_text")

        return document

    def _format_profile(self, ref: ContentRef) -> PayloadDocument:
        user = self._host.get_user(ref.content_id)
        if user is None:
            logger.warning(f"User not found: {ref.content_id}")
            raise ContentNotFound(ref.content_type.value, ref.content_id)

        document = PayloadDocument(
            id=user.user_id,
            type=ContentType.PROFILE,
            author=user,
            created_at=datetime.now(timezone.utc),
            metadata={"roles": list(user.roles)},
        )
        if user.display_name:
            document.add_text_field(user.display_name, field_id="display_name")
        if user.avatar_url:
            document.add_media_field(user.avatar_url, "image", field_id="profile_picture")
        for name, value in user.metadata.items():
            if value:
                document.add_text_field(value, field_id=f"profile:{name}")

        return document
