"""Host content system collaborator.

The relay never owns site content. Everything it reads or mutates goes
through a ``ContentHost``: the CMS adapter in production, the in-memory host
for local runs and tests.
"""

import json
import logging
import threading
from pathlib import Path
from typing import Protocol

from ..models.content import ContentRecord, ContentRef, ContentType, UserProfile
from ..models.decision import DEFAULT_REASON, Notification

logger = logging.getLogger(__name__)

# Probe order when only a bare content id is known
RESOLUTION_ORDER = [
    ContentType.POST,
    ContentType.BLOG,
    ContentType.ACTIVITY,
    ContentType.FORUM_POST,
    ContentType.DISCUSSION,
    ContentType.MEDIA,
    ContentType.IMAGE,
    ContentType.VIDEO,
]

CONTENT_WARNING_TAXONOMY = "content-warning"


class ContentHost(Protocol):
    """Capabilities the relay needs from the host site."""

    def get_record(self, ref: ContentRef) -> ContentRecord | None: ...

    def get_user(self, user_id: str) -> UserProfile | None: ...

    def resolve_content_type(self, content_id: str) -> ContentType | None: ...

    def delete_content(self, ref: ContentRef) -> None: ...

    def hide_content(self, ref: ContentRef) -> None: ...

    def add_content_warning(self, ref: ContentRef, reason: str) -> None: ...

    def suspend_user(self, user_id: str) -> None: ...

    def send_notification(self, user_id: str, subject: str, message: str) -> None: ...


class InMemoryContentHost:
    """Dictionary-backed host used for local runs and tests."""

    def __init__(self) -> None:
        self.records: dict[ContentRef, ContentRecord] = {}
        self.users: dict[str, UserProfile] = {}
        self.suspended_users: set[str] = set()
        self.notifications: list[Notification] = []
        self._lock = threading.Lock()

    @classmethod
    def load_json(cls, path: Path) -> "InMemoryContentHost":
        """Build a host seeded from a JSON file.

        Expected shape: ``{"records": [ContentRecord...], "users": [UserProfile...]}``
        """
        data = json.loads(Path(path).read_text())
        host = cls()
        for record in data.get("records", []):
            host.add_record(ContentRecord.model_validate(record))
        for user in data.get("users", []):
            host.add_user(UserProfile.model_validate(user))
        logger.info(f"Loaded {len(host.records)} records and {len(host.users)} users from {path}")
        return host

    def add_record(self, record: ContentRecord) -> ContentRecord:
        with self._lock:
            self.records[record.ref] = record
        return record

    def add_user(self, user: UserProfile) -> UserProfile:
        with self._lock:
            self.users[user.user_id] = user
        return user

    def get_record(self, ref: ContentRef) -> ContentRecord | None:
        return self.records.get(ref)

    def get_user(self, user_id: str) -> UserProfile | None:
        return self.users.get(user_id)

    def resolve_content_type(self, content_id: str) -> ContentType | None:
        for content_type in RESOLUTION_ORDER:
            if ContentRef(content_type=content_type, content_id=content_id) in self.records:
                return content_type
        return None

    def delete_content(self, ref: ContentRef) -> None:
        with self._lock:
            if self.records.pop(ref, None) is None:
                raise KeyError(f"No content for {ref}")
        logger.info(f"Deleted {ref}")

    def hide_content(self, ref: ContentRef) -> None:
        with self._lock:
            self.records[ref].status = "private"
        logger.info(f"Hid {ref}")

    def add_content_warning(self, ref: ContentRef, reason: str) -> None:
        reason = reason or DEFAULT_REASON
        with self._lock:
            terms = self.records[ref].terms.setdefault(CONTENT_WARNING_TAXONOMY, [])
            if reason not in terms:
                terms.append(reason)
        logger.info(f"Content warning added to {ref}: {reason}")

    def suspend_user(self, user_id: str) -> None:
        with self._lock:
            self.suspended_users.add(user_id)
        logger.info(f"Suspended user {user_id}")

    def send_notification(self, user_id: str, subject: str, message: str) -> None:
        with self._lock:
            self.notifications.append(
                Notification(user_id=user_id, subject=subject, message=message)
            )
