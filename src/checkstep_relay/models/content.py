"""Content references and the payload documents submitted to CheckStep."""

from datetime import datetime
from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field


class ContentType(str, Enum):
    """Kinds of host content that can be sent for review."""

    POST = "post"
    ACTIVITY = "activity"
    FORUM_POST = "forum_post"
    MEDIA = "media"
    PROFILE = "profile"
    IMAGE = "image"
    VIDEO = "video"
    DISCUSSION = "discussion"
    BLOG = "blog"


def _coerce_id(value: Any) -> Any:
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


# Host ids arrive as ints or strings and are stored as strings
HostId = Annotated[str, BeforeValidator(_coerce_id)]


class ContentRef(BaseModel):
    """A (type, id) pair identifying one piece of host content."""

    model_config = ConfigDict(frozen=True)

    content_type: ContentType
    content_id: HostId = Field(..., min_length=1)

    def __str__(self) -> str:
        return f"{self.content_type.value}:{self.content_id}"


class UserProfile(BaseModel):
    """Snapshot of a content author."""

    user_id: HostId
    display_name: str = ""
    email: str | None = None
    roles: list[str] = Field(default_factory=list)
    avatar_url: str | None = None
    metadata: dict[str, str] = Field(default_factory=dict)  # Extended profile fields


class MediaItem(BaseModel):
    """A media attachment (image, video, file)."""

    id: HostId
    url: str
    media_type: str = "image"
    title: str | None = None
    caption: str | None = None
    alt_text: str | None = None


class ContentRecord(BaseModel):
    """Raw content as the host system returns it."""

    content_type: ContentType
    id: HostId
    author_id: HostId | None = None
    title: str = ""
    body: str = ""
    status: str = "publish"
    url: str | None = None
    parent_id: HostId | None = None
    group_id: HostId | None = None
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime | None = None
    media: list[MediaItem] = Field(default_factory=list)
    terms: dict[str, list[str]] = Field(default_factory=dict)  # taxonomy -> term names
    meta: dict[str, Any] = Field(default_factory=dict)

    @property
    def ref(self) -> ContentRef:
        return ContentRef(content_type=self.content_type, content_id=self.id)


class ContentField(BaseModel):
    """One typed field of a payload document."""

    id: str
    type: str  # text, image, video, file
    src: str


class PayloadDocument(BaseModel):
    """Normalized document submitted to the CheckStep content endpoint."""

    id: str
    type: ContentType
    author: UserProfile | None = None
    parent_id: str | None = None
    group_id: str | None = None
    created_at: datetime
    updated_at: datetime | None = None
    fields: list[ContentField] = Field(default_factory=list)
    media: list[MediaItem] = Field(default_factory=list)
    taxonomies: dict[str, list[str]] = Field(default_factory=dict)
    metadata: dict[str, Any] = Field(default_factory=dict)

    def add_text_field(self, text: str, field_id: str = "content") -> None:
        self.fields.append(ContentField(id=field_id, type="text", src=text))

    def add_media_field(self, url: str, media_type: str, field_id: str | None = None) -> None:
        self.fields.append(ContentField(id=field_id or media_type, type=media_type, src=url))
