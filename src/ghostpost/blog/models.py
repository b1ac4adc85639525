"""Pure data models for the blog session.

All Pydantic models and enums live here. No I/O, no business logic.
The translator, gateway, session and pipeline import from this module;
this module only imports from stdlib and third-party packages.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, ClassVar

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(UTC)


# ---------------------------------------------------------------------------
# Post
# ---------------------------------------------------------------------------


class PostStatus(StrEnum):
    """Post statuses Ghost can represent."""

    DRAFT = "draft"
    PUBLISHED = "published"
    SCHEDULED = "scheduled"


class FeatureImage(BaseModel):
    """Reference to a post's featured image."""

    url: str
    id: str | None = None


class Post(BaseModel):
    """Canonical post record exposed to the session and tools."""

    id: str
    title: str
    content: str = ""
    status: PostStatus
    tags: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    published_at: datetime = Field(default_factory=utcnow)
    feature_image: FeatureImage | None = None
    excerpt: str | None = None
    url: str | None = None
    slug: str | None = None


# ---------------------------------------------------------------------------
# Gateway inputs
# ---------------------------------------------------------------------------


class CreatePostData(BaseModel):
    """Fields for a new post. Content is HTML."""

    title: str
    content: str = ""
    tags: list[str] = Field(default_factory=list)
    feature_image: FeatureImage | None = None
    status: str = PostStatus.DRAFT.value


class PostPatch(BaseModel):
    """Partial post update; only explicitly set fields are applied.

    ``None`` on ``feature_image`` or ``excerpt`` clears that field. On the
    other fields ``None`` means "leave unchanged", since a post cannot be
    without a title, body, tag list or status.
    """

    title: str | None = None
    content: str | None = None
    tags: list[str] | None = None
    status: str | None = None
    feature_image: FeatureImage | None = None
    excerpt: str | None = None

    CLEARABLE_FIELDS: ClassVar[frozenset[str]] = frozenset({"feature_image", "excerpt"})

    def present_fields(self) -> dict[str, Any]:
        """Return the fields the caller set, keyed by name."""
        return {
            name: getattr(self, name)
            for name in self.model_fields_set
            if getattr(self, name) is not None or name in self.CLEARABLE_FIELDS
        }

    @property
    def is_empty(self) -> bool:
        return not self.present_fields()


class UpdatePostData(PostPatch):
    """A patch addressed to one post.

    ``updated_at`` is the optimistic-concurrency token: the timestamp the
    caller last read. Ghost refuses the edit when the post moved on since.
    """

    id: str
    updated_at: datetime | None = None


# ---------------------------------------------------------------------------
# Asset pipeline
# ---------------------------------------------------------------------------


class GeneratedImage(BaseModel):
    """One image produced by the image model."""

    media_type: str
    data: bytes

    @property
    def extension(self) -> str:
        return self.media_type.split("/")[-1].split("+")[0]


class UploadResult(BaseModel):
    """Where the CDN put an uploaded asset."""

    url: str
    id: str
    metadata: dict[str, Any] | None = None


class AttachmentResult(BaseModel):
    """Outcome of attaching a generated feature image."""

    post: Post
    upload: UploadResult
