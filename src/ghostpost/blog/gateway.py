"""CRUD facade over the Ghost Admin API."""

from __future__ import annotations

import logging
from typing import Any

from ghostpost.blog.models import CreatePostData, Post, PostStatus, UpdatePostData
from ghostpost.blog.translator import ghost_post_to_post, to_ghost_fields
from ghostpost.errors import (
    GhostpostError,
    NotFoundError,
    UnsupportedOperationError,
    UpstreamError,
    ValidationError,
)
from ghostpost.integrations.ghost import AdminAPI

logger = logging.getLogger(__name__)

SUPPORTED_STATUSES = frozenset(s.value for s in PostStatus)
# Statuses other blog backends accept that Ghost has no equivalent for
UNSUPPORTED_STATUSES = frozenset({"pending", "private"})

# Fields of UpdatePostData that address the edit rather than change the post
_ADDRESS_FIELDS = frozenset({"id", "updated_at"})


def check_status(status: str | None) -> None:
    """Reject statuses Ghost cannot represent before anything is sent."""
    if status is None:
        return
    value = status.value if isinstance(status, PostStatus) else str(status)
    if value in UNSUPPORTED_STATUSES:
        raise UnsupportedOperationError(
            f"Ghost does not support {value} posts",
            suggestion="Use draft, published or scheduled",
        )
    if value not in SUPPORTED_STATUSES:
        raise UnsupportedOperationError(
            f"Unknown post status {value!r}",
            suggestion="Use draft, published or scheduled",
        )


class BlogGateway:
    """List, create, read and update posts on one Ghost site.

    Every response is passed through the translator, so callers only ever
    see validated :class:`Post` records.
    """

    def __init__(self, api: AdminAPI) -> None:
        self._api = api

    def list(self) -> list[Post]:
        """Return every post on the site.

        Posts that fail translation (for example Ghost's email-only
        ``sent`` status) are skipped with a warning.
        """
        payloads = self._call("list posts", self._api.browse, "all")
        posts: list[Post] = []
        for payload in payloads or []:
            try:
                posts.append(ghost_post_to_post(payload))
            except ValidationError as exc:
                logger.warning("Skipping post in listing: %s", exc)
        return posts

    def create(self, data: CreatePostData) -> Post:
        """Create a post as a draft.

        The caller's ``status`` is checked but never sent: new posts always
        start as drafts and go live through a later update.
        """
        check_status(data.status)
        if not data.title or not data.title.strip():
            raise ValidationError("Title is required", suggestion="Specify a title for the post")
        if data.status != PostStatus.DRAFT.value:
            logger.debug("Ignoring requested status %r for new post; creating draft", data.status)

        fields: dict[str, Any] = {
            "title": data.title,
            "content": data.content,
            "tags": data.tags,
            "status": PostStatus.DRAFT,
        }
        if data.feature_image is not None:
            fields["feature_image"] = data.feature_image

        payload = self._call("create post", self._api.add, to_ghost_fields(fields), "html")
        post = ghost_post_to_post(payload)
        logger.info("Created draft '%s' (%s)", post.title, post.id)
        return post

    def read_by_id(self, post_id: str) -> Post:
        """Fetch one post by its Ghost id."""
        if not post_id:
            raise ValidationError("Post id is required", suggestion="List posts to find an id")
        payload = self._call("read post", self._api.read, post_id)
        if payload is None:
            raise NotFoundError(f"Post with ID {post_id} not found")
        return ghost_post_to_post(payload)

    def update(self, data: UpdatePostData) -> Post:
        """Send a partial edit.

        Only the fields the caller set are sent; ``tags`` replaces the whole
        tag list. ``updated_at``, when given, is forwarded so Ghost can
        reject the edit if the post changed since it was read.
        """
        changes = {k: v for k, v in data.present_fields().items() if k not in _ADDRESS_FIELDS}
        if "status" in changes:
            check_status(changes["status"])
        if "title" in changes and not (changes["title"] or "").strip():
            raise ValidationError("Title cannot be empty")

        fields: dict[str, Any] = {"id": data.id, **changes}
        if data.updated_at is not None:
            fields["updated_at"] = data.updated_at

        payload = self._call("update post", self._api.edit, to_ghost_fields(fields), "html")
        post = ghost_post_to_post(payload)
        logger.info("Updated '%s' (%s): %s", post.title, post.id, ", ".join(sorted(changes)) or "no fields")
        return post

    @staticmethod
    def _call(action: str, fn: Any, *args: Any) -> Any:
        """Invoke the CMS client, wrapping transport failures as UpstreamError."""
        try:
            return fn(*args)
        except GhostpostError:
            raise
        except Exception as exc:
            raise UpstreamError(f"Failed to {action}: {exc}") from exc
