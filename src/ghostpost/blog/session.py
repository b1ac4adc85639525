"""Per-conversation session holding the single current post.

States are ``Empty`` (no current post) and ``Selected(post)``:

- ``create`` is only valid when empty,
- ``select`` is valid anywhere and always replaces the selection,
- ``update``/``publish`` are only valid when a post is selected,
- ``clear`` and ``reset`` always return to empty.

The current post only changes after a successful gateway response.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from ghostpost.blog.gateway import BlogGateway
from ghostpost.blog.models import CreatePostData, Post, PostPatch, PostStatus, UpdatePostData
from ghostpost.errors import StateError, ValidationError

logger = logging.getLogger(__name__)

STATE_FILENAME = ".ghostpost-session.json"
# Reset scopes that end the conversation and therefore the selection
CHAT_SCOPES = frozenset({"chat", "conversation"})


class PostSession:
    """The current post of one agent conversation."""

    def __init__(self, gateway: BlogGateway, current_post: Post | None = None) -> None:
        self.gateway = gateway
        self._current_post = current_post

    @property
    def current_post(self) -> Post | None:
        return self._current_post

    @property
    def is_selected(self) -> bool:
        return self._current_post is not None

    def require_current(self, action: str = "continue") -> Post:
        """Return the current post or raise StateError naming *action*."""
        if self._current_post is None:
            raise StateError(
                f"No post is selected; select a post before you {action}",
                suggestion="Select a post first, or create a new one",
            )
        return self._current_post

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def create(self, data: CreatePostData) -> Post:
        """Create a draft and make it the current post."""
        if self._current_post is not None:
            raise StateError(
                "A post is already selected; clear the selection before creating a new post",
                suggestion="Clear the current selection, then create the post",
            )
        post = self.gateway.create(data)
        self._current_post = post
        return post

    def select(self, post_id: str) -> Post:
        """Load a post from Ghost and make it current, replacing any selection."""
        post = self.gateway.read_by_id(post_id)
        if self._current_post is not None and self._current_post.id != post.id:
            logger.debug("Replacing selection %s with %s", self._current_post.id, post.id)
        self._current_post = post
        return post

    def update(self, patch: PostPatch) -> Post:
        """Apply *patch* to the current post.

        Fields absent from the patch keep their snapshot values. The
        snapshot's ``updated_at`` is sent as the concurrency token.
        """
        current = self.require_current("updating")
        if patch.is_empty:
            raise ValidationError(
                "Nothing to update", suggestion="Provide a title, content, tags or status"
            )

        changes = patch.present_fields()
        data = UpdatePostData(id=current.id, updated_at=current.updated_at, **changes)
        updated = self.gateway.update(data)

        # Ghost only echoes the image URL; keep the storage id we already know
        image = changes.get("feature_image")
        if (
            image is not None
            and image.id
            and updated.feature_image is not None
            and updated.feature_image.url == image.url
            and updated.feature_image.id is None
        ):
            updated = updated.model_copy(update={"feature_image": image})

        self._current_post = updated
        return updated

    def publish(self) -> Post:
        """Move the current post to ``published``."""
        current = self.require_current("publishing")
        if current.status == PostStatus.PUBLISHED:
            raise StateError(
                f"The selected post '{current.title}' is already published",
                suggestion="Select a draft post to publish",
            )
        return self.update(PostPatch(status=PostStatus.PUBLISHED.value))

    def clear(self) -> None:
        """Drop the selection. Safe to call when nothing is selected."""
        self._current_post = None

    def reset(self, scope: str | Iterable[str]) -> None:
        """Handle a lifecycle reset; chat/conversation resets clear the post."""
        scopes = {scope} if isinstance(scope, str) else set(scope)
        if scopes & CHAT_SCOPES:
            self.clear()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def serialize(self) -> dict[str, Any]:
        """Return the JSON-safe persisted form ``{"currentPost": ...}``."""
        post = self._current_post
        return {"currentPost": post.model_dump(mode="json") if post is not None else None}

    @classmethod
    def deserialize(cls, data: dict[str, Any] | None, gateway: BlogGateway) -> PostSession:
        """Rebuild a session from :meth:`serialize` output."""
        raw = (data or {}).get("currentPost")
        if raw is None:
            return cls(gateway)
        try:
            return cls(gateway, Post.model_validate(raw))
        except PydanticValidationError as exc:
            raise ValidationError(f"Stored session post is invalid: {exc.errors()[0]['msg']}") from exc


def session_path(state_file: str | Path | None = None) -> Path:
    return Path(state_file) if state_file else Path(STATE_FILENAME)


def load_session(gateway: BlogGateway, state_file: str | Path | None = None) -> PostSession:
    """Load a session from disk.

    Returns an empty session if the file doesn't exist or is corrupt.
    """
    path = session_path(state_file)
    if not path.exists():
        return PostSession(gateway)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return PostSession.deserialize(data, gateway)
    except (json.JSONDecodeError, UnicodeDecodeError, ValidationError, AttributeError):
        logger.warning("Corrupt session state at %s, starting fresh", path)
        return PostSession(gateway)


def save_session(session: PostSession, state_file: str | Path | None = None) -> None:
    """Save a session to disk."""
    path = session_path(state_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(session.serialize(), indent=2), encoding="utf-8")
