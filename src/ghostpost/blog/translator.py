"""Translation between Ghost's post payloads and :class:`Post`.

This is the only place Ghost's wire shape is interpreted. Anything that
does not satisfy the canonical record is rejected here, before it can
reach a session.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from ghostpost.blog.models import FeatureImage, Post
from ghostpost.errors import ValidationError

REQUIRED_FIELDS = ("id", "title", "status")

def ghost_post_to_post(payload: dict[str, Any] | None) -> Post:
    """Convert a Ghost Admin API post object into a :class:`Post`.

    Raises:
        ValidationError: If the payload is missing ``id``, ``title`` or
            ``status``, or carries values the canonical record rejects.
    """
    if not isinstance(payload, dict):
        raise ValidationError(f"Expected a post object from Ghost, got {type(payload).__name__}")

    for name in REQUIRED_FIELDS:
        if not payload.get(name):
            raise ValidationError(
                f"Cannot convert Ghost post to Post: missing required field: {name}"
            )

    fields: dict[str, Any] = {
        "id": str(payload["id"]),
        "title": payload["title"],
        "content": payload.get("html") or payload.get("content") or "",
        "status": payload["status"],
        "tags": _tag_names(payload.get("tags")),
        "excerpt": payload.get("custom_excerpt") or payload.get("excerpt"),
        "url": payload.get("url"),
        "slug": payload.get("slug"),
    }
    # Absent timestamps fall back to the model's "now" default
    for stamp in ("created_at", "updated_at", "published_at"):
        if payload.get(stamp):
            fields[stamp] = payload[stamp]
    if payload.get("feature_image"):
        fields["feature_image"] = FeatureImage(url=payload["feature_image"])

    try:
        return Post.model_validate(fields)
    except PydanticValidationError as exc:
        raise ValidationError(
            f"Ghost post {payload['id']} failed validation: {exc.errors()[0]['msg']}"
        ) from exc


def to_ghost_fields(fields: dict[str, Any]) -> dict[str, Any]:
    """Convert canonical field values into Ghost's post shape.

    Only the keys present in *fields* are emitted, so the result can be
    used for both full creates and partial edits.
    """
    ghost: dict[str, Any] = {}
    for name, value in fields.items():
        if name == "content":
            ghost["html"] = value
        elif name == "tags":
            ghost["tags"] = [{"name": t} for t in value or []]
        elif name == "feature_image":
            ghost["feature_image"] = _feature_image_url(value)
        elif name == "excerpt":
            ghost["custom_excerpt"] = value
        elif name in ("updated_at", "created_at", "published_at"):
            if value is not None:
                ghost[name] = format_timestamp(value)
        else:
            ghost[name] = value.value if hasattr(value, "value") else value
    return ghost

def format_timestamp(value: datetime | str) -> str:
    """Render a timestamp the way Ghost writes them (UTC, ``Z`` suffix)."""
    if isinstance(value, str):
        return value
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")

def _tag_names(tags: Any) -> list[str]:
    """Flatten Ghost tag objects (or bare strings) into names, in order."""
    names: list[str] = []
    for tag in tags or []:
        if isinstance(tag, str):
            names.append(tag)
        elif isinstance(tag, dict):
            name = tag.get("name") or tag.get("slug")
            if name:
                names.append(name)
    return names

def _feature_image_url(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, FeatureImage):
        return value.url
    if isinstance(value, dict):
        return value.get("url")
    return str(value)
