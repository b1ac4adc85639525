"""Shared fakes for the Ghost Admin API, image model and CDN."""

from __future__ import annotations

import copy
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from ghostpost.blog.assets import AssetPipeline
from ghostpost.blog.gateway import BlogGateway
from ghostpost.blog.models import GeneratedImage, UploadResult
from ghostpost.blog.session import PostSession
from ghostpost.blog.translator import format_timestamp
from ghostpost.errors import ConflictError, NotFoundError


class FakeAdminAPI:
    """In-memory Ghost that enforces updated_at collision checks like the real one."""

    def __init__(self) -> None:
        self.posts: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple[str, Any]] = []
        self._next_id = 0
        self._clock = datetime(2026, 1, 1, 9, 0, tzinfo=UTC)

    def _tick(self) -> str:
        self._clock += timedelta(minutes=1)
        return format_timestamp(self._clock)

    def seed(self, title: str, status: str = "draft", **extra: Any) -> dict[str, Any]:
        return self.add({"title": title, "status": status, "html": "<p>seed</p>", **extra})

    def browse(self, limit: str | int = "all") -> list[dict[str, Any]]:
        self.calls.append(("browse", limit))
        return [copy.deepcopy(p) for p in self.posts.values()]

    def add(self, post: dict[str, Any], source: str = "html") -> dict[str, Any]:
        self.calls.append(("add", copy.deepcopy(post)))
        self._next_id += 1
        post_id = f"post-{self._next_id}"
        now = self._tick()
        stored = {
            "id": post_id,
            "title": post["title"],
            "html": post.get("html", ""),
            "status": post.get("status", "draft"),
            "tags": [dict(t) for t in post.get("tags", [])],
            "feature_image": post.get("feature_image"),
            "created_at": now,
            "updated_at": now,
            "published_at": None,
            "slug": post["title"].lower().replace(" ", "-"),
            "url": f"https://blog.example.com/{post_id}/",
        }
        self.posts[post_id] = stored
        return copy.deepcopy(stored)

    def edit(self, post: dict[str, Any], source: str = "html") -> dict[str, Any]:
        self.calls.append(("edit", copy.deepcopy(post)))
        stored = self.posts.get(post["id"])
        if stored is None:
            raise NotFoundError(f"Post {post['id']} not found", status_code=404)
        if post.get("updated_at") and post["updated_at"] != stored["updated_at"]:
            raise ConflictError("Saving failed! Someone else is editing this post.", status_code=409)
        for key, value in post.items():
            if key not in ("id", "updated_at"):
                stored[key] = value
        if stored["status"] == "published" and not stored["published_at"]:
            stored["published_at"] = self._clock.isoformat()
        stored["updated_at"] = self._tick()
        return copy.deepcopy(stored)

    def read(self, post_id: str) -> dict[str, Any] | None:
        self.calls.append(("read", post_id))
        stored = self.posts.get(post_id)
        return copy.deepcopy(stored) if stored else None

    def upload_image(
        self, data: bytes, filename: str, purpose: str = "image", content_type: str = "image/png"
    ) -> dict[str, Any]:
        self.calls.append(("upload_image", filename))
        return {"url": f"https://blog.example.com/content/images/{filename}", "ref": filename}

    def touch(self, post_id: str) -> None:
        """Simulate an edit made elsewhere (e.g. in Ghost's editor)."""
        self.posts[post_id]["updated_at"] = self._tick()

    def method_calls(self) -> list[str]:
        return [name for name, _ in self.calls]


class FakeImageModel:
    def __init__(self, media_type: str = "image/png", error: Exception | None = None) -> None:
        self.media_type = media_type
        self.error = error
        self.calls: list[dict[str, Any]] = []

    def generate_image(self, prompt: str, size: str = "1024x1024", n: int = 1) -> list[GeneratedImage]:
        self.calls.append({"prompt": prompt, "size": size, "n": n})
        if self.error is not None:
            raise self.error
        return [GeneratedImage(media_type=self.media_type, data=b"\x89PNG fake")]


class FakeCDN:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.uploads: list[dict[str, Any]] = []

    def upload(
        self,
        data: bytes,
        filename: str,
        content_type: str,
        metadata: dict[str, Any] | None = None,
    ) -> UploadResult:
        if self.error is not None:
            raise self.error
        self.uploads.append({"data": data, "filename": filename, "content_type": content_type})
        return UploadResult(url=f"https://cdn.example.com/{filename}", id=filename, metadata=metadata)


@pytest.fixture()
def fake_api() -> FakeAdminAPI:
    return FakeAdminAPI()


@pytest.fixture()
def gateway(fake_api: FakeAdminAPI) -> BlogGateway:
    return BlogGateway(fake_api)


@pytest.fixture()
def session(gateway: BlogGateway) -> PostSession:
    return PostSession(gateway)


@pytest.fixture()
def image_model() -> FakeImageModel:
    return FakeImageModel()


@pytest.fixture()
def cdn() -> FakeCDN:
    return FakeCDN()


@pytest.fixture()
def pipeline(image_model: FakeImageModel, cdn: FakeCDN) -> AssetPipeline:
    return AssetPipeline(image_model, cdn)
