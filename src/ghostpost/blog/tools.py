"""Agent-facing tools over a post session.

Each tool takes a :class:`ToolContext` and a validated parameter model and
returns a JSON-safe dict. Successful results carry ``"success": True``;
failures carry ``"success": False`` with ``error`` and, where one applies,
a ``suggestion`` the agent can relay.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Literal

import markdown as md
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from ghostpost.blog.assets import AssetPipeline
from ghostpost.blog.models import CreatePostData, Post, PostPatch
from ghostpost.blog.session import PostSession
from ghostpost.errors import GhostpostError

logger = logging.getLogger(__name__)


@dataclass
class ToolContext:
    """Everything a tool may touch for one conversation."""

    session: PostSession
    pipeline: AssetPipeline | None = None


# ---------------------------------------------------------------------------
# Markdown
# ---------------------------------------------------------------------------


def strip_leading_h1(prose: str) -> str:
    """Remove the first H1 heading line from prose.

    Ghost renders the title from API metadata, so leaving the H1 in the
    markdown body causes the title to appear twice.
    """
    lines = prose.split("\n")
    for i, line in enumerate(lines):
        stripped = line.strip()
        if not stripped:
            continue
        if stripped.startswith("# "):
            return "\n".join(lines[:i] + lines[i + 1 :]).lstrip("\n")
        break  # first non-blank line is not H1, stop
    return prose


def render_markdown(text: str) -> str:
    """Convert authored Markdown into the HTML Ghost stores."""
    return md.markdown(strip_leading_h1(text).strip(), extensions=["extra"])


def summarize_post(post: Post) -> dict[str, Any]:
    """Compact JSON view of a post for agent responses."""
    return {
        "id": post.id,
        "title": post.title,
        "status": post.status.value,
        "created_at": post.created_at.isoformat(),
        "updated_at": post.updated_at.isoformat(),
        "url": post.url,
        "excerpt": post.excerpt,
        "tags": list(post.tags),
        "feature_image": post.feature_image.url if post.feature_image else None,
    }


# ---------------------------------------------------------------------------
# Parameters
# ---------------------------------------------------------------------------


class ListPostsParams(BaseModel):
    status: Literal["draft", "published", "scheduled", "all"] = Field(
        "all", description="Filter posts by status"
    )
    tag: str | None = Field(None, description="Filter posts by tag")
    limit: int = Field(10, gt=0, description="Maximum number of posts to return")


class SelectPostParams(BaseModel):
    id: str = Field(description="The ID of the post to select")


class NoParams(BaseModel):
    pass


class CreatePostParams(BaseModel):
    title: str = Field("", description="The title of the post")
    content: str = Field(
        "",
        description=(
            "The content of the post in Markdown format. The title goes in"
            " the title field, NOT inside the content"
        ),
    )
    tags: list[str] = Field(default_factory=list, description="Tags for the post")


class UpdatePostParams(BaseModel):
    title: str | None = Field(None, description="New title for the post")
    content: str | None = Field(None, description="New content in Markdown format")
    tags: list[str] | None = Field(None, description="New tags; replaces the existing list")


class GenerateImageParams(BaseModel):
    prompt: str = Field(description="Description of the image to generate")
    aspect_ratio: Literal["square", "tall", "wide"] = Field(
        "square",
        description="square (1024x1024), tall (1024x1536) or wide (1536x1024)",
    )


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------


def _failure(error: str, suggestion: str | None = None) -> dict[str, Any]:
    result: dict[str, Any] = {"success": False, "error": error}
    if suggestion:
        result["suggestion"] = suggestion
    return result


def list_posts(ctx: ToolContext, params: ListPostsParams) -> dict[str, Any]:
    """List posts, filtered by status and tag."""
    posts = ctx.session.gateway.list()
    if params.status != "all":
        posts = [p for p in posts if p.status.value == params.status]
    if params.tag:
        posts = [p for p in posts if params.tag in p.tags]

    shown = posts[: params.limit]
    current = ctx.session.current_post
    if not posts:
        message = "No posts found."
    elif len(posts) > params.limit:
        message = f"Found {len(posts)} posts, showing {params.limit}."
    else:
        message = f"Found {len(posts)} posts."
    return {
        "success": True,
        "posts": [summarize_post(p) for p in shown],
        "count": len(posts),
        "message": message,
        "currently_selected": current.id if current else None,
    }


def select_post(ctx: ToolContext, params: SelectPostParams) -> dict[str, Any]:
    """Make a post the current post."""
    post = ctx.session.select(params.id)
    return {
        "success": True,
        "post": summarize_post(post),
        "message": f'Selected post "{post.title}".',
    }


def get_current_post(ctx: ToolContext, params: NoParams) -> dict[str, Any]:
    """Describe the current post, if any."""
    post = ctx.session.current_post
    if post is None:
        return _failure(
            "No post is currently selected.",
            "Select a post with the select_post tool or create a new one",
        )
    return {"success": True, "post": summarize_post(post), "content": post.content}


def create_post(ctx: ToolContext, params: CreatePostParams) -> dict[str, Any]:
    """Create a draft from Markdown and select it."""
    if not params.content:
        return _failure("Content is required", "Specify content for the post")
    if not params.title:
        return _failure("Title is required", "Specify a title for the post")

    post = ctx.session.create(
        CreatePostData(title=params.title, content=render_markdown(params.content), tags=params.tags)
    )
    return {
        "success": True,
        "post": summarize_post(post),
        "message": f'Post "{post.title}" created as a draft.',
        "currently_selected": True,
    }


def update_post(ctx: ToolContext, params: UpdatePostParams) -> dict[str, Any]:
    """Change the current post's title, content or tags."""
    ctx.session.require_current("updating")
    changes: dict[str, Any] = {}
    if params.title:
        changes["title"] = params.title
    if params.content:
        changes["content"] = render_markdown(params.content)
    if params.tags is not None:
        changes["tags"] = params.tags
    if not changes:
        return _failure(
            "No update parameters provided",
            "Specify at least one of title, content or tags",
        )

    post = ctx.session.update(PostPatch(**changes))
    return {
        "success": True,
        "post": summarize_post(post),
        "message": f'Post "{post.title}" updated.',
        "changes": {name: name in changes for name in ("title", "content", "tags")},
    }


def publish_post(ctx: ToolContext, params: NoParams) -> dict[str, Any]:
    """Publish the current post."""
    post = ctx.session.publish()
    return {
        "success": True,
        "post": summarize_post(post),
        "message": f'Post "{post.title}" published.',
        "url": post.url,
    }


def generate_image_for_post(ctx: ToolContext, params: GenerateImageParams) -> dict[str, Any]:
    """Generate a feature image and attach it to the current post."""
    if ctx.pipeline is None:
        return _failure(
            "Image generation is not available",
            "Configure an image model API key",
        )
    result = ctx.pipeline.attach_feature_image(ctx.session, params.prompt, params.aspect_ratio)
    return {
        "success": True,
        "message": f'Image generated and set as featured image for post "{result.post.title}"',
        "image_url": result.upload.url,
        "image_id": result.upload.id,
        "post": summarize_post(result.post),
    }


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    parameters: type[BaseModel]
    handler: Callable[[ToolContext, Any], dict[str, Any]]

    def json_schema(self) -> dict[str, Any]:
        return self.parameters.model_json_schema()


TOOLS: dict[str, ToolSpec] = {
    spec.name: spec
    for spec in (
        ToolSpec("list_posts", "List posts from the Ghost blog", ListPostsParams, list_posts),
        ToolSpec(
            "select_post",
            "Select a post by ID to work on",
            SelectPostParams,
            select_post,
        ),
        ToolSpec(
            "get_current_post",
            "Show the currently selected post",
            NoParams,
            get_current_post,
        ),
        ToolSpec(
            "create_post",
            "Create a new draft post on the Ghost blog and select it",
            CreatePostParams,
            create_post,
        ),
        ToolSpec(
            "update_post",
            "Update the title, content or tags of the currently selected post",
            UpdatePostParams,
            update_post,
        ),
        ToolSpec("publish_post", "Publish the currently selected draft post", NoParams, publish_post),
        ToolSpec(
            "generate_image_for_post",
            "Generate an AI image and set it as the featured image for the currently selected post",
            GenerateImageParams,
            generate_image_for_post,
        ),
    )
}


def run_tool(name: str, ctx: ToolContext, arguments: dict[str, Any] | None = None) -> dict[str, Any]:
    """Validate *arguments* and run the named tool, reporting errors as results."""
    spec = TOOLS.get(name)
    if spec is None:
        return _failure(f"Unknown tool: {name}", f"Available tools: {', '.join(TOOLS)}")
    try:
        params = spec.parameters.model_validate(arguments or {})
    except PydanticValidationError as exc:
        return _failure(f"Invalid arguments for {name}: {exc.errors()[0]['msg']}")
    try:
        return spec.handler(ctx, params)
    except GhostpostError as exc:
        logger.warning("Tool %s failed: %s", name, exc)
        return exc.to_dict()
