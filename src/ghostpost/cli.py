"""CLI interface for ghostpost."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Annotated, NoReturn, Optional

import typer
from rich.console import Console
from rich.table import Table

from ghostpost.blog.assets import ASPECT_RATIO_SIZES, AssetPipeline
from ghostpost.blog.gateway import BlogGateway
from ghostpost.blog.models import CreatePostData, Post, PostPatch
from ghostpost.blog.session import PostSession, load_session, save_session
from ghostpost.blog.tools import render_markdown
from ghostpost.config import GhostpostConfig, load_config
from ghostpost.errors import GhostpostError
from ghostpost.integrations.ghost import GhostAPIClient, GhostCDN
from ghostpost.shared.images import ImageGenerator

app = typer.Typer(
    name="ghostpost",
    help="Manage a Ghost blog's posts from the command line.",
    no_args_is_help=True,
)
post_app = typer.Typer(help="Work with the currently selected post.", no_args_is_help=True)
app.add_typer(post_app, name="post")

console = Console()

_state: dict[str, object] = {"config_path": None}


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from ghostpost import __version__

        console.print(f"ghostpost {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    config: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to a .ghostpost.toml file."),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Log requests and state changes."),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
) -> None:
    """ghostpost - select, write, publish and illustrate Ghost posts."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    _state["config_path"] = config


# ---------------------------------------------------------------------------
# Wiring
# ---------------------------------------------------------------------------


def _config() -> GhostpostConfig:
    try:
        return load_config(_state["config_path"])  # type: ignore[arg-type]
    except GhostpostError as exc:
        _fail(exc)


def _open_session(config: GhostpostConfig) -> tuple[PostSession, GhostAPIClient]:
    api = GhostAPIClient(config.to_ghost_config())
    session = load_session(BlogGateway(api), config.session.state_file)
    return session, api


def _fail(exc: GhostpostError) -> NoReturn:
    console.print(f"[red]Error:[/red] {exc}")
    if exc.suggestion:
        console.print(f"[dim]{exc.suggestion}[/dim]")
    raise typer.Exit(1)


def _word_count(html: str) -> int:
    return len(re.sub(r"<[^>]*>", " ", html).split())


def _print_post(post: Post) -> None:
    lines = [
        f"[bold]Title:[/bold] {post.title}",
        f"[bold]ID:[/bold] {post.id}",
        f"[bold]Status:[/bold] {post.status.value}",
        f"[bold]Created:[/bold] {post.created_at:%Y-%m-%d %H:%M}",
        f"[bold]Updated:[/bold] {post.updated_at:%Y-%m-%d %H:%M}",
        f"[bold]Word count (approx.):[/bold] {_word_count(post.content)}",
    ]
    if post.tags:
        lines.append(f"[bold]Tags:[/bold] {', '.join(post.tags)}")
    if post.excerpt:
        lines.append(f"[bold]Excerpt:[/bold] {post.excerpt[:140]}")
    if post.feature_image:
        lines.append(f"[bold]Feature image:[/bold] {post.feature_image.url}")
    if post.url:
        lines.append(f"[bold]URL:[/bold] {post.url}")
    console.print("\n".join(lines))


def _read_content(content: str | None, file: Path | None) -> str | None:
    if file is not None:
        return file.read_text(encoding="utf-8")
    return content


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command("posts")
def list_posts_cmd(
    status: Annotated[
        Optional[str], typer.Option("--status", "-s", help="draft, published or scheduled.")
    ] = None,
    tag: Annotated[Optional[str], typer.Option("--tag", "-t", help="Only posts with this tag.")] = None,
    limit: Annotated[int, typer.Option("--limit", "-n", help="Maximum posts to show.")] = 20,
) -> None:
    """List posts on the blog."""
    try:
        session, _ = _open_session(_config())
        posts = session.gateway.list()
    except GhostpostError as exc:
        _fail(exc)

    if status:
        posts = [p for p in posts if p.status.value == status]
    if tag:
        posts = [p for p in posts if tag in p.tags]
    if not posts:
        console.print("No posts found.")
        return

    current_id = session.current_post.id if session.current_post else None
    table = Table(show_header=True, header_style="bold")
    table.add_column("", width=1)
    table.add_column("ID")
    table.add_column("Title")
    table.add_column("Status")
    table.add_column("Updated")
    for post in posts[:limit]:
        table.add_row(
            "*" if post.id == current_id else "",
            post.id,
            post.title,
            post.status.value,
            f"{post.updated_at:%Y-%m-%d}",
        )
    console.print(table)
    if len(posts) > limit:
        console.print(f"[dim]Showing {limit} of {len(posts)} posts.[/dim]")


@post_app.command("select")
def select_cmd(post_id: Annotated[str, typer.Argument(help="Ghost post ID.")]) -> None:
    """Select an existing post as the current post."""
    config = _config()
    try:
        session, _ = _open_session(config)
        post = session.select(post_id)
    except GhostpostError as exc:
        _fail(exc)
    save_session(session, config.session.state_file)
    console.print(f'Selected post: "{post.title}"')


@post_app.command("open")
def open_cmd(post_id: Annotated[str, typer.Argument(help="Ghost post ID.")]) -> None:
    """Alias for ``post select``."""
    select_cmd(post_id)


@post_app.command("info")
def info_cmd() -> None:
    """Show the currently selected post."""
    config = _config()
    try:
        session, _ = _open_session(config)
    except GhostpostError as exc:
        _fail(exc)
    if session.current_post is None:
        console.print("No post is currently selected.")
        console.print("Use [bold]ghostpost post select ID[/bold] to choose a post.")
        return
    _print_post(session.current_post)


@post_app.command("new")
def new_cmd() -> None:
    """Clear the current selection to start a new post."""
    config = _config()
    try:
        session, _ = _open_session(config)
    except GhostpostError as exc:
        _fail(exc)
    session.clear()
    save_session(session, config.session.state_file)
    console.print("New post started. No post is currently selected.")


@post_app.command("create")
def create_cmd(
    title: Annotated[str, typer.Option("--title", help="Post title.")],
    content: Annotated[Optional[str], typer.Option("--content", help="Markdown body.")] = None,
    file: Annotated[
        Optional[Path],
        typer.Option("--file", "-f", help="Read the Markdown body from a file.", exists=True),
    ] = None,
    tags: Annotated[Optional[list[str]], typer.Option("--tag", "-t", help="Tag (repeatable).")] = None,
) -> None:
    """Create a draft post and select it."""
    config = _config()
    body = _read_content(content, file) or ""
    try:
        session, _ = _open_session(config)
        post = session.create(
            CreatePostData(title=title, content=render_markdown(body), tags=tags or [])
        )
    except GhostpostError as exc:
        _fail(exc)
    save_session(session, config.session.state_file)
    console.print(f'Created draft "{post.title}" ({post.id})')


@post_app.command("update")
def update_cmd(
    title: Annotated[Optional[str], typer.Option("--title", help="New title.")] = None,
    content: Annotated[Optional[str], typer.Option("--content", help="New Markdown body.")] = None,
    file: Annotated[
        Optional[Path],
        typer.Option("--file", "-f", help="Read the new Markdown body from a file.", exists=True),
    ] = None,
    tags: Annotated[
        Optional[list[str]], typer.Option("--tag", "-t", help="Replace tags (repeatable).")
    ] = None,
    status: Annotated[Optional[str], typer.Option("--status", help="New status.")] = None,
) -> None:
    """Update the currently selected post."""
    config = _config()
    changes: dict[str, object] = {}
    if title:
        changes["title"] = title
    body = _read_content(content, file)
    if body:
        changes["content"] = render_markdown(body)
    if tags:
        changes["tags"] = tags
    if status:
        changes["status"] = status

    try:
        session, _ = _open_session(config)
        post = session.update(PostPatch(**changes))
    except GhostpostError as exc:
        _fail(exc)
    save_session(session, config.session.state_file)
    console.print(f'Updated "{post.title}" ({post.status.value})')


@post_app.command("publish")
def publish_cmd() -> None:
    """Publish the currently selected post."""
    config = _config()
    try:
        session, _ = _open_session(config)
        post = session.publish()
    except GhostpostError as exc:
        _fail(exc)
    save_session(session, config.session.state_file)
    console.print(f'Published "{post.title}"')
    if post.url:
        console.print(post.url)


@post_app.command("image")
def image_cmd(
    prompt: Annotated[str, typer.Argument(help="Description of the image to generate.")],
    aspect: Annotated[
        str,
        typer.Option("--aspect", "-a", help=f"One of: {', '.join(ASPECT_RATIO_SIZES)}."),
    ] = "square",
) -> None:
    """Generate a feature image for the currently selected post."""
    config = _config()
    try:
        session, api = _open_session(config)
        pipeline = AssetPipeline(
            ImageGenerator(api_key=config.images.api_key, model=config.images.model),
            GhostCDN(api),
        )
        with console.status("Generating image..."):
            result = pipeline.attach_feature_image(session, prompt, aspect)
    except GhostpostError as exc:
        _fail(exc)
    save_session(session, config.session.state_file)
    console.print(f'Feature image set for "{result.post.title}": {result.upload.url}')


if __name__ == "__main__":
    app()
