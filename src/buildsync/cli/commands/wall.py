"""Builders wall CLI commands."""

from __future__ import annotations

from typing import Optional

import typer
from rich.table import Table
from typing_extensions import Annotated

from buildsync.cli.context import _output_result, console, finish, require_session

app = typer.Typer(help="Share builds on the Builders Wall")


@app.command("list")
def list_posts(
    ctx: typer.Context,
    json_output: Annotated[bool, typer.Option("--json", help="Machine-readable JSON output")] = False,
) -> None:
    """List wall posts, newest first."""
    actor_session = require_session(ctx, json_output)
    posts = actor_session.store.wall_posts

    if json_output:
        _output_result(True, {"posts": [p.to_dict() for p in posts]})
        return

    table = Table(title="Builders Wall")
    table.add_column("ID", style="cyan")
    table.add_column("Author")
    table.add_column("Post")
    table.add_column("Likes", justify="right")
    table.add_column("Comments", justify="right")
    for p in posts:
        table.add_row(p.id, p.author_name, p.content[:50], str(p.likes), str(len(p.comments)))
    console.print(table)


@app.command("post")
def post(
    ctx: typer.Context,
    content: Annotated[str, typer.Argument(help="Post text")],
    image: Annotated[Optional[str], typer.Option("--image", help="Image URL")] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Machine-readable JSON output")] = False,
) -> None:
    """Share a post to the wall."""
    actor_session = require_session(ctx, json_output)
    result = actor_session.wall.add_wall_post(content, image=image)
    finish(
        actor_session,
        result,
        json_output,
        {"post": result.to_dict() if result else None},
        f"[green]OK[/green] posted {result.id if result else ''}",
        "Post text must not be empty.",
    )


@app.command("like")
def like(
    ctx: typer.Context,
    post_id: Annotated[str, typer.Argument(help="Post ID")],
    json_output: Annotated[bool, typer.Option("--json", help="Machine-readable JSON output")] = False,
) -> None:
    """Like a post, or remove your like."""
    actor_session = require_session(ctx, json_output)
    result = actor_session.wall.toggle_like(post_id)
    finish(
        actor_session,
        result,
        json_output,
        {"post": result.to_dict() if result else None},
        f"{post_id}: {result.likes if result else 0} likes",
        f"Post {post_id} not found",
    )


@app.command("comment")
def comment(
    ctx: typer.Context,
    post_id: Annotated[str, typer.Argument(help="Post ID")],
    text: Annotated[str, typer.Argument(help="Comment text")],
    json_output: Annotated[bool, typer.Option("--json", help="Machine-readable JSON output")] = False,
) -> None:
    """Comment on a post."""
    actor_session = require_session(ctx, json_output)
    result = actor_session.wall.add_comment(post_id, text)
    finish(
        actor_session,
        result,
        json_output,
        {"post": result.to_dict() if result else None},
        "[green]OK[/green] comment added",
        f"Post {post_id} not found",
    )


@app.command("save")
def save(
    ctx: typer.Context,
    post_id: Annotated[str, typer.Argument(help="Post ID")],
    collection_id: Annotated[str, typer.Option("--collection", help="Collection ID")] = "default",
    json_output: Annotated[bool, typer.Option("--json", help="Machine-readable JSON output")] = False,
) -> None:
    """Save a post into a collection."""
    actor_session = require_session(ctx, json_output)
    result = actor_session.wall.save_post(post_id, collection_id)
    finish(
        actor_session,
        result,
        json_output,
        {"collection": result.to_dict() if result else None},
        f"[green]OK[/green] saved to {result.name if result else ''}",
        f"Collection {collection_id} not found",
    )


@app.command("collection")
def collection(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Collection name")],
    post_id: Annotated[
        Optional[str], typer.Option("--save", help="Post to save into the new collection")
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Machine-readable JSON output")] = False,
) -> None:
    """Create a collection for saved posts."""
    actor_session = require_session(ctx, json_output)
    result = actor_session.wall.create_collection(name, auto_save_post_id=post_id)
    finish(
        actor_session,
        result,
        json_output,
        {"collection": result.to_dict()},
        f"[green]OK[/green] collection {result.id} created",
        "",
    )
