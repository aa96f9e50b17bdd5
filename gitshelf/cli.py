"""CLI entrypoint for gitshelf."""

import logging
import sys
from pathlib import Path

import click

from . import __version__
from .config import load_config
from .errors import ShelfError


def _invoke(fn, *args, **kwargs) -> None:
    """Run a command helper, turning gitshelf errors into CLI errors."""
    try:
        exit_code = fn(*args, **kwargs)
    except ShelfError as e:
        raise click.ClickException(str(e)) from e
    if exit_code:
        sys.exit(exit_code)


def _service(ctx: click.Context):
    from .vault import open_vault

    try:
        return open_vault(ctx.obj["config"]).service
    except ShelfError as e:
        raise click.ClickException(str(e)) from e


@click.group()
@click.version_option(__version__, prog_name="gitshelf")
@click.option(
    "--vault",
    "-v",
    type=click.Path(exists=False, file_okay=False, dir_okay=True, path_type=Path),
    default=None,
    help="Path to the vault directory (defaults to GITSHELF_VAULT_PATH or ./vault)",
)
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=False, dir_okay=False, path_type=Path),
    default=None,
    help="Path to config.toml (defaults to ~/.config/gitshelf/config.toml)",
)
@click.option("--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, vault: Path | None, config_file: Path | None, verbose: bool) -> None:
    """gitshelf - a reading list kept as markdown in a git repository.

    Every change is committed to the vault and pushed to its remote.
    """
    ctx.ensure_object(dict)
    try:
        config = load_config(config_file, vault_path=vault, debug=True if verbose else None)
    except ShelfError as e:
        raise click.ClickException(str(e)) from e

    logging.basicConfig(
        level=logging.DEBUG if config.debug else logging.WARNING,
        format="%(asctime)s %(name)s %(message)s",
    )
    ctx.obj["config"] = config


# -----------------------------------------------------------------------------
# Reading commands
# -----------------------------------------------------------------------------


@cli.group()
def reading() -> None:
    """Manage the reading list."""
    pass


@reading.command("list")
@click.option(
    "--status",
    type=click.Choice(["to-read", "reading", "done"]),
    default=None,
    help="Only show items with this status",
)
@click.option("--tag", type=str, default=None, help="Only show items with this tag")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def reading_list(ctx: click.Context, status: str | None, tag: str | None, output_json: bool) -> None:
    """List reading items.

    Examples:

        gitshelf reading list --status reading

        gitshelf reading list --tag scifi --json
    """
    from .commands.reading_cmd import run_list

    _invoke(run_list, _service(ctx), status=status, tag=tag, output_json=output_json)


@reading.command("show")
@click.argument("item_id")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def reading_show(ctx: click.Context, item_id: str, output_json: bool) -> None:
    """Show one item."""
    from .commands.reading_cmd import run_show

    _invoke(run_show, _service(ctx), item_id, output_json=output_json)


@reading.command("add")
@click.argument("title")
@click.option("--author", "-a", default="", help="Author (defaults to Unknown)")
@click.option(
    "--type",
    "item_type",
    type=click.Choice(["book", "article", "video", "course"]),
    default="book",
    help="Item type",
)
@click.option(
    "--priority",
    type=click.Choice(["high", "medium", "low"]),
    default="medium",
    help="Priority",
)
@click.option("--tag", "-t", "tags", multiple=True, help="Tag (repeatable)")
@click.option("--url", default="", help="Link to the item")
@click.pass_context
def reading_add(
    ctx: click.Context,
    title: str,
    author: str,
    item_type: str,
    priority: str,
    tags: tuple[str, ...],
    url: str,
) -> None:
    """Add an item to the to-read list.

    Examples:

        gitshelf reading add "Dune" --author "Frank Herbert" --tag scifi
    """
    from .commands.reading_cmd import run_add

    _invoke(
        run_add,
        _service(ctx),
        title,
        author=author,
        item_type=item_type,
        priority=priority,
        tags=tags,
        url=url,
    )


@reading.command("start")
@click.argument("item_id")
@click.pass_context
def reading_start(ctx: click.Context, item_id: str) -> None:
    """Start reading a to-read item."""
    from .commands.reading_cmd import run_start

    _invoke(run_start, _service(ctx), item_id)


@reading.command("progress")
@click.argument("item_id")
@click.argument("percentage", type=click.IntRange(0, 100))
@click.option("--page", "current_page", type=int, default=0, help="Current page")
@click.option("--pages", "total_pages", type=int, default=0, help="Total pages")
@click.pass_context
def reading_progress(
    ctx: click.Context,
    item_id: str,
    percentage: int,
    current_page: int,
    total_pages: int,
) -> None:
    """Update progress of an item being read."""
    from .commands.reading_cmd import run_progress

    _invoke(
        run_progress,
        _service(ctx),
        item_id,
        percentage,
        current_page=current_page,
        total_pages=total_pages,
    )


@reading.command("finish")
@click.argument("item_id")
@click.option("--rating", type=click.IntRange(0, 5), default=None, help="Rating from 0 to 5")
@click.option("--review", default="", help="Short review")
@click.pass_context
def reading_finish(ctx: click.Context, item_id: str, rating: int | None, review: str) -> None:
    """Mark an item being read as done."""
    from .commands.reading_cmd import run_finish

    _invoke(run_finish, _service(ctx), item_id, rating=rating, review=review)


@reading.command("shelve")
@click.argument("item_id")
@click.pass_context
def reading_shelve(ctx: click.Context, item_id: str) -> None:
    """Put an item being read back on the to-read list."""
    from .commands.reading_cmd import run_shelve

    _invoke(run_shelve, _service(ctx), item_id)


@reading.command("delete")
@click.argument("item_id")
@click.pass_context
def reading_delete(ctx: click.Context, item_id: str) -> None:
    """Delete an item."""
    from .commands.reading_cmd import run_delete

    _invoke(run_delete, _service(ctx), item_id)


@reading.command("stats")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def reading_stats(ctx: click.Context, output_json: bool) -> None:
    """Show reading list statistics."""
    from .commands.reading_cmd import run_stats

    _invoke(run_stats, _service(ctx), output_json=output_json)


# -----------------------------------------------------------------------------
# Vault commands - git working copy
# -----------------------------------------------------------------------------


@cli.group()
def vault() -> None:
    """Manage the git repository behind the vault."""
    pass


@vault.command("init")
@click.option("--remote", default=None, help="Remote URL to add as origin")
@click.pass_context
def vault_init(ctx: click.Context, remote: str | None) -> None:
    """Initialize a git repository in the vault directory."""
    from .commands.vault_cmd import run_init

    _invoke(run_init, ctx.obj["config"], remote=remote)


@vault.command("clone")
@click.argument("url")
@click.pass_context
def vault_clone(ctx: click.Context, url: str) -> None:
    """Clone a remote vault into the vault directory."""
    from .commands.vault_cmd import run_clone

    _invoke(run_clone, ctx.obj["config"], url)


@vault.command("status")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def vault_status(ctx: click.Context, output_json: bool) -> None:
    """Show vault repository status."""
    from .commands.vault_cmd import run_status

    _invoke(run_status, ctx.obj["config"], output_json=output_json)


@vault.command("sync")
@click.option("--message", "-m", default=None, help="Commit message")
@click.pass_context
def vault_sync(ctx: click.Context, message: str | None) -> None:
    """Pull, commit and push the vault now."""
    from .commands.vault_cmd import run_sync

    _invoke(run_sync, ctx.obj["config"], message=message)


@vault.command("watch")
@click.pass_context
def vault_watch(ctx: click.Context) -> None:
    """Sync hand edits and sync periodically until interrupted.

    Examples:

        gitshelf --vault ~/notes/vault vault watch
    """
    from .commands.vault_cmd import run_watch

    _invoke(run_watch, ctx.obj["config"])


def main() -> None:
    """Main entrypoint."""
    cli()


if __name__ == "__main__":
    main()
