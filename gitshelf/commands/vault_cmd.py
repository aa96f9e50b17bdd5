"""Vault commands - set up, inspect and sync the git working copy."""

from __future__ import annotations

import json
from dataclasses import replace
from datetime import datetime

from rich.console import Console
from rich.table import Table

from ..config import ShelfConfig
from ..errors import ShelfError
from ..sync import SyncResult
from ..vault import git_client, open_vault
from ..watcher import run_watch_loop


def run_init(config: ShelfConfig, *, remote: str | None = None) -> int:
    """Initialize a git repository in the vault directory."""
    if remote:
        config = replace(config, vault_repo=remote)
    git = git_client(config)
    console = Console(stderr=True)

    if git.repo_exists():
        console.print(f"Vault already initialized at {config.vault_path}", style="yellow")
        return 0

    git.init()
    console.print(f"[bold]Vault initialized[/bold] at {config.vault_path}", style="green")
    if config.vault_repo:
        console.print(f"  Remote: {config.vault_repo}")
    return 0


def run_clone(config: ShelfConfig, url: str) -> int:
    """Clone a remote vault into the vault directory."""
    config = replace(config, vault_repo=url)
    git = git_client(config)
    console = Console(stderr=True)

    if git.repo_exists():
        console.print(f"Vault already exists at {config.vault_path}", style="bold red")
        return 1

    git.clone()
    console.print(f"[bold]Vault cloned[/bold] from {url} to {config.vault_path}", style="green")
    return 0


def vault_status(config: ShelfConfig) -> dict:
    git = git_client(config)
    exists = git.repo_exists()
    status = {
        "exists": exists,
        "vault_path": str(config.vault_path),
        "vault_repo": config.vault_repo,
        "status": "ready" if exists else "not_initialized",
        "changes": [],
    }
    if exists:
        status["changes"] = git.status()
    return status


def run_status(config: ShelfConfig, *, output_json: bool = False) -> int:
    """Report whether the vault is initialized and what is uncommitted."""
    status = vault_status(config)

    if output_json:
        print(json.dumps(status, indent=2))
        return 0

    console = Console()
    table = Table(title="Vault", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    style = "green" if status["exists"] else "yellow"
    table.add_row("Path", status["vault_path"])
    table.add_row("Remote", status["vault_repo"] or "[dim](none)[/dim]")
    table.add_row("Status", f"[{style}]{status['status']}[/{style}]")
    table.add_row("Uncommitted", str(len(status["changes"])))
    console.print(table)

    for line in status["changes"]:
        console.print(f"  [dim]{line}[/dim]", highlight=False)
    return 0


def _report(console: Console, result: SyncResult) -> None:
    timestamp = datetime.now().strftime("%H:%M:%S")
    if not result.success:
        console.print(f"[dim]{timestamp}[/dim] [red]sync failed:[/red] {result.error}", highlight=False)
        return
    if result.pull_error:
        console.print(f"[dim]{timestamp}[/dim] [yellow]pull failed:[/yellow] {result.pull_error}", highlight=False)
    if result.noop:
        console.print(f"[dim]{timestamp}[/dim] nothing to sync")
        return
    pushed = " and pushed" if result.pushed else ""
    console.print(f"[dim]{timestamp}[/dim] committed {len(result.changes)} change(s){pushed}", style="green")


def run_sync(config: ShelfConfig, *, message: str | None = None) -> int:
    """Run one pull, commit and push cycle now."""
    vault = open_vault(config)
    if not vault.git.repo_exists():
        raise ShelfError(f"vault not initialized at {config.vault_path}")

    result = vault.coordinator.sync_now(message)
    _report(Console(stderr=True), result)
    return 0 if result.success else 1


def run_watch(config: ShelfConfig) -> int:
    """
    Sync hand edits and run periodic sync cycles until interrupted.

    This is a blocking command that runs until Ctrl+C.
    """
    vault = open_vault(config)
    if not vault.git.repo_exists():
        raise ShelfError(f"vault not initialized at {config.vault_path}")

    console = Console(stderr=True)
    console.print(f"[bold]Watching[/bold] {config.document_path}")
    console.print(f"  Sync interval: {config.sync_interval:g}s")
    console.print(f"  Remote: {config.vault_repo or '(none)'}")
    console.print()
    console.print("[dim]Press Ctrl+C to stop watching[/dim]")
    console.print()

    sync_count = 0

    def on_sync(result: SyncResult) -> None:
        nonlocal sync_count
        sync_count += 1
        _report(console, result)

    try:
        run_watch_loop(
            config.vault_path,
            config.document_path,
            vault.coordinator,
            on_sync=on_sync,
        )
    except KeyboardInterrupt:
        pass
    console.print()
    console.print(f"[bold]Stopped.[/bold] Synced {sync_count} hand edit(s).")
    return 0
