"""Assemble store, git client, sync coordinator and service for one vault."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .config import ShelfConfig
from .errors import SyncFault
from .git import GitClient
from .locking import vault_lock
from .service import ReadingService
from .store import RecordStore
from .sync import SyncCoordinator

logger = logging.getLogger(__name__)


@dataclass
class Vault:
    """Everything operating on one vault directory, sharing one lock."""

    config: ShelfConfig
    store: RecordStore
    git: GitClient
    coordinator: SyncCoordinator
    service: ReadingService


def git_client(config: ShelfConfig) -> GitClient:
    return GitClient(
        config.vault_path,
        remote_url=config.vault_repo,
        ssh_key_path=config.ssh_key_path,
        user_name=config.git_user_name,
        user_email=config.git_user_email,
        timeout=config.git_timeout,
    )


def open_vault(config: ShelfConfig) -> Vault:
    """Build the component graph for ``config.vault_path``.

    When a remote is configured and no working copy exists yet, the remote is
    cloned first; a failed clone is logged and the vault runs locally. The
    service only commits when the vault is a git working copy.
    """
    lock = vault_lock(config.vault_path)
    store = RecordStore(config.vault_path, config.document_name, lock=lock)
    git = git_client(config)
    coordinator = SyncCoordinator(
        git,
        vault_path=config.vault_path,
        interval=config.sync_interval,
        commit_message=config.commit_message,
        lock=lock,
    )

    if config.has_remote and not git.repo_exists():
        logger.info("vault repository not found at %s, cloning %s", config.vault_path, config.vault_repo)
        try:
            coordinator.ensure_repository()
        except SyncFault as e:
            logger.warning("failed to clone repository: %s", e)

    service = ReadingService(
        store,
        coordinator if git.repo_exists() else None,
        auto_commit=config.auto_commit,
        sync_remote=config.auto_sync,
        pull_on_read=config.auto_sync,
    )
    return Vault(config=config, store=store, git=git, coordinator=coordinator, service=service)
