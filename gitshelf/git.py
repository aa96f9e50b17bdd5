"""Thin wrapper around the git executable for one vault working copy."""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from pathlib import Path

from .errors import GitCommandError, GitTimeout, StorageIOError

logger = logging.getLogger(__name__)

DEFAULT_COMMIT_MESSAGE = "Update from gitshelf"
REMOTE_NAME = "origin"

_NOTHING_TO_COMMIT = ("nothing to commit", "nothing added to commit", "no changes added to commit")
_UP_TO_DATE = ("up-to-date", "up to date")


class GitClient:
    """Run git commands against a vault directory.

    Every command raises GitCommandError on a non-zero exit and GitTimeout
    when it outlives ``timeout`` seconds.
    """

    def __init__(
        self,
        repo_path: Path,
        *,
        remote_url: str = "",
        ssh_key_path: Path | None = None,
        user_name: str = "",
        user_email: str = "",
        timeout: float = 60.0,
    ):
        self.repo_path = Path(repo_path)
        self.remote_url = remote_url
        self.ssh_key_path = Path(ssh_key_path).expanduser() if ssh_key_path else None
        self.user_name = user_name
        self.user_email = user_email
        self.timeout = timeout
        self._transport_env: dict[str, str] | None = None

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------

    def transport_env(self) -> dict[str, str]:
        """Environment for network commands, computed once on first use.

        Binds ssh to the configured key file when it exists.
        """
        if self._transport_env is None:
            env: dict[str, str] = {}
            if self.ssh_key_path is not None and self.ssh_key_path.is_file():
                env["GIT_SSH_COMMAND"] = (
                    f"ssh -i {shlex.quote(str(self.ssh_key_path))} -o StrictHostKeyChecking=accept-new"
                )
                logger.debug("using ssh key %s", self.ssh_key_path)
            self._transport_env = env
        return self._transport_env

    # ------------------------------------------------------------------
    # Repository lifecycle
    # ------------------------------------------------------------------

    def repo_exists(self) -> bool:
        return (self.repo_path / ".git").is_dir()

    def init(self) -> None:
        """Create a repository in the vault directory. No-op if one exists."""
        if self.repo_exists():
            return
        _mkdir(self.repo_path)
        self._run("init")
        self.configure_user()
        if self.remote_url:
            self._run("remote", "add", REMOTE_NAME, self.remote_url)

    def clone(self) -> None:
        if not self.remote_url:
            raise ValueError("repository URL is required for clone")
        _mkdir(self.repo_path.parent)
        self._run(
            "clone",
            self.remote_url,
            str(self.repo_path),
            cwd=self.repo_path.parent,
            network=True,
        )
        self.configure_user()

    def ensure_repository(self) -> bool:
        """Make sure a working copy exists. Returns True if one was created.

        Clones when a remote is known and the vault directory is absent or
        empty; otherwise initializes in place.
        """
        if self.repo_exists():
            return False
        vault_empty = not self.repo_path.exists() or not any(self.repo_path.iterdir())
        if self.remote_url and vault_empty:
            self.clone()
        else:
            self.init()
        return True

    def configure_user(self) -> None:
        if self.user_name:
            self._run("config", "user.name", self.user_name)
        if self.user_email:
            self._run("config", "user.email", self.user_email)

    def has_remote(self) -> bool:
        return bool(self._run("remote").strip())

    # ------------------------------------------------------------------
    # Sync primitives
    # ------------------------------------------------------------------

    def pull(self) -> None:
        """Fetch and rebase local commits onto the remote branch."""
        self._run("pull", "--rebase", "--autostash", network=True)

    def add(self, paths: list[str]) -> None:
        self._run("add", "--", *paths)

    def commit(self, message: str = "") -> bool:
        """Commit the index. Returns False when there was nothing to commit."""
        try:
            self._run("commit", "-m", message or DEFAULT_COMMIT_MESSAGE)
        except GitCommandError as e:
            if any(marker in e.output for marker in _NOTHING_TO_COMMIT):
                return False
            raise
        return True

    def push(self) -> bool:
        """Push the current branch. Returns False when the remote was already up to date."""
        try:
            output = self._run("push", "--set-upstream", REMOTE_NAME, "HEAD", network=True)
        except GitCommandError as e:
            if any(marker in e.output for marker in _UP_TO_DATE):
                return False
            raise
        return not any(marker in output for marker in _UP_TO_DATE)

    def status(self) -> list[str]:
        """Porcelain status lines; empty when the working tree is clean."""
        output = self._run("status", "--porcelain")
        return [line for line in output.splitlines() if line.strip()]

    def has_changes(self) -> bool:
        return bool(self.status())

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _run(self, *args: str, cwd: Path | None = None, network: bool = False) -> str:
        cmd = ["git", *args]
        env = None
        if network and self.transport_env():
            env = {**os.environ, **self.transport_env()}

        logger.debug("running git %s in %s", " ".join(args), cwd or self.repo_path)
        try:
            result = subprocess.run(
                cmd,
                cwd=str(cwd or self.repo_path),
                env=env,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise GitTimeout(list(args), self.timeout) from e
        except OSError as e:
            raise GitCommandError(list(args), -1, str(e)) from e

        output = (result.stdout or "") + (result.stderr or "")
        if result.returncode != 0:
            raise GitCommandError(list(args), result.returncode, output)
        return output


def _mkdir(path: Path) -> None:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise StorageIOError(f"failed to create directory {path}: {e}") from e
