"""Sync coordinator: treat a git remote as the shared copy of a vault.

One sync cycle runs pull -> status -> add -> commit -> push:

- A failed pull is logged and the cycle continues on the local copy, so
  losing connectivity never blocks local reads and writes.
- A clean working tree ends the cycle as a no-op.
- "Nothing to commit" and "already up to date" are successes.
- Any other failure leaves the coordinator FAULTED. It is logged and
  reported in the SyncResult, never raised. The next cycle starts with a
  pull again. There is no conflict resolution beyond the rebase pull.

Cycles run on demand (``sync_now``) or on a fixed interval in a background
thread (``start``/``stop``). Both share the vault lock with the record
store, so a cycle never interleaves with a foreground read-modify-write.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterator, Protocol

from .errors import SyncFault
from .locking import vault_lock

logger = logging.getLogger(__name__)

DEFAULT_SYNC_MESSAGE = "Auto-sync from gitshelf"
DEFAULT_INTERVAL = 300.0


class VersionControl(Protocol):
    """Operations the coordinator needs from a git client."""

    def ensure_repository(self) -> bool: ...

    def has_remote(self) -> bool: ...

    def pull(self) -> None: ...

    def add(self, paths: list[str]) -> None: ...

    def commit(self, message: str = "") -> bool: ...

    def push(self) -> bool: ...

    def status(self) -> list[str]: ...


class SyncState(str, Enum):
    IDLE = "idle"
    PULLING = "pulling"
    STAGING = "staging"
    COMMITTING = "committing"
    PUSHING = "pushing"
    FAULTED = "faulted"


@dataclass
class SyncResult:
    """Outcome of one sync cycle."""

    pulled: bool = False
    committed: bool = False
    pushed: bool = False
    changes: list[str] = field(default_factory=list)
    pull_error: str | None = None
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def noop(self) -> bool:
        return self.success and not self.committed


class SyncCoordinator:
    """Drive sync cycles for one vault working copy."""

    def __init__(
        self,
        git: VersionControl,
        *,
        vault_path: Path,
        interval: float = DEFAULT_INTERVAL,
        commit_message: str = DEFAULT_SYNC_MESSAGE,
        lock: threading.RLock | None = None,
    ):
        self.git = git
        self.vault_path = Path(vault_path)
        self.interval = interval
        self.commit_message = commit_message
        self.lock = lock or vault_lock(self.vault_path)
        self.state = SyncState.IDLE
        self.last_result: SyncResult | None = None
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    # ------------------------------------------------------------------
    # Cycles
    # ------------------------------------------------------------------

    def ensure_repository(self) -> bool:
        """Initialize or clone the working copy if it does not exist yet."""
        with self.lock:
            return self.git.ensure_repository()

    def sync_now(self, message: str | None = None) -> SyncResult:
        """Run one full pull -> commit -> push cycle."""
        with self.lock:
            result = SyncResult()
            self._pull(result)
            self._publish(result, message or self.commit_message)
            self.last_result = result
            return result

    def refresh(self) -> SyncResult:
        """Pull only. Failures are logged and reported, never raised."""
        with self.lock:
            result = SyncResult()
            previous = self.state
            self._pull(result)
            # a failed pull leaves an earlier fault standing
            if result.pull_error and previous is SyncState.FAULTED:
                self.state = SyncState.FAULTED
            else:
                self.state = SyncState.IDLE
            return result

    def publish(self, message: str | None = None, *, push: bool = True) -> SyncResult:
        """Stage, commit and push local changes without pulling first."""
        with self.lock:
            result = SyncResult()
            self._publish(result, message or self.commit_message, push=push)
            self.last_result = result
            return result

    @contextmanager
    def transaction(
        self,
        message: str | None = None,
        *,
        pull: bool = True,
        commit: bool = True,
        push: bool = True,
    ) -> Iterator[None]:
        """Exclusive scope for a foreground read-modify-write.

        Pulls on entry and publishes on clean exit. An exception inside the
        block propagates and nothing is committed.
        """
        with self.lock:
            if pull:
                self.refresh()
            yield
            if commit:
                self.publish(message, push=push)

    def _pull(self, result: SyncResult) -> None:
        self.state = SyncState.PULLING
        try:
            if not self.git.has_remote():
                return
            self.git.pull()
            result.pulled = True
        except SyncFault as e:
            result.pull_error = str(e)
            logger.warning("git pull failed, continuing with local copy: %s", e)

    def _publish(self, result: SyncResult, message: str, *, push: bool = True) -> None:
        try:
            self.state = SyncState.STAGING
            changes = self.git.status()
            if not changes:
                logger.debug("working tree clean, nothing to sync")
                self.state = SyncState.IDLE
                return

            result.changes = changes
            logger.info("local changes detected, committing %d path(s)", len(changes))
            self.git.add(["."])

            self.state = SyncState.COMMITTING
            result.committed = self.git.commit(message)
            if not result.committed:
                logger.debug("nothing staged after add, cycle is a no-op")
                self.state = SyncState.IDLE
                return

            self.state = SyncState.PUSHING
            if push and self.git.has_remote():
                self.git.push()
                result.pushed = True
                logger.info("changes pushed successfully")
            self.state = SyncState.IDLE
        except SyncFault as e:
            phase = self.state.value
            self.state = SyncState.FAULTED
            result.error = str(e)
            logger.warning("sync failed while %s: %s", phase, e)

    # ------------------------------------------------------------------
    # Background timer
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start syncing every ``interval`` seconds in a daemon thread."""
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="gitshelf-sync", daemon=True)
        self._thread.start()
        logger.info("starting git sync service (interval: %gs)", self.interval)

    def stop(self, wait: bool = True, timeout: float | None = None) -> None:
        """Stop scheduling cycles. An in-flight cycle runs to completion."""
        self._stop.set()
        if wait and self._thread is not None:
            self._thread.join(timeout)
        if not self.running:
            self._thread = None
            logger.info("git sync service stopped")

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            self.sync_now()
