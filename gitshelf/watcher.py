"""
File system watcher for hand edits to the reading list document.

Edits made outside gitshelf (an editor, a note-taking app) are picked up,
debounced, and pushed through a sync cycle. Editor save cycles that leave
the content unchanged are ignored by comparing content hashes.
"""

from __future__ import annotations

import hashlib
import logging
import time
from pathlib import Path
from typing import Callable

from watchdog.events import (
    FileCreatedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from .sync import SyncCoordinator, SyncResult

logger = logging.getLogger(__name__)

HAND_EDIT_MESSAGE = "Sync hand edits"


def compute_file_hash(path: Path) -> str | None:
    try:
        return hashlib.sha256(path.read_bytes()).hexdigest()
    except OSError:
        return None


class DocumentEventHandler(FileSystemEventHandler):
    """
    Watches one backing document and syncs it after it settles.

    Key behaviors:
    - Ignores hidden paths, including everything under .git/
    - Debounces bursts of modifications (e.g., editor save cycles)
    - Skips flushes whose content hash matches the last one seen
    """

    DEBOUNCE_SECONDS = 1.0

    def __init__(
        self,
        vault_path: Path,
        document_path: Path,
        coordinator: SyncCoordinator,
        on_sync: Callable[[SyncResult], None] | None = None,
    ):
        super().__init__()
        self.vault_path = Path(vault_path).resolve()
        self.document_path = Path(document_path).resolve()
        self.coordinator = coordinator
        self.on_sync = on_sync

        # Time of the most recent unflushed event, None when nothing is pending
        self.pending_since: float | None = None
        self.last_hash = compute_file_hash(self.document_path)

    def _is_relevant(self, path: str) -> bool:
        p = Path(path).resolve()
        try:
            relative = p.relative_to(self.vault_path)
        except ValueError:
            return False
        if any(part.startswith(".") for part in relative.parts):
            return False
        return p == self.document_path

    def _mark(self) -> None:
        self.pending_since = time.time()

    def flush_pending(self) -> SyncResult | None:
        """Sync the document if it has been quiet for the debounce window."""
        if self.pending_since is None:
            return None
        if time.time() - self.pending_since < self.DEBOUNCE_SECONDS:
            return None
        self.pending_since = None

        new_hash = compute_file_hash(self.document_path)
        if new_hash == self.last_hash:
            return None
        self.last_hash = new_hash

        logger.info("hand edit detected in %s", self.document_path.name)
        result = self.coordinator.sync_now(HAND_EDIT_MESSAGE)
        # A pull may have rewritten the document; do not treat that as an edit
        self.last_hash = compute_file_hash(self.document_path)
        if self.on_sync:
            self.on_sync(result)
        return result

    def on_created(self, event: FileCreatedEvent) -> None:
        if event.is_directory or not self._is_relevant(event.src_path):
            return
        self._mark()

    def on_modified(self, event: FileModifiedEvent) -> None:
        if event.is_directory or not self._is_relevant(event.src_path):
            return
        self._mark()

    def on_moved(self, event: FileMovedEvent) -> None:
        # Editors that save via rename land the document as a move destination
        if event.is_directory or not self._is_relevant(event.dest_path):
            return
        self._mark()


def watch_document(
    vault_path: Path,
    document_path: Path,
    coordinator: SyncCoordinator,
    on_sync: Callable[[SyncResult], None] | None = None,
) -> tuple[Observer, DocumentEventHandler]:
    """
    Start watching a vault for edits to its document.

    Returns:
        Tuple of (observer, handler) - caller should call observer.stop() to stop watching
    """
    handler = DocumentEventHandler(vault_path, document_path, coordinator, on_sync=on_sync)

    observer = Observer()
    observer.schedule(handler, str(vault_path), recursive=True)
    observer.start()

    return observer, handler


def run_watch_loop(
    vault_path: Path,
    document_path: Path,
    coordinator: SyncCoordinator,
    on_sync: Callable[[SyncResult], None] | None = None,
) -> None:
    """
    Run the watcher and the timed sync loop until interrupted.

    This is a blocking function that flushes pending edits periodically.
    """
    observer, handler = watch_document(vault_path, document_path, coordinator, on_sync=on_sync)
    coordinator.start()

    try:
        while True:
            time.sleep(0.5)
            handler.flush_pending()
    except KeyboardInterrupt:
        observer.stop()
    finally:
        coordinator.stop()

    observer.join()
