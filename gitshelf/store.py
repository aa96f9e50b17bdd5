"""File-backed record store.

RecordStore owns the single reading list document of a vault. Every
operation reads and parses the whole file; every write renders and replaces
the whole file:

    store = RecordStore(Path("vault"))
    store.save(new_record("Dune", "Herbert"))
    store.find_by_status(Status.TO_READ)

A missing document reads as an empty record set. Concurrent writers inside
one process are serialized by the vault lock; callers that need a wider
read-modify-write scope hold ``store.lock`` themselves.
"""

from __future__ import annotations

import logging
import os
import tempfile
import threading
from datetime import date
from pathlib import Path

from .document.mapper import map_document
from .document.parser import parse
from .document.serializer import serialize
from .errors import StorageIOError
from .locking import vault_lock
from .models import Record, Status

logger = logging.getLogger(__name__)

DEFAULT_DOCUMENT = "reading.md"


class RecordStore:
    """Read-modify-write record operations over one markdown document."""

    def __init__(
        self,
        vault_path: Path,
        document_name: str = DEFAULT_DOCUMENT,
        *,
        lock: threading.RLock | None = None,
    ):
        self.vault_path = Path(vault_path)
        self.document_name = document_name
        self.path = self.vault_path / document_name
        self.lock = lock or vault_lock(self.vault_path)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def read_bytes(self) -> bytes | None:
        """Raw document content, or None if the document does not exist."""
        try:
            return self.path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageIOError(f"failed to read {self.path}: {e}") from e

    def find_all(self) -> list[Record]:
        with self.lock:
            content = self.read_bytes()
        if content is None:
            return []
        return map_document(parse(content))

    def find_by_id(self, record_id: str) -> Record | None:
        for record in self.find_all():
            if record.id == record_id:
                return record
        return None

    def find_by_status(self, status: Status) -> list[Record]:
        return [r for r in self.find_all() if r.status is status]

    def find_by_tag(self, tag: str) -> list[Record]:
        return [r for r in self.find_all() if tag in r.tags]

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def save(self, record: Record) -> None:
        """Replace the record with the same id in place, or append it."""
        with self.lock:
            records = self.find_all()
            for i, existing in enumerate(records):
                if existing.id == record.id:
                    records[i] = record
                    break
            else:
                records.append(record)
            self.write_all(records)

    update = save

    def delete(self, record_id: str) -> bool:
        """Remove the record with ``record_id``. Returns False if it was absent."""
        with self.lock:
            records = self.find_all()
            remaining = [r for r in records if r.id != record_id]
            if len(remaining) == len(records):
                return False
            self.write_all(remaining)
            return True

    def write_all(self, records: list[Record], *, today: date | None = None) -> None:
        """Render ``records`` and replace the document with the result."""
        content = serialize(records, today=today)
        with self.lock:
            _atomic_write_bytes(self.path, content)
        logger.debug("wrote %d records to %s", len(records), self.path)


def _atomic_write_bytes(path: Path, content: bytes) -> None:
    """Write ``content`` to a temp file beside ``path`` and rename it into place."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise StorageIOError(f"failed to create directory {path.parent}: {e}") from e

    try:
        fd, tmp_path = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp")
    except OSError as e:
        raise StorageIOError(f"failed to write {path}: {e}") from e

    try:
        with os.fdopen(fd, "wb") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_path, 0o644)
        os.replace(tmp_path, path)
    except OSError as e:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise StorageIOError(f"failed to write {path}: {e}") from e
