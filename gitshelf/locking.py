"""Per-vault exclusive scope.

Every read-modify-write of the backing document and every sync cycle over
the same vault runs under one reentrant lock, keyed on the resolved vault
path. Locks are process-local; separate processes are not coordinated.
"""

from __future__ import annotations

import threading
from pathlib import Path

_locks: dict[Path, threading.RLock] = {}
_locks_lock = threading.Lock()


def vault_lock(vault_path: Path) -> threading.RLock:
    """Return the lock shared by everything operating on ``vault_path``."""
    key = Path(vault_path).resolve()
    with _locks_lock:
        lock = _locks.get(key)
        if lock is None:
            lock = threading.RLock()
            _locks[key] = lock
        return lock
