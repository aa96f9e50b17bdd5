"""Error kinds raised by gitshelf.

Storage and validation errors abort the triggering operation and reach the
caller. Sync faults are raised by the git client but contained by the sync
coordinator, which only logs and reports them.
"""

from __future__ import annotations


class ShelfError(Exception):
    """Base class for all gitshelf errors."""


class ValidationError(ShelfError, ValueError):
    """A record or request failed validation."""


class RecordNotFound(ValidationError):
    """No record with the requested identifier exists."""

    def __init__(self, record_id: str):
        super().__init__(f"item with ID {record_id} not found")
        self.record_id = record_id


class PreambleDecodeError(ShelfError):
    """The fenced preamble block is present but is not a key/value mapping."""


class StorageIOError(ShelfError):
    """The backing document could not be read or written."""


class ConfigError(ShelfError):
    """A configuration file could not be loaded."""


class SyncFault(ShelfError):
    """A version-control operation failed."""


class GitCommandError(SyncFault):
    """A git subprocess exited with a non-zero status."""

    def __init__(self, args: list[str], returncode: int, output: str):
        self.args_list = list(args)
        self.returncode = returncode
        self.output = output
        super().__init__(f"git {' '.join(args)} failed (exit {returncode}): {output.strip()}")


class GitTimeout(SyncFault):
    """A git subprocess did not finish within the configured timeout."""

    def __init__(self, args: list[str], timeout: float):
        self.args_list = list(args)
        self.timeout = timeout
        super().__init__(f"git {' '.join(args)} timed out after {timeout:g}s")
