"""Pytest configuration and fixtures."""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

import pytest

from gitshelf.errors import SyncFault
from gitshelf.store import RecordStore
from gitshelf.sync import SyncCoordinator

SAMPLE_DOCUMENT = """\
---
type: reading-list
created: 2024-01-01
updated: 2024-03-01
---

# Reading List

## 📚 To Read

### [[Dune]]
- **type**: book
- **author**: Frank Herbert
- **tags**: #scifi #classic
- **priority**: high
- **added**: 2024-01-02

### [[The Pragmatic Programmer]]
- **type**: book
- **author**: Andrew Hunt
- **added**: 2024-01-05

## 📖 Reading

### [[Designing Data-Intensive Applications]]
- **type**: book
- **author**: Martin Kleppmann
- **tags**: #databases
- **started**: 2024-02-01
- **progress**: 40%
- **current_page**: 240
- **pages**: 600

## ✅ Done

### [[Neuromancer]]
- **type**: book
- **author**: William Gibson
- **tags**: #scifi
- **finished**: 2024-01-20
- **rating**: ⭐⭐⭐⭐
"""


class FakeGit:
    """In-memory stand-in for GitClient recording every call.

    ``changes`` is what ``status`` reports. Unless ``sticky`` is set, a
    successful commit clears it. Put a SyncFault in ``fail`` under an
    operation name to make that operation raise.
    """

    def __init__(self, *, remote: bool = True, changes: list[str] | None = None):
        self.remote = remote
        self.changes = list(changes or [])
        self.sticky = False
        self.nothing_to_commit = False
        self.fail: dict[str, SyncFault] = {}
        self.calls: list[str] = []
        self.commits: list[str] = []
        self.created = False

    def _call(self, name: str) -> None:
        self.calls.append(name)
        if name in self.fail:
            raise self.fail[name]

    def ensure_repository(self) -> bool:
        self._call("ensure_repository")
        self.created = True
        return True

    def has_remote(self) -> bool:
        return self.remote

    def pull(self) -> None:
        self._call("pull")

    def add(self, paths: list[str]) -> None:
        self._call("add")

    def commit(self, message: str = "") -> bool:
        self._call("commit")
        if self.nothing_to_commit:
            return False
        self.commits.append(message)
        if not self.sticky:
            self.changes = []
        return True

    def push(self) -> bool:
        self._call("push")
        return True

    def status(self) -> list[str]:
        self._call("status")
        return list(self.changes)


@pytest.fixture
def sample_document() -> str:
    """Text of the sample reading list document."""
    return SAMPLE_DOCUMENT


@pytest.fixture
def vault_path(tmp_path: Path) -> Path:
    path = tmp_path / "vault"
    path.mkdir()
    return path


@pytest.fixture
def sample_vault(vault_path: Path) -> Path:
    """Vault holding the sample reading list document."""
    (vault_path / "reading.md").write_text(SAMPLE_DOCUMENT, encoding="utf-8")
    return vault_path


@pytest.fixture
def store(vault_path: Path) -> RecordStore:
    return RecordStore(vault_path)


@pytest.fixture
def fake_git() -> FakeGit:
    return FakeGit()


@pytest.fixture
def coordinator(fake_git: FakeGit, vault_path: Path) -> SyncCoordinator:
    return SyncCoordinator(fake_git, vault_path=vault_path, interval=0.01)


def _git(*args: str, cwd: Path | None = None) -> None:
    subprocess.run(["git", *args], cwd=cwd, check=True, capture_output=True)


@pytest.fixture
def git_remote(tmp_path: Path) -> Path:
    """A bare repository acting as the shared remote. Skipped without git."""
    if shutil.which("git") is None:
        pytest.skip("git executable not available")
    remote = tmp_path / "remote.git"
    _git("init", "--bare", str(remote))
    return remote


@pytest.fixture
def local_repo(vault_path: Path) -> Path:
    """A vault that is a git working copy with no remote. Skipped without git."""
    if shutil.which("git") is None:
        pytest.skip("git executable not available")
    _git("init", cwd=vault_path)
    _git("config", "user.name", "Test", cwd=vault_path)
    _git("config", "user.email", "test@example.com", cwd=vault_path)
    _git("config", "commit.gpgsign", "false", cwd=vault_path)
    return vault_path
