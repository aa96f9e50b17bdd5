import threading
import time
from pathlib import Path

import pytest

from gitshelf.errors import GitCommandError, GitTimeout
from gitshelf.git import GitClient
from gitshelf.locking import vault_lock
from gitshelf.store import RecordStore
from gitshelf.models import Record
from gitshelf.sync import SyncCoordinator, SyncState


def test_sync_commits_and_pushes_changes(coordinator: SyncCoordinator, fake_git) -> None:
    fake_git.changes = [" M reading.md"]
    result = coordinator.sync_now()

    assert result.success
    assert (result.pulled, result.committed, result.pushed) == (True, True, True)
    assert result.changes == [" M reading.md"]
    assert fake_git.calls == ["pull", "status", "add", "commit", "push"]
    assert fake_git.commits == ["Auto-sync from gitshelf"]
    assert coordinator.state is SyncState.IDLE
    assert coordinator.last_result is result


def test_custom_message(coordinator: SyncCoordinator, fake_git) -> None:
    fake_git.changes = [" M reading.md"]
    coordinator.sync_now("Sync hand edits")
    assert fake_git.commits == ["Sync hand edits"]


def test_clean_tree_is_noop(coordinator: SyncCoordinator, fake_git) -> None:
    result = coordinator.sync_now()
    assert result.success and result.noop
    assert fake_git.calls == ["pull", "status"]
    assert coordinator.state is SyncState.IDLE


def test_nothing_to_commit_is_noop(coordinator: SyncCoordinator, fake_git) -> None:
    fake_git.changes = ["?? .DS_Store"]
    fake_git.nothing_to_commit = True
    result = coordinator.sync_now()
    assert result.success and result.noop
    assert "push" not in fake_git.calls


def test_pull_failure_continues_with_local_copy(coordinator: SyncCoordinator, fake_git, caplog) -> None:
    fake_git.fail["pull"] = GitCommandError(["pull", "--rebase"], 1, "fatal: unable to access remote")
    fake_git.changes = [" M reading.md"]

    with caplog.at_level("WARNING"):
        result = coordinator.sync_now()

    assert result.success
    assert not result.pulled
    assert "unable to access remote" in result.pull_error
    assert result.committed and result.pushed
    assert "git pull failed" in caplog.text


def test_push_failure_is_reported_not_raised(coordinator: SyncCoordinator, fake_git) -> None:
    fake_git.fail["push"] = GitTimeout(["push"], 60)
    fake_git.changes = [" M reading.md"]

    result = coordinator.sync_now()

    assert not result.success
    assert result.committed and not result.pushed
    assert "timed out" in result.error
    assert coordinator.state is SyncState.FAULTED

    # The next cycle starts over with a pull
    del fake_git.fail["push"]
    fake_git.calls.clear()
    result = coordinator.sync_now()
    assert result.success
    assert fake_git.calls[0] == "pull"
    assert coordinator.state is SyncState.IDLE


def test_commit_failure_faults(coordinator: SyncCoordinator, fake_git) -> None:
    fake_git.fail["commit"] = GitCommandError(["commit"], 128, "fatal: unable to auto-detect email address")
    fake_git.changes = [" M reading.md"]
    result = coordinator.sync_now()
    assert not result.success
    assert "push" not in fake_git.calls
    assert coordinator.state is SyncState.FAULTED


def test_no_remote_skips_pull_and_push(coordinator: SyncCoordinator, fake_git) -> None:
    fake_git.remote = False
    fake_git.changes = [" M reading.md"]
    result = coordinator.sync_now()
    assert result.committed and not result.pushed and not result.pulled
    assert fake_git.calls == ["status", "add", "commit"]


def test_refresh_only_pulls(coordinator: SyncCoordinator, fake_git) -> None:
    fake_git.changes = [" M reading.md"]
    result = coordinator.refresh()
    assert result.pulled
    assert fake_git.calls == ["pull"]


def test_transaction_commits_on_clean_exit(coordinator: SyncCoordinator, fake_git) -> None:
    with coordinator.transaction("Add Dune"):
        fake_git.changes = ["?? reading.md"]
    assert fake_git.calls == ["pull", "status", "add", "commit", "push"]
    assert fake_git.commits == ["Add Dune"]


def test_transaction_commits_nothing_on_error(coordinator: SyncCoordinator, fake_git) -> None:
    with pytest.raises(RuntimeError):
        with coordinator.transaction("Add Dune"):
            fake_git.changes = ["?? reading.md"]
            raise RuntimeError("boom")
    assert fake_git.commits == []


def test_transaction_holds_vault_lock(coordinator: SyncCoordinator, vault_path: Path) -> None:
    lock = vault_lock(vault_path)
    assert coordinator.lock is lock
    with coordinator.transaction():
        # Reentrant for the owning thread
        assert lock.acquire(blocking=False)
        lock.release()


def test_background_cycle_waits_for_transaction(coordinator: SyncCoordinator, fake_git) -> None:
    with coordinator.transaction("Add Dune"):
        background = threading.Thread(target=coordinator.sync_now)
        background.start()
        background.join(timeout=0.2)
        # Blocked on the vault lock between the foreground pull and write
        assert background.is_alive()
        assert fake_git.calls == ["pull"]

    background.join(timeout=5)
    assert not background.is_alive()
    assert fake_git.calls == ["pull", "status", "pull", "status"]


def test_failed_refresh_keeps_earlier_fault(coordinator: SyncCoordinator, fake_git) -> None:
    fake_git.changes = [" M reading.md"]
    fake_git.fail["push"] = GitTimeout(["push"], 60)
    coordinator.sync_now()
    assert coordinator.state is SyncState.FAULTED

    fake_git.fail["pull"] = GitCommandError(["pull"], 1, "could not resolve host")
    assert coordinator.refresh().pull_error is not None
    assert coordinator.state is SyncState.FAULTED

    del fake_git.fail["pull"]
    assert coordinator.refresh().pulled
    assert coordinator.state is SyncState.IDLE


def test_ensure_repository_delegates(coordinator: SyncCoordinator, fake_git) -> None:
    assert coordinator.ensure_repository() is True
    assert fake_git.created


def test_background_timer_runs_cycles(coordinator: SyncCoordinator, fake_git) -> None:
    coordinator.start()
    assert coordinator.running
    coordinator.start()  # already running, no second thread

    deadline = time.time() + 5
    while fake_git.calls.count("pull") < 2 and time.time() < deadline:
        time.sleep(0.01)

    coordinator.stop(timeout=5)
    assert not coordinator.running
    assert fake_git.calls.count("pull") >= 2

    settled = len(fake_git.calls)
    time.sleep(0.05)
    assert len(fake_git.calls) == settled


# -----------------------------------------------------------------------------
# Against real git
# -----------------------------------------------------------------------------


def test_real_git_commit_then_noop(local_repo: Path) -> None:
    git = GitClient(local_repo)
    coordinator = SyncCoordinator(git, vault_path=local_repo)
    RecordStore(local_repo).save(Record(title="Dune"))

    first = coordinator.sync_now("Add Dune")
    assert first.success and first.committed
    assert not first.pulled and not first.pushed

    second = coordinator.sync_now()
    assert second.success and second.noop
    assert git.status() == []


def test_real_git_two_working_copies(tmp_path: Path, git_remote: Path) -> None:
    def clone(name: str) -> tuple[GitClient, SyncCoordinator]:
        path = tmp_path / name
        git = GitClient(path, remote_url=str(git_remote), user_name="Test", user_email="test@example.com")
        coordinator = SyncCoordinator(git, vault_path=path)
        coordinator.ensure_repository()
        return git, coordinator

    git_a, sync_a = clone("a")
    RecordStore(git_a.repo_path).save(Record(title="Dune"))
    result = sync_a.sync_now("Add Dune")
    assert result.committed and result.pushed

    git_b, sync_b = clone("b")
    store_b = RecordStore(git_b.repo_path)
    assert [r.title for r in store_b.find_all()] == ["Dune"]

    store_b.save(Record(title="Emma"))
    assert sync_b.sync_now("Add Emma").pushed

    assert sync_a.refresh().pulled
    assert [r.title for r in RecordStore(git_a.repo_path).find_all()] == ["Dune", "Emma"]
