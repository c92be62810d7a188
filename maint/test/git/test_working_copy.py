"""Tests for the exclusive working-copy lock and restore behavior."""

from __future__ import annotations

import threading
import time
from pathlib import Path

import pytest

from maint.core.errors import MaintError
from maint.core.result import Err, Ok, Result
from maint.git.memory import MemoryGit
from maint.git.working_copy import WorkingCopy
from maint.output.console import MockConsole
from maint.platform.process import ProcessError


@pytest.fixture
def git(tmp_path: Path) -> MemoryGit:
    git = MemoryGit(tmp_path)
    git.add_repo("demo", files={"package.json": {"version": "1.2.0"}}, branches=("master", "1.2"))
    git.add_repo("chipper", files={"package.json": {"version": "2.0.0"}})
    return git


@pytest.fixture
def console() -> MockConsole:
    return MockConsole()


@pytest.fixture
def wc(git: MemoryGit, console: MockConsole) -> WorkingCopy:
    return WorkingCopy(git.root, console=console, repository_factory=git.repository)


def test_restore_returns_touched_repos_to_default_branch(git: MemoryGit, wc: WorkingCopy) -> None:
    base = git.tip("chipper", "master")
    git.add_commit("chipper", "master", {"x.json": 1})

    with wc.lock() as session:
        assert session.checkout("demo", "1.2") == Ok(None)
        assert session.checkout("chipper", base) == Ok(None)
        assert session.touched == ("demo", "chipper")
        session.restore()
        assert session.touched == ()

    assert git.head_ref("demo") == "master"
    assert git.head_ref("chipper") == "master"


def test_restore_skips_repos_already_on_default_branch(
    git: MemoryGit, wc: WorkingCopy, console: MockConsole
) -> None:
    with wc.lock() as session:
        assert session.checkout("demo", "1.2") == Ok(None)
        assert session.checkout("chipper", "master") == Ok(None)
        session.restore()

    assert console.has("restoring demo to master")
    assert not console.has("restoring chipper")
    assert git.head_ref("demo") == "master"


def test_fail_restores_and_returns_error(git: MemoryGit, wc: WorkingCopy) -> None:
    error = MaintError(kind="vcs", message="boom")
    with wc.lock() as session:
        session.checkout("demo", "1.2")
        result: Result[None, MaintError] = session.fail(error)
    assert result == Err(error)
    assert git.head_ref("demo") == "master"


def test_exception_inside_lock_restores(git: MemoryGit, wc: WorkingCopy) -> None:
    with pytest.raises(RuntimeError):
        with wc.lock() as session:
            session.checkout("demo", "1.2")
            raise RuntimeError("interrupted")
    assert git.head_ref("demo") == "master"


def test_checkout_failure_is_vcs_error(wc: WorkingCopy) -> None:
    with wc.lock() as session:
        result = session.checkout("demo", "9.9")
        session.restore()
    assert isinstance(result, Err)
    assert result.error.kind == "vcs"
    assert "demo" in result.error.message


def test_lock_is_exclusive_across_threads(wc: WorkingCopy) -> None:
    events: list[str] = []

    def worker(name: str) -> None:
        with wc.lock() as session:
            events.append(f"{name}:start")
            session.checkout("demo", "1.2")
            time.sleep(0.05)
            events.append(f"{name}:end")
            session.restore()

    threads = [threading.Thread(target=worker, args=(n,)) for n in ("a", "b", "c")]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(events) == 6
    for i in range(0, 6, 2):
        start, end = events[i], events[i + 1]
        assert start.endswith(":start")
        assert end == start.replace(":start", ":end")


def test_lock_is_reentrant(wc: WorkingCopy) -> None:
    with wc.lock() as outer:
        with wc.lock() as inner:
            inner.checkout("demo", "1.2")
            inner.restore()
        outer.restore()


def test_cherry_pick_stops_at_conflict(git: MemoryGit, wc: WorkingCopy) -> None:
    fix = git.add_commit("chipper", "master", {"fix.json": True})
    git.conflicts.add(fix)
    with wc.lock() as session:
        session.create_branch("chipper", "demo-1.2")
        result = session.cherry_pick("chipper", (fix,))
        session.restore()
    assert isinstance(result, Err)
    assert result.error.kind == "vcs"


def test_documents_are_read_from_checkout(wc: WorkingCopy) -> None:
    with wc.lock() as session:
        session.checkout("demo", "1.2")
        assert session.read_document("demo", "package.json") == Ok({"version": "1.2.0"})
        assert session.write_document("demo", "notes.json", ["a"]) == Ok(None)
        assert session.read_document("demo", "notes.json") == Ok(["a"])
        session.restore()


def test_npm_update_runs_prune_then_update(
    wc: WorkingCopy, monkeypatch: pytest.MonkeyPatch
) -> None:
    import maint.git.working_copy as working_copy

    calls: list[tuple[list[str], Path]] = []

    def fake_run(
        cmd: list[str],
        cwd: Path,
        env: dict[str, str] | None = None,
        *,
        timeout: float | None = None,
    ) -> Result[str, ProcessError]:
        calls.append((cmd, cwd))
        return Ok("")

    monkeypatch.setattr(working_copy, "run_process", fake_run)
    with wc.lock() as session:
        assert session.npm_update("demo") == Ok(None)
    assert [c[0] for c in calls] == [["npm", "prune"], ["npm", "update"]]
    assert calls[0][1] == wc.path("demo")


def test_npm_failure_is_reported(wc: WorkingCopy, monkeypatch: pytest.MonkeyPatch) -> None:
    import maint.git.working_copy as working_copy

    def fake_run(
        cmd: list[str],
        cwd: Path,
        env: dict[str, str] | None = None,
        *,
        timeout: float | None = None,
    ) -> Result[str, ProcessError]:
        return Err(ProcessError(command=tuple(cmd), returncode=1, stdout="", stderr="ERESOLVE"))

    monkeypatch.setattr(working_copy, "run_process", fake_run)
    with wc.lock() as session:
        result = session.npm_update("demo")
    assert isinstance(result, Err)
    assert result.error.message == "npm prune failed in demo"
    assert result.error.hint == "ERESOLVE"
