from __future__ import annotations

from pathlib import Path

import pytest

from maint.core.result import Err, Ok
from maint.git.memory import MemoryGit
from maint.git.working_copy import WorkingCopy
from maint.output.console import MockConsole
from maint.release.dependencies import (
    Dependencies,
    DependencyRef,
    checkout_dependencies,
    checkout_target,
    is_sha,
    load_dependencies,
)

SHA_A = "a" * 40
SHA_B = "b" * 40


def test_is_sha() -> None:
    assert is_sha(SHA_A)
    assert not is_sha("A" * 40)
    assert not is_sha("a" * 39)
    assert not is_sha("master")


def test_from_document_skips_comment() -> None:
    doc = {
        "comment": "[2024-01-01] Deploying 1.2.0",
        "chipper": {"branch": "master", "sha": SHA_A},
        "demo": {"branch": "1.2", "sha": SHA_B},
    }
    deps = Dependencies.from_document(doc)
    assert isinstance(deps, Ok)
    assert list(deps.value) == ["chipper", "demo"]
    assert deps.value["chipper"] == DependencyRef("master", SHA_A)
    assert "comment" not in deps.value
    assert deps.value.to_document() == doc


@pytest.mark.parametrize(
    "doc",
    [
        [],
        {"chipper": "master"},
        {"chipper": {"branch": "master"}},
        {"chipper": {"branch": "master", "sha": "abc"}},
        {"comment": 20240101},
    ],
)
def test_from_document_rejects(doc: object) -> None:
    result = Dependencies.from_document(doc)
    assert isinstance(result, Err)
    assert result.error.kind == "parse"


def test_with_overrides() -> None:
    deps = Dependencies({"chipper": DependencyRef("master", SHA_A)})
    updated = deps.with_overrides({"chipper": SHA_B})
    assert isinstance(updated, Ok)
    assert updated.value["chipper"] == DependencyRef("master", SHA_B)
    assert deps["chipper"].sha == SHA_A


def test_override_for_unknown_repo_is_invariant_error() -> None:
    deps = Dependencies({"chipper": DependencyRef("master", SHA_A)})
    result = deps.with_overrides({"joist": SHA_B})
    assert isinstance(result, Err)
    assert result.error.kind == "invariant"


def test_with_entry_adds_or_replaces() -> None:
    deps = Dependencies({"chipper": DependencyRef("master", SHA_A)})
    added = deps.with_entry("demo", DependencyRef("1.2", SHA_B))
    assert list(added) == ["chipper", "demo"]
    assert len(deps) == 1


@pytest.fixture
def git(tmp_path: Path) -> MemoryGit:
    git = MemoryGit(tmp_path)
    git.add_repo("chipper", files={"package.json": {"version": "2.0.0"}})
    git.add_repo("joist", files={"package.json": {"version": "0.0.0"}})
    return git


def _pin(git: MemoryGit) -> dict[str, object]:
    return {
        "comment": "pinned",
        "chipper": {"branch": "master", "sha": git.tip("chipper", "master")},
        "joist": {"branch": "master", "sha": git.tip("joist", "master")},
    }


def test_checkout_dependencies_skips_self(git: MemoryGit) -> None:
    git.add_repo("demo", files={"dependencies.json": {}}, branches=("master", "1.2"))
    doc = _pin(git)
    doc["demo"] = {"branch": "1.2", "sha": git.tip("demo", "1.2")}
    git.add_commit("demo", "1.2", {"dependencies.json": doc})

    wc = WorkingCopy(git.root, console=MockConsole(), repository_factory=git.repository)
    with wc.lock() as session:
        session.checkout("demo", "1.2")
        deps = load_dependencies(session, "demo")
        assert isinstance(deps, Ok)
        result = checkout_dependencies(session, "demo", deps.value, include_npm_update=False)
        assert result == Ok(["chipper", "joist"])
        assert git.head_ref("chipper") == git.tip("chipper", "master")
        assert git.head_ref("demo") == "1.2"
        session.restore()


def test_checkout_target_branch_then_failure(git: MemoryGit) -> None:
    doc = _pin(git)
    doc["joist"] = {"branch": "master", "sha": "c" * 40}
    git.add_repo("demo", files={"dependencies.json": doc})

    wc = WorkingCopy(git.root, console=MockConsole(), repository_factory=git.repository)
    with wc.lock() as session:
        result = checkout_target(session, "demo", "master", include_npm_update=False)
        assert isinstance(result, Err)
        assert result.error.kind == "vcs"
        # chipper was checked out before joist failed
        assert "chipper" in session.touched
        session.restore()
    assert git.head_ref("chipper") == "master"


def test_load_missing_manifest(git: MemoryGit) -> None:
    wc = WorkingCopy(git.root, console=MockConsole(), repository_factory=git.repository)
    with wc.lock() as session:
        result = load_dependencies(session, "chipper")
    assert isinstance(result, Err)
    assert result.error.kind == "not_found"
