"""ModifiedBranch state transitions and working-copy operations."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from maint.core.result import Err, Ok
from maint.git.memory import MemoryGit
from maint.git.working_copy import WorkingCopy
from maint.output.console import MockConsole
from maint.release.modified_branch import ModifiedBranch
from maint.release.patch import Patch
from maint.release.release_branch import ReleaseBranch
from maint.release.version import SimVersion

SHA_A = "a" * 40
SHA_B = "b" * 40


@pytest.fixture
def git(tmp_path: Path) -> MemoryGit:
    git = MemoryGit(tmp_path)
    git.add_repo("chipper", files={"package.json": {"version": "2.0.0"}})
    git.add_repo("joist", files={"package.json": {"version": "0.0.0"}})
    git.add_repo("demo", files={"package.json": {"version": "1.2.0"}}, branches=("master", "1.2"))
    git.add_commit(
        "demo",
        "1.2",
        {
            "dependencies.json": {
                "comment": "[2024-01-01] Deploying 1.2.0",
                "chipper": {"branch": "master", "sha": git.tip("chipper", "master")},
                "demo": {"branch": "1.2", "sha": git.tip("demo", "1.2")},
                "joist": {"branch": "master", "sha": git.tip("joist", "master")},
            }
        },
    )
    return git


@pytest.fixture
def wc(git: MemoryGit) -> WorkingCopy:
    return WorkingCopy(git.root, console=MockConsole(), repository_factory=git.repository)


def _branch() -> ModifiedBranch:
    return ModifiedBranch(ReleaseBranch("demo", "1.2", ("phet",)))


def _manifest(git: MemoryGit, sha: str) -> dict[str, object]:
    files = git.commit("demo", sha).files
    return files["dependencies.json"]  # type: ignore[return-value]


class TestTransitions:
    def test_new_branch_is_unused(self) -> None:
        mb = _branch()
        assert mb.is_unused
        assert not mb.is_ready_for_release_candidate
        assert not mb.is_ready_for_production
        assert mb.dependency_branch == "demo-1.2"

    def test_add_patch_is_idempotent(self) -> None:
        mb = _branch()
        patch = Patch("joist", (SHA_A,), "Fix")
        assert mb.add_patch(patch) is True
        assert mb.add_patch(patch) is False
        assert mb.needed_patches == ["joist"]
        assert mb.needs_patch(patch)
        assert not mb.is_unused

    def test_remove_patch(self) -> None:
        mb = _branch()
        patch = Patch("joist", (SHA_A,), "Fix")
        assert mb.remove_patch(patch) is False
        mb.add_patch(patch)
        assert mb.remove_patch(patch) is True
        assert mb.is_unused

    def test_mark_patch_applied(self) -> None:
        mb = _branch()
        patch = Patch("joist", (SHA_A,), "Fix")
        mb.add_patch(patch)
        mb.deployed_version = SimVersion(1, 2, 1, "rc", 1)

        mb.mark_patch_applied(patch, SHA_B, "Fix")
        assert mb.needed_patches == []
        assert mb.changed_dependencies == {"joist": SHA_B}
        assert mb.pending_messages == ["Fix"]
        assert mb.deployed_version is None

    def test_record_change_requires_full_sha(self) -> None:
        with pytest.raises(ValueError):
            _branch().record_change("joist", "abc123", "Fix")

    def test_readiness(self) -> None:
        mb = _branch()
        mb.record_change("joist", SHA_B, "Fix")
        assert not mb.is_ready_for_release_candidate
        mb.record_push()
        assert mb.pushed_messages == ["Fix"]
        assert mb.changed_dependencies == {}
        assert mb.is_ready_for_release_candidate

        mb.record_deploy(SimVersion(1, 2, 1, "rc", 1))
        assert not mb.is_ready_for_release_candidate
        assert mb.is_ready_for_production

        mb.record_deploy(SimVersion(1, 2, 1))
        assert not mb.is_ready_for_production
        assert mb.pushed_messages == []
        assert mb.is_unused

    @pytest.mark.parametrize(
        "field, value",
        [
            ("changed_dependencies", {"joist": SHA_B}),
            ("pending_messages", ["Fix"]),
            ("pushed_messages", ["Fix"]),
        ],
    )
    def test_any_tracked_collection_keeps_branch_used(self, field: str, value: object) -> None:
        mb = _branch()
        setattr(mb, field, value)
        assert not mb.is_unused

    def test_production_deploy_is_not_ready_for_production(self) -> None:
        mb = _branch()
        mb.pushed_messages.append("Fix")
        mb.deployed_version = SimVersion(1, 2, 1)
        assert not mb.is_ready_for_production
        assert not mb.is_ready_for_release_candidate

    def test_needed_patch_blocks_release(self) -> None:
        mb = _branch()
        mb.pushed_messages.append("Earlier fix")
        mb.add_patch(Patch("joist", (SHA_A,), "Fix"))
        assert not mb.is_ready_for_release_candidate


class TestSerialization:
    def test_round_trip(self) -> None:
        mb = _branch()
        patch = Patch("chipper", (SHA_A,), "Build fix")
        mb.add_patch(patch)
        mb.record_change("joist", SHA_B, "Fix")
        mb.deployed_version = SimVersion(1, 2, 1, "rc", 2)

        restored = ModifiedBranch.deserialize(mb.serialize(), {"chipper": patch})
        assert isinstance(restored, Ok)
        assert restored.value == mb

    def test_unknown_patch_is_reference_error(self) -> None:
        mb = _branch()
        mb.add_patch(Patch("chipper", (SHA_A,), "Build fix"))
        result = ModifiedBranch.deserialize(mb.serialize(), {})
        assert isinstance(result, Err)
        assert result.error.kind == "reference"

    def test_bad_changed_sha_is_parse_error(self) -> None:
        data = _branch().serialize()
        data["changedDependencies"] = {"joist": "nope"}
        result = ModifiedBranch.deserialize(data, {})
        assert isinstance(result, Err)
        assert result.error.kind == "parse"


class TestWorkingCopy:
    def test_checkout_includes_pending_changes(self, git: MemoryGit, wc: WorkingCopy) -> None:
        fixed = git.add_commit("joist", "master", {"fix.json": True})
        mb = _branch()
        mb.record_change("joist", fixed, "Fix")

        result = mb.checkout(wc, include_npm_update=False)
        assert result == Ok(["chipper", "joist"])
        assert git.head_ref("demo") == "1.2"
        assert git.head_ref("joist") == fixed

    def test_push_commits_manifest(self, git: MemoryGit, wc: WorkingCopy) -> None:
        fixed = git.add_commit("joist", "master", {"fix.json": True})
        mb = _branch()
        mb.record_change("joist", fixed, "Fix reset")
        mb.pending_messages.append("Fix layout")

        assert mb.push(wc) == Ok(None)

        head = git.tip("demo", "1.2")
        assert git.commit("demo", head).message == "Fix reset, Fix layout"
        manifest = _manifest(git, head)
        assert manifest["joist"] == {"branch": "master", "sha": fixed}
        assert manifest["comment"] == "[2024-01-01] Deploying 1.2.0"
        assert git.pushes == [("demo", "1.2", head)]
        assert git.head_ref("demo") == "master"
        assert mb.pending_messages == []
        assert mb.pushed_messages == ["Fix reset", "Fix layout"]
        assert mb.changed_dependencies == {}

    def test_push_without_manifest_change_skips_commit(self, git: MemoryGit, wc: WorkingCopy) -> None:
        before = git.tip("demo", "1.2")
        mb = _branch()
        mb.record_change("joist", git.tip("joist", "master"), "Already there")

        assert mb.push(wc) == Ok(None)
        assert git.tip("demo", "1.2") == before
        assert git.pushes == []
        assert mb.pushed_messages == ["Already there"]

    def test_push_failure_keeps_state(self, git: MemoryGit, wc: WorkingCopy) -> None:
        fixed = git.add_commit("joist", "master", {"fix.json": True})
        git.failing_pushes.add("demo")
        mb = _branch()
        mb.record_change("joist", fixed, "Fix")

        result = mb.push(wc)
        assert isinstance(result, Err)
        assert result.error.kind == "vcs"
        assert mb.pending_messages == ["Fix"]
        assert mb.changed_dependencies == {"joist": fixed}
        assert git.head_ref("demo") == "master"

    def test_push_nothing_pending_is_noop(self, git: MemoryGit, wc: WorkingCopy) -> None:
        assert _branch().push(wc) == Ok(None)
        assert git.pushes == []

    def test_override_of_unlisted_dependency_fails(self, git: MemoryGit, wc: WorkingCopy) -> None:
        mb = _branch()
        mb.record_change("scenery", SHA_A, "Fix")
        result = mb.checkout(wc, include_npm_update=False)
        assert isinstance(result, Err)
        assert result.error.kind == "invariant"
        assert git.head_ref("demo") == "master"

    def test_links_require_deployed_version(self, wc: WorkingCopy) -> None:
        result = _branch().get_deployed_link_lines(wc)
        assert isinstance(result, Err)
        assert result.error.kind == "invariant"


def test_written_manifest_is_pretty_json(git: MemoryGit, wc: WorkingCopy) -> None:
    fixed = git.add_commit("joist", "master", {"fix.json": True})
    mb = _branch()
    mb.record_change("joist", fixed, "Fix")
    mb.push(wc)

    with wc.lock() as session:
        session.checkout("demo", "1.2")
        text = (wc.path("demo") / "dependencies.json").read_text(encoding="utf-8")
        session.restore()
    assert text.endswith("}\n")
    assert json.loads(text)["joist"]["sha"] == fixed


def test_demo_patch_cycle(git: MemoryGit, wc: WorkingCopy) -> None:
    mb = _branch()
    patch = Patch("demo", (SHA_A,), "fix crash")

    mb.add_patch(patch)
    assert mb.needed_patches == ["demo"]

    mb.mark_patch_applied(patch, SHA_B, "fix crash")
    assert mb.needed_patches == []
    assert mb.changed_dependencies == {"demo": SHA_B}
    assert mb.pending_messages == ["fix crash"]
    assert mb.deployed_version is None

    assert mb.push(wc) == Ok(None)
    assert mb.pushed_messages == ["fix crash"]
    assert mb.pending_messages == []
    assert mb.changed_dependencies == {}
    assert mb.is_ready_for_release_candidate
    assert _manifest(git, git.tip("demo", "1.2"))["demo"] == {"branch": "1.2", "sha": SHA_B}
