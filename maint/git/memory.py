"""In-memory stand-in for a set of git clones.

Checkouts materialize the commit's JSON documents in the clone directory so
code reading ``dependencies.json`` or ``package.json`` sees real files;
commits snapshot those files back.

Usage:
    git = MemoryGit(tmp_path)
    base = git.add_repo("demo", branches=("master", "1.2"), files={...})
    wc = WorkingCopy(tmp_path, console=MockConsole(), repository_factory=git.repository)
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

from maint.core.result import Err, Ok, Result
from maint.git.repository import GitError

__all__ = ["MemoryCommit", "MemoryGit", "MemoryRepository"]


@dataclass(frozen=True, slots=True)
class MemoryCommit:
    sha: str
    parent: str | None
    files: dict[str, object]
    message: str


@dataclass(slots=True)
class _Repo:
    commits: dict[str, MemoryCommit] = field(default_factory=dict)
    branches: dict[str, str] = field(default_factory=dict)
    head: str = "master"


class MemoryGit:
    """All repositories under ``root``, plus a record of remote pushes.

    Attributes:
        pushes: (repo, remote branch, sha) for every push, in order.
        conflicts: Shas whose cherry-pick fails.
        failing_pushes: Repositories whose pushes are rejected.
    """

    def __init__(self, root: Path) -> None:
        self.root = root
        self.pushes: list[tuple[str, str, str]] = []
        self.conflicts: set[str] = set()
        self.failing_pushes: set[str] = set()
        self._repos: dict[str, _Repo] = {}
        self._counter = 0

    def next_sha(self) -> str:
        self._counter += 1
        return f"{self._counter:040x}"

    def add_repo(
        self,
        name: str,
        files: Mapping[str, object] | None = None,
        branches: Iterable[str] = ("master",),
    ) -> str:
        """Create ``name`` with one commit that every branch in ``branches`` points at."""
        sha = self.next_sha()
        repo = _Repo()
        repo.commits[sha] = MemoryCommit(sha, None, dict(files or {}), "initial")
        for branch in branches:
            repo.branches[branch] = sha
        repo.head = next(iter(repo.branches))
        self._repos[name] = repo
        self._materialize(name)
        return sha

    def add_commit(
        self,
        name: str,
        branch: str,
        files: Mapping[str, object],
        message: str = "change",
        sha: str | None = None,
    ) -> str:
        """Commit ``files`` (merged over the tip) on ``branch``, optionally with a fixed sha."""
        repo = self._repos[name]
        parent = repo.branches[branch]
        merged = dict(repo.commits[parent].files)
        merged.update(files)
        sha = sha or self.next_sha()
        repo.commits[sha] = MemoryCommit(sha, parent, merged, message)
        repo.branches[branch] = sha
        if repo.head == branch:
            self._materialize(name)
        return sha

    def tip(self, name: str, branch: str) -> str:
        return self._repos[name].branches[branch]

    def head(self, name: str) -> str:
        repo = self._repos[name]
        return repo.branches.get(repo.head, repo.head)

    def head_ref(self, name: str) -> str:
        """Branch name, or sha when detached."""
        return self._repos[name].head

    def commit(self, name: str, sha: str) -> MemoryCommit:
        return self._repos[name].commits[sha]

    def ancestors(self, name: str, sha: str) -> list[str]:
        """``sha`` and every ancestor, newest first."""
        commits = self._repos[name].commits
        chain: list[str] = []
        current: str | None = sha
        while current is not None:
            chain.append(current)
            current = commits[current].parent
        return chain

    def repository(self, path: Path) -> MemoryRepository:
        """``RepositoryFactory`` for ``WorkingCopy``."""
        return MemoryRepository(self, path)

    def _resolve(self, name: str, target: str) -> str | None:
        repo = self._repos[name]
        if target in repo.branches:
            return repo.branches[target]
        if target in repo.commits:
            return target
        return None

    def _materialize(self, name: str) -> None:
        directory = self.root / name
        directory.mkdir(parents=True, exist_ok=True)
        for stale in directory.glob("*.json"):
            stale.unlink()
        for filename, data in self.commit(name, self.head(name)).files.items():
            (directory / filename).write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")


class MemoryRepository:
    """``RepositoryProtocol`` over a ``MemoryGit`` repository."""

    def __init__(self, git: MemoryGit, path: Path) -> None:
        self.path = path
        self.name = path.name
        self._git = git

    @property
    def _repo(self) -> _Repo:
        return self._git._repos[self.name]

    def exists(self) -> bool:
        return self.name in self._git._repos

    def current_branch(self) -> str | None:
        head = self._repo.head
        return head if head in self._repo.branches else None

    def checkout(self, target: str) -> Result[None, GitError]:
        if not self.exists():
            return Err(GitError(f"checkout {target}", f"no repository {self.name}"))
        if self._git._resolve(self.name, target) is None:
            return Err(GitError(f"checkout {target}", f"pathspec '{target}' did not match"))
        self._repo.head = target
        self._git._materialize(self.name)
        return Ok(None)

    def create_branch(self, name: str) -> Result[None, GitError]:
        self._repo.branches[name] = self._git.head(self.name)
        self._repo.head = name
        return Ok(None)

    def pull_ff(self) -> Result[str, GitError]:
        return Ok("Already up to date.")

    def push(self, remote_branch: str) -> Result[None, GitError]:
        if self.name in self._git.failing_pushes:
            return Err(GitError(f"push -u origin {remote_branch}", "remote rejected"))
        self._git.pushes.append((self.name, remote_branch, self._git.head(self.name)))
        return Ok(None)

    def add(self, *paths: str) -> Result[None, GitError]:
        return Ok(None)

    def commit(self, message: str) -> Result[None, GitError]:
        files: dict[str, object] = {
            p.name: json.loads(p.read_text(encoding="utf-8")) for p in sorted(self.path.glob("*.json"))
        }
        if files == self._git.commit(self.name, self._git.head(self.name)).files:
            return Err(GitError("commit", "nothing to commit, working tree clean"))
        self._advance(MemoryCommit(self._git.next_sha(), self._git.head(self.name), files, message))
        return Ok(None)

    def head_sha(self) -> Result[str, GitError]:
        return Ok(self._git.head(self.name))

    def is_ancestor(self, ancestor: str, descendant: str) -> Result[bool, GitError]:
        for sha in (ancestor, descendant):
            if sha not in self._repo.commits:
                return Err(GitError("merge-base --is-ancestor", f"bad object {sha}", returncode=128))
        return Ok(ancestor in self._git.ancestors(self.name, descendant))

    def cherry_pick(self, sha: str) -> Result[None, GitError]:
        if sha in self._git.conflicts or sha not in self._repo.commits:
            return Err(GitError(f"cherry-pick {sha}", "could not apply"))
        picked = self._repo.commits[sha]
        files = dict(self._git.commit(self.name, self._git.head(self.name)).files)
        files.update(picked.files)
        self._advance(MemoryCommit(self._git.next_sha(), self._git.head(self.name), files, picked.message))
        return Ok(None)

    def cherry_pick_abort(self) -> Result[None, GitError]:
        return Ok(None)

    def branches(self) -> Result[list[str], GitError]:
        return Ok(sorted(self._repo.branches))

    def _advance(self, commit: MemoryCommit) -> None:
        repo = self._repo
        repo.commits[commit.sha] = commit
        if repo.head in repo.branches:
            repo.branches[repo.head] = commit.sha
        else:
            repo.head = commit.sha
        self._git._materialize(self.name)
