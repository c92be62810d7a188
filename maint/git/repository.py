"""Git repository abstraction.

``Repository`` wraps the git command line for a single clone. Every
operation that can fail returns a ``Result`` carrying a ``GitError``:

    repo = Repository(Path("../chipper"))
    match repo.is_ancestor(feature_sha, recorded_sha):
        case Ok(True):
            ...
        case Ok(False):
            ...
        case Err(e):
            print(f"{e.command}: {e.message}")

``RepositoryProtocol`` is the surface the release core relies on, so tests
can substitute an in-memory repository.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from maint.core.result import Err, Ok, Result
from maint.platform.process import ProcessError
from maint.platform.process import run as run_process

_GIT_TIMEOUT_SECONDS = 30.0
_GIT_NETWORK_TIMEOUT_SECONDS = 3 * 60.0
_NETWORK_COMMANDS = frozenset({"fetch", "pull", "push", "clone"})

__all__ = [
    "GitError",
    "Repository",
    "RepositoryProtocol",
]


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git command that failed
        message: Error message
        returncode: Process return code
    """

    command: str
    message: str
    returncode: int = 1


class RepositoryProtocol(Protocol):
    """Version-control primitives consumed by the release core."""

    path: Path

    def exists(self) -> bool: ...

    def current_branch(self) -> str | None: ...

    def checkout(self, target: str) -> Result[None, GitError]: ...

    def create_branch(self, name: str) -> Result[None, GitError]: ...

    def pull_ff(self) -> Result[str, GitError]: ...

    def push(self, remote_branch: str) -> Result[None, GitError]: ...

    def add(self, *paths: str) -> Result[None, GitError]: ...

    def commit(self, message: str) -> Result[None, GitError]: ...

    def head_sha(self) -> Result[str, GitError]: ...

    def is_ancestor(self, ancestor: str, descendant: str) -> Result[bool, GitError]: ...

    def cherry_pick(self, sha: str) -> Result[None, GitError]: ...

    def cherry_pick_abort(self) -> Result[None, GitError]: ...

    def branches(self) -> Result[list[str], GitError]: ...


class Repository:
    """A git clone on disk.

    Attributes:
        path: Path to the repository root
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def exists(self) -> bool:
        """Check if this is a valid git repository."""
        return (self.path / ".git").exists()

    def current_branch(self) -> str | None:
        """Current branch name, None on detached HEAD or error."""
        match self._run(["rev-parse", "--abbrev-ref", "HEAD"]):
            case Ok(stdout):
                branch = stdout.strip()
                return None if branch == "HEAD" else branch
            case Err(_):
                return None

    def checkout(self, target: str) -> Result[None, GitError]:
        """Check out a branch or SHA."""
        return self._void(["checkout", target], f"checkout {target}")

    def create_branch(self, name: str) -> Result[None, GitError]:
        """Create (or reset) ``name`` at HEAD and switch to it."""
        return self._void(["checkout", "-B", name], f"checkout -B {name}")

    def pull_ff(self) -> Result[str, GitError]:
        """Pull with fast-forward only."""
        match self._run(["pull", "--ff-only"]):
            case Err(e):
                return Err(self._error("pull --ff-only", e, "pull failed"))
            case Ok(stdout):
                return Ok(stdout.strip())

    def push(self, remote_branch: str) -> Result[None, GitError]:
        """Push HEAD to ``origin/<remote_branch>`` and track it."""
        return self._void(
            ["push", "-u", "origin", remote_branch],
            f"push -u origin {remote_branch}",
        )

    def add(self, *paths: str) -> Result[None, GitError]:
        return self._void(["add", *paths], "add")

    def commit(self, message: str) -> Result[None, GitError]:
        return self._void(["commit", "-m", message], "commit")

    def head_sha(self) -> Result[str, GitError]:
        match self._run(["rev-parse", "HEAD"]):
            case Err(e):
                return Err(self._error("rev-parse HEAD", e, "rev-parse failed"))
            case Ok(stdout):
                return Ok(stdout.strip())

    def is_ancestor(self, ancestor: str, descendant: str) -> Result[bool, GitError]:
        """Whether ``ancestor`` is reachable from ``descendant``.

        ``git merge-base --is-ancestor`` exits 1 for "not an ancestor"; any
        other non-zero exit is a genuine failure.
        """
        match self._run(["merge-base", "--is-ancestor", ancestor, descendant]):
            case Ok(_):
                return Ok(True)
            case Err(e) if e.returncode == 1:
                return Ok(False)
            case Err(e):
                return Err(self._error("merge-base --is-ancestor", e, "ancestor check failed"))

    def cherry_pick(self, sha: str) -> Result[None, GitError]:
        return self._void(["cherry-pick", sha], f"cherry-pick {sha}")

    def cherry_pick_abort(self) -> Result[None, GitError]:
        return self._void(["cherry-pick", "--abort"], "cherry-pick --abort")

    def branches(self) -> Result[list[str], GitError]:
        """Local branch names."""
        match self._run(["for-each-ref", "--format=%(refname:short)", "refs/heads"]):
            case Err(e):
                return Err(self._error("for-each-ref", e, "listing branches failed"))
            case Ok(stdout):
                return Ok([ln.strip() for ln in stdout.splitlines() if ln.strip()])

    def _void(self, args: list[str], command: str) -> Result[None, GitError]:
        match self._run(args):
            case Err(e):
                return Err(self._error(command, e, f"{args[0]} failed"))
            case Ok(_):
                return Ok(None)

    def _error(self, command: str, e: ProcessError, fallback: str) -> GitError:
        return GitError(command=command, message=e.output or fallback, returncode=e.returncode)

    def _run(self, args: list[str]) -> Result[str, ProcessError]:
        """Run a git command in this repository."""
        command = args[0] if args else ""
        timeout = (
            _GIT_NETWORK_TIMEOUT_SECONDS if command in _NETWORK_COMMANDS else _GIT_TIMEOUT_SECONDS
        )
        return run_process(["git", "-C", str(self.path), *args], cwd=self.path, timeout=timeout)
