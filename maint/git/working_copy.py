"""Exclusive access to the shared repository clones.

All repositories are cloned side by side under one root and every checkout
changes global on-disk state. ``WorkingCopy`` is the single coordinator for
that state: any operation that checks something out must hold ``lock()`` for
its full duration, including the final restore to the default branch.

    with working_copy.lock() as session:
        result = session.checkout("chipper", sha)
        if isinstance(result, Err):
            return session.fail(result.error)
        ...
        session.restore()

The lock is re-entrant so a compound operation (e.g. computing deployed links)
can run several probes under one acquisition. Each session remembers the
repositories it touched and ``restore()`` puts exactly those back on the
default branch. Leaving the block through an exception restores as well.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path

from maint.core.errors import MaintError
from maint.core.result import Err, Ok, Result
from maint.git.repository import GitError, Repository, RepositoryProtocol
from maint.output.console import ConsoleProtocol
from maint.platform.files import load_document, write_document
from maint.platform.process import run as run_process

__all__ = ["CheckoutSession", "RepositoryFactory", "WorkingCopy"]

RepositoryFactory = Callable[[Path], RepositoryProtocol]

_NPM_TIMEOUT_SECONDS = 10 * 60.0


def _vcs(repo: str, error: GitError) -> MaintError:
    return MaintError(kind="vcs", message=f"git {error.command} failed in {repo}: {error.message}")


class WorkingCopy:
    """Coordinator for the clones under ``root``.

    Attributes:
        root: Directory containing one clone per repository name.
        default_branch: Branch every repository is restored to.
    """

    def __init__(
        self,
        root: Path,
        *,
        console: ConsoleProtocol,
        default_branch: str = "master",
        repository_factory: RepositoryFactory = Repository,
    ) -> None:
        self.root = root
        self.default_branch = default_branch
        self.console = console
        self._factory = repository_factory
        self._repos: dict[str, RepositoryProtocol] = {}
        self._lock = threading.RLock()

    def path(self, repo: str) -> Path:
        return self.root / repo

    def repository(self, repo: str) -> RepositoryProtocol:
        if repo not in self._repos:
            self._repos[repo] = self._factory(self.path(repo))
        return self._repos[repo]

    @contextmanager
    def lock(self) -> Iterator[CheckoutSession]:
        """Hold the working copy exclusively for one operation."""
        with self._lock:
            session = CheckoutSession(self)
            try:
                yield session
            except BaseException:
                session.restore()
                raise


class CheckoutSession:
    """VCS and file access while the working copy lock is held."""

    def __init__(self, working_copy: WorkingCopy) -> None:
        self._wc = working_copy
        self._touched: list[str] = []

    @property
    def console(self) -> ConsoleProtocol:
        return self._wc.console

    @property
    def touched(self) -> tuple[str, ...]:
        return tuple(self._touched)

    def path(self, repo: str) -> Path:
        return self._wc.path(repo)

    def checkout(self, repo: str, target: str) -> Result[None, MaintError]:
        self.console.debug(f"git checkout {target} in {repo}")
        if repo not in self._touched:
            self._touched.append(repo)
        return self._wc.repository(repo).checkout(target).map_err(lambda e: _vcs(repo, e))

    def pull(self, repo: str) -> Result[None, MaintError]:
        self.console.debug(f"git pull in {repo}")
        return self._wc.repository(repo).pull_ff().map(lambda _: None).map_err(lambda e: _vcs(repo, e))

    def push(self, repo: str, remote_branch: str) -> Result[None, MaintError]:
        self.console.info(f"git push on {repo} to {remote_branch}")
        return self._wc.repository(repo).push(remote_branch).map_err(lambda e: _vcs(repo, e))

    def add(self, repo: str, *paths: str) -> Result[None, MaintError]:
        return self._wc.repository(repo).add(*paths).map_err(lambda e: _vcs(repo, e))

    def commit(self, repo: str, message: str) -> Result[None, MaintError]:
        self.console.info(f"git commit on {repo}: {message}")
        return self._wc.repository(repo).commit(message).map_err(lambda e: _vcs(repo, e))

    def create_branch(self, repo: str, name: str) -> Result[None, MaintError]:
        self.console.debug(f"git checkout -B {name} in {repo}")
        if repo not in self._touched:
            self._touched.append(repo)
        return self._wc.repository(repo).create_branch(name).map_err(lambda e: _vcs(repo, e))

    def head_sha(self, repo: str) -> Result[str, MaintError]:
        return self._wc.repository(repo).head_sha().map_err(lambda e: _vcs(repo, e))

    def is_ancestor(self, repo: str, ancestor: str, descendant: str) -> Result[bool, MaintError]:
        self.console.debug(f"git check (in {repo}) whether {ancestor} is an ancestor of {descendant}")
        return (
            self._wc.repository(repo)
            .is_ancestor(ancestor, descendant)
            .map_err(lambda e: _vcs(repo, e))
        )

    def cherry_pick(self, repo: str, shas: tuple[str, ...]) -> Result[None, MaintError]:
        """Cherry-pick ``shas`` in order, aborting the pick that conflicts."""
        repository = self._wc.repository(repo)
        for sha in shas:
            self.console.debug(f"git cherry-pick {sha} in {repo}")
            picked = repository.cherry_pick(sha)
            if isinstance(picked, Err):
                aborted = repository.cherry_pick_abort()
                if isinstance(aborted, Err):
                    self.console.warning(f"cherry-pick --abort failed in {repo}: {aborted.error.message}")
                return Err(_vcs(repo, picked.error))
        return Ok(None)

    def npm_update(self, repo: str) -> Result[None, MaintError]:
        """``npm prune`` then ``npm update`` inside the repository."""
        for action in ("prune", "update"):
            self.console.debug(f"npm {action} in {repo}")
            result = run_process(["npm", action], cwd=self.path(repo), timeout=_NPM_TIMEOUT_SECONDS)
            if isinstance(result, Err):
                return Err(
                    MaintError(
                        kind="vcs",
                        message=f"npm {action} failed in {repo}",
                        hint=result.error.output or None,
                    )
                )
        return Ok(None)

    def read_document(self, repo: str, relative: str) -> Result[object, MaintError]:
        return load_document(self.path(repo) / relative)

    def write_document(self, repo: str, relative: str, data: object) -> Result[None, MaintError]:
        return write_document(self.path(repo) / relative, data)

    def restore(self) -> None:
        """Check every touched repository back out at the default branch.

        Best effort: a failure is reported and the remaining repositories are
        still restored.
        """
        branch = self._wc.default_branch
        for repo in self._touched:
            repository = self._wc.repository(repo)
            if repository.current_branch() == branch:
                continue
            self.console.debug(f"restoring {repo} to {branch}")
            result = repository.checkout(branch)
            if isinstance(result, Err):
                self.console.warning(f"could not restore {repo} to {branch}: {result.error.message}")
        self._touched.clear()

    def fail[T](self, error: MaintError) -> Result[T, MaintError]:
        """Restore the working copy, then surface ``error``."""
        self.restore()
        return Err(error)
