"""Dependency snapshots (``dependencies.json``).

Each repository records, for every repository it builds against, the branch
and exact commit it was built with:

    {
      "comment": "[date] Deploying 1.2.0-rc.1",
      "chipper": {"branch": "master", "sha": "5a1c..."},
      "demo": {"branch": "1.2", "sha": "0f3e..."}
    }

The ``comment`` entry is preserved but never treated as a dependency.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field

from maint.core.errors import MaintError
from maint.core.result import Err, Ok, Result
from maint.core.structured import as_str_dict, get_str
from maint.git.working_copy import CheckoutSession

__all__ = [
    "COMMENT_KEY",
    "MANIFEST_FILE",
    "Dependencies",
    "DependencyRef",
    "checkout_dependencies",
    "checkout_target",
    "is_sha",
    "load_dependencies",
]

MANIFEST_FILE = "dependencies.json"
COMMENT_KEY = "comment"

_SHA_RE = re.compile(r"^[a-f0-9]{40}$")


def is_sha(text: str) -> bool:
    """True for a full 40-character lowercase hex commit id."""
    return _SHA_RE.match(text) is not None


@dataclass(frozen=True, slots=True)
class DependencyRef:
    branch: str
    sha: str


def _no_entries() -> dict[str, DependencyRef]:
    return {}


@dataclass(frozen=True, slots=True)
class Dependencies:
    """Repository name -> pinned branch/commit."""

    entries: dict[str, DependencyRef] = field(default_factory=_no_entries)
    comment: str | None = None

    def __contains__(self, repo: object) -> bool:
        return repo in self.entries

    def __getitem__(self, repo: str) -> DependencyRef:
        return self.entries[repo]

    def __iter__(self) -> Iterator[str]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def get(self, repo: str) -> DependencyRef | None:
        return self.entries.get(repo)

    def with_overrides(self, changes: Mapping[str, str]) -> Result[Dependencies, MaintError]:
        """Copy with the shas in ``changes`` replacing the recorded ones.

        Every overridden repository must already be part of the snapshot.
        """
        entries = dict(self.entries)
        for repo, sha in changes.items():
            current = entries.get(repo)
            if current is None:
                return Err(
                    MaintError(
                        kind="invariant",
                        message=f"dependency {repo} is not listed in {MANIFEST_FILE}",
                    )
                )
            entries[repo] = DependencyRef(branch=current.branch, sha=sha)
        return Ok(Dependencies(entries=entries, comment=self.comment))

    def with_entry(self, repo: str, ref: DependencyRef) -> Dependencies:
        """Copy with ``repo`` pinned to ``ref``, added if absent."""
        entries = dict(self.entries)
        entries[repo] = ref
        return Dependencies(entries=entries, comment=self.comment)

    def to_document(self) -> dict[str, object]:
        doc: dict[str, object] = {}
        if self.comment is not None:
            doc[COMMENT_KEY] = self.comment
        for repo, ref in self.entries.items():
            doc[repo] = {"branch": ref.branch, "sha": ref.sha}
        return doc

    @classmethod
    def from_document(cls, obj: object) -> Result[Dependencies, MaintError]:
        data = as_str_dict(obj)
        if data is None:
            return Err(MaintError(kind="parse", message=f"{MANIFEST_FILE} root must be an object"))

        entries: dict[str, DependencyRef] = {}
        comment: str | None = None
        for repo, value in data.items():
            if repo == COMMENT_KEY:
                if not isinstance(value, str):
                    return Err(MaintError(kind="parse", message=f"{MANIFEST_FILE} comment must be a string"))
                comment = value
                continue
            entry = as_str_dict(value)
            if entry is None:
                return Err(MaintError(kind="parse", message=f"dependency {repo} must be an object"))
            branch = entry.get("branch")
            sha = get_str(entry, "sha")
            if not isinstance(branch, str) or sha is None:
                return Err(
                    MaintError(kind="parse", message=f"dependency {repo} needs both branch and sha")
                )
            if not is_sha(sha):
                return Err(MaintError(kind="parse", message=f"invalid sha for {repo}: {sha}"))
            entries[repo] = DependencyRef(branch=branch, sha=sha)
        return Ok(cls(entries=entries, comment=comment))


def load_dependencies(session: CheckoutSession, repo: str) -> Result[Dependencies, MaintError]:
    """Snapshot recorded at the repository's current checkout."""
    doc = session.read_document(repo, MANIFEST_FILE)
    if isinstance(doc, Err):
        return doc
    return Dependencies.from_document(doc.value)


def checkout_dependencies(
    session: CheckoutSession,
    repo: str,
    dependencies: Dependencies,
    include_npm_update: bool,
) -> Result[list[str], MaintError]:
    """Check out every dependency of ``repo`` at its recorded sha.

    Stops at the first failure and leaves whatever was already checked out;
    the caller owns recovery (``session.fail``/``session.restore``).

    Returns:
        Ok(names of the repositories checked out, in manifest order).
    """
    checked_out: list[str] = []
    for name, ref in dependencies.entries.items():
        if name == repo:
            continue
        session.console.debug(f"checking out dependency {name}: {ref.branch}@{ref.sha}")
        result = session.checkout(name, ref.sha)
        if isinstance(result, Err):
            return result
        checked_out.append(name)

    if include_npm_update:
        for name in (repo, "chipper"):
            if name != repo and name not in dependencies:
                continue
            updated = session.npm_update(name)
            if isinstance(updated, Err):
                return updated

    return Ok(checked_out)


def checkout_target(
    session: CheckoutSession,
    repo: str,
    target: str,
    include_npm_update: bool,
) -> Result[list[str], MaintError]:
    """Check out ``repo`` at a branch or sha, pull, then its dependencies."""
    session.console.info(f"checking out shas for {repo} {target}")

    checked = session.checkout(repo, target)
    if isinstance(checked, Err):
        return checked
    if not is_sha(target):
        pulled = session.pull(repo)
        if isinstance(pulled, Err):
            return pulled

    dependencies = load_dependencies(session, repo)
    if isinstance(dependencies, Err):
        return dependencies
    return checkout_dependencies(session, repo, dependencies.value, include_npm_update)
