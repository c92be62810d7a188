"""The persisted collection of patches and modified branches.

One JSON document holds everything:

    {
      "patches": [{"repo": ..., "shas": [...], "message": ...}],
      "modifiedBranches": [{"releaseBranch": {...}, "neededPatches": [...], ...}]
    }

Patches are stored once and referenced by repository name from each
modified branch. Load once at process start, mutate in memory, and persist
after every operation that succeeded.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

from maint.core.errors import MaintError
from maint.core.result import Err, Ok, Result, collect
from maint.core.structured import as_str_dict, get_list
from maint.platform.files import load_document, write_document
from maint.release.modified_branch import ModifiedBranch
from maint.release.patch import Patch
from maint.release.release_branch import ReleaseBranch

__all__ = ["BranchRegistry"]


class BranchRegistry:
    """Owner of every ``Patch`` and ``ModifiedBranch``.

    Branches are keyed by (repo, branch) and keep insertion order; patches
    are keyed by repository (one outstanding patch per repository).
    """

    def __init__(self) -> None:
        self._patches: dict[str, Patch] = {}
        self._branches: dict[tuple[str, str], ModifiedBranch] = {}

    def __len__(self) -> int:
        return len(self._branches)

    def __iter__(self) -> Iterator[ModifiedBranch]:
        return iter(list(self._branches.values()))

    @property
    def patches(self) -> list[Patch]:
        return list(self._patches.values())

    @property
    def modified_branches(self) -> list[ModifiedBranch]:
        return list(self._branches.values())

    # -------------------------------------------------------------------------
    # Patches
    # -------------------------------------------------------------------------

    def add_patch(self, patch: Patch) -> Result[Patch, MaintError]:
        if patch.repo in self._patches:
            return Err(
                MaintError(
                    kind="duplicate",
                    message=f"a patch for {patch.repo} already exists",
                    hint="apply or remove it first",
                )
            )
        self._patches[patch.repo] = patch
        return Ok(patch)

    def get_patch(self, repo: str) -> Patch | None:
        return self._patches.get(repo)

    def remove_patch(self, repo: str) -> Result[Patch, MaintError]:
        """Drop a patch no modified branch still needs."""
        patch = self._patches.get(repo)
        if patch is None:
            return Err(MaintError(kind="untracked", message=f"no patch for {repo}"))
        users = [str(mb.release_branch) for mb in self._branches.values() if mb.needs_patch(patch)]
        if users:
            return Err(
                MaintError(
                    kind="invariant",
                    message=f"patch {repo} is still needed by: {', '.join(users)}",
                )
            )
        del self._patches[repo]
        return Ok(patch)

    def resolve_patches(self, modified_branch: ModifiedBranch) -> Result[list[Patch], MaintError]:
        """The ``Patch`` objects a branch still needs, in the order added."""
        return collect(self._needed_patch(modified_branch, repo) for repo in modified_branch.needed_patches)

    def _needed_patch(self, modified_branch: ModifiedBranch, repo: str) -> Result[Patch, MaintError]:
        patch = self._patches.get(repo)
        if patch is None:
            return Err(
                MaintError(
                    kind="reference",
                    message=f"{modified_branch.release_branch} needs unknown patch {repo}",
                )
            )
        return Ok(patch)

    # -------------------------------------------------------------------------
    # Modified branches
    # -------------------------------------------------------------------------

    def add_branch(self, modified_branch: ModifiedBranch) -> Result[ModifiedBranch, MaintError]:
        if modified_branch.key in self._branches:
            return Err(
                MaintError(
                    kind="duplicate",
                    message=f"{modified_branch.release_branch} is already tracked",
                )
            )
        missing = [repo for repo in modified_branch.needed_patches if repo not in self._patches]
        if missing:
            return Err(
                MaintError(
                    kind="reference",
                    message=f"{modified_branch.release_branch} needs unknown patch(es): {', '.join(missing)}",
                )
            )
        self._branches[modified_branch.key] = modified_branch
        return Ok(modified_branch)

    def get_branch(self, repo: str, branch: str) -> ModifiedBranch | None:
        return self._branches.get((repo, branch))

    def ensure_branch(self, release_branch: ReleaseBranch) -> ModifiedBranch:
        """The tracked entry for ``release_branch``, created if needed."""
        existing = self._branches.get(release_branch.key)
        if existing is not None:
            return existing
        created = ModifiedBranch(release_branch)
        self._branches[created.key] = created
        return created

    def remove_branch(self, repo: str, branch: str) -> Result[ModifiedBranch, MaintError]:
        removed = self._branches.pop((repo, branch), None)
        if removed is None:
            return Err(MaintError(kind="untracked", message=f"{repo} {branch} is not tracked"))
        return Ok(removed)

    def prune(self) -> list[ModifiedBranch]:
        """Remove every unused entry; returns what was removed."""
        removed = [mb for mb in self._branches.values() if mb.is_unused]
        for mb in removed:
            del self._branches[mb.key]
        return removed

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def to_document(self) -> dict[str, object]:
        return {
            "patches": [patch.serialize() for patch in self._patches.values()],
            "modifiedBranches": [mb.serialize() for mb in self._branches.values()],
        }

    @classmethod
    def from_document(cls, obj: object) -> Result[BranchRegistry, MaintError]:
        data = as_str_dict(obj)
        if data is None:
            return Err(MaintError(kind="parse", message="registry root must be an object"))
        patch_items = get_list(data, "patches")
        branch_items = get_list(data, "modifiedBranches")
        if patch_items is None or branch_items is None:
            return Err(
                MaintError(kind="parse", message="registry needs patches[] and modifiedBranches[]")
            )

        registry = cls()
        # Patches first: branches reference them by repository.
        for item in patch_items:
            patch = Patch.deserialize(item)
            if isinstance(patch, Err):
                return patch
            added = registry.add_patch(patch.value)
            if isinstance(added, Err):
                return added

        for item in branch_items:
            mb = ModifiedBranch.deserialize(item, registry._patches)
            if isinstance(mb, Err):
                return mb
            added_branch = registry.add_branch(mb.value)
            if isinstance(added_branch, Err):
                return added_branch

        return Ok(registry)

    @classmethod
    def load(cls, path: Path) -> Result[BranchRegistry, MaintError]:
        """Load the registry; a missing file is an empty registry."""
        doc = load_document(path)
        if isinstance(doc, Err):
            if doc.error.kind == "not_found":
                return Ok(cls())
            return doc
        return cls.from_document(doc.value)

    def persist(self, path: Path) -> Result[None, MaintError]:
        return write_document(path, self.to_document())
