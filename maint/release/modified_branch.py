"""A release branch with changes that have not been fully released.

State is implied by the tracked fields:

    clean -> patches needed -> patches applied (pending) -> pushed
          -> release candidate deployed -> production deployed -> clean

- ``needed_patches``: patches (by repository) still to apply.
- ``changed_dependencies``: repo -> sha overrides not yet committed to the
  branch's ``dependencies.json``.
- ``pending_messages``: descriptions of those uncommitted changes.
- ``pushed_messages``: descriptions already committed to the manifest.
- ``deployed_version``: what was deployed from exactly this state. Any new
  change resets it to None.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from maint.core.errors import MaintError
from maint.core.result import Err, Ok, Result
from maint.core.structured import as_str_dict, get_str_list, get_table
from maint.git.working_copy import CheckoutSession, WorkingCopy
from maint.release import compat
from maint.release.dependencies import (
    MANIFEST_FILE,
    Dependencies,
    checkout_dependencies,
    is_sha,
    load_dependencies,
)
from maint.release.links import deployed_link_lines
from maint.release.patch import Patch
from maint.release.release_branch import ReleaseBranch
from maint.release.version import SimVersion

__all__ = ["ModifiedBranch"]


def _str_dict() -> dict[str, str]:
    return {}


def _str_list() -> list[str]:
    return []


@dataclass
class ModifiedBranch:
    """Mutable maintenance state layered on an immutable ``ReleaseBranch``.

    Patches are referenced by repository name; the registry owns the
    ``Patch`` objects.
    """

    release_branch: ReleaseBranch
    changed_dependencies: dict[str, str] = field(default_factory=_str_dict)
    needed_patches: list[str] = field(default_factory=_str_list)
    pending_messages: list[str] = field(default_factory=_str_list)
    pushed_messages: list[str] = field(default_factory=_str_list)
    deployed_version: SimVersion | None = None

    @property
    def repo(self) -> str:
        return self.release_branch.repo

    @property
    def branch(self) -> str:
        return self.release_branch.branch

    @property
    def brands(self) -> tuple[str, ...]:
        return self.release_branch.brands

    @property
    def key(self) -> tuple[str, str]:
        return self.release_branch.key

    @property
    def dependency_branch(self) -> str:
        """Branch name used in dependency repositories for this release branch."""
        return f"{self.repo}-{self.branch}"

    # -------------------------------------------------------------------------
    # Derived state
    # -------------------------------------------------------------------------

    @property
    def is_unused(self) -> bool:
        """Nothing tracked any more; the registry may drop this entry."""
        return (
            not self.needed_patches
            and not self.changed_dependencies
            and not self.pending_messages
            and not self.pushed_messages
        )

    @property
    def is_ready_for_release_candidate(self) -> bool:
        return (
            not self.needed_patches
            and len(self.pushed_messages) > 0
            and self.deployed_version is None
        )

    @property
    def is_ready_for_production(self) -> bool:
        return (
            not self.needed_patches
            and len(self.pushed_messages) > 0
            and self.deployed_version is not None
            and self.deployed_version.is_release_candidate
        )

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def needs_patch(self, patch: Patch) -> bool:
        return patch.repo in self.needed_patches

    def add_patch(self, patch: Patch) -> bool:
        """Track ``patch`` as needed. Returns False if it already was."""
        if patch.repo in self.needed_patches:
            return False
        self.needed_patches.append(patch.repo)
        return True

    def remove_patch(self, patch: Patch) -> bool:
        """Stop tracking ``patch`` without applying it."""
        if patch.repo not in self.needed_patches:
            return False
        self.needed_patches.remove(patch.repo)
        return True

    def record_change(self, repo: str, sha: str, message: str) -> None:
        """Pin ``repo`` at ``sha`` for this branch (not yet pushed)."""
        if not is_sha(sha):
            raise ValueError(f"not a full commit sha: {sha!r}")
        self.changed_dependencies[repo] = sha
        self.pending_messages.append(message)
        self.deployed_version = None

    def mark_patch_applied(self, patch: Patch, sha: str, message: str) -> None:
        """``patch`` now lives at ``sha`` in its repository's dependency branch."""
        if patch.repo in self.needed_patches:
            self.needed_patches.remove(patch.repo)
        self.record_change(patch.repo, sha, message)

    def record_push(self) -> None:
        """Pending changes are now committed to the branch manifest."""
        self.pushed_messages.extend(self.pending_messages)
        self.pending_messages.clear()
        self.changed_dependencies.clear()

    def record_deploy(self, version: SimVersion) -> None:
        """``version`` was deployed from the current state.

        A production deploy completes the cycle: the pushed messages are
        released, leaving the entry unused.
        """
        self.deployed_version = version
        if version.test_type is None:
            self.pushed_messages.clear()

    # -------------------------------------------------------------------------
    # Working-copy operations
    # -------------------------------------------------------------------------

    def branch_dependencies(self, session: CheckoutSession) -> Result[Dependencies, MaintError]:
        """Check out the branch, pull, and return its manifest with overrides."""
        checked = session.checkout(self.repo, self.branch)
        if isinstance(checked, Err):
            return checked
        pulled = session.pull(self.repo)
        if isinstance(pulled, Err):
            return pulled
        deps = load_dependencies(session, self.repo)
        if isinstance(deps, Err):
            return deps
        return deps.value.with_overrides(self.changed_dependencies)

    def checkout_in(
        self, session: CheckoutSession, include_npm_update: bool = True
    ) -> Result[list[str], MaintError]:
        """``checkout`` for a caller already holding the working copy."""
        deps = self.branch_dependencies(session)
        if isinstance(deps, Err):
            return deps
        return checkout_dependencies(session, self.repo, deps.value, include_npm_update)

    def checkout(self, wc: WorkingCopy, include_npm_update: bool = True) -> Result[list[str], MaintError]:
        """Check out the branch and every dependency, pending changes included.

        On failure the working copy is restored to the default branch.
        """
        with wc.lock() as session:
            session.console.info(f"checking out {self.repo} {self.branch}")
            result = self.checkout_in(session, include_npm_update)
            if isinstance(result, Err):
                return session.fail(result.error)
            return result

    def push(self, wc: WorkingCopy) -> Result[None, MaintError]:
        """Commit pending dependency changes to the branch manifest and push.

        State only moves to "pushed" after the remote accepted the commit.
        """
        if not self.pending_messages and not self.changed_dependencies:
            return Ok(None)

        with wc.lock() as session:
            checked = session.checkout(self.repo, self.branch)
            if isinstance(checked, Err):
                return session.fail(checked.error)
            pulled = session.pull(self.repo)
            if isinstance(pulled, Err):
                return session.fail(pulled.error)
            current = load_dependencies(session, self.repo)
            if isinstance(current, Err):
                return session.fail(current.error)
            updated = current.value.with_overrides(self.changed_dependencies)
            if isinstance(updated, Err):
                return session.fail(updated.error)

            if updated.value != current.value:
                written = session.write_document(self.repo, MANIFEST_FILE, updated.value.to_document())
                if isinstance(written, Err):
                    return session.fail(written.error)
                added = session.add(self.repo, MANIFEST_FILE)
                if isinstance(added, Err):
                    return session.fail(added.error)
                message = ", ".join(self.pending_messages) or "Updated dependencies"
                committed = session.commit(self.repo, message)
                if isinstance(committed, Err):
                    return session.fail(committed.error)
                pushed = session.push(self.repo, self.branch)
                if isinstance(pushed, Err):
                    return session.fail(pushed.error)
            session.restore()

        self.record_push()
        return Ok(None)

    def uses_old_phetio_standalone(self, wc: WorkingCopy) -> Result[bool, MaintError]:
        return compat.uses_old_phetio_standalone(wc, self.repo, self.branch)

    def uses_relative_sim_path(self, wc: WorkingCopy) -> Result[bool, MaintError]:
        return compat.uses_relative_sim_path(wc, self.repo, self.branch)

    def uses_chipper2(self, wc: WorkingCopy) -> Result[bool, MaintError]:
        return compat.uses_chipper2(wc, self.repo, self.branch)

    def get_deployed_link_lines(
        self, wc: WorkingCopy, include_messages: bool = True
    ) -> Result[list[str], MaintError]:
        """Checklist lines for testing the deployed version."""
        if self.deployed_version is None:
            return Err(
                MaintError(
                    kind="invariant",
                    message=f"{self.repo} {self.branch} has no deployed version",
                )
            )
        layout = compat.detect_layout(wc, self.release_branch)
        if isinstance(layout, Err):
            return layout
        return Ok(
            deployed_link_lines(
                repo=self.repo,
                branch=self.branch,
                brands=self.brands,
                version=self.deployed_version,
                layout=layout.value,
                pushed_messages=self.pushed_messages,
                include_messages=include_messages,
            )
        )

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def serialize(self) -> dict[str, object]:
        return {
            "releaseBranch": self.release_branch.serialize(),
            "changedDependencies": dict(self.changed_dependencies),
            "neededPatches": list(self.needed_patches),
            "pendingMessages": list(self.pending_messages),
            "pushedMessages": list(self.pushed_messages),
            "deployedVersion": (
                self.deployed_version.serialize() if self.deployed_version is not None else None
            ),
        }

    @classmethod
    def deserialize(
        cls, obj: object, patches: Mapping[str, Patch]
    ) -> Result[ModifiedBranch, MaintError]:
        """Rebuild from ``serialize()`` output.

        Args:
            obj: Serialized form.
            patches: Already-loaded patches by repository; every needed patch
                must be present.
        """
        data = as_str_dict(obj)
        if data is None:
            return Err(MaintError(kind="parse", message="modified branch must be an object"))

        release_branch = ReleaseBranch.deserialize(data.get("releaseBranch"))
        if isinstance(release_branch, Err):
            return release_branch

        changed = get_table(data, "changedDependencies")
        needed = get_str_list(data, "neededPatches")
        pending = get_str_list(data, "pendingMessages")
        pushed = get_str_list(data, "pushedMessages")
        if changed is None or needed is None or pending is None or pushed is None:
            return Err(
                MaintError(
                    kind="parse",
                    message=f"incomplete modified branch {release_branch.value}",
                )
            )

        changed_dependencies: dict[str, str] = {}
        for repo, sha in changed.items():
            if not isinstance(sha, str) or not is_sha(sha):
                return Err(MaintError(kind="parse", message=f"invalid changed sha for {repo}: {sha!r}"))
            changed_dependencies[repo] = sha

        for repo in needed:
            if repo not in patches:
                return Err(
                    MaintError(
                        kind="reference",
                        message=f"{release_branch.value} needs unknown patch {repo}",
                    )
                )

        deployed: SimVersion | None = None
        if data.get("deployedVersion") is not None:
            version = SimVersion.deserialize(data.get("deployedVersion"))
            if isinstance(version, Err):
                return version
            deployed = version.value

        return Ok(
            cls(
                release_branch=release_branch.value,
                changed_dependencies=changed_dependencies,
                needed_patches=list(dict.fromkeys(needed)),
                pending_messages=pending,
                pushed_messages=pushed,
                deployed_version=deployed,
            )
        )
