"""Applying a patch to one modified branch."""

from __future__ import annotations

from maint.core.errors import MaintError
from maint.core.result import Err, Ok, Result
from maint.git.working_copy import WorkingCopy
from maint.release.modified_branch import ModifiedBranch
from maint.release.patch import Patch

__all__ = ["apply_patch"]


def apply_patch(wc: WorkingCopy, modified_branch: ModifiedBranch, patch: Patch) -> Result[str, MaintError]:
    """Cherry-pick ``patch`` onto the branch's dependency branch.

    Starting from the commit the release branch currently uses for
    ``patch.repo`` (pending changes included), the patch commits are
    cherry-picked onto ``<repo>-<branch>`` in that repository and pushed.
    The new head is recorded as a pending dependency change.

    Returns:
        Ok(sha of the new dependency head).
    """
    if not modified_branch.needs_patch(patch):
        return Err(
            MaintError(
                kind="invariant",
                message=f"{modified_branch.release_branch} does not need patch {patch.repo}",
            )
        )

    target = modified_branch.dependency_branch
    with wc.lock() as session:
        session.console.info(f"applying patch {patch.repo} to {modified_branch.release_branch}")
        deps = modified_branch.branch_dependencies(session)
        if isinstance(deps, Err):
            return session.fail(deps.error)
        ref = deps.value.get(patch.repo)
        if ref is None:
            return session.fail(
                MaintError(
                    kind="invariant",
                    message=f"{modified_branch.release_branch} does not depend on {patch.repo}",
                )
            )

        checked = session.checkout(patch.repo, ref.sha)
        if isinstance(checked, Err):
            return session.fail(checked.error)
        created = session.create_branch(patch.repo, target)
        if isinstance(created, Err):
            return session.fail(created.error)
        picked = session.cherry_pick(patch.repo, patch.shas)
        if isinstance(picked, Err):
            return session.fail(picked.error)
        pushed = session.push(patch.repo, target)
        if isinstance(pushed, Err):
            return session.fail(pushed.error)
        head = session.head_sha(patch.repo)
        if isinstance(head, Err):
            return session.fail(head.error)
        session.restore()

    modified_branch.mark_patch_applied(patch, head.value, patch.message)
    return Ok(head.value)
