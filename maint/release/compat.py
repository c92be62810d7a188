"""Build-layout detection for old release branches.

Release branches live for years, and the way their builds are laid out and
addressed changed along the way. Historical branches predate any flag
recording this, so each difference is detected from commit ancestry: a
branch "has" a change when the commit that introduced it is an ancestor of
the dependency commit the branch records.

Every probe checks the branch out, so it holds the working-copy lock and
restores the default branch before returning.
"""

from __future__ import annotations

from dataclasses import dataclass

from maint.core.errors import MaintError
from maint.core.result import Err, Ok, Result
from maint.git.working_copy import CheckoutSession, WorkingCopy
from maint.release.dependencies import Dependencies, load_dependencies
from maint.release.package_json import read_repo_version
from maint.release.release_branch import ReleaseBranch

__all__ = [
    "PHETIO_STANDALONE_COMMIT",
    "RELATIVE_SIM_PATH_COMMIT",
    "BuildLayout",
    "detect_layout",
    "uses_chipper2",
    "uses_old_phetio_standalone",
    "uses_relative_sim_path",
]

# chipper: phet-io.standalone renamed to phetioStandalone
PHETIO_STANDALONE_COMMIT = "4814d6966c54f250b1c0f3909b71f2b9cfcc7665"

# phet-io: wrappers take relativeSimPath instead of launchLocalVersion
RELATIVE_SIM_PATH_COMMIT = "e3fc26079358d86074358a6db3ebaf1af9725632"


@dataclass(frozen=True, slots=True)
class BuildLayout:
    old_phetio_standalone: bool
    relative_sim_path: bool
    chipper2: bool

    @property
    def standalone_param(self) -> str:
        return "phet-io.standalone" if self.old_phetio_standalone else "phetioStandalone"

    @property
    def proxies_param(self) -> str:
        return "relativeSimPath" if self.relative_sim_path else "launchLocalVersion"


def _branch_dependencies(
    session: CheckoutSession, repo: str, branch: str
) -> Result[Dependencies, MaintError]:
    checked = session.checkout(repo, branch)
    if isinstance(checked, Err):
        return checked
    return load_dependencies(session, repo)


def uses_old_phetio_standalone(wc: WorkingCopy, repo: str, branch: str) -> Result[bool, MaintError]:
    """Whether ``phet-io.standalone`` (not ``phetioStandalone``) is the query parameter."""
    with wc.lock() as session:
        deps = _branch_dependencies(session, repo, branch)
        if isinstance(deps, Err):
            return session.fail(deps.error)
        chipper = deps.value.get("chipper")
        session.restore()
        if chipper is None:
            return Err(MaintError(kind="invariant", message=f"{repo} {branch} does not depend on chipper"))

        has_rename = session.is_ancestor("chipper", PHETIO_STANDALONE_COMMIT, chipper.sha)
        return has_rename.map(lambda found: not found)


def uses_relative_sim_path(wc: WorkingCopy, repo: str, branch: str) -> Result[bool, MaintError]:
    """Whether wrappers use ``relativeSimPath`` (instead of ``launchLocalVersion``)."""
    with wc.lock() as session:
        deps = _branch_dependencies(session, repo, branch)
        if isinstance(deps, Err):
            return session.fail(deps.error)
        phetio = deps.value.get("phet-io")
        session.restore()
        if phetio is None:
            # Without phet-io there are no wrappers to address.
            return Ok(True)

        return session.is_ancestor("phet-io", RELATIVE_SIM_PATH_COMMIT, phetio.sha)


def uses_chipper2(wc: WorkingCopy, repo: str, branch: str) -> Result[bool, MaintError]:
    """Whether builds have a per-brand subdirectory (chipper 2.0 or later)."""
    with wc.lock() as session:
        deps = _branch_dependencies(session, repo, branch)
        if isinstance(deps, Err):
            return session.fail(deps.error)
        chipper = deps.value.get("chipper")
        if chipper is None:
            return session.fail(
                MaintError(kind="invariant", message=f"{repo} {branch} does not depend on chipper")
            )

        checked = session.checkout("chipper", chipper.sha)
        if isinstance(checked, Err):
            return session.fail(checked.error)
        version = read_repo_version(session, "chipper")
        session.restore()
        if isinstance(version, Err):
            return version
        return Ok(version.value.major != 0 or version.value.minor != 0)


def detect_layout(wc: WorkingCopy, release_branch: ReleaseBranch) -> Result[BuildLayout, MaintError]:
    """Layout of ``release_branch``; recorded metadata wins over probing."""
    repo, branch = release_branch.repo, release_branch.branch
    with wc.lock():
        old_standalone = release_branch.uses_old_phetio_standalone
        if old_standalone is None:
            probed = uses_old_phetio_standalone(wc, repo, branch)
            if isinstance(probed, Err):
                return probed
            old_standalone = probed.value

        relative = release_branch.uses_relative_sim_path
        if relative is None:
            probed = uses_relative_sim_path(wc, repo, branch)
            if isinstance(probed, Err):
                return probed
            relative = probed.value

        chipper2 = release_branch.uses_chipper2
        if chipper2 is None:
            probed = uses_chipper2(wc, repo, branch)
            if isinstance(probed, Err):
                return probed
            chipper2 = probed.value

    return Ok(BuildLayout(old_phetio_standalone=old_standalone, relative_sim_path=relative, chipper2=chipper2))
