"""Release-candidate and production deploys of a modified branch.

Both follow the same sequence while holding the working copy:

1. check out the release branch (pending overrides included) and pull
2. compute the next version from package.json and commit/push the bump
3. restore, then ask the build server for the build

Only an accepted build request updates ``deployed_version``; any failure
before that leaves the modified branch unchanged. A rejected build leaves the
bump on the remote: a production retry finds package.json already at the
target version and builds the existing commit, while a release-candidate
retry moves on to the next rc number.
"""

from __future__ import annotations

from collections.abc import Callable

from maint.core.errors import MaintError
from maint.core.result import Err, Ok, Result
from maint.deploy.build_server import BuildRequest, BuildServerClient
from maint.git.working_copy import CheckoutSession, WorkingCopy
from maint.release.dependencies import Dependencies, DependencyRef
from maint.release.modified_branch import ModifiedBranch
from maint.release.package_json import PACKAGE_FILE, read_repo_version, write_repo_version
from maint.release.version import SimVersion

__all__ = ["deploy_production", "deploy_release_candidate"]

NextVersion = Callable[[SimVersion], SimVersion]


def _bump_and_push(
    session: CheckoutSession, modified_branch: ModifiedBranch, next_version: NextVersion
) -> Result[tuple[SimVersion, Dependencies], MaintError]:
    deps = modified_branch.branch_dependencies(session)
    if isinstance(deps, Err):
        return deps

    current = read_repo_version(session, modified_branch.repo)
    if isinstance(current, Err):
        return current
    if current.value.branch != modified_branch.branch:
        return Err(
            MaintError(
                kind="invariant",
                message=(
                    f"{modified_branch.release_branch} has version {current.value} "
                    f"in {PACKAGE_FILE}"
                ),
            )
        )
    version = next_version(current.value)

    if version == current.value:
        # An earlier attempt already committed this version; build that commit.
        session.console.info(f"{modified_branch.repo} {modified_branch.branch} already at {version}")
    else:
        written = write_repo_version(session, modified_branch.repo, version)
        if isinstance(written, Err):
            return written
        added = session.add(modified_branch.repo, PACKAGE_FILE)
        if isinstance(added, Err):
            return added
        committed = session.commit(modified_branch.repo, f"Bumping version to {version}")
        if isinstance(committed, Err):
            return committed
    pushed = session.push(modified_branch.repo, modified_branch.branch)
    if isinstance(pushed, Err):
        return pushed
    head = session.head_sha(modified_branch.repo)
    if isinstance(head, Err):
        return head

    ref = DependencyRef(branch=modified_branch.branch, sha=head.value)
    return Ok((version, deps.value.with_entry(modified_branch.repo, ref)))


def _deploy(
    wc: WorkingCopy,
    modified_branch: ModifiedBranch,
    client: BuildServerClient,
    server: str,
    next_version: NextVersion,
) -> Result[SimVersion, MaintError]:
    with wc.lock() as session:
        bumped = _bump_and_push(session, modified_branch, next_version)
        if isinstance(bumped, Err):
            return session.fail(bumped.error)
        session.restore()

    version, dependencies = bumped.value
    built = client.trigger_build(
        BuildRequest(
            repo=modified_branch.repo,
            version=version,
            dependencies=dependencies,
            brands=modified_branch.brands,
            servers=(server,),
        )
    )
    if isinstance(built, Err):
        return built

    modified_branch.record_deploy(version)
    return Ok(version)


def deploy_release_candidate(
    wc: WorkingCopy, modified_branch: ModifiedBranch, client: BuildServerClient
) -> Result[SimVersion, MaintError]:
    """Deploy the next release candidate to the dev server."""
    if not modified_branch.is_ready_for_release_candidate:
        return Err(
            MaintError(
                kind="invariant",
                message=f"{modified_branch.release_branch} is not ready for a release candidate",
                hint="apply every needed patch and push before deploying",
            )
        )
    return _deploy(
        wc,
        modified_branch,
        client,
        client.config.dev_server,
        lambda current: current.bump_release_candidate(),
    )


def deploy_production(
    wc: WorkingCopy, modified_branch: ModifiedBranch, client: BuildServerClient
) -> Result[SimVersion, MaintError]:
    """Deploy the released version of the last release candidate."""
    if not modified_branch.is_ready_for_production:
        return Err(
            MaintError(
                kind="invariant",
                message=f"{modified_branch.release_branch} is not ready for production",
                hint="deploy and test a release candidate first",
            )
        )
    return _deploy(
        wc,
        modified_branch,
        client,
        client.config.production_server,
        lambda current: current.to_production(),
    )
