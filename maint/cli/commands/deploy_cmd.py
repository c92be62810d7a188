"""Deploy commands."""

from __future__ import annotations

import typer

from maint.cli.context import build_context, exit_error, load_registry, require_branch, save_registry
from maint.core.result import Err
from maint.deploy.deploy import deploy_production as run_production_deploy
from maint.deploy.deploy import deploy_release_candidate


def deploy_rc(
    repo: str = typer.Argument(..., help="Simulation repository"),
    branch: str = typer.Argument(..., help="Release branch"),
) -> None:
    """Bump to the next release candidate and build it on the dev server."""
    ctx = build_context()
    registry = load_registry(ctx)
    modified = require_branch(ctx, registry, repo, branch)

    version = deploy_release_candidate(ctx.working_copy, modified, ctx.build_server())
    if isinstance(version, Err):
        exit_error(ctx, version.error)

    save_registry(ctx, registry)
    ctx.console.success(f"requested {repo} {version.value} (check the build server logs)")


def deploy_production(
    repo: str = typer.Argument(..., help="Simulation repository"),
    branch: str = typer.Argument(..., help="Release branch"),
) -> None:
    """Release the tested release candidate to production."""
    ctx = build_context()
    registry = load_registry(ctx)
    modified = require_branch(ctx, registry, repo, branch)

    version = run_production_deploy(ctx.working_copy, modified, ctx.build_server())
    if isinstance(version, Err):
        exit_error(ctx, version.error)

    save_registry(ctx, registry)
    ctx.console.success(f"requested {repo} {version.value} (check the build server logs)")
