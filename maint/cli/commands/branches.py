"""Commands on tracked release branches."""

from __future__ import annotations

import typer

from maint.cli.context import build_context, exit_error, load_registry, require_branch, save_registry
from maint.core.result import Err
from maint.output.console import Style
from maint.release.dependencies import checkout_target
from maint.release.modified_branch import ModifiedBranch


def _state(modified: ModifiedBranch) -> str:
    if modified.needed_patches:
        return "needs patches"
    if modified.pending_messages:
        return "pending push"
    if modified.is_ready_for_release_candidate:
        return "ready for release candidate"
    if modified.is_ready_for_production:
        return "ready for production"
    if modified.deployed_version is not None:
        return f"deployed {modified.deployed_version}"
    return "unused"


def status() -> None:
    """Show patches and tracked release branches."""
    ctx = build_context()
    registry = load_registry(ctx)
    console = ctx.console

    console.header("Patches")
    if not registry.patches:
        console.print("(none)", Style.DIM)
    for patch in registry.patches:
        console.print(f"{patch.repo}: {patch.message} [{len(patch.shas)} commit(s)]")

    console.newline()
    console.header("Release branches")
    if len(registry) == 0:
        console.print("(none)", Style.DIM)
    for modified in registry:
        console.print(f"{modified.release_branch}: {_state(modified)}", Style.INFO)
        if modified.needed_patches:
            console.print(f"  needs: {', '.join(modified.needed_patches)}")
        for repo, sha in modified.changed_dependencies.items():
            console.print(f"  {repo} -> {sha}", Style.DIM)
        if modified.pending_messages:
            console.print(f"  pending: {', '.join(modified.pending_messages)}")
        if modified.pushed_messages:
            console.print(f"  pushed: {', '.join(modified.pushed_messages)}")


def push(
    repo: str = typer.Argument(..., help="Simulation repository"),
    branch: str = typer.Argument(..., help="Release branch"),
) -> None:
    """Commit pending dependency changes to the branch and push."""
    ctx = build_context()
    registry = load_registry(ctx)
    modified = require_branch(ctx, registry, repo, branch)

    if not modified.pending_messages:
        ctx.console.warning(f"{modified.release_branch} has nothing to push")
        return
    pushed = modified.push(ctx.working_copy)
    if isinstance(pushed, Err):
        exit_error(ctx, pushed.error)

    save_registry(ctx, registry)
    ctx.console.success(f"pushed {modified.release_branch}")


def checkout(
    repo: str = typer.Argument(..., help="Repository"),
    target: str = typer.Argument(..., help="Branch or commit sha"),
    no_npm: bool = typer.Option(False, "--no-npm", help="Skip npm prune/update"),
) -> None:
    """Check out a repository and every dependency it records.

    Tracked release branches are checked out with their pending changes.
    """
    ctx = build_context()
    registry = load_registry(ctx)
    modified = registry.get_branch(repo, target)

    if modified is not None:
        result = modified.checkout(ctx.working_copy, include_npm_update=not no_npm)
    else:
        with ctx.working_copy.lock() as session:
            result = checkout_target(session, repo, target, include_npm_update=not no_npm)
            if isinstance(result, Err):
                session.fail(result.error)
    if isinstance(result, Err):
        exit_error(ctx, result.error)

    ctx.console.success(f"checked out {repo} {target} and {len(result.value)} dependencies")


def links(
    repo: str = typer.Argument(..., help="Simulation repository"),
    branch: str = typer.Argument(..., help="Release branch"),
    no_messages: bool = typer.Option(False, "--no-messages", help="Omit the change summary line"),
) -> None:
    """Print checklist links for the deployed version."""
    ctx = build_context()
    registry = load_registry(ctx)
    modified = require_branch(ctx, registry, repo, branch)

    lines = modified.get_deployed_link_lines(ctx.working_copy, include_messages=not no_messages)
    if isinstance(lines, Err):
        exit_error(ctx, lines.error)
    for line in lines.value:
        typer.echo(line)


def prune() -> None:
    """Drop release branches with nothing left to track."""
    ctx = build_context()
    registry = load_registry(ctx)

    removed = registry.prune()
    save_registry(ctx, registry)
    for modified in removed:
        ctx.console.print(f"removed {modified.release_branch}", Style.DIM)
    ctx.console.success(f"{len(removed)} branch(es) pruned")


def remove_branch(
    repo: str = typer.Argument(..., help="Simulation repository"),
    branch: str = typer.Argument(..., help="Release branch"),
) -> None:
    """Stop tracking a release branch, whatever its state."""
    ctx = build_context()
    registry = load_registry(ctx)

    removed = registry.remove_branch(repo, branch)
    if isinstance(removed, Err):
        exit_error(ctx, removed.error)

    save_registry(ctx, registry)
    ctx.console.success(f"{removed.value.release_branch} removed")
