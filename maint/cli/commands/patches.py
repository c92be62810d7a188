"""Patch commands: create, remove, attach to branches, apply."""

from __future__ import annotations

import typer

from maint.cli.context import (
    CLIContext,
    build_context,
    exit_error,
    load_registry,
    require_branch,
    save_registry,
)
from maint.core.errors import MaintError
from maint.core.result import Err
from maint.release.modified_branch import ModifiedBranch
from maint.release.patch import Patch
from maint.release.patching import apply_patch as apply_patch_to_branch
from maint.release.registry import BranchRegistry
from maint.release.release_branch import ReleaseBranch
from maint.release.version import SimVersion


def create_patch(
    repo: str = typer.Argument(..., help="Repository the fix lives in"),
    message: str = typer.Argument(..., help="Description used in commit messages and checklists"),
    sha: list[str] = typer.Option(..., "--sha", help="Commit to cherry-pick (repeat, in order)"),
) -> None:
    """Register a fix to bring to release branches."""
    ctx = build_context()
    registry = load_registry(ctx)

    patch = Patch.create(repo, sha, message)
    if isinstance(patch, Err):
        exit_error(ctx, patch.error)
    added = registry.add_patch(patch.value)
    if isinstance(added, Err):
        exit_error(ctx, added.error)

    save_registry(ctx, registry)
    ctx.console.success(f"patch {repo} created ({len(sha)} commit(s))")


def remove_patch(repo: str = typer.Argument(..., help="Repository of the patch")) -> None:
    """Forget a patch no release branch needs any more."""
    ctx = build_context()
    registry = load_registry(ctx)

    removed = registry.remove_patch(repo)
    if isinstance(removed, Err):
        exit_error(ctx, removed.error)

    save_registry(ctx, registry)
    ctx.console.success(f"patch {repo} removed")


def add_patch(
    repo: str = typer.Argument(..., help="Simulation repository"),
    branch: str = typer.Argument(..., help="Release branch, e.g. 1.2"),
    patch_repo: str = typer.Argument(..., help="Repository of the patch to add"),
    brand: list[str] = typer.Option(["phet"], "--brand", help="Brands built from the branch (new branches only)"),
) -> None:
    """Mark a release branch as needing a patch."""
    ctx = build_context()
    registry = load_registry(ctx)

    patch = registry.get_patch(patch_repo)
    if patch is None:
        exit_error(ctx, MaintError(kind="untracked", message=f"no patch for {patch_repo}"))
    version = SimVersion.ensure_release_branch(branch)
    if isinstance(version, Err):
        exit_error(ctx, version.error)

    modified = registry.ensure_branch(ReleaseBranch(repo=repo, branch=branch, brands=tuple(brand)))
    if not modified.add_patch(patch):
        ctx.console.warning(f"{modified.release_branch} already needs patch {patch_repo}")
        return

    save_registry(ctx, registry)
    ctx.console.success(f"{modified.release_branch} needs patch {patch_repo}")


def apply_patch(
    repo: str = typer.Argument(..., help="Simulation repository"),
    branch: str = typer.Argument(..., help="Release branch"),
    patch_repo: str | None = typer.Argument(None, help="Only this patch (default: every needed patch)"),
) -> None:
    """Cherry-pick needed patches onto the branch's dependency branches."""
    ctx = build_context()
    registry = load_registry(ctx)
    modified = require_branch(ctx, registry, repo, branch)

    patches = registry.resolve_patches(modified)
    if isinstance(patches, Err):
        exit_error(ctx, patches.error)
    selected = [p for p in patches.value if patch_repo is None or p.repo == patch_repo]
    if patch_repo is not None and not selected:
        exit_error(
            ctx,
            MaintError(kind="invariant", message=f"{modified.release_branch} does not need patch {patch_repo}"),
        )

    for patch in selected:
        _apply_one(ctx, registry, modified, patch)


def apply_patches() -> None:
    """Apply every needed patch to every tracked branch."""
    ctx = build_context()
    registry = load_registry(ctx)

    applied = 0
    for modified in registry.modified_branches:
        patches = registry.resolve_patches(modified)
        if isinstance(patches, Err):
            exit_error(ctx, patches.error)
        for patch in patches.value:
            _apply_one(ctx, registry, modified, patch)
            applied += 1

    ctx.console.success(f"{applied} patch(es) applied")


def _apply_one(
    ctx: CLIContext, registry: BranchRegistry, modified: ModifiedBranch, patch: Patch
) -> None:
    sha = apply_patch_to_branch(ctx.working_copy, modified, patch)
    if isinstance(sha, Err):
        exit_error(ctx, sha.error)
    # Persist after every patch so a later failure keeps earlier progress.
    save_registry(ctx, registry)
    ctx.console.success(f"applied {patch.repo} to {modified.release_branch} ({sha.value[:7]})")
