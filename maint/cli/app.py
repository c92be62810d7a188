from __future__ import annotations

import os
from pathlib import Path

import typer

from maint import __version__
from maint.cli.commands.branches import checkout, links, prune, push, remove_branch, status
from maint.cli.commands.deploy_cmd import deploy_production, deploy_rc
from maint.cli.commands.patches import add_patch, apply_patch, apply_patches, create_patch, remove_patch
from maint.core.errors import ErrorCode
from maint.core.workspace import is_workspace_root


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# Commands
app.command()(status)
app.command("create-patch")(create_patch)
app.command("remove-patch")(remove_patch)
app.command("add-patch")(add_patch)
app.command("apply-patch")(apply_patch)
app.command("apply-patches")(apply_patches)
app.command()(push)
app.command()(checkout)
app.command()(links)
app.command()(prune)
app.command("remove-branch")(remove_branch)
app.command("deploy-rc")(deploy_rc)
app.command("deploy-production")(deploy_production)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show every git/npm step."),
    workspace: Path | None = typer.Option(
        None,
        "--workspace",
        help="Workspace root (overrides auto detection)",
    ),
) -> None:
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=0)

    if verbose:
        os.environ["MAINT_VERBOSE"] = "1"

    if workspace is not None:
        try:
            root = workspace.expanduser().resolve()
        except OSError as e:
            typer.echo(f"error: invalid --workspace: {e}", err=True)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))

        if not root.is_dir() or not is_workspace_root(root):
            typer.echo(
                f"error: --workspace '{root}' is not a valid workspace (missing maint.toml or .maintenance.json)",
                err=True,
            )
            raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

        os.environ["MAINT_WORKSPACE"] = str(root)


def main() -> None:
    app()
