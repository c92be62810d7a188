from __future__ import annotations

import os
from dataclasses import dataclass
from typing import NoReturn

import typer

from maint.core.config import Config, load_config
from maint.core.errors import ErrorCode, MaintError, error_code
from maint.core.result import Err
from maint.core.workspace import Workspace, detect_workspace
from maint.deploy.build_server import BuildServerClient
from maint.deploy.http import HttpClient, RealHttpClient
from maint.git.working_copy import WorkingCopy
from maint.output.console import ConsoleProtocol, RichConsole
from maint.release.modified_branch import ModifiedBranch
from maint.release.registry import BranchRegistry


@dataclass(frozen=True, slots=True)
class CLIContext:
    workspace: Workspace
    config: Config
    console: ConsoleProtocol
    working_copy: WorkingCopy
    http: HttpClient

    def build_server(self) -> BuildServerClient:
        return BuildServerClient(self.config.build_server, self.http, self.console)


def build_context() -> CLIContext:
    console = RichConsole(verbose=os.environ.get("MAINT_VERBOSE") == "1")

    root = detect_workspace()
    if isinstance(root, Err):
        typer.echo(f"error: {root.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    config = Config()
    config_path = root.value / "maint.toml"
    if config_path.exists():
        loaded = load_config(config_path)
        if isinstance(loaded, Err):
            typer.echo(f"error: {loaded.error.message}", err=True)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))
        config = loaded.value

    workspace = Workspace(root=root.value, config=config)
    return CLIContext(
        workspace=workspace,
        config=config,
        console=console,
        working_copy=WorkingCopy(
            workspace.repos_dir,
            console=console,
            default_branch=config.default_branch,
        ),
        http=RealHttpClient(),
    )


def exit_error(ctx: CLIContext, error: MaintError) -> NoReturn:
    ctx.console.error(error.pretty())
    raise typer.Exit(code=int(error_code(error.kind)))


def load_registry(ctx: CLIContext) -> BranchRegistry:
    registry = BranchRegistry.load(ctx.workspace.registry_path)
    if isinstance(registry, Err):
        exit_error(ctx, registry.error)
    return registry.value


def save_registry(ctx: CLIContext, registry: BranchRegistry) -> None:
    saved = registry.persist(ctx.workspace.registry_path)
    if isinstance(saved, Err):
        exit_error(ctx, saved.error)


def require_branch(ctx: CLIContext, registry: BranchRegistry, repo: str, branch: str) -> ModifiedBranch:
    modified = registry.get_branch(repo, branch)
    if modified is None:
        exit_error(ctx, MaintError(kind="untracked", message=f"{repo} {branch} is not tracked"))
    return modified
