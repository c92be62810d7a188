"""Workspace detection.

The workspace is the directory holding ``maint.toml`` and/or the registry
file ``.maintenance.json``. Repository clones live next to each other in
``paths.repos`` (by default the workspace's parent directory, so that the
tool is itself checked out alongside the repositories it maintains).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from .config import Config
from .result import Err, Ok, Result

__all__ = ["Workspace", "WorkspaceError", "detect_workspace", "is_workspace_root"]

_MARKERS = ("maint.toml", ".maintenance.json")


@dataclass(frozen=True)
class WorkspaceError:
    """Error when workspace cannot be detected."""

    message: str
    searched_from: Path | None = None


@dataclass(frozen=True, slots=True)
class Workspace:
    root: Path
    config: Config = field(default_factory=Config)

    @property
    def config_path(self) -> Path:
        return self.root / "maint.toml"

    @property
    def registry_path(self) -> Path:
        return (self.root / self.config.paths.registry).resolve()

    @property
    def repos_dir(self) -> Path:
        return (self.root / self.config.paths.repos).resolve()


def is_workspace_root(path: Path) -> bool:
    return any((path / marker).exists() for marker in _MARKERS)


def detect_workspace(start: Path | None = None) -> Result[Path, WorkspaceError]:
    """Find the workspace root.

    ``MAINT_WORKSPACE`` wins when set; otherwise the nearest ancestor of
    ``start`` (default: cwd) carrying a marker file.
    """
    env = os.environ.get("MAINT_WORKSPACE")
    if env:
        root = Path(env).expanduser().resolve()
        if root.is_dir():
            return Ok(root)
        return Err(WorkspaceError(f"MAINT_WORKSPACE is not a directory: {root}"))

    origin = (start or Path.cwd()).resolve()
    for candidate in (origin, *origin.parents):
        if is_workspace_root(candidate):
            return Ok(candidate)

    return Err(
        WorkspaceError(
            "no workspace found (missing maint.toml or .maintenance.json)",
            searched_from=origin,
        )
    )
