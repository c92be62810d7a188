"""Typed loading of ``maint.toml``.

Example:

    default_branch = "master"

    [paths]
    repos = ".."
    registry = ".maintenance.json"

    [build_server]
    url = "https://build.example.org"
    authorization_code = "..."
    dev_server = "dev"
    production_server = "production"
    email = "releases@example.org"
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_str, get_table

__all__ = [
    "BuildServerConfig",
    "Config",
    "ConfigError",
    "PathsConfig",
    "load_config",
    "load_config_or_default",
    "DEFAULT_BRANCH",
    "DEV_SERVER",
    "PRODUCTION_SERVER",
]

DEFAULT_BRANCH = "master"
DEV_SERVER = "dev"
PRODUCTION_SERVER = "production"


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class PathsConfig:
    """Paths, relative to the workspace root unless absolute."""

    repos: str = ".."
    registry: str = ".maintenance.json"


@dataclass(frozen=True, slots=True)
class BuildServerConfig:
    """Where and how to request remote builds."""

    url: str | None = None
    authorization_code: str | None = None
    dev_server: str = DEV_SERVER
    production_server: str = PRODUCTION_SERVER
    email: str | None = None


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    default_branch: str = DEFAULT_BRANCH
    paths: PathsConfig = field(default_factory=PathsConfig)
    build_server: BuildServerConfig = field(default_factory=BuildServerConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from a mapping (parsed TOML)."""
        paths: StrDict = get_table(data, "paths") or {}
        server: StrDict = get_table(data, "build_server") or {}

        return cls(
            default_branch=get_str(data, "default_branch") or DEFAULT_BRANCH,
            paths=PathsConfig(
                repos=get_str(paths, "repos") or "..",
                registry=get_str(paths, "registry") or ".maintenance.json",
            ),
            build_server=BuildServerConfig(
                url=get_str(server, "url"),
                authorization_code=get_str(server, "authorization_code"),
                dev_server=get_str(server, "dev_server") or DEV_SERVER,
                production_server=get_str(server, "production_server") or PRODUCTION_SERVER,
                email=get_str(server, "email"),
            ),
        )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    import tomllib

    try:
        data_obj: object = tomllib.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))

    data = as_str_dict(data_obj)
    if data is None:
        return Err(ConfigError("Config root must be a TOML table", path=path))
    return Ok(data)


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and parse configuration from a TOML file.

    Args:
        path: Path to maint.toml

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result
    return Ok(Config.from_dict(result.value))


def load_config_or_default(path: Path) -> Config:
    """Load config from file, or the default config when it is missing/invalid."""
    result = load_config(path)
    if isinstance(result, Ok):
        return result.value
    return Config()
