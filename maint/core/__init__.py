"""Core types shared by every layer: results, errors, configuration."""

from .config import BuildServerConfig, Config, PathsConfig, load_config
from .errors import ErrorCode, MaintError, error_code
from .result import Err, Ok, Result, is_err, is_ok

__all__ = [
    # config
    "BuildServerConfig",
    "Config",
    "PathsConfig",
    "load_config",
    # errors
    "ErrorCode",
    "MaintError",
    "error_code",
    # result
    "Err",
    "Ok",
    "Result",
    "is_err",
    "is_ok",
]
