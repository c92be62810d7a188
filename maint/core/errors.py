"""Error taxonomy and exit codes.

Every operation in the release core reports failure as a ``MaintError``
value. The ``kind`` identifies the failure class:

- parse: malformed version string, branch name or structured document
- vcs: checkout/pull/push/commit/ancestor-check failure
- reference: a modified branch points at a patch the registry does not hold
- duplicate: a (repo, branch) pair or patch repo is already registered
- authorization: the build server rejected the authorization code
- invariant: an operation was requested in a state that forbids it
- validation: a build request was refused before or by the build server
- not_found: a required file does not exist
- untracked: the registry holds no such patch or modified branch
- io: a local file could not be read or written
- network: the build server could not be reached

The CLI maps kinds to the stable ``ErrorCode`` exit codes.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Literal

__all__ = ["ErrorCode", "ErrorKind", "MaintError", "error_code"]

ErrorKind = Literal[
    "parse",
    "vcs",
    "reference",
    "duplicate",
    "authorization",
    "invariant",
    "validation",
    "not_found",
    "untracked",
    "io",
    "network",
]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands.

    The numeric values are part of the command-line contract:
    - 0: Success
    - 1: User error (bad input, operation not allowed in the current state)
    - 2: Environment error (repository state, credentials)
    - 3: Build error (build server refused the request)
    - 4: Network error (build server unreachable)
    - 5: I/O error (registry or manifest unreadable/unwritable)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    BUILD_ERROR = 3
    NETWORK_ERROR = 4
    IO_ERROR = 5

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK


@dataclass(frozen=True, slots=True)
class MaintError:
    """Canonical error payload for the release core.

    Attributes:
        kind: Failure class (see module docstring).
        message: Human-readable description.
        hint: Optional extra context (a path, a command, a suggestion).
    """

    kind: ErrorKind
    message: str
    hint: str | None = None

    def pretty(self) -> str:
        if self.hint:
            return f"{self.message} (hint: {self.hint})"
        return self.message


_KIND_CODES: dict[str, ErrorCode] = {
    "vcs": ErrorCode.ENV_ERROR,
    "authorization": ErrorCode.ENV_ERROR,
    "validation": ErrorCode.BUILD_ERROR,
    "network": ErrorCode.NETWORK_ERROR,
    "io": ErrorCode.IO_ERROR,
    "not_found": ErrorCode.IO_ERROR,
}


def error_code(kind: str) -> ErrorCode:
    """Exit code for a ``MaintError.kind``; unknown kinds are user errors."""
    return _KIND_CODES.get(kind, ErrorCode.USER_ERROR)
