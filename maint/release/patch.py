"""Patches: commit sets that still need to reach release branches."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from maint.core.errors import MaintError
from maint.core.result import Err, Ok, Result
from maint.core.structured import as_str_dict, get_str, get_str_list
from maint.release.dependencies import is_sha

__all__ = ["Patch"]


@dataclass(frozen=True, slots=True, eq=False)
class Patch:
    """A fix in one repository, as the commits to cherry-pick in order.

    A patch is identified by its repository: two patches compare equal when
    they target the same repository.
    """

    repo: str
    shas: tuple[str, ...]
    message: str

    @classmethod
    def create(cls, repo: str, shas: Iterable[str], message: str) -> Result[Patch, MaintError]:
        """Validated constructor."""
        sha_list = tuple(shas)
        if not repo:
            return Err(MaintError(kind="validation", message="patch repository must not be empty"))
        if not sha_list:
            return Err(MaintError(kind="validation", message=f"patch for {repo} has no commits"))
        bad = [sha for sha in sha_list if not is_sha(sha)]
        if bad:
            return Err(
                MaintError(kind="parse", message=f"invalid sha(s) for patch {repo}: {', '.join(bad)}")
            )
        return Ok(cls(repo=repo, shas=sha_list, message=message))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Patch):
            return NotImplemented
        return self.repo == other.repo

    def __hash__(self) -> int:
        return hash(self.repo)

    def serialize(self) -> dict[str, object]:
        return {"repo": self.repo, "shas": list(self.shas), "message": self.message}

    @classmethod
    def deserialize(cls, obj: object) -> Result[Patch, MaintError]:
        data = as_str_dict(obj)
        if data is None:
            return Err(MaintError(kind="parse", message="patch must be an object"))

        repo = get_str(data, "repo")
        shas = get_str_list(data, "shas")
        message = data.get("message")
        if repo is None or shas is None or not isinstance(message, str):
            return Err(
                MaintError(kind="parse", message="patch needs repo, shas and message", hint=repr(data))
            )
        bad = [sha for sha in shas if not is_sha(sha)]
        if bad:
            return Err(MaintError(kind="parse", message=f"invalid sha(s) for patch {repo}: {', '.join(bad)}"))
        return Ok(cls(repo=repo, shas=tuple(shas), message=message))
