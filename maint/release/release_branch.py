"""Release branch identity."""

from __future__ import annotations

from dataclasses import dataclass

from maint.core.errors import MaintError
from maint.core.result import Err, Ok, Result
from maint.core.structured import as_str_dict, get_bool, get_int, get_str, get_str_list

__all__ = ["ReleaseBranch"]


@dataclass(frozen=True, slots=True)
class ReleaseBranch:
    """A ``MAJOR.MINOR`` branch of a simulation repository.

    The optional fields describe the build environment the branch was cut
    with. They are recorded when known; when absent, the layout is detected
    from commit ancestry (see ``maint.release.compat``).

    Attributes:
        repo: Simulation repository name.
        branch: Branch name, e.g. ``1.2``.
        brands: Brands built from this branch, e.g. ``("phet", "phet-io")``.
        chipper_major: Major version of the build tool on the branch.
        chipper_minor: Minor version of the build tool on the branch.
        uses_old_phetio_standalone: Whether ``phet-io.standalone`` is the
            standalone query parameter.
        uses_relative_sim_path: Whether wrappers take ``relativeSimPath``.
    """

    repo: str
    branch: str
    brands: tuple[str, ...]
    chipper_major: int | None = None
    chipper_minor: int | None = None
    uses_old_phetio_standalone: bool | None = None
    uses_relative_sim_path: bool | None = None

    @property
    def key(self) -> tuple[str, str]:
        return (self.repo, self.branch)

    @property
    def uses_chipper2(self) -> bool | None:
        if self.chipper_major is None or self.chipper_minor is None:
            return None
        return self.chipper_major != 0 or self.chipper_minor != 0

    def __str__(self) -> str:
        return f"{self.repo} {self.branch}"

    def serialize(self) -> dict[str, object]:
        data: dict[str, object] = {
            "repo": self.repo,
            "branch": self.branch,
            "brands": list(self.brands),
        }
        optional = {
            "chipperMajor": self.chipper_major,
            "chipperMinor": self.chipper_minor,
            "usesOldPhetioStandalone": self.uses_old_phetio_standalone,
            "usesRelativeSimPath": self.uses_relative_sim_path,
        }
        data.update({k: v for k, v in optional.items() if v is not None})
        return data

    @classmethod
    def deserialize(cls, obj: object) -> Result[ReleaseBranch, MaintError]:
        data = as_str_dict(obj)
        if data is None:
            return Err(MaintError(kind="parse", message="releaseBranch must be an object"))

        repo = get_str(data, "repo")
        branch = get_str(data, "branch")
        brands = get_str_list(data, "brands")
        if repo is None or branch is None or brands is None:
            return Err(
                MaintError(
                    kind="parse",
                    message="releaseBranch needs repo, branch and brands",
                    hint=repr(data),
                )
            )

        return Ok(
            cls(
                repo=repo,
                branch=branch,
                brands=tuple(brands),
                chipper_major=get_int(data, "chipperMajor"),
                chipper_minor=get_int(data, "chipperMinor"),
                uses_old_phetio_standalone=get_bool(data, "usesOldPhetioStandalone"),
                uses_relative_sim_path=get_bool(data, "usesRelativeSimPath"),
            )
        )
