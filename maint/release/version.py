"""Simulation version numbers.

Versions have the form ``MAJOR.MINOR.MAINTENANCE[-TESTTYPE.TESTNUMBER]``:

- ``1.5.0``: production version
- ``1.5.0-rc.1``: release candidate published before ``1.5.0`` for testing
- ``1.5.0-dev.1``: dev build from master
- ``1.5.0-sonification.1``: one-off build from the ``sonification`` branch

Older builds sometimes carried a brand suffix (``1.3.0-dev.1-phetio``). It is
still accepted when parsing but ignored.

Release branches are named ``MAJOR.MINOR``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import Mapping

from maint.core.errors import MaintError
from maint.core.result import Err, Ok, Result
from maint.core.structured import as_str_dict

__all__ = ["RELEASE_CANDIDATE", "SimVersion"]

RELEASE_CANDIDATE = "rc"

_VERSION_RE = re.compile(r"^(\d+)\.(\d+)\.(\d+)(-([^.-]+)\.(\d+))?(-([^.-]+))?$")
_BRANCH_RE = re.compile(r"^(\d+)\.(\d+)$")


@dataclass(frozen=True, slots=True)
class SimVersion:
    """An immutable simulation version.

    Equality covers the number and the test qualifier; ``build_timestamp``
    is informational only. Ordering is defined by ``compare_number``, which
    ignores the test qualifier.
    """

    major: int
    minor: int
    maintenance: int
    test_type: str | None = None
    test_number: int | None = None
    build_timestamp: str | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        for name in ("major", "minor", "maintenance"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValueError(f"{name} version should be a non-negative integer, got {value!r}")
        if (self.test_type is None) != (self.test_number is None):
            raise ValueError("test_type and test_number must be provided together")

    @classmethod
    def parse(cls, text: str, build_timestamp: str | None = None) -> Result[SimVersion, MaintError]:
        """Parse ``1.0.0``, ``1.0.1-dev.3`` and the like."""
        m = _VERSION_RE.match(text)
        if m is None:
            return Err(MaintError(kind="parse", message=f"could not parse version: {text}"))

        test_type = m.group(5)
        test_number = int(m.group(6)) if m.group(6) is not None else None
        return Ok(
            cls(
                int(m.group(1)),
                int(m.group(2)),
                int(m.group(3)),
                test_type=test_type,
                test_number=test_number,
                build_timestamp=build_timestamp,
            )
        )

    @classmethod
    def from_branch(cls, branch: str) -> Result[SimVersion, MaintError]:
        """Version for a ``MAJOR.MINOR`` branch name, maintenance 0."""
        m = _BRANCH_RE.match(branch)
        if m is None:
            return Err(
                MaintError(
                    kind="parse",
                    message=f"bad branch, should be {{MAJOR}}.{{MINOR}}, had: {branch}",
                )
            )
        return Ok(cls(int(m.group(1)), int(m.group(2)), 0))

    @classmethod
    def ensure_release_branch(cls, branch: str) -> Result[SimVersion, MaintError]:
        """Check ``branch`` can be a release branch (major must be positive)."""
        version = cls.from_branch(branch)
        if isinstance(version, Err):
            return version
        if version.value.major < 1:
            return Err(
                MaintError(
                    kind="parse",
                    message=f"major version for a release branch should be greater than zero: {branch}",
                )
            )
        return version

    def compare_number(self, other: SimVersion) -> int:
        """-1, 0 or 1 comparing (major, minor, maintenance) only."""
        mine = (self.major, self.minor, self.maintenance)
        theirs = (other.major, other.minor, other.maintenance)
        if mine < theirs:
            return -1
        if mine > theirs:
            return 1
        return 0

    @property
    def is_unpublished(self) -> bool:
        # Kept as historically defined: any major >= 1 without a test qualifier.
        return self.major >= 1 and self.test_type is None

    @property
    def is_release_candidate(self) -> bool:
        return self.test_type == RELEASE_CANDIDATE

    @property
    def branch(self) -> str:
        """The ``MAJOR.MINOR`` release branch this version belongs to."""
        return f"{self.major}.{self.minor}"

    def bump_release_candidate(self) -> SimVersion:
        """Next release candidate after this version.

        ``1.2.3-rc.2`` becomes ``1.2.3-rc.3``; anything else moves to the next
        maintenance number as ``rc.1``.
        """
        if self.is_release_candidate and self.test_number is not None:
            return replace(self, test_number=self.test_number + 1, build_timestamp=None)
        return SimVersion(
            self.major,
            self.minor,
            self.maintenance + 1,
            test_type=RELEASE_CANDIDATE,
            test_number=1,
        )

    def to_production(self) -> SimVersion:
        """Same number without the test qualifier."""
        return SimVersion(self.major, self.minor, self.maintenance)

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.maintenance}"
        if self.test_type is not None:
            text += f"-{self.test_type}.{self.test_number}"
        return text

    def serialize(self) -> dict[str, object]:
        return {
            "major": self.major,
            "minor": self.minor,
            "maintenance": self.maintenance,
            "testType": self.test_type,
            "testNumber": self.test_number,
            "buildTimestamp": self.build_timestamp,
        }

    @classmethod
    def deserialize(cls, obj: object) -> Result[SimVersion, MaintError]:
        data = as_str_dict(obj)
        if data is None:
            return Err(MaintError(kind="parse", message="version must be an object"))

        numbers: list[int] = []
        for key in ("major", "minor", "maintenance"):
            value = data.get(key)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                return Err(MaintError(kind="parse", message=f"invalid version field {key!r}: {value!r}"))
            numbers.append(value)

        test_type = _optional(data, "testType", str)
        test_number = _optional(data, "testNumber", int)
        build_timestamp = _optional(data, "buildTimestamp", str)
        if test_type is _BAD or test_number is _BAD or build_timestamp is _BAD:
            return Err(MaintError(kind="parse", message=f"invalid version qualifier: {data!r}"))
        if (test_type is None) != (test_number is None):
            return Err(
                MaintError(kind="parse", message="testType and testNumber must be provided together")
            )

        return Ok(
            cls(
                numbers[0],
                numbers[1],
                numbers[2],
                test_type=test_type,  # type: ignore[arg-type]
                test_number=test_number,  # type: ignore[arg-type]
                build_timestamp=build_timestamp,  # type: ignore[arg-type]
            )
        )


_BAD = object()


def _optional(data: Mapping[str, object], key: str, kind: type) -> object:
    """Value of an optional (nullable) field, or ``_BAD`` on a type mismatch."""
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, kind):
        return _BAD
    return value
