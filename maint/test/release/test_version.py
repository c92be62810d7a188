from __future__ import annotations

import pytest

from maint.core.result import Err, Ok
from maint.release.version import SimVersion


def test_parse_production() -> None:
    assert SimVersion.parse("1.5.0") == Ok(SimVersion(1, 5, 0))


def test_parse_test_qualifier() -> None:
    parsed = SimVersion.parse("1.5.0-rc.2")
    assert parsed == Ok(SimVersion(1, 5, 0, "rc", 2))
    assert isinstance(parsed, Ok)
    assert parsed.value.is_release_candidate
    assert str(parsed.value) == "1.5.0-rc.2"


def test_parse_ignores_brand_suffix() -> None:
    assert SimVersion.parse("1.3.0-dev.1-phetio") == Ok(SimVersion(1, 3, 0, "dev", 1))


@pytest.mark.parametrize("text", ["1.5", "1.5.0.1", "v1.5.0", "1.5.0-rc.x", "1.5.0-a.b.1", ""])
def test_parse_rejects(text: str) -> None:
    result = SimVersion.parse(text)
    assert isinstance(result, Err)
    assert result.error.kind == "parse"


def test_timestamp_is_not_part_of_equality() -> None:
    assert SimVersion(1, 0, 0, build_timestamp="2020-01-01") == SimVersion(1, 0, 0)


def test_constructor_validation() -> None:
    with pytest.raises(ValueError):
        SimVersion(-1, 0, 0)
    with pytest.raises(ValueError):
        SimVersion(1, 0, 0, test_type="rc")


def test_from_branch() -> None:
    assert SimVersion.from_branch("1.9") == Ok(SimVersion(1, 9, 0))
    bad = SimVersion.from_branch("1.9.2")
    assert isinstance(bad, Err)
    assert "1.9.2" in bad.error.message


def test_ensure_release_branch_requires_positive_major() -> None:
    assert SimVersion.ensure_release_branch("2.1") == Ok(SimVersion(2, 1, 0))
    assert isinstance(SimVersion.ensure_release_branch("0.3"), Err)
    assert isinstance(SimVersion.ensure_release_branch("master"), Err)


def test_compare_number_ignores_qualifier() -> None:
    assert SimVersion(1, 2, 3).compare_number(SimVersion(1, 2, 4)) == -1
    assert SimVersion(1, 3, 0).compare_number(SimVersion(1, 2, 9)) == 1
    assert SimVersion(1, 2, 3, "rc", 1).compare_number(SimVersion(1, 2, 3)) == 0


def test_is_unpublished() -> None:
    assert SimVersion(1, 0, 0).is_unpublished
    assert not SimVersion(1, 0, 0, "dev", 1).is_unpublished
    assert not SimVersion(0, 9, 0).is_unpublished


def test_branch_and_bumps() -> None:
    rc = SimVersion(1, 2, 3, "rc", 2)
    assert rc.branch == "1.2"
    assert rc.bump_release_candidate() == SimVersion(1, 2, 3, "rc", 3)
    assert SimVersion(1, 2, 3).bump_release_candidate() == SimVersion(1, 2, 4, "rc", 1)
    assert SimVersion(1, 2, 3, "dev", 7).bump_release_candidate() == SimVersion(1, 2, 4, "rc", 1)
    assert rc.to_production() == SimVersion(1, 2, 3)


def test_serialize_round_trip() -> None:
    version = SimVersion(1, 2, 3, "rc", 4, build_timestamp="2024-02-01 10:00:00 UTC")
    data = version.serialize()
    assert data == {
        "major": 1,
        "minor": 2,
        "maintenance": 3,
        "testType": "rc",
        "testNumber": 4,
        "buildTimestamp": "2024-02-01 10:00:00 UTC",
    }
    restored = SimVersion.deserialize(data)
    assert isinstance(restored, Ok)
    assert restored.value == version
    assert restored.value.build_timestamp == version.build_timestamp


@pytest.mark.parametrize(
    "data",
    [
        "1.2.3",
        {"major": 1, "minor": 2},
        {"major": 1, "minor": 2, "maintenance": True},
        {"major": 1, "minor": 2, "maintenance": 3, "testType": "rc"},
        {"major": 1, "minor": 2, "maintenance": 3, "testType": 5, "testNumber": 1},
    ],
)
def test_deserialize_rejects(data: object) -> None:
    result = SimVersion.deserialize(data)
    assert isinstance(result, Err)
    assert result.error.kind == "parse"


@pytest.mark.parametrize("text", ["0.0.1", "1.2.3", "1.2.3-rc.4", "10.20.30-dev.0", "2.0.0-sonification.12"])
def test_parse_str_round_trip(text: str) -> None:
    parsed = SimVersion.parse(text)
    assert isinstance(parsed, Ok)
    assert str(parsed.value) == text
    assert SimVersion.parse(str(parsed.value)) == parsed


def test_compare_number_is_an_ordering() -> None:
    versions = [SimVersion(1, 2, 0), SimVersion(1, 2, 0, "rc", 5), SimVersion(1, 10, 0), SimVersion(2, 0, 1)]
    for a in versions:
        for b in versions:
            assert a.compare_number(b) == -b.compare_number(a)
            for c in versions:
                if a.compare_number(b) <= 0 and b.compare_number(c) <= 0:
                    assert a.compare_number(c) <= 0
