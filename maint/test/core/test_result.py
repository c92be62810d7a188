"""Tests for maint.core.result module."""

from collections.abc import Iterator

import pytest

from maint.core.result import Err, Ok, Result, collect, is_err, is_ok


class TestOk:
    def test_unwrap(self) -> None:
        assert Ok(42).unwrap() == 42

    def test_map_and_chain(self) -> None:
        result: Result[int, str] = Ok(21)
        assert result.map(lambda x: x * 2) == Ok(42)
        assert result.map_err(lambda e: f"error: {e}") == Ok(21)

    def test_repr(self) -> None:
        assert repr(Ok("x")) == "Ok('x')"


class TestErr:
    def test_unwrap_raises(self) -> None:
        with pytest.raises(ValueError, match="called unwrap on Err"):
            Err("boom").unwrap()

    def test_map_keeps_error(self) -> None:
        result: Result[int, str] = Err("boom")
        assert result.map(lambda x: x * 2) == Err("boom")
        assert result.map_err(lambda e: e.upper()) == Err("BOOM")


def test_type_guards() -> None:
    assert is_ok(Ok(1)) and not is_err(Ok(1))
    assert is_err(Err(1)) and not is_ok(Err(1))


def test_collect_gathers_values() -> None:
    assert collect([Ok(1), Ok(2)]) == Ok([1, 2])


def test_collect_stops_at_first_error() -> None:
    seen: list[int] = []

    def results() -> Iterator[Result[int, str]]:
        for i in range(3):
            seen.append(i)
            yield Err(f"bad {i}") if i == 1 else Ok(i)

    assert collect(results()) == Err("bad 1")
    assert seen == [0, 1]
