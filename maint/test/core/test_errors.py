from __future__ import annotations

import pytest

from maint.core.errors import ErrorCode, MaintError, error_code


def test_error_code_values_are_stable() -> None:
    assert int(ErrorCode.OK) == 0
    assert int(ErrorCode.USER_ERROR) == 1
    assert int(ErrorCode.ENV_ERROR) == 2
    assert int(ErrorCode.BUILD_ERROR) == 3
    assert int(ErrorCode.NETWORK_ERROR) == 4
    assert int(ErrorCode.IO_ERROR) == 5
    assert ErrorCode.OK.is_success
    assert str(ErrorCode.NETWORK_ERROR) == "network error"


@pytest.mark.parametrize(
    ("kind", "code"),
    [
        ("parse", ErrorCode.USER_ERROR),
        ("reference", ErrorCode.USER_ERROR),
        ("duplicate", ErrorCode.USER_ERROR),
        ("invariant", ErrorCode.USER_ERROR),
        ("vcs", ErrorCode.ENV_ERROR),
        ("authorization", ErrorCode.ENV_ERROR),
        ("validation", ErrorCode.BUILD_ERROR),
        ("network", ErrorCode.NETWORK_ERROR),
        ("io", ErrorCode.IO_ERROR),
        ("not_found", ErrorCode.IO_ERROR),
        ("untracked", ErrorCode.USER_ERROR),
    ],
)
def test_error_code_for_kind(kind: str, code: ErrorCode) -> None:
    assert error_code(kind) == code


def test_pretty_includes_hint() -> None:
    assert MaintError(kind="parse", message="bad").pretty() == "bad"
    assert MaintError(kind="parse", message="bad", hint="x.json").pretty() == "bad (hint: x.json)"
