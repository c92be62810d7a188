from __future__ import annotations

from maint.core.structured import as_obj_list, as_str_dict, get_bool, get_int, get_str, get_str_list, get_table


def test_as_str_dict() -> None:
    assert as_str_dict({"a": 1}) == {"a": 1}
    assert as_str_dict({1: "a"}) is None
    assert as_str_dict([]) is None


def test_as_obj_list() -> None:
    assert as_obj_list([1, "a"]) == [1, "a"]
    assert as_obj_list("abc") is None


def test_getters() -> None:
    data: dict[str, object] = {
        "name": "  demo ",
        "blank": "   ",
        "count": 3,
        "flag": True,
        "table": {"x": 1},
        "names": ["a", "b"],
        "mixed": ["a", 1],
    }
    assert get_str(data, "name") == "demo"
    assert get_str(data, "blank") is None
    assert get_int(data, "count") == 3
    assert get_int(data, "flag") is None
    assert get_bool(data, "flag") is True
    assert get_bool(data, "count") is None
    assert get_table(data, "table") == {"x": 1}
    assert get_str_list(data, "names") == ["a", "b"]
    assert get_str_list(data, "mixed") is None
    assert get_str(data, "missing") is None
