from dataclasses import dataclass

import pytest

from promptforge.templating import (
    MISSING,
    Scope,
    is_truthy,
    merge_bindings,
    resolve_path,
    to_number,
    to_text,
)


@dataclass
class Owner:
    name: str


class TestMergeBindings:
    def test_overrides_win(self) -> None:
        assert merge_bindings({"a": 1, "b": 2}, {"b": 3}) == {"a": 1, "b": 3}

    def test_inputs_are_not_modified(self) -> None:
        defaults = {"a": 1}
        overrides = {"a": 2}

        _ = merge_bindings(defaults, overrides)

        assert defaults == {"a": 1}
        assert overrides == {"a": 2}

    def test_none_overrides(self) -> None:
        assert merge_bindings({"a": 1}, None) == {"a": 1}


class TestResolvePath:
    def test_top_level_name(self) -> None:
        assert resolve_path({"a": 1}, "a") == 1

    def test_nested_mapping(self) -> None:
        assert resolve_path({"task": {"owner": {"name": "kim"}}}, "task.owner.name") == "kim"

    def test_list_index(self) -> None:
        assert resolve_path({"items": ["x", "y"]}, "items.1") == "y"

    def test_attribute(self) -> None:
        assert resolve_path({"owner": Owner("lee")}, "owner.name") == "lee"

    def test_missing_segments(self) -> None:
        assert resolve_path({}, "a") is MISSING
        assert resolve_path({"a": {}}, "a.b") is MISSING
        assert resolve_path({"a": [1]}, "a.5") is MISSING
        assert resolve_path({"a": 3}, "a.real.nope") is MISSING

    def test_bound_none_is_not_missing(self) -> None:
        assert resolve_path({"a": None}, "a") is None


class TestScope:
    def test_child_shadows_parent_only_in_child(self) -> None:
        parent = Scope({"item": "outer", "x": 1})
        child = parent.child({"item": "inner"})

        assert child.lookup("item") == "inner"
        assert child.lookup("x") == 1
        assert parent.lookup("item") == "outer"

    def test_contains(self) -> None:
        scope = Scope({"a": {"b": 1}})

        assert "a.b" in scope
        assert "a.c" not in scope
        assert 42 not in scope

    def test_names(self) -> None:
        scope = Scope({"a": 1}).child({"b": 2})

        assert sorted(scope.names()) == ["a", "b"]


class TestToText:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (None, ""),
            (True, "true"),
            (False, "false"),
            (3, "3"),
            (3.0, "3"),
            (2.5, "2.5"),
            ("hi", "hi"),
            (["a", 1, True], "a, 1, true"),
            ({"k": 1}, '{"k":1}'),
        ],
    )
    def test_conversions(self, value: object, expected: str) -> None:
        assert to_text(value) == expected


class TestToNumber:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (5, 5),
            (2.5, 2.5),
            ("7", 7),
            (" 1.5 ", 1.5),
            ("abc", None),
            ("nan", None),
            (True, None),
            (None, None),
            ([1], None),
        ],
    )
    def test_conversions(self, value: object, expected: float | None) -> None:
        assert to_number(value) == expected


class TestIsTruthy:
    @pytest.mark.parametrize("value", [None, False, 0, 0.0, "", "false", "FALSE", [], {}])
    def test_falsy(self, value: object) -> None:
        assert is_truthy(value) is False

    @pytest.mark.parametrize(
        "value", [True, 1, -2.5, "true", "yes", "0", "0.0", "  ", ["a"], {"a": 1}]
    )
    def test_truthy(self, value: object) -> None:
        assert is_truthy(value) is True
