"""Tests for the nested-telemetry flattener."""

from __future__ import annotations

import pytest

from voltwatch.telemetry.normalizer import SYMBOLIC_VALUES, flatten, resolve_leaf


class TestResolveLeaf:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (12, 12.0),
            (3.5, 3.5),
            (True, 1.0),
            (False, 0.0),
            (None, 0.0),
            ("42.5", 42.5),
            ("-7", -7.0),
            ("DRIVE", 2.0),
            ("--", -1.0),
            ("", -1.0),
            ("On", 1.0),
            ("off", 0.0),
        ],
    )
    def test_resolves(self, value: object, expected: float) -> None:
        assert resolve_leaf(value) == expected

    @pytest.mark.parametrize(
        "value",
        ["Disconnected", "drive", [1, 2], object(), " 12 ", "1_000", "1e400", 10**400],
    )
    def test_skipped(self, value: object) -> None:
        assert resolve_leaf(value) is None

    def test_symbolic_table_is_case_sensitive(self) -> None:
        assert "DRIVE" in SYMBOLIC_VALUES
        assert "Drive" not in SYMBOLIC_VALUES


class TestFlatten:
    def test_nested_keys_are_colon_joined(self) -> None:
        result = flatten(
            "tesla",
            {"charge_state": {"battery_level": 72, "nested": {"deep": 1}}},
        )
        assert result.values == {
            "tesla:charge_state:battery_level": 72.0,
            "tesla:charge_state:nested:deep": 1.0,
        }

    def test_symbolic_leaf(self) -> None:
        result = flatten("carserver", {"gear": "DRIVE", "door": "--"})
        assert result.values == {"carserver:gear": 2.0, "carserver:door": -1.0}

    def test_null_is_written_as_zero(self) -> None:
        result = flatten("tesla", {"drive_state": {"speed": None}})
        assert result.values == {"tesla:drive_state:speed": 0.0}

    def test_unresolvable_leaves_are_dropped(self) -> None:
        result = flatten(
            "tesla",
            {"vin": "5YJ3E1EA1NF000001", "odometer": 100, "tags": ["a", "b"]},
        )
        assert result.values == {"tesla:odometer": 100.0}
        assert result.count == 1

    def test_out_of_range_integer_is_dropped(self) -> None:
        result = flatten("t", {"big": 10**400, "ok": 1})
        assert result.values == {"t:ok": 1.0}

    def test_empty_mapping(self) -> None:
        assert flatten("tesla", {}).count == 0

    def test_scalar_root(self) -> None:
        assert flatten("carserver", "NOMINAL").values == {"carserver": 1.0}
