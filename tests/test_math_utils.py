"""Unit tests for math_utils - numbers and duration text."""

from __future__ import annotations

import pytest

from custom_components.child_telemetry.utils.math_utils import (
    format_minutes,
    is_finite_number,
    minutes_to_hours,
    parse_duration_text,
    to_number,
)


class TestNumbers:
    """Tests for number coercion."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [(1, True), (1.5, True), (True, False), (float("inf"), False), ("1", False)],
    )
    def test_is_finite_number(self, value, expected: bool) -> None:
        assert is_finite_number(value) is expected

    @pytest.mark.parametrize(
        ("value", "expected"),
        [(3, 3.0), ("12.5 min", 12.5), (" -4", -4.0), ("abc", None), (None, None), (False, None)],
    )
    def test_to_number(self, value, expected) -> None:
        assert to_number(value) == expected

    def test_minutes_to_hours(self) -> None:
        assert minutes_to_hours(90) == 1.5
        assert minutes_to_hours(100) == 1.67


class TestDurationText:
    """Free-text durations in both directions."""

    @pytest.mark.parametrize(
        ("text", "minutes"),
        [
            ("1h 30m", 90),
            ("2h", 120),
            ("45m", 45),
            ("1.5h", 90),
            ("45", 45),
            ("", 0),
            (None, 0),
            ("soon", 0),
        ],
    )
    def test_parse(self, text, minutes: float) -> None:
        assert parse_duration_text(text) == minutes

    @pytest.mark.parametrize(
        ("minutes", "label"),
        [(90, "1h 30m"), (120, "2h"), (45.4, "45m"), (0, "0m"), (None, "0m"), (float("nan"), "0m")],
    )
    def test_format(self, minutes, label: str) -> None:
        assert format_minutes(minutes) == label
