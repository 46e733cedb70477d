"""Tests for clock-string / seconds conversion."""

import pytest

from vidtrim.models import MediaDescription
from vidtrim.timecode import from_seconds, to_seconds, trim_bounds


class TestToSeconds:
    def test_whole_seconds(self):
        assert to_seconds("01:02:03") == 3723

    def test_fraction_truncated(self):
        assert to_seconds("00:01:23.95") == 83

    def test_malformed_raises(self):
        with pytest.raises(ValueError):
            to_seconds("83")


class TestFromSeconds:
    def test_zero(self):
        assert from_seconds(0) == "00:00:00"

    def test_hours(self):
        assert from_seconds(3723) == "01:02:03"

    def test_negative_raises(self):
        with pytest.raises(ValueError):
            from_seconds(-1)

    @pytest.mark.parametrize("n", [0, 1, 59, 60, 3599, 3600, 45296, 86399])
    def test_inverse(self, n):
        assert to_seconds(from_seconds(n)) == n


class TestTrimBounds:
    def test_uses_duration(self):
        assert trim_bounds(MediaDescription(duration="00:01:23.45")) == 83

    def test_fallback_when_unknown(self):
        assert trim_bounds(MediaDescription()) == 10

    def test_fallback_without_description(self):
        assert trim_bounds(None) == 10
