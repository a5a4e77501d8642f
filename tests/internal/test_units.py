"""Tests for rosmon._internal.units."""

from __future__ import annotations

import pytest

from rosmon._internal.units import (
    format_byte_size,
    format_duration,
    parse_byte_size,
    parse_duration,
)


class TestFormatByteSize:
    @pytest.mark.parametrize(
        ("n", "expected"),
        [
            (0, "0 Bytes"),
            (-5, "0 Bytes"),
            (512, "512 Bytes"),
            (1024, "1 KB"),
            (1536, "1.5 KB"),
            (1500, "1.46 KB"),
            (1048576, "1 MB"),
            (5 * 1024**3, "5 GB"),
            (3 * 1024**5, "3072 TB"),
        ],
    )
    def test_format(self, n: int, expected: str) -> None:
        assert format_byte_size(n) == expected

    def test_parse(self) -> None:
        assert parse_byte_size("1.5 KB") == 1536
        assert parse_byte_size("512 Bytes") == 512
        assert parse_byte_size("2 gb") == 2 * 1024**3

    def test_parse_rejects_unknown_unit(self) -> None:
        with pytest.raises(ValueError):
            parse_byte_size("3 PB")
        with pytest.raises(ValueError):
            parse_byte_size("lots")


class TestFormatDuration:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("1w2d3h4m5s", "1w 2d 3h"),
            ("2d", "2d"),
            ("3h12m", "3h"),
            ("5m", "5m"),
            ("5m30s", "5m"),
            ("42s", "0h"),
            ("", "0h"),
            (None, "0h"),
        ],
    )
    def test_format(self, raw: str | None, expected: str) -> None:
        assert format_duration(raw) == expected


class TestParseDuration:
    def test_compact(self) -> None:
        assert parse_duration("1w2d3h4m5s") == 604800 + 2 * 86400 + 3 * 3600 + 4 * 60 + 5

    def test_clock(self) -> None:
        assert parse_duration("01:02:03") == 3723

    def test_empty(self) -> None:
        assert parse_duration("") == 0

    def test_garbage(self) -> None:
        with pytest.raises(ValueError):
            parse_duration("soon")
