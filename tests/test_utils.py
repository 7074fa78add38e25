"""Tests for shared helpers."""

from datetime import UTC

import pytest

from grd.utils import format_size, parse_timestamp, split_terms


@pytest.mark.parametrize(
    ("size", "expected"),
    [(0, "0 B"), (1023, "1023 B"), (2048, "2.0 KB"), (15 * 1024 * 1024, "15.0 MB")],
)
def test_format_size(size, expected):
    assert format_size(size) == expected


def test_parse_timestamp():
    parsed = parse_timestamp("2024-05-01T12:00:00Z")

    assert parsed is not None
    assert parsed.tzinfo is not None
    assert parsed.astimezone(UTC).hour == 12
    assert parse_timestamp(None) is None
    assert parse_timestamp("yesterday") is None


def test_split_terms():
    assert split_terms(" Musl, ,gnu,MUSL ") == ["musl", "gnu"]
    assert split_terms(None) == []
