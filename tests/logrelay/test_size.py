"""
Tests for size.py.

Tests key functionality including:
- size_str formatting
- size_to_bytes parsing
- megabytes resolution of rotation thresholds
"""

import pytest

from logrelay.size import InvalidSizeError, megabytes, size_str, size_to_bytes

# =============================================================================
# Test size_str
# =============================================================================


@pytest.mark.unit
class TestSizeStr:
    @pytest.mark.parametrize(
        "size,expected",
        [
            (0, "0B"),
            (500, "500B"),
            (1024, "1KB"),
            (1536, "1.5KB"),
            (10 * 1024 * 1024, "10MB"),
            (3 * 1024**3, "3GB"),
        ],
    )
    def test_format(self, size, expected):
        assert size_str(size) == expected

    @pytest.mark.parametrize("size", [-1, float("nan"), float("inf"), "10", True])
    def test_invalid(self, size):
        with pytest.raises(InvalidSizeError):
            size_str(size)


# =============================================================================
# Test size_to_bytes
# =============================================================================


@pytest.mark.unit
class TestSizeToBytes:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("500B", 500),
            ("1KB", 1024),
            ("1.5MB", 1572864),
            ("2 gb", 2 * 1024**3),
            ("1MiB", 1024 * 1024),
        ],
    )
    def test_parse(self, text, expected):
        assert size_to_bytes(text) == expected

    @pytest.mark.parametrize("text", ["", "   ", "10", "ten MB", "1TB", None])
    def test_invalid(self, text):
        with pytest.raises(InvalidSizeError):
            size_to_bytes(text)


# =============================================================================
# Test megabytes
# =============================================================================


@pytest.mark.unit
class TestMegabytes:
    def test_integer(self):
        assert megabytes(10) == 10

    def test_digit_string(self):
        assert megabytes("25") == 25

    def test_size_string_rounds_up(self):
        assert megabytes("512KB") == 1
        assert megabytes("1.5MB") == 2
        assert megabytes("2GB") == 2048

    @pytest.mark.parametrize("value", [0, -5, "0B", "0", True, 1.5, None])
    def test_invalid(self, value):
        with pytest.raises(InvalidSizeError):
            megabytes(value)
