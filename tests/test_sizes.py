import pytest

from pmp.core.errors import ConfigError
from pmp.utils.sizes import format_size, parse_size


class TestParseSize:
    @pytest.mark.parametrize("text,expected", [
        ("0", 0),
        ("512", 512),
        ("500B", 500),
        ("1KB", 1024),
        ("1kb", 1024),
        ("2K", 2048),
        ("10MB", 10 * 1024 ** 2),
        ("1 GB", 1024 ** 3),
        ("  3m ", 3 * 1024 ** 2),
    ])
    def test_valid_sizes(self, text, expected):
        assert parse_size(text) == expected

    def test_int_passthrough(self):
        assert parse_size(4096) == 4096

    @pytest.mark.parametrize("text", ["", "   ", "abc", "-1KB", "1.5MB", "10XB", "KB"])
    def test_invalid_sizes(self, text):
        with pytest.raises(ConfigError):
            parse_size(text)

    def test_config_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse_size("lots")


class TestFormatSize:
    @pytest.mark.parametrize("num_bytes,expected", [
        (0, "0 B"),
        (1023, "1023 B"),
        (1024, "1.0 KB"),
        (1536, "1.5 KB"),
        (10 * 1024 ** 2, "10.0 MB"),
        (3 * 1024 ** 3, "3.0 GB"),
    ])
    def test_format(self, num_bytes, expected):
        assert format_size(num_bytes) == expected
