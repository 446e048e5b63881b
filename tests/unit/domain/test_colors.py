"""
Unit tests for hex colour parsing.
"""

import pytest

from foodlens.domain.analysis.colors import BLACK, Rgba, parse_hex_color


class TestParseHexColor:
    """Test parse_hex_color()."""

    @pytest.mark.parametrize(
        "token, expected",
        [
            ("FF6347", Rgba(255, 99, 71)),
            ("#ff6347", Rgba(255, 99, 71)),
            ("FFF", Rgba(255, 255, 255)),
            ("#0F0", Rgba(0, 255, 0)),
            ("80FF0000", Rgba(255, 0, 0, 128)),
            ("  #32CD32 ", Rgba(50, 205, 50)),
        ],
    )
    def test_valid_tokens(self, token: str, expected: Rgba) -> None:
        """Should parse 3, 6 and 8 digit forms."""
        assert parse_hex_color(token) == expected

    @pytest.mark.parametrize("token", ["", "N/A", "FFFF", "GGGGGG", "1234567"])
    def test_invalid_tokens_fall_back_to_black(self, token: str) -> None:
        """Should return opaque black for anything unparsable."""
        assert parse_hex_color(token) == BLACK

    def test_to_hex(self) -> None:
        assert Rgba(255, 99, 71).to_hex() == "FF6347"
        assert Rgba(255, 0, 0, 128).to_hex() == "80FF0000"
