"""
Unit tests for cover noise filtering.
"""

import pytest

from coverscan.ocr.noise_filter import NoiseFilter


class TestNoiseFilter:
    """Tests for NoiseFilter."""

    @pytest.fixture
    def noise(self):
        return NoiseFilter()

    @pytest.mark.parametrize("text,reason", [
        ("Penguin Classics", "publisher"),
        ("SCHOLASTIC", "publisher"),
        ("Anniversary Edition", "series_marker"),
        ("978-0-123456-78-9", "isbn"),
        ("0 306 40615 2", "isbn"),
        ("9780123456789", "barcode"),
        ("$12.99", "price"),
        ("£ 8", "price"),
        ("Hi", "too_short"),
        ("   ", "too_short"),
    ])
    def test_rejects_noise(self, noise, text, reason):
        """Test each rejection rule names itself."""
        assert noise.is_noise(text)
        assert noise.rejection_reason(text) == reason

    @pytest.mark.parametrize("text", [
        "The Great Gatsby",
        "Frank Herbert",
        "J.R.R. TOLKIEN",
        "1984",
        "Catch-22",
    ])
    def test_keeps_titles_and_names(self, noise, text):
        assert not noise.is_noise(text)
        assert noise.rejection_reason(text) is None

    def test_case_insensitive_lists(self, noise):
        assert noise.is_noise("penguin")
        assert noise.is_noise("PENGUIN")

    @pytest.mark.parametrize("text", [
        "A Brief History of Time",
        "The Neverending Story",
        "Space Opera",
        "Before Dawn",
    ])
    def test_short_imprints_catch_real_titles(self, noise, text):
        """Test the known cost of substring imprints, and the override that avoids it."""
        assert noise.rejection_reason(text) == "publisher"
        assert not NoiseFilter(publishers=["penguin"]).is_noise(text)

    def test_replacing_lists(self):
        """Test a deny-list can be replaced to keep a real title."""
        noise = NoiseFilter(series_markers=[])

        assert not noise.is_noise("The Collection")
        assert noise.is_noise("Penguin")

    def test_with_additions(self, noise):
        extended = noise.with_additions(publishers=["Orbit"], series_markers=["Book One"])

        assert extended.is_noise("ORBIT")
        assert extended.is_noise("Book One")
        assert extended.is_noise("Penguin")
        # Original is untouched
        assert not noise.is_noise("ORBIT")

    def test_filter_lines_preserves_order(self, noise, make_line):
        lines = [
            make_line("DUNE", mid_y=0.8),
            make_line("Ace Books", mid_y=0.6),
            make_line("Frank Herbert", mid_y=0.4),
            make_line("$9.99", mid_y=0.3),
        ]

        kept = noise.filter_lines(lines)

        assert [line.text for line in kept] == ["DUNE", "Frank Herbert"]
