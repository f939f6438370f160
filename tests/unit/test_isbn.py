"""
Unit tests for ISBN extraction and validation.
"""

import pytest

from coverscan.errors import InvalidISBNFormat
from coverscan.identification.isbn import (
    convert_isbn10_to_isbn13,
    correct_ocr_errors,
    extract_isbn,
    extract_isbn_from_frame_text,
    format_isbn,
    is_book_isbn13,
    is_valid_isbn10,
    is_valid_isbn13,
    normalize_isbn,
    parse_manual_isbn,
    scan_text_for_isbn,
)


class TestValidation:
    """Tests for checksum validation."""

    @pytest.mark.parametrize("isbn", ["9780134685991", "9780306406157", "9790000000001"])
    def test_valid_isbn13(self, isbn):
        assert is_valid_isbn13(isbn)

    @pytest.mark.parametrize("isbn", [
        "9780134685992",   # bad check digit
        "978013468599",    # too short
        "978013468599X",   # X not allowed
        "978-0134685991",  # separators must be removed first
    ])
    def test_invalid_isbn13(self, isbn):
        assert not is_valid_isbn13(isbn)

    @pytest.mark.parametrize("isbn", ["0306406152", "080442957X", "080442957x"])
    def test_valid_isbn10(self, isbn):
        assert is_valid_isbn10(isbn)

    @pytest.mark.parametrize("isbn", ["0306406153", "X306406152", "030640615", "03064O6152"])
    def test_invalid_isbn10(self, isbn):
        assert not is_valid_isbn10(isbn)

    def test_bookland_prefix(self):
        assert is_book_isbn13("978-0-13-468599-1")
        assert is_book_isbn13("9790000000001")
        # Checksum-valid EAN outside the book range
        assert is_valid_isbn13("4006381333931")
        assert not is_book_isbn13("4006381333931")


class TestConversion:
    """Tests for normalization, conversion and formatting."""

    def test_normalize(self):
        assert normalize_isbn("0-8044-2957-x") == "080442957X"
        assert normalize_isbn("978 0 13 468599 1") == "9780134685991"

    def test_isbn10_to_isbn13(self):
        assert convert_isbn10_to_isbn13("0-306-40615-2") == "9780306406157"

    def test_isbn10_with_x_converts_to_valid_isbn13(self):
        converted = convert_isbn10_to_isbn13("080442957X")

        assert converted.startswith("978080442957")
        assert is_valid_isbn13(converted)

    def test_invalid_isbn10_not_converted(self):
        assert convert_isbn10_to_isbn13("0306406153") is None

    def test_format_isbn13(self):
        assert format_isbn("9780134685991") == "978-0-134685-99-1"

    def test_format_isbn10(self):
        assert format_isbn("0306406152") == "0-306406-15-2"

    def test_format_other_lengths_unchanged(self):
        assert format_isbn("12-34") == "1234"


class TestFrameExtraction:
    """Tests for extraction from raw frame text."""

    def test_corrects_ocr_confusions(self):
        """Test a letter O read in place of a zero is repaired."""
        assert extract_isbn_from_frame_text("ISBN: 978-O-13-468599-1") == "9780134685991"

    @pytest.mark.parametrize("text", [
        "9780134685991",
        "ISBN-13 9780134685991",
        "isbn 978-0-13-468599-1",
        "978OI34685991",
        "97:0134685991",
    ])
    def test_variants(self, text):
        assert extract_isbn_from_frame_text(text) == "9780134685991"

    def test_isbn10_in_frame(self):
        assert extract_isbn_from_frame_text("ISBN 0-8044-2957-X") == "080442957X"

    def test_first_valid_run_wins(self):
        text = "1234567890123 THE NAME OF THE WIND 9780306406157"

        assert extract_isbn_from_frame_text(text) == "9780306406157"

    def test_bad_checksum(self):
        assert extract_isbn_from_frame_text("ISBN 978-0-13-468599-2") is None

    def test_no_digits(self):
        assert extract_isbn_from_frame_text("THE HOBBIT J.R.R. TOLKIEN") is None

    def test_correct_ocr_errors(self):
        assert correct_ocr_errors("9:lIOo") == "981100"


class TestLabeledExtraction:
    """Tests for labeled and manual ISBN extraction."""

    def test_labeled_isbn13(self):
        assert extract_isbn("ISBN-13: 978-0-306-40615-7") == "9780306406157"

    def test_label_digits_not_consumed(self):
        """Test an ISBN starting with 13 is not read as an "ISBN13" label."""
        assert extract_isbn("ISBN1306406153") == "1306406153"
        assert extract_isbn_from_frame_text("ISBN1306406153") == "1306406153"

    def test_prefix_required_but_missing(self):
        assert extract_isbn("9780306406157", require_isbn_prefix=True) is None

    def test_prefix_required_and_present(self):
        assert extract_isbn("ISBN 9780306406157", require_isbn_prefix=True) == "9780306406157"

    def test_isbn10_needs_lenient_mode(self):
        """Test ISBN-10 is only accepted when context is not required."""
        assert extract_isbn("ISBN 0-306-40615-2", require_isbn_prefix=True) is None
        assert extract_isbn("ISBN 0-306-40615-2") == "0306406152"

    def test_non_book_isbn13_needs_lenient_mode(self):
        assert extract_isbn("ISBN 4006381333931", require_isbn_prefix=True) is None
        assert extract_isbn("ISBN 4006381333931") == "4006381333931"

    def test_isbn10_with_check_x(self):
        assert extract_isbn("ISBN 0-8044-2957-X") == "080442957X"

    def test_no_isbn(self):
        assert extract_isbn("The Great Gatsby") is None


class TestManualEntry:
    """Tests for parse_manual_isbn."""

    def test_isbn13_passthrough(self):
        assert parse_manual_isbn(" 978-0-13-468599-1 ") == "9780134685991"

    def test_isbn10_converted(self):
        assert parse_manual_isbn("0-306-40615-2") == "9780306406157"

    def test_isbn10_kept(self):
        assert parse_manual_isbn("0-306-40615-2", prefer_isbn13=False) == "0306406152"

    @pytest.mark.parametrize("text", ["", "hello", "978-0-13-468599-2", "12345"])
    def test_invalid_raises(self, text):
        with pytest.raises(InvalidISBNFormat) as exc_info:
            parse_manual_isbn(text)

        assert exc_info.value.code == "INVALID_ISBN_FORMAT"


class TestLiveScan:
    """Tests for context-gated scanning of observations."""

    def test_requires_isbn_context(self, make_observation):
        observations = [make_observation("9780306406157", mid_y=0.3)]

        assert scan_text_for_isbn(observations) is None

    def test_context_in_separate_observation(self, make_observation):
        observations = [
            make_observation("ISBN", mid_y=0.3, x=0.1, width=0.1),
            make_observation("978-0-306-40615-7", mid_y=0.3, x=0.3, width=0.4),
        ]

        assert scan_text_for_isbn(observations) == "9780306406157"

    def test_low_confidence_skipped(self, make_observation):
        observations = [
            make_observation("ISBN 978-0-306-40615-7", mid_y=0.3, confidence=0.3),
        ]

        assert scan_text_for_isbn(observations) is None
        assert scan_text_for_isbn(observations, min_confidence=0.2) == "9780306406157"
