"""
ISBN Resolver

Extraction, OCR correction and checksum validation of ISBN-10/13:
- Frame-text extraction tolerant of common OCR confusions
- Labeled / manual-entry extraction with Bookland preference
- Context-gated scanning of live recognition output
- Normalization, display formatting and ISBN-10 to ISBN-13 conversion
"""

import re
from typing import Iterable, Optional

from loguru import logger

from coverscan.errors import InvalidISBNFormat
from coverscan.ocr.observations import TextObservation


BOOKLAND_PREFIXES = ("978", "979")

# Optional "ISBN" label, then a 10-17 character run that may contain
# OCR-confused digits and hyphens, optionally ending in X
FRAME_ISBN_PATTERN = re.compile(
    r"(?:(?i:ISBN)(?:-?1[03](?!\d))?[:\s-]*)?"
    r"([0-9IlOo:][0-9IlOo:-]{8,15}[0-9IlOo:Xx])"
)

OCR_CORRECTIONS = str.maketrans({
    ":": "8",
    "l": "1",
    "I": "1",
    "O": "0",
    "o": "0",
})

ISBN_LABEL_PATTERN = re.compile(r"ISBN(?:-?1[03](?!\d))?", re.IGNORECASE)

LABELED_ISBN_PATTERNS = (
    # 978-0-123456-78-9 or 9780123456789
    re.compile(r"\d{3}[-\s]?\d{1,5}[-\s]?\d{1,7}[-\s]?\d{1,7}[-\s]?\d"),
    # 0-123456-78-9, 0123456789 or X ending
    re.compile(r"\d{1,5}[-\s]?\d{1,7}[-\s]?\d{1,7}[-\s]?[\dXx]"),
)


def normalize_isbn(isbn: str) -> str:
    """Remove spaces and hyphens and uppercase."""
    return isbn.replace("-", "").replace(" ", "").upper()


def is_valid_isbn13(isbn: str) -> bool:
    """
    Validate an ISBN-13 checksum.

    Digits are weighted alternately 1 and 3; the sum must be divisible by 10.
    """
    if len(isbn) != 13 or not (isbn.isascii() and isbn.isdigit()):
        return False

    total = sum(
        int(c) * (1 if i % 2 == 0 else 3)
        for i, c in enumerate(isbn)
    )
    return total % 10 == 0


def is_valid_isbn10(isbn: str) -> bool:
    """
    Validate an ISBN-10 checksum.

    Positions are weighted 10 down to 1, a trailing X counts as 10 and the
    sum must be divisible by 11.
    """
    if len(isbn) != 10:
        return False

    total = 0
    for i, c in enumerate(isbn):
        weight = 10 - i
        if i == 9 and c in "Xx":
            total += 10 * weight
        elif c in "0123456789":
            total += int(c) * weight
        else:
            return False

    return total % 11 == 0


def is_book_isbn13(isbn: str) -> bool:
    """Check for a valid ISBN-13 carrying the 978/979 Bookland prefix."""
    normalized = normalize_isbn(isbn)
    return is_valid_isbn13(normalized) and normalized.startswith(BOOKLAND_PREFIXES)


def convert_isbn10_to_isbn13(isbn10: str) -> Optional[str]:
    """
    Convert ISBN-10 to ISBN-13.

    Args:
        isbn10: ISBN-10, separators allowed

    Returns:
        ISBN-13 string, or None if the input is not a valid ISBN-10
    """
    isbn10 = normalize_isbn(isbn10)
    if not is_valid_isbn10(isbn10):
        return None

    prefix = "978" + isbn10[:-1]

    total = sum(
        int(d) * (1 if i % 2 == 0 else 3)
        for i, d in enumerate(prefix)
    )
    check = (10 - (total % 10)) % 10

    return prefix + str(check)


def format_isbn(isbn: str) -> str:
    """
    Hyphenate an ISBN for display.

    ISBN-13 is grouped 3-1-6-2-1 and ISBN-10 1-6-2-1. Registration group
    boundaries are not looked up; anything else is returned normalized.
    """
    n = normalize_isbn(isbn)

    if len(n) == 13:
        return f"{n[:3]}-{n[3]}-{n[4:10]}-{n[10:12]}-{n[12]}"
    if len(n) == 10:
        return f"{n[0]}-{n[1:7]}-{n[7:9]}-{n[9]}"
    return n


def correct_ocr_errors(text: str) -> str:
    """Map characters OCR commonly confuses with digits back to digits."""
    return text.translate(OCR_CORRECTIONS)


def extract_isbn_from_frame_text(text: str) -> Optional[str]:
    """
    Find the first checksum-valid ISBN in raw recognized frame text.

    Candidate runs are OCR-corrected, stripped to digits (and X), then
    validated as ISBN-13 or ISBN-10 by length.

    Args:
        text: Unfiltered text joined from every observation in the frame

    Returns:
        Normalized ISBN, or None
    """
    for match in FRAME_ISBN_PATTERN.finditer(text):
        candidate = match.group(1)
        corrected = correct_ocr_errors(candidate)
        digits = "".join(c for c in corrected if c.isdigit() or c in "Xx").upper()

        if len(digits) == 13 and is_valid_isbn13(digits):
            logger.info(f"Found ISBN-13 {digits} in '{candidate}'")
            return digits

        if len(digits) == 10 and is_valid_isbn10(digits):
            logger.info(f"Found ISBN-10 {digits} in '{candidate}'")
            return digits

        logger.debug(f"Rejected ISBN candidate '{candidate}' -> '{digits}'")

    return None


def _accept(normalized: str, require_isbn_prefix: bool) -> Optional[str]:
    """Apply the Bookland preference policy to a normalized candidate."""
    if is_valid_isbn13(normalized):
        if normalized.startswith(BOOKLAND_PREFIXES):
            return normalized
        if not require_isbn_prefix:
            logger.debug(f"Accepting non-book ISBN-13 {normalized}")
            return normalized
        logger.debug(f"Rejected non-book ISBN-13 {normalized} without context")
        return None

    if is_valid_isbn10(normalized):
        # ISBN-10 is prone to false positives, accept only with context
        if not require_isbn_prefix:
            return normalized
        logger.debug(f"Rejected ISBN-10 {normalized} without context")

    return None


def extract_isbn(text: str, require_isbn_prefix: bool = False) -> Optional[str]:
    """
    Extract an ISBN from labeled or manually entered text.

    Args:
        text: Text that may contain an ISBN
        require_isbn_prefix: Require a literal "ISBN" marker in ``text``.
            When set, only Bookland ISBN-13s are accepted; when clear, other
            ISBN-13s and ISBN-10s are accepted too.

    Returns:
        Normalized ISBN, or None
    """
    if require_isbn_prefix and "ISBN" not in text.upper():
        logger.debug(f"No ISBN marker in '{text}'")
        return None

    cleaned = ISBN_LABEL_PATTERN.sub("", text).strip()

    for pattern in LABELED_ISBN_PATTERNS:
        match = pattern.search(cleaned)
        if match is None:
            continue
        accepted = _accept(normalize_isbn(match.group()), require_isbn_prefix)
        if accepted:
            return accepted

    direct = normalize_isbn("".join(c for c in cleaned if c.isdigit() or c in "Xx"))
    if direct:
        accepted = _accept(direct, require_isbn_prefix)
        if accepted:
            return accepted

    return None


def parse_manual_isbn(text: str, prefer_isbn13: bool = True) -> str:
    """
    Parse a user-typed ISBN.

    Args:
        text: Free-form manual entry
        prefer_isbn13: Convert a valid ISBN-10 to its ISBN-13 form

    Returns:
        Normalized ISBN

    Raises:
        InvalidISBNFormat: No checksum-valid ISBN in the text
    """
    isbn = extract_isbn(text, require_isbn_prefix=False)
    if isbn is None:
        raise InvalidISBNFormat(text)

    if prefer_isbn13 and len(isbn) == 10:
        return convert_isbn10_to_isbn13(isbn) or isbn
    return isbn


def scan_text_for_isbn(
    observations: Iterable[TextObservation],
    min_confidence: float = 0.5,
) -> Optional[str]:
    """
    Scan live recognition output for an ISBN.

    The frame must mention "ISBN" somewhere before any number is trusted;
    with that context present, each sufficiently confident observation is
    parsed leniently and the first hit wins.

    Args:
        observations: One frame's observations
        min_confidence: Observations below this confidence are skipped

    Returns:
        Normalized ISBN, or None
    """
    observations = list(observations)

    if not any("ISBN" in o.text.upper() for o in observations):
        logger.debug("No ISBN context in frame")
        return None

    for observation in observations:
        if observation.confidence < min_confidence:
            continue
        isbn = extract_isbn(observation.text, require_isbn_prefix=False)
        if isbn:
            logger.info(f"Found ISBN {isbn} in '{observation.text}'")
            return isbn

    return None
