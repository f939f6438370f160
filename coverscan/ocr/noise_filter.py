"""
Noise Filter

Rejects cover text that cannot be title or author signal:
- Publisher imprints and series/edition markers
- ISBN-shaped digit groups and barcodes
- Prices
"""

import re
from typing import Iterable, List, Optional

from loguru import logger

from coverscan.ocr.observations import LineElement


DEFAULT_PUBLISHERS = (
    "scholastic", "penguin", "random house", "harpercollins", "simon & schuster",
    "macmillan", "hachette", "oxford", "cambridge", "vintage", "bantam",
    "ballantine", "dell", "tor", "daw", "ace", "berkley", "signet",
)

DEFAULT_SERIES_MARKERS = (
    "classics", "classic", "edition", "series", "collection", "library",
    "anniversary", "special edition", "illustrated", "apple classics",
)

# Three or four digit groups joined by dash, colon or space
ISBN_SHAPE_PATTERN = re.compile(r"\d{1,5}[-:\s]\d{1,7}[-:\s]\d{1,7}(?:[-:\s][\dXx]{1,7})?")
PRICE_PATTERN = re.compile(r"[$£€¥]\s*\d+\.?\d*")

MIN_TEXT_LENGTH = 3
BARCODE_DIGITS = 8


class NoiseFilter:
    """
    Text-level noise rejection for cover parsing.

    The publisher and series deny-lists are plain substring matches and are
    known to catch some real titles: anything containing "collection" or
    "library", and words hiding a short imprint such as "History" or "Story"
    ("tor"), "Space" ("ace") or "Dawn" ("daw"). Both lists can be replaced
    or extended per instance.

    Usage:
        noise = NoiseFilter()
        noise.is_noise("Penguin Classics")  # True
        noise.is_noise("The Great Gatsby")  # False
    """

    def __init__(
        self,
        publishers: Optional[Iterable[str]] = None,
        series_markers: Optional[Iterable[str]] = None,
    ):
        """
        Initialize the filter.

        Args:
            publishers: Publisher names (case-insensitive substrings)
            series_markers: Series/edition markers (case-insensitive substrings)
        """
        self.publishers = tuple(
            p.lower() for p in (DEFAULT_PUBLISHERS if publishers is None else publishers)
        )
        self.series_markers = tuple(
            m.lower() for m in (DEFAULT_SERIES_MARKERS if series_markers is None else series_markers)
        )

    def with_additions(
        self,
        publishers: Iterable[str] = (),
        series_markers: Iterable[str] = (),
    ) -> "NoiseFilter":
        """Return a new filter with extra deny-list entries."""
        return NoiseFilter(
            publishers=self.publishers + tuple(publishers),
            series_markers=self.series_markers + tuple(series_markers),
        )

    def is_noise(self, text: str) -> bool:
        """
        Check whether text should be discarded.

        Args:
            text: Candidate line text

        Returns:
            True if any rejection rule matches
        """
        return self.rejection_reason(text) is not None

    def rejection_reason(self, text: str) -> Optional[str]:
        """Name the first rule that rejects ``text``, or None."""
        stripped = text.strip()
        if len(stripped) < MIN_TEXT_LENGTH:
            return "too_short"

        lowered = stripped.lower()

        if any(publisher in lowered for publisher in self.publishers):
            return "publisher"

        if any(marker in lowered for marker in self.series_markers):
            return "series_marker"

        for match in ISBN_SHAPE_PATTERN.finditer(stripped):
            if 10 <= len(match.group()) <= 17:
                return "isbn"

        if sum(c.isdigit() for c in stripped) >= BARCODE_DIGITS:
            return "barcode"

        if PRICE_PATTERN.search(stripped):
            return "price"

        return None

    def filter_lines(self, lines: Iterable[LineElement]) -> List[LineElement]:
        """Drop noisy lines, order preserved."""
        kept = []
        for line in lines:
            reason = self.rejection_reason(line.text)
            if reason:
                logger.debug(f"Filtering out noise ({reason}): '{line.text}'")
                continue
            kept.append(line)
        return kept
