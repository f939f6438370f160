"""
Pytest configuration and fixtures for CoverScan tests.
"""

import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from coverscan.errors import BookNotFound
from coverscan.identification.catalog import BookRecord
from coverscan.ocr.observations import BoundingBox, LineElement, TextObservation


# =============================================================================
# Observation Fixtures
# =============================================================================

def _observation(
    text: str,
    mid_y: float,
    height: float = 0.05,
    x: float = 0.2,
    width: float = 0.6,
    confidence: float = 0.9,
) -> TextObservation:
    """Observation centered vertically on ``mid_y``."""
    return TextObservation(
        text=text,
        confidence=confidence,
        bounds=BoundingBox(x=x, y=mid_y - height / 2, width=width, height=height),
    )


def _line(text: str, mid_y: float, height: float = 0.05, confidence: float = 0.9) -> LineElement:
    return LineElement(
        text=text,
        bounds=BoundingBox(x=0.2, y=mid_y - height / 2, width=0.6, height=height),
        confidence=confidence,
    )


@pytest.fixture
def make_observation() -> Callable[..., TextObservation]:
    """Factory for observations: make_observation(text, mid_y, height=..., x=...)."""
    return _observation


@pytest.fixture
def make_line() -> Callable[..., LineElement]:
    """Factory for line elements: make_line(text, mid_y, height=...)."""
    return _line


@pytest.fixture
def hobbit_observations() -> List[TextObservation]:
    """Large title near the top, author name lower down."""
    return [
        _observation("THE HOBBIT", mid_y=0.70, height=0.16),
        _observation("J.R.R. TOLKIEN", mid_y=0.40, height=0.06),
    ]


@pytest.fixture
def wind_observations() -> List[TextObservation]:
    """Two-line title, author, imprint and ISBN inside the scanning frame."""
    return [
        _observation("THE NAME", mid_y=0.80, height=0.12),
        _observation("OF THE WIND", mid_y=0.70, height=0.10),
        _observation("Patrick Rothfuss", mid_y=0.45, height=0.05),
        _observation("DAW", mid_y=0.33, height=0.03, x=0.3, width=0.1),
        _observation("ISBN 978-0-7564-0407-9", mid_y=0.25, height=0.03),
    ]


# =============================================================================
# Catalog Fixtures
# =============================================================================

class FakeCatalog:
    """In-memory catalog that records every call."""

    def __init__(
        self,
        isbn_records: Optional[Dict[str, Union[BookRecord, Exception]]] = None,
        search_results: Optional[Dict[str, Union[List[BookRecord], Exception]]] = None,
    ):
        self.isbn_records = isbn_records or {}
        self.search_results = search_results or {}
        self.isbn_calls: List[str] = []
        self.search_calls: List[tuple] = []

    async def lookup_by_isbn(self, isbn: str) -> BookRecord:
        self.isbn_calls.append(isbn)
        outcome = self.isbn_records.get(isbn)
        if isinstance(outcome, Exception):
            raise outcome
        if outcome is None:
            raise BookNotFound(isbn)
        return outcome

    async def search_by_title_author(self, title: str, author: Optional[str] = None) -> List[BookRecord]:
        self.search_calls.append((title, author))
        outcome = self.search_results.get(title, [])
        if isinstance(outcome, Exception):
            raise outcome
        return list(outcome)


@pytest.fixture
def fake_catalog_factory() -> Callable[..., FakeCatalog]:
    return FakeCatalog


@pytest.fixture
def wind_records() -> List[BookRecord]:
    return [
        BookRecord(title="The Wise Man's Fear", author="Patrick Rothfuss", isbn="9780756404734"),
        BookRecord(title="The Name of the Wind", author="Patrick Rothfuss", isbn="9780756404079"),
    ]


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Settings are lru_cached; reset between tests."""
    from coverscan.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
