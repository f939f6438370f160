"""
Configuration for CoverScan.

Settings are plain dataclass fields with defaults, overridable from
``COVERSCAN_*`` environment variables.
"""

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Tuple

from coverscan.ocr.layout import RegionOfInterest
from coverscan.ocr.noise_filter import NoiseFilter


def _split_list(value: str) -> Tuple[str, ...]:
    return tuple(item.strip() for item in value.split(",") if item.strip())


@dataclass
class Settings:
    """Pipeline settings loaded from environment."""

    # Catalog
    open_library_base_url: str = "https://openlibrary.org"
    open_library_covers_url: str = "https://covers.openlibrary.org"
    http_timeout: float = 10.0
    search_limit: int = 10

    # Layout (empirical, tune per capture device)
    line_tolerance: float = 0.06
    roi_min_x: float = 0.15
    roi_max_x: float = 0.85
    roi_min_y: float = 0.20
    roi_max_y: float = 0.85

    # Extraction
    isbn_min_confidence: float = 0.5
    max_candidates: int = 3

    # Extra noise deny-list entries, comma separated
    extra_publishers: str = ""
    extra_series_markers: str = ""

    # Environment
    environment: str = "development"
    debug: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables."""
        return cls(
            open_library_base_url=os.getenv("COVERSCAN_OPEN_LIBRARY_URL", cls.open_library_base_url),
            open_library_covers_url=os.getenv("COVERSCAN_COVERS_URL", cls.open_library_covers_url),
            http_timeout=float(os.getenv("COVERSCAN_HTTP_TIMEOUT", cls.http_timeout)),
            search_limit=int(os.getenv("COVERSCAN_SEARCH_LIMIT", cls.search_limit)),
            line_tolerance=float(os.getenv("COVERSCAN_LINE_TOLERANCE", cls.line_tolerance)),
            roi_min_x=float(os.getenv("COVERSCAN_ROI_MIN_X", cls.roi_min_x)),
            roi_max_x=float(os.getenv("COVERSCAN_ROI_MAX_X", cls.roi_max_x)),
            roi_min_y=float(os.getenv("COVERSCAN_ROI_MIN_Y", cls.roi_min_y)),
            roi_max_y=float(os.getenv("COVERSCAN_ROI_MAX_Y", cls.roi_max_y)),
            isbn_min_confidence=float(os.getenv("COVERSCAN_ISBN_MIN_CONFIDENCE", cls.isbn_min_confidence)),
            max_candidates=int(os.getenv("COVERSCAN_MAX_CANDIDATES", cls.max_candidates)),
            extra_publishers=os.getenv("COVERSCAN_EXTRA_PUBLISHERS", cls.extra_publishers),
            extra_series_markers=os.getenv("COVERSCAN_EXTRA_SERIES_MARKERS", cls.extra_series_markers),
            environment=os.getenv("COVERSCAN_ENV", cls.environment),
            debug=os.getenv("COVERSCAN_DEBUG", "false").lower() == "true",
        )

    def region_of_interest(self) -> RegionOfInterest:
        return RegionOfInterest(
            min_x=self.roi_min_x,
            max_x=self.roi_max_x,
            min_y=self.roi_min_y,
            max_y=self.roi_max_y,
        )

    def noise_filter(self) -> NoiseFilter:
        """Default deny-lists plus any configured additions."""
        return NoiseFilter().with_additions(
            publishers=_split_list(self.extra_publishers),
            series_markers=_split_list(self.extra_series_markers),
        )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings."""
    return Settings.from_env()
