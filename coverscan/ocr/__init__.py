"""
OCR Post-processing Module

Turns raw text observations into clean cover lines:
- Observation and line value types
- Region-of-interest filtering and line clustering
- Noise filtering
"""

from coverscan.ocr.observations import BoundingBox, TextObservation, LineElement
from coverscan.ocr.layout import LayoutClusterer, RegionOfInterest, filter_region_of_interest
from coverscan.ocr.noise_filter import NoiseFilter

__all__ = [
    "BoundingBox",
    "TextObservation",
    "LineElement",
    "LayoutClusterer",
    "RegionOfInterest",
    "filter_region_of_interest",
    "NoiseFilter",
]
