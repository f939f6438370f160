"""
Text observation types

Value types shared by the layout, filtering and extraction stages.

Coordinate convention: every bounding box is normalized to [0, 1] with the
origin at the BOTTOM-LEFT of the image and y increasing upward. A larger
``mid_y`` therefore means higher on the cover. OCR engines that report
pixel boxes with a top-left origin (EasyOCR, Tesseract) are converted with
``BoundingBox.from_pixel_box``.
"""

from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np


@dataclass(frozen=True)
class BoundingBox:
    """Normalized rectangle, bottom-left origin."""

    x: float
    y: float
    width: float
    height: float

    @property
    def min_x(self) -> float:
        return self.x

    @property
    def max_x(self) -> float:
        return self.x + self.width

    @property
    def min_y(self) -> float:
        return self.y

    @property
    def max_y(self) -> float:
        return self.y + self.height

    @property
    def mid_x(self) -> float:
        return self.x + self.width / 2

    @property
    def mid_y(self) -> float:
        return self.y + self.height / 2

    @classmethod
    def from_pixel_box(
        cls,
        x1: float,
        y1: float,
        x2: float,
        y2: float,
        image_width: int,
        image_height: int,
    ) -> "BoundingBox":
        """
        Convert a top-left-origin pixel box into a normalized box.

        Args:
            x1, y1: Top-left corner in pixels
            x2, y2: Bottom-right corner in pixels
            image_width: Image width in pixels
            image_height: Image height in pixels

        Returns:
            BoundingBox with bottom-left origin
        """
        if image_width <= 0 or image_height <= 0:
            raise ValueError("Image dimensions must be positive")

        left = min(x1, x2) / image_width
        right = max(x1, x2) / image_width
        top = min(y1, y2) / image_height
        bottom = max(y1, y2) / image_height

        # Flip the vertical axis
        return cls(
            x=left,
            y=1.0 - bottom,
            width=right - left,
            height=bottom - top,
        )


@dataclass(frozen=True)
class TextObservation:
    """A unit of recognized text as reported by the recognition engine."""

    text: str
    confidence: float
    bounds: BoundingBox

    @classmethod
    def from_easyocr(
        cls,
        detection: Tuple[Sequence[Sequence[float]], str, float],
        image_width: int,
        image_height: int,
    ) -> "TextObservation":
        """
        Build an observation from an EasyOCR ``readtext`` detection.

        Args:
            detection: ``(polygon, text, confidence)`` triple
            image_width: Source image width in pixels
            image_height: Source image height in pixels
        """
        polygon, text, confidence = detection
        points = np.asarray(polygon, dtype=np.float64)

        bounds = BoundingBox.from_pixel_box(
            float(points[:, 0].min()),
            float(points[:, 1].min()),
            float(points[:, 0].max()),
            float(points[:, 1].max()),
            image_width,
            image_height,
        )
        return cls(text=text, confidence=float(confidence), bounds=bounds)

    def __str__(self) -> str:
        return f"'{self.text}' ({self.confidence:.2f})"


@dataclass(frozen=True)
class LineElement:
    """Observations merged onto one horizontal line."""

    text: str
    bounds: BoundingBox
    confidence: float

    @property
    def height(self) -> float:
        return self.bounds.height

    @property
    def mid_y(self) -> float:
        return self.bounds.mid_y

    def __str__(self) -> str:
        return f"'{self.text}' (height: {self.height:.3f}, y: {self.mid_y:.3f})"
