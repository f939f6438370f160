"""
Layout Clusterer

Turns an unordered bag of text observations into semantic lines:
- Region-of-interest filtering against the scanning frame
- Greedy same-line grouping by vertical center
- Left-to-right ordering within a line
"""

from dataclasses import dataclass
from typing import List, Sequence

import numpy as np
from loguru import logger

from coverscan.ocr.observations import BoundingBox, LineElement, TextObservation


@dataclass(frozen=True)
class RegionOfInterest:
    """Normalized rectangle approximating the on-screen scanning frame."""

    min_x: float = 0.15
    max_x: float = 0.85
    min_y: float = 0.20
    max_y: float = 0.85

    def contains(self, bounds: BoundingBox) -> bool:
        """Check whether the center of ``bounds`` lies inside the region."""
        return (
            self.min_x <= bounds.mid_x <= self.max_x
            and self.min_y <= bounds.mid_y <= self.max_y
        )


DEFAULT_ROI = RegionOfInterest()


def filter_region_of_interest(
    observations: Sequence[TextObservation],
    roi: RegionOfInterest = DEFAULT_ROI,
) -> List[TextObservation]:
    """
    Keep only observations centered inside the region of interest.

    Args:
        observations: Raw observations from the recognition engine
        roi: Scanning frame rectangle

    Returns:
        Observations inside the frame, input order preserved
    """
    kept = []
    for observation in observations:
        if roi.contains(observation.bounds):
            kept.append(observation)
        else:
            logger.debug(f"Outside scanning frame: {observation}")
    return kept


class LayoutClusterer:
    """
    Groups observations that sit on the same horizontal line.

    Single-pass greedy clustering: observations are visited top to bottom and
    each unclaimed one seeds a line that absorbs every other unclaimed
    observation whose vertical center is within ``line_tolerance``. Ties in
    vertical center fall back to input order, so the output is deterministic.

    Usage:
        clusterer = LayoutClusterer()
        lines = clusterer.cluster(observations)
        print(lines[0].text)  # topmost line
    """

    DEFAULT_LINE_TOLERANCE = 0.06

    def __init__(self, line_tolerance: float = DEFAULT_LINE_TOLERANCE):
        """
        Initialize the clusterer.

        Args:
            line_tolerance: Maximum vertical-center difference (fraction of
                image height) for two observations to share a line
        """
        self.line_tolerance = line_tolerance

    def cluster(self, observations: Sequence[TextObservation]) -> List[LineElement]:
        """
        Cluster observations into lines ordered top to bottom.

        Args:
            observations: Observations in any order

        Returns:
            LineElements in descending vertical-center order
        """
        if not observations:
            return []

        centers = np.array([o.bounds.mid_y for o in observations], dtype=np.float64)
        indices = np.arange(len(observations))

        # Primary key: descending center; secondary: input index
        order = np.lexsort((indices, -centers))
        claimed = np.zeros(len(observations), dtype=bool)

        lines: List[LineElement] = []
        for seed in order:
            if claimed[seed]:
                continue

            same_line = (~claimed) & (np.abs(centers - centers[seed]) < self.line_tolerance)
            members = [observations[i] for i in order if same_line[i]]
            claimed |= same_line

            lines.append(self._merge(members))

        return lines

    def _merge(self, members: List[TextObservation]) -> LineElement:
        """Merge one line's observations into a LineElement."""
        ordered = sorted(members, key=lambda o: o.bounds.min_x)
        text = " ".join(o.text for o in ordered)

        # Tallest member stands in for the line's font size
        tallest = max(ordered, key=lambda o: o.bounds.height)
        confidence = float(np.mean([o.confidence for o in ordered]))

        return LineElement(text=text, bounds=tallest.bounds, confidence=confidence)
