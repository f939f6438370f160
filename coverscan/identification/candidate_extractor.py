"""
Candidate Extractor

Produces ranked (title, author) guesses from the lines of a book cover.

Three independent strategies each contribute at most one candidate:
- Largest non-author text as title, with an author looked up below it
- "by Author" pattern
- Multi-line title assembled from similar-sized lines near the top

Design Decisions:
1. Font height is the main title signal; covers print titles biggest
2. The author-name heuristic is shared between picking authors and keeping
   author lines out of title selection
3. Strategies never raise; a failing strategy simply contributes nothing
"""

import re
import string
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from loguru import logger

from coverscan.ocr.layout import LayoutClusterer
from coverscan.ocr.noise_filter import NoiseFilter
from coverscan.ocr.observations import LineElement, TextObservation


@dataclass(frozen=True)
class Candidate:
    """A provisional title/author guess prior to catalog confirmation."""

    title: str
    author: Optional[str]
    confidence: float
    strategy: str = "unknown"

    @property
    def display_text(self) -> str:
        if self.author:
            return f"{self.title} by {self.author}"
        return self.title


# =============================================================================
# Author-name heuristic
# =============================================================================

EXCLUDED_NAME_WORDS = {"press", "books", "publishing", "edition", "series", "volume"}
COMMON_WORDS = {"the", "and", "of", "in", "on", "at", "to", "for", "with"}

NAME_MIN_WORDS = 2
NAME_MAX_WORDS = 4
NAME_MIN_WORD_LENGTH = 2
NAME_MAX_WORD_LENGTH = 15
NAME_LETTER_RATIO = 0.85


def _bare_word(word: str) -> str:
    return word.strip(string.punctuation).lower()


def is_likely_author_name(text: str) -> bool:
    """
    Check whether text reads like a personal name.

    A name has 2-4 capitalized words of 2-15 characters, is almost entirely
    letters (periods of initials included), contains no imprint words and at
    most one common word, and does not open with a common word.

    Args:
        text: Line text

    Returns:
        True for plausible author names
    """
    words = text.split()
    if not NAME_MIN_WORDS <= len(words) <= NAME_MAX_WORDS:
        return False

    if not all(word[0].isupper() for word in words):
        return False

    bare = [_bare_word(word) for word in words]
    if any(word in EXCLUDED_NAME_WORDS for word in bare):
        return False

    name_chars = sum(1 for c in text if c.isalpha() or c.isspace() or c == ".")
    if name_chars / max(len(text), 1) <= NAME_LETTER_RATIO:
        return False

    common = [word for word in bare if word in COMMON_WORDS]
    if len(common) > 1 or bare[0] in COMMON_WORDS:
        return False

    return all(NAME_MIN_WORD_LENGTH <= len(word) <= NAME_MAX_WORD_LENGTH for word in words)


# =============================================================================
# Shared helpers
# =============================================================================

BY_PREFIX = re.compile(r"^by\s", re.IGNORECASE)

AUTHOR_BAND = (0.25, 0.75)
AUTHOR_MIN_GAP = 0.05
AUTHOR_MIN_HEIGHT = 0.015
AUTHOR_MAX_RELATIVE_HEIGHT = 0.8


def _in_author_band(line: LineElement) -> bool:
    low, high = AUTHOR_BAND
    return low <= line.mid_y <= high


def _strip_by_prefix(text: str) -> str:
    return BY_PREFIX.sub("", text, count=1).strip()


def find_author_near(title: LineElement, lines: Sequence[LineElement]) -> Optional[str]:
    """
    Look below the title for the author line.

    Candidates must sit below the title with a gap, be smaller than it and
    lie inside the central band (quotes crowd the top of a cover, imprints
    the bottom). A "by" line wins over a bare name.
    """
    below = [
        line for line in lines
        if line.mid_y < title.mid_y - AUTHOR_MIN_GAP
        and line.text != title.text
        and line.height >= AUTHOR_MIN_HEIGHT
        and line.height < title.height * AUTHOR_MAX_RELATIVE_HEIGHT
        and _in_author_band(line)
    ]
    below.sort(key=lambda line: line.height, reverse=True)

    for line in below:
        if BY_PREFIX.match(line.text):
            author = _strip_by_prefix(line.text)
            if author:
                logger.debug(f"Found author via 'by' pattern: '{author}'")
                return author

    for line in below:
        if is_likely_author_name(line.text):
            logger.debug(f"Found author via name pattern: '{line.text}'")
            return line.text

    return None


def find_author_anywhere(lines: Sequence[LineElement]) -> Optional[str]:
    """First name-like line, preferring the central band."""
    names = [line for line in lines if is_likely_author_name(line.text)]
    for line in names:
        if _in_author_band(line):
            return line.text
    if names:
        logger.debug(f"Using author outside central band: '{names[0].text}'")
        return names[0].text
    return None


def title_size_confidence(height: float, has_author: bool) -> float:
    """Confidence that a line of this height is the title."""
    confidence = 0.5

    if height > 0.15:
        confidence += 0.3
    elif height > 0.10:
        confidence += 0.2
    elif height > 0.05:
        confidence += 0.1

    if has_author:
        confidence += 0.15

    return confidence


# =============================================================================
# Strategies
# =============================================================================

LARGEST_TEXT_BONUS = 0.1
BY_PATTERN_CONFIDENCE = 0.90
COMBINED_TITLE_CONFIDENCE = 0.85

COMBINED_MIN_MID_Y = 0.6
COMBINED_MIN_HEIGHT = 0.015
COMBINED_RELATIVE_HEIGHT = 0.7
COMBINED_MAX_PARTS = 3
COMBINED_TITLE_DENYLIST = ("river", "freedom", "way to")

Strategy = Callable[[Sequence[LineElement]], Optional[Candidate]]


def largest_non_author_strategy(lines: Sequence[LineElement]) -> Optional[Candidate]:
    """Title is the tallest line that does not look like a name."""
    non_author = [line for line in lines if not is_likely_author_name(line.text)]
    if not non_author:
        return None

    title = max(non_author, key=lambda line: line.height)
    author = find_author_near(title, lines)
    confidence = title_size_confidence(title.height, author is not None) + LARGEST_TEXT_BONUS

    return Candidate(
        title=title.text,
        author=author,
        confidence=min(confidence, 1.0),
        strategy="largest_text",
    )


def by_pattern_strategy(lines: Sequence[LineElement]) -> Optional[Candidate]:
    """Title directly above a "by Author" line, or "Title by Author" in one line."""
    for index, line in enumerate(lines):
        if index > 0 and BY_PREFIX.match(line.text):
            author = _strip_by_prefix(line.text)
            if author:
                return Candidate(
                    title=lines[index - 1].text,
                    author=author,
                    confidence=BY_PATTERN_CONFIDENCE,
                    strategy="by_pattern",
                )

    for line in lines:
        parts = line.text.split(" by ")
        if len(parts) == 2 and parts[0].strip() and parts[1].strip():
            return Candidate(
                title=parts[0].strip(),
                author=parts[1].strip(),
                confidence=BY_PATTERN_CONFIDENCE,
                strategy="by_pattern",
            )

    return None


def combined_title_strategy(
    lines: Sequence[LineElement],
    denylist: Iterable[str] = COMBINED_TITLE_DENYLIST,
) -> Optional[Candidate]:
    """Join similar-sized lines near the top into one title."""
    top = [
        line for line in lines
        if line.mid_y > COMBINED_MIN_MID_Y
        and line.height > COMBINED_MIN_HEIGHT
        and not is_likely_author_name(line.text)
    ]
    if len(top) < 2:
        return None

    largest = max(line.height for line in top)
    similar = [line for line in top if line.height >= largest * COMBINED_RELATIVE_HEIGHT]
    if len(similar) < 2:
        return None

    combined = " ".join(line.text for line in similar[:COMBINED_MAX_PARTS])

    lowered = combined.lower()
    if any(term in lowered for term in denylist):
        logger.debug(f"Rejected combined title '{combined}'")
        return None

    return Candidate(
        title=combined,
        author=find_author_anywhere(lines),
        confidence=COMBINED_TITLE_CONFIDENCE,
        strategy="combined_title",
    )


STRATEGIES: Tuple[Tuple[str, Strategy], ...] = (
    ("largest_text", largest_non_author_strategy),
    ("by_pattern", by_pattern_strategy),
    ("combined_title", combined_title_strategy),
)


# =============================================================================
# Extractor
# =============================================================================

class CandidateExtractor:
    """
    Runs every strategy over a cover's lines and merges the results.

    Candidates are deduplicated by case-insensitive title (first occurrence
    wins), sorted by descending confidence and capped at ``max_candidates``.

    Usage:
        extractor = CandidateExtractor()
        candidates = extractor.parse_observations(observations)
        print(candidates[0].display_text)
    """

    def __init__(
        self,
        clusterer: Optional[LayoutClusterer] = None,
        noise_filter: Optional[NoiseFilter] = None,
        strategies: Sequence[Tuple[str, Strategy]] = STRATEGIES,
        max_candidates: int = 3,
    ):
        self.clusterer = clusterer or LayoutClusterer()
        self.noise_filter = noise_filter or NoiseFilter()
        self.strategies = tuple(strategies)
        self.max_candidates = max_candidates

    def extract(self, lines: Sequence[LineElement]) -> List[Candidate]:
        """
        Extract candidates from filtered, top-to-bottom lines.

        Args:
            lines: Noise-filtered LineElements

        Returns:
            Up to ``max_candidates`` candidates, best first
        """
        candidates: List[Candidate] = []

        for name, strategy in self.strategies:
            try:
                candidate = strategy(lines)
            except Exception as e:
                logger.warning(f"Strategy '{name}' failed: {e}")
                continue

            if candidate is not None:
                logger.debug(
                    f"Strategy '{name}': '{candidate.title}' "
                    f"author: '{candidate.author or 'none'}' "
                    f"confidence: {candidate.confidence:.2f}"
                )
                candidates.append(candidate)

        candidates = self._deduplicate(candidates)
        candidates.sort(key=lambda c: c.confidence, reverse=True)

        logger.info(f"Generated {len(candidates)} candidates")
        return candidates[:self.max_candidates]

    def parse_observations(self, observations: Sequence[TextObservation]) -> List[Candidate]:
        """
        Full cover parse: clean, cluster, filter and extract.

        Args:
            observations: One frame's recognized text

        Returns:
            Ranked candidates (possibly empty)
        """
        cleaned = []
        for observation in observations:
            text = observation.text.strip()
            if not text:
                continue
            cleaned.append(TextObservation(
                text=text,
                confidence=observation.confidence,
                bounds=observation.bounds,
            ))

        if not cleaned:
            logger.info("No valid text elements found")
            return []

        lines = self.noise_filter.filter_lines(self.clusterer.cluster(cleaned))
        for index, line in enumerate(lines):
            logger.debug(f"[{index}] {line}")

        return self.extract(lines)

    @staticmethod
    def _deduplicate(candidates: List[Candidate]) -> List[Candidate]:
        seen = set()
        unique = []
        for candidate in candidates:
            key = candidate.title.lower()
            if key in seen:
                continue
            seen.add(key)
            unique.append(candidate)
        return unique
