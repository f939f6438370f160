"""
Cover Identification Pipeline

Sequences the identification of one captured frame:
1. Region-of-interest filtering and line clustering
2. ISBN resolution; a valid ISBN short-circuits everything else
3. Fallback to title/author candidates, searched one at a time
4. Fuzzy ranking of the first non-empty result set

Only one frame is processed at a time; a capture that arrives while a
previous frame is still in flight is ignored.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence

from loguru import logger

from coverscan.config import Settings
from coverscan.errors import (
    CoverScanError,
    NoMatchFound,
    NoTextDetected,
    NoTitleIdentified,
)
from coverscan.identification.candidate_extractor import Candidate, CandidateExtractor
from coverscan.identification.catalog import CatalogService, OpenLibraryClient, SearchResult
from coverscan.identification.isbn import (
    extract_isbn_from_frame_text,
    parse_manual_isbn,
    scan_text_for_isbn,
)
from coverscan.identification.match_ranker import MatchRanker
from coverscan.ocr.layout import DEFAULT_ROI, LayoutClusterer, RegionOfInterest, filter_region_of_interest
from coverscan.ocr.observations import TextObservation


class PipelineState(str, Enum):
    """Pipeline states, in the order a frame moves through them."""

    IDLE = "idle"
    EXTRACTING_TEXT = "extracting_text"
    RESOLVING_ISBN = "resolving_isbn"
    ISBN_LOOKUP_SUCCEEDED = "isbn_lookup_succeeded"
    FALLING_BACK_TO_CANDIDATES = "falling_back_to_candidates"
    SEARCHING_CATALOG = "searching_catalog"
    RESULTS_FOUND = "results_found"
    NO_RESULTS_FAILURE = "no_results_failure"


@dataclass(frozen=True)
class CaptureState:
    """Single-flight guard value owned by the pipeline."""

    in_flight: bool = False
    state: PipelineState = PipelineState.IDLE


@dataclass
class PipelineOutcome:
    """Everything one pipeline run produced."""

    state: PipelineState
    capture: CaptureState
    results: List[SearchResult] = field(default_factory=list)
    isbn: Optional[str] = None
    candidates: List[Candidate] = field(default_factory=list)
    error: Optional[CoverScanError] = None
    extracted_text: Optional[str] = None
    transitions: List[PipelineState] = field(default_factory=list)
    skipped: bool = False

    @property
    def succeeded(self) -> bool:
        return bool(self.results) and self.error is None

    @property
    def best_match(self) -> Optional[SearchResult]:
        if self.results:
            return self.results[0]
        return None

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error


class _Run:
    """Mutable bookkeeping for one invocation."""

    def __init__(self):
        self.state = PipelineState.IDLE
        self.transitions: List[PipelineState] = [PipelineState.IDLE]
        self.isbn: Optional[str] = None
        self.candidates: List[Candidate] = []
        self.extracted_text: Optional[str] = None

    def enter(self, state: PipelineState) -> None:
        logger.debug(f"Pipeline: {self.state.value} -> {state.value}")
        self.state = state
        self.transitions.append(state)


class CoverIdentificationPipeline:
    """
    Orchestrates cover identification against a catalog.

    Everything except the catalog calls is synchronous and pure; catalog
    calls are awaited strictly one after another so the first success stops
    further network use.

    Usage:
        async with OpenLibraryClient() as catalog:
            pipeline = CoverIdentificationPipeline(catalog)
            outcome = await pipeline.identify(observations)
            if outcome.succeeded:
                print(outcome.best_match.title)
    """

    def __init__(
        self,
        catalog: CatalogService,
        extractor: Optional[CandidateExtractor] = None,
        clusterer: Optional[LayoutClusterer] = None,
        ranker: Optional[MatchRanker] = None,
        roi: RegionOfInterest = DEFAULT_ROI,
        isbn_min_confidence: float = 0.5,
    ):
        """
        Initialize pipeline.

        Args:
            catalog: Catalog collaborator
            extractor: Candidate extractor (default settings if omitted)
            clusterer: Clusterer used to join text for ISBN resolution
            ranker: Match ranker
            roi: Scanning frame rectangle
            isbn_min_confidence: Confidence floor for live ISBN scanning
        """
        self.catalog = catalog
        self.clusterer = clusterer or LayoutClusterer()
        self.extractor = extractor or CandidateExtractor(clusterer=self.clusterer)
        self.ranker = ranker or MatchRanker()
        self.roi = roi
        self.isbn_min_confidence = isbn_min_confidence
        self._capture = CaptureState()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        catalog: Optional[CatalogService] = None,
    ) -> "CoverIdentificationPipeline":
        """Build a pipeline (and an Open Library catalog if none is given)."""
        if catalog is None:
            catalog = OpenLibraryClient(
                base_url=settings.open_library_base_url,
                covers_url=settings.open_library_covers_url,
                timeout=settings.http_timeout,
                search_limit=settings.search_limit,
            )

        clusterer = LayoutClusterer(line_tolerance=settings.line_tolerance)
        extractor = CandidateExtractor(
            clusterer=clusterer,
            noise_filter=settings.noise_filter(),
            max_candidates=settings.max_candidates,
        )
        return cls(
            catalog=catalog,
            extractor=extractor,
            clusterer=clusterer,
            roi=settings.region_of_interest(),
            isbn_min_confidence=settings.isbn_min_confidence,
        )

    @property
    def capture_state(self) -> CaptureState:
        return self._capture

    async def identify(
        self,
        observations: Sequence[TextObservation],
        capture: Optional[CaptureState] = None,
    ) -> PipelineOutcome:
        """
        Identify the book in one captured frame.

        Args:
            observations: Recognized text of the frame
            capture: Capture state the caller last received, if it tracks one

        Returns:
            PipelineOutcome; failures are reported in ``error`` rather than
            raised. ``skipped`` is set when a previous frame is in flight.
        """
        for current in (self._capture, capture):
            if current is not None and current.in_flight:
                logger.info("Capture ignored: previous frame still processing")
                return PipelineOutcome(
                    state=current.state,
                    capture=current,
                    skipped=True,
                )

        self._capture = CaptureState(in_flight=True, state=PipelineState.IDLE)
        run = _Run()
        try:
            results, error = await self._run(observations, run)
        finally:
            self._capture = CaptureState(in_flight=False, state=run.state)

        return PipelineOutcome(
            state=run.state,
            capture=self._capture,
            results=results,
            isbn=run.isbn,
            candidates=run.candidates,
            error=error,
            extracted_text=run.extracted_text,
            transitions=run.transitions,
        )

    async def _run(self, observations: Sequence[TextObservation], run: _Run):
        run.enter(PipelineState.EXTRACTING_TEXT)

        in_frame = [
            o for o in filter_region_of_interest(observations, self.roi)
            if o.text.strip()
        ]
        logger.info(f"{len(in_frame)} of {len(observations)} observations inside scanning frame")

        if not in_frame:
            run.enter(PipelineState.NO_RESULTS_FAILURE)
            return [], NoTextDetected(detail=f"{len(observations)} observations, none in frame")

        # ISBN first: when present it is unambiguous
        run.enter(PipelineState.RESOLVING_ISBN)
        raw_text = " ".join(line.text for line in self.clusterer.cluster(in_frame))
        isbn = extract_isbn_from_frame_text(raw_text)

        if isbn:
            run.isbn = isbn
            run.extracted_text = f"ISBN: {isbn}"
            result = await self._lookup_isbn(isbn)
            if result is not None:
                run.enter(PipelineState.ISBN_LOOKUP_SUCCEEDED)
                return [result], None

        run.enter(PipelineState.FALLING_BACK_TO_CANDIDATES)
        candidates = self.extractor.parse_observations(in_frame)
        run.candidates = candidates

        if not candidates:
            run.enter(PipelineState.NO_RESULTS_FAILURE)
            return [], NoTitleIdentified(detail=f"No title in: '{raw_text}'")

        run.extracted_text = candidates[0].display_text

        run.enter(PipelineState.SEARCHING_CATALOG)
        for candidate in candidates:
            results = await self._search_candidate(candidate)
            if results:
                run.enter(PipelineState.RESULTS_FOUND)
                return results, None

        run.enter(PipelineState.NO_RESULTS_FAILURE)
        tried = ", ".join(f"'{c.display_text}'" for c in candidates)
        return [], NoMatchFound(detail=f"Tried {tried}")

    async def _lookup_isbn(self, isbn: str) -> Optional[SearchResult]:
        """One ISBN lookup; any failure means fall back, never retry."""
        try:
            record = await self.catalog.lookup_by_isbn(isbn)
        except Exception as e:
            logger.warning(f"ISBN lookup failed for {isbn}, falling back to title search: {e}")
            return None

        logger.info(f"Identified '{record.title}' by {record.author} via ISBN {isbn}")
        return SearchResult(
            title=record.title,
            author=record.author,
            isbn=isbn,
            cover_url=record.cover_url,
            publish_year=record.publish_date,
            match_score=1.0,
        )

    async def _search_candidate(self, candidate: Candidate) -> List[SearchResult]:
        """Search one candidate; errors are logged and read as no results."""
        logger.info(f"Searching for '{candidate.display_text}' (confidence {candidate.confidence:.2f})")
        try:
            records = await self.catalog.search_by_title_author(candidate.title, candidate.author)
        except Exception as e:
            logger.warning(f"Search failed for '{candidate.title}': {e}")
            return []

        if not records:
            logger.info(f"No results for '{candidate.title}'")
            return []

        return self.ranker.rank(
            candidate.title,
            candidate.author,
            [SearchResult.from_record(record) for record in records],
        )

    def scan_live_frame(self, observations: Sequence[TextObservation]) -> Optional[str]:
        """ISBN check for live preview frames; makes no catalog calls."""
        return scan_text_for_isbn(
            filter_region_of_interest(observations, self.roi),
            min_confidence=self.isbn_min_confidence,
        )

    async def lookup_manual_isbn(self, text: str) -> SearchResult:
        """
        Resolve a manually typed ISBN.

        Args:
            text: Free-form user entry

        Returns:
            SearchResult with ``match_score`` 1.0

        Raises:
            InvalidISBNFormat: No checksum-valid ISBN in the text
            BookNotFound: Catalog has no record
            CatalogUnavailable: Transport failure
        """
        isbn = parse_manual_isbn(text)
        record = await self.catalog.lookup_by_isbn(isbn)
        return SearchResult(
            title=record.title,
            author=record.author,
            isbn=isbn,
            cover_url=record.cover_url,
            publish_year=record.publish_date,
            match_score=1.0,
        )
