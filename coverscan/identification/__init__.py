"""
Book Identification Module

Resolves cover text to catalog records.
"""

from coverscan.identification.candidate_extractor import (
    Candidate,
    CandidateExtractor,
    is_likely_author_name,
)
from coverscan.identification.isbn import (
    extract_isbn,
    extract_isbn_from_frame_text,
    parse_manual_isbn,
    scan_text_for_isbn,
    is_valid_isbn10,
    is_valid_isbn13,
    is_book_isbn13,
    convert_isbn10_to_isbn13,
    format_isbn,
    normalize_isbn,
)
from coverscan.identification.catalog import (
    BookRecord,
    SearchResult,
    CatalogService,
    OpenLibraryClient,
)
from coverscan.identification.match_ranker import MatchRanker, levenshtein_similarity
from coverscan.identification.pipeline import (
    CoverIdentificationPipeline,
    PipelineOutcome,
    PipelineState,
    CaptureState,
)

__all__ = [
    # Candidates
    "Candidate",
    "CandidateExtractor",
    "is_likely_author_name",
    # ISBN
    "extract_isbn",
    "extract_isbn_from_frame_text",
    "parse_manual_isbn",
    "scan_text_for_isbn",
    "is_valid_isbn10",
    "is_valid_isbn13",
    "is_book_isbn13",
    "convert_isbn10_to_isbn13",
    "format_isbn",
    "normalize_isbn",
    # Catalog
    "BookRecord",
    "SearchResult",
    "CatalogService",
    "OpenLibraryClient",
    # Ranking
    "MatchRanker",
    "levenshtein_similarity",
    # Pipeline
    "CoverIdentificationPipeline",
    "PipelineOutcome",
    "PipelineState",
    "CaptureState",
]
