"""
Catalog Service

Boundary to the book catalog the pipeline queries:
- BookRecord / SearchResult data types
- CatalogService protocol (ISBN lookup, title/author search)
- Open Library implementation over httpx
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Protocol, Sequence

import httpx
from loguru import logger

from coverscan.errors import BookNotFound, CatalogUnavailable


@dataclass(frozen=True)
class BookRecord:
    """Book record as returned by the catalog."""

    title: str
    author: str
    isbn: Optional[str] = None
    cover_url: Optional[str] = None
    publish_date: Optional[str] = None
    page_count: Optional[int] = None
    genre: Optional[str] = None
    summary: Optional[str] = None
    source: str = "unknown"


@dataclass(frozen=True)
class SearchResult:
    """Catalog hit scored against the query."""

    title: str
    author: str
    isbn: Optional[str] = None
    cover_url: Optional[str] = None
    publish_year: Optional[str] = None
    match_score: float = 0.0

    @classmethod
    def from_record(cls, record: BookRecord, match_score: float = 0.0) -> "SearchResult":
        return cls(
            title=record.title,
            author=record.author,
            isbn=record.isbn,
            cover_url=record.cover_url,
            publish_year=record.publish_date,
            match_score=match_score,
        )


class CatalogService(Protocol):
    """What the pipeline needs from a catalog."""

    async def lookup_by_isbn(self, isbn: str) -> BookRecord:
        """Raise BookNotFound on a miss, CatalogUnavailable on transport failure."""
        ...

    async def search_by_title_author(
        self,
        title: str,
        author: Optional[str] = None,
    ) -> List[BookRecord]:
        """Raise CatalogUnavailable on transport failure."""
        ...


# =============================================================================
# Genre extraction
# =============================================================================

PRIMARY_GENRES = (
    "science fiction", "historical fiction", "literary fiction", "young adult fiction",
    "dystopian fiction", "apocalyptic fiction", "coming of age fiction", "domestic fiction",
    "contemporary fiction", "action and adventure fiction", "legal fiction",
    "fantasy", "mystery", "thriller", "romance", "horror", "western", "crime",
    "detective", "biography", "autobiography", "memoir", "poetry", "drama",
)

SECONDARY_GENRES = (
    "fiction", "classics", "children", "young adult", "history", "philosophy",
    "psychology", "self-help", "health", "cooking", "travel", "religion",
    "spirituality", "business", "politics", "science", "nature", "technology",
    "art", "music", "comedy", "adventure", "paranormal", "urban fantasy",
)

# Geographic, temporal and overly broad subject fragments
BROAD_SUBJECT_MARKERS = (
    "american", "british", "english", "century", "literature", "authors", "--", "(",
)


def extract_genre(subjects: Sequence[str]) -> Optional[str]:
    """
    Pick the most genre-like subject heading.

    Preference order: exact primary genre, subject containing a primary
    genre, secondary genre (exact or as the last word), first subject that
    is not geographic/temporal/broad, first subject.

    Args:
        subjects: Catalog subject names

    Returns:
        Chosen subject (original casing) or None
    """
    if not subjects:
        return None

    for subject in subjects:
        if subject.lower() in PRIMARY_GENRES:
            return subject

    for subject in subjects:
        lowered = subject.lower()
        if any(genre in lowered for genre in PRIMARY_GENRES):
            return subject

    for subject in subjects:
        lowered = subject.lower()
        for genre in SECONDARY_GENRES:
            if lowered == genre or lowered.endswith(f" {genre}"):
                return subject

    specific = [
        subject for subject in subjects
        if len(subject) > 3
        and not any(marker in subject.lower() for marker in BROAD_SUBJECT_MARKERS)
    ]
    return specific[0] if specific else subjects[0]


# =============================================================================
# Open Library
# =============================================================================

class OpenLibraryClient:
    """
    Client for the Open Library API.

    One ``httpx.AsyncClient`` is created lazily and reused for every call;
    close it with ``aclose()`` or use the client as an async context manager.

    Usage:
        async with OpenLibraryClient() as catalog:
            record = await catalog.lookup_by_isbn("9780134685991")
    """

    BASE_URL = "https://openlibrary.org"
    COVERS_URL = "https://covers.openlibrary.org"

    def __init__(
        self,
        base_url: str = BASE_URL,
        covers_url: str = COVERS_URL,
        timeout: float = 10.0,
        search_limit: int = 10,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize client.

        Args:
            base_url: Open Library root URL
            covers_url: Cover image root URL
            timeout: Request timeout in seconds
            search_limit: Maximum documents per title/author search
            client: Preconfigured httpx client (tests inject a mock transport)
        """
        self.base_url = base_url.rstrip("/")
        self.covers_url = covers_url.rstrip("/")
        self.timeout = timeout
        self.search_limit = search_limit
        self._client = client

    async def __aenter__(self) -> "OpenLibraryClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def _get_json(self, url: str, params: Optional[dict] = None) -> Any:
        """GET ``url`` and decode JSON, mapping every failure to CatalogUnavailable."""
        client = self._get_client()

        try:
            response = await client.get(url, params=params)
        except httpx.HTTPError as e:
            logger.warning(f"Open Library request failed: {e}")
            raise CatalogUnavailable("book database", detail=str(e)) from e

        if response.status_code != 200:
            logger.warning(f"Open Library returned HTTP {response.status_code} for {url}")
            raise CatalogUnavailable(
                "book database",
                detail=f"HTTP {response.status_code}",
            )

        try:
            return response.json()
        except ValueError as e:
            raise CatalogUnavailable("book database", detail="Malformed JSON response") from e

    async def lookup_by_isbn(self, isbn: str) -> BookRecord:
        """
        Fetch one book by ISBN.

        Args:
            isbn: Validated ISBN-10 or ISBN-13

        Returns:
            BookRecord

        Raises:
            BookNotFound: Open Library has no record for the ISBN
            CatalogUnavailable: Transport or HTTP failure
        """
        clean = isbn.replace("-", "")
        key = f"ISBN:{clean}"

        logger.info(f"Looking up ISBN {clean}")
        data = await self._get_json(
            f"{self.base_url}/api/books",
            params={"bibkeys": key, "format": "json", "jscmd": "data"},
        )

        book = data.get(key) if isinstance(data, dict) else None
        if not isinstance(book, dict):
            raise BookNotFound(clean)

        return self._parse_book_data(book, clean)

    async def search_by_title_author(
        self,
        title: str,
        author: Optional[str] = None,
    ) -> List[BookRecord]:
        """
        Search by title and optionally author.

        Args:
            title: Book title
            author: Author name (optional)

        Returns:
            BookRecords in catalog order (possibly empty)

        Raises:
            CatalogUnavailable: Transport, HTTP or response-shape failure
        """
        params = {"title": title, "limit": self.search_limit}
        if author:
            params["author"] = author

        logger.info(f"Searching Open Library: title='{title}' author='{author or ''}'")
        data = await self._get_json(f"{self.base_url}/search.json", params=params)

        docs = data.get("docs") if isinstance(data, dict) else None
        if not isinstance(docs, list):
            raise CatalogUnavailable("book database", detail="Search response without docs")

        records = []
        for doc in docs:
            record = self._parse_search_doc(doc)
            if record:
                records.append(record)

        logger.info(f"Open Library returned {len(records)} results")
        return records

    def _parse_book_data(self, book: dict, isbn: str) -> BookRecord:
        """Parse a ``jscmd=data`` record."""
        authors = [a.get("name") for a in book.get("authors", []) if isinstance(a, dict) and a.get("name")]
        subjects = [s.get("name") for s in book.get("subjects", []) if isinstance(s, dict) and s.get("name")]

        cover = book.get("cover") or {}
        excerpts = book.get("excerpts") or []
        summary = excerpts[0].get("text") if excerpts and isinstance(excerpts[0], dict) else None

        return BookRecord(
            title=book.get("title", "Unknown Title"),
            author=authors[0] if authors else "Unknown Author",
            isbn=isbn,
            cover_url=cover.get("medium") if isinstance(cover, dict) else None,
            publish_date=book.get("publish_date"),
            page_count=book.get("number_of_pages"),
            genre=extract_genre(subjects),
            summary=summary,
            source="openlibrary",
        )

    def _parse_search_doc(self, doc: Any) -> Optional[BookRecord]:
        """Parse one ``search.json`` document; None when it has no title."""
        if not isinstance(doc, dict) or not doc.get("title"):
            return None

        author_names = doc.get("author_name") or []
        isbns = doc.get("isbn") or []

        # Prefer ISBN-13
        isbn = next((i for i in isbns if len(i) == 13), isbns[0] if isbns else None)

        cover_url = None
        cover_id = doc.get("cover_i")
        if cover_id:
            cover_url = f"{self.covers_url}/b/id/{cover_id}-M.jpg"

        first_year = doc.get("first_publish_year")

        return BookRecord(
            title=doc["title"],
            author=author_names[0] if author_names else "Unknown Author",
            isbn=isbn,
            cover_url=cover_url,
            publish_date=str(first_year) if first_year is not None else None,
            page_count=doc.get("number_of_pages_median"),
            source="openlibrary",
        )
