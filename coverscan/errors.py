"""
Error taxonomy for CoverScan

Every failure the identification pipeline can report:
- Text recognition produced nothing usable
- No title could be extracted from the cover
- Catalog transport failures and misses
- Manual ISBN entry that does not validate
"""

from typing import Optional


class CoverScanError(Exception):
    """Base exception for CoverScan errors."""

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        detail: Optional[str] = None,
    ):
        self.message = message
        self.code = code
        self.detail = detail
        super().__init__(message)

    def to_dict(self) -> dict:
        return {
            "error": self.message,
            "code": self.code,
            "detail": self.detail,
        }


class NoTextDetected(CoverScanError):
    """Recognition returned nothing inside the scanning frame."""

    def __init__(self, detail: Optional[str] = None):
        super().__init__(
            message="No text found on cover. Position the cover inside the frame and try again.",
            code="NO_TEXT_DETECTED",
            detail=detail,
        )


class NoTitleIdentified(CoverScanError):
    """Candidate extraction produced zero candidates."""

    def __init__(self, detail: Optional[str] = None):
        super().__init__(
            message="Could not identify book title. Try a clearer view of the title area.",
            code="NO_TITLE_IDENTIFIED",
            detail=detail,
        )


class CatalogUnavailable(CoverScanError):
    """Transport or HTTP failure talking to the catalog."""

    def __init__(self, service: str = "catalog", detail: Optional[str] = None):
        super().__init__(
            message=f"Unable to connect to the {service}. Check your connection and try again.",
            code="CATALOG_UNAVAILABLE",
            detail=detail,
        )


class BookNotFound(CoverScanError):
    """The catalog has no record for an ISBN."""

    def __init__(self, isbn: str):
        self.isbn = isbn
        super().__init__(
            message="Book not found in the database. Try manual entry or check the ISBN.",
            code="BOOK_NOT_FOUND",
            detail=f"No record for ISBN '{isbn}'",
        )


class NoMatchFound(CoverScanError):
    """Every catalog query finished without a usable result."""

    def __init__(self, detail: Optional[str] = None):
        super().__init__(
            message="No books found matching any extracted titles. Try again or enter the ISBN manually.",
            code="NO_MATCH_FOUND",
            detail=detail,
        )


class InvalidISBNFormat(CoverScanError):
    """Manual entry did not contain a checksum-valid ISBN."""

    def __init__(self, text: str):
        self.text = text
        super().__init__(
            message="Invalid ISBN format. Please check and try again.",
            code="INVALID_ISBN_FORMAT",
            detail=f"No valid ISBN-10 or ISBN-13 in '{text}'",
        )
