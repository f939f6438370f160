"""
CoverScan

Identifies a book from the recognized text of a photographed cover:
- Layout clustering and noise filtering of OCR output
- Title/author candidate extraction
- ISBN resolution with OCR error correction
- Catalog search and fuzzy match ranking
"""

__version__ = "0.1.0"
