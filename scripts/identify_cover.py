"""
Run cover identification on a saved frame.

Reads a JSON file of text observations and prints what the pipeline finds:

    [
        {"text": "THE HOBBIT", "confidence": 0.95,
         "bounds": {"x": 0.2, "y": 0.65, "width": 0.6, "height": 0.12}},
        ...
    ]

Usage:
    python scripts/identify_cover.py frame.json
    python scripts/identify_cover.py --isbn "ISBN 978-0-13-468599-1"
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

from dotenv import load_dotenv

# Load env vars
load_dotenv()

from coverscan.config import get_settings
from coverscan.errors import CoverScanError
from coverscan.identification.catalog import OpenLibraryClient
from coverscan.identification.pipeline import CoverIdentificationPipeline
from coverscan.ocr.observations import BoundingBox, TextObservation


def load_observations(path: Path) -> list[TextObservation]:
    with open(path) as f:
        data = json.load(f)

    return [
        TextObservation(
            text=item["text"],
            confidence=float(item.get("confidence", 1.0)),
            bounds=BoundingBox(**item["bounds"]),
        )
        for item in data
    ]


async def main(args: argparse.Namespace) -> int:
    settings = get_settings()

    async with OpenLibraryClient(
        base_url=settings.open_library_base_url,
        covers_url=settings.open_library_covers_url,
        timeout=settings.http_timeout,
        search_limit=settings.search_limit,
    ) as catalog:
        pipeline = CoverIdentificationPipeline.from_settings(settings, catalog=catalog)

        if args.isbn:
            try:
                result = await pipeline.lookup_manual_isbn(args.isbn)
            except CoverScanError as e:
                print(f"❌ {e.message}")
                return 1
            print(f"✅ Found: {result.title} by {result.author} ({result.isbn})")
            return 0

        observations = load_observations(Path(args.frame))
        print(f"Loaded {len(observations)} observations")

        outcome = await pipeline.identify(observations)
        print(" -> ".join(state.value for state in outcome.transitions))

        if outcome.extracted_text:
            print(f"Extracted: {outcome.extracted_text}")

        if outcome.error:
            print(f"❌ {outcome.error.code}: {outcome.error.message}")
            return 1

        for result in outcome.results[:5]:
            print(f"✅ {result.title} by {result.author} (score {result.match_score:.2f})")
        return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Identify a book from saved cover text")
    parser.add_argument("frame", nargs="?", help="JSON file of text observations")
    parser.add_argument("--isbn", help="Resolve a manually entered ISBN instead")
    args = parser.parse_args()

    if not args.frame and not args.isbn:
        parser.error("either a frame file or --isbn is required")

    sys.exit(asyncio.run(main(args)))
