"""
Match Ranker

Scores catalog hits against the title/author that was searched for and
reorders them best first. Similarity is normalized Levenshtein distance over
code points, case-insensitive.
"""

from dataclasses import replace
from typing import List, Optional, Sequence

import Levenshtein
from loguru import logger

from coverscan.identification.catalog import SearchResult


TITLE_WEIGHT = 0.6
AUTHOR_WEIGHT = 0.4
NO_AUTHOR_SCORE = 0.2


def levenshtein_similarity(a: str, b: str) -> float:
    """
    Normalized edit similarity in [0, 1].

    ``1 - distance / max(len(a), len(b))`` on lowercased input; two empty
    strings are identical.
    """
    a, b = a.lower(), b.lower()
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0

    distance = Levenshtein.distance(a, b)
    return max(0.0, 1.0 - distance / longest)


def score_match(
    query_title: str,
    query_author: Optional[str],
    result_title: str,
    result_author: str,
) -> float:
    """
    Weighted title/author similarity.

    Without a query author the author component is a flat 0.2, half its
    weight, so author-less queries are neither rewarded nor sunk.
    """
    score = TITLE_WEIGHT * levenshtein_similarity(query_title, result_title)

    if query_author:
        score += AUTHOR_WEIGHT * levenshtein_similarity(query_author, result_author)
    else:
        score += NO_AUTHOR_SCORE

    return score


class MatchRanker:
    """
    Ranks catalog results for one title/author query.

    Usage:
        ranker = MatchRanker()
        ranked = ranker.rank("Dune", "Frank Herbert", results)
        print(ranked[0].title, ranked[0].match_score)
    """

    def rank(
        self,
        title: str,
        author: Optional[str],
        results: Sequence[SearchResult],
    ) -> List[SearchResult]:
        """
        Score and sort results.

        Args:
            title: Queried title
            author: Queried author, if any
            results: Catalog hits in catalog order

        Returns:
            New SearchResults with ``match_score`` set, highest first; ties
            keep catalog order
        """
        scored = [
            replace(result, match_score=score_match(title, author, result.title, result.author))
            for result in results
        ]
        scored.sort(key=lambda r: r.match_score, reverse=True)

        for index, result in enumerate(scored[:3]):
            logger.debug(f"  {index + 1}. '{result.title}' by {result.author} ({result.match_score:.2f})")

        return scored
