"""
Keyword Analysis
================

Lexical keyword extraction and ticket similarity scoring.

Deliberately simple and explainable: no stemming, no embeddings.
"""

import math
import re
from typing import List

STOP_WORDS = frozenset([
    "the", "a", "an", "is", "are", "was", "were", "be", "been", "being",
    "have", "has", "had", "do", "does", "did", "will", "would", "could",
    "should", "may", "might", "must", "shall", "can", "need", "dare",
    "used", "to", "of", "in", "for", "on", "with", "at", "by", "from",
    "as", "into", "through", "during", "before", "after", "above",
    "below", "between", "under", "again", "further", "then", "once",
    "here", "there", "when", "where", "why", "how", "all", "each",
    "few", "more", "most", "other", "some", "such", "no", "nor",
    "not", "only", "own", "same", "so", "than", "too", "very", "just",
    "and", "but", "if", "or", "because", "until", "while", "this",
    "that", "these", "those", "i", "you", "he", "she", "it", "we", "they",
    "what", "which", "who", "whom", "whose", "get", "got", "getting",
    "doing",
])

MIN_KEYWORD_LENGTH = 4
_PUNCTUATION = re.compile(r"[^\w\s]")


class KeywordExtractor:
    """Turns free text into a deduplicated keyword list."""

    @staticmethod
    def extract(text: str) -> List[str]:
        """
        Extract keywords in order of first appearance.

        Lower-cases, replaces punctuation with spaces, splits on whitespace
        and drops short words and stop words.
        """
        words = _PUNCTUATION.sub(" ", (text or "").lower()).split()
        keywords = []
        seen = set()
        for word in words:
            if len(word) < MIN_KEYWORD_LENGTH or word in STOP_WORDS or word in seen:
                continue
            seen.add(word)
            keywords.append(word)
        return keywords


class SimilarityScorer:
    """
    Scores how alike two tickets are, 0-100.

    70% of the keyword Jaccard index plus a bonus for matching titles:
    50 for identical titles, 25 when one title contains the other.
    """

    KEYWORD_WEIGHT = 0.7
    EXACT_TITLE_BONUS = 50
    PARTIAL_TITLE_BONUS = 25

    @classmethod
    def score(
        cls,
        title: str,
        description: str,
        other_title: str,
        other_description: str
    ) -> int:
        keywords = set(KeywordExtractor.extract(f"{title} {description}"))
        other_keywords = set(KeywordExtractor.extract(f"{other_title} {other_description}"))

        if not keywords or not other_keywords:
            return 0

        union = keywords | other_keywords
        keyword_similarity = len(keywords & other_keywords) / len(union) * 100

        raw = keyword_similarity * cls.KEYWORD_WEIGHT + cls.title_bonus(title, other_title)
        # Round half up
        return min(100, math.floor(raw + 0.5))

    @classmethod
    def title_bonus(cls, title: str, other_title: str) -> int:
        a = (title or "").lower()
        b = (other_title or "").lower()
        if a == b:
            return cls.EXACT_TITLE_BONUS
        if a in b or b in a:
            return cls.PARTIAL_TITLE_BONUS
        return 0
