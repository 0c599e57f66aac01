"""
Analytics Domain Layer
======================

Keyword extraction, similarity scoring and the views built from them.
"""

from helpdesk.analytics.domain.entities import SimilarityResult, RecurringPattern
from helpdesk.analytics.domain.keywords import (
    KeywordExtractor,
    SimilarityScorer,
    STOP_WORDS,
)

__all__ = [
    "SimilarityResult",
    "RecurringPattern",
    "KeywordExtractor",
    "SimilarityScorer",
    "STOP_WORDS",
]
