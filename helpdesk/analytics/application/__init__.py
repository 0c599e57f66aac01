"""
Analytics Application Layer
===========================

Contains:
- Services: SimilarityService, RecurrenceService
- DTOs: Data transfer objects for API serialization
"""

from helpdesk.analytics.application.dto import (
    SimilarTicketResponse,
    SuggestionResponse,
    PatternTicketResponse,
    RecurringPatternResponse,
    RecurringIssuesResponse,
)
from helpdesk.analytics.application.services import (
    SimilarityService,
    RecurrenceService,
    MIN_SIMILARITY,
)

__all__ = [
    # DTOs
    "SimilarTicketResponse",
    "SuggestionResponse",
    "PatternTicketResponse",
    "RecurringPatternResponse",
    "RecurringIssuesResponse",
    # Services
    "SimilarityService",
    "RecurrenceService",
    "MIN_SIMILARITY",
]
