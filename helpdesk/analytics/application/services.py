"""
Analytics Application Services
==============================

Deflection (similar resolved tickets, suggested solutions) and
recurring-issue detection over the ticket corpus.
"""

from datetime import timedelta
from typing import List, Optional

from helpdesk.config import TicketStatus
from helpdesk.core import Clock
from helpdesk.tickets.application import ITicketRepository, TicketFilter
from helpdesk.analytics.domain import (
    KeywordExtractor, SimilarityScorer, SimilarityResult, RecurringPattern
)
from helpdesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

MIN_SIMILARITY = 20
CANDIDATE_POOL_FACTOR = 3
MAX_RECURRING_PATTERNS = 10
MAX_PATTERN_EXAMPLES = 5


class SimilarityService:
    """Finds resolved tickets that look like a new report."""

    def __init__(self, ticket_repository: ITicketRepository):
        self._ticket_repo = ticket_repository

    async def find_similar_tickets(
        self,
        title: str,
        description: str,
        category_id: Optional[str] = None,
        limit: int = 3
    ) -> List[SimilarityResult]:
        """
        Rank recently resolved tickets by similarity to a query.

        Args:
            title: Query title
            description: Query description
            category_id: Restrict candidates to one category
            limit: Maximum number of results

        Returns:
            Results scoring above 20, best first
        """
        keywords = KeywordExtractor.extract(f"{title} {description}")
        if not keywords or limit <= 0:
            return []

        candidates = await self._ticket_repo.list(TicketFilter(
            statuses=[TicketStatus.RESOLVED],
            category_id=category_id,
            keywords=keywords,
            order_by="resolved_at",
            limit=limit * CANDIDATE_POOL_FACTOR,
        ))

        scored = [
            SimilarityResult(
                ticket=candidate,
                similarity=SimilarityScorer.score(
                    title, description, candidate.title, candidate.description
                ),
            )
            for candidate in candidates
        ]
        scored = [r for r in scored if r.similarity > MIN_SIMILARITY]
        scored.sort(key=lambda r: r.similarity, reverse=True)

        logger.debug(
            "Similar tickets computed",
            extra={
                "keywords": len(keywords),
                "candidates": len(candidates),
                "matches": len(scored),
            }
        )
        return scored[:limit]

    async def get_suggested_solution(
        self,
        title: str,
        description: str,
        category_id: Optional[str] = None
    ) -> Optional[SimilarityResult]:
        """Best match that carries a non-empty resolution, if any."""
        similar = await self.find_similar_tickets(title, description, category_id, limit=1)
        if not similar:
            return None

        best = similar[0]
        if not best.ticket.resolution or not best.ticket.resolution.strip():
            return None
        return best


class RecurrenceService:
    """
    Detects keywords that keep coming back across recent tickets.

    A lexical co-occurrence count, not semantic clustering.
    """

    def __init__(self, ticket_repository: ITicketRepository, clock: Clock):
        self._ticket_repo = ticket_repository
        self._clock = clock

    async def find_recurring_issues(
        self,
        days_back: int = 30,
        min_occurrences: int = 3
    ) -> List[RecurringPattern]:
        """
        Keywords found in at least `min_occurrences` tickets of the window.

        Each ticket counts once per distinct keyword. Returns the ten most
        frequent patterns, each with up to five example tickets.
        """
        cutoff = self._clock.now() - timedelta(days=days_back)
        tickets = await self._ticket_repo.list(TicketFilter(created_from=cutoff))

        patterns = {}
        for ticket in tickets:
            for keyword in KeywordExtractor.extract(ticket.full_text):
                pattern = patterns.setdefault(keyword, RecurringPattern(keyword=keyword))
                pattern.count += 1
                pattern.tickets.append(ticket)

        recurring = [p for p in patterns.values() if p.count >= min_occurrences]
        recurring.sort(key=lambda p: p.count, reverse=True)

        result = [
            RecurringPattern(
                keyword=p.keyword,
                count=p.count,
                tickets=p.tickets[:MAX_PATTERN_EXAMPLES],
            )
            for p in recurring[:MAX_RECURRING_PATTERNS]
        ]

        logger.info(
            "Recurring issues computed",
            extra={
                "days_back": days_back,
                "tickets_scanned": len(tickets),
                "patterns": len(result),
            }
        )
        return result
