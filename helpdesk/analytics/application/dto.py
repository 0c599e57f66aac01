"""
Analytics Application DTOs
==========================

Response models for suggestion and recurring-issue endpoints.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from helpdesk.config import Priority, TicketStatus


class SimilarTicketResponse(BaseModel):
    """A resolved ticket resembling the query."""
    id: str
    ticket_number: str
    title: str
    description: str
    resolution: Optional[str] = None
    category_id: Optional[str] = None
    priority: Priority
    status: TicketStatus
    resolved_at: Optional[datetime] = None
    similarity: int = Field(..., ge=0, le=100)

    @classmethod
    def from_result(cls, result) -> "SimilarTicketResponse":
        ticket = result.ticket
        return cls(
            id=ticket.id,
            ticket_number=ticket.ticket_number,
            title=ticket.title,
            description=ticket.description,
            resolution=ticket.resolution,
            category_id=ticket.category_id,
            priority=ticket.priority,
            status=ticket.status,
            resolved_at=ticket.resolved_at,
            similarity=result.similarity,
        )


class SuggestionResponse(BaseModel):
    """Similar tickets plus the best suggested solution."""
    similar_tickets: List[SimilarTicketResponse]
    suggested_solution: Optional[SimilarTicketResponse] = None


class PatternTicketResponse(BaseModel):
    """Example ticket of a recurring pattern."""
    id: str
    ticket_number: str
    title: str
    status: TicketStatus
    created_at: datetime


class RecurringPatternResponse(BaseModel):
    """A recurring keyword and where it was seen."""
    pattern: str
    count: int
    tickets: List[PatternTicketResponse]

    @classmethod
    def from_domain(cls, pattern) -> "RecurringPatternResponse":
        return cls(
            pattern=pattern.keyword,
            count=pattern.count,
            tickets=[
                PatternTicketResponse(
                    id=t.id,
                    ticket_number=t.ticket_number,
                    title=t.title,
                    status=t.status,
                    created_at=t.created_at,
                )
                for t in pattern.tickets
            ],
        )


class RecurringIssuesResponse(BaseModel):
    """Recurring issues within the lookback window."""
    days_back: int
    min_occurrences: int
    patterns: List[RecurringPatternResponse]
