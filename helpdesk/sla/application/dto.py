"""
SLA Application DTOs
=====================

Data Transfer Objects for SLA API layer.

These Pydantic models handle serialization for the badge and sweep
endpoints. Following YAGNI - only what's needed.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from helpdesk.config import Priority, SLAKind, SLAState


# ========== Response DTOs ==========

class SLAClockResponse(BaseModel):
    """State of one SLA clock."""
    kind: SLAKind
    due: datetime
    state: SLAState
    remaining_seconds: float = Field(..., description="Negative once past due")

    @classmethod
    def from_domain(cls, reading) -> "SLAClockResponse":
        return cls(
            kind=reading.kind,
            due=reading.due,
            state=reading.state,
            remaining_seconds=reading.remaining_seconds,
        )


class SLABadgeResponse(BaseModel):
    """Badge shown next to a ticket."""
    ticket_id: str
    priority: Priority
    state: SLAState
    evaluated_at: datetime
    first_response: Optional[SLAClockResponse] = None
    resolution: Optional[SLAClockResponse] = None

    @classmethod
    def from_domain(cls, badge) -> "SLABadgeResponse":
        return cls(
            ticket_id=badge.ticket_id,
            priority=badge.priority,
            state=badge.overall_state,
            evaluated_at=badge.evaluated_at,
            first_response=(
                SLAClockResponse.from_domain(badge.first_response)
                if badge.first_response else None
            ),
            resolution=(
                SLAClockResponse.from_domain(badge.resolution)
                if badge.resolution else None
            ),
        )


class SLAKindCounts(BaseModel):
    """Per-clock tally."""
    first_response: int = 0
    resolution: int = 0


class SweepResponse(BaseModel):
    """Outcome of one SLA sweep."""
    success: bool = True
    timestamp: datetime
    tickets_processed: int
    breaches: SLAKindCounts
    warnings: SLAKindCounts
    notifications_attempted: int
    notifications_sent: int

    @classmethod
    def from_domain(cls, result) -> "SweepResponse":
        return cls(
            timestamp=result.started_at,
            tickets_processed=result.tickets_processed,
            breaches=SLAKindCounts(
                first_response=result.first_response_breaches,
                resolution=result.resolution_breaches,
            ),
            warnings=SLAKindCounts(
                first_response=result.first_response_warnings,
                resolution=result.resolution_warnings,
            ),
            notifications_attempted=result.notifications_attempted,
            notifications_sent=result.notifications_sent,
        )
