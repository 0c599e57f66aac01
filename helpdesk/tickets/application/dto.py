"""
Tickets Application DTOs
========================

Data Transfer Objects for the ticket API layer.

These Pydantic models handle serialization/deserialization and validation
for API requests and responses.
"""

from datetime import datetime
from typing import Optional, Literal, Any

from pydantic import BaseModel, Field, field_validator

from helpdesk.config import Impact, Urgency, Priority, TicketStatus


# ========== Type Aliases for Literals ==========
TicketStatusStr = Literal["New", "Assigned", "InProgress", "Pending", "Resolved", "Closed"]


# ========== Request DTOs ==========

class CreateTicketRequest(BaseModel):
    """Request model for filing a ticket."""
    title: str = Field(..., min_length=3, max_length=200, description="Short summary")
    description: str = Field(..., min_length=1, description="What happened")
    impact: Impact = Field(..., description="Low, Medium or High")
    urgency: Urgency = Field(..., description="Low, Medium or High")
    category_id: Optional[str] = Field(None, description="Category reference")
    requester_email: Optional[str] = Field(None, description="Where to send updates")

    @field_validator("title", "description")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class StatusChangeRequest(BaseModel):
    """Request model for a status transition."""
    status: TicketStatusStr
    note: Optional[str] = Field(None, max_length=2000)


class ResolveRequest(BaseModel):
    """Request model for resolving a ticket."""
    resolution: str = Field(..., min_length=1, description="How the issue was fixed")


# ========== Response DTOs ==========

class TicketResponse(BaseModel):
    """Response model for a ticket."""
    id: str
    ticket_number: str
    title: str
    description: str
    impact: Impact
    urgency: Urgency
    priority: Priority
    status: TicketStatus
    category_id: Optional[str] = None
    assigned_agent_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    sla_first_response_due: Optional[datetime] = None
    sla_resolution_due: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    resolution: Optional[str] = None

    @classmethod
    def from_domain(cls, ticket: Any) -> "TicketResponse":
        """Create from domain entity."""
        return cls(
            id=ticket.id,
            ticket_number=ticket.ticket_number,
            title=ticket.title,
            description=ticket.description,
            impact=ticket.impact,
            urgency=ticket.urgency,
            priority=ticket.priority,
            status=ticket.status,
            category_id=ticket.category_id,
            assigned_agent_id=ticket.assigned_agent_id,
            created_at=ticket.created_at,
            updated_at=ticket.updated_at,
            sla_first_response_due=ticket.sla_first_response_due,
            sla_resolution_due=ticket.sla_resolution_due,
            resolved_at=ticket.resolved_at,
            closed_at=ticket.closed_at,
            resolution=ticket.resolution,
        )


class AutoCloseResponse(BaseModel):
    """Response model for the auto-close job."""
    success: bool = True
    tickets_closed: int
    timestamp: datetime
