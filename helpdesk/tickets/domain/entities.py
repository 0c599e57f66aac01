"""
Ticket Domain Entities
======================

Pure Python domain entities for the helpdesk.

Ticket is the aggregate root. Its priority is derived from impact and
urgency and is never stored independently of them.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from helpdesk.config import (
    Impact, Urgency, Priority, TicketStatus, UserRole,
    OPEN_STATUSES, has_role
)
from helpdesk.sla.domain import PriorityMatrix, TicketRef


@dataclass
class Ticket:
    """
    A reported issue.

    SLA due dates are set at creation and only change when the ticket
    is reopened, which starts a new SLA cycle at `sla_started_at`.
    """

    id: str
    ticket_number: str
    title: str
    description: str
    impact: Impact
    urgency: Urgency
    status: TicketStatus
    created_at: datetime
    updated_at: datetime

    category_id: Optional[str] = None
    assigned_agent_id: Optional[str] = None
    requester_id: Optional[str] = None
    requester_email: Optional[str] = None

    # SLA tracking
    sla_first_response_due: Optional[datetime] = None
    sla_resolution_due: Optional[datetime] = None
    sla_started_at: Optional[datetime] = None

    resolved_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    resolution: Optional[str] = None
    last_activity_at: Optional[datetime] = None

    def __post_init__(self):
        """Validate ticket on initialization."""
        self.impact = Impact(self.impact)
        self.urgency = Urgency(self.urgency)
        self.status = TicketStatus(self.status)

        if self.updated_at < self.created_at:
            raise ValueError("updated_at cannot be before created_at")

        if self.resolved_at and self.resolved_at < self.created_at:
            raise ValueError("resolved_at cannot be before created_at")

    @property
    def priority(self) -> Priority:
        return PriorityMatrix.priority(self.impact, self.urgency)

    @property
    def is_open(self) -> bool:
        """Check if ticket is still open."""
        return self.status in OPEN_STATUSES

    @property
    def sla_window_start(self) -> datetime:
        """Start of the current SLA cycle."""
        return self.sla_started_at or self.created_at

    @property
    def ref(self) -> TicketRef:
        return TicketRef(
            ticket_id=self.id,
            ticket_number=self.ticket_number,
            title=self.title,
            priority=self.priority,
        )

    @property
    def full_text(self) -> str:
        """Combined title and description for keyword analysis."""
        return f"{self.title} {self.description}"


@dataclass
class User:
    """
    Anyone who can sign in: employees, agents, team leads, admins.

    Only active users holding exactly the Agent role receive assignments.
    """
    id: str
    name: str
    email: Optional[str]
    role: UserRole
    is_active: bool = True

    def __post_init__(self):
        self.role = UserRole(self.role)

    @property
    def is_assignable(self) -> bool:
        return self.is_active and self.role == UserRole.AGENT

    def has_role(self, minimum: UserRole) -> bool:
        return has_role(self.role, minimum)


@dataclass
class Category:
    """Ticket category with an optional preferred owner."""
    id: str
    name: str
    default_agent_id: Optional[str] = None


@dataclass
class StatusChange:
    """Audit record of one status transition."""
    ticket_id: str
    from_status: TicketStatus
    to_status: TicketStatus
    changed_at: datetime
    changed_by: Optional[str] = None
    note: Optional[str] = None


@dataclass
class NewTicket:
    """Attributes of a ticket about to be persisted."""
    ticket_number: str
    title: str
    description: str
    impact: Impact
    urgency: Urgency
    priority: Priority
    status: TicketStatus
    created_at: datetime
    sla_first_response_due: datetime
    sla_resolution_due: datetime
    category_id: Optional[str] = None
    requester_id: Optional[str] = None
    requester_email: Optional[str] = None
