"""
Assignment Domain Entities
==========================

Results and computed views of the assignment engine.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional

from helpdesk.tickets.domain import User


class AssignmentFailure(str, Enum):
    """Machine-readable reasons an assignment was refused."""
    TICKET_NOT_FOUND = "ticket_not_found"
    NO_AGENT_AVAILABLE = "no_agent_available"
    AGENT_NOT_FOUND = "agent_not_found"
    AGENT_INACTIVE = "agent_inactive"
    AGENT_NOT_ASSIGNABLE = "agent_not_assignable"
    TICKET_NOT_ASSIGNED_TO_AGENT = "ticket_not_assigned_to_agent"
    INVALID_STATUS_TRANSITION = "invalid_status_transition"
    CONCURRENT_MODIFICATION = "concurrent_modification"


FAILURE_MESSAGES = {
    AssignmentFailure.TICKET_NOT_FOUND: "Ticket not found",
    AssignmentFailure.NO_AGENT_AVAILABLE: "No agent available for assignment",
    AssignmentFailure.AGENT_NOT_FOUND: "Agent not found",
    AssignmentFailure.AGENT_INACTIVE: "Agent is inactive",
    AssignmentFailure.AGENT_NOT_ASSIGNABLE: "User does not hold the Agent role",
    AssignmentFailure.TICKET_NOT_ASSIGNED_TO_AGENT: "Ticket not assigned to specified agent",
    AssignmentFailure.INVALID_STATUS_TRANSITION: "Ticket status does not allow assignment",
    AssignmentFailure.CONCURRENT_MODIFICATION: "Ticket was changed by someone else",
}


@dataclass(frozen=True)
class AssignmentResult:
    """Outcome of assign/reassign; callers branch on `success`."""
    success: bool
    agent_id: Optional[str] = None
    reason: Optional[AssignmentFailure] = None

    @classmethod
    def ok(cls, agent_id: str) -> "AssignmentResult":
        return cls(success=True, agent_id=agent_id)

    @classmethod
    def fail(cls, reason: AssignmentFailure) -> "AssignmentResult":
        return cls(success=False, reason=reason)

    @property
    def message(self) -> Optional[str]:
        return FAILURE_MESSAGES.get(self.reason) if self.reason else None


@dataclass
class BulkAssignmentResult:
    """Per-ticket outcome of a bulk assignment."""
    succeeded: int = 0
    failed: Dict[str, AssignmentFailure] = field(default_factory=dict)


@dataclass(frozen=True)
class WorkloadSnapshot:
    """
    Per-agent ticket counts, recomputed on every request.

    `sla_compliance` is the share (0-100, one decimal) of resolved tickets
    with a measurable SLA that were resolved on or before their deadline;
    100.0 when there is nothing to measure.
    """
    agent_id: str
    open: int
    resolved: int
    resolved_today: int
    closed: int
    total: int
    sla_compliance: float


@dataclass(frozen=True)
class AgentWorkload:
    """An agent with its workload, for the busiest-first ranking."""
    agent: User
    workload: WorkloadSnapshot
