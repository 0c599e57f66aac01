"""
Assignment Application DTOs
===========================

Pydantic request/response models for assignment and workload endpoints.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class AssignRequest(BaseModel):
    """Assign a ticket; omit agent_id to let the engine pick."""
    agent_id: Optional[str] = Field(None, description="Agent to assign")


class ReassignRequest(BaseModel):
    """Move a ticket between agents."""
    from_agent_id: str = Field(..., min_length=1)
    to_agent_id: str = Field(..., min_length=1)


class AssignmentResponse(BaseModel):
    """Outcome of an assignment action."""
    success: bool
    agent_id: Optional[str] = None
    reason: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def from_result(cls, result) -> "AssignmentResponse":
        return cls(
            success=result.success,
            agent_id=result.agent_id,
            reason=result.reason.value if result.reason else None,
            message=result.message,
        )


class WorkloadResponse(BaseModel):
    """Workload snapshot of one agent."""
    agent_id: str
    open: int
    resolved: int
    resolved_today: int
    closed: int
    total: int
    sla_compliance: float = Field(..., ge=0, le=100)

    @classmethod
    def from_domain(cls, snapshot) -> "WorkloadResponse":
        return cls(
            agent_id=snapshot.agent_id,
            open=snapshot.open,
            resolved=snapshot.resolved,
            resolved_today=snapshot.resolved_today,
            closed=snapshot.closed,
            total=snapshot.total,
            sla_compliance=snapshot.sla_compliance,
        )


class AgentWorkloadResponse(BaseModel):
    """An agent and its workload."""
    agent_id: str
    name: str
    email: Optional[str] = None
    workload: WorkloadResponse


class WorkloadListResponse(BaseModel):
    """All active agents, busiest first."""
    agents: List[AgentWorkloadResponse]


class BulkAssignRequest(BaseModel):
    """Assign several tickets to one agent."""
    ticket_ids: List[str] = Field(..., min_length=1, max_length=100)
    agent_id: str = Field(..., min_length=1)


class BulkAssignResponse(BaseModel):
    """How many tickets moved, and why the others did not."""
    succeeded: int
    failed: Dict[str, str]

    @classmethod
    def from_result(cls, result) -> "BulkAssignResponse":
        return cls(
            succeeded=result.succeeded,
            failed={ticket_id: reason.value for ticket_id, reason in result.failed.items()},
        )
