"""
Ticket Workflow
===============

The status transition map and the YAML-backed workflow configuration.

A single StatusWorkflow instance is handed to every service that moves a
ticket between statuses, so there is exactly one transition table.
"""

from typing import Dict, List

from pydantic import BaseModel, Field, field_validator

from helpdesk.config import TicketStatus
from helpdesk.sla.domain import SLAPolicy


DEFAULT_TRANSITIONS: Dict[str, List[str]] = {
    TicketStatus.NEW.value: [
        TicketStatus.ASSIGNED.value, TicketStatus.IN_PROGRESS.value,
        TicketStatus.PENDING.value, TicketStatus.RESOLVED.value,
        TicketStatus.CLOSED.value,
    ],
    TicketStatus.ASSIGNED.value: [
        TicketStatus.ASSIGNED.value, TicketStatus.IN_PROGRESS.value,
        TicketStatus.PENDING.value, TicketStatus.RESOLVED.value,
    ],
    TicketStatus.IN_PROGRESS.value: [
        TicketStatus.ASSIGNED.value, TicketStatus.PENDING.value,
        TicketStatus.RESOLVED.value,
    ],
    TicketStatus.PENDING.value: [
        TicketStatus.ASSIGNED.value, TicketStatus.IN_PROGRESS.value,
        TicketStatus.RESOLVED.value,
    ],
    TicketStatus.RESOLVED.value: [
        TicketStatus.IN_PROGRESS.value, TicketStatus.CLOSED.value,
    ],
    TicketStatus.CLOSED.value: [
        TicketStatus.IN_PROGRESS.value,
    ],
}

REOPEN_SOURCES = (TicketStatus.RESOLVED, TicketStatus.CLOSED)


class StatusWorkflow(BaseModel):
    """Allowed status transitions, keyed by current status."""
    transitions: Dict[TicketStatus, List[TicketStatus]] = Field(
        default_factory=lambda: {
            TicketStatus(k): [TicketStatus(s) for s in v]
            for k, v in DEFAULT_TRANSITIONS.items()
        }
    )

    @field_validator("transitions")
    @classmethod
    def every_status_has_an_entry(
        cls, v: Dict[TicketStatus, List[TicketStatus]]
    ) -> Dict[TicketStatus, List[TicketStatus]]:
        """Statuses missing from the map are terminal (no way out)."""
        for status in TicketStatus:
            v.setdefault(status, [])
        return v

    def allows(self, current: TicketStatus, target: TicketStatus) -> bool:
        return TicketStatus(target) in self.transitions.get(TicketStatus(current), [])

    def targets(self, current: TicketStatus) -> List[TicketStatus]:
        return list(self.transitions.get(TicketStatus(current), []))

    @staticmethod
    def is_reopen(current: TicketStatus, target: TicketStatus) -> bool:
        """Leaving Resolved/Closed for a working status starts a new SLA cycle."""
        return (
            TicketStatus(current) in REOPEN_SOURCES
            and TicketStatus(target) not in REOPEN_SOURCES
        )


class WorkflowConfig(BaseModel):
    """
    Workflow configuration loaded from YAML.

    Example:
        sla_targets:
          P1: {first_response: 15, resolution: 240}
        status_transitions:
          Resolved: [InProgress, Closed]
    """
    sla: SLAPolicy = Field(default_factory=SLAPolicy)
    workflow: StatusWorkflow = Field(default_factory=StatusWorkflow)

    @classmethod
    def from_mapping(cls, data: dict) -> "WorkflowConfig":
        """Build from the raw YAML document."""
        data = data or {}
        sla = SLAPolicy(targets=data.get("sla_targets") or {})
        transitions = data.get("status_transitions")
        workflow = StatusWorkflow(transitions=transitions) if transitions else StatusWorkflow()
        return cls(sla=sla, workflow=workflow)
