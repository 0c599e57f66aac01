"""
SLA Domain Layer
================

Domain layer for SLA monitoring module.

Contains:
- Entities: objects produced by SLA evaluation (SLABadge, SweepResult)
- Value Objects: PriorityMatrix, SLAPolicy, SLADueDates
- Domain Services: Stateless business logic (SLACalculator)

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from helpdesk.sla.domain.entities import (
    TicketRef,
    SLAClockReading,
    SLABadge,
    SLANotification,
    SweepResult,
)
from helpdesk.sla.domain.value_objects import (
    PriorityMatrix,
    SLACalculator,
    SLADueDates,
    SLAPolicy,
    SLATarget,
    DEFAULT_SLA_TARGETS,
)

__all__ = [
    # Entities
    "TicketRef",
    "SLAClockReading",
    "SLABadge",
    "SLANotification",
    "SweepResult",
    # Value Objects & Services
    "PriorityMatrix",
    "SLACalculator",
    "SLADueDates",
    "SLAPolicy",
    "SLATarget",
    "DEFAULT_SLA_TARGETS",
]
