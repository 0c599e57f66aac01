"""
SLA Application Layer
======================

Application layer for SLA monitoring module.

Contains:
- Services: the periodic SLA sweep
- Notifier interface implemented by infrastructure
- DTOs: Data transfer objects for API serialization

This layer depends on the domain layer and repository interfaces,
but not on concrete infrastructure implementations.
"""

from helpdesk.sla.application.dto import (
    SLAClockResponse,
    SLABadgeResponse,
    SLAKindCounts,
    SweepResponse,
)
from helpdesk.sla.application.services import (
    SLAMonitorService,
    INotifier,
    BREACH_ESCALATION_ROLES,
)

__all__ = [
    # DTOs
    "SLAClockResponse",
    "SLABadgeResponse",
    "SLAKindCounts",
    "SweepResponse",
    # Services
    "SLAMonitorService",
    "BREACH_ESCALATION_ROLES",
    # Interfaces
    "INotifier",
]
