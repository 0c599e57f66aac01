"""
Assignment Application Layer
============================

Contains:
- Services: AssignmentService (best-agent selection, assign, reassign, workload)
- DTOs: Data transfer objects for API serialization
"""

from helpdesk.assignment.application.dto import (
    AssignRequest,
    ReassignRequest,
    AssignmentResponse,
    WorkloadResponse,
    AgentWorkloadResponse,
    WorkloadListResponse,
    BulkAssignRequest,
    BulkAssignResponse,
)
from helpdesk.assignment.application.services import (
    AssignmentService,
    DEFAULT_AGENT_OVERLOAD_MARGIN,
)

__all__ = [
    # DTOs
    "AssignRequest",
    "ReassignRequest",
    "AssignmentResponse",
    "WorkloadResponse",
    "AgentWorkloadResponse",
    "WorkloadListResponse",
    "BulkAssignRequest",
    "BulkAssignResponse",
    # Services
    "AssignmentService",
    "DEFAULT_AGENT_OVERLOAD_MARGIN",
]
