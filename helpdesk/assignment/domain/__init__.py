"""
Assignment Domain Layer
=======================

Assignment results and workload views. Pure Python, no infrastructure.
"""

from helpdesk.assignment.domain.entities import (
    AssignmentFailure,
    AssignmentResult,
    BulkAssignmentResult,
    WorkloadSnapshot,
    AgentWorkload,
    FAILURE_MESSAGES,
)

__all__ = [
    "AssignmentFailure",
    "AssignmentResult",
    "BulkAssignmentResult",
    "WorkloadSnapshot",
    "AgentWorkload",
    "FAILURE_MESSAGES",
]
