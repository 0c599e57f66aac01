"""
Tickets Domain Layer
====================

Contains:
- Entities: Ticket (aggregate root), User, Category, StatusChange
- Value Objects: StatusWorkflow, WorkflowConfig

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from helpdesk.tickets.domain.entities import (
    Ticket,
    User,
    Category,
    StatusChange,
    NewTicket,
)
from helpdesk.tickets.domain.workflow import (
    StatusWorkflow,
    WorkflowConfig,
    DEFAULT_TRANSITIONS,
)

__all__ = [
    "Ticket",
    "User",
    "Category",
    "StatusChange",
    "NewTicket",
    "StatusWorkflow",
    "WorkflowConfig",
    "DEFAULT_TRANSITIONS",
]
