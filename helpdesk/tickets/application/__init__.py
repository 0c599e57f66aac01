"""
Tickets Application Layer
=========================

Contains:
- Services: ticket lifecycle orchestration
- Repository interfaces shared by every bounded context
- DTOs: Data transfer objects for API serialization

This layer depends on the domain layer and repository interfaces,
but not on concrete infrastructure implementations.
"""

from helpdesk.tickets.application.dto import (
    CreateTicketRequest,
    StatusChangeRequest,
    ResolveRequest,
    TicketResponse,
    AutoCloseResponse,
)
from helpdesk.tickets.application.services import (
    TicketService,
    TicketFilter,
    ITicketRepository,
    IUserDirectory,
    ICategoryLookup,
    IWorkflowConfigProvider,
    ITicketAssigner,
    StaticWorkflowConfigProvider,
)

__all__ = [
    # DTOs
    "CreateTicketRequest",
    "StatusChangeRequest",
    "ResolveRequest",
    "TicketResponse",
    "AutoCloseResponse",
    # Services
    "TicketService",
    "TicketFilter",
    "StaticWorkflowConfigProvider",
    # Repository Interfaces
    "ITicketRepository",
    "IUserDirectory",
    "ICategoryLookup",
    "IWorkflowConfigProvider",
    "ITicketAssigner",
]
