"""
Ticket Controllers (API Routes)
===============================

FastAPI routes for the ticket lifecycle and the auto-close job.

Controllers are thin - they delegate to application services.
Lifecycle errors (unknown ticket, forbidden transition, concurrent
change) are raised by the service and mapped by the application
exception handler.
"""

from fastapi import APIRouter, Depends, status

from helpdesk.config import Settings, UserRole
from helpdesk.core import Clock
from helpdesk.tickets.application import (
    TicketService,
    ITicketRepository, ICategoryLookup, IWorkflowConfigProvider,
    CreateTicketRequest, StatusChangeRequest, ResolveRequest,
    TicketResponse, AutoCloseResponse
)
from helpdesk.tickets.domain import User
from helpdesk.assignment.application import AssignmentService
from helpdesk.assignment.interfaces.controllers import get_assignment_service
from helpdesk.shared.api.dependencies import (
    get_app_settings, get_clock, get_workflow_provider,
    get_ticket_repository, get_category_lookup,
    get_current_user, require_role, verify_cron_secret
)
from helpdesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(tags=["Tickets"])


# ========== Example payloads for Swagger ==========

CREATE_TICKET_EXAMPLE = {
    "title": "VPN drops every few minutes",
    "description": "Since this morning the VPN client disconnects every 5 minutes.",
    "impact": "High",
    "urgency": "Medium",
    "category_id": "7f1c2b9e-3a4d-4e5f-8a6b-1c2d3e4f5a6b"
}


# ========== Dependencies ==========

async def get_ticket_service(
    ticket_repo: ITicketRepository = Depends(get_ticket_repository),
    categories: ICategoryLookup = Depends(get_category_lookup),
    config_provider: IWorkflowConfigProvider = Depends(get_workflow_provider),
    clock: Clock = Depends(get_clock),
    assigner: AssignmentService = Depends(get_assignment_service),
    settings: Settings = Depends(get_app_settings)
) -> TicketService:
    """Get ticket service instance."""
    return TicketService(
        ticket_repo,
        categories,
        config_provider,
        clock,
        assigner=assigner,
        auto_assign=settings.auto_assign_on_create,
    )


# ========== Route Handlers ==========

@router.post(
    "/tickets",
    response_model=TicketResponse,
    status_code=status.HTTP_201_CREATED,
    summary="File a ticket",
    description="""
    Priority is derived from impact and urgency:

    | Impact \\ Urgency | Low | Medium | High |
    |---|---|---|---|
    | Low | P4 | P3 | P2 |
    | Medium | P3 | P2 | P1 |
    | High | P2 | P1 | P1 |

    SLA deadlines (first response / resolution) are set from the priority.
    """,
    responses={201: {"description": "Ticket created"}},
    openapi_extra={
        "requestBody": {"content": {"application/json": {"example": CREATE_TICKET_EXAMPLE}}}
    }
)
async def create_ticket(
    request: CreateTicketRequest,
    user: User = Depends(get_current_user),
    service: TicketService = Depends(get_ticket_service)
):
    if request.requester_email is None and user.email:
        request = request.model_copy(update={"requester_email": user.email})

    ticket = await service.create_ticket(request, requester_id=user.id)
    return TicketResponse.from_domain(ticket)


@router.get(
    "/tickets/{ticket_id}",
    response_model=TicketResponse,
    summary="Get a ticket"
)
async def get_ticket(
    ticket_id: str,
    user: User = Depends(get_current_user),
    service: TicketService = Depends(get_ticket_service)
):
    ticket = await service.get_ticket(ticket_id)
    return TicketResponse.from_domain(ticket)


@router.put(
    "/tickets/{ticket_id}/status",
    response_model=TicketResponse,
    summary="Change ticket status",
    responses={
        404: {"description": "Ticket not found"},
        409: {"description": "Transition not allowed or ticket changed concurrently"},
    }
)
async def change_status(
    ticket_id: str,
    request: StatusChangeRequest,
    user: User = Depends(require_role(UserRole.AGENT)),
    service: TicketService = Depends(get_ticket_service)
):
    ticket = await service.change_status(ticket_id, request.status, user.id, request.note)
    return TicketResponse.from_domain(ticket)


@router.post(
    "/tickets/{ticket_id}/resolve",
    response_model=TicketResponse,
    summary="Resolve a ticket with a resolution note"
)
async def resolve_ticket(
    ticket_id: str,
    request: ResolveRequest,
    user: User = Depends(require_role(UserRole.AGENT)),
    service: TicketService = Depends(get_ticket_service)
):
    ticket = await service.resolve(ticket_id, request.resolution, user.id)
    return TicketResponse.from_domain(ticket)


@router.post(
    "/cron/auto-close",
    response_model=AutoCloseResponse,
    summary="Close tickets left in Resolved",
    description="Called by an external scheduler with `Authorization: Bearer <CRON_SECRET>`.",
    dependencies=[Depends(verify_cron_secret)]
)
async def auto_close(
    service: TicketService = Depends(get_ticket_service),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_app_settings)
):
    closed = await service.auto_close_stale(settings.auto_close_after_days)
    return AutoCloseResponse(tickets_closed=closed, timestamp=clock.now())
