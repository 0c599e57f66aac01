"""
Assignment Controllers (API Routes)
===================================

FastAPI routes for assigning tickets and reading agent workloads.

Controllers are thin - they delegate to application services.
Refused assignments come back with `success: false` and a reason code;
a missing ticket is 404, every other refusal is 409.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse

from helpdesk.config import UserRole
from helpdesk.core import Clock
from helpdesk.tickets.application import (
    ITicketRepository, IUserDirectory, ICategoryLookup, IWorkflowConfigProvider
)
from helpdesk.tickets.domain import User
from helpdesk.assignment.application import (
    AssignmentService,
    AssignRequest, ReassignRequest, AssignmentResponse,
    BulkAssignRequest, BulkAssignResponse,
    WorkloadResponse, AgentWorkloadResponse, WorkloadListResponse
)
from helpdesk.assignment.domain import AssignmentFailure, AssignmentResult
from helpdesk.shared.api.dependencies import (
    get_clock, get_workflow_provider, get_ticket_repository,
    get_user_directory, get_category_lookup, require_role
)
from helpdesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(tags=["Assignment"])


# ========== Dependencies ==========

async def get_assignment_service(
    ticket_repo: ITicketRepository = Depends(get_ticket_repository),
    users: IUserDirectory = Depends(get_user_directory),
    categories: ICategoryLookup = Depends(get_category_lookup),
    config_provider: IWorkflowConfigProvider = Depends(get_workflow_provider),
    clock: Clock = Depends(get_clock)
) -> AssignmentService:
    """Get assignment service instance."""
    return AssignmentService(ticket_repo, users, categories, config_provider, clock)


def _result_response(result: AssignmentResult) -> JSONResponse:
    body = AssignmentResponse.from_result(result)
    if result.success:
        status_code = status.HTTP_200_OK
    elif result.reason == AssignmentFailure.TICKET_NOT_FOUND:
        status_code = status.HTTP_404_NOT_FOUND
    else:
        status_code = status.HTTP_409_CONFLICT
    return JSONResponse(status_code=status_code, content=body.model_dump())


# ========== Route Handlers ==========

@router.post(
    "/tickets/{ticket_id}/assign",
    response_model=AssignmentResponse,
    summary="Assign a ticket",
    description="Assign to the given agent, or let the engine pick the best one."
)
async def assign_ticket(
    ticket_id: str,
    request: AssignRequest,
    user: User = Depends(require_role(UserRole.AGENT)),
    service: AssignmentService = Depends(get_assignment_service)
):
    result = await service.assign(ticket_id, request.agent_id)
    return _result_response(result)


@router.post(
    "/tickets/{ticket_id}/reassign",
    response_model=AssignmentResponse,
    summary="Move a ticket between agents"
)
async def reassign_ticket(
    ticket_id: str,
    request: ReassignRequest,
    user: User = Depends(require_role(UserRole.AGENT)),
    service: AssignmentService = Depends(get_assignment_service)
):
    result = await service.reassign(ticket_id, request.from_agent_id, request.to_agent_id)
    return _result_response(result)


@router.post(
    "/tickets/bulk-assign",
    response_model=BulkAssignResponse,
    summary="Assign several tickets to one agent"
)
async def bulk_assign(
    request: BulkAssignRequest,
    user: User = Depends(require_role(UserRole.TEAM_LEAD)),
    service: AssignmentService = Depends(get_assignment_service)
):
    result = await service.assign_bulk(request.ticket_ids, request.agent_id)
    return BulkAssignResponse.from_result(result)


@router.get(
    "/analytics/workloads",
    response_model=WorkloadListResponse,
    summary="Workload of every active agent"
)
async def list_workloads(
    user: User = Depends(require_role(UserRole.TEAM_LEAD)),
    service: AssignmentService = Depends(get_assignment_service)
):
    workloads = await service.all_workloads()
    return WorkloadListResponse(agents=[
        AgentWorkloadResponse(
            agent_id=w.agent.id,
            name=w.agent.name,
            email=w.agent.email,
            workload=WorkloadResponse.from_domain(w.workload),
        )
        for w in workloads
    ])


@router.get(
    "/analytics/workloads/{agent_id}",
    response_model=WorkloadResponse,
    summary="Workload of one agent",
    description="Agents may read their own workload; Team Leads and Admins any."
)
async def get_workload(
    agent_id: str,
    user: User = Depends(require_role(UserRole.AGENT)),
    service: AssignmentService = Depends(get_assignment_service)
):
    if user.id != agent_id and not user.has_role(UserRole.TEAM_LEAD):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="TeamLead role required to view another agent's workload"
        )

    snapshot = await service.workload(agent_id)
    return WorkloadResponse.from_domain(snapshot)
