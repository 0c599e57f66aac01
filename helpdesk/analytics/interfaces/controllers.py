"""
Analytics Controllers (API Routes)
==================================

FastAPI routes for ticket deflection and recurring-issue reports.

Controllers are thin - they delegate to application services.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from helpdesk.config import UserRole
from helpdesk.core import Clock
from helpdesk.tickets.application import ITicketRepository
from helpdesk.tickets.domain import User
from helpdesk.analytics.application import (
    SimilarityService, RecurrenceService,
    SimilarTicketResponse, SuggestionResponse,
    RecurringPatternResponse, RecurringIssuesResponse
)
from helpdesk.shared.api.dependencies import (
    get_clock, get_ticket_repository, get_current_user, require_role
)

router = APIRouter(tags=["Analytics"])


# ========== Dependencies ==========

async def get_similarity_service(
    ticket_repo: ITicketRepository = Depends(get_ticket_repository)
) -> SimilarityService:
    return SimilarityService(ticket_repo)


async def get_recurrence_service(
    ticket_repo: ITicketRepository = Depends(get_ticket_repository),
    clock: Clock = Depends(get_clock)
) -> RecurrenceService:
    return RecurrenceService(ticket_repo, clock)


# ========== Route Handlers ==========

@router.get(
    "/tickets/suggest",
    response_model=SuggestionResponse,
    summary="Similar resolved tickets for a draft",
    description="""
    Shown while a ticket is being filed: up to `limit` resolved tickets
    that look alike (similarity above 20 out of 100) and, when the best
    match has one, its resolution as a suggested solution.
    """
)
async def suggest(
    title: str = Query(..., min_length=1, max_length=200),
    description: str = Query("", max_length=5000),
    category_id: Optional[str] = Query(None),
    limit: int = Query(3, ge=1, le=10),
    user: User = Depends(get_current_user),
    service: SimilarityService = Depends(get_similarity_service)
):
    similar = await service.find_similar_tickets(title, description, category_id, limit)
    suggested = await service.get_suggested_solution(title, description, category_id)

    return SuggestionResponse(
        similar_tickets=[SimilarTicketResponse.from_result(r) for r in similar],
        suggested_solution=SimilarTicketResponse.from_result(suggested) if suggested else None,
    )


@router.get(
    "/analytics/recurring",
    response_model=RecurringIssuesResponse,
    summary="Keywords recurring across recent tickets"
)
async def recurring_issues(
    days_back: int = Query(30, ge=1, le=365),
    min_occurrences: int = Query(3, ge=1),
    user: User = Depends(require_role(UserRole.TEAM_LEAD)),
    service: RecurrenceService = Depends(get_recurrence_service)
):
    patterns = await service.find_recurring_issues(days_back, min_occurrences)
    return RecurringIssuesResponse(
        days_back=days_back,
        min_occurrences=min_occurrences,
        patterns=[RecurringPatternResponse.from_domain(p) for p in patterns],
    )
