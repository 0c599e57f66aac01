"""
SLA Controllers (API Routes)
=============================

FastAPI routes for SLA badges and the SLA sweep.

Controllers are thin - they delegate to application services.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from helpdesk.config import Settings, UserRole
from helpdesk.core import Clock
from helpdesk.tickets.application import ITicketRepository, IUserDirectory, TicketService
from helpdesk.tickets.domain import User
from helpdesk.tickets.interfaces.controllers import get_ticket_service
from helpdesk.sla.application import (
    SLAMonitorService, INotifier, SLABadgeResponse, SweepResponse
)
from helpdesk.sla.infrastructure import EmailNotifier
from helpdesk.shared.api.dependencies import (
    get_app_settings, get_clock, get_ticket_repository, get_user_directory,
    get_current_user, get_optional_user, cron_secret_valid
)
from helpdesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(tags=["SLA Monitoring"])


# ========== Example payloads for Swagger ==========

SLA_BADGE_EXAMPLE = {
    "ticket_id": "123e4567-e89b-12d3-a456-426614174000",
    "priority": "P1",
    "state": "warning",
    "evaluated_at": "2024-01-15T13:15:00Z",
    "first_response": {
        "kind": "first_response",
        "due": "2024-01-15T10:15:00Z",
        "state": "breached",
        "remaining_seconds": -10800.0
    },
    "resolution": {
        "kind": "resolution",
        "due": "2024-01-15T14:00:00Z",
        "state": "warning",
        "remaining_seconds": 2700.0
    }
}

SWEEP_RESPONSE_EXAMPLE = {
    "success": True,
    "timestamp": "2024-01-15T13:15:00Z",
    "tickets_processed": 42,
    "breaches": {"first_response": 2, "resolution": 1},
    "warnings": {"first_response": 3, "resolution": 4},
    "notifications_attempted": 14,
    "notifications_sent": 14
}


# ========== Dependencies ==========

def get_notifier(
    request: Request,
    settings: Settings = Depends(get_app_settings)
) -> INotifier:
    """Notifier created at startup, or a fresh email notifier."""
    notifier = getattr(request.app.state, "notifier", None)
    if notifier is None:
        notifier = EmailNotifier.from_settings(settings)
        request.app.state.notifier = notifier
    return notifier


async def get_monitor_service(
    ticket_repo: ITicketRepository = Depends(get_ticket_repository),
    users: IUserDirectory = Depends(get_user_directory),
    notifier: INotifier = Depends(get_notifier),
    clock: Clock = Depends(get_clock)
) -> SLAMonitorService:
    """Get SLA sweep service instance."""
    return SLAMonitorService(ticket_repo, users, notifier, clock)


async def authorize_sweep(
    authorization: Optional[str] = Header(None),
    user: Optional[User] = Depends(get_optional_user),
    settings: Settings = Depends(get_app_settings)
) -> None:
    """
    The sweep runs for the cron caller or for a Team Lead / Admin
    triggering it by hand.
    """
    if user is not None:
        if user.has_role(UserRole.TEAM_LEAD):
            return
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only Team Leads and Admins can trigger the SLA sweep"
        )

    if not cron_secret_valid(authorization, settings):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized"
        )


# ========== Route Handlers ==========

@router.get(
    "/tickets/{ticket_id}/sla",
    response_model=SLABadgeResponse,
    summary="SLA badge of a ticket",
    description="""
    State of both SLA clocks: `breached` at or past the deadline,
    `warning` when less than 20% of the window remains, `ok` otherwise.
    Resolved and Closed tickets carry no running clock.
    """,
    responses={
        200: {"content": {"application/json": {"example": SLA_BADGE_EXAMPLE}}},
        404: {"description": "Ticket not found"},
    }
)
async def get_sla_badge(
    ticket_id: str,
    user: User = Depends(get_current_user),
    service: TicketService = Depends(get_ticket_service)
):
    badge = await service.sla_badge(ticket_id)
    return SLABadgeResponse.from_domain(badge)


@router.post(
    "/cron/sla-monitor",
    response_model=SweepResponse,
    summary="Run the SLA sweep",
    description="""
    Checks every open ticket and notifies:
    - breach: assigned agent, requester, Team Leads (first response)
      or Team Leads and Admins (resolution)
    - warning: assigned agent, with the time left

    Called by an external scheduler with `Authorization: Bearer <CRON_SECRET>`,
    or manually by a Team Lead / Admin (`X-User-Id`).
    """,
    responses={200: {"content": {"application/json": {"example": SWEEP_RESPONSE_EXAMPLE}}}},
    dependencies=[Depends(authorize_sweep)]
)
async def run_sla_monitor(
    service: SLAMonitorService = Depends(get_monitor_service)
):
    result = await service.run()
    return SweepResponse.from_domain(result)
