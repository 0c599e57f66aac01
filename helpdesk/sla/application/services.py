"""
SLA Application Services
=========================

Application services orchestrate business logic and coordinate between
domain entities and repositories.

Following SOLID principles:
- Single Responsibility: Each service has one clear purpose
- Dependency Inversion: Depend on abstractions (repositories, notifier),
  not concrete implementations
"""

import asyncio
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional

from helpdesk.config import SLAKind, SLAState, UserRole, CLOSED_STATUSES
from helpdesk.core import Clock
from helpdesk.sla.domain import (
    SLABadge, SLACalculator, SLANotification, SweepResult, TicketRef
)
from helpdesk.tickets.application import (
    ITicketRepository, IUserDirectory, TicketFilter
)
from helpdesk.tickets.domain import Ticket
from helpdesk.shared.infrastructure.logging import get_logger, log_latency

logger = get_logger(__name__)

# Escalation audience per breached clock, beyond the agent and requester
BREACH_ESCALATION_ROLES: Dict[SLAKind, List[UserRole]] = {
    SLAKind.FIRST_RESPONSE: [UserRole.TEAM_LEAD],
    SLAKind.RESOLUTION: [UserRole.TEAM_LEAD, UserRole.ADMIN],
}


# ========== Notifier Interface (Dependency Inversion) ==========

class INotifier(ABC):
    """Interface for delivering SLA notifications."""

    @abstractmethod
    async def notify_breach(
        self,
        recipient: str,
        ticket: TicketRef,
        sla_kind: SLAKind,
        due_at: datetime
    ) -> bool:
        """Send a breach notice; True when delivered."""

    @abstractmethod
    async def notify_warning(
        self,
        recipient: str,
        ticket: TicketRef,
        sla_kind: SLAKind,
        due_at: datetime,
        remaining_text: str
    ) -> bool:
        """Send an approaching-deadline notice; True when delivered."""


# ========== Application Services ==========

class SLAMonitorService:
    """
    Periodic SLA sweep.

    Invoked from outside (cron endpoint or manual trigger); walks every
    open ticket, classifies both clocks and notifies the people involved.
    Nothing is remembered between sweeps.
    """

    def __init__(
        self,
        ticket_repository: ITicketRepository,
        user_directory: IUserDirectory,
        notifier: INotifier,
        clock: Clock
    ):
        self._ticket_repo = ticket_repository
        self._users = user_directory
        self._notifier = notifier
        self._clock = clock

    async def run(self) -> SweepResult:
        """
        Evaluate all open tickets and dispatch notifications.

        Returns:
            SweepResult with breach/warning tallies and delivery counts
        """
        now = self._clock.now()
        result = SweepResult(started_at=now)

        with log_latency(logger, "sla_sweep"):
            tickets = await self._ticket_repo.list(
                TicketFilter(exclude_statuses=CLOSED_STATUSES)
            )
            result.tickets_processed = len(tickets)

            escalation = await self._escalation_contacts()
            agent_emails: Dict[str, Optional[str]] = {}

            notifications: List[SLANotification] = []
            for ticket in tickets:
                agent_email = await self._agent_email(ticket, agent_emails)
                notifications.extend(
                    self._evaluate_ticket(ticket, now, agent_email, escalation, result)
                )

            await self._dispatch(notifications, result)

        logger.info("SLA sweep completed", extra=result.to_dict())
        return result

    def _evaluate_ticket(
        self,
        ticket: Ticket,
        now: datetime,
        agent_email: Optional[str],
        escalation: Dict[SLAKind, List[str]],
        result: SweepResult
    ) -> List[SLANotification]:
        """Classify both clocks of one ticket and decide who hears about it."""
        badge = SLABadge.evaluate(
            ticket.id,
            ticket.priority,
            ticket.sla_window_start,
            ticket.sla_first_response_due,
            ticket.sla_resolution_due,
            now,
        )

        notifications = []
        for reading in badge.readings():
            result.record(reading.kind, reading.state)

            if reading.state == SLAState.BREACHED:
                recipients = _dedupe(
                    [agent_email, ticket.requester_email] + escalation[reading.kind]
                )
                notifications.extend(
                    SLANotification(
                        recipient=recipient,
                        ticket=ticket.ref,
                        kind=reading.kind,
                        state=reading.state,
                        due=reading.due,
                    )
                    for recipient in recipients
                )
            elif reading.state == SLAState.WARNING and agent_email:
                notifications.append(SLANotification(
                    recipient=agent_email,
                    ticket=ticket.ref,
                    kind=reading.kind,
                    state=reading.state,
                    due=reading.due,
                    remaining_text=SLACalculator.remaining_text(reading.due, now),
                ))

        return notifications

    async def _dispatch(
        self,
        notifications: List[SLANotification],
        result: SweepResult
    ) -> None:
        """Send everything concurrently; one failure never stops the rest."""
        result.notifications_attempted = len(notifications)
        if not notifications:
            return

        outcomes = await asyncio.gather(
            *(self._send(n) for n in notifications),
            return_exceptions=True
        )

        for notification, outcome in zip(notifications, outcomes):
            if isinstance(outcome, Exception):
                logger.error(
                    "SLA notification failed",
                    extra={
                        "ticket_id": notification.ticket.ticket_id,
                        "sla_kind": notification.kind.value,
                        "error": str(outcome),
                    }
                )
                result.failures.append(notification.ticket.ticket_id)
            elif outcome:
                result.notifications_sent += 1
            else:
                result.failures.append(notification.ticket.ticket_id)

    async def _send(self, notification: SLANotification) -> bool:
        if notification.state == SLAState.BREACHED:
            return await self._notifier.notify_breach(
                notification.recipient,
                notification.ticket,
                notification.kind,
                notification.due,
            )
        return await self._notifier.notify_warning(
            notification.recipient,
            notification.ticket,
            notification.kind,
            notification.due,
            notification.remaining_text or "",
        )

    async def _escalation_contacts(self) -> Dict[SLAKind, List[str]]:
        """Emails of active Team Leads / Admins, per breached clock."""
        contacts = {}
        for kind, roles in BREACH_ESCALATION_ROLES.items():
            users = await self._users.list_active_users(roles)
            contacts[kind] = [u.email for u in users if u.email]
        return contacts

    async def _agent_email(
        self,
        ticket: Ticket,
        cache: Dict[str, Optional[str]]
    ) -> Optional[str]:
        if not ticket.assigned_agent_id:
            return None
        if ticket.assigned_agent_id not in cache:
            agent = await self._users.get_user(ticket.assigned_agent_id)
            cache[ticket.assigned_agent_id] = agent.email if agent else None
        return cache[ticket.assigned_agent_id]


def _dedupe(recipients: List[Optional[str]]) -> List[str]:
    """Drop blanks and repeats, keeping first-seen order."""
    seen = []
    for recipient in recipients:
        if recipient and recipient not in seen:
            seen.append(recipient)
    return seen
