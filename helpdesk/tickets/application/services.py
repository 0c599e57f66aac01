"""
Tickets Application Services
============================

Application services orchestrate business logic and coordinate between
domain entities and repositories.

Following SOLID principles:
- Single Responsibility: Each service has one clear purpose
- Dependency Inversion: Depend on abstractions (repositories), not concrete implementations
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional, Sequence, Any

from helpdesk.config import TicketStatus, UserRole
from helpdesk.core import (
    Clock,
    ResourceNotFoundException,
    InvalidStatusTransitionException,
    ConcurrentModificationException,
    ValidationException,
)
from helpdesk.sla.domain import PriorityMatrix, SLACalculator, SLABadge
from helpdesk.tickets.domain import (
    Ticket, User, Category, StatusChange, NewTicket,
    StatusWorkflow, WorkflowConfig
)
from helpdesk.tickets.application.dto import CreateTicketRequest
from helpdesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


# ========== Repository Interfaces (Dependency Inversion) ==========

@dataclass
class TicketFilter:
    """
    Criteria for listing tickets.

    `keywords` matches tickets whose title or description contains any of
    the words, case-insensitively.
    """
    statuses: Optional[Sequence[TicketStatus]] = None
    exclude_statuses: Optional[Sequence[TicketStatus]] = None
    category_id: Optional[str] = None
    assigned_agent_id: Optional[str] = None
    created_from: Optional[datetime] = None
    created_to: Optional[datetime] = None
    updated_before: Optional[datetime] = None
    keywords: Sequence[str] = field(default_factory=list)
    order_by: str = "created_at"
    limit: Optional[int] = None


class ITicketRepository(ABC):
    """Interface for ticket data access."""

    @abstractmethod
    async def get_by_id(self, ticket_id: str) -> Optional[Ticket]:
        """Get ticket by ID."""

    @abstractmethod
    async def list(self, criteria: TicketFilter) -> List[Ticket]:
        """List tickets matching the filter, newest first."""

    @abstractmethod
    async def create(self, new_ticket: NewTicket) -> Ticket:
        """Persist a new ticket."""

    @abstractmethod
    async def update(self, ticket_id: str, fields: dict) -> Optional[Ticket]:
        """Unconditionally update columns of a ticket."""

    @abstractmethod
    async def compare_and_update(
        self,
        ticket_id: str,
        expected: dict,
        fields: dict
    ) -> Optional[Ticket]:
        """
        Update a ticket only if its columns still hold `expected`.

        Returns the updated ticket, or None when the ticket is missing or
        another writer changed one of the expected columns.
        """

    @abstractmethod
    async def next_ticket_number(self, year: int) -> str:
        """Allocate the next INC-<year>-<seq> number."""

    @abstractmethod
    async def add_status_change(self, change: StatusChange) -> None:
        """Append to the status history."""


class IUserDirectory(ABC):
    """Interface for user lookups."""

    @abstractmethod
    async def get_user(self, user_id: str) -> Optional[User]:
        """Get any user, active or not."""

    @abstractmethod
    async def list_active_users(self, roles: Sequence[UserRole]) -> List[User]:
        """Active users holding one of `roles`, ordered by id."""


class ICategoryLookup(ABC):
    """Interface for category lookups."""

    @abstractmethod
    async def get_category(self, category_id: str) -> Optional[Category]:
        """Get category by ID."""


class IWorkflowConfigProvider(ABC):
    """Interface for workflow configuration access."""

    @abstractmethod
    def get_config(self) -> WorkflowConfig:
        """Get current workflow configuration."""


class ITicketAssigner(ABC):
    """Picks and records an owner for a freshly created ticket."""

    @abstractmethod
    async def assign(self, ticket_id: str, agent_id: Optional[str] = None) -> Any:
        """Assign the ticket; returns an AssignmentResult."""


class StaticWorkflowConfigProvider(IWorkflowConfigProvider):
    """Serves a fixed configuration (built-in defaults unless given one)."""

    def __init__(self, config: Optional[WorkflowConfig] = None):
        self._config = config or WorkflowConfig()

    def get_config(self) -> WorkflowConfig:
        return self._config


# ========== Application Services ==========

class TicketService:
    """
    Ticket lifecycle: creation, status transitions, auto-close.

    Priority and SLA due dates are derived here and nowhere else.
    """

    def __init__(
        self,
        ticket_repository: ITicketRepository,
        category_lookup: ICategoryLookup,
        config_provider: IWorkflowConfigProvider,
        clock: Clock,
        assigner: Optional[ITicketAssigner] = None,
        auto_assign: bool = False
    ):
        self._ticket_repo = ticket_repository
        self._categories = category_lookup
        self._config_provider = config_provider
        self._clock = clock
        self._assigner = assigner
        self._auto_assign = auto_assign

    @property
    def workflow(self) -> StatusWorkflow:
        return self._config_provider.get_config().workflow

    async def get_ticket(self, ticket_id: str) -> Ticket:
        ticket = await self._ticket_repo.get_by_id(ticket_id)
        if ticket is None:
            raise ResourceNotFoundException("Ticket", ticket_id)
        return ticket

    async def create_ticket(
        self,
        request: CreateTicketRequest,
        requester_id: Optional[str] = None
    ) -> Ticket:
        """
        Create a ticket with derived priority and SLA deadlines.

        Args:
            request: Validated ticket attributes
            requester_id: User filing the ticket, if known

        Returns:
            The persisted ticket (assigned when auto-assignment succeeded)
        """
        if request.category_id is not None:
            category = await self._categories.get_category(request.category_id)
            if category is None:
                raise ResourceNotFoundException("Category", request.category_id)

        config = self._config_provider.get_config()
        now = self._clock.now()
        priority = PriorityMatrix.priority(request.impact, request.urgency)
        due = SLACalculator.due_dates(priority, now, config.sla)

        ticket = await self._ticket_repo.create(NewTicket(
            ticket_number=await self._ticket_repo.next_ticket_number(now.year),
            title=request.title,
            description=request.description,
            impact=request.impact,
            urgency=request.urgency,
            priority=priority,
            status=TicketStatus.NEW,
            created_at=now,
            sla_first_response_due=due.first_response_due,
            sla_resolution_due=due.resolution_due,
            category_id=request.category_id,
            requester_id=requester_id,
            requester_email=request.requester_email,
        ))

        logger.info(
            "Ticket created",
            extra={
                "ticket_id": ticket.id,
                "ticket_number": ticket.ticket_number,
                "priority": priority.value,
                "resolution_due": due.resolution_due.isoformat(),
            }
        )

        if self._auto_assign and self._assigner and ticket.category_id:
            result = await self._assigner.assign(ticket.id)
            if result.success:
                ticket = await self.get_ticket(ticket.id)
            else:
                logger.warning(
                    "Auto-assignment skipped",
                    extra={"ticket_id": ticket.id, "reason": result.reason}
                )

        return ticket

    async def change_status(
        self,
        ticket_id: str,
        new_status: TicketStatus,
        actor_id: Optional[str] = None,
        note: Optional[str] = None
    ) -> Ticket:
        """
        Move a ticket to another status.

        Raises:
            ResourceNotFoundException: unknown ticket
            InvalidStatusTransitionException: the workflow forbids the move
            ValidationException: Assigned requested for an unowned ticket
            ConcurrentModificationException: status changed meanwhile
        """
        ticket = await self.get_ticket(ticket_id)
        return await self._transition(ticket, TicketStatus(new_status), actor_id, note)

    async def resolve(
        self,
        ticket_id: str,
        resolution: str,
        actor_id: Optional[str] = None
    ) -> Ticket:
        """Record the resolution text and move the ticket to Resolved."""
        if not resolution or not resolution.strip():
            raise ValidationException("Resolution text is required")

        ticket = await self.get_ticket(ticket_id)
        return await self._transition(
            ticket, TicketStatus.RESOLVED, actor_id, None,
            extra_fields={"resolution": resolution.strip()}
        )

    async def sla_badge(self, ticket_id: str) -> SLABadge:
        """
        Current state of both SLA clocks of a ticket.

        Resolved and Closed tickets have no running clock; their badge
        carries no readings.
        """
        ticket = await self.get_ticket(ticket_id)
        now = self._clock.now()
        if not ticket.is_open:
            return SLABadge(ticket_id=ticket.id, priority=ticket.priority, evaluated_at=now)

        return SLABadge.evaluate(
            ticket.id,
            ticket.priority,
            ticket.sla_window_start,
            ticket.sla_first_response_due,
            ticket.sla_resolution_due,
            now,
        )

    async def auto_close_stale(self, days: int) -> int:
        """
        Close tickets that have sat in Resolved for `days` or more.

        Returns:
            Number of tickets closed
        """
        if not self.workflow.allows(TicketStatus.RESOLVED, TicketStatus.CLOSED):
            logger.warning("Workflow does not allow Resolved -> Closed, auto-close skipped")
            return 0

        cutoff = self._clock.now() - timedelta(days=days)
        stale = await self._ticket_repo.list(TicketFilter(
            statuses=[TicketStatus.RESOLVED],
            updated_before=cutoff,
        ))

        closed = 0
        for ticket in stale:
            try:
                await self._transition(
                    ticket, TicketStatus.CLOSED, None, f"Auto-closed after {days} days"
                )
                closed += 1
            except ConcurrentModificationException:
                logger.info("Ticket changed during auto-close", extra={"ticket_id": ticket.id})

        logger.info(
            "Auto-close completed",
            extra={"tickets_found": len(stale), "tickets_closed": closed}
        )
        return closed

    async def _transition(
        self,
        ticket: Ticket,
        new_status: TicketStatus,
        actor_id: Optional[str],
        note: Optional[str],
        extra_fields: Optional[dict] = None
    ) -> Ticket:
        config = self._config_provider.get_config()

        if not config.workflow.allows(ticket.status, new_status):
            raise InvalidStatusTransitionException(
                ticket.id, ticket.status.value, new_status.value
            )
        if new_status == TicketStatus.ASSIGNED and ticket.assigned_agent_id is None:
            raise ValidationException(
                "Ticket has no agent; use assignment to move it to Assigned",
                {"ticket_id": ticket.id}
            )

        now = self._clock.now()
        fields = {"status": new_status, "updated_at": now, "last_activity_at": now}
        fields.update(extra_fields or {})

        if new_status == TicketStatus.RESOLVED:
            fields["resolved_at"] = now
            fields["closed_at"] = None
        elif new_status == TicketStatus.CLOSED:
            fields["closed_at"] = now
        elif StatusWorkflow.is_reopen(ticket.status, new_status):
            # New SLA cycle with the unchanged priority
            due = SLACalculator.due_dates(ticket.priority, now, config.sla)
            fields.update(
                resolved_at=None,
                closed_at=None,
                sla_started_at=now,
                sla_first_response_due=due.first_response_due,
                sla_resolution_due=due.resolution_due,
            )

        updated = await self._ticket_repo.compare_and_update(
            ticket.id, {"status": ticket.status}, fields
        )
        if updated is None:
            raise ConcurrentModificationException(ticket.id)

        await self._ticket_repo.add_status_change(StatusChange(
            ticket_id=ticket.id,
            from_status=ticket.status,
            to_status=new_status,
            changed_at=now,
            changed_by=actor_id,
            note=note,
        ))

        logger.info(
            "Ticket status changed",
            extra={
                "ticket_id": ticket.id,
                "from_status": ticket.status.value,
                "to_status": new_status.value,
                "actor_id": actor_id,
            }
        )
        return updated
