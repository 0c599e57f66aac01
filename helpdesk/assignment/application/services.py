"""
Assignment Application Services
===============================

Chooses an owner for a ticket and keeps per-agent workload views.

Every write is a conditional update against the values read during
validation, so two racing callers cannot both win.
"""

from typing import Dict, List, Optional, Sequence

from helpdesk.config import TicketStatus, UserRole, CLOSED_STATUSES
from helpdesk.core import Clock
from helpdesk.tickets.application import (
    ITicketRepository, IUserDirectory, ICategoryLookup,
    IWorkflowConfigProvider, ITicketAssigner, TicketFilter
)
from helpdesk.tickets.domain import StatusChange, User
from helpdesk.assignment.domain import (
    AssignmentFailure, AssignmentResult, BulkAssignmentResult,
    WorkloadSnapshot, AgentWorkload
)
from helpdesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

# A category's default agent keeps priority while carrying at most this
# many more open tickets than the least busy agent.
DEFAULT_AGENT_OVERLOAD_MARGIN = 2


class AssignmentService(ITicketAssigner):
    """
    Service for ticket assignment and agent workload.

    Coordinates between domain logic and data access.
    """

    def __init__(
        self,
        ticket_repository: ITicketRepository,
        user_directory: IUserDirectory,
        category_lookup: ICategoryLookup,
        config_provider: IWorkflowConfigProvider,
        clock: Clock
    ):
        self._ticket_repo = ticket_repository
        self._users = user_directory
        self._categories = category_lookup
        self._config_provider = config_provider
        self._clock = clock

    async def find_best_agent(self, category_id: Optional[str] = None) -> Optional[str]:
        """
        Pick the agent who should own a ticket in `category_id`.

        The least busy active agent wins (ties go to the lowest agent id),
        unless the category's default agent is within the overload margin
        of that agent's open count.

        Returns:
            Agent id, or None when there are no active agents
        """
        agents = await self._assignable_agents()
        if not agents:
            return None

        open_counts = await self._open_counts(agents)
        ranked = sorted(agents, key=lambda agent: open_counts[agent.id])
        least_busy = ranked[0]

        if category_id is not None:
            category = await self._categories.get_category(category_id)
            default_id = category.default_agent_id if category else None
            if (
                default_id in open_counts
                and open_counts[default_id]
                <= open_counts[least_busy.id] + DEFAULT_AGENT_OVERLOAD_MARGIN
            ):
                return default_id

        return least_busy.id

    async def assign(self, ticket_id: str, agent_id: Optional[str] = None) -> AssignmentResult:
        """
        Assign a ticket, picking the agent when none is given.

        Returns:
            AssignmentResult; on failure no state has changed
        """
        ticket = await self._ticket_repo.get_by_id(ticket_id)
        if ticket is None:
            return self._refuse(ticket_id, AssignmentFailure.TICKET_NOT_FOUND)

        target_id = agent_id
        if target_id is None:
            if ticket.category_id is not None:
                target_id = await self.find_best_agent(ticket.category_id)
            if target_id is None:
                return self._refuse(ticket_id, AssignmentFailure.NO_AGENT_AVAILABLE)

        failure = await self._check_agent(target_id)
        if failure:
            return self._refuse(ticket_id, failure, agent_id=target_id)

        workflow = self._config_provider.get_config().workflow
        if not workflow.allows(ticket.status, TicketStatus.ASSIGNED):
            return self._refuse(ticket_id, AssignmentFailure.INVALID_STATUS_TRANSITION)

        now = self._clock.now()
        updated = await self._ticket_repo.compare_and_update(
            ticket_id,
            expected={"status": ticket.status, "assigned_agent_id": ticket.assigned_agent_id},
            fields={
                "assigned_agent_id": target_id,
                "status": TicketStatus.ASSIGNED,
                "last_activity_at": now,
                "updated_at": now,
            },
        )
        if updated is None:
            return self._refuse(ticket_id, AssignmentFailure.CONCURRENT_MODIFICATION)

        if ticket.status != TicketStatus.ASSIGNED:
            await self._ticket_repo.add_status_change(StatusChange(
                ticket_id=ticket_id,
                from_status=ticket.status,
                to_status=TicketStatus.ASSIGNED,
                changed_at=now,
                note=f"Assigned to agent {target_id}",
            ))

        logger.info(
            "Ticket assigned",
            extra={
                "ticket_id": ticket_id,
                "agent_id": target_id,
                "auto_selected": agent_id is None,
            }
        )
        return AssignmentResult.ok(target_id)

    async def reassign(
        self,
        ticket_id: str,
        from_agent_id: str,
        to_agent_id: str
    ) -> AssignmentResult:
        """
        Hand a ticket from one agent to another without touching its status.

        Fails unless the ticket is currently owned by `from_agent_id`.
        """
        ticket = await self._ticket_repo.get_by_id(ticket_id)
        if ticket is None:
            return self._refuse(ticket_id, AssignmentFailure.TICKET_NOT_FOUND)

        if ticket.assigned_agent_id != from_agent_id:
            return self._refuse(ticket_id, AssignmentFailure.TICKET_NOT_ASSIGNED_TO_AGENT)

        # Finished tickets stay on the books of whoever resolved them
        if ticket.status in CLOSED_STATUSES:
            return self._refuse(ticket_id, AssignmentFailure.INVALID_STATUS_TRANSITION)

        failure = await self._check_agent(to_agent_id)
        if failure:
            return self._refuse(ticket_id, failure, agent_id=to_agent_id)

        now = self._clock.now()
        updated = await self._ticket_repo.compare_and_update(
            ticket_id,
            expected={"assigned_agent_id": from_agent_id, "status": ticket.status},
            fields={
                "assigned_agent_id": to_agent_id,
                "last_activity_at": now,
                "updated_at": now,
            },
        )
        if updated is None:
            return self._refuse(ticket_id, AssignmentFailure.CONCURRENT_MODIFICATION)

        logger.info(
            "Ticket reassigned",
            extra={
                "ticket_id": ticket_id,
                "from_agent_id": from_agent_id,
                "to_agent_id": to_agent_id,
            }
        )
        return AssignmentResult.ok(to_agent_id)

    async def assign_bulk(self, ticket_ids: Sequence[str], agent_id: str) -> BulkAssignmentResult:
        """Assign several tickets to one agent, one at a time."""
        result = BulkAssignmentResult()
        for ticket_id in ticket_ids:
            outcome = await self.assign(ticket_id, agent_id)
            if outcome.success:
                result.succeeded += 1
            else:
                result.failed[ticket_id] = outcome.reason
        return result

    async def workload(self, agent_id: str) -> WorkloadSnapshot:
        """Compute the workload snapshot of one agent."""
        tickets = await self._ticket_repo.list(TicketFilter(assigned_agent_id=agent_id))
        today = self._clock.now().date()

        open_count = sum(1 for t in tickets if t.status not in CLOSED_STATUSES)
        resolved = [t for t in tickets if t.status == TicketStatus.RESOLVED]
        closed = sum(1 for t in tickets if t.status == TicketStatus.CLOSED)
        resolved_today = sum(
            1 for t in resolved if t.resolved_at and t.resolved_at.date() == today
        )

        measurable = [t for t in resolved if t.resolved_at and t.sla_resolution_due]
        if measurable:
            on_time = sum(1 for t in measurable if t.resolved_at <= t.sla_resolution_due)
            compliance = round(on_time / len(measurable) * 100, 1)
        else:
            compliance = 100.0

        return WorkloadSnapshot(
            agent_id=agent_id,
            open=open_count,
            resolved=len(resolved),
            resolved_today=resolved_today,
            closed=closed,
            total=len(tickets),
            sla_compliance=compliance,
        )

    async def all_workloads(self) -> List[AgentWorkload]:
        """Workload of every active agent, busiest first."""
        agents = await self._assignable_agents()
        workloads = [
            AgentWorkload(agent=agent, workload=await self.workload(agent.id))
            for agent in agents
        ]
        return sorted(workloads, key=lambda w: w.workload.total, reverse=True)

    async def _assignable_agents(self) -> List[User]:
        agents = await self._users.list_active_users([UserRole.AGENT])
        return sorted((a for a in agents if a.is_assignable), key=lambda a: a.id)

    async def _open_counts(self, agents: Sequence[User]) -> Dict[str, int]:
        counts = {}
        for agent in agents:
            open_tickets = await self._ticket_repo.list(TicketFilter(
                assigned_agent_id=agent.id,
                exclude_statuses=CLOSED_STATUSES,
            ))
            counts[agent.id] = len(open_tickets)
        return counts

    async def _check_agent(self, agent_id: str) -> Optional[AssignmentFailure]:
        agent = await self._users.get_user(agent_id)
        if agent is None:
            return AssignmentFailure.AGENT_NOT_FOUND
        if not agent.is_active:
            return AssignmentFailure.AGENT_INACTIVE
        if agent.role != UserRole.AGENT:
            return AssignmentFailure.AGENT_NOT_ASSIGNABLE
        return None

    @staticmethod
    def _refuse(
        ticket_id: str,
        reason: AssignmentFailure,
        agent_id: Optional[str] = None
    ) -> AssignmentResult:
        logger.warning(
            "Assignment refused",
            extra={"ticket_id": ticket_id, "agent_id": agent_id, "reason": reason.value}
        )
        return AssignmentResult.fail(reason)
