"""Tests for agent selection, assign/reassign and workload snapshots."""

from datetime import timedelta

import pytest

from helpdesk.config import TicketStatus, UserRole
from helpdesk.assignment.application import AssignmentService
from helpdesk.assignment.domain import AssignmentFailure
from helpdesk.tickets.domain import User


@pytest.fixture
def service(ticket_repo, users, categories, workflow, clock):
    return AssignmentService(ticket_repo, users, categories, workflow, clock)


def give_open_tickets(make_ticket, agent_id, n):
    for _ in range(n):
        make_ticket(status=TicketStatus.ASSIGNED, assigned_agent_id=agent_id)


class TestFindBestAgent:

    async def test_least_busy_agent(self, service, make_ticket):
        give_open_tickets(make_ticket, "agent-b", 1)
        give_open_tickets(make_ticket, "agent-c", 5)

        assert await service.find_best_agent("hardware") == "agent-a"

    async def test_ties_go_to_lowest_id(self, service):
        assert await service.find_best_agent("hardware") == "agent-a"

    async def test_closed_work_does_not_count(self, service, make_ticket):
        for _ in range(4):
            make_ticket(status=TicketStatus.RESOLVED, assigned_agent_id="agent-a")
        make_ticket(status=TicketStatus.CLOSED, assigned_agent_id="agent-a")
        give_open_tickets(make_ticket, "agent-b", 1)
        give_open_tickets(make_ticket, "agent-c", 1)

        assert await service.find_best_agent("hardware") == "agent-a"

    async def test_default_agent_within_margin(self, service, make_ticket):
        give_open_tickets(make_ticket, "agent-b", 1)
        give_open_tickets(make_ticket, "agent-c", 2)

        assert await service.find_best_agent("network") == "agent-c"

    async def test_default_agent_over_margin(self, service, make_ticket):
        give_open_tickets(make_ticket, "agent-b", 1)
        give_open_tickets(make_ticket, "agent-c", 3)

        assert await service.find_best_agent("network") == "agent-a"

    async def test_inactive_default_agent_is_ignored(self, service, users):
        users.users["agent-c"].is_active = False
        assert await service.find_best_agent("network") == "agent-a"

    async def test_unknown_category_falls_back_to_least_busy(self, service):
        assert await service.find_best_agent("no-such-category") == "agent-a"

    async def test_no_agents(self, service, users):
        users.users.clear()
        assert await service.find_best_agent("network") is None


class TestAssign:

    async def test_explicit_agent(self, service, make_ticket, ticket_repo, clock):
        ticket = make_ticket()
        clock.advance(minutes=5)

        result = await service.assign(ticket.id, "agent-b")

        assert result.success
        assert result.agent_id == "agent-b"
        stored = ticket_repo.tickets[ticket.id]
        assert stored.assigned_agent_id == "agent-b"
        assert stored.status == TicketStatus.ASSIGNED
        assert stored.updated_at == clock.now()
        assert stored.last_activity_at == clock.now()
        assert ticket_repo.history[-1].to_status == TicketStatus.ASSIGNED

    async def test_picks_agent_from_category(self, service, make_ticket, ticket_repo):
        ticket = make_ticket(category_id="network")

        result = await service.assign(ticket.id)

        assert result.success
        assert result.agent_id == "agent-c"

    async def test_no_category_means_no_agent(self, service, make_ticket, ticket_repo):
        ticket = make_ticket()

        result = await service.assign(ticket.id)

        assert not result.success
        assert result.reason == AssignmentFailure.NO_AGENT_AVAILABLE
        assert ticket_repo.tickets[ticket.id].status == TicketStatus.NEW

    async def test_unknown_ticket(self, service):
        result = await service.assign("missing", "agent-a")
        assert result.reason == AssignmentFailure.TICKET_NOT_FOUND

    @pytest.mark.parametrize("agent_id, reason", [
        ("nobody", AssignmentFailure.AGENT_NOT_FOUND),
        ("lead-1", AssignmentFailure.AGENT_NOT_ASSIGNABLE),
        ("emp-1", AssignmentFailure.AGENT_NOT_ASSIGNABLE),
    ])
    async def test_rejects_non_agents(self, service, make_ticket, ticket_repo, agent_id, reason):
        ticket = make_ticket()

        result = await service.assign(ticket.id, agent_id)

        assert not result.success
        assert result.reason == reason
        assert ticket_repo.tickets[ticket.id] == ticket

    async def test_rejects_inactive_agent(self, service, make_ticket, ticket_repo, users):
        users.add(User(id="agent-z", name="Zed", email="zed@example.com",
                       role=UserRole.AGENT, is_active=False))
        ticket = make_ticket()

        result = await service.assign(ticket.id, "agent-z")

        assert result.reason == AssignmentFailure.AGENT_INACTIVE
        assert ticket_repo.tickets[ticket.id].assigned_agent_id is None
        assert ticket_repo.history == []

    async def test_resolved_ticket_cannot_be_assigned(self, service, make_ticket):
        ticket = make_ticket(status=TicketStatus.RESOLVED)

        result = await service.assign(ticket.id, "agent-a")

        assert result.reason == AssignmentFailure.INVALID_STATUS_TRANSITION

    async def test_loses_race(self, service, make_ticket, ticket_repo):
        ticket = make_ticket()
        original = ticket_repo.compare_and_update

        async def someone_else_first(ticket_id, expected, fields):
            await original(ticket_id, {}, {"assigned_agent_id": "agent-c",
                                           "status": TicketStatus.ASSIGNED})
            return await original(ticket_id, expected, fields)

        ticket_repo.compare_and_update = someone_else_first

        result = await service.assign(ticket.id, "agent-a")

        assert result.reason == AssignmentFailure.CONCURRENT_MODIFICATION
        assert ticket_repo.tickets[ticket.id].assigned_agent_id == "agent-c"

    async def test_failure_message(self, service):
        result = await service.assign("missing", "agent-a")
        assert result.message == "Ticket not found"


class TestReassign:

    async def test_moves_owner_and_keeps_status(self, service, make_ticket, ticket_repo):
        ticket = make_ticket(status=TicketStatus.IN_PROGRESS, assigned_agent_id="agent-a")

        result = await service.reassign(ticket.id, "agent-a", "agent-b")

        assert result.success
        stored = ticket_repo.tickets[ticket.id]
        assert stored.assigned_agent_id == "agent-b"
        assert stored.status == TicketStatus.IN_PROGRESS
        assert ticket_repo.history == []

    async def test_source_mismatch(self, service, make_ticket, ticket_repo):
        ticket = make_ticket(status=TicketStatus.ASSIGNED, assigned_agent_id="agent-c")

        result = await service.reassign(ticket.id, "agent-a", "agent-b")

        assert result.reason == AssignmentFailure.TICKET_NOT_ASSIGNED_TO_AGENT
        assert ticket_repo.tickets[ticket.id].assigned_agent_id == "agent-c"

    async def test_target_must_be_agent(self, service, make_ticket):
        ticket = make_ticket(status=TicketStatus.ASSIGNED, assigned_agent_id="agent-a")

        result = await service.reassign(ticket.id, "agent-a", "admin-1")

        assert result.reason == AssignmentFailure.AGENT_NOT_ASSIGNABLE

    @pytest.mark.parametrize("status", [TicketStatus.RESOLVED, TicketStatus.CLOSED])
    async def test_finished_ticket_keeps_owner(self, service, make_ticket, ticket_repo, status):
        ticket = make_ticket(status=status, assigned_agent_id="agent-a")

        result = await service.reassign(ticket.id, "agent-a", "agent-b")

        assert result.reason == AssignmentFailure.INVALID_STATUS_TRANSITION
        assert ticket_repo.tickets[ticket.id].assigned_agent_id == "agent-a"


class TestBulkAssign:

    async def test_reports_each_failure(self, service, make_ticket):
        first = make_ticket()
        second = make_ticket()
        done = make_ticket(status=TicketStatus.CLOSED)

        result = await service.assign_bulk([first.id, "missing", second.id, done.id], "agent-b")

        assert result.succeeded == 2
        assert result.failed == {
            "missing": AssignmentFailure.TICKET_NOT_FOUND,
            done.id: AssignmentFailure.INVALID_STATUS_TRANSITION,
        }


class TestWorkload:

    async def test_counts_and_compliance(self, service, make_ticket, clock):
        now = clock.now()
        give_open_tickets(make_ticket, "agent-a", 2)
        on_time = make_ticket(status=TicketStatus.RESOLVED, assigned_agent_id="agent-a")
        on_time.resolved_at = on_time.sla_resolution_due
        late = make_ticket(status=TicketStatus.RESOLVED, assigned_agent_id="agent-a",
                           created_at=now - timedelta(days=10), updated_at=now)
        late.resolved_at = now
        make_ticket(status=TicketStatus.CLOSED, assigned_agent_id="agent-a")

        snapshot = await service.workload("agent-a")

        assert snapshot.open == 2
        assert snapshot.resolved == 2
        assert snapshot.closed == 1
        assert snapshot.total == 5
        assert snapshot.resolved_today == 1
        assert snapshot.sla_compliance == 50.0

    async def test_nothing_measurable_is_fully_compliant(self, service, make_ticket):
        make_ticket(status=TicketStatus.RESOLVED, assigned_agent_id="agent-b")

        snapshot = await service.workload("agent-b")

        assert snapshot.resolved == 1
        assert snapshot.sla_compliance == 100.0

    async def test_rounds_to_one_decimal(self, service, make_ticket, clock):
        now = clock.now()
        for _ in range(2):
            t = make_ticket(status=TicketStatus.RESOLVED, assigned_agent_id="agent-a")
            t.resolved_at = now
        late = make_ticket(status=TicketStatus.RESOLVED, assigned_agent_id="agent-a",
                           created_at=now - timedelta(days=30), updated_at=now)
        late.resolved_at = now

        snapshot = await service.workload("agent-a")

        assert snapshot.sla_compliance == 66.7

    async def test_all_workloads_busiest_first(self, service, make_ticket):
        give_open_tickets(make_ticket, "agent-b", 3)
        give_open_tickets(make_ticket, "agent-c", 1)

        ranking = await service.all_workloads()

        assert [w.agent.id for w in ranking] == ["agent-b", "agent-c", "agent-a"]
        assert [w.workload.total for w in ranking] == [3, 1, 0]
