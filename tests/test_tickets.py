"""Tests for ticket creation, status workflow, auto-close and SLA badges."""

from datetime import timedelta

import pytest

from helpdesk.config import Impact, Urgency, Priority, TicketStatus, SLAState
from helpdesk.core import (
    ResourceNotFoundException,
    InvalidStatusTransitionException,
    ValidationException,
    ConcurrentModificationException,
)
from helpdesk.assignment.application import AssignmentService
from helpdesk.tickets.application import (
    TicketService, CreateTicketRequest, StaticWorkflowConfigProvider
)
from helpdesk.tickets.domain import WorkflowConfig


@pytest.fixture
def service(ticket_repo, categories, workflow, clock):
    return TicketService(ticket_repo, categories, workflow, clock)


def request(**overrides):
    fields = dict(
        title="Email down",
        description="Outlook cannot connect to the mail server",
        impact=Impact.HIGH,
        urgency=Urgency.MEDIUM,
    )
    fields.update(overrides)
    return CreateTicketRequest(**fields)


class TestCreateTicket:

    async def test_derives_priority_and_deadlines(self, service, clock):
        now = clock.now()

        ticket = await service.create_ticket(request(), requester_id="emp-1")

        assert ticket.priority == Priority.P1
        assert ticket.status == TicketStatus.NEW
        assert ticket.ticket_number == "INC-2026-0001"
        assert ticket.sla_first_response_due == now + timedelta(minutes=15)
        assert ticket.sla_resolution_due == now + timedelta(minutes=240)
        assert ticket.requester_id == "emp-1"

    async def test_numbers_increase(self, service):
        await service.create_ticket(request())
        second = await service.create_ticket(request(title="Second one"))
        assert second.ticket_number == "INC-2026-0002"

    async def test_configured_targets(self, ticket_repo, categories, clock):
        config = WorkflowConfig.from_mapping({
            "sla_targets": {"P3": {"first_response": 120, "resolution": 2880}}
        })
        service = TicketService(ticket_repo, categories, StaticWorkflowConfigProvider(config), clock)

        ticket = await service.create_ticket(request(impact=Impact.LOW, urgency=Urgency.MEDIUM))

        assert ticket.priority == Priority.P3
        assert ticket.sla_first_response_due == clock.now() + timedelta(minutes=120)

    async def test_unknown_category(self, service):
        with pytest.raises(ResourceNotFoundException):
            await service.create_ticket(request(category_id="plumbing"))

    def test_blank_title_rejected(self):
        with pytest.raises(ValueError):
            request(title="    ")

    async def test_auto_assign(self, ticket_repo, users, categories, workflow, clock):
        assigner = AssignmentService(ticket_repo, users, categories, workflow, clock)
        service = TicketService(
            ticket_repo, categories, workflow, clock, assigner=assigner, auto_assign=True
        )

        ticket = await service.create_ticket(request(category_id="network"))

        assert ticket.status == TicketStatus.ASSIGNED
        assert ticket.assigned_agent_id == "agent-c"

    async def test_auto_assign_needs_category(self, ticket_repo, users, categories, workflow, clock):
        assigner = AssignmentService(ticket_repo, users, categories, workflow, clock)
        service = TicketService(
            ticket_repo, categories, workflow, clock, assigner=assigner, auto_assign=True
        )

        ticket = await service.create_ticket(request())

        assert ticket.status == TicketStatus.NEW
        assert ticket.assigned_agent_id is None


class TestStatusChanges:

    async def test_allowed_transition_is_recorded(self, service, make_ticket, ticket_repo):
        ticket = make_ticket(status=TicketStatus.ASSIGNED, assigned_agent_id="agent-a")

        updated = await service.change_status(ticket.id, TicketStatus.IN_PROGRESS, actor_id="agent-a")

        assert updated.status == TicketStatus.IN_PROGRESS
        change = ticket_repo.history[-1]
        assert (change.from_status, change.to_status) == (TicketStatus.ASSIGNED, TicketStatus.IN_PROGRESS)
        assert change.changed_by == "agent-a"

    async def test_forbidden_transition(self, service, make_ticket, ticket_repo):
        ticket = make_ticket(status=TicketStatus.CLOSED)

        with pytest.raises(InvalidStatusTransitionException):
            await service.change_status(ticket.id, TicketStatus.RESOLVED)
        assert ticket_repo.tickets[ticket.id].status == TicketStatus.CLOSED

    async def test_assigned_requires_an_agent(self, service, make_ticket):
        ticket = make_ticket()
        with pytest.raises(ValidationException):
            await service.change_status(ticket.id, TicketStatus.ASSIGNED)

    async def test_unknown_ticket(self, service):
        with pytest.raises(ResourceNotFoundException):
            await service.change_status("missing", TicketStatus.IN_PROGRESS)

    async def test_resolve_sets_timestamp_and_text(self, service, make_ticket, clock):
        ticket = make_ticket(status=TicketStatus.IN_PROGRESS, assigned_agent_id="agent-a")
        clock.advance(hours=2)

        resolved = await service.resolve(ticket.id, "  Replaced the cable  ")

        assert resolved.status == TicketStatus.RESOLVED
        assert resolved.resolved_at == clock.now()
        assert resolved.resolution == "Replaced the cable"

    async def test_resolve_needs_text(self, service, make_ticket):
        ticket = make_ticket(status=TicketStatus.IN_PROGRESS)
        with pytest.raises(ValidationException):
            await service.resolve(ticket.id, "   ")

    async def test_close_from_new_leaves_resolved_at_empty(self, service, make_ticket, clock):
        ticket = make_ticket()

        closed = await service.change_status(ticket.id, TicketStatus.CLOSED)

        assert closed.closed_at == clock.now()
        assert closed.resolved_at is None

    async def test_reopen_restarts_sla(self, service, make_ticket, clock):
        created = clock.now() - timedelta(days=3)
        ticket = make_ticket(
            impact=Impact.HIGH, urgency=Urgency.HIGH, status=TicketStatus.RESOLVED,
            created_at=created, resolved_at=created + timedelta(hours=1),
            updated_at=created + timedelta(hours=1), resolution="Rebooted",
        )

        reopened = await service.change_status(ticket.id, TicketStatus.IN_PROGRESS)

        now = clock.now()
        assert reopened.resolved_at is None
        assert reopened.sla_started_at == now
        assert reopened.sla_first_response_due == now + timedelta(minutes=15)
        assert reopened.sla_resolution_due == now + timedelta(hours=4)
        assert reopened.priority == Priority.P1

    async def test_lost_race(self, service, make_ticket, ticket_repo):
        ticket = make_ticket(status=TicketStatus.IN_PROGRESS)
        stale_copy = ticket_repo.tickets[ticket.id]
        await ticket_repo.update(ticket.id, {"status": TicketStatus.PENDING})

        with pytest.raises(ConcurrentModificationException):
            await service._transition(stale_copy, TicketStatus.RESOLVED, None, None)


class TestAutoClose:

    async def test_closes_only_stale_resolved(self, service, make_ticket, ticket_repo, clock):
        now = clock.now()
        old = make_ticket(status=TicketStatus.RESOLVED, created_at=now - timedelta(days=20),
                          updated_at=now - timedelta(days=8))
        fresh = make_ticket(status=TicketStatus.RESOLVED, created_at=now - timedelta(days=20),
                            updated_at=now - timedelta(days=2))
        working = make_ticket(status=TicketStatus.IN_PROGRESS, created_at=now - timedelta(days=20))

        closed = await service.auto_close_stale(7)

        assert closed == 1
        assert ticket_repo.tickets[old.id].status == TicketStatus.CLOSED
        assert ticket_repo.tickets[old.id].closed_at == now
        assert ticket_repo.tickets[fresh.id].status == TicketStatus.RESOLVED
        assert ticket_repo.tickets[working.id].status == TicketStatus.IN_PROGRESS
        assert ticket_repo.history[-1].note == "Auto-closed after 7 days"

    async def test_nothing_to_close(self, service):
        assert await service.auto_close_stale(7) == 0


class TestSLABadge:

    async def test_open_ticket(self, service, make_ticket, clock):
        ticket = make_ticket(created_at=clock.now() - timedelta(hours=2))

        badge = await service.sla_badge(ticket.id)

        assert badge.first_response.state == SLAState.BREACHED
        assert badge.resolution.state == SLAState.OK
        assert badge.overall_state == SLAState.BREACHED

    async def test_resolved_ticket_has_no_running_clock(self, service, make_ticket):
        ticket = make_ticket(status=TicketStatus.RESOLVED)

        badge = await service.sla_badge(ticket.id)

        assert badge.readings() == []
        assert badge.overall_state == SLAState.OK
