"""Tests for the periodic SLA sweep."""

from datetime import timedelta

import pytest

from helpdesk.config import Impact, Urgency, SLAKind, TicketStatus
from helpdesk.sla.application import SLAMonitorService

FR = SLAKind.FIRST_RESPONSE
RES = SLAKind.RESOLUTION


@pytest.fixture
def monitor(ticket_repo, users, notifier, clock):
    return SLAMonitorService(ticket_repo, users, notifier, clock)


@pytest.fixture
def hours_ago(clock):
    return lambda h: clock.now() - timedelta(hours=h)


class TestBreachNotifications:

    async def test_first_response_breach_goes_to_team_leads_only(
        self, monitor, make_ticket, notifier, hours_ago
    ):
        # P2: first response 1h (breached), resolution 24h (ok)
        ticket = make_ticket(created_at=hours_ago(2), status=TicketStatus.ASSIGNED,
                             assigned_agent_id="agent-a", requester_email="eve@example.com")

        result = await monitor.run()

        assert notifier.breaches == [
            ("ana@example.com", ticket.id, FR),
            ("eve@example.com", ticket.id, FR),
            ("lee@example.com", ticket.id, FR),
        ]
        assert notifier.warnings == []
        assert result.first_response_breaches == 1
        assert result.resolution_breaches == 0
        assert result.notifications_sent == 3

    async def test_resolution_breach_adds_admins(self, monitor, make_ticket, notifier, hours_ago):
        ticket = make_ticket(created_at=hours_ago(30), status=TicketStatus.IN_PROGRESS,
                             assigned_agent_id="agent-a", requester_email="eve@example.com")

        result = await monitor.run()

        resolution = [r for r, tid, kind in notifier.breaches if kind == RES]
        assert resolution == [
            "ana@example.com", "eve@example.com", "ada@example.com", "lee@example.com"
        ]
        assert result.first_response_breaches == 1
        assert result.resolution_breaches == 1
        assert result.notifications_sent == 7
        assert all(tid == ticket.id for _, tid, _ in notifier.breaches)

    async def test_each_recipient_once_per_clock(self, monitor, make_ticket, notifier, hours_ago):
        make_ticket(created_at=hours_ago(2), status=TicketStatus.ASSIGNED,
                    assigned_agent_id="lead-1", requester_email="lee@example.com")

        await monitor.run()

        assert [r for r, _, _ in notifier.breaches] == ["lee@example.com"]

    async def test_unassigned_ticket_without_requester(self, monitor, make_ticket, notifier, hours_ago):
        make_ticket(created_at=hours_ago(2))

        await monitor.run()

        assert [r for r, _, _ in notifier.breaches] == ["lee@example.com"]

    async def test_inactive_leads_are_not_escalated_to(
        self, monitor, make_ticket, notifier, users, hours_ago
    ):
        users.users["lead-1"].is_active = False
        make_ticket(created_at=hours_ago(2), requester_email="eve@example.com")

        await monitor.run()

        assert [r for r, _, _ in notifier.breaches] == ["eve@example.com"]

    async def test_due_instant_counts_as_breached(self, monitor, make_ticket, notifier, hours_ago):
        make_ticket(created_at=hours_ago(1), requester_email="eve@example.com")

        result = await monitor.run()

        assert result.first_response_breaches == 1


class TestWarnings:

    async def test_warning_to_assigned_agent_with_remaining_time(
        self, monitor, make_ticket, notifier, hours_ago
    ):
        # P1 (High/High): resolution 4h window, 40 minutes left
        ticket = make_ticket(
            impact=Impact.HIGH, urgency=Urgency.HIGH,
            created_at=hours_ago(3) - timedelta(minutes=20),
            status=TicketStatus.IN_PROGRESS, assigned_agent_id="agent-b",
            requester_email="eve@example.com", sla_first_response_due=None,
        )

        result = await monitor.run()

        assert notifier.warnings == [("ben@example.com", ticket.id, RES, "40 minutes")]
        assert notifier.breaches == []
        assert result.resolution_warnings == 1

    async def test_no_warning_without_agent(self, monitor, make_ticket, notifier, hours_ago):
        make_ticket(created_at=hours_ago(23), requester_email="eve@example.com",
                    sla_first_response_due=None)

        result = await monitor.run()

        assert notifier.warnings == []
        assert result.resolution_warnings == 1
        assert result.notifications_attempted == 0

    async def test_healthy_ticket_is_quiet(self, monitor, make_ticket, notifier, clock):
        make_ticket(status=TicketStatus.ASSIGNED, assigned_agent_id="agent-a")

        result = await monitor.run()

        assert notifier.breaches == notifier.warnings == []
        assert result.tickets_processed == 1
        assert result.notifications_attempted == 0


class TestSweepScope:

    async def test_resolved_and_closed_are_skipped(self, monitor, make_ticket, notifier, hours_ago):
        make_ticket(created_at=hours_ago(50), status=TicketStatus.RESOLVED,
                    assigned_agent_id="agent-a")
        make_ticket(created_at=hours_ago(50), status=TicketStatus.CLOSED,
                    assigned_agent_id="agent-a")

        result = await monitor.run()

        assert result.tickets_processed == 0
        assert notifier.breaches == []

    async def test_rerun_sends_again(self, monitor, make_ticket, notifier, hours_ago):
        make_ticket(created_at=hours_ago(2), requester_email="eve@example.com")

        await monitor.run()
        await monitor.run()

        assert len(notifier.breaches) == 4


class TestDeliveryFailures:

    async def test_one_failure_does_not_stop_the_sweep(
        self, monitor, make_ticket, notifier, hours_ago
    ):
        make_ticket(created_at=hours_ago(2), status=TicketStatus.ASSIGNED,
                    assigned_agent_id="agent-a", requester_email="eve@example.com")
        second = make_ticket(created_at=hours_ago(2), status=TicketStatus.ASSIGNED,
                             assigned_agent_id="agent-b")
        notifier.exploding.add("ana@example.com")
        notifier.undeliverable.add("eve@example.com")

        result = await monitor.run()

        assert result.notifications_attempted == 5
        assert result.notifications_sent == 3
        assert result.notifications_failed == 2
        assert len(result.failures) == 2
        assert ("ben@example.com", second.id, FR) in notifier.breaches

    async def test_tallies_across_tickets(self, monitor, make_ticket, hours_ago):
        make_ticket(created_at=hours_ago(2))
        make_ticket(created_at=hours_ago(30))
        make_ticket(created_at=hours_ago(23), sla_first_response_due=None)

        result = await monitor.run()

        assert result.tickets_processed == 3
        assert result.first_response_breaches == 2
        assert result.resolution_breaches == 1
        assert result.resolution_warnings == 1
        assert result.to_dict()["breaches"] == {"first_response": 2, "resolution": 1}
