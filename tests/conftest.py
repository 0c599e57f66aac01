"""Shared fixtures: in-memory repositories, a frozen clock and a recording notifier."""

import dataclasses
from datetime import datetime, timezone
from itertools import count
from typing import Dict, List, Optional, Sequence

import pytest

from helpdesk.config import Impact, Urgency, TicketStatus, UserRole, SLAKind
from helpdesk.core import FixedClock, NotificationException
from helpdesk.sla.application import INotifier
from helpdesk.sla.domain import PriorityMatrix, SLACalculator, TicketRef
from helpdesk.tickets.application import (
    ITicketRepository, IUserDirectory, ICategoryLookup,
    StaticWorkflowConfigProvider, TicketFilter
)
from helpdesk.tickets.domain import (
    Ticket, User, Category, StatusChange, NewTicket
)

NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


class InMemoryTicketRepository(ITicketRepository):
    """Dict-backed ticket store with the same conditional-update contract as SQL."""

    def __init__(self):
        self.tickets: Dict[str, Ticket] = {}
        self.history: List[StatusChange] = []
        self._ids = count(1)

    def add(self, ticket: Ticket) -> Ticket:
        self.tickets[ticket.id] = ticket
        return ticket

    async def get_by_id(self, ticket_id: str) -> Optional[Ticket]:
        return self.tickets.get(ticket_id)

    async def list(self, criteria: TicketFilter) -> List[Ticket]:
        def matches(t: Ticket) -> bool:
            if criteria.statuses is not None and t.status not in criteria.statuses:
                return False
            if criteria.exclude_statuses and t.status in criteria.exclude_statuses:
                return False
            if criteria.category_id is not None and t.category_id != criteria.category_id:
                return False
            if criteria.assigned_agent_id is not None and t.assigned_agent_id != criteria.assigned_agent_id:
                return False
            if criteria.created_from is not None and t.created_at < criteria.created_from:
                return False
            if criteria.created_to is not None and t.created_at > criteria.created_to:
                return False
            if criteria.updated_before is not None and not t.updated_at < criteria.updated_before:
                return False
            if criteria.keywords:
                text = t.full_text.lower()
                if not any(k.lower() in text for k in criteria.keywords):
                    return False
            return True

        found = [t for t in self.tickets.values() if matches(t)]
        if criteria.order_by == "resolved_at":
            with_date = sorted(
                (t for t in found if t.resolved_at), key=lambda t: t.resolved_at, reverse=True
            )
            found = with_date + [t for t in found if not t.resolved_at]
        else:
            found.sort(key=lambda t: t.created_at, reverse=True)

        if criteria.limit is not None:
            found = found[:criteria.limit]
        return found

    async def create(self, new_ticket: NewTicket) -> Ticket:
        ticket = Ticket(
            id=f"t-{next(self._ids)}",
            ticket_number=new_ticket.ticket_number,
            title=new_ticket.title,
            description=new_ticket.description,
            impact=new_ticket.impact,
            urgency=new_ticket.urgency,
            status=new_ticket.status,
            created_at=new_ticket.created_at,
            updated_at=new_ticket.created_at,
            category_id=new_ticket.category_id,
            requester_id=new_ticket.requester_id,
            requester_email=new_ticket.requester_email,
            sla_first_response_due=new_ticket.sla_first_response_due,
            sla_resolution_due=new_ticket.sla_resolution_due,
            sla_started_at=new_ticket.created_at,
        )
        return self.add(ticket)

    async def update(self, ticket_id: str, fields: dict) -> Optional[Ticket]:
        return await self.compare_and_update(ticket_id, {}, fields)

    async def compare_and_update(self, ticket_id: str, expected: dict, fields: dict) -> Optional[Ticket]:
        ticket = self.tickets.get(ticket_id)
        if ticket is None:
            return None
        if any(getattr(ticket, name) != value for name, value in expected.items()):
            return None
        updated = dataclasses.replace(ticket, **fields)
        self.tickets[ticket_id] = updated
        return updated

    async def next_ticket_number(self, year: int) -> str:
        prefix = f"INC-{year}-"
        taken = sum(1 for t in self.tickets.values() if t.ticket_number.startswith(prefix))
        return f"{prefix}{taken + 1:04d}"

    async def add_status_change(self, change: StatusChange) -> None:
        self.history.append(change)


class InMemoryUserDirectory(IUserDirectory):

    def __init__(self, users: Sequence[User] = ()):
        self.users: Dict[str, User] = {u.id: u for u in users}

    def add(self, user: User) -> User:
        self.users[user.id] = user
        return user

    async def get_user(self, user_id: str) -> Optional[User]:
        return self.users.get(user_id)

    async def list_active_users(self, roles: Sequence[UserRole]) -> List[User]:
        return sorted(
            (u for u in self.users.values() if u.is_active and u.role in roles),
            key=lambda u: u.id,
        )


class InMemoryCategoryLookup(ICategoryLookup):

    def __init__(self, categories: Sequence[Category] = ()):
        self.categories: Dict[str, Category] = {c.id: c for c in categories}

    def add(self, category: Category) -> Category:
        self.categories[category.id] = category
        return category

    async def get_category(self, category_id: str) -> Optional[Category]:
        return self.categories.get(category_id)


class RecordingNotifier(INotifier):
    """Remembers every notification; can be told to fail for some recipients."""

    def __init__(self):
        self.breaches: List[tuple] = []
        self.warnings: List[tuple] = []
        self.undeliverable: set = set()
        self.exploding: set = set()

    def _outcome(self, recipient: str) -> bool:
        if recipient in self.exploding:
            raise NotificationException("mail server down", {"recipient": recipient})
        return recipient not in self.undeliverable

    async def notify_breach(self, recipient: str, ticket: TicketRef, sla_kind: SLAKind, due_at: datetime) -> bool:
        self.breaches.append((recipient, ticket.ticket_id, SLAKind(sla_kind)))
        return self._outcome(recipient)

    async def notify_warning(
        self, recipient: str, ticket: TicketRef, sla_kind: SLAKind, due_at: datetime, remaining_text: str
    ) -> bool:
        self.warnings.append((recipient, ticket.ticket_id, SLAKind(sla_kind), remaining_text))
        return self._outcome(recipient)


# ========== Fixtures ==========

@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def ticket_repo():
    return InMemoryTicketRepository()


@pytest.fixture
def users():
    return InMemoryUserDirectory([
        User(id="agent-a", name="Ana", email="ana@example.com", role=UserRole.AGENT),
        User(id="agent-b", name="Ben", email="ben@example.com", role=UserRole.AGENT),
        User(id="agent-c", name="Cy", email="cy@example.com", role=UserRole.AGENT),
        User(id="lead-1", name="Lee", email="lee@example.com", role=UserRole.TEAM_LEAD),
        User(id="admin-1", name="Ada", email="ada@example.com", role=UserRole.ADMIN),
        User(id="emp-1", name="Eve", email="eve@example.com", role=UserRole.EMPLOYEE),
    ])


@pytest.fixture
def categories():
    return InMemoryCategoryLookup([
        Category(id="network", name="Network", default_agent_id="agent-c"),
        Category(id="hardware", name="Hardware", default_agent_id=None),
    ])


@pytest.fixture
def workflow():
    return StaticWorkflowConfigProvider()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def make_ticket(ticket_repo):
    """Seed a ticket; SLA deadlines follow the default targets unless given."""
    numbers = count(1)

    def factory(
        impact=Impact.MEDIUM,
        urgency=Urgency.MEDIUM,
        status=TicketStatus.NEW,
        created_at=NOW,
        **overrides
    ) -> Ticket:
        n = next(numbers)
        priority = PriorityMatrix.priority(impact, urgency)
        due = SLACalculator.due_dates(priority, created_at)
        fields = dict(
            id=f"seed-{n}",
            ticket_number=f"INC-{created_at.year}-{9000 + n:04d}",
            title=f"Ticket {n}",
            description="Something is broken",
            impact=impact,
            urgency=urgency,
            status=status,
            created_at=created_at,
            updated_at=created_at,
            sla_first_response_due=due.first_response_due,
            sla_resolution_due=due.resolution_due,
        )
        fields.update(overrides)
        return ticket_repo.add(Ticket(**fields))

    return factory


