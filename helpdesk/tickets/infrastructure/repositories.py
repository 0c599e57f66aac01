"""
Ticket Infrastructure Repositories
==================================

Concrete implementations of repository interfaces using SQLAlchemy.

This layer contains the data access logic - how we store and retrieve
entities from the database.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional, Sequence
from uuid import UUID, uuid4

from sqlalchemy import select, update, func, or_, and_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.config import UserRole
from helpdesk.core import RepositoryException
from helpdesk.tickets.application import (
    ITicketRepository, IUserDirectory, ICategoryLookup, TicketFilter
)
from helpdesk.tickets.domain import Ticket, User, Category, StatusChange, NewTicket
from helpdesk.tickets.infrastructure.models import (
    TicketModel, UserModel, CategoryModel, StatusHistoryModel
)

# Columns holding foreign keys; the domain passes them around as strings
UUID_COLUMNS = {"id", "category_id", "assigned_agent_id", "requester_id", "changed_by"}


def _parse_uuid(value: Optional[str]) -> Optional[UUID]:
    if value is None:
        return None
    try:
        return UUID(str(value))
    except ValueError:
        return None


def _str_or_none(value: Optional[UUID]) -> Optional[str]:
    return str(value) if value is not None else None


def _utc(value: Optional[datetime]) -> Optional[datetime]:
    """Some backends (sqlite) hand back naive datetimes; they are UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _column_value(name: str, value: Any) -> Any:
    """Convert a domain value to what the column stores."""
    if value is None:
        return None
    if name in UUID_COLUMNS:
        parsed = _parse_uuid(value)
        if parsed is None:
            raise RepositoryException(f"Invalid identifier for {name}: {value}")
        return parsed
    if isinstance(value, Enum):
        return value.value
    return value


def ticket_to_domain(model: TicketModel) -> Ticket:
    return Ticket(
        id=str(model.id),
        ticket_number=model.ticket_number,
        title=model.title,
        description=model.description,
        impact=model.impact,
        urgency=model.urgency,
        status=model.status,
        created_at=_utc(model.created_at),
        updated_at=_utc(model.updated_at),
        category_id=_str_or_none(model.category_id),
        assigned_agent_id=_str_or_none(model.assigned_agent_id),
        requester_id=_str_or_none(model.requester_id),
        requester_email=model.requester_email,
        sla_first_response_due=_utc(model.sla_first_response_due),
        sla_resolution_due=_utc(model.sla_resolution_due),
        sla_started_at=_utc(model.sla_started_at),
        resolved_at=_utc(model.resolved_at),
        closed_at=_utc(model.closed_at),
        resolution=model.resolution,
        last_activity_at=_utc(model.last_activity_at),
    )


def user_to_domain(model: UserModel) -> User:
    return User(
        id=str(model.id),
        name=model.name,
        email=model.email,
        role=model.role,
        is_active=model.is_active,
    )


class SQLAlchemyTicketRepository(ITicketRepository):
    """
    SQLAlchemy implementation of ticket repository.

    Handles persistence of Ticket entities using async SQLAlchemy.
    Conditional updates are single UPDATE statements so that racing
    writers cannot both win.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def _get_model(self, ticket_id: str) -> Optional[TicketModel]:
        ticket_uuid = _parse_uuid(ticket_id)
        if ticket_uuid is None:
            return None

        stmt = select(TicketModel).where(TicketModel.id == ticket_uuid)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_id(self, ticket_id: str) -> Optional[Ticket]:
        """Get ticket by internal ID."""
        model = await self._get_model(ticket_id)
        return ticket_to_domain(model) if model else None

    async def list(self, criteria: TicketFilter) -> List[Ticket]:
        """List tickets matching the filter, newest first."""
        stmt = select(TicketModel)

        conditions = []
        if criteria.statuses is not None:
            conditions.append(TicketModel.status.in_([s.value for s in criteria.statuses]))

        if criteria.exclude_statuses:
            conditions.append(TicketModel.status.not_in([s.value for s in criteria.exclude_statuses]))

        # A malformed id matches nothing, it must not become IS NULL
        if criteria.category_id is not None:
            category_uuid = _parse_uuid(criteria.category_id)
            if category_uuid is None:
                return []
            conditions.append(TicketModel.category_id == category_uuid)

        if criteria.assigned_agent_id is not None:
            agent_uuid = _parse_uuid(criteria.assigned_agent_id)
            if agent_uuid is None:
                return []
            conditions.append(TicketModel.assigned_agent_id == agent_uuid)

        if criteria.created_from is not None:
            conditions.append(TicketModel.created_at >= criteria.created_from)

        if criteria.created_to is not None:
            conditions.append(TicketModel.created_at <= criteria.created_to)

        if criteria.updated_before is not None:
            conditions.append(TicketModel.updated_at < criteria.updated_before)

        if criteria.keywords:
            conditions.append(or_(*(
                or_(
                    TicketModel.title.ilike(f"%{keyword}%", autoescape=True),
                    TicketModel.description.ilike(f"%{keyword}%", autoescape=True),
                )
                for keyword in criteria.keywords
            )))

        if conditions:
            stmt = stmt.where(and_(*conditions))

        if criteria.order_by == "resolved_at":
            stmt = stmt.order_by(TicketModel.resolved_at.desc().nulls_last(), TicketModel.id)
        else:
            stmt = stmt.order_by(TicketModel.created_at.desc(), TicketModel.id)

        if criteria.limit is not None:
            stmt = stmt.limit(criteria.limit)

        result = await self._session.execute(stmt)
        return [ticket_to_domain(m) for m in result.scalars().all()]

    async def create(self, new_ticket: NewTicket) -> Ticket:
        """Create new ticket."""
        model = TicketModel(
            id=uuid4(),
            ticket_number=new_ticket.ticket_number,
            title=new_ticket.title,
            description=new_ticket.description,
            impact=_column_value("impact", new_ticket.impact),
            urgency=_column_value("urgency", new_ticket.urgency),
            priority=_column_value("priority", new_ticket.priority),
            status=_column_value("status", new_ticket.status),
            category_id=_column_value("category_id", new_ticket.category_id),
            requester_id=_column_value("requester_id", new_ticket.requester_id),
            requester_email=new_ticket.requester_email,
            sla_first_response_due=new_ticket.sla_first_response_due,
            sla_resolution_due=new_ticket.sla_resolution_due,
            sla_started_at=new_ticket.created_at,
            created_at=new_ticket.created_at,
            updated_at=new_ticket.created_at,
            last_activity_at=new_ticket.created_at,
        )

        try:
            self._session.add(model)
            await self._session.flush()
        except SQLAlchemyError as e:
            raise RepositoryException(
                f"Failed to create ticket: {e}",
                {"ticket_number": new_ticket.ticket_number}
            ) from e

        return ticket_to_domain(model)

    async def update(self, ticket_id: str, fields: dict) -> Optional[Ticket]:
        """Unconditionally update columns of a ticket."""
        return await self.compare_and_update(ticket_id, {}, fields)

    async def compare_and_update(
        self,
        ticket_id: str,
        expected: dict,
        fields: dict
    ) -> Optional[Ticket]:
        """
        UPDATE tickets SET <fields> WHERE id = :id AND <expected>.

        Returns None when no row matched.
        """
        ticket_uuid = _parse_uuid(ticket_id)
        if ticket_uuid is None:
            return None

        conditions = [TicketModel.id == ticket_uuid]
        for name, value in expected.items():
            column = getattr(TicketModel, name)
            stored = _column_value(name, value)
            conditions.append(column.is_(None) if stored is None else column == stored)

        values = {name: _column_value(name, value) for name, value in fields.items()}
        if "impact" in values or "urgency" in values:
            raise RepositoryException("Impact and urgency are fixed at creation")

        stmt = (
            update(TicketModel)
            .where(and_(*conditions))
            .values(**values)
            .execution_options(synchronize_session=False)
        )

        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as e:
            raise RepositoryException(
                f"Failed to update ticket: {e}", {"ticket_id": ticket_id}
            ) from e

        if result.rowcount != 1:
            return None

        # Reload to drop any stale identity-map copy
        refreshed = await self._session.execute(
            select(TicketModel)
            .where(TicketModel.id == ticket_uuid)
            .execution_options(populate_existing=True)
        )
        return ticket_to_domain(refreshed.scalar_one())

    async def next_ticket_number(self, year: int) -> str:
        """Allocate the next INC-<year>-<seq> number."""
        prefix = f"INC-{year}-"
        stmt = select(func.count()).select_from(TicketModel).where(
            TicketModel.ticket_number.like(f"{prefix}%")
        )
        result = await self._session.execute(stmt)
        count = result.scalar_one()
        return f"{prefix}{count + 1:04d}"

    async def add_status_change(self, change: StatusChange) -> None:
        """Append to the status history."""
        self._session.add(StatusHistoryModel(
            id=uuid4(),
            ticket_id=_column_value("id", change.ticket_id),
            from_status=_column_value("from_status", change.from_status),
            to_status=_column_value("to_status", change.to_status),
            changed_by=_parse_uuid(change.changed_by),
            note=change.note,
            changed_at=change.changed_at,
        ))
        await self._session.flush()


class SQLAlchemyUserDirectory(IUserDirectory):
    """Reads users for assignment, escalation and request authorization."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_user(self, user_id: str) -> Optional[User]:
        user_uuid = _parse_uuid(user_id)
        if user_uuid is None:
            return None

        stmt = select(UserModel).where(UserModel.id == user_uuid)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return user_to_domain(model) if model else None

    async def list_active_users(self, roles: Sequence[UserRole]) -> List[User]:
        stmt = (
            select(UserModel)
            .where(
                UserModel.is_active.is_(True),
                UserModel.role.in_([UserRole(r).value for r in roles]),
            )
            .order_by(UserModel.id)
        )
        result = await self._session.execute(stmt)
        return [user_to_domain(m) for m in result.scalars().all()]


class SQLAlchemyCategoryLookup(ICategoryLookup):
    """Reads categories and their default agents."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_category(self, category_id: str) -> Optional[Category]:
        category_uuid = _parse_uuid(category_id)
        if category_uuid is None:
            return None

        stmt = select(CategoryModel).where(CategoryModel.id == category_uuid)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        if model is None:
            return None

        return Category(
            id=str(model.id),
            name=model.name,
            default_agent_id=_str_or_none(model.default_agent_id),
        )
