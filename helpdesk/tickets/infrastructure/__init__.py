"""
Tickets Infrastructure Layer
============================

SQLAlchemy models and repository implementations shared by every
bounded context.
"""

from helpdesk.tickets.infrastructure.models import (
    TicketModel,
    UserModel,
    CategoryModel,
    StatusHistoryModel,
)
from helpdesk.tickets.infrastructure.repositories import (
    SQLAlchemyTicketRepository,
    SQLAlchemyUserDirectory,
    SQLAlchemyCategoryLookup,
)

__all__ = [
    "TicketModel",
    "UserModel",
    "CategoryModel",
    "StatusHistoryModel",
    "SQLAlchemyTicketRepository",
    "SQLAlchemyUserDirectory",
    "SQLAlchemyCategoryLookup",
]
