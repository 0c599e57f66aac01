"""
Shared API Dependencies
=======================

FastAPI dependencies shared by every router: clock, workflow
configuration, repositories bound to the request session, the acting
user and the cron secret check.
"""

import secrets
from typing import Callable, Optional

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.config import Settings, UserRole, get_settings
from helpdesk.core import Clock, SystemClock
from helpdesk.infrastructure.database import get_session
from helpdesk.tickets.application import (
    ITicketRepository, IUserDirectory, ICategoryLookup,
    IWorkflowConfigProvider, StaticWorkflowConfigProvider
)
from helpdesk.tickets.domain import User
from helpdesk.tickets.infrastructure import (
    SQLAlchemyTicketRepository, SQLAlchemyUserDirectory, SQLAlchemyCategoryLookup
)
from helpdesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

_system_clock = SystemClock()
_default_workflow = StaticWorkflowConfigProvider()


def get_app_settings() -> Settings:
    return get_settings()


def get_clock(request: Request) -> Clock:
    """Clock stored on app state, or the system clock."""
    return getattr(request.app.state, "clock", None) or _system_clock


def get_workflow_provider(request: Request) -> IWorkflowConfigProvider:
    """Hot-reloading manager from app state, or built-in defaults."""
    return getattr(request.app.state, "workflow_config", None) or _default_workflow


async def get_ticket_repository(
    session: AsyncSession = Depends(get_session)
) -> ITicketRepository:
    return SQLAlchemyTicketRepository(session)


async def get_user_directory(
    session: AsyncSession = Depends(get_session)
) -> IUserDirectory:
    return SQLAlchemyUserDirectory(session)


async def get_category_lookup(
    session: AsyncSession = Depends(get_session)
) -> ICategoryLookup:
    return SQLAlchemyCategoryLookup(session)


async def get_optional_user(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
    users: IUserDirectory = Depends(get_user_directory)
) -> Optional[User]:
    """Acting user from the X-User-Id header, if one was sent."""
    if not x_user_id:
        return None

    user = await users.get_user(x_user_id)
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unknown or inactive user"
        )
    return user


async def get_current_user(
    user: Optional[User] = Depends(get_optional_user)
) -> User:
    """Acting user; authentication itself happens upstream."""
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="X-User-Id header required"
        )
    return user


def require_role(minimum: UserRole) -> Callable:
    """Dependency factory rejecting users below `minimum`."""

    async def dependency(user: User = Depends(get_current_user)) -> User:
        if not user.has_role(minimum):
            logger.info(
                "Insufficient role",
                extra={"user_id": user.id, "role": user.role.value, "required": minimum.value}
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"{minimum.value} role required"
            )
        return user

    return dependency


def cron_secret_valid(authorization: Optional[str], settings: Settings) -> bool:
    """
    Bearer token check for externally triggered jobs.

    With no secret configured the check passes in development only.
    """
    if not settings.cron_secret:
        return settings.environment == "development"
    if not authorization:
        return False
    return secrets.compare_digest(authorization, f"Bearer {settings.cron_secret}")


async def verify_cron_secret(
    authorization: Optional[str] = Header(None),
    settings: Settings = Depends(get_app_settings)
) -> None:
    if not cron_secret_valid(authorization, settings):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized"
        )
