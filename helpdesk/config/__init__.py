"""
Configuration Module
====================

Application settings and configuration management using Pydantic.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic for validation and type safety.
    """

    # ========== Application ==========
    app_name: str = Field(default="helpdesk-service", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root log level")

    # ========== Server ==========
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port", ge=1, le=65535)

    # ========== Database ==========
    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/helpdesk",
        description="PostgreSQL connection URL (async)"
    )
    db_pool_size: int = Field(default=5, description="Database connection pool size", ge=1)
    db_max_overflow: int = Field(default=10, description="Max overflow connections", ge=0)

    # ========== Workflow Configuration ==========
    workflow_config_path: Path = Field(
        default=Path("workflow.yaml"),
        description="Path to the SLA targets / status transition YAML file"
    )
    watch_workflow_config: bool = Field(
        default=True,
        description="Reload workflow configuration when the file changes"
    )

    # ========== Scheduled Jobs ==========
    cron_secret: Optional[str] = Field(
        default=None,
        description="Bearer secret required by the cron endpoints"
    )
    auto_close_after_days: int = Field(
        default=7,
        description="Days a ticket stays Resolved before it is closed automatically",
        ge=1
    )
    auto_assign_on_create: bool = Field(
        default=False,
        description="Pick an agent for new tickets that carry a category"
    )

    # ========== Email Notifications ==========
    email_api_url: str = Field(
        default="https://api.resend.com/emails",
        description="Transactional email API endpoint"
    )
    email_api_key: Optional[str] = Field(
        default=None,
        description="API key for the email provider (unset: log instead of sending)"
    )
    email_from: str = Field(
        default="IT Help Desk <noreply@helpdesk.example.com>",
        description="Sender address for notifications"
    )
    email_timeout_seconds: float = Field(
        default=5.0,
        description="Timeout for email API calls",
        ge=0.1,
        le=30
    )
    app_url: str = Field(
        default="http://localhost:3000",
        description="Public URL used in notification links"
    )

    # ========== CORS ==========
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:8080"],
        description="Allowed CORS origins"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is one of allowed values."""
        allowed = {"development", "staging", "production"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


# ========== Constants ==========

class Impact(str, Enum):
    """How many people or how much of the business an issue affects."""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class Urgency(str, Enum):
    """How quickly the caller needs the issue resolved."""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class Priority(str, Enum):
    """Derived severity tier, P1 most urgent."""
    P1 = "P1"
    P2 = "P2"
    P3 = "P3"
    P4 = "P4"


class TicketStatus(str, Enum):
    """Ticket lifecycle statuses."""
    NEW = "New"
    ASSIGNED = "Assigned"
    IN_PROGRESS = "InProgress"
    PENDING = "Pending"
    RESOLVED = "Resolved"
    CLOSED = "Closed"


class UserRole(str, Enum):
    """User roles, ordered by privilege through ROLE_HIERARCHY."""
    EMPLOYEE = "Employee"
    AGENT = "Agent"
    TEAM_LEAD = "TeamLead"
    ADMIN = "Admin"


class SLAKind(str, Enum):
    """Types of SLA clocks."""
    FIRST_RESPONSE = "first_response"
    RESOLUTION = "resolution"


class SLAState(str, Enum):
    """Remaining-time classification of an SLA clock."""
    OK = "ok"
    WARNING = "warning"
    BREACHED = "breached"


# Higher number = more privileges
ROLE_HIERARCHY = {
    UserRole.EMPLOYEE: 0,
    UserRole.AGENT: 1,
    UserRole.TEAM_LEAD: 2,
    UserRole.ADMIN: 3,
}


def has_role(role: UserRole, minimum: UserRole) -> bool:
    """Check that `role` is at least `minimum` in the role hierarchy."""
    return ROLE_HIERARCHY[UserRole(role)] >= ROLE_HIERARCHY[UserRole(minimum)]


# ========== Lists for validation ==========

OPEN_STATUSES = [
    TicketStatus.NEW, TicketStatus.ASSIGNED,
    TicketStatus.IN_PROGRESS, TicketStatus.PENDING
]
CLOSED_STATUSES = [TicketStatus.RESOLVED, TicketStatus.CLOSED]
VALID_SLA_KINDS = [SLAKind.FIRST_RESPONSE, SLAKind.RESOLUTION]

# Share of the SLA window below which a running clock is flagged as a warning
SLA_WARNING_RATIO = 0.2
