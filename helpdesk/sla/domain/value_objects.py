"""
SLA Value Objects
==================

Immutable value objects for the SLA domain.

Value objects are defined by their attributes rather than an identity.
They are immutable and can be freely shared.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict

from pydantic import BaseModel, Field, field_validator

from helpdesk.config import (
    Impact, Urgency, Priority, SLAState, SLA_WARNING_RATIO
)


class PriorityMatrix:
    """
    Impact x urgency lookup.

    The only place a priority is ever computed.
    """

    TABLE: Dict[Impact, Dict[Urgency, Priority]] = {
        Impact.LOW: {
            Urgency.LOW: Priority.P4,
            Urgency.MEDIUM: Priority.P3,
            Urgency.HIGH: Priority.P2,
        },
        Impact.MEDIUM: {
            Urgency.LOW: Priority.P3,
            Urgency.MEDIUM: Priority.P2,
            Urgency.HIGH: Priority.P1,
        },
        Impact.HIGH: {
            Urgency.LOW: Priority.P2,
            Urgency.MEDIUM: Priority.P1,
            Urgency.HIGH: Priority.P1,
        },
    }

    @classmethod
    def priority(cls, impact: Impact, urgency: Urgency) -> Priority:
        """Map (impact, urgency) to a priority tier."""
        return cls.TABLE[Impact(impact)][Urgency(urgency)]


@dataclass(frozen=True)
class SLADueDates:
    """First-response and resolution deadlines for one SLA cycle."""
    first_response_due: datetime
    resolution_due: datetime


class SLATarget(BaseModel):
    """Minutes allowed per clock for one priority."""
    first_response: int = Field(gt=0, description="Minutes to first response")
    resolution: int = Field(gt=0, description="Minutes to resolution")


DEFAULT_SLA_TARGETS: Dict[str, Dict[str, int]] = {
    Priority.P1.value: {"first_response": 15, "resolution": 240},
    Priority.P2.value: {"first_response": 60, "resolution": 1440},
    Priority.P3.value: {"first_response": 240, "resolution": 4320},
    Priority.P4.value: {"first_response": 1440, "resolution": 10080},
}


class SLAPolicy(BaseModel):
    """
    SLA targets keyed by priority.

    Loaded from the workflow YAML; any priority missing there keeps
    its default target.
    """
    targets: Dict[Priority, SLATarget] = Field(
        default_factory=lambda: {
            Priority(p): SLATarget(**t) for p, t in DEFAULT_SLA_TARGETS.items()
        },
        description="SLA targets in minutes by priority"
    )

    @field_validator("targets", mode="before")
    @classmethod
    def fill_missing_priorities(cls, v: dict) -> dict:
        """Ensure every priority has a target."""
        merged = dict(v or {})
        for priority, target in DEFAULT_SLA_TARGETS.items():
            if priority not in merged and Priority(priority) not in merged:
                merged[priority] = target
        return merged

    def target_for(self, priority: Priority) -> SLATarget:
        return self.targets[Priority(priority)]


class SLACalculator:
    """
    Pure functions for SLA calculations.

    Stateless utility class: the interactive badge and the periodic
    sweep both classify through `status`.
    """

    @staticmethod
    def due_dates(
        priority: Priority,
        created_at: datetime,
        policy: SLAPolicy | None = None
    ) -> SLADueDates:
        """
        Calculate both SLA deadlines for a ticket.

        Args:
            priority: Ticket priority
            created_at: Start of the SLA cycle
            policy: Targets to apply (defaults to the built-in table)

        Returns:
            SLADueDates
        """
        target = (policy or SLAPolicy()).target_for(priority)
        return SLADueDates(
            first_response_due=created_at + timedelta(minutes=target.first_response),
            resolution_due=created_at + timedelta(minutes=target.resolution),
        )

    @staticmethod
    def is_breached(due: datetime, now: datetime) -> bool:
        """Strictly past the deadline; equality is not a breach."""
        return now > due

    @staticmethod
    def status(created_at: datetime, due: datetime, now: datetime) -> SLAState:
        """
        Classify remaining time on one SLA clock.

        Args:
            created_at: Start of the SLA window
            due: The SLA deadline
            now: Evaluation instant

        Returns:
            SLAState: breached at or past due, warning when less than
            20% of the window remains, ok otherwise
        """
        remaining = due - now
        window = due - created_at

        if remaining <= timedelta(0):
            return SLAState.BREACHED
        if remaining < window * SLA_WARNING_RATIO:
            return SLAState.WARNING
        return SLAState.OK

    @staticmethod
    def remaining_text(due: datetime, now: datetime) -> str:
        """
        Human readable time left, largest whole unit only.

        Examples: "2 days", "1 hour", "47 minutes", "less than 1 minute".
        """
        minutes = int((due - now).total_seconds() // 60)
        hours = minutes // 60
        days = hours // 24

        if days > 0:
            return f"{days} day{'s' if days > 1 else ''}"
        if hours > 0:
            return f"{hours} hour{'s' if hours > 1 else ''}"
        if minutes > 0:
            return f"{minutes} minute{'s' if minutes > 1 else ''}"
        return "less than 1 minute"
