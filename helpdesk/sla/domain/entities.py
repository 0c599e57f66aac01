"""
SLA Domain Entities
====================

Pure Python domain objects produced by SLA evaluation.

Following Domain-Driven Design principles, these entities contain
business logic and are free of infrastructure concerns.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, List

from helpdesk.config import Priority, SLAKind, SLAState
from helpdesk.sla.domain.value_objects import SLACalculator


@dataclass(frozen=True)
class TicketRef:
    """The part of a ticket a notification needs to reference it."""
    ticket_id: str
    ticket_number: str
    title: str
    priority: Priority


@dataclass
class SLAClockReading:
    """State of one SLA clock at an evaluation instant."""
    kind: SLAKind
    due: datetime
    state: SLAState
    remaining_seconds: float

    @property
    def is_breached(self) -> bool:
        return self.state == SLAState.BREACHED


@dataclass
class SLABadge:
    """Both clocks of a ticket, as shown next to it in listings."""
    ticket_id: str
    priority: Priority
    evaluated_at: datetime
    first_response: Optional[SLAClockReading] = None
    resolution: Optional[SLAClockReading] = None

    @property
    def overall_state(self) -> SLAState:
        """Most urgent state across the running clocks."""
        states = [r.state for r in (self.first_response, self.resolution) if r]
        if SLAState.BREACHED in states:
            return SLAState.BREACHED
        if SLAState.WARNING in states:
            return SLAState.WARNING
        return SLAState.OK

    @classmethod
    def evaluate(
        cls,
        ticket_id: str,
        priority: Priority,
        window_start: datetime,
        first_response_due: Optional[datetime],
        resolution_due: Optional[datetime],
        now: datetime
    ) -> "SLABadge":
        """Classify every clock that has a deadline."""

        def read(kind: SLAKind, due: Optional[datetime]) -> Optional[SLAClockReading]:
            if due is None:
                return None
            return SLAClockReading(
                kind=kind,
                due=due,
                state=SLACalculator.status(window_start, due, now),
                remaining_seconds=(due - now).total_seconds(),
            )

        return cls(
            ticket_id=ticket_id,
            priority=priority,
            evaluated_at=now,
            first_response=read(SLAKind.FIRST_RESPONSE, first_response_due),
            resolution=read(SLAKind.RESOLUTION, resolution_due),
        )

    def readings(self) -> List[SLAClockReading]:
        return [r for r in (self.first_response, self.resolution) if r]


@dataclass
class SLANotification:
    """One notification the sweep decided to send."""
    recipient: str
    ticket: TicketRef
    kind: SLAKind
    state: SLAState
    due: datetime
    remaining_text: Optional[str] = None


@dataclass
class SweepResult:
    """Tallies of one SLA sweep invocation."""
    started_at: datetime
    tickets_processed: int = 0
    first_response_breaches: int = 0
    resolution_breaches: int = 0
    first_response_warnings: int = 0
    resolution_warnings: int = 0
    notifications_attempted: int = 0
    notifications_sent: int = 0
    failures: List[str] = field(default_factory=list)

    def record(self, kind: SLAKind, state: SLAState) -> None:
        """Count one breached or warned clock."""
        if state == SLAState.BREACHED:
            if kind == SLAKind.FIRST_RESPONSE:
                self.first_response_breaches += 1
            else:
                self.resolution_breaches += 1
        elif state == SLAState.WARNING:
            if kind == SLAKind.FIRST_RESPONSE:
                self.first_response_warnings += 1
            else:
                self.resolution_warnings += 1

    @property
    def notifications_failed(self) -> int:
        return self.notifications_attempted - self.notifications_sent

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses and logs."""
        return {
            "timestamp": self.started_at.isoformat(),
            "tickets_processed": self.tickets_processed,
            "breaches": {
                "first_response": self.first_response_breaches,
                "resolution": self.resolution_breaches,
            },
            "warnings": {
                "first_response": self.first_response_warnings,
                "resolution": self.resolution_warnings,
            },
            "notifications_attempted": self.notifications_attempted,
            "notifications_sent": self.notifications_sent,
        }
