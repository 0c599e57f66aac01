"""
SLA External Service Integrations
==================================

Outbound notification channel for the SLA sweep:
- Transactional email over HTTP (Resend-compatible API)
- Circuit breaker shared by all sends of one notifier
"""

import asyncio
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

import httpx

from helpdesk.config import SLAKind
from helpdesk.core import NotificationException
from helpdesk.sla.application.services import INotifier
from helpdesk.sla.domain import TicketRef
from helpdesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

KIND_LABELS = {
    SLAKind.FIRST_RESPONSE: "First response",
    SLAKind.RESOLUTION: "Resolution",
}


class CircuitState:
    """Circuit breaker states."""
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreaker:
    """
    Circuit breaker for preventing cascade failures.

    States:
    - CLOSED: Normal operation, requests pass through
    - OPEN: After N failures, reject all requests for M seconds
    - HALF_OPEN: After timeout, allow one test request
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        recovery_timeout: float = 60.0
    ):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._last_failure_time: Optional[float] = None

    @property
    def state(self) -> str:
        """Get current circuit state."""
        if self._state == CircuitState.OPEN and self._last_failure_time:
            elapsed = time.monotonic() - self._last_failure_time
            if elapsed >= self.recovery_timeout:
                self._state = CircuitState.HALF_OPEN
        return self._state

    def allow_request(self) -> bool:
        """Check if request should be allowed."""
        return self.state in (CircuitState.CLOSED, CircuitState.HALF_OPEN)

    def record_success(self) -> None:
        """Record successful request."""
        self._failure_count = 0
        self._state = CircuitState.CLOSED

    def record_failure(self) -> None:
        """Record failed request."""
        self._failure_count += 1
        self._last_failure_time = time.monotonic()

        if self._failure_count >= self.failure_threshold:
            self._state = CircuitState.OPEN
            logger.warning(
                "Circuit breaker opened",
                extra={
                    "failure_count": self._failure_count,
                    "recovery_timeout": self.recovery_timeout
                }
            )


@dataclass
class EmailMessage:
    """Plain-text email ready to send."""
    to: str
    subject: str
    text: str


def build_breach_message(
    recipient: str,
    ticket: TicketRef,
    sla_kind: SLAKind,
    due_at: datetime,
    app_url: str
) -> EmailMessage:
    label = KIND_LABELS[SLAKind(sla_kind)]
    return EmailMessage(
        to=recipient,
        subject=f"SLA Breach: {ticket.ticket_number} - {label} overdue",
        text=(
            f"The {label.lower()} SLA for ticket {ticket.ticket_number} has been breached.\n\n"
            f"Title: {ticket.title}\n"
            f"Priority: {ticket.priority.value}\n"
            f"Due: {due_at.isoformat()}\n\n"
            f"View ticket: {app_url}/tickets/{ticket.ticket_id}\n"
        ),
    )


def build_warning_message(
    recipient: str,
    ticket: TicketRef,
    sla_kind: SLAKind,
    due_at: datetime,
    remaining_text: str,
    app_url: str
) -> EmailMessage:
    label = KIND_LABELS[SLAKind(sla_kind)]
    return EmailMessage(
        to=recipient,
        subject=f"SLA Warning: {ticket.ticket_number} - {remaining_text} left",
        text=(
            f"The {label.lower()} SLA for ticket {ticket.ticket_number} "
            f"is due in {remaining_text}.\n\n"
            f"Title: {ticket.title}\n"
            f"Priority: {ticket.priority.value}\n"
            f"Due: {due_at.isoformat()}\n\n"
            f"View ticket: {app_url}/tickets/{ticket.ticket_id}\n"
        ),
    )


class EmailNotifier(INotifier):
    """
    Email client with circuit breaker and retry logic.

    Handles sending SLA notices with:
    - Circuit breaker to prevent cascade failures
    - Exponential backoff retry
    - Timeout handling

    Without an API key messages are only logged and count as delivered,
    which keeps local development free of an email provider.
    """

    def __init__(
        self,
        api_url: str,
        api_key: Optional[str],
        sender: str,
        app_url: str,
        timeout_seconds: float = 10.0,
        max_retries: int = 3,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        self._api_url = api_url
        self._api_key = api_key
        self._sender = sender
        self._app_url = app_url.rstrip("/")
        self._timeout = timeout_seconds
        self._max_retries = max_retries
        self._circuit_breaker = CircuitBreaker(
            failure_threshold=5,
            recovery_timeout=60
        )
        self._http_client = http_client

    @classmethod
    def from_settings(cls, settings) -> "EmailNotifier":
        return cls(
            api_url=settings.email_api_url,
            api_key=settings.email_api_key,
            sender=settings.email_from,
            app_url=settings.app_url,
            timeout_seconds=settings.email_timeout_seconds,
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self._timeout)
        return self._http_client

    async def notify_breach(
        self,
        recipient: str,
        ticket: TicketRef,
        sla_kind: SLAKind,
        due_at: datetime
    ) -> bool:
        message = build_breach_message(recipient, ticket, sla_kind, due_at, self._app_url)
        return await self.send(message, ticket.ticket_id)

    async def notify_warning(
        self,
        recipient: str,
        ticket: TicketRef,
        sla_kind: SLAKind,
        due_at: datetime,
        remaining_text: str
    ) -> bool:
        message = build_warning_message(
            recipient, ticket, sla_kind, due_at, remaining_text, self._app_url
        )
        return await self.send(message, ticket.ticket_id)

    def _payload(self, message: EmailMessage) -> Dict[str, Any]:
        return {
            "from": self._sender,
            "to": [message.to],
            "subject": message.subject,
            "text": message.text,
        }

    async def send(self, message: EmailMessage, ticket_id: str = "") -> bool:
        """
        Deliver one email.

        Returns:
            True if sent (or mocked), False after exhausting retries

        Raises:
            NotificationException: circuit breaker is open
        """
        if not self._api_key:
            logger.info(
                "Email API key not configured, logging notification instead",
                extra={
                    "to": message.to,
                    "subject": message.subject,
                    "ticket_id": ticket_id,
                }
            )
            return True

        if not self._circuit_breaker.allow_request():
            raise NotificationException(
                "Circuit breaker open, email not sent",
                {"ticket_id": ticket_id}
            )

        headers = {"Authorization": f"Bearer {self._api_key}"}
        payload = self._payload(message)

        for attempt in range(self._max_retries):
            try:
                client = await self._get_client()
                response = await client.post(self._api_url, json=payload, headers=headers)

                if response.is_success:
                    self._circuit_breaker.record_success()
                    logger.info(
                        "Email notification sent",
                        extra={"ticket_id": ticket_id, "subject": message.subject}
                    )
                    return True

                logger.warning(
                    "Email API returned error status",
                    extra={
                        "status_code": response.status_code,
                        "attempt": attempt + 1,
                        "ticket_id": ticket_id,
                    }
                )

            except httpx.HTTPError as e:
                logger.error(
                    "Email notification failed",
                    extra={
                        "error": str(e),
                        "attempt": attempt + 1,
                        "ticket_id": ticket_id,
                    }
                )

            if attempt < self._max_retries - 1:
                await asyncio.sleep(2 ** attempt)

        self._circuit_breaker.record_failure()
        return False

    async def close(self) -> None:
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None
