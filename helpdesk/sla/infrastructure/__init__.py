"""
SLA Infrastructure Layer
========================

Outbound notification channel for the SLA sweep.
"""

from helpdesk.sla.infrastructure.external import (
    CircuitBreaker,
    CircuitState,
    EmailMessage,
    EmailNotifier,
    build_breach_message,
    build_warning_message,
)

__all__ = [
    "CircuitBreaker",
    "CircuitState",
    "EmailMessage",
    "EmailNotifier",
    "build_breach_message",
    "build_warning_message",
]
