"""
Core Module
============

Shared core utilities and abstractions used across the application.

This module contains framework-agnostic code that defines the fundamental
building blocks of the system.
"""

from helpdesk.core.clock import Clock, SystemClock, FixedClock
from helpdesk.core.exceptions import (
    ApplicationException,
    DomainException,
    RepositoryException,
    ValidationException,
    ResourceNotFoundException,
    ConfigurationException,
    ExternalServiceException,
    NotificationException,
    InvalidStatusTransitionException,
    ConcurrentModificationException,
)

__all__ = [
    "Clock",
    "SystemClock",
    "FixedClock",
    "ApplicationException",
    "DomainException",
    "RepositoryException",
    "ValidationException",
    "ResourceNotFoundException",
    "ConfigurationException",
    "ExternalServiceException",
    "NotificationException",
    "InvalidStatusTransitionException",
    "ConcurrentModificationException",
]
