"""
SLA Monitoring Module
=====================

Bounded Context for Service Level Agreement tracking and escalation.

Responsibilities:
- Derive priority from impact and urgency
- Calculate first-response and resolution deadlines
- Classify clocks as ok, warning or breached
- Sweep open tickets and notify agents, requesters and escalation contacts
"""

__version__ = "1.0.0"
