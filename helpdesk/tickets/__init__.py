"""
Tickets Module
==============

Bounded Context for the ticket lifecycle.

Responsibilities:
- File tickets with derived priority and SLA deadlines
- Enforce the configured status workflow
- Restart the SLA cycle when a ticket is reopened
- Auto-close tickets left in Resolved
- Own the repository interfaces and SQLAlchemy models shared by
  the other contexts
"""

__version__ = "1.0.0"
