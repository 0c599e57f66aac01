"""
Helpdesk Service
================

IT helpdesk core: priority matrix, SLA clocks and sweep, assignment
engine, and similarity / recurrence analytics.
"""

__version__ = "1.0.0"
