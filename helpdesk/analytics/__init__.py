"""
Analytics Module
================

Bounded Context for ticket deflection and trend spotting.

Responsibilities:
- Similar resolved tickets and suggested solutions for a new report
- Recurring keywords across recent tickets
"""

__version__ = "1.0.0"
