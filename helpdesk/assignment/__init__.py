"""
Assignment Module
=================

Bounded Context for routing tickets to agents.

Responsibilities:
- Pick the best agent (category default unless overloaded, else least busy)
- Assign, reassign and bulk-assign with conditional writes
- Per-agent workload and SLA compliance
"""

__version__ = "1.0.0"
