"""
Analytics Domain Entities
=========================

Ephemeral views computed from ticket state on every query.
"""

from dataclasses import dataclass, field
from typing import List

from helpdesk.tickets.domain import Ticket


@dataclass(frozen=True)
class SimilarityResult:
    """A past ticket and how closely it matches a query (0-100)."""
    ticket: Ticket
    similarity: int


@dataclass
class RecurringPattern:
    """A keyword seen in `count` distinct tickets of the lookback window."""
    keyword: str
    count: int = 0
    tickets: List[Ticket] = field(default_factory=list)
