"""
Tickets Interfaces Layer
========================

FastAPI route handlers for the ticket lifecycle.
"""

from helpdesk.tickets.interfaces.controllers import router as tickets_router

__all__ = ["tickets_router"]
