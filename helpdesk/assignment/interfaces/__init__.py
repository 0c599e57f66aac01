"""
Assignment Interfaces Layer
===========================

FastAPI route handlers for assignment and workload endpoints.
"""

from helpdesk.assignment.interfaces.controllers import router as assignment_router

__all__ = ["assignment_router"]
