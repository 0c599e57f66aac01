"""
Analytics Interfaces Layer
==========================

FastAPI route handlers for suggestions and recurring issues.
"""

from helpdesk.analytics.interfaces.controllers import router as analytics_router

__all__ = ["analytics_router"]
