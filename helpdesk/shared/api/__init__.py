"""
Shared API
==========

Middleware, exception handlers and FastAPI dependencies used by
every router.
"""
