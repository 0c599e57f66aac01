"""
Infrastructure
==============

Database engine/session management and workflow configuration loading.
"""
