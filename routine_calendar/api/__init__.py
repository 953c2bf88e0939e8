"""
Routine Calendar API module.

Provides FastAPI HTTP endpoints for calendar CRUD and routine sync.
"""

from routine_calendar.api.main import app, run_server

__all__ = ["app", "run_server"]
