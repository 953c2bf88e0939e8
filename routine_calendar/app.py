"""
Deployment entry point for Routine Calendar API.

Re-exports the FastAPI app from routine_calendar/api/main.py.
"""

from routine_calendar.api.main import app

__all__ = ["app"]
