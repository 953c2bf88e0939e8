"""
Routine Calendar.

Google Calendar backend for agent-driven event CRUD and idempotent
materialization of weekly routines.
"""

__version__ = "0.1.0"
