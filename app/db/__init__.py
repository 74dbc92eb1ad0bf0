"""
Database module for the durable event log.

This module provides:
- EventRecord: SQLModel table holding one row per domain event
- SQLEventLog: EventLog implementation on top of that table
- Engine/session helpers for SQLite (default) and other async backends
"""

from app.db.event_store import SQLEventLog
from app.db.models import EventRecord
from app.db.session import create_engine, create_session_maker, create_tables

__all__ = [
    "EventRecord",
    "SQLEventLog",
    "create_engine",
    "create_session_maker",
    "create_tables",
]
