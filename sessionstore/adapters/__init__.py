"""
Adapters - Implementations of ports.

Session Storage:
- SQLSessionStore: single SQL table via SQLAlchemy, with background
  expiration sweeping
"""

from sessionstore.adapters.sql_session import SQLSessionStore, sessions_table

__all__ = [
    "SQLSessionStore",
    "sessions_table",
]
