"""
Session Store - SQL persistence for session records

Hexagonal layout: domain records, a storage port, and an SQLAlchemy
adapter that sweeps expired sessions in the background.

Usage:
    from sqlalchemy import create_engine
    from sessionstore import Session, SQLSessionStore

    store = SQLSessionStore(create_engine("sqlite:///sessions.db"), cleanup_interval=60)

    session = Session.create(user_key="alice", ip="127.0.0.1")
    store.create(session)
    store.fetch_by_id(session.id)
"""

__version__ = "0.1.0"

from sessionstore.domain.session import Session, Agent
from sessionstore.domain.errors import SessionStoreError, DuplicateIDError
from sessionstore.adapters.sql_session import SQLSessionStore
from sessionstore.config import StoreConfig
from sessionstore.sweeper import ErrorChannel, ExpirationSweeper, SweeperState

__all__ = [
    "Session",
    "Agent",
    "SessionStoreError",
    "DuplicateIDError",
    "SQLSessionStore",
    "StoreConfig",
    "ErrorChannel",
    "ExpirationSweeper",
    "SweeperState",
]
