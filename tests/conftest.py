"""
Shared fixtures: a file-backed SQLite engine per test.
"""

import pytest
from sqlalchemy import create_engine


@pytest.fixture
def engine(tmp_path):
    """SQLite engine usable from the sweeper thread."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'sessions.db'}",
        connect_args={"check_same_thread": False},
    )
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine):
    """Session store without background sweeping."""
    from sessionstore.adapters import SQLSessionStore

    store = SQLSessionStore(engine, table_name="sessions")
    yield store
    store.stop_cleanup()
