"""
Integration tests for background cleanup of expired sessions.

Uses short sweep intervals against a SQLite database file.
"""

import threading
import time
import pytest
from datetime import datetime, timedelta, timezone
from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sessionstore.adapters import SQLSessionStore
from sessionstore.domain.session import Session


def expired_session(session_id, user_key="key"):
    now = datetime.now(timezone.utc)
    return Session(
        id=session_id,
        user_key=user_key,
        created_at=now - timedelta(minutes=1),
        expires_at=now - timedelta(seconds=1),
    )


def wait_until(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def test_cleanup_removes_expired_then_stops(engine):
    """Test sweeping with a 20ms interval, then nothing after stop."""
    store = SQLSessionStore(engine, table_name="sessions", cleanup_interval=0.02)
    try:
        store.create(expired_session("id1"))
        store.create(expired_session("id2"))

        assert wait_until(lambda: store.fetch_by_user_key("key") == [])
        assert store.cleanup_errors().receive(timeout=0) is None

        store.stop_cleanup()

        store.create(expired_session("id3"))
        store.create(expired_session("id4"))
        time.sleep(0.1)

        assert len(store.fetch_by_user_key("key")) == 2
    finally:
        store.stop_cleanup()


def test_cleanup_keeps_live_sessions(engine):
    """Test the sweeper only removes expired sessions."""
    with SQLSessionStore(engine, cleanup_interval=timedelta(milliseconds=20)) as store:
        store.create(expired_session("expired"))
        store.create(Session.create(user_key="key"))

        assert wait_until(lambda: len(store.fetch_by_user_key("key")) == 1)
        time.sleep(0.05)

        sessions = store.fetch_by_user_key("key")
        assert len(sessions) == 1
        assert sessions[0].id != "expired"


def test_cleanup_disabled(engine):
    """Test interval 0 never sweeps and stopping is a no-op."""
    store = SQLSessionStore(engine, cleanup_interval=0)
    store.create(expired_session("id1"))
    time.sleep(0.05)

    assert len(store.fetch_by_user_key("key")) == 1

    store.stop_cleanup()
    store.stop_cleanup()
    assert store.cleanup_errors().receive(timeout=0) is None


def test_cleanup_error_is_delivered(engine):
    """Test a failing sweep reports on the error channel."""
    store = SQLSessionStore(engine, cleanup_interval=0.02)
    try:
        with engine.begin() as conn:
            conn.execute(text("DROP TABLE sessions"))

        error = store.cleanup_errors().receive(timeout=2)

        assert isinstance(error, OperationalError)
    finally:
        store.stop_cleanup()


def test_stop_cleanup_with_undrained_error(engine):
    """Test stopping does not hang when an error was never received."""
    store = SQLSessionStore(engine, cleanup_interval=0.01)
    with engine.begin() as conn:
        conn.execute(text("DROP TABLE sessions"))
    time.sleep(0.05)

    started = time.monotonic()
    store.stop_cleanup()

    assert time.monotonic() - started < 1
    assert store.cleanup_errors().closed


def test_cleanup_in_memory_database_from_url():
    """Test the sweeper sees the same in-memory database as callers."""
    store = SQLSessionStore.from_url("sqlite://", cleanup_interval=0.02)
    try:
        store.create(expired_session("id1"))

        assert wait_until(lambda: store.fetch_by_user_key("key") == [])
        assert store.cleanup_errors().receive(timeout=0) is None
    finally:
        store.stop_cleanup()
        store.engine.dispose()


def test_stop_cleanup_ends_drain_loop_when_disabled(engine):
    """Test draining threads finish after stop even without a sweeper."""
    store = SQLSessionStore(engine, cleanup_interval=0)
    drained = []

    drainer = threading.Thread(target=lambda: drained.extend(store.cleanup_errors()))
    drainer.start()
    time.sleep(0.02)

    store.stop_cleanup()
    drainer.join(timeout=1)

    assert not drainer.is_alive()
    assert drained == []
    assert store.cleanup_errors().closed
