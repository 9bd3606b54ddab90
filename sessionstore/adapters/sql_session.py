"""
SQL Session Store - SQLAlchemy-backed session storage.
"""

from typing import Any, Dict, List, Optional, Union
from datetime import datetime, timedelta, timezone
import logging

from sqlalchemy import Column, DateTime, MetaData, Table, Text, create_engine, delete, insert, select
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import IntegrityError
from sqlalchemy.pool import StaticPool

from sessionstore.adapters.sql_codec import (
    decode_metadata,
    encode_metadata,
    nullable_text,
    parse_ip,
    text_or_empty,
)
from sessionstore.config import StoreConfig
from sessionstore.domain.errors import DuplicateIDError
from sessionstore.domain.session import Agent, Session, utc
from sessionstore.ports.session_port import SessionStorePort
from sessionstore.sweeper import ErrorChannel, ExpirationSweeper

logger = logging.getLogger(__name__)


def sessions_table(table_name: str, metadata: Optional[MetaData] = None) -> Table:
    """Build the session table definition under the given name."""
    return Table(
        table_name,
        metadata if metadata is not None else MetaData(),
        Column("created_at", DateTime(timezone=True), nullable=False),
        Column("expires_at", DateTime(timezone=True), nullable=False),
        Column("id", Text, primary_key=True),
        Column("user_key", Text, nullable=False),
        Column("ip", Text, nullable=True),
        Column("agent_os", Text, nullable=True),
        Column("agent_browser", Text, nullable=True),
        Column("metadata", Text, nullable=True),
    )


UNIQUE_VIOLATION_SQLSTATE = "23505"
UNIQUE_VIOLATION_SQLITE = frozenset({"SQLITE_CONSTRAINT_PRIMARYKEY", "SQLITE_CONSTRAINT_UNIQUE"})
UNIQUE_VIOLATION_MESSAGES = ("unique constraint", "duplicate key", "duplicate entry")


def _is_memory_database(url) -> bool:
    """Check if a SQLite URL points at an in-memory database."""
    database = url.database or ""
    return database in ("", ":memory:") or url.query.get("mode") == "memory"


def _is_unique_violation(error: IntegrityError) -> bool:
    """
    Check if an integrity error is a primary key or unique violation.

    The id column is the only unique column, so such a violation always
    means a duplicate session ID.
    """
    orig = error.orig
    if getattr(orig, "sqlite_errorname", None) in UNIQUE_VIOLATION_SQLITE:
        return True
    if getattr(orig, "pgcode", None) == UNIQUE_VIOLATION_SQLSTATE:
        return True

    message = str(orig).lower()
    return any(marker in message for marker in UNIQUE_VIOLATION_MESSAGES)


class SQLSessionStore(SessionStorePort):
    """
    SQL table session storage.

    The engine is shared with the caller and never disposed here.
    Expired rows stay in the table (invisible to fetch_by_id) until the
    sweeper or an explicit delete removes them.

    Example:
        engine = create_engine("sqlite:///sessions.db")
        store = SQLSessionStore(engine, cleanup_interval=60)

        threading.Thread(target=drain, args=(store.cleanup_errors(),)).start()
        store.create(Session.create(user_key="alice"))
    """

    def __init__(
        self,
        engine: Engine,
        table_name: str = "sessions",
        cleanup_interval: Union[float, timedelta] = 0,
    ):
        """
        Initialize SQL session store.

        Creates the table if it does not exist and starts the expiration
        sweeper when cleanup_interval is positive.

        Args:
            engine: SQLAlchemy engine (shared, not owned)
            table_name: Table holding the sessions
            cleanup_interval: Seconds (or timedelta) between sweeps, 0 disables
        """
        if isinstance(cleanup_interval, timedelta):
            cleanup_interval = cleanup_interval.total_seconds()

        self._engine = engine
        self._table = sessions_table(table_name)
        self._errors = ErrorChannel()
        self._sweeper: Optional[ExpirationSweeper] = None

        self._table.metadata.create_all(engine, checkfirst=True)
        logger.debug(f"Session table '{table_name}' ready")

        if cleanup_interval > 0:
            self._sweeper = ExpirationSweeper(
                self.delete_expired,
                cleanup_interval,
                self._errors,
                name=f"session-sweeper-{table_name}",
            )
            self._sweeper.start()

    @classmethod
    def from_url(
        cls,
        url: str,
        table_name: str = "sessions",
        cleanup_interval: Union[float, timedelta] = 0,
        **engine_kwargs: Any,
    ) -> "SQLSessionStore":
        """
        Create the engine from a database URL and build a store on it.

        SQLite engines are set up so the sweeper thread can share them:
        same-thread checks are off, and in-memory databases use a single
        connection for every thread.

        Args:
            url: SQLAlchemy database URL
            table_name: Table holding the sessions
            cleanup_interval: Seconds (or timedelta) between sweeps, 0 disables
            engine_kwargs: Extra arguments for create_engine

        Returns:
            Store bound to the new engine
        """
        parsed = make_url(url)
        if parsed.get_backend_name() == "sqlite":
            # the sweeper thread shares the pool with callers
            connect_args = dict(engine_kwargs.pop("connect_args", {}))
            connect_args.setdefault("check_same_thread", False)
            engine_kwargs["connect_args"] = connect_args

            # otherwise each thread opens its own empty database
            if _is_memory_database(parsed):
                engine_kwargs.setdefault("poolclass", StaticPool)

        return cls(create_engine(url, **engine_kwargs), table_name, cleanup_interval)

    @classmethod
    def from_config(cls, config: StoreConfig) -> "SQLSessionStore":
        """
        Build a store from a StoreConfig.

        Args:
            config: Database URL, table name and sweep interval

        Returns:
            Store bound to a new engine
        """
        return cls.from_url(config.database_url, config.table_name, config.cleanup_interval)

    @property
    def engine(self) -> Engine:
        """Engine the store runs on (owned by the caller)."""
        return self._engine

    @property
    def table(self) -> Table:
        """SQLAlchemy table holding the sessions."""
        return self._table

    @property
    def table_name(self) -> str:
        """Name of the session table."""
        return self._table.name

    def create(self, session: Session) -> None:
        """
        Insert a new session row.

        Args:
            session: Session to persist

        Raises:
            DuplicateIDError: If the ID is already taken
            SQLAlchemyError: Any other database failure, unchanged
        """
        try:
            with self._engine.begin() as conn:
                conn.execute(insert(self._table).values(self._to_row(session)))
        except IntegrityError as e:
            # NOT NULL violations are integrity errors too; the row lookup
            # covers drivers whose errors are not recognized
            if _is_unique_violation(e) or self._exists(session.id):
                raise DuplicateIDError(session.id) from e
            raise

    def fetch_by_id(self, session_id: str) -> Optional[Session]:
        """
        Get a session that has not expired yet.

        Args:
            session_id: Session ID

        Returns:
            Session if found and live, None otherwise
        """
        now = datetime.now(timezone.utc)
        query = select(self._table).where(
            self._table.c.id == session_id,
            self._table.c.expires_at > now,
        )
        with self._engine.connect() as conn:
            row = conn.execute(query).first()

        if row is None:
            return None
        return self._from_row(row._mapping)

    def fetch_by_user_key(self, user_key: str) -> List[Session]:
        """
        List all sessions of a user, including expired ones.

        Args:
            user_key: User key

        Returns:
            Sessions ordered by creation time
        """
        query = (
            select(self._table)
            .where(self._table.c.user_key == user_key)
            .order_by(self._table.c.created_at)
        )
        with self._engine.connect() as conn:
            rows = conn.execute(query).all()

        return [self._from_row(row._mapping) for row in rows]

    def delete_by_id(self, session_id: str) -> None:
        """Delete a session; unknown IDs are ignored."""
        with self._engine.begin() as conn:
            conn.execute(delete(self._table).where(self._table.c.id == session_id))

    def delete_by_user_key(self, user_key: str, *keep_ids: str) -> None:
        """
        Delete all sessions of a user except the ones in keep_ids.

        Args:
            user_key: User key
            keep_ids: Session IDs to keep
        """
        statement = delete(self._table).where(self._table.c.user_key == user_key)
        if keep_ids:
            statement = statement.where(self._table.c.id.not_in(keep_ids))

        with self._engine.begin() as conn:
            conn.execute(statement)

    def delete_expired(self) -> int:
        """
        Delete every session whose expiry has passed.

        Returns:
            Number of sessions deleted
        """
        now = datetime.now(timezone.utc)
        with self._engine.begin() as conn:
            result = conn.execute(delete(self._table).where(self._table.c.expires_at < now))
            return result.rowcount

    def stop_cleanup(self) -> None:
        """
        Stop the expiration sweeper and close the error channel.

        Safe when sweeping was never enabled; loops draining the channel
        end either way. A stopped sweeper cannot be restarted; build a new
        store instead.
        """
        if self._sweeper is not None:
            self._sweeper.stop()
        else:
            self._errors.close()

    def cleanup_errors(self) -> ErrorChannel:
        """
        Channel delivering errors from the expiration sweeper.

        NOTE: must be drained, the sweeper blocks on an undelivered error.
        """
        return self._errors

    def __enter__(self) -> "SQLSessionStore":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop_cleanup()

    def _exists(self, session_id: str) -> bool:
        query = select(self._table.c.id).where(self._table.c.id == session_id)
        with self._engine.connect() as conn:
            return conn.execute(query).first() is not None

    def _to_row(self, session: Session) -> Dict[str, Any]:
        """Convert Session to column values."""
        return {
            "created_at": utc(session.created_at),
            "expires_at": utc(session.expires_at),
            "id": session.id,
            "user_key": session.user_key,
            "ip": nullable_text(str(session.ip)),
            "agent_os": nullable_text(session.agent.os),
            "agent_browser": nullable_text(session.agent.browser),
            "metadata": encode_metadata(session.meta),
        }

    def _from_row(self, row) -> Session:
        """Convert column values to Session."""
        return Session(
            id=row["id"],
            user_key=row["user_key"],
            created_at=utc(row["created_at"]),
            expires_at=utc(row["expires_at"]),
            ip=parse_ip(row["ip"]),
            agent=Agent(
                os=text_or_empty(row["agent_os"]),
                browser=text_or_empty(row["agent_browser"]),
            ),
            meta=decode_metadata(row["metadata"]),
        )
