"""
Store configuration - explicit arguments or environment variables.
"""

from dataclasses import dataclass
import os


@dataclass
class StoreConfig:
    """
    Settings for building an SQLSessionStore.

    Attributes:
        database_url: SQLAlchemy database URL
        table_name: Table holding the sessions
        cleanup_interval: Seconds between expiration sweeps, 0 disables
    """
    database_url: str
    table_name: str = "sessions"
    cleanup_interval: float = 0.0

    @classmethod
    def from_env(cls, prefix: str = "SESSIONSTORE_") -> "StoreConfig":
        """
        Read configuration from environment variables.

        Variables (with default prefix):
            SESSIONSTORE_DATABASE_URL: required
            SESSIONSTORE_TABLE_NAME: optional, default "sessions"
            SESSIONSTORE_CLEANUP_INTERVAL: optional seconds, default 0

        Raises:
            ValueError: If the URL is missing or the interval is not a number
        """
        database_url = os.environ.get(f"{prefix}DATABASE_URL")
        if not database_url:
            raise ValueError(f"{prefix}DATABASE_URL is not set")

        raw_interval = os.environ.get(f"{prefix}CLEANUP_INTERVAL", "0")
        try:
            cleanup_interval = float(raw_interval)
        except ValueError:
            raise ValueError(f"{prefix}CLEANUP_INTERVAL must be a number of seconds, got {raw_interval!r}")

        return cls(
            database_url=database_url,
            table_name=os.environ.get(f"{prefix}TABLE_NAME", "sessions"),
            cleanup_interval=cleanup_interval,
        )
