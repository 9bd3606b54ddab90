"""
Session Domain Model - Represents a persisted browsing session.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Union
from datetime import datetime, timedelta, timezone
import ipaddress
import secrets

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


def utc(value: datetime) -> datetime:
    """Normalize a datetime to aware UTC; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass
class Agent:
    """User agent details. Empty strings mean unknown."""
    os: str = ""
    browser: str = ""


@dataclass
class Session:
    """
    Session entity - one authenticated browsing session.

    Domain rules:
    - id is unique across the store
    - user_key groups sessions of the same user
    - a session is live while expires_at is in the future
    - sessions are never updated once created
    """
    id: str
    user_key: str
    created_at: datetime
    expires_at: datetime

    # Optional fields
    ip: Optional[IPAddress] = None
    agent: Agent = field(default_factory=Agent)

    # Metadata
    meta: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def create(
        cls,
        user_key: str,
        ttl: int = 3600,
        ip: Optional[Union[str, IPAddress]] = None,
        os: str = "",
        browser: str = "",
        meta: Optional[Dict[str, str]] = None,
    ) -> "Session":
        """
        Create a new session with generated ID.

        Args:
            user_key: Key of the user owning the session
            ttl: Time-to-live in seconds (default 1 hour)
            ip: Client IP, as text or ipaddress object
            os: Client operating system
            browser: Client browser
            meta: Optional string metadata

        Returns:
            New session instance
        """
        now = datetime.now(timezone.utc)
        if isinstance(ip, str):
            ip = ipaddress.ip_address(ip)

        return cls(
            id=secrets.token_urlsafe(32),
            user_key=user_key,
            created_at=now,
            expires_at=now + timedelta(seconds=ttl),
            ip=ip,
            agent=Agent(os=os, browser=browser),
            meta=dict(meta or {}),
        )

    def is_live(self, now: Optional[datetime] = None) -> bool:
        """Check if session has not expired yet."""
        if now is None:
            now = datetime.now(timezone.utc)
        return utc(self.expires_at) > utc(now)
