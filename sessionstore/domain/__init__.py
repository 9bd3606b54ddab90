"""
Domain Models - Pure session entities.

No infrastructure dependencies. Domain logic only.
"""

from sessionstore.domain.session import Session, Agent, IPAddress
from sessionstore.domain.errors import SessionStoreError, DuplicateIDError

__all__ = [
    "Session",
    "Agent",
    "IPAddress",
    "SessionStoreError",
    "DuplicateIDError",
]
