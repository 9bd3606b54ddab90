"""
Session Store Port - Interface for session persistence.

Implementations:
- SQLSessionStore: SQL table via SQLAlchemy
"""

from abc import ABC, abstractmethod
from typing import Optional, List
from sessionstore.domain.session import Session


class SessionStorePort(ABC):
    """Port: Persist, fetch and delete sessions."""

    @abstractmethod
    def create(self, session: Session) -> None:
        """
        Store a new session.

        Args:
            session: Session to persist

        Raises:
            DuplicateIDError: If a session with the same ID exists
        """
        pass

    @abstractmethod
    def fetch_by_id(self, session_id: str) -> Optional[Session]:
        """
        Get a live session by ID.

        Args:
            session_id: Session ID

        Returns:
            Session if found and not expired, None otherwise
        """
        pass

    @abstractmethod
    def fetch_by_user_key(self, user_key: str) -> List[Session]:
        """
        List all sessions of a user, expired ones included.

        Args:
            user_key: User key

        Returns:
            List of sessions, empty if none
        """
        pass

    @abstractmethod
    def delete_by_id(self, session_id: str) -> None:
        """
        Delete a session. Unknown IDs are ignored.

        Args:
            session_id: Session ID
        """
        pass

    @abstractmethod
    def delete_by_user_key(self, user_key: str, *keep_ids: str) -> None:
        """
        Delete all sessions of a user.

        Args:
            user_key: User key
            keep_ids: Session IDs to keep
        """
        pass
