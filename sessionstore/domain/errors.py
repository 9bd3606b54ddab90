"""
Domain errors raised by session stores.
"""


class SessionStoreError(Exception):
    """Base class for session store errors."""
    pass


class DuplicateIDError(SessionStoreError):
    """Raised when a session is created with an ID that already exists."""

    def __init__(self, session_id: str):
        super().__init__(f"duplicate session ID: {session_id}")
        self.session_id = session_id
