"""
Ports - Interfaces for session persistence.

Hexagonal architecture: These define WHAT we need, not HOW.
Adapters provide the HOW.
"""

from sessionstore.ports.session_port import SessionStorePort

__all__ = [
    "SessionStorePort",
]
