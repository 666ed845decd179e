"""Auth package: credential persistence and session state."""
from .credentials import CredentialStore
from .session import Session, SessionManager, SessionStatus

__all__ = [
    "CredentialStore",
    "Session",
    "SessionManager",
    "SessionStatus",
]
