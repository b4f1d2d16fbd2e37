"""
Business logic services for SCUNET authentication.

Services orchestrate portal operations and provide higher-level functionality.
"""

from .session import AuthSession, SessionState
from .authenticator import Authenticator
from .accounts import AccountRepository

__all__ = [
    "AuthSession",
    "SessionState",
    "Authenticator",
    "AccountRepository",
]
