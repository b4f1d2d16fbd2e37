"""
Error taxonomy for portal authentication.

Every failure that leaves the session layer is one of the classes below.
Transient kinds are retried by the session state machine; everything else
propagates to the caller unchanged.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(Enum):
    """Classification of authentication failures."""

    INVALID_INPUT = "invalid_input"
    """Malformed username or extra parameters."""

    DISCOVERY = "discovery_error"
    """No captive portal could be located."""

    CREDENTIALS_REJECTED = "credentials_rejected"
    """Portal explicitly denied the credentials."""

    PORTAL_BUSY = "portal_busy"
    """Portal is rate limiting or temporarily unavailable."""

    PROTOCOL = "protocol_error"
    """Portal reply did not have the expected shape."""

    NETWORK = "network_error"
    """Transport-level failure."""

    CANCELLED = "cancelled"
    """Context was cancelled or its deadline passed."""


class AuthError(Exception):
    """Base exception for classified authentication errors."""

    kind: ErrorKind = ErrorKind.PROTOCOL
    transient: bool = False

    def __init__(self, message: str, diagnostics: Optional[Dict[str, Any]] = None):
        """
        Initialize authentication error.

        Args:
            message: Human readable detail (must not contain the password)
            diagnostics: Extra information for logs (status codes, raw payload)
        """
        super().__init__(message)
        self.message = message
        self.diagnostics = diagnostics or {}

    def __str__(self) -> str:
        return f"[{self.kind.value}] {self.message}"


class InvalidInput(AuthError):
    """Raised before any network call when the input cannot be used."""

    kind = ErrorKind.INVALID_INPUT


class DiscoveryError(AuthError):
    """Raised when no captive portal redirect is observed."""

    kind = ErrorKind.DISCOVERY


class CredentialsRejected(AuthError):
    """Raised when the portal refuses the username/password."""

    kind = ErrorKind.CREDENTIALS_REJECTED


class PortalBusy(AuthError):
    """Raised when the portal asks us to come back later."""

    kind = ErrorKind.PORTAL_BUSY
    transient = True


class ProtocolError(AuthError):
    """Raised when a reply does not match the portal variant."""

    kind = ErrorKind.PROTOCOL


class NetworkError(AuthError):
    """Raised for transport failures (unreachable, timeout, broken reply)."""

    kind = ErrorKind.NETWORK
    transient = True


class Cancelled(AuthError):
    """Raised when the request context is cancelled or expires."""

    kind = ErrorKind.CANCELLED
