"""
Core utilities for SCUNET authentication.

Provides configuration, logging, request context and the error taxonomy.
"""

from .config import Config
from .logger import setup_logger, LoggerContext
from .context import AuthContext
from .exceptions import (
    ErrorKind,
    AuthError,
    InvalidInput,
    DiscoveryError,
    CredentialsRejected,
    PortalBusy,
    ProtocolError,
    NetworkError,
    Cancelled,
)
from . import constants

__all__ = [
    "Config",
    "setup_logger",
    "LoggerContext",
    "AuthContext",
    "ErrorKind",
    "AuthError",
    "InvalidInput",
    "DiscoveryError",
    "CredentialsRejected",
    "PortalBusy",
    "ProtocolError",
    "NetworkError",
    "Cancelled",
    "constants",
]
