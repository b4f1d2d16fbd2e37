"""
Data models for SCUNET authentication.

Contains DTOs for credentials, portal exchanges and call outcomes.
"""

from .auth import Credentials, Account, ServiceType
from .portal import PortalEndpoint, PortalResponse, ResponseStatus, NetworkProbe
from .outcome import AuthOutcome, LOGIN, LOGOUT

__all__ = [
    "Credentials",
    "Account",
    "ServiceType",
    "PortalEndpoint",
    "PortalResponse",
    "ResponseStatus",
    "NetworkProbe",
    "AuthOutcome",
    "LOGIN",
    "LOGOUT",
]
