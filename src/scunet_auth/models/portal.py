"""
Portal data models.

Contains DTOs exchanged between the portal clients and the session layer.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class ResponseStatus(Enum):
    """Outcome domain of a single portal exchange."""

    SUCCESS = "success"
    ALREADY_AUTHENTICATED = "already_authenticated"
    WRONG_CREDENTIALS = "wrong_credentials"
    PORTAL_ERROR = "portal_error"
    NETWORK_ERROR = "network_error"


@dataclass(frozen=True)
class PortalEndpoint:
    """Portal location learned during discovery."""

    variant: str
    base_url: str
    portal_url: str = ""
    query_string: str = ""
    params: Dict[str, str] = field(default_factory=dict)


@dataclass
class PortalResponse:
    """Parsed result of one portal request."""

    status: ResponseStatus
    message: str = ""
    raw: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status in (ResponseStatus.SUCCESS, ResponseStatus.ALREADY_AUTHENTICATED)


@dataclass
class NetworkProbe:
    """Result of the lightweight connectivity check."""

    authenticated: bool
    portal_url: Optional[str] = None
    status_code: Optional[int] = None
