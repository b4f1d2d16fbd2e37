"""
Authentication data models.

Contains DTOs for credentials, saved accounts and ISP service selection.
"""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import List, Mapping, Optional


class ServiceType(Enum):
    """
    Egress service selected at login.

    Each member carries the label shown to users and the backend value
    passed around in extra parameters.
    """

    CAMPUS_NET = ("校园网", "EDUNET")
    CHINA_TELECOM = ("中国电信", "CHINATELECOM")
    CHINA_MOBILE = ("中国移动", "CHINAMOBILE")
    CHINA_UNICOM = ("中国联通", "CHINAUNICOM")

    def __init__(self, display_name: str, backend_value: str):
        self.display_name = display_name
        self.backend_value = backend_value

    @classmethod
    def display_names(cls) -> List[str]:
        return [member.display_name for member in cls]

    @classmethod
    def from_display_name(cls, display_name: str) -> Optional["ServiceType"]:
        for member in cls:
            if member.display_name == display_name:
                return member
        return None

    @classmethod
    def from_backend_value(cls, backend_value: str) -> Optional["ServiceType"]:
        for member in cls:
            if member.backend_value == backend_value:
                return member
        return None

    @classmethod
    def lookup(cls, value: Optional[str]) -> Optional["ServiceType"]:
        """
        Resolve a service from a backend value, display name or common alias.

        Args:
            value: e.g. "CHINAMOBILE", "中国移动", "cmcc"

        Returns:
            Matching service type, or None if unknown
        """
        if not value:
            return None
        cleaned = value.strip()
        member = cls.from_backend_value(cleaned.upper()) or cls.from_display_name(cleaned)
        if member:
            return member
        return _SERVICE_ALIASES.get(cleaned.lower())


_SERVICE_ALIASES = {
    "edunet": ServiceType.CAMPUS_NET,
    "campus": ServiceType.CAMPUS_NET,
    "internet": ServiceType.CAMPUS_NET,
    "telecom": ServiceType.CHINA_TELECOM,
    "ctcc": ServiceType.CHINA_TELECOM,
    "chinanet": ServiceType.CHINA_TELECOM,
    "mobile": ServiceType.CHINA_MOBILE,
    "cmcc": ServiceType.CHINA_MOBILE,
    "unicom": ServiceType.CHINA_UNICOM,
    "cucc": ServiceType.CHINA_UNICOM,
}


@dataclass(frozen=True)
class Credentials:
    """Credentials for one authentication attempt."""

    username: str
    password: str = field(repr=False)
    extra: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        # Freeze a private copy so callers cannot mutate it mid-attempt
        object.__setattr__(self, "extra", MappingProxyType(dict(self.extra)))

    @property
    def service(self) -> Optional[ServiceType]:
        """Service selected through the 'service' (or 'isp') extra parameter."""
        return ServiceType.lookup(self.extra.get("service") or self.extra.get("isp"))


@dataclass
class Account:
    """Saved account as persisted by the account store."""

    name: str
    username: str
    password: str = field(repr=False)
    service_type: str = ServiceType.CAMPUS_NET.backend_value
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def extra(self) -> dict:
        """Extra parameters used when logging in with this account."""
        return {"service": self.service_type}
