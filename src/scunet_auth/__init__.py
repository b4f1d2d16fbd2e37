"""
SCUNET Authentication Client

This package logs in to and out of campus captive portals (Ruijie and
Dr.COM ePortal) on behalf of a user.
"""

__version__ = "0.1.0"
__description__ = "Captive portal authentication client for SCUNET"


def __getattr__(name):
    """Lazy import to avoid importing dependencies when not needed."""
    if name in ("login", "logout"):
        from . import facade
        return getattr(facade, name)
    if name == "Authenticator":
        from .services import Authenticator
        return Authenticator
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "login",
    "logout",
    "Authenticator",
]
