"""
Outcome data models.

Contains the final result of a login or logout call.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional

from ..core import constants
from ..core.exceptions import AuthError, ErrorKind


LOGIN = "login"
LOGOUT = "logout"


@dataclass(frozen=True)
class AuthOutcome:
    """
    Final, unambiguous result of one login or logout.

    ``data`` carries portal handles from a successful login, e.g. Ruijie's
    ``userIndex``, which can be passed back as an extra parameter on logout.
    """

    action: str
    success: bool
    error_kind: Optional[ErrorKind] = None
    detail: str = ""
    already: bool = False
    attempts: int = 0
    data: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def succeeded(
        cls,
        action: str,
        already: bool = False,
        attempts: int = 0,
        detail: str = "",
        data: Optional[Dict[str, str]] = None
    ) -> "AuthOutcome":
        return cls(
            action=action,
            success=True,
            already=already,
            attempts=attempts,
            detail=detail,
            data=dict(data or {}),
        )

    @classmethod
    def failed(cls, action: str, error: AuthError) -> "AuthOutcome":
        return cls(action=action, success=False, error_kind=error.kind, detail=error.message)

    @property
    def message(self) -> str:
        """Render the outcome as the facade result string."""
        if self.action == LOGOUT:
            success, prefix = constants.LOGOUT_SUCCESS, constants.LOGOUT_FAILURE_PREFIX
        else:
            success, prefix = constants.LOGIN_SUCCESS, constants.LOGIN_FAILURE_PREFIX

        if self.success:
            return success
        kind = self.error_kind.value if self.error_kind else ErrorKind.PROTOCOL.value
        return f"{prefix}[{kind}] {self.detail}"
