"""
Authenticator service.

Validates input, builds a fresh transport and portal client per call and
runs the session state machine.
"""

import logging
from typing import Any, Mapping, Optional, Tuple

from ..core import Config, LoggerContext
from ..core.context import AuthContext
from ..core.exceptions import InvalidInput
from ..models import AuthOutcome, Credentials, LOGIN, LOGOUT
from ..portal import PortalClient, create_portal_client
from ..portal.helpers import mask_value
from ..transport import HTTPTransport
from .session import AuthSession


class Authenticator:
    """Login/logout against the campus captive portal."""

    def __init__(
        self,
        config: Optional[Config] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize authenticator.

        Args:
            config: Configuration object. Defaults are loaded if omitted.
            logger: Logger instance
        """
        self.config = config or Config()
        self.logger = logger or logging.getLogger(__name__)

    @staticmethod
    def validate(username: Any, password: Any, extra: Any) -> Credentials:
        """
        Validate raw input and build credentials.

        Raises:
            InvalidInput: If the username is empty or extra is not a flat
                string-to-string mapping
        """
        if not isinstance(username, str) or not username.strip():
            raise InvalidInput("Username must not be empty")

        if password is None:
            password = ""
        if not isinstance(password, str):
            raise InvalidInput("Password must be a string")

        if extra is None:
            extra = {}
        if not isinstance(extra, Mapping):
            raise InvalidInput("Extra parameters must be a mapping of strings to strings")

        for key, value in extra.items():
            if not isinstance(key, str) or not isinstance(value, str):
                raise InvalidInput(f"Extra parameter {key!r} must map a string to a string")

        return Credentials(username=username.strip(), password=password, extra=dict(extra))

    def build_client(self) -> Tuple[HTTPTransport, PortalClient]:
        """Create a transport and portal client owned by a single call."""
        transport = HTTPTransport(
            timeout=self.config.http_timeout,
            verify_ssl=self.config.verify_ssl,
            user_agent=self.config.user_agent,
            max_redirects=self.config.max_redirects,
            logger=self.logger,
        )
        return transport, create_portal_client(self.config, transport, self.logger)

    def login(
        self,
        ctx: Optional[AuthContext],
        username: str,
        password: str,
        extra: Optional[Mapping[str, str]] = None
    ) -> AuthOutcome:
        """
        Log in to the captive portal.

        Args:
            ctx: Request context (a fresh one is created if None)
            username: Portal username
            password: Portal password
            extra: Portal-specific parameters, e.g. {"service": "CHINAMOBILE"}

        Returns:
            Successful outcome

        Raises:
            AuthError: Classified failure
        """
        return self._run(LOGIN, ctx, username, password, extra)

    def logout(
        self,
        ctx: Optional[AuthContext],
        username: str,
        password: str,
        extra: Optional[Mapping[str, str]] = None
    ) -> AuthOutcome:
        """
        Log out from the captive portal.

        Args:
            ctx: Request context (a fresh one is created if None)
            username: Portal username
            password: Portal password
            extra: Portal-specific parameters, e.g. {"userIndex": "..."}

        Returns:
            Successful outcome

        Raises:
            AuthError: Classified failure
        """
        return self._run(LOGOUT, ctx, username, password, extra)

    def _run(
        self,
        action: str,
        ctx: Optional[AuthContext],
        username: str,
        password: str,
        extra: Optional[Mapping[str, str]]
    ) -> AuthOutcome:
        credentials = self.validate(username, password, extra)
        ctx = ctx or AuthContext()

        transport, client = self.build_client()
        try:
            session = AuthSession(client, self.config, ctx, self.logger)
            with LoggerContext(self.logger, f"{action} for {mask_value(credentials.username)}", ctx.trace_id):
                if action == LOGIN:
                    return session.login(credentials)
                return session.logout(credentials)
        finally:
            transport.close()
