"""
Session state machine for a single login or logout.

Re-derives the current network status on every call, then walks the
login or logout path with bounded retries for transient failures.
"""

import logging
from enum import Enum
from typing import Callable, Dict, List, Optional, TypeVar, TYPE_CHECKING

from ..core.context import AuthContext
from ..core.exceptions import AuthError, DiscoveryError, ProtocolError
from ..models import (
    AuthOutcome,
    Credentials,
    LOGIN,
    LOGOUT,
    NetworkProbe,
    PortalEndpoint,
    PortalResponse,
    ResponseStatus,
)
from ..portal.helpers import mask_value

if TYPE_CHECKING:
    from ..core.config import Config
    from ..portal import PortalClient


T = TypeVar("T")


class SessionState(Enum):
    """Authentication states of one call."""

    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"
    LOGGING_OUT = "logging_out"
    FAILED = "failed"


TRANSITIONS = {
    SessionState.UNAUTHENTICATED: {SessionState.AUTHENTICATING},
    SessionState.AUTHENTICATING: {SessionState.AUTHENTICATED, SessionState.FAILED},
    SessionState.AUTHENTICATED: {SessionState.LOGGING_OUT},
    SessionState.LOGGING_OUT: {SessionState.UNAUTHENTICATED, SessionState.FAILED},
    SessionState.FAILED: set(),
}


class AuthSession:
    """Drive one login or logout through its states."""

    def __init__(
        self,
        client: "PortalClient",
        config: "Config",
        ctx: AuthContext,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize session.

        Args:
            client: Portal client for the target network
            config: Configuration object (retry policy)
            ctx: Request context for this call
            logger: Logger instance
        """
        self.client = client
        self.config = config
        self.ctx = ctx
        self.logger = logger or logging.getLogger(__name__)

        self.state: Optional[SessionState] = None
        self.history: List[SessionState] = []
        self.attempts: Dict[str, int] = {}

    def _transition(self, new_state: SessionState) -> None:
        if self.state is not None and new_state not in TRANSITIONS[self.state]:
            raise RuntimeError(f"Invalid session transition {self.state.name} -> {new_state.name}")

        previous = self.state.name if self.state else "START"
        self.logger.debug(f"[{self.ctx.trace_id}] Session {previous} -> {new_state.name}")
        self.state = new_state
        self.history.append(new_state)

    def backoff_delay(self, attempt: int) -> float:
        """Exponential backoff for the given (1-based) failed attempt, capped."""
        return min(self.config.backoff_base * (2 ** (attempt - 1)), self.config.backoff_max)

    def _with_retries(self, operation: str, func: Callable[[], T]) -> T:
        """
        Run ``func``, retrying transient errors with bounded backoff.

        Raises:
            AuthError: The last error once attempts are exhausted, or any
                non-transient error immediately
        """
        max_attempts = self.config.max_attempts
        attempt = 0
        while True:
            attempt += 1
            self.ctx.raise_if_cancelled()
            self.attempts[operation] = attempt
            try:
                return func()
            except AuthError as e:
                if not e.transient or attempt >= max_attempts:
                    raise
                delay = self.backoff_delay(attempt)
                self.logger.warning(
                    f"[{self.ctx.trace_id}] {operation} attempt {attempt}/{max_attempts} failed: {e}; "
                    f"retrying in {delay:.1f}s"
                )
                self.ctx.sleep(delay)

    def _probe(self) -> NetworkProbe:
        return self._with_retries("probe", lambda: self.client.probe(self.ctx))

    def _discover_and_login(self, credentials: Credentials) -> PortalResponse:
        try:
            endpoint = self.client.discover(self.ctx)
        except DiscoveryError:
            # A previous attempt may have been accepted before its reply was lost
            if self.attempts.get("login", 0) > 1 and self.client.probe(self.ctx).authenticated:
                self.logger.info(
                    f"[{self.ctx.trace_id}] Portal redirect gone on retry; network is authenticated"
                )
                return PortalResponse(
                    ResponseStatus.ALREADY_AUTHENTICATED,
                    message="login accepted by an earlier attempt",
                )
            raise
        return self.client.submit_login(self.ctx, endpoint, credentials)

    def login(self, credentials: Credentials) -> AuthOutcome:
        """
        Log in unless the network is already authenticated.

        Args:
            credentials: Credentials for this attempt

        Returns:
            Successful outcome

        Raises:
            AuthError: Classified failure
        """
        probe = self._probe()
        if probe.authenticated:
            self._transition(SessionState.AUTHENTICATED)
            self.logger.info(f"[{self.ctx.trace_id}] Network already authenticated, skipping login")
            return AuthOutcome.succeeded(LOGIN, already=True)

        self._transition(SessionState.UNAUTHENTICATED)
        self._transition(SessionState.AUTHENTICATING)
        self.logger.info(f"[{self.ctx.trace_id}] Logging in as {mask_value(credentials.username)}")

        try:
            response = self._with_retries("login", lambda: self._discover_and_login(credentials))

            if self.config.verify_after_login:
                check = self._probe()
                if not check.authenticated:
                    raise ProtocolError("Portal reported success but the network is still captive")
        except AuthError as e:
            self._transition(SessionState.FAILED)
            self.logger.error(f"[{self.ctx.trace_id}] Login failed: {e}")
            raise

        self._transition(SessionState.AUTHENTICATED)
        already = response.status == ResponseStatus.ALREADY_AUTHENTICATED
        self.logger.info(f"[{self.ctx.trace_id}] Login succeeded{' (already online)' if already else ''}")
        return AuthOutcome.succeeded(
            LOGIN,
            already=already,
            attempts=self.attempts.get("login", 0),
            detail=response.message,
            data={key: str(value) for key, value in response.data.items() if value},
        )

    def _logout_endpoint(self) -> PortalEndpoint:
        # An authenticated network shows no redirect, so prefer the configured portal
        try:
            return self.client.default_endpoint()
        except DiscoveryError:
            return self.client.discover(self.ctx)

    def logout(self, credentials: Credentials) -> AuthOutcome:
        """
        Log out unless the network is already unauthenticated.

        Any portal reply counts as success; only transport failures and
        cancellation fail the call.

        Args:
            credentials: Credentials for this attempt

        Returns:
            Successful outcome

        Raises:
            AuthError: Classified failure
        """
        probe = self._probe()
        if not probe.authenticated:
            self._transition(SessionState.UNAUTHENTICATED)
            self.logger.info(f"[{self.ctx.trace_id}] Network not authenticated, nothing to log out")
            return AuthOutcome.succeeded(LOGOUT, already=True)

        self._transition(SessionState.AUTHENTICATED)
        self._transition(SessionState.LOGGING_OUT)

        try:
            response = self._with_retries(
                "logout",
                lambda: self.client.submit_logout(self.ctx, self._logout_endpoint(), credentials),
            )
        except AuthError as e:
            self._transition(SessionState.FAILED)
            self.logger.error(f"[{self.ctx.trace_id}] Logout failed: {e}")
            raise

        if not response.ok:
            self.logger.warning(
                f"[{self.ctx.trace_id}] Portal logout reply was {response.status.value}: "
                f"{response.message or 'no message'}; treating the network as released"
            )

        self._transition(SessionState.UNAUTHENTICATED)
        return AuthOutcome.succeeded(
            LOGOUT,
            attempts=self.attempts.get("logout", 0),
            detail=response.message,
        )
