"""
Base portal client.

Defines the capability every captive-portal variant implements and the
behaviour they share: connectivity probing, redirect-chain discovery and
failure classification.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional, Tuple

import requests  # type: ignore

from ..core import constants
from ..core.config import Config
from ..core.context import AuthContext
from ..core.exceptions import (
    AuthError,
    CredentialsRejected,
    DiscoveryError,
    PortalBusy,
    ProtocolError,
)
from ..models import Credentials, NetworkProbe, PortalEndpoint, PortalResponse
from ..transport import HTTPTransport
from .helpers import contains_marker, decode_text, find_redirect_target, split_url


class PortalClient(ABC):
    """Captive-portal dialect: probe, discover, submit login, submit logout."""

    variant: str = ""

    def __init__(
        self,
        transport: HTTPTransport,
        config: Config,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize portal client.

        Args:
            transport: HTTP transport used for every request
            config: Configuration object
            logger: Logger instance
        """
        self.transport = transport
        self.config = config
        self.logger = logger or logging.getLogger(__name__)

    def probe(self, ctx: AuthContext) -> NetworkProbe:
        """
        Check whether the network is already authenticated.

        Args:
            ctx: Request context

        Returns:
            Probe result; ``portal_url`` is set when a redirect was observed
        """
        response = self.transport.get(ctx, self.config.check_url, allow_redirects=False)
        text = decode_text(response)

        target = find_redirect_target(response, text)
        if target:
            self.logger.debug(f"[{ctx.trace_id}] Check URL redirected to {split_url(target)['base_url']}")
            return NetworkProbe(authenticated=False, portal_url=target, status_code=response.status_code)

        if response.status_code == 204:
            return NetworkProbe(authenticated=True, status_code=204)

        if response.status_code == 200:
            expected = self.config.check_content
            if not expected or expected in text:
                return NetworkProbe(authenticated=True, status_code=200)

        return NetworkProbe(authenticated=False, status_code=response.status_code)

    def locate_portal(self, ctx: AuthContext) -> Tuple[str, str]:
        """
        Follow the redirect chain from the detect URL to the portal page.

        Redirects are followed manually so that JavaScript redirects, which
        captive gateways favour, are honoured as well.

        Returns:
            Tuple of (portal URL, portal page text)

        Raises:
            DiscoveryError: If no redirect is observed
        """
        url = self.config.detect_url
        chain = []
        portal_url = ""
        text = ""

        for _ in range(self.config.max_redirects):
            response = self.transport.get(ctx, url, allow_redirects=False)
            text = decode_text(response)
            chain.append(url)

            target = find_redirect_target(response, text)
            if not target or target in chain:
                break
            portal_url = url = target

        if not portal_url:
            raise DiscoveryError(
                f"No captive portal redirect observed from {self.config.detect_url}; "
                "the network appears to be authenticated already",
                diagnostics={"chain": chain},
            )

        self.logger.debug(f"[{ctx.trace_id}] Redirect chain: {' -> '.join(split_url(u)['base_url'] for u in chain)}")
        return portal_url, text

    def discover(self, ctx: AuthContext) -> PortalEndpoint:
        """
        Discover the active portal's address.

        Args:
            ctx: Request context

        Returns:
            Endpoint for subsequent login/logout calls

        Raises:
            DiscoveryError: If no portal, or a portal of another variant, is found
        """
        portal_url, text = self.locate_portal(ctx)
        if not self.matches(portal_url, text):
            raise DiscoveryError(
                f"Portal at {split_url(portal_url)['base_url']} is not a {self.variant} portal",
                diagnostics={"portal_url": portal_url},
            )

        endpoint = self.build_endpoint(portal_url, text)
        self.logger.info(f"[{ctx.trace_id}] Discovered {endpoint.variant} portal at {endpoint.base_url}")
        return endpoint

    def default_endpoint(self) -> PortalEndpoint:
        """
        Endpoint built from configuration, for when no redirect is visible.

        Raises:
            DiscoveryError: If no portal base URL is configured
        """
        base_url = self.config.portal_base_url
        if not base_url:
            raise DiscoveryError("No portal redirect visible and no portal.base_url configured")
        return self.build_endpoint(base_url.rstrip("/") + "/", "")

    @classmethod
    @abstractmethod
    def matches(cls, portal_url: str, text: str) -> bool:
        """Check whether a portal page belongs to this variant."""

    @abstractmethod
    def build_endpoint(self, portal_url: str, text: str) -> PortalEndpoint:
        """Build the endpoint from a portal URL and page."""

    @abstractmethod
    def submit_login(self, ctx: AuthContext, endpoint: PortalEndpoint, credentials: Credentials) -> PortalResponse:
        """
        Submit credentials to the portal.

        Returns:
            Response with status SUCCESS or ALREADY_AUTHENTICATED

        Raises:
            CredentialsRejected, PortalBusy, ProtocolError, NetworkError, Cancelled
        """

    @abstractmethod
    def submit_logout(self, ctx: AuthContext, endpoint: PortalEndpoint, credentials: Credentials) -> PortalResponse:
        """
        Ask the portal to end the session.

        Portal-level refusals are returned, not raised; only transport
        errors propagate.
        """

    @staticmethod
    def classify_failure(message: str, diagnostics: Optional[dict] = None) -> AuthError:
        """
        Map an explicit portal refusal to an error.

        Rejection markers win over busy markers: a lockout after repeated
        bad passwords must not be retried.
        """
        if contains_marker(message, constants.REJECTION_MARKERS):
            return CredentialsRejected(message, diagnostics)
        if contains_marker(message, constants.BUSY_MARKERS):
            return PortalBusy(message, diagnostics)
        return CredentialsRejected(f"Portal refused authentication: {message}", diagnostics)

    @staticmethod
    def has_error_marker(message: str) -> bool:
        """True when a message carries any rejection or busy marker."""
        return contains_marker(message, constants.REJECTION_MARKERS + constants.BUSY_MARKERS)

    @staticmethod
    def check_http_status(response: requests.Response) -> None:
        """
        Raise for HTTP statuses that make the body meaningless.

        Raises:
            PortalBusy: For 429 and gateway-style 5xx statuses
            ProtocolError: For any other 4xx/5xx
        """
        if response.status_code in constants.BUSY_STATUS_CODES:
            raise PortalBusy(
                f"Portal returned HTTP {response.status_code}",
                diagnostics={"status_code": response.status_code},
            )
        if response.status_code >= 400:
            raise ProtocolError(
                f"Portal returned unexpected HTTP {response.status_code}",
                diagnostics={"status_code": response.status_code},
            )
