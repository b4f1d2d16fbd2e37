"""
Auto-detecting portal client.

Discovers the portal once, picks the first variant whose ``matches``
accepts the page and dispatches every later call on the endpoint's
variant tag.
"""

import logging
from typing import List, Optional

from ..core import constants
from ..core.config import Config
from ..core.context import AuthContext
from ..core.exceptions import DiscoveryError, ProtocolError
from ..models import Credentials, PortalEndpoint, PortalResponse
from ..transport import HTTPTransport
from .base import PortalClient
from .drcom import DrcomPortalClient
from .ruijie import RuijiePortalClient
from .helpers import split_url


class AutoPortalClient(PortalClient):
    """Portal client that detects the variant during discovery."""

    variant = constants.VARIANT_AUTO

    def __init__(
        self,
        transport: HTTPTransport,
        config: Config,
        logger: Optional[logging.Logger] = None,
        clients: Optional[List[PortalClient]] = None
    ):
        super().__init__(transport, config, logger)
        self.clients = clients or [
            RuijiePortalClient(transport, config, logger),
            DrcomPortalClient(transport, config, logger),
        ]

    @classmethod
    def matches(cls, portal_url: str, text: str) -> bool:
        return RuijiePortalClient.matches(portal_url, text) or DrcomPortalClient.matches(portal_url, text)

    def discover(self, ctx: AuthContext) -> PortalEndpoint:
        portal_url, text = self.locate_portal(ctx)
        for client in self.clients:
            if client.matches(portal_url, text):
                endpoint = client.build_endpoint(portal_url, text)
                self.logger.info(f"[{ctx.trace_id}] Detected {endpoint.variant} portal at {endpoint.base_url}")
                return endpoint

        raise DiscoveryError(
            f"Unrecognised captive portal at {split_url(portal_url)['base_url']}",
            diagnostics={"portal_url": portal_url, "variants": [c.variant for c in self.clients]},
        )

    def build_endpoint(self, portal_url: str, text: str) -> PortalEndpoint:
        for client in self.clients:
            if client.matches(portal_url, text):
                return client.build_endpoint(portal_url, text)
        # Configured base URLs carry no page to sniff; assume the first variant
        return self.clients[0].build_endpoint(portal_url, text)

    def client_for(self, endpoint: PortalEndpoint) -> PortalClient:
        for client in self.clients:
            if client.variant == endpoint.variant:
                return client
        raise ProtocolError(f"No client registered for portal variant '{endpoint.variant}'")

    def submit_login(self, ctx: AuthContext, endpoint: PortalEndpoint, credentials: Credentials) -> PortalResponse:
        return self.client_for(endpoint).submit_login(ctx, endpoint, credentials)

    def submit_logout(self, ctx: AuthContext, endpoint: PortalEndpoint, credentials: Credentials) -> PortalResponse:
        return self.client_for(endpoint).submit_logout(ctx, endpoint, credentials)
