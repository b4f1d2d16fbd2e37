"""
Portal protocol layer.

Provides the PortalClient capability and one implementation per
captive-portal product.
"""

import logging
from typing import Dict, Optional, Type

from ..core import constants
from ..core.config import Config
from ..transport import HTTPTransport
from .base import PortalClient
from .ruijie import RuijiePortalClient
from .drcom import DrcomPortalClient
from .auto import AutoPortalClient
from . import helpers


PORTAL_CLIENTS: Dict[str, Type[PortalClient]] = {
    constants.VARIANT_AUTO: AutoPortalClient,
    constants.VARIANT_RUIJIE: RuijiePortalClient,
    constants.VARIANT_DRCOM: DrcomPortalClient,
}


def create_portal_client(
    config: Config,
    transport: HTTPTransport,
    logger: Optional[logging.Logger] = None
) -> PortalClient:
    """
    Create the portal client for the configured variant.

    Args:
        config: Configuration object
        transport: HTTP transport for the client
        logger: Logger instance

    Returns:
        Portal client instance
    """
    try:
        client_class = PORTAL_CLIENTS[config.portal_variant]
    except KeyError:
        raise ValueError(
            f"Unknown portal variant '{config.portal_variant}'. "
            f"Available variants: {', '.join(PORTAL_CLIENTS)}"
        )
    return client_class(transport, config, logger)


__all__ = [
    "PortalClient",
    "RuijiePortalClient",
    "DrcomPortalClient",
    "AutoPortalClient",
    "PORTAL_CLIENTS",
    "create_portal_client",
    "helpers",
]
