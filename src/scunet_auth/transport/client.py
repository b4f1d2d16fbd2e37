"""
HTTP transport adapter for captive-portal requests.

Handles the HTTP session, timeouts, cancellation and error translation.
Retries happen in the session layer.
"""

import logging
import re
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from urllib.parse import urlsplit

import requests  # type: ignore
from requests.adapters import HTTPAdapter  # type: ignore
from urllib3.util.retry import Retry  # type: ignore

from ..core import constants
from ..core.context import AuthContext
from ..core.exceptions import NetworkError


@dataclass
class HTTPRequest:
    """Fully formed HTTP request."""

    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    params: Optional[Any] = None
    data: Optional[Any] = None
    allow_redirects: bool = True


def _loggable_url(url: str) -> str:
    """Strip the query string; some portals carry the password there."""
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}{parts.path}"


# Query strings embedded in exception text, e.g. urllib3's
# "Max retries exceeded with url: /path?user_password=..."
_QUERY_IN_TEXT = re.compile(r"\?[^\s'\")]*")


def _loggable_error(error: Exception) -> str:
    """Describe a transport failure without any URL query strings."""
    detail = _QUERY_IN_TEXT.sub("?[redacted]", str(error))
    return f"{type(error).__name__}: {detail}" if detail else type(error).__name__


class HTTPTransport:
    """Cancellable HTTP client for portal endpoints."""

    def __init__(
        self,
        timeout: float = constants.DEFAULT_TIMEOUT,
        verify_ssl: bool = False,
        user_agent: str = constants.DEFAULT_USER_AGENT,
        max_redirects: int = constants.DEFAULT_MAX_REDIRECTS,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize transport.

        Args:
            timeout: Request timeout in seconds (capped by the context deadline)
            verify_ssl: Whether to verify SSL certificates
            user_agent: User-Agent header sent with every request
            max_redirects: Redirect limit when a request follows redirects
            logger: Logger instance
        """
        self.timeout = timeout
        self.verify_ssl = verify_ssl
        self.logger = logger or logging.getLogger(__name__)

        # Disable SSL warnings when verify_ssl is False
        if not verify_ssl:
            import urllib3
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

        # No transport-level retries
        self.session = requests.Session()
        self.session.max_redirects = max_redirects
        adapter = HTTPAdapter(max_retries=Retry(total=0, redirect=None))
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)
        self.session.headers.update({"User-Agent": user_agent})

    def send(self, ctx: AuthContext, request: HTTPRequest) -> requests.Response:
        """
        Send a request, aborting it if the context is cancelled.

        Args:
            ctx: Request context
            request: Request to send

        Returns:
            Response object (any status code)

        Raises:
            Cancelled: If the context ends before or during the request
            NetworkError: On any transport failure
        """
        ctx.raise_if_cancelled()

        timeout = self.timeout
        remaining = ctx.remaining()
        if remaining is not None:
            timeout = min(timeout, remaining)

        url = _loggable_url(request.url)
        self.logger.debug(f"[{ctx.trace_id}] {request.method} {url}")

        outcome: Dict[str, Any] = {}
        finished = threading.Event()

        def perform() -> None:
            try:
                outcome["response"] = self.session.request(
                    method=request.method,
                    url=request.url,
                    headers=request.headers or None,
                    params=request.params,
                    data=request.data,
                    allow_redirects=request.allow_redirects,
                    timeout=timeout,
                    verify=self.verify_ssl,
                )
            except Exception as e:
                outcome["error"] = e
            finally:
                finished.set()

        # Daemon worker: an abandoned request never holds up interpreter exit
        worker = threading.Thread(target=perform, name="scunet-http", daemon=True)
        worker.start()

        while not finished.wait(constants.CANCEL_POLL_INTERVAL):
            if ctx.cancelled:
                self.logger.warning(f"[{ctx.trace_id}] Aborting {request.method} {url}: context cancelled")
                self.session.close()
                ctx.raise_if_cancelled()

        error = outcome.get("error")
        if isinstance(error, requests.exceptions.RequestException):
            if ctx.cancelled:
                ctx.raise_if_cancelled()
            detail = _loggable_error(error)
            self.logger.error(f"[{ctx.trace_id}] HTTP request failed: {request.method} {url} - {detail}")
            raise NetworkError(
                f"{request.method} {url} failed: {detail}",
                diagnostics={"url": url, "error_type": type(error).__name__},
            ) from error
        if error is not None:
            raise error

        response = outcome["response"]
        self.logger.debug(f"[{ctx.trace_id}] {request.method} {url} -> {response.status_code}")
        return response

    def get(self, ctx: AuthContext, url: str, **kwargs) -> requests.Response:
        """Send a GET request."""
        return self.send(ctx, HTTPRequest("GET", url, **kwargs))

    def post(self, ctx: AuthContext, url: str, **kwargs) -> requests.Response:
        """Send a POST request."""
        return self.send(ctx, HTTPRequest("POST", url, **kwargs))

    def close(self) -> None:
        """Close the session and its pooled connections."""
        self.session.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
