"""
Helper functions for portal protocol handling.

Provides utilities for decoding portal pages, finding redirect targets,
parsing JSON/JSONP replies and keeping credentials out of logs.
"""

import base64
import json
import re
from typing import Any, Dict, Iterable, Optional
from urllib.parse import parse_qsl, urljoin, urlsplit

import requests  # type: ignore

from ..core import constants


_SCRIPT_REDIRECT_PATTERNS = (
    re.compile(r"location\.href\s*=\s*['\"]([^'\"]+)['\"]", re.IGNORECASE),
    re.compile(r"location\.replace\(\s*['\"]([^'\"]+)['\"]\s*\)", re.IGNORECASE),
    re.compile(r"window\.location\s*=\s*['\"]([^'\"]+)['\"]", re.IGNORECASE),
    re.compile(r"<meta[^>]+http-equiv=['\"]?refresh['\"]?[^>]+url=([^'\">\s]+)", re.IGNORECASE),
)
_JSONP_RE = re.compile(r"^[\w$.]*\s*\(\s*(\{.*\})\s*\)\s*;?\s*$", re.DOTALL)
_ERROR_HINT_PATTERNS = (
    re.compile(r'alert\(["\']([^"\']+)["\']\)', re.IGNORECASE),
    re.compile(r'<p[^>]*class="[^"]*error[^"]*"[^>]*>([^<]+)</p>', re.IGNORECASE),
    re.compile(r'<span[^>]*class="[^"]*error[^"]*"[^>]*>([^<]+)</span>', re.IGNORECASE),
)


def decode_text(response: requests.Response) -> str:
    """
    Decode a portal response body.

    Campus portals frequently declare no charset and serve GBK, so the
    declared encoding is tried first, then utf-8, then gb18030.
    """
    declared = None
    match = re.search(r"charset=([^;]+)", response.headers.get("Content-Type", ""), re.IGNORECASE)
    if match:
        declared = match.group(1).strip().strip("\"'")

    raw = response.content or b""
    for encoding in (declared, "utf-8", "gb18030"):
        if not encoding:
            continue
        try:
            return raw.decode(encoding)
        except (LookupError, UnicodeDecodeError):
            continue
    return raw.decode("utf-8", errors="ignore")


def find_redirect_target(response: requests.Response, text: Optional[str] = None) -> str:
    """
    Find where a captive gateway is sending us.

    Checks the Location header first, then JavaScript and meta-refresh
    redirects embedded in the body.

    Returns:
        Absolute URL, or an empty string when the response is not a redirect
    """
    location = response.headers.get("Location", "")
    if response.status_code in constants.REDIRECT_STATUS_CODES and location:
        return urljoin(response.url or "", location)

    body = text if text is not None else decode_text(response)
    for pattern in _SCRIPT_REDIRECT_PATTERNS:
        match = pattern.search(body)
        if match:
            return urljoin(response.url or "", match.group(1).strip())
    return ""


def split_url(url: str) -> Dict[str, str]:
    """Split a portal URL into base URL, path and raw query string."""
    parts = urlsplit(url)
    return {
        "base_url": f"{parts.scheme}://{parts.netloc}",
        "path": parts.path,
        "query": parts.query,
    }


def parse_query(query: str) -> Dict[str, str]:
    """Parse a query string into a flat dict (last value wins)."""
    return dict(parse_qsl(query, keep_blank_values=True))


def parse_json(text: str) -> Optional[Dict[str, Any]]:
    """Parse a JSON object or a JSONP-wrapped JSON object."""
    stripped = (text or "").strip()
    if not stripped:
        return None

    match = _JSONP_RE.match(stripped)
    candidate = match.group(1) if match else stripped
    try:
        data = json.loads(candidate)
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def try_decode_base64(value: Optional[str]) -> Optional[str]:
    """Decode a base64 message if it looks like one."""
    if not value or not re.fullmatch(r"[A-Za-z0-9+/]+={0,2}", value) or len(value) % 4:
        return None
    try:
        return base64.b64decode(value.encode("ascii")).decode("utf-8")
    except (ValueError, UnicodeDecodeError):
        return None


def extract_error_hint(text: str) -> str:
    """Extract an error message from an HTML fragment (alert() or error element)."""
    if not text:
        return ""
    for pattern in _ERROR_HINT_PATTERNS:
        match = pattern.search(text)
        if match:
            return clean_text(match.group(1))
    return ""


def clean_text(value: str) -> str:
    return re.sub(r"\s+", " ", value or "").strip()


def contains_marker(text: str, markers: Iterable[str]) -> bool:
    """Case-insensitive check for any marker in ``text``."""
    lowered = (text or "").lower()
    return any(marker.lower() in lowered for marker in markers)


def mask_value(value: str, keep: int = 2) -> str:
    """Mask a username-like value for logs."""
    if not value:
        return ""
    if len(value) <= keep * 2:
        return "*" * len(value)
    return f"{value[:keep]}***{value[-keep:]}"


def sanitize(text: Optional[str], *secrets: str, limit: int = constants.MAX_RAW_PAYLOAD) -> str:
    """Remove secrets from a payload and truncate it for diagnostics."""
    if not text:
        return ""
    sanitized = text
    for secret in secrets:
        if secret:
            sanitized = sanitized.replace(secret, "***")
    return sanitized[:limit]
