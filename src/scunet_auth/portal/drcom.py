"""
Dr.COM ePortal v4 client.

Dr.COM portals take credentials as GET query parameters on port 802 and
answer with JSONP, e.g. ``dr1003({"result":1,"msg":"..."})``. ``msg`` is
often base64 encoded.
"""

import re
import time
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlsplit

from ..core import constants
from ..core.context import AuthContext
from ..core.exceptions import ProtocolError
from ..models import (
    Credentials,
    PortalEndpoint,
    PortalResponse,
    ResponseStatus,
    ServiceType,
)
from .base import PortalClient
from .helpers import (
    clean_text,
    contains_marker,
    decode_text,
    mask_value,
    parse_json,
    parse_query,
    sanitize,
    split_url,
    try_decode_base64,
)


LOGIN_PATH = "/eportal/portal/login"
LOGOUT_PATH = "/eportal/portal/logout"
STATUS_PATH = "/drcom/chkstatus"
API_PORT = 802
JS_VERSION = "4.1.3"
NULL_MAC = "000000000000"

# Realm suffix appended to the account for each egress
ISP_SUFFIXES = {
    ServiceType.CAMPUS_NET: "",
    ServiceType.CHINA_TELECOM: "@telecom",
    ServiceType.CHINA_MOBILE: "@cmcc",
    ServiceType.CHINA_UNICOM: "@unicom",
}

RESERVED_EXTRA = ("service", "isp", "isp_suffix", "wlan_user_ip")

_IP = r"([0-9]{1,3}(?:\.[0-9]{1,3}){3})"
_PAGE_IP_PATTERNS = (
    re.compile(rf"v46ip\s*=\s*['\"]{_IP}['\"]", re.IGNORECASE),
    re.compile(rf"v4ip\s*=\s*['\"]{_IP}['\"]", re.IGNORECASE),
    re.compile(rf"ss5\s*=\s*['\"]{_IP}['\"]", re.IGNORECASE),
    re.compile(rf"wlan_user_ip\s*=\s*['\"]?{_IP}", re.IGNORECASE),
)
_QUERY_IP_KEYS = ("wlan_user_ip", "wlanuserip", "userip", "ip")


class DrcomPortalClient(PortalClient):
    """Portal client for Dr.COM ePortal v4 deployments."""

    variant = constants.VARIANT_DRCOM

    @classmethod
    def matches(cls, portal_url: str, text: str) -> bool:
        parts = urlsplit(portal_url)
        if parts.port in (801, 802) or parts.path.startswith("/eportal/portal"):
            return True
        lowered = (text or "").lower()
        return "drcom" in lowered or "dr.com" in lowered

    def build_endpoint(self, portal_url: str, text: str) -> PortalEndpoint:
        parts = split_url(portal_url)
        params = parse_query(parts["query"])
        user_ip = self._find_user_ip(params, text)
        if user_ip:
            params["wlan_user_ip"] = user_ip

        host = urlsplit(portal_url).hostname or ""
        scheme = urlsplit(portal_url).scheme or "http"
        return PortalEndpoint(
            variant=self.variant,
            base_url=f"{scheme}://{host}:{API_PORT}",
            portal_url=portal_url,
            query_string=parts["query"],
            params=params,
        )

    @staticmethod
    def _find_user_ip(params: Dict[str, str], text: str) -> str:
        lowered = {key.lower(): value for key, value in params.items()}
        for key in _QUERY_IP_KEYS:
            if lowered.get(key):
                return lowered[key]
        for pattern in _PAGE_IP_PATTERNS:
            match = pattern.search(text or "")
            if match:
                return match.group(1)
        return ""

    @staticmethod
    def login_account(credentials: Credentials) -> str:
        """
        Decorate the account with the ISP realm, as the portal page does.

        Accounts already carrying a realm or a ",0," prefix are left alone.
        """
        account = credentials.username.strip()
        if "@" in account or account.startswith(","):
            return account
        suffix = credentials.extra.get("isp_suffix")
        if suffix is None:
            suffix = ISP_SUFFIXES.get(credentials.service or ServiceType.CAMPUS_NET, "")
        return f",0,{account}{suffix}"

    def _common_params(self, endpoint: PortalEndpoint, user_ip: str) -> List[Tuple[str, str]]:
        params = endpoint.params
        return [
            ("wlan_user_ip", user_ip),
            ("wlan_user_ipv6", ""),
            ("wlan_user_mac", params.get("wlanusermac") or params.get("wlan_user_mac") or NULL_MAC),
            ("wlan_ac_ip", params.get("wlanacip") or params.get("wlan_ac_ip") or ""),
            ("wlan_ac_name", params.get("wlanacname") or params.get("wlan_ac_name") or ""),
            ("jsVersion", JS_VERSION),
        ]

    def _headers(self, endpoint: PortalEndpoint) -> Dict[str, str]:
        return {"Referer": endpoint.portal_url or endpoint.base_url + "/"}

    def submit_login(self, ctx: AuthContext, endpoint: PortalEndpoint, credentials: Credentials) -> PortalResponse:
        user_ip = credentials.extra.get("wlan_user_ip") or endpoint.params.get("wlan_user_ip", "")
        if not user_ip:
            raise ProtocolError(
                "Could not determine wlan_user_ip from the portal redirect; "
                "pass it as the 'wlan_user_ip' extra parameter"
            )

        timestamp = int(time.time() * 1000)
        account = self.login_account(credentials)
        params = [
            ("callback", f"dr{timestamp}"),
            ("login_method", "1"),
            ("user_account", account),
            ("user_password", credentials.password),
        ]
        params.extend(self._common_params(endpoint, user_ip))
        params.extend([("terminal_type", "1"), ("lang", "zh-cn"), ("v", str(timestamp % 10000))])
        for key, value in credentials.extra.items():
            if key not in RESERVED_EXTRA:
                params.append((key, value))

        self.logger.info(f"[{ctx.trace_id}] Submitting login user={mask_value(account)} ip={user_ip}")
        response = self.transport.get(
            ctx,
            f"{endpoint.base_url}{LOGIN_PATH}",
            params=params,
            headers=self._headers(endpoint),
        )
        return self._parse_login(response, credentials)

    def _parse_login(self, response, credentials: Credentials) -> PortalResponse:
        self.check_http_status(response)
        text = decode_text(response)
        raw = sanitize(text, credentials.password)
        diagnostics = {"status_code": response.status_code, "raw": raw}

        data = parse_json(text)
        if data is None or "result" not in data:
            raise ProtocolError("Unexpected login reply from Dr.COM portal", diagnostics)

        message = self._message(data)
        result = str(data.get("result"))
        ret_code = str(data.get("ret_code", ""))

        if result == "1":
            if message and self.has_error_marker(message):
                raise self.classify_failure(message, diagnostics)
            return PortalResponse(status=ResponseStatus.SUCCESS, message=message, raw=raw)

        if ret_code == "2" or contains_marker(message, constants.ALREADY_ONLINE_MARKERS):
            return PortalResponse(status=ResponseStatus.ALREADY_AUTHENTICATED, message=message, raw=raw)

        raise self.classify_failure(message or f"login refused (ret_code={ret_code or 'none'})", diagnostics)

    @staticmethod
    def _message(data: Dict[str, Any]) -> str:
        msg = data.get("msg")
        if msg is None:
            return ""
        msg = str(msg)
        return clean_text(try_decode_base64(msg) or msg)

    def check_status(self, ctx: AuthContext, endpoint: PortalEndpoint) -> Optional[Dict[str, Any]]:
        """
        Query the portal's online status for this client.

        Returns:
            Status dictionary (``result`` 1 online, 0 offline), or None if unavailable
        """
        origin = split_url(endpoint.portal_url or endpoint.base_url)["base_url"]
        response = self.transport.get(
            ctx,
            f"{origin}{STATUS_PATH}",
            params={"callback": "dr1002"},
            headers=self._headers(endpoint),
        )
        if response.status_code != 200:
            return None
        return parse_json(decode_text(response))

    def submit_logout(self, ctx: AuthContext, endpoint: PortalEndpoint, credentials: Credentials) -> PortalResponse:
        user_ip = credentials.extra.get("wlan_user_ip") or endpoint.params.get("wlan_user_ip", "")
        if not user_ip:
            status = self.check_status(ctx, endpoint) or {}
            if str(status.get("result")) == "0":
                return PortalResponse(status=ResponseStatus.SUCCESS, message="already logged out")
            user_ip = str(status.get("v46ip") or status.get("ss5") or "")

        if not user_ip:
            return PortalResponse(
                status=ResponseStatus.PORTAL_ERROR,
                message="Could not determine wlan_user_ip for logout",
            )

        timestamp = int(time.time() * 1000)
        params = [
            ("callback", f"dr{timestamp}"),
            ("login_method", "1"),
            ("user_account", "drcom"),
            ("user_password", "123"),
            ("ac_logout", "1"),
            ("register_mode", "1"),
            ("wlan_vlan_id", "0"),
        ]
        params.extend(self._common_params(endpoint, user_ip))
        params.extend([("v", str(timestamp % 10000)), ("lang", "zh")])

        self.logger.info(f"[{ctx.trace_id}] Submitting logout ip={user_ip}")
        response = self.transport.get(
            ctx,
            f"{endpoint.base_url}{LOGOUT_PATH}",
            params=params,
            headers=self._headers(endpoint),
        )

        text = decode_text(response)
        raw = sanitize(text, credentials.password)
        data = parse_json(text)
        if response.status_code >= 400 or data is None:
            return PortalResponse(
                status=ResponseStatus.PORTAL_ERROR,
                message=f"Unexpected logout reply (HTTP {response.status_code})",
                raw=raw,
            )

        message = self._message(data)
        if str(data.get("result")) == "1" or contains_marker(message, constants.ALREADY_OFFLINE_MARKERS):
            return PortalResponse(status=ResponseStatus.SUCCESS, message=message, raw=raw)
        return PortalResponse(status=ResponseStatus.PORTAL_ERROR, message=message, raw=raw)
