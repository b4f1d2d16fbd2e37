"""
Ruijie ePortal client (SCUNET).

Login and logout go through ``/eportal/InterFace.do?method=...`` with
form-encoded bodies and JSON replies::

    {"userIndex": "...", "result": "success", "message": "", "validCodeUrl": ""}
"""

from typing import Any, Dict, Tuple
from urllib.parse import quote

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
)


INTERFACE_PATH = "/eportal/InterFace.do"

# Egress names as configured on the SCUNET portal
SERVICE_NAMES = {
    ServiceType.CAMPUS_NET: "internet",
    ServiceType.CHINA_TELECOM: "电信出口",
    ServiceType.CHINA_MOBILE: "移动出口",
    ServiceType.CHINA_UNICOM: "联通出口",
}

# Extra parameters consumed here rather than forwarded as form fields
RESERVED_EXTRA = ("service", "isp", "userIndex")


def encrypt_password(password: str, exponent_hex: str, modulus_hex: str, mac: str = "") -> str:
    """
    Encrypt a password the way the portal's security.js does.

    The page appends ``>mac``, reverses the string and applies textbook RSA
    with the published key, packing characters little-endian.

    Returns:
        Hex ciphertext, zero-padded to the modulus length
    """
    plain = f"{password}>{mac}" if mac else password
    message = int.from_bytes(plain[::-1].encode("utf-8"), "little")
    modulus = int(modulus_hex, 16)
    exponent = int(exponent_hex, 16)
    if message >= modulus:
        raise ProtocolError("Password is too long for the portal's public key")

    cipher = pow(message, exponent, modulus)
    width = (modulus.bit_length() + 3) // 4
    return format(cipher, "x").zfill(width)


class RuijiePortalClient(PortalClient):
    """Portal client for Ruijie ePortal deployments."""

    variant = constants.VARIANT_RUIJIE

    @classmethod
    def matches(cls, portal_url: str, text: str) -> bool:
        path = split_url(portal_url)["path"].lower()
        if path.startswith("/eportal/") and path.endswith(".jsp"):
            return True
        return "InterFace.do" in (text or "") or "ruijie" in (text or "").lower()

    def build_endpoint(self, portal_url: str, text: str) -> PortalEndpoint:
        parts = split_url(portal_url)
        return PortalEndpoint(
            variant=self.variant,
            base_url=parts["base_url"],
            portal_url=portal_url,
            query_string=parts["query"],
            params=parse_query(parts["query"]),
        )

    def _interface_url(self, endpoint: PortalEndpoint, method: str) -> str:
        return f"{endpoint.base_url}{INTERFACE_PATH}?method={method}"

    def _headers(self, endpoint: PortalEndpoint) -> Dict[str, str]:
        return {
            "Origin": endpoint.base_url,
            "Referer": endpoint.portal_url or endpoint.base_url + "/",
            "Accept": "*/*",
        }

    def _service_name(self, credentials: Credentials) -> str:
        """Resolve the portal's egress name; unknown values pass through verbatim."""
        service = credentials.service
        if service:
            return SERVICE_NAMES[service]
        raw = credentials.extra.get("service") or credentials.extra.get("isp")
        return raw or SERVICE_NAMES[ServiceType.CAMPUS_NET]

    def page_info(self, ctx: AuthContext, endpoint: PortalEndpoint) -> Dict[str, Any]:
        """
        Fetch portal page settings (password encryption flag and RSA key).

        Returns:
            Settings dictionary, empty when the portal does not answer with JSON
        """
        response = self.transport.post(
            ctx,
            self._interface_url(endpoint, "pageInfo"),
            data={"queryString": quote(endpoint.query_string, safe="")},
            headers=self._headers(endpoint),
        )
        data = parse_json(decode_text(response)) if response.status_code == 200 else None
        if data is None:
            self.logger.debug(f"[{ctx.trace_id}] pageInfo unavailable (HTTP {response.status_code})")
            return {}
        return data

    def _prepare_password(
        self,
        ctx: AuthContext,
        endpoint: PortalEndpoint,
        credentials: Credentials
    ) -> Tuple[str, bool]:
        """
        Decide whether to encrypt the password and do so if needed.

        Returns:
            Tuple of (password to send, whether it is encrypted)
        """
        mode = self.config.encrypt_password
        if mode == "false":
            return credentials.password, False

        info = self.page_info(ctx, endpoint)
        wanted = mode == "true" or str(info.get("passwordEncrypt", "")).lower() == "true"
        if not wanted:
            return credentials.password, False

        exponent = info.get("publicKeyExponent")
        modulus = info.get("publicKeyModulus")
        if not exponent or not modulus:
            raise ProtocolError("Portal requires password encryption but published no public key")

        mac = endpoint.params.get("mac", "")
        return encrypt_password(credentials.password, exponent, modulus, mac), True

    def submit_login(self, ctx: AuthContext, endpoint: PortalEndpoint, credentials: Credentials) -> PortalResponse:
        password, encrypted = self._prepare_password(ctx, endpoint, credentials)
        service = self._service_name(credentials)

        form = {
            "userId": credentials.username,
            "password": password,
            "service": service,
            # The portal page URL-encodes the query string once more itself
            "queryString": quote(endpoint.query_string, safe=""),
            "operatorPwd": "",
            "operatorUserId": "",
            "validcode": "",
            "passwordEncrypt": "true" if encrypted else "false",
        }
        for key, value in credentials.extra.items():
            if key not in RESERVED_EXTRA:
                form[key] = value

        self.logger.info(
            f"[{ctx.trace_id}] Submitting login user={mask_value(credentials.username)} "
            f"service={service} encrypted={encrypted}"
        )
        response = self.transport.post(
            ctx,
            self._interface_url(endpoint, "login"),
            data=form,
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
            raise ProtocolError("Unexpected login reply from Ruijie portal", diagnostics)

        result = str(data.get("result", "")).lower()
        message = clean_text(str(data.get("message") or ""))

        if result == "success":
            # An error fragment beside a success flag is treated as failure
            if message and self.has_error_marker(message):
                raise self.classify_failure(message, diagnostics)
            return PortalResponse(
                status=ResponseStatus.SUCCESS,
                message=message,
                raw=raw,
                data={"userIndex": str(data["userIndex"])} if data.get("userIndex") else {},
            )

        if result != "fail":
            raise ProtocolError(f"Unknown login result '{result}' from Ruijie portal", diagnostics)

        if contains_marker(message, constants.ALREADY_ONLINE_MARKERS):
            return PortalResponse(status=ResponseStatus.ALREADY_AUTHENTICATED, message=message, raw=raw)

        if data.get("validCodeUrl"):
            raise ProtocolError("Portal requires a captcha, which is not supported", diagnostics)

        raise self.classify_failure(message or "login refused without a message", diagnostics)

    def submit_logout(self, ctx: AuthContext, endpoint: PortalEndpoint, credentials: Credentials) -> PortalResponse:
        user_index = credentials.extra.get("userIndex")
        if user_index:
            method = "logout"
            form = {"userIndex": user_index}
        else:
            method = "logoutByUserIdAndPass"
            form = {"userId": credentials.username, "pass": credentials.password}

        self.logger.info(f"[{ctx.trace_id}] Submitting logout via {method}")
        response = self.transport.post(
            ctx,
            self._interface_url(endpoint, method),
            data=form,
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

        message = clean_text(str(data.get("message") or ""))
        if str(data.get("result", "")).lower() == "success":
            return PortalResponse(status=ResponseStatus.SUCCESS, message=message, raw=raw)
        if contains_marker(message, constants.ALREADY_OFFLINE_MARKERS):
            return PortalResponse(status=ResponseStatus.SUCCESS, message=message, raw=raw)
        return PortalResponse(status=ResponseStatus.PORTAL_ERROR, message=message, raw=raw)
