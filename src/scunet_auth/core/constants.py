"""
Application-wide constants for SCUNET authentication.

This module defines default endpoints, protocol limits and the response
markers used to classify captive-portal replies. Variant specific field
names live in their respective portal modules.
"""

# Network probing
# A 204 from the check URL (or the expected body below) means we are online
DEFAULT_CHECK_URL = "http://www.msftconnecttest.com/connecttest.txt"
DEFAULT_CHECK_CONTENT = "Microsoft Connect Test"
# Any plain-HTTP address the gateway hijacks while unauthenticated
DEFAULT_DETECT_URL = "http://123.123.123.123/"
# Ruijie ePortal host used on SCUNET (needed for logout once online)
DEFAULT_PORTAL_BASE_URL = "http://192.168.2.135"

# HTTP
DEFAULT_TIMEOUT = 8  # seconds
DEFAULT_MAX_REDIRECTS = 10
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)
REDIRECT_STATUS_CODES = (301, 302, 303, 307, 308)
BUSY_STATUS_CODES = (429, 502, 503, 504)

# Retry policy for transient failures (PortalBusy, NetworkError)
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BACKOFF_BASE = 1.0  # seconds, doubled per attempt
DEFAULT_BACKOFF_MAX = 8.0  # seconds

# Cancellation polling interval while a request is in flight
CANCEL_POLL_INTERVAL = 0.05  # seconds

# Raw payloads kept on PortalResponse for diagnostics
MAX_RAW_PAYLOAD = 2048  # characters

# Portal variants
VARIANT_AUTO = "auto"
VARIANT_RUIJIE = "ruijie"
VARIANT_DRCOM = "drcom"
PORTAL_VARIANTS = (VARIANT_AUTO, VARIANT_RUIJIE, VARIANT_DRCOM)

# Response classification markers (matched case-insensitively)
REJECTION_MARKERS = (
    "密码",
    "用户不存在",
    "用户名",
    "账号",
    "帐号",
    "不匹配",
    "欠费",
    "停机",
    "userid error",
    "ldap auth error",
    "auth error",
    "password",
    "user not exist",
    "invalid user",
    "authentication failed",
)
BUSY_MARKERS = (
    "超时",
    "繁忙",
    "稍后",
    "频繁",
    "timeout",
    "busy",
    "too many",
    "try again later",
    "rate limit",
)
ALREADY_ONLINE_MARKERS = (
    "已经在线",
    "已在线",
    "already online",
    "already logged",
)
ALREADY_OFFLINE_MARKERS = (
    "不在线",
    "已下线",
    "not online",
    "already offline",
)

# Facade result strings
LOGIN_SUCCESS = "登录成功"
LOGIN_FAILURE_PREFIX = "登录失败: "
LOGOUT_SUCCESS = "注销成功"
LOGOUT_FAILURE_PREFIX = "注销失败: "
EXTRA_PARSE_FAILURE_PREFIX = "解析额外信息失败: "
