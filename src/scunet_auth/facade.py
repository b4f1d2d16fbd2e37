"""
String facade for login/logout.

Accepts the extra parameters as a JSON document and reports every outcome
as a single human-readable string. Nothing here raises.
"""

import json
import logging
from typing import Dict, Optional

from .core import Config, constants
from .core.context import AuthContext
from .core.exceptions import AuthError, InvalidInput, ProtocolError
from .models import AuthOutcome, LOGIN, LOGOUT
from .services import Authenticator


logger = logging.getLogger(__name__)


def parse_extra(extra: Optional[str]) -> Dict[str, str]:
    """
    Decode the extra parameters document.

    Args:
        extra: JSON object of string values, e.g. '{"service": "CHINAMOBILE"}'.
            None and the JSON literal "null" mean no extra parameters;
            empty or blank text is malformed.

    Returns:
        Extra parameters

    Raises:
        InvalidInput: If the document is malformed or not a flat object of strings
    """
    if extra is None:
        return {}

    try:
        value = json.loads(extra)
    except ValueError as e:
        raise InvalidInput(str(e))

    if value is None:
        return {}
    if not isinstance(value, dict):
        raise InvalidInput(f"expected a JSON object, got {type(value).__name__}")

    for key, item in value.items():
        if not isinstance(item, str):
            raise InvalidInput(f"value of '{key}' must be a string")

    return value


def run(
    action: str,
    username: str,
    password: str,
    extra: Optional[Dict[str, str]] = None,
    config: Optional[Config] = None,
    ctx: Optional[AuthContext] = None,
    log: Optional[logging.Logger] = None
) -> AuthOutcome:
    """
    Run a login or logout and fold every failure into an outcome.

    Args:
        action: "login" or "logout"
        username: Portal username
        password: Portal password
        extra: Decoded extra parameters
        config: Configuration object. Defaults are loaded if omitted.
        ctx: Request context
        log: Logger instance

    Returns:
        Outcome of the call
    """
    log = log or logger
    try:
        authenticator = Authenticator(config=config, logger=log)
        if action == LOGOUT:
            return authenticator.logout(ctx, username, password, extra)
        return authenticator.login(ctx, username, password, extra)
    except AuthError as e:
        return AuthOutcome.failed(action, e)
    except Exception as e:
        log.error(f"Unexpected error during {action}: {e}", exc_info=True)
        return AuthOutcome.failed(action, ProtocolError(f"unexpected error: {e}"))


def _call(
    action: str,
    username: str,
    password: str,
    extra: Optional[str],
    config: Optional[Config],
    ctx: Optional[AuthContext]
) -> str:
    try:
        parsed = parse_extra(extra)
    except InvalidInput as e:
        return f"{constants.EXTRA_PARSE_FAILURE_PREFIX}{e.message}"

    return run(action, username, password, parsed, config=config, ctx=ctx).message


def login(
    username: str,
    password: str,
    extra: Optional[str] = "{}",
    config: Optional[Config] = None,
    ctx: Optional[AuthContext] = None
) -> str:
    """
    Log in and describe the result.

    Returns:
        "登录成功" on success, "登录失败: [<kind>] <detail>" on failure,
        or "解析额外信息失败: <reason>" if ``extra`` cannot be decoded
    """
    return _call(LOGIN, username, password, extra, config, ctx)


def logout(
    username: str,
    password: str,
    extra: Optional[str] = "{}",
    config: Optional[Config] = None,
    ctx: Optional[AuthContext] = None
) -> str:
    """
    Log out and describe the result.

    Returns:
        "注销成功" on success, "注销失败: [<kind>] <detail>" on failure,
        or "解析额外信息失败: <reason>" if ``extra`` cannot be decoded
    """
    return _call(LOGOUT, username, password, extra, config, ctx)


__all__ = ["parse_extra", "run", "login", "logout"]
