"""
Configuration module for SCUNET authentication.

Loads configuration from an optional JSON file and environment variables,
on top of built-in defaults.
"""

import copy
import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

from . import constants


DEFAULTS: Dict[str, Any] = {
    "network": {
        "check_url": constants.DEFAULT_CHECK_URL,
        "check_content": constants.DEFAULT_CHECK_CONTENT,
    },
    "http": {
        "timeout": constants.DEFAULT_TIMEOUT,
        "max_redirects": constants.DEFAULT_MAX_REDIRECTS,
        "verify_ssl": False,
        "user_agent": constants.DEFAULT_USER_AGENT,
    },
    "portal": {
        "variant": constants.VARIANT_RUIJIE,
        "detect_url": constants.DEFAULT_DETECT_URL,
        "base_url": constants.DEFAULT_PORTAL_BASE_URL,
        "encrypt_password": "auto",
    },
    "retry": {
        "max_attempts": constants.DEFAULT_MAX_ATTEMPTS,
        "backoff_base": constants.DEFAULT_BACKOFF_BASE,
        "backoff_max": constants.DEFAULT_BACKOFF_MAX,
    },
    "login": {
        "verify_after_login": False,
    },
    "accounts": {
        "file": "~/.config/scunet-auth/accounts.json",
    },
}

# Environment variable -> (section, key, type)
ENV_OVERRIDES = {
    "SCUNET_PORTAL_VARIANT": ("portal", "variant", str),
    "SCUNET_PORTAL_BASE_URL": ("portal", "base_url", str),
    "SCUNET_DETECT_URL": ("portal", "detect_url", str),
    "SCUNET_CHECK_URL": ("network", "check_url", str),
    "SCUNET_TIMEOUT": ("http", "timeout", float),
    "SCUNET_MAX_ATTEMPTS": ("retry", "max_attempts", int),
    "SCUNET_VERIFY_SSL": ("http", "verify_ssl", bool),
    "SCUNET_ACCOUNTS_FILE": ("accounts", "file", str),
}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``override`` into a copy of ``base``."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Configuration manager for the application."""

    def __init__(self, config_file: Optional[str] = None, overrides: Optional[Dict[str, Any]] = None):
        """
        Initialize configuration.

        Args:
            config_file: Path to configuration JSON file. If None, uses CONFIG_FILE env var,
                        then 'config.json' when it exists, then the built-in defaults
            overrides: Nested dictionary applied after the file (mainly for tests)
        """
        explicit = config_file or os.getenv("CONFIG_FILE")
        self.config_file = explicit or "config.json"
        self.config: Dict[str, Any] = copy.deepcopy(DEFAULTS)
        self._load_config(required=bool(explicit))
        if overrides:
            self.config = _merge(self.config, overrides)
        self._override_from_env()
        self._validate_config()

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "Config":
        """Build a configuration from defaults plus ``values`` without touching disk."""
        return cls(config_file=os.devnull, overrides=values)

    def _load_config(self, required: bool) -> None:
        """Load configuration from JSON file."""
        if self.config_file == os.devnull:
            return

        config_path = Path(self.config_file).expanduser()
        if not config_path.exists():
            if required:
                raise FileNotFoundError(f"Configuration file not found: {self.config_file}")
            return

        with open(config_path, "r", encoding="utf-8") as f:
            self.config = _merge(self.config, json.load(f))

    def _override_from_env(self) -> None:
        """Override configuration with environment variables."""
        for env_name, (section, key, cast) in ENV_OVERRIDES.items():
            raw = os.getenv(env_name)
            if raw is None or raw == "":
                continue
            try:
                value = _parse_bool(raw) if cast is bool else cast(raw)
            except ValueError:
                raise ValueError(f"Invalid value for {env_name}: {raw!r}")
            self.config.setdefault(section, {})[key] = value

    def _validate_config(self) -> None:
        """Validate configuration values."""
        variant = self.portal_variant
        if variant not in constants.PORTAL_VARIANTS:
            raise ValueError(
                f"Unknown portal variant '{variant}'. "
                f"Available variants: {', '.join(constants.PORTAL_VARIANTS)}"
            )

        if self.http_timeout <= 0:
            raise ValueError("http.timeout must be greater than zero")

        if self.max_attempts < 1:
            raise ValueError("retry.max_attempts must be at least 1")

        if self.backoff_base < 0 or self.backoff_max < 0:
            raise ValueError("retry.backoff_base and retry.backoff_max must not be negative")

        if not self.detect_url:
            raise ValueError("Missing required configuration: portal.detect_url")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by key (supports dot notation).

        Args:
            key: Configuration key (e.g., 'portal.base_url')
            default: Default value if key not found

        Returns:
            Configuration value
        """
        keys = key.split(".")
        value = self.config

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default

        return value

    @property
    def check_url(self) -> str:
        """Get the connectivity check URL."""
        return self.get("network.check_url", constants.DEFAULT_CHECK_URL)

    @property
    def check_content(self) -> str:
        """Get the body marker expected from the check URL when online."""
        return self.get("network.check_content", "")

    @property
    def http_timeout(self) -> float:
        """Get request timeout in seconds."""
        return float(self.get("http.timeout", constants.DEFAULT_TIMEOUT))

    @property
    def max_redirects(self) -> int:
        return int(self.get("http.max_redirects", constants.DEFAULT_MAX_REDIRECTS))

    @property
    def verify_ssl(self) -> bool:
        """Get SSL verification setting (portals usually serve self-signed certs)."""
        return bool(self.get("http.verify_ssl", False))

    @property
    def user_agent(self) -> str:
        return self.get("http.user_agent", constants.DEFAULT_USER_AGENT)

    @property
    def portal_variant(self) -> str:
        """Get portal variant name (auto, ruijie, drcom)."""
        return str(self.get("portal.variant", constants.VARIANT_RUIJIE)).lower()

    @property
    def detect_url(self) -> str:
        """Get the URL probed to trigger the captive portal redirect."""
        return self.get("portal.detect_url", constants.DEFAULT_DETECT_URL)

    @property
    def portal_base_url(self) -> Optional[str]:
        """Get configured portal base URL, if any."""
        return self.get("portal.base_url")

    @property
    def encrypt_password(self) -> str:
        """Get password encryption mode: 'auto', 'true' or 'false'."""
        value = self.get("portal.encrypt_password", "auto")
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value).lower()

    @property
    def max_attempts(self) -> int:
        """Get maximum attempts for transient failures."""
        return int(self.get("retry.max_attempts", constants.DEFAULT_MAX_ATTEMPTS))

    @property
    def backoff_base(self) -> float:
        return float(self.get("retry.backoff_base", constants.DEFAULT_BACKOFF_BASE))

    @property
    def backoff_max(self) -> float:
        return float(self.get("retry.backoff_max", constants.DEFAULT_BACKOFF_MAX))

    @property
    def verify_after_login(self) -> bool:
        """Check if the network should be re-probed after a successful login."""
        return bool(self.get("login.verify_after_login", False))

    @property
    def accounts_file(self) -> Path:
        """Get path of the saved accounts file."""
        return Path(self.get("accounts.file", DEFAULTS["accounts"]["file"])).expanduser()

    def __repr__(self) -> str:
        """String representation of config."""
        return f"Config(file={self.config_file}, variant={self.portal_variant})"
