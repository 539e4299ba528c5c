"""
Engine configuration from environment variables or a YAML file.

Environment keys use the TRIGGER_ prefix; SMTP settings reuse the EMAIL_* names.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml

from trigger_core.exceptions import ConfigurationError

STUCK_ORDER_POLICIES = ("fail", "ignore")

# Environment variable that must be "true" before the gateway places real orders.
LIVE_TRADING_ENV = "TRIGGER_LIVE_TRADING_ENABLED"

_ENV_KEYS = {
    "check_interval_seconds": "TRIGGER_CHECK_INTERVAL_SECONDS",
    "gateway_url": "TRIGGER_GATEWAY_URL",
    "gateway_token": "TRIGGER_GATEWAY_TOKEN",
    "request_timeout_seconds": "TRIGGER_REQUEST_TIMEOUT_SECONDS",
    "live_trading": LIVE_TRADING_ENV,
    "stuck_order_policy": "TRIGGER_STUCK_ORDER_POLICY",
    "smtp_host": "EMAIL_HOST",
    "smtp_port": "EMAIL_PORT",
    "smtp_username": "EMAIL_USERNAME",
    "smtp_password": "EMAIL_PASSWORD",
}


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class EngineConfig:
    """Settings for the trigger engine and its gateway/notification collaborators."""

    check_interval_seconds: float = 5.0
    gateway_url: str | None = None
    gateway_token: str | None = None
    request_timeout_seconds: float = 10.0
    live_trading: bool = False
    stuck_order_policy: str = "fail"
    smtp_host: str | None = None
    smtp_port: int = 465
    smtp_username: str | None = None
    smtp_password: str | None = None

    def __post_init__(self) -> None:
        try:
            self.check_interval_seconds = float(self.check_interval_seconds)
            self.request_timeout_seconds = float(self.request_timeout_seconds)
            self.smtp_port = int(self.smtp_port)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid numeric setting: {e}") from e
        if self.check_interval_seconds <= 0:
            raise ConfigurationError("check_interval_seconds must be positive")
        if self.request_timeout_seconds <= 0:
            raise ConfigurationError("request_timeout_seconds must be positive")
        self.live_trading = _parse_bool(self.live_trading)
        self.stuck_order_policy = str(self.stuck_order_policy).strip().lower()
        if self.stuck_order_policy not in STUCK_ORDER_POLICIES:
            raise ConfigurationError(
                f"stuck_order_policy must be one of {', '.join(STUCK_ORDER_POLICIES)}, "
                f"got {self.stuck_order_policy!r}"
            )
        if self.gateway_url:
            self.gateway_url = self.gateway_url.rstrip("/")

    @property
    def smtp_configured(self) -> bool:
        return bool(self.smtp_host and self.smtp_username and self.smtp_password)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> EngineConfig:
        """Build from a plain mapping; unknown keys are an error."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(f"Unknown config keys: {', '.join(unknown)}")
        return cls(**{k: v for k, v in data.items() if v is not None})

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> EngineConfig:
        env = os.environ if environ is None else environ
        values = {name: env[key] for name, key in _ENV_KEYS.items() if env.get(key, "") != ""}
        return cls.from_mapping(values)

    @classmethod
    def from_yaml(cls, path: str | Path) -> EngineConfig:
        """Load from YAML. Settings may sit at top level or under an ``engine:`` key."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Cannot read config {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config {path} must be a mapping")
        section = data.get("engine", data)
        if not isinstance(section, dict):
            raise ConfigurationError(f"'engine' section in {path} must be a mapping")
        return cls.from_mapping(section)
