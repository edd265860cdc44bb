"""Gateway configuration loading.

Settings live in ``config/default.yaml``; the master public key and a few
operational knobs can be overridden from the environment (``.env`` is read
by the CLI through ``load_dotenv``).
"""
from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

import yaml

from core.errors import ConfigError

log = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = os.path.join(os.path.dirname(__file__), "..", "..", "config", "default.yaml")

DEFAULTS: Dict[str, Any] = {
    "name": "",
    "pubkey": "",
    "default_currency": "BTC",
    "confirmations_required": 0,
    "order_class": "order.order:Order",
    "blockchain_adapters": ["blockchain_info", "blockstream"],
    "exchange_rate_adapters": ["bitpay", "coinbase", "bitstamp"],
    "http_timeout_s": 10,
    "rates_ttl_s": 60,
    "log_level": "INFO",
    "status_check": {"period_s": 10, "duration_s": 600},
}

# env var -> (config key, converter)
ENV_OVERRIDES = {
    "SATGATE_PUBKEY": ("pubkey", str),
    "SATGATE_DEFAULT_CURRENCY": ("default_currency", str),
    "SATGATE_CONFIRMATIONS": ("confirmations_required", int),
    "SATGATE_NAME": ("name", str),
    "SATGATE_LOG_LEVEL": ("log_level", str),
}


def load_config(path: Optional[str] = None, environ: Optional[dict] = None) -> dict:
    """Read the YAML config, apply defaults and environment overrides, validate."""
    path = path or DEFAULT_CONFIG_PATH
    environ = os.environ if environ is None else environ

    raw: dict = {}
    if os.path.exists(path):
        with open(path, "r") as f:
            raw = yaml.safe_load(f) or {}
    else:
        log.warning("Config file %s not found, using defaults", path)
    if not isinstance(raw, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")

    config = {**DEFAULTS, **raw}
    config["status_check"] = {**DEFAULTS["status_check"], **(raw.get("status_check") or {})}

    for env_name, (key, conv) in ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value:
            try:
                config[key] = conv(value)
            except ValueError:
                raise ConfigError(f"{env_name}={value!r} is not a valid {key}") from None

    validate_config(config)
    return config


def validate_config(config: dict) -> None:
    confirmations = config.get("confirmations_required", 0)
    if isinstance(confirmations, bool) or not isinstance(confirmations, int) or confirmations < 0:
        raise ConfigError(
            f"confirmations_required must be a non-negative integer, got {confirmations!r}"
        )

    currency = config.get("default_currency")
    if not isinstance(currency, str) or not currency.strip():
        raise ConfigError(f"default_currency must be a non-empty string, got {currency!r}")

    for key in ("blockchain_adapters", "exchange_rate_adapters"):
        names = config.get(key)
        if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
            raise ConfigError(f"{key} must be a list of adapter names")

    for key in ("http_timeout_s", "rates_ttl_s"):
        value = config.get(key)
        if not isinstance(value, (int, float)) or isinstance(value, bool) or value < 0:
            raise ConfigError(f"{key} must be a non-negative number, got {value!r}")

    status_check = config.get("status_check") or {}
    for key in ("period_s", "duration_s"):
        value = status_check.get(key)
        if not isinstance(value, (int, float)) or isinstance(value, bool) or value <= 0:
            raise ConfigError(f"status_check.{key} must be a positive number, got {value!r}")
