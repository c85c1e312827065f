"""
Load submission settings from YAML.

`${VAR}` references are resolved from the environment after `.env` is
loaded, so endpoints and keys stay out of the config files.
"""

import os
import re
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from core.retry_policy import STANDARD_POLICY, TIPPED_POLICY, RetryPolicy
from core.settings import (
    DEFAULT_MIN_BALANCE_SOL,
    DEFAULT_RELAY_URL,
    DEFAULT_TIP_RECIPIENT,
    SendSettings,
)
from utils.logger import get_logger

logger = get_logger(__name__)

ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")

FEE_STRATEGIES = ("conservative", "aggressive", "sniper")


def resolve_env_vars(raw: str) -> str:
    """Replace every `${VAR}` in `raw` with its environment value.

    Raises:
        ValueError: a referenced variable is not set.
    """
    missing = [name for name in ENV_VAR_PATTERN.findall(raw) if os.environ.get(name) is None]
    if missing:
        names = ", ".join(f"${{{name}}}" for name in sorted(set(missing)))
        raise ValueError(f"Environment variables not set: {names}")
    return ENV_VAR_PATTERN.sub(lambda m: os.environ[m.group(1)], raw)


def load_config_dict(path: str | Path) -> dict[str, Any]:
    load_dotenv()

    config_path = Path(path)
    raw = resolve_env_vars(config_path.read_text(encoding="utf-8"))
    config = yaml.safe_load(raw)
    if not isinstance(config, dict):
        raise ValueError(f"{config_path}: top level must be a mapping")
    return config


def _section(config: dict, key: str) -> dict:
    value = config.get(key) or {}
    if not isinstance(value, dict):
        raise ValueError(f"'{key}' must be a mapping")
    return value


def settings_from_dict(config: dict[str, Any]) -> SendSettings:
    """Build SendSettings from an already parsed config mapping."""
    fees = _section(config, "fees")
    relay = _section(config, "relay")
    retry = _section(config, "retry")

    strategy = fees.get("dynamic_strategy", "aggressive")
    if strategy not in FEE_STRATEGIES:
        raise ValueError(f"Unknown dynamic_strategy '{strategy}', expected one of {FEE_STRATEGIES}")

    priority_fee = fees.get("priority_fee")
    dynamic_max = fees.get("dynamic_max")

    return SendSettings(
        rpc_endpoint=config.get("rpc_endpoint") or "",
        commitment=config.get("commitment", "confirmed"),
        min_balance_sol=float(config.get("min_balance_sol", DEFAULT_MIN_BALANCE_SOL)),
        skip_confirm=bool(config.get("skip_confirm", False)),
        priority_fee=int(priority_fee) if priority_fee is not None else None,
        dynamic_fee=bool(fees.get("dynamic", False)),
        dynamic_fee_strategy=strategy,
        dynamic_fee_max=int(dynamic_max) if dynamic_max is not None else None,
        tip_lamports=int(fees.get("tip_lamports", 0) or 0),
        relay_url=relay.get("url", DEFAULT_RELAY_URL),
        tip_recipient=relay.get("tip_recipient", DEFAULT_TIP_RECIPIENT),
        standard_policy=RetryPolicy.from_dict(_section(retry, "standard"), STANDARD_POLICY),
        tipped_policy=RetryPolicy.from_dict(_section(retry, "tipped"), TIPPED_POLICY),
        rpc_timeout=float(config.get("rpc_timeout", 10.0)),
        relay_timeout=float(relay.get("timeout", 30.0)),
    )


def load_send_config(path: str | Path) -> SendSettings:
    """
    Load and validate a submission config file.

    Raises:
        ValueError: unresolved `${VAR}`, missing rpc_endpoint, unknown
                    commitment level or strategy, negative fees.
    """
    settings = settings_from_dict(load_config_dict(path))
    logger.info(f"Loaded send config from {path}")
    return settings


def print_config_summary(settings: SendSettings) -> None:
    """Log a short summary of the active settings."""
    logger.info("Send configuration:")
    logger.info(f"  RPC: {settings.rpc_endpoint} (commitment={settings.commitment})")
    if settings.dynamic_fee:
        logger.info(
            f"  Priority fee: dynamic/{settings.dynamic_fee_strategy}, "
            f"cap={settings.dynamic_fee_max}, fallback={settings.priority_fee}"
        )
    else:
        logger.info(f"  Priority fee: {settings.priority_fee or 0} microlamports")
    if settings.tip_lamports > 0:
        logger.info(f"  Tip: {settings.tip_lamports} lamports via {settings.relay_url}")
    else:
        logger.info("  Tip: none (standard RPC channel)")
    logger.info(
        f"  Min balance: {settings.min_balance_sol} SOL, skip_confirm={settings.skip_confirm}"
    )
