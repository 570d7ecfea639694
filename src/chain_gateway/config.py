"""Environment configuration loading."""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


class ConfigError(Exception):
    """Raised when required configuration is missing or malformed."""


@dataclass(frozen=True, slots=True)
class Config:
    evm_rpc_url: str
    cosmos_rpc_url: str
    port: int = 3000
    rpc_timeout: float = 30.0
    request_log_path: str = ""


def _number(name: str, default: str, kind: type) -> int | float:
    raw = os.environ.get(name, "") or default
    try:
        value = kind(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from e
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {raw!r}")
    return value


def load_config() -> Config:
    """Load configuration from environment variables (and a .env file).

    Raises ConfigError if EVM_RPC or COSMOS_RPC is not set.
    """
    load_dotenv()

    evm_rpc = os.environ.get("EVM_RPC", "").strip()
    if not evm_rpc:
        raise ConfigError("EVM_RPC environment variable is required")

    cosmos_rpc = os.environ.get("COSMOS_RPC", "").strip()
    if not cosmos_rpc:
        raise ConfigError("COSMOS_RPC environment variable is required")

    return Config(
        evm_rpc_url=evm_rpc,
        cosmos_rpc_url=cosmos_rpc,
        port=int(_number("PORT", "3000", int)),
        rpc_timeout=float(_number("RPC_TIMEOUT", "30", float)),
        request_log_path=os.environ.get("REQUEST_LOG_PATH", ""),
    )
