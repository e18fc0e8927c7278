"""
Gemvest Configuration

Supports testnet and mainnet deployments with separate configurations.

All settings are read from GEMVEST_* environment variables at import time.
Mainnet refuses to start without an explicit administrator address; testnet
falls back to a well-known development address with a warning.
"""

from __future__ import annotations

import logging
import os
from enum import Enum

from gemvest.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class NetworkType(Enum):
    TESTNET = "testnet"
    MAINNET = "mainnet"


def _get_bool(env_var: str, default: str = "0") -> bool:
    raw = os.getenv(env_var, default).strip().lower()
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("0", "false", "no", "off", ""):
        return False
    raise ConfigurationError(f"{env_var} must be a boolean flag, got {raw!r}")


def _get_int(env_var: str, default: str) -> int:
    raw = os.getenv(env_var, default).strip()
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{env_var} must be an integer, got {raw!r}") from exc


def _get_admin_address(network: str) -> str:
    """Get the pool administrator address, with mainnet enforcement."""
    value = os.getenv("GEMVEST_ADMIN_ADDRESS", "").strip().lower()
    if value:
        return value

    if network.lower() == "mainnet":
        raise ConfigurationError(
            "CRITICAL: GEMVEST_ADMIN_ADDRESS environment variable required for mainnet."
        )

    logger.warning(
        "GEMVEST_ADMIN_ADDRESS not set, using development admin for testnet.",
        extra={"event": "config.admin_defaulted"},
    )
    return DEV_ADMIN_ADDRESS


# Get network type from environment variable
NETWORK = os.getenv("GEMVEST_NETWORK", "testnet")  # Default to testnet for safety

DEV_ADMIN_ADDRESS = "0x" + "ad" * 20

LOG_LEVEL = os.getenv("GEMVEST_LOG_LEVEL", "INFO").strip().upper()
LOG_FILE = os.getenv("GEMVEST_LOG_FILE", "").strip() or None
LOG_JSON = _get_bool("GEMVEST_LOG_JSON", "1")

API_HOST = os.getenv("GEMVEST_API_HOST", "127.0.0.1").strip()
API_PORT = _get_int("GEMVEST_API_PORT", "8090")
API_MAX_BATCH_SIZE = _get_int("GEMVEST_API_MAX_BATCH_SIZE", "500")

# Reject unstake callbacks whose claimant differs from the recorded staker
STRICT_EXIT_CLAIMANT = _get_bool("GEMVEST_STRICT_EXIT_CLAIMANT", "0")

STATE_FILE = os.getenv(
    "GEMVEST_STATE_FILE",
    os.path.join(os.getcwd(), "data", "vesting_state.json"),
)

ADMIN_ADDRESS = _get_admin_address(NETWORK)

if LOG_LEVEL not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
    raise ConfigurationError(f"GEMVEST_LOG_LEVEL is not a logging level: {LOG_LEVEL!r}")


class TestnetConfig:
    """Testnet Configuration (local simulation and integration testing)"""

    NETWORK_TYPE = NetworkType.TESTNET

    ADMIN_ADDRESS = ADMIN_ADDRESS
    STRICT_EXIT_CLAIMANT = STRICT_EXIT_CLAIMANT

    LOG_LEVEL = LOG_LEVEL
    LOG_FILE = LOG_FILE
    LOG_JSON = LOG_JSON
    ENVIRONMENT = "testnet"

    API_HOST = API_HOST
    API_PORT = API_PORT
    API_MAX_BATCH_SIZE = API_MAX_BATCH_SIZE

    STATE_FILE = STATE_FILE

    # Simulations may rewind the clock
    ALLOW_TIME_TRAVEL = True


class MainnetConfig:
    """Mainnet Configuration (production deployment)"""

    NETWORK_TYPE = NetworkType.MAINNET

    ADMIN_ADDRESS = ADMIN_ADDRESS
    STRICT_EXIT_CLAIMANT = STRICT_EXIT_CLAIMANT

    LOG_LEVEL = LOG_LEVEL
    LOG_FILE = LOG_FILE
    LOG_JSON = LOG_JSON
    ENVIRONMENT = "production"

    API_HOST = API_HOST
    API_PORT = API_PORT
    API_MAX_BATCH_SIZE = API_MAX_BATCH_SIZE

    STATE_FILE = STATE_FILE

    ALLOW_TIME_TRAVEL = False


# Select config based on network
if NETWORK.lower() == "mainnet":
    Config = MainnetConfig
else:
    Config = TestnetConfig

# Export config
__all__ = [
    "Config",
    "NetworkType",
    "TestnetConfig",
    "MainnetConfig",
    "ADMIN_ADDRESS",
    "STRICT_EXIT_CLAIMANT",
    "API_MAX_BATCH_SIZE",
]
