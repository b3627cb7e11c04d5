"""
accountkit configuration

Values are read from environment variables once, at import time. The
network selects the passphrase whose hash seeds every contract address, so
addresses predicted on one network never collide with another.
"""

from __future__ import annotations

import hashlib
import logging
import os
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class NetworkType(Enum):
    TESTNET = "testnet"
    MAINNET = "mainnet"
    FUTURENET = "futurenet"
    STANDALONE = "standalone"


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


NETWORK_PASSPHRASES = {
    NetworkType.MAINNET: "Public Global Stellar Network ; September 2015",
    NetworkType.TESTNET: "Test SDF Network ; September 2015",
    NetworkType.FUTURENET: "Test SDF Future Network ; October 2022",
    NetworkType.STANDALONE: "Standalone Network ; February 2017",
}

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def parse_network(value: str) -> NetworkType:
    """Parse a network name, case-insensitively."""
    try:
        return NetworkType(value.strip().lower())
    except ValueError:
        valid = ", ".join(n.value for n in NetworkType)
        raise ConfigurationError(f"Unknown network '{value}'. Expected one of: {valid}")


def network_passphrase(network: Optional[NetworkType] = None) -> str:
    """Passphrase for a network; a custom passphrase overrides the preset."""
    if CUSTOM_NETWORK_PASSPHRASE:
        return CUSTOM_NETWORK_PASSPHRASE
    return NETWORK_PASSPHRASES[network or NETWORK]


def network_id(passphrase: Optional[str] = None) -> bytes:
    """32-byte network id: sha256 of the network passphrase."""
    if passphrase is None:
        passphrase = network_passphrase()
    return hashlib.sha256(passphrase.encode("utf-8")).digest()


def _optional_hex32(env_var: str) -> Optional[bytes]:
    value = os.getenv(env_var, "").strip()
    if not value:
        return None
    try:
        raw = bytes.fromhex(value)
    except ValueError:
        raise ConfigurationError(f"{env_var} must be hex encoded")
    if len(raw) != 32:
        raise ConfigurationError(f"{env_var} must be 32 bytes, got {len(raw)}")
    return raw


def _log_level(env_var: str, default: str) -> str:
    value = os.getenv(env_var, default).strip().upper()
    if value not in VALID_LOG_LEVELS:
        logger.warning(
            "Invalid log level %s=%s, falling back to %s",
            env_var,
            value,
            default,
            extra={"event": "config.invalid_log_level", "env_var": env_var},
        )
        return default
    return value


# Get network type from environment variable
NETWORK = parse_network(os.getenv("ACCOUNTKIT_NETWORK", "testnet"))  # Default to testnet for safety
CUSTOM_NETWORK_PASSPHRASE = os.getenv("ACCOUNTKIT_NETWORK_PASSPHRASE", "").strip()

# Deployed factory, for client-side address prediction, and the account
# code hash a factory deployment must use
ACCOUNT_FACTORY_ADDRESS = os.getenv("ACCOUNTKIT_ACCOUNT_FACTORY_ADDRESS", "").strip()
SIMPLE_ACCOUNT_WASM_HASH = _optional_hex32("ACCOUNTKIT_SIMPLE_ACCOUNT_WASM_HASH")

# Logging
LOG_LEVEL = _log_level("ACCOUNTKIT_LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("ACCOUNTKIT_LOG_FILE", "").strip() or None
LOG_ENVIRONMENT = os.getenv("ACCOUNTKIT_LOG_ENVIRONMENT", NETWORK.value)
