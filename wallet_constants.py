"""
Shared constants for the wallet client utilities.

Script types, reserved derivation paths, display units and defaults used by
address derivation, request-key authentication and transaction assembly.
"""

from __future__ import annotations

from enum import Enum
from typing import Literal

# ---------------------------------------------------------------------------
# Address schemes
# ---------------------------------------------------------------------------


class AddressScheme(str, Enum):
    """Script type used for wallet addresses and the inputs spent from them."""

    SINGLE_KEY = "P2PKH"
    MULTISIG = "P2SH"


# ---------------------------------------------------------------------------
# Reserved derivation paths
# ---------------------------------------------------------------------------

# Non-hardened so the copayer xpub alone can verify request-key signatures.
REQUEST_KEY_AUTH_PATH = "m/2"
REQUEST_KEY_PATH = "m/1'/0"
TXPROPOSAL_KEY_PATH = "m/1'/1"

# ---------------------------------------------------------------------------
# Networks
# ---------------------------------------------------------------------------

WalletNetwork = Literal["mainnet", "testnet"]

NETWORK_ALIASES: dict[str, WalletNetwork] = {
    "mainnet": "mainnet",
    "livenet": "mainnet",
    "main": "mainnet",
    "testnet": "testnet",
    "test": "testnet",
}

# Base58 version bytes
PUBKEY_HASH_VERSION = {"mainnet": b"\x00", "testnet": b"\x6f"}
SCRIPT_HASH_VERSION = {"mainnet": b"\x05", "testnet": b"\xc4"}

# Standard P2SH multisig limit (520-byte redeem script)
MAX_MULTISIG_KEYS = 15

# ---------------------------------------------------------------------------
# Display units
# ---------------------------------------------------------------------------

# maxDecimals / minDecimals for the "short" and "full" precision profiles.
UNITS: dict[str, dict] = {
    "BTC": {
        "to_satoshis": 100_000_000,
        "full": {"max_decimals": 8, "min_decimals": 8},
        "short": {"max_decimals": 8, "min_decimals": 2},
    },
    "mBTC": {
        "to_satoshis": 100_000,
        "full": {"max_decimals": 5, "min_decimals": 5},
        "short": {"max_decimals": 3, "min_decimals": 2},
    },
    "bits": {
        "to_satoshis": 100,
        "full": {"max_decimals": 2, "min_decimals": 2},
        "short": {"max_decimals": 0, "min_decimals": 0},
    },
    "sat": {
        "to_satoshis": 1,
        "full": {"max_decimals": 0, "min_decimals": 0},
        "short": {"max_decimals": 0, "min_decimals": 0},
    },
}

UNIT_ALIASES = {
    "btc": "BTC",
    "mbtc": "mBTC",
    "bits": "bits",
    "bit": "bits",
    "sat": "sat",
    "sats": "sat",
}

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULT_MAX_TX_FEE = 100_000_000  # 1 BTC
DEFAULT_DUST_AMOUNT = 546
DEFAULT_ENCRYPTION_ITERATIONS = 1
DEFAULT_ENCRYPTION_KEY_SIZE = 128
