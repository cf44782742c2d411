from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from wallet_constants import (
    DEFAULT_DUST_AMOUNT,
    DEFAULT_ENCRYPTION_ITERATIONS,
    DEFAULT_ENCRYPTION_KEY_SIZE,
    DEFAULT_MAX_TX_FEE,
)
from wallet_errors import WalletConfigError

# Load .env from project root
PROJECT_ROOT = Path(__file__).parent
load_dotenv(PROJECT_ROOT / ".env")


def _int_from_env(name: str, default: int, minimum: int = 0) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError as exc:
        raise WalletConfigError(
            f"Invalid {name}={raw!r}. Expected an integer."
        ) from exc
    if value < minimum:
        raise WalletConfigError(f"Invalid {name}={raw!r}. Must be >= {minimum}.")
    return value


@dataclass
class WalletUtilsConfig:
    """
    Configuration for transaction assembly and metadata encryption.

    Values are sourced from environment variables or a .env file.

    - WALLET_MAX_TX_FEE: upper bound in satoshis for inputs minus outputs
      (defaults to 1 BTC).
    - WALLET_DUST_AMOUNT: change below or at this value is left to the fee.
    - WALLET_ENCRYPTION_ITERATIONS: key-stretching iterations for metadata
      encryption. 1 keeps compatibility with existing ciphertext.
    - WALLET_ENCRYPTION_KEY_SIZE: AES key size in bits (128, 192 or 256).
    """

    max_tx_fee: int = DEFAULT_MAX_TX_FEE
    dust_amount: int = DEFAULT_DUST_AMOUNT
    encryption_iterations: int = DEFAULT_ENCRYPTION_ITERATIONS
    encryption_key_size: int = DEFAULT_ENCRYPTION_KEY_SIZE

    @classmethod
    def from_env(cls) -> WalletUtilsConfig:
        key_size = _int_from_env(
            "WALLET_ENCRYPTION_KEY_SIZE", DEFAULT_ENCRYPTION_KEY_SIZE
        )
        if key_size not in (128, 192, 256):
            raise WalletConfigError(
                f"Invalid WALLET_ENCRYPTION_KEY_SIZE={key_size}. "
                "Expected 128, 192 or 256."
            )

        return cls(
            max_tx_fee=_int_from_env("WALLET_MAX_TX_FEE", DEFAULT_MAX_TX_FEE),
            dust_amount=_int_from_env("WALLET_DUST_AMOUNT", DEFAULT_DUST_AMOUNT),
            encryption_iterations=_int_from_env(
                "WALLET_ENCRYPTION_ITERATIONS", DEFAULT_ENCRYPTION_ITERATIONS, minimum=1
            ),
            encryption_key_size=key_size,
        )
