"""
Address derivation from a copayer public key ring.

Implements:
- P2PKH (single key) and m-of-n P2SH multisig addresses derived from
  extended public keys along a shared path
- Stable copayer identifiers from extended public keys
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Any, Sequence

from bit.base58 import b58encode_check
from bitcoin.core import Hash160
from bitcoin.core.script import OP_CHECKMULTISIG, CScript

from wallet_constants import (
    MAX_MULTISIG_KEYS,
    NETWORK_ALIASES,
    PUBKEY_HASH_VERSION,
    SCRIPT_HASH_VERSION,
    AddressScheme,
    WalletNetwork,
)
from wallet_errors import ArgumentError, StateError
from wallet_hd import derive_public_key


@dataclass(frozen=True)
class PublicKeyRingEntry:
    x_pub_key: str
    request_pub_key: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PublicKeyRingEntry:
        return cls(
            x_pub_key=data.get("xPubKey") or data.get("x_pub_key", ""),
            request_pub_key=data.get("requestPubKey") or data.get("request_pub_key"),
        )


@dataclass(frozen=True)
class DerivedAddress:
    address: str
    path: str
    public_keys: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "path": self.path,
            "publicKeys": list(self.public_keys),
        }


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def coerce_scheme(scheme: Any) -> AddressScheme:
    try:
        return AddressScheme(scheme)
    except ValueError as exc:
        raise ArgumentError(f"Unrecognized address scheme: {scheme!r}") from exc


def normalize_network(network: str) -> WalletNetwork:
    resolved = NETWORK_ALIASES.get(str(network).lower())
    if resolved is None:
        raise ArgumentError(
            f"Invalid network {network!r}. Expected 'mainnet' or 'testnet'."
        )
    return resolved


def _ring_xpub(item: Any) -> str:
    if isinstance(item, PublicKeyRingEntry):
        return item.x_pub_key
    if isinstance(item, dict):
        return PublicKeyRingEntry.from_dict(item).x_pub_key
    if isinstance(item, str):
        return item
    raise ArgumentError(f"Unsupported public key ring entry: {type(item).__name__}")


def multisig_redeem_script(public_keys: Sequence[bytes], m: int) -> CScript:
    """OP_m <pubkey>... OP_n OP_CHECKMULTISIG, keys in the order given."""
    n = len(public_keys)
    if n == 0 or n > MAX_MULTISIG_KEYS:
        raise ArgumentError(f"Multisig requires 1 to {MAX_MULTISIG_KEYS} public keys, got {n}.")
    if not isinstance(m, int) or isinstance(m, bool) or not 1 <= m <= n:
        raise ArgumentError(f"Invalid signature threshold m={m!r} for {n} public keys.")
    return CScript([m, *public_keys, n, OP_CHECKMULTISIG])


def script_to_p2sh_address(script: bytes, network: str = "mainnet") -> str:
    net = normalize_network(network)
    return b58encode_check(SCRIPT_HASH_VERSION[net] + Hash160(bytes(script)))


def public_key_to_p2pkh_address(public_key: bytes, network: str = "mainnet") -> str:
    net = normalize_network(network)
    return b58encode_check(PUBKEY_HASH_VERSION[net] + Hash160(public_key))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def derive_address(
    scheme: AddressScheme | str,
    public_key_ring: Sequence[Any],
    path: str,
    m: int = 1,
    network: str = "mainnet",
    sort_keys: bool = False,
) -> DerivedAddress:
    """
    Derive the wallet address at path for the given copayer ring.

    MULTISIG keeps ring order in the redeem script unless sort_keys is set,
    in which case keys are sorted lexicographically (BIP67). SINGLE_KEY needs
    exactly one ring entry.
    """
    scheme = coerce_scheme(scheme)
    net = normalize_network(network)

    public_keys = [derive_public_key(_ring_xpub(item), path) for item in public_key_ring]

    if scheme == AddressScheme.MULTISIG:
        script_keys = sorted(public_keys) if sort_keys else public_keys
        address = script_to_p2sh_address(multisig_redeem_script(script_keys, m), net)
    else:
        if len(public_keys) != 1:
            raise StateError(
                f"Single-key addresses need exactly one ring entry, got {len(public_keys)}."
            )
        address = public_key_to_p2pkh_address(public_keys[0], net)

    return DerivedAddress(
        address=address,
        path=path,
        public_keys=tuple(pk.hex() for pk in public_keys),
    )


def xpub_to_copayer_id(x_pub_key: str) -> str:
    """Hex SHA-256 of the extended public key string."""
    return hashlib.sha256(x_pub_key.encode("utf-8")).hexdigest()
