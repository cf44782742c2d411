"""
Hierarchical-deterministic key helpers.

Parses derivation paths and derives child keys from serialized extended
keys (xpub/xprv, tpub/tprv) via bip_utils.
"""

from __future__ import annotations

from bip_utils import Bip32Slip10Secp256k1
from bip_utils.bip.bip32 import Bip32Const

from wallet_errors import ArgumentError

HARDENED_OFFSET = 0x80000000

_TESTNET_PREFIXES = ("tpub", "tprv")


def parse_derivation_path(path: str) -> list[int]:
    """
    Parse a BIP-32 derivation path into child indexes.

    e.g. "m/1'/0" -> [0x80000001, 0]. A leading "m" is optional and "m" alone
    yields no indexes.
    """
    if not isinstance(path, str) or not path.strip():
        raise ArgumentError("Derivation path is required.")

    path = path.strip()
    if path == "m":
        return []
    if path.startswith("m/"):
        path = path[2:]

    indexes = []
    for comp in path.split("/"):
        hardened = comp.endswith("'") or comp.endswith("h")
        digits = comp.rstrip("'h")
        if not digits.isdigit():
            raise ArgumentError(f"Invalid derivation path component {comp!r} in {path!r}.")
        index = int(digits)
        if index >= HARDENED_OFFSET:
            raise ArgumentError(f"Derivation index out of range: {comp!r}.")
        if hardened:
            index += HARDENED_OFFSET
        indexes.append(index)
    return indexes


def _load_extended_key(extended_key: str) -> Bip32Slip10Secp256k1:
    if not isinstance(extended_key, str) or not extended_key:
        raise ArgumentError("Extended key is required.")

    key_net_ver = (
        Bip32Const.TEST_NET_KEY_NET_VERSIONS
        if extended_key.startswith(_TESTNET_PREFIXES)
        else Bip32Const.MAIN_NET_KEY_NET_VERSIONS
    )
    try:
        return Bip32Slip10Secp256k1.FromExtendedKey(extended_key, key_net_ver)
    except Exception as exc:  # noqa: BLE001
        raise ArgumentError("Invalid extended key.") from exc


def _derive(extended_key: str, path: str) -> Bip32Slip10Secp256k1:
    ctx = _load_extended_key(extended_key)
    for index in parse_derivation_path(path):
        if index >= HARDENED_OFFSET and ctx.IsPublicOnly():
            raise ArgumentError(
                f"Cannot derive hardened path {path!r} from an extended public key."
            )
        try:
            ctx = ctx.ChildKey(index)
        except Exception as exc:  # noqa: BLE001
            raise ArgumentError(f"Failed to derive child key at {path!r}: {exc}") from exc
    return ctx


def derive_public_key(extended_key: str, path: str) -> bytes:
    """Derive the 33-byte compressed child public key at path."""
    return _derive(extended_key, path).PublicKey().RawCompressed().ToBytes()


def derive_private_key(extended_private_key: str, path: str) -> bytes:
    """Derive the 32-byte child private key at path from an xprv."""
    ctx = _derive(extended_private_key, path)
    if ctx.IsPublicOnly():
        raise ArgumentError("An extended private key is required.")
    return ctx.PrivateKey().Raw().ToBytes()
