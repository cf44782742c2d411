"""
Message hashing, signing and verification.

Implements:
- Wallet message hashing (double SHA-256, reversed byte order)
- Deterministic low-S ECDSA signing and soft-failing verification
- Request-key authentication bound to the copayer's extended key
- AES key derivation from a private key
- Copayer and spend-proposal fingerprints
"""

from __future__ import annotations

import base64
import hashlib
import json
import logging
from typing import Any

import coincurve
from bit.format import wif_to_bytes
from bitcoin.core import Hash

from wallet_constants import REQUEST_KEY_AUTH_PATH
from wallet_errors import ArgumentError
from wallet_hd import derive_private_key, derive_public_key

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Key parsing
# ---------------------------------------------------------------------------


def _private_key_bytes(private_key: Any) -> bytes:
    """Raw 32-byte secret from hex, WIF or bytes. Raises ArgumentError if invalid."""
    if isinstance(private_key, (bytes, bytearray)):
        raw = bytes(private_key)
    elif isinstance(private_key, str) and private_key:
        try:
            raw = bytes.fromhex(private_key) if len(private_key) == 64 else b""
        except ValueError:
            raw = b""
        if not raw:
            try:
                raw, _, _ = wif_to_bytes(private_key)
            except Exception as exc:  # noqa: BLE001
                raise ArgumentError("The private key received is invalid") from exc
    else:
        raise ArgumentError("A private key string is required.")

    if len(raw) != 32:
        raise ArgumentError("The private key received is invalid")
    try:
        coincurve.PrivateKey(raw)
    except ValueError as exc:
        raise ArgumentError("The private key received is invalid") from exc
    return raw


def _load_private_key(private_key: Any) -> coincurve.PrivateKey:
    if isinstance(private_key, coincurve.PrivateKey):
        return private_key
    return coincurve.PrivateKey(_private_key_bytes(private_key))


def _load_public_key(public_key: Any) -> coincurve.PublicKey:
    if isinstance(public_key, coincurve.PublicKey):
        return public_key
    try:
        data = bytes.fromhex(public_key) if isinstance(public_key, str) else bytes(public_key)
        return coincurve.PublicKey(data)
    except Exception as exc:  # noqa: BLE001
        raise ArgumentError("Invalid public key.") from exc


# ---------------------------------------------------------------------------
# Message hashing and ECDSA
# ---------------------------------------------------------------------------


def hash_message(text: str) -> bytes:
    """
    Hash a wallet message: SHA256(SHA256(utf8(text))), byte-reversed.

    This is not the bitcoind "Bitcoin Signed Message" format.
    """
    if not text:
        raise ArgumentError("Message text is required.")
    return Hash(text.encode("utf-8"))[::-1]


def sign_message(text: str, private_key: Any) -> str:
    """
    Sign text with a private key (hex, WIF, bytes or coincurve.PrivateKey).

    Uses RFC6979 deterministic nonces with low-S normalization. Returns the
    DER signature as hex.
    """
    if not text:
        raise ArgumentError("Message text is required.")
    priv = _load_private_key(private_key)
    # "little" byte order: the reversed digest is read back in reverse
    digest = hash_message(text)[::-1]
    return priv.sign(digest, hasher=None).hex()


def verify_message(text: str, signature: str | None, public_key: Any) -> bool:
    """
    Verify a signature produced by sign_message.

    Returns False for an empty, malformed or non-matching signature.
    """
    if not text:
        raise ArgumentError("Message text is required.")
    if not public_key:
        raise ArgumentError("Public key is required.")

    if not signature:
        return False

    pub = _load_public_key(public_key)
    digest = hash_message(text)[::-1]

    try:
        sig = bytes.fromhex(signature) if isinstance(signature, str) else bytes(signature)
        return bool(pub.verify(sig, digest, hasher=None))
    except Exception as exc:  # noqa: BLE001
        logger.debug("Signature verification failed: %s", exc)
        return False


# ---------------------------------------------------------------------------
# Request-key authentication
# ---------------------------------------------------------------------------


def sign_request_pub_key(request_pub_key: str, x_priv_key: str) -> str:
    """Sign a copayer's request public key with the request-auth child of their xprv."""
    priv = derive_private_key(x_priv_key, REQUEST_KEY_AUTH_PATH)
    return sign_message(request_pub_key, priv)


def verify_request_pub_key(request_pub_key: str, signature: str | None, x_pub_key: str) -> bool:
    pub = derive_public_key(x_pub_key, REQUEST_KEY_AUTH_PATH)
    return verify_message(request_pub_key, signature, pub.hex())


# ---------------------------------------------------------------------------
# Symmetric key and fingerprints
# ---------------------------------------------------------------------------


def private_key_to_aes_key(private_key: str) -> str:
    """Base64 of the first 16 bytes of SHA256(raw private key)."""
    if not private_key or not isinstance(private_key, str):
        raise ArgumentError("A private key string is required.")
    raw = _private_key_bytes(private_key)
    return base64.b64encode(hashlib.sha256(raw).digest()[:16]).decode("ascii")


def get_copayer_hash(name: str | None, x_pub_key: str | None, request_pub_key: str | None) -> str:
    return "|".join("" if v is None else str(v) for v in (name, x_pub_key, request_pub_key))


def _integral_floats_to_int(value: Any) -> Any:
    # JavaScript prints 1.0 as 1
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, dict):
        return {k: _integral_floats_to_int(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_integral_floats_to_int(v) for v in value]
    return value


def proposal_hash_from_header(header: dict[str, Any]) -> str:
    """
    Canonical JSON of a spend-proposal header.

    Keys are sorted at every level so the result does not depend on
    insertion order.
    """
    header = _integral_floats_to_int(header)
    return json.dumps(header, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def legacy_proposal_hash_from_fields(
    to_address: str,
    amount: int,
    message: str | None = None,
    pay_pro_url: str | None = None,
) -> str:
    """Proposal fingerprint used by the older four-field proposal format."""
    amount = _integral_floats_to_int(amount)
    return "|".join([str(to_address), str(amount), message or "", pay_pro_url or ""])


def get_proposal_hash(*args: Any) -> str:
    """
    Proposal fingerprint, dispatched on argument count.

    One argument is a proposal header dict. Two to four positional arguments
    are (to_address, amount, message, pay_pro_url) in the legacy form.
    """
    if len(args) == 1 and isinstance(args[0], dict):
        return proposal_hash_from_header(args[0])
    if 2 <= len(args) <= 4:
        return legacy_proposal_hash_from_fields(*args)
    raise ArgumentError(
        "get_proposal_hash expects a header dict or (to_address, amount, message, pay_pro_url)."
    )
