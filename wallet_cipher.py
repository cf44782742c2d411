"""
Wallet metadata encryption.

Produces and reads SJCL-style JSON envelopes (AES-CCM, 64-bit tag) so that
ciphertext stored by existing clients stays readable. The encrypting key is
a base64 string, normally from wallet_signing.private_key_to_aes_key.
"""

from __future__ import annotations

import base64
import json
import logging
import os
from dataclasses import dataclass
from typing import Union

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESCCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from wallet_config import WalletUtilsConfig
from wallet_errors import ArgumentError

logger = logging.getLogger(__name__)

ENVELOPE_VERSION = 1
IV_SIZE = 16
SALT_SIZE = 8
TAG_SIZE_BITS = 64


@dataclass(frozen=True)
class Decrypted:
    plaintext: str

    @property
    def text(self) -> str:
        return self.plaintext

    @property
    def decrypted(self) -> bool:
        return True


@dataclass(frozen=True)
class Unchanged:
    """The input could not be decrypted and is handed back as-is."""

    original: str

    @property
    def text(self) -> str:
        return self.original

    @property
    def decrypted(self) -> bool:
        return False


DecryptResult = Union[Decrypted, Unchanged]


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _decode_key(encrypting_key: str) -> bytes:
    key = base64.b64decode(encrypting_key, validate=True)
    if len(key) not in (16, 24, 32):
        raise ValueError(f"AES key must be 16, 24 or 32 bytes, got {len(key)}")
    return key


def _stretch_key(key: bytes, salt: bytes, iterations: int, key_size: int) -> bytes:
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=key_size // 8,
        salt=salt,
        iterations=iterations,
    )
    return kdf.derive(key)


def _ccm_nonce(iv: bytes, message_len: int) -> bytes:
    # The CCM length field grows with the message and shortens the nonce.
    length_size = 2
    while length_size < 4 and message_len >> (8 * length_size):
        length_size += 1
    return iv[: 15 - length_size]


def encrypt_message(
    plaintext: str,
    encrypting_key: str,
    iterations: int | None = None,
    key_size: int | None = None,
) -> str:
    """
    Encrypt plaintext into a self-describing JSON envelope.

    With one iteration (the default) the decoded key is used as-is, which is
    what existing stored ciphertext expects. More iterations stretch the key
    with PBKDF2 over a random salt recorded in the envelope.
    """
    if iterations is None or key_size is None:
        cfg = WalletUtilsConfig.from_env()
        iterations = cfg.encryption_iterations if iterations is None else iterations
        key_size = cfg.encryption_key_size if key_size is None else key_size

    if iterations < 1:
        raise ArgumentError("iterations must be >= 1")
    if key_size not in (128, 192, 256):
        raise ArgumentError("key_size must be 128, 192 or 256")
    try:
        key = _decode_key(encrypting_key)
    except (ValueError, TypeError) as exc:
        raise ArgumentError(f"Invalid encrypting key: {exc}") from exc

    iv = os.urandom(IV_SIZE)
    envelope = {
        "iv": _b64(iv),
        "v": ENVELOPE_VERSION,
        "iter": iterations,
        "ks": key_size,
        "ts": TAG_SIZE_BITS,
        "mode": "ccm",
        "adata": "",
        "cipher": "aes",
    }
    if iterations > 1:
        salt = os.urandom(SALT_SIZE)
        key = _stretch_key(key, salt, iterations, key_size)
        envelope["salt"] = _b64(salt)

    data = plaintext.encode("utf-8")
    ct = AESCCM(key, tag_length=TAG_SIZE_BITS // 8).encrypt(
        _ccm_nonce(iv, len(data)), data, None
    )
    envelope["ct"] = _b64(ct)
    return json.dumps(envelope, separators=(",", ":"))


def _decrypt(ciphertext_json: str, encrypting_key: str) -> str:
    key = _decode_key(encrypting_key)
    envelope = json.loads(ciphertext_json)
    if not isinstance(envelope, dict):
        raise ValueError("Envelope is not a JSON object")
    if envelope.get("mode", "ccm") != "ccm" or envelope.get("cipher", "aes") != "aes":
        raise ValueError("Unsupported cipher or mode")

    iv = base64.b64decode(envelope["iv"])
    ct = base64.b64decode(envelope["ct"])
    adata = base64.b64decode(envelope.get("adata", "")) or None
    tag_size = int(envelope.get("ts", TAG_SIZE_BITS)) // 8

    if "salt" in envelope:
        key = _stretch_key(
            key,
            base64.b64decode(envelope["salt"]),
            int(envelope["iter"]),
            int(envelope.get("ks", 128)),
        )

    nonce = _ccm_nonce(iv, len(ct) - tag_size)
    return AESCCM(key, tag_length=tag_size).decrypt(nonce, ct, adata).decode("utf-8")


def decrypt_message(ciphertext_json: str, encrypting_key: str) -> DecryptResult:
    """
    Decrypt an envelope produced by encrypt_message.

    Never raises: anything that cannot be decrypted with this key comes back
    as Unchanged(ciphertext_json).
    """
    try:
        return Decrypted(_decrypt(ciphertext_json, encrypting_key))
    except Exception as exc:  # noqa: BLE001
        logger.debug("Metadata not decryptable, returning input unchanged: %s", type(exc).__name__)
        return Unchanged(ciphertext_json)
