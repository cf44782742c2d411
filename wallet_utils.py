"""
Wallet client utilities.

Single import point for address derivation, message signing, metadata
encryption, amount formatting and transaction assembly.
"""

from wallet_address import (
    DerivedAddress,
    PublicKeyRingEntry,
    derive_address,
    xpub_to_copayer_id,
)
from wallet_amount import format_amount
from wallet_cipher import (
    Decrypted,
    DecryptResult,
    Unchanged,
    decrypt_message,
    encrypt_message,
)
from wallet_config import WalletUtilsConfig
from wallet_constants import (
    REQUEST_KEY_AUTH_PATH,
    REQUEST_KEY_PATH,
    TXPROPOSAL_KEY_PATH,
    UNITS,
    AddressScheme,
)
from wallet_errors import ArgumentError, StateError, WalletConfigError, WalletUtilsError
from wallet_signing import (
    get_copayer_hash,
    get_proposal_hash,
    hash_message,
    legacy_proposal_hash_from_fields,
    private_key_to_aes_key,
    proposal_hash_from_header,
    sign_message,
    sign_request_pub_key,
    verify_message,
    verify_request_pub_key,
)
from wallet_transaction import (
    PlanOutput,
    Transaction,
    TransactionPlan,
    Utxo,
    build_tx,
)

__all__ = [
    "AddressScheme",
    "ArgumentError",
    "DecryptResult",
    "Decrypted",
    "DerivedAddress",
    "PlanOutput",
    "PublicKeyRingEntry",
    "REQUEST_KEY_AUTH_PATH",
    "REQUEST_KEY_PATH",
    "StateError",
    "TXPROPOSAL_KEY_PATH",
    "Transaction",
    "TransactionPlan",
    "UNITS",
    "Unchanged",
    "Utxo",
    "WalletConfigError",
    "WalletUtilsConfig",
    "WalletUtilsError",
    "build_tx",
    "decrypt_message",
    "derive_address",
    "encrypt_message",
    "format_amount",
    "get_copayer_hash",
    "get_proposal_hash",
    "hash_message",
    "legacy_proposal_hash_from_fields",
    "private_key_to_aes_key",
    "proposal_hash_from_header",
    "sign_message",
    "sign_request_pub_key",
    "verify_message",
    "verify_request_pub_key",
    "xpub_to_copayer_id",
]
