"""Unit tests for derivation path parsing and child key derivation."""

import sys
from pathlib import Path

import pytest
from bip_utils import Bip32Slip10Secp256k1
from bip_utils.bip.bip32 import Bip32Const

REPO_ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(REPO_ROOT))

import wallet_hd  # noqa: E402
from wallet_errors import ArgumentError  # noqa: E402

SEED = bytes.fromhex("000102030405060708090a0b0c0d0e0f")
MASTER = Bip32Slip10Secp256k1.FromSeed(SEED)
XPRV = MASTER.PrivateKey().ToExtended()
XPUB = MASTER.PublicKey().ToExtended()


# ---------------------------------------------------------------------------
# Path parsing
# ---------------------------------------------------------------------------


def test_parse_master_path():
    assert wallet_hd.parse_derivation_path("m") == []


def test_parse_mixed_path():
    assert wallet_hd.parse_derivation_path("m/1'/0") == [0x80000001, 0]
    assert wallet_hd.parse_derivation_path("m/44h/0/7") == [0x8000002C, 0, 7]


def test_parse_relative_path():
    assert wallet_hd.parse_derivation_path("0/3") == [0, 3]


@pytest.mark.parametrize("path", ["", "m/", "m/x", "m/1//2", "m/2147483648", None])
def test_parse_rejects_bad_paths(path):
    with pytest.raises(ArgumentError):
        wallet_hd.parse_derivation_path(path)


# ---------------------------------------------------------------------------
# Derivation
# ---------------------------------------------------------------------------


def test_derive_public_key_matches_bip_utils():
    expected = MASTER.ChildKey(0).ChildKey(5).PublicKey().RawCompressed().ToBytes()
    assert wallet_hd.derive_public_key(XPUB, "m/0/5") == expected
    assert wallet_hd.derive_public_key(XPRV, "m/0/5") == expected


def test_derive_master_public_key():
    assert wallet_hd.derive_public_key(XPUB, "m") == MASTER.PublicKey().RawCompressed().ToBytes()


def test_derive_hardened_from_xprv():
    expected = MASTER.ChildKey(0x80000000).PublicKey().RawCompressed().ToBytes()
    assert wallet_hd.derive_public_key(XPRV, "m/0'") == expected
    # BIP32 test vector 1, chain m/0H
    assert expected.hex() == "035a784662a4a20a65bf6aab9ae98a6c068a81c52e4b032c0fb5400c706cfccc56"


def test_derive_hardened_from_xpub_fails():
    with pytest.raises(ArgumentError):
        wallet_hd.derive_public_key(XPUB, "m/1'/0")


def test_derive_private_key():
    expected = MASTER.ChildKey(2).PrivateKey().Raw().ToBytes()
    assert wallet_hd.derive_private_key(XPRV, "m/2") == expected


def test_derive_private_key_requires_xprv():
    with pytest.raises(ArgumentError):
        wallet_hd.derive_private_key(XPUB, "m/2")


def test_invalid_extended_key():
    with pytest.raises(ArgumentError):
        wallet_hd.derive_public_key("xpubnotakey", "m/0")


def test_derive_from_testnet_extended_keys():
    master = Bip32Slip10Secp256k1.FromSeed(SEED, Bip32Const.TEST_NET_KEY_NET_VERSIONS)
    tpub = master.PublicKey().ToExtended()
    tprv = master.PrivateKey().ToExtended()
    assert tpub.startswith("tpub")
    assert tprv.startswith("tprv")

    expected = MASTER.ChildKey(0).ChildKey(5).PublicKey().RawCompressed().ToBytes()
    assert wallet_hd.derive_public_key(tpub, "m/0/5") == expected
    assert wallet_hd.derive_private_key(tprv, "m/2") == MASTER.ChildKey(2).PrivateKey().Raw().ToBytes()
