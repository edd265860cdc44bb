"""Deterministic receiving addresses from a master extended public key.

BIP32 derivation and address encoding are delegated to ``bip_utils``. The
order's keychain id becomes a one-level relative path (``5`` -> ``"5"``),
so every order gets its own non-hardened child of the master key.
"""
from __future__ import annotations
import logging
import threading
from typing import Optional, Union

from bip_utils import Bip32Slip10Secp256k1, CoinsConf, P2PKHAddrEncoder

from core.errors import MalformedKeyError
from core.utils import mask_key

log = logging.getLogger(__name__)

KeychainId = Union[int, str]

_P2PKH_NET_VER = CoinsConf.BitcoinMainNet.ParamByKey("p2pkh_net_ver")

# Public derivation stops below the hardened range
HARDENED_OFFSET = 2 ** 31


def parse_keychain(pubkey: str) -> Bip32Slip10Secp256k1:
    """Parse a serialized extended public key (xpub)."""
    if not isinstance(pubkey, str) or not pubkey.strip():
        raise MalformedKeyError("Master public key is not configured")
    try:
        return Bip32Slip10Secp256k1.FromExtendedKey(pubkey.strip())
    except Exception as e:
        raise MalformedKeyError(f"Cannot parse master public key {mask_key(pubkey)}: {e}") from e


def keychain_path(index: KeychainId) -> str:
    """Canonical path string of a keychain id: its decimal representation."""
    if isinstance(index, bool):
        raise ValueError(f"Keychain id must be a positive integer, got {index!r}")
    if isinstance(index, str):
        if not index.strip().isdigit():
            raise ValueError(f"Keychain id must be a positive integer, got {index!r}")
        index = int(index)
    if not isinstance(index, int) or index <= 0:
        raise ValueError(f"Keychain id must be a positive integer, got {index!r}")
    if index >= HARDENED_OFFSET:
        raise ValueError(
            f"Keychain id must be below the hardened range ({HARDENED_OFFSET}), got {index}"
        )
    return str(index)


def derive_address(node: Bip32Slip10Secp256k1, path: str) -> str:
    child = node.DerivePath(path)
    return P2PKHAddrEncoder.EncodeKey(child.PublicKey().KeyObject(), net_ver=_P2PKH_NET_VER)


class AddressDeriver:
    """Wraps one master key; the key is parsed once, on first use."""

    def __init__(self, pubkey: str):
        self.pubkey = pubkey
        self._node: Optional[Bip32Slip10Secp256k1] = None
        self._lock = threading.Lock()

    @property
    def node(self) -> Bip32Slip10Secp256k1:
        if self._node is None:
            with self._lock:
                if self._node is None:
                    self._node = parse_keychain(self.pubkey)
                    log.debug("Parsed master key %s", mask_key(self.pubkey))
        return self._node

    def address_for_index(self, index: KeychainId) -> str:
        return derive_address(self.node, keychain_path(index))


def address_for_index(master_key: str, index: KeychainId) -> str:
    """One-shot derivation, without caching the parsed key."""
    return derive_address(parse_keychain(master_key), keychain_path(index))
