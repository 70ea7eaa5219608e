"""
Module 01 - Hashing Utilities
Digest primitives used by the source chain for identifiers and script hashes.

Owner: Protocol/Crypto Engineer
Module ID: M01

This module provides:
- SHA-256 hashing for raw bytes
- hash256 (double SHA-256) for transaction and block identifiers
- hash160 (RIPEMD-160 over SHA-256) for 20-byte script and key hashes
- Hex encoding/decoding with 0x prefix

Security/Determinism Notes:
- Always hash raw bytes exactly as given
- Digests are returned in the chain's internal (little-endian) order;
  reversal for display happens in core.bitcoin.endian, never here
"""
from __future__ import annotations

import hashlib

from Crypto.Hash import RIPEMD160


def sha256(data: bytes) -> bytes:
    """
    Compute SHA-256 hash of raw bytes.

    Args:
        data: Raw bytes to hash

    Returns:
        32-byte SHA-256 digest

    Example:
        >>> sha256(b"hello").hex()
        '2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824'
    """
    return hashlib.sha256(data).digest()


def hash256(data: bytes) -> bytes:
    """
    Compute the double SHA-256 digest: sha256(sha256(data)).

    This is the chain's canonical identifier function for transactions,
    block headers and Merkle tree nodes. The result is in internal
    (little-endian) byte order.

    Args:
        data: Raw bytes to hash

    Returns:
        32-byte digest
    """
    return sha256(sha256(data))


def ripemd160(data: bytes) -> bytes:
    """Compute RIPEMD-160 of raw bytes."""
    return RIPEMD160.new(data).digest()


def hash160(data: bytes) -> bytes:
    """
    Compute ripemd160(sha256(data)).

    Used for pay-to-script-hash and pay-to-pubkey-hash commitments.

    Args:
        data: Raw bytes to hash

    Returns:
        20-byte digest
    """
    return ripemd160(sha256(data))


def to_hex(data: bytes) -> str:
    """
    Convert bytes to hexadecimal string with 0x prefix.

    Example:
        >>> to_hex(bytes.fromhex("deadbeef"))
        '0xdeadbeef'
    """
    return "0x" + data.hex()


def from_hex(hex_string: str) -> bytes:
    """
    Convert hexadecimal string (with 0x prefix) to bytes.

    Raises:
        ValueError: If string doesn't start with 0x, has odd length,
                   or contains invalid hex characters

    Example:
        >>> from_hex("0xdeadbeef").hex()
        'deadbeef'
    """
    if not hex_string.startswith("0x"):
        raise ValueError(
            f"Hex string must start with '0x' prefix, got: {hex_string[:10]}..."
        )

    hex_content = hex_string[2:]

    if len(hex_content) % 2 != 0:
        raise ValueError(
            f"Hex string must have even length after 0x prefix, "
            f"got length {len(hex_content)}"
        )

    try:
        return bytes.fromhex(hex_content)
    except ValueError as e:
        raise ValueError(f"Invalid hex characters in string: {e}") from e


def hash_concat(left: bytes, right: bytes) -> bytes:
    """
    Hash the concatenation of two Merkle nodes: hash256(left + right).

    Args:
        left: Left child hash (32 bytes, internal order)
        right: Right child hash (32 bytes, internal order)

    Returns:
        32-byte parent digest
    """
    return hash256(left + right)


__all__ = [
    "sha256",
    "hash256",
    "ripemd160",
    "hash160",
    "to_hex",
    "from_hex",
    "hash_concat",
]
