"""
Core cryptographic utilities.

Module 01 provides the digest functions shared by the codec, the script
matcher and the Merkle prover.
"""
from .hashing import (
    sha256,
    hash256,
    ripemd160,
    hash160,
    to_hex,
    from_hex,
    hash_concat,
)

__all__ = [
    "sha256",
    "hash256",
    "ripemd160",
    "hash160",
    "to_hex",
    "from_hex",
    "hash_concat",
]
