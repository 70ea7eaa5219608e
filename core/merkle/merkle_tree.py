"""
Module 04 - Merkle Inclusion Prover
Bitcoin-style Merkle tree construction, branch generation and verification.

Owner: Protocol/Crypto Engineer
Module ID: M04

This module provides:
- Merkle root computation over transaction hashes
- Branch generation for any leaf index
- Inclusion verification from a flat branch and a position index

Commitment Rules (Hard Contracts):
1. Leaves are transaction hashes in internal (little-endian) order
2. Parent hashing: parent = hash256(left + right)
3. Padding rule: Duplicate last node if odd number at any level
4. Single leaf: root = leaf (a block holding only its coinbase)
5. Branch siblings are ordered bottom to top; bit i of the position
   selects whether the running hash is the right (1) or left (0) child
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from core.crypto.hashing import hash256


NODE_SIZE = 32


@dataclass(frozen=True)
class MerkleProof:
    """
    A Merkle inclusion proof for one transaction.

    Attributes:
        leaf: The transaction hash being proven (32 bytes, internal order)
        index: Position of the transaction in the block
        siblings: Sibling hashes from bottom to top of tree
        root: The Merkle root this proof is against
    """
    leaf: bytes
    index: int
    siblings: list[bytes]
    root: bytes

    def __post_init__(self) -> None:
        if self.index < 0:
            raise ValueError(f"Leaf index must be non-negative, got {self.index}")

    @property
    def branch(self) -> bytes:
        """Siblings concatenated into the flat wire form."""
        return b"".join(self.siblings)


def merkle_parent(left: bytes, right: bytes) -> bytes:
    """Parent hash of two child nodes: hash256(left + right)."""
    return hash256(left + right)


def build_merkle_root(leaves: Sequence[bytes]) -> bytes:
    """
    Build a Merkle root from transaction hashes.

    Padding Rule: Duplicate last node at each level if odd.
    Example: [a, b, c] -> [a, b, c, c] -> [parent(a,b), parent(c,c)]

    Raises:
        ValueError: If leaves is empty (a block always has a coinbase)
    """
    if len(leaves) == 0:
        raise ValueError("Cannot compute Merkle root of empty leaf list")

    current_level: list[bytes] = list(leaves)

    while len(current_level) > 1:
        if len(current_level) % 2 == 1:
            current_level.append(current_level[-1])

        current_level = [
            merkle_parent(current_level[i], current_level[i + 1])
            for i in range(0, len(current_level), 2)
        ]

    return current_level[0]


def build_merkle_proof(leaves: Sequence[bytes], index: int) -> MerkleProof:
    """
    Generate the inclusion proof for the leaf at `index`.

    Raises:
        IndexError: If index is out of range
        ValueError: If leaves is empty
    """
    if len(leaves) == 0:
        raise ValueError("Cannot generate proof for empty leaf list")

    if index < 0 or index >= len(leaves):
        raise IndexError(
            f"Leaf index {index} out of range for {len(leaves)} leaves"
        )

    siblings: list[bytes] = []
    current_level: list[bytes] = list(leaves)
    current_index = index

    while len(current_level) > 1:
        if len(current_level) % 2 == 1:
            current_level.append(current_level[-1])

        # XOR with 1 flips last bit
        siblings.append(current_level[current_index ^ 1])

        current_level = [
            merkle_parent(current_level[i], current_level[i + 1])
            for i in range(0, len(current_level), 2)
        ]
        current_index = current_index // 2

    return MerkleProof(
        leaf=leaves[index],
        index=index,
        siblings=siblings,
        root=current_level[0],
    )


def verify_inclusion(
    tx_hash: bytes,
    merkle_root: bytes,
    merkle_branch: bytes,
    position: int,
) -> bool:
    """
    Verify that `tx_hash` sits at `position` in the tree committed by `merkle_root`.

    Args:
        tx_hash: Transaction hash, internal order
        merkle_root: Root taken from the block header, internal order
        merkle_branch: Concatenated 32-byte siblings, bottom to top
        position: Index of the transaction in the block

    Returns:
        True if the recomputed root equals merkle_root. False on any
        malformed branch, out-of-range position or mismatch.
    """
    if len(tx_hash) != NODE_SIZE or len(merkle_root) != NODE_SIZE:
        return False
    if len(merkle_branch) % NODE_SIZE != 0:
        return False

    depth = len(merkle_branch) // NODE_SIZE
    if position < 0 or position >> depth != 0:
        return False

    current_hash = tx_hash
    current_index = position

    for offset in range(0, len(merkle_branch), NODE_SIZE):
        sibling = merkle_branch[offset:offset + NODE_SIZE]
        if current_index & 1:
            current_hash = merkle_parent(sibling, current_hash)
        else:
            current_hash = merkle_parent(current_hash, sibling)
        current_index >>= 1

    return current_hash == merkle_root


def verify_merkle_proof(proof: MerkleProof) -> bool:
    """Verify a MerkleProof against its own claimed root."""
    return verify_inclusion(proof.leaf, proof.root, proof.branch, proof.index)


__all__ = [
    "NODE_SIZE",
    "MerkleProof",
    "merkle_parent",
    "build_merkle_root",
    "build_merkle_proof",
    "verify_inclusion",
    "verify_merkle_proof",
]
