"""
Module 04 - Merkle Inclusion Prover
Bitcoin-style Merkle trees over transaction hashes.

This module provides:
- MerkleProof: Dataclass representing an inclusion proof
- build_merkle_root: Compute root from transaction hashes
- build_merkle_proof: Generate proof for a specific transaction
- verify_inclusion: Verify a flat branch + position against a header's root

Usage:
    from core.merkle import build_merkle_proof, verify_inclusion

    proof = build_merkle_proof(tx_hashes, index=2)
    assert verify_inclusion(proof.leaf, proof.root, proof.branch, proof.index)
"""
from .merkle_tree import (
    NODE_SIZE,
    MerkleProof,
    merkle_parent,
    build_merkle_root,
    build_merkle_proof,
    verify_inclusion,
    verify_merkle_proof,
)


__all__ = [
    "NODE_SIZE",
    "MerkleProof",
    "merkle_parent",
    "build_merkle_root",
    "build_merkle_proof",
    "verify_inclusion",
    "verify_merkle_proof",
]
