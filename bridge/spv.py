"""
Module 06 - SPV Proof Verification

Gates every sweep: the transaction must be included in the first supplied
header (Merkle branch) and the header chain must carry enough work relative
to an epoch difficulty the relay recognizes.

Pure and side-effect free; it only reads the relay.
"""

from __future__ import annotations

import logging

from bridge.collaborators import Relay
from core.bitcoin.headers import (
    MAINNET,
    NetworkParams,
    calculate_difficulty,
    extract_merkle_root,
    extract_target,
    split_headers,
    validate_header_chain,
)
from core.merkle import verify_inclusion
from core.schemas.errors import ErrorCodes, ProofInvalidException
from core.schemas.sweep import SweepProof


logger = logging.getLogger(__name__)


def evaluate_proof_difficulty(
    headers: bytes,
    relay: Relay,
    difficulty_factor: int,
    params: NetworkParams = MAINNET,
) -> int:
    """
    Check a header chain's accumulated work against the relay.

    1. Validate linkage and per-header proof-of-work
    2. The first header's difficulty must equal the relay's current or
       previous epoch difficulty
    3. Accumulated difficulty must reach reference * difficulty_factor

    Returns:
        Accumulated difficulty of the chain

    Raises:
        ProofInvalidException: INVALID_CHAIN_LENGTH, INVALID_HEADER_CHAIN,
            INSUFFICIENT_WORK, UNRECOGNIZED_DIFFICULTY or
            INSUFFICIENT_CONFIRMATIONS
    """
    observed = validate_header_chain(headers, params)

    first_header = headers[:80]
    first_difficulty = calculate_difficulty(extract_target(first_header), params)

    current = relay.current_epoch_difficulty()
    previous = relay.previous_epoch_difficulty()

    if first_difficulty == current:
        reference = current
    elif first_difficulty == previous:
        reference = previous
    else:
        raise ProofInvalidException(
            "Not at current or previous difficulty",
            code=ErrorCodes.UNRECOGNIZED_DIFFICULTY,
            details={
                "header_difficulty": first_difficulty,
                "current": current,
                "previous": previous,
            },
        )

    required = reference * difficulty_factor
    if observed < required:
        raise ProofInvalidException(
            "Insufficient accumulated difficulty in header chain",
            code=ErrorCodes.INSUFFICIENT_CONFIRMATIONS,
            details={"observed": observed, "required": required},
        )

    return observed


class SpvVerifier:
    """
    Verifies SPV proofs for transactions.

    Usage:
        verifier = SpvVerifier(relay, difficulty_factor=6)
        verifier.prove_tx(tx.tx_hash(), proof)
    """

    def __init__(
        self,
        relay: Relay,
        difficulty_factor: int = 6,
        params: NetworkParams = MAINNET,
    ) -> None:
        self.relay = relay
        self.difficulty_factor = difficulty_factor
        self.params = params

    def prove_tx(self, tx_hash: bytes, proof: SweepProof) -> int:
        """
        Prove inclusion and confirmation depth of a transaction.

        Args:
            tx_hash: Transaction hash, internal order
            proof: Merkle branch, position and header chain

        Returns:
            Accumulated difficulty of the header chain

        Raises:
            ProofInvalidException: On any Merkle or difficulty failure
        """
        # Length check first so the merkle root read below is well-defined
        split_headers(proof.bitcoin_headers)
        merkle_root = extract_merkle_root(proof.bitcoin_headers[:80])

        if not verify_inclusion(
            tx_hash,
            merkle_root,
            proof.merkle_proof,
            proof.tx_index_in_block,
        ):
            raise ProofInvalidException(
                "Tx merkle proof is not valid for provided header and tx hash",
                code=ErrorCodes.MERKLE_PROOF_MISMATCH,
                details={"tx_index_in_block": proof.tx_index_in_block},
            )

        observed = evaluate_proof_difficulty(
            proof.bitcoin_headers,
            self.relay,
            self.difficulty_factor,
            self.params,
        )
        logger.debug(f"SPV proof accepted with accumulated difficulty {observed}")
        return observed


__all__ = [
    "evaluate_proof_difficulty",
    "SpvVerifier",
]
