"""
Module 06 - SPV Verification Unit Tests
Tests for bridge/spv.py

Tests:
- Valid proofs at factor 1 and at deeper confirmation requirements
- Relay epoch matching (current, previous, neither)
- Merkle failures: wrong position, wrong branch, wrong transaction
"""
import pytest

from bridge.collaborators import StaticRelay
from bridge.spv import SpvVerifier, evaluate_proof_difficulty
from core.bitcoin.headers import REGTEST
from core.schemas.errors import ErrorCodes, ProofInvalidException
from core.schemas.sweep import SweepProof

from fixtures.chain import (
    REGTEST_BITS_HARDER,
    make_input,
    make_output,
    make_sweep_proof,
    make_tx,
    make_txid_bytes,
    mine_chain,
)


@pytest.fixture
def tx():
    return make_tx([make_input(make_txid_bytes(42))], [make_output(9_000, b"\x51")])


def verifier(current: int = 1, previous: int = 1, factor: int = 1) -> SpvVerifier:
    return SpvVerifier(StaticRelay(current, previous), difficulty_factor=factor, params=REGTEST)


class TestProveTx:

    def test_accepts_single_header_at_factor_one(self, tx):
        proof = make_sweep_proof(tx, confirmations=1)
        assert verifier().prove_tx(tx.tx_hash(), proof) == 1

    @pytest.mark.parametrize("position,block_size", [(0, 1), (0, 2), (3, 4), (4, 5), (6, 7)])
    def test_accepts_any_position(self, tx, position, block_size):
        proof = make_sweep_proof(tx, position=position, block_size=block_size)
        verifier().prove_tx(tx.tx_hash(), proof)

    def test_accepts_enough_confirmations(self, tx):
        proof = make_sweep_proof(tx, confirmations=6)
        assert verifier(factor=6).prove_tx(tx.tx_hash(), proof) == 6

    def test_rejects_too_few_confirmations(self, tx):
        """A real but shallow proof: one header where six are required."""
        proof = make_sweep_proof(tx, confirmations=1)
        with pytest.raises(ProofInvalidException) as exc_info:
            verifier(factor=6).prove_tx(tx.tx_hash(), proof)
        assert exc_info.value.code == ErrorCodes.INSUFFICIENT_CONFIRMATIONS
        assert exc_info.value.details == {"observed": 1, "required": 6}

    def test_rejects_unrecognized_difficulty(self, tx):
        proof = make_sweep_proof(tx)
        with pytest.raises(ProofInvalidException) as exc_info:
            verifier(current=4, previous=8).prove_tx(tx.tx_hash(), proof)
        assert exc_info.value.code == ErrorCodes.UNRECOGNIZED_DIFFICULTY

    def test_accepts_previous_epoch_difficulty(self, tx):
        proof = make_sweep_proof(tx, confirmations=2)
        assert verifier(current=2, previous=1, factor=2).prove_tx(tx.tx_hash(), proof) == 2

    def test_current_epoch_checked_first(self, tx):
        proof = make_sweep_proof(tx, confirmations=2, bits=REGTEST_BITS_HARDER)
        # difficulty 2 per header, factor 2 against current=2 needs 4
        assert verifier(current=2, previous=1, factor=2).prove_tx(tx.tx_hash(), proof) == 4

    def test_rejects_wrong_position(self, tx):
        proof = make_sweep_proof(tx, position=1)
        moved = proof.model_copy(update={"tx_index_in_block": 2})
        with pytest.raises(ProofInvalidException) as exc_info:
            verifier().prove_tx(tx.tx_hash(), moved)
        assert exc_info.value.code == ErrorCodes.MERKLE_PROOF_MISMATCH

    def test_rejects_other_transaction(self, tx):
        proof = make_sweep_proof(tx)
        with pytest.raises(ProofInvalidException) as exc_info:
            verifier().prove_tx(make_txid_bytes(7), proof)
        assert exc_info.value.code == ErrorCodes.MERKLE_PROOF_MISMATCH

    def test_rejects_tampered_branch(self, tx):
        proof = make_sweep_proof(tx)
        branch = bytearray(proof.merkle_proof)
        branch[0] ^= 0xFF
        tampered = proof.model_copy(update={"merkle_proof": bytes(branch)})
        with pytest.raises(ProofInvalidException) as exc_info:
            verifier().prove_tx(tx.tx_hash(), tampered)
        assert exc_info.value.code == ErrorCodes.MERKLE_PROOF_MISMATCH

    def test_rejects_empty_header_chain(self, tx):
        proof = SweepProof(merkle_proof=b"", tx_index_in_block=0, bitcoin_headers=b"")
        with pytest.raises(ProofInvalidException) as exc_info:
            verifier().prove_tx(tx.tx_hash(), proof)
        assert exc_info.value.code == ErrorCodes.INVALID_CHAIN_LENGTH


class TestEvaluateProofDifficulty:

    def test_returns_accumulated_difficulty(self):
        headers = mine_chain(b"\x11" * 32, 3)
        assert evaluate_proof_difficulty(headers, StaticRelay(1), 3, REGTEST) == 3

    def test_factor_scales_previous_reference(self):
        headers = mine_chain(b"\x11" * 32, 3)
        with pytest.raises(ProofInvalidException) as exc_info:
            evaluate_proof_difficulty(headers, StaticRelay(5, 1), 4, REGTEST)
        assert exc_info.value.code == ErrorCodes.INSUFFICIENT_CONFIRMATIONS
        assert exc_info.value.details["required"] == 4

    def test_relay_retarget_keeps_previous_epoch_valid(self):
        relay = StaticRelay(1)
        relay.retarget(2)
        headers = mine_chain(b"\x11" * 32, 1)
        assert evaluate_proof_difficulty(headers, relay, 1, REGTEST) == 1
