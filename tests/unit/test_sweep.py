"""
Module 09 - Sweep Reconciler Unit Tests
Tests for bridge/sweep.py through the Bridge facade

Tests:
- First sweep of several deposits credits every depositor
- Chained sweeps spend the previous sweep output
- Every rejection leaves registry, chain state, events and balances untouched
"""
from dataclasses import replace

import pytest

from bridge import Bridge, InMemoryBank
from bridge.registry import deposit_key
from core.bitcoin.script import p2wpkh_script
from core.config.runtime import DepositConfig
from core.schemas.errors import BridgeException
from core.schemas.events import DepositsSwept
from core.schemas.sweep import ChainState, Credit

from fixtures.chain import (
    DEPOSITOR,
    OTHER_DEPOSITOR,
    OTHER_WALLET_PKH,
    WALLET_PKH,
    make_funding_tx,
    make_input,
    make_output,
    make_reveal,
    make_sweep_proof,
    make_sweep_tx,
    make_tx,
    make_txid_bytes,
)


def reveal_deposit(bridge, depositor=DEPOSITOR, amount=10_000_000, seed=1, wallet=WALLET_PKH):
    """Reveal one P2WSH deposit and return its funding outpoint."""
    reveal = make_reveal(depositor=depositor, wallet_pubkey_hash=wallet)
    funding_tx = make_funding_tx(reveal, amount=amount, seed=seed)
    bridge.reveal_deposit(funding_tx, reveal)
    return funding_tx.tx_hash(), 0


def capture(bridge):
    return (
        bridge.state.registry.snapshot(),
        bridge.chain_state,
        bridge.events,
        bridge.bank.balances,
    )


class FailingBank(InMemoryBank):
    def increase_balances(self, credits):
        raise RuntimeError("ledger unavailable")


@pytest.fixture
def two_deposits(bridge):
    return [
        reveal_deposit(bridge, DEPOSITOR, 10_000_000, seed=1),
        reveal_deposit(bridge, OTHER_DEPOSITOR, 5_000_000, seed=2),
    ]


@pytest.fixture
def first_sweep(bridge, two_deposits):
    sweep_tx = make_sweep_tx(two_deposits, 14_990_000)
    result = bridge.submit_sweep_proof(sweep_tx, make_sweep_proof(sweep_tx))
    return sweep_tx, result


class TestFirstSweep:

    def test_credits_every_depositor(self, bridge, bank, two_deposits):
        sweep_tx = make_sweep_tx(two_deposits, 14_990_000)
        result = bridge.submit_sweep_proof(sweep_tx, make_sweep_proof(sweep_tx))

        assert bank.balance_of(DEPOSITOR) == 10_000_000
        assert bank.balance_of(OTHER_DEPOSITOR) == 5_000_000
        assert result.swept_deposit_keys == [deposit_key(*outpoint) for outpoint in two_deposits]
        assert result.deposited_total == 15_000_000
        assert result.implied_fee == 10_000
        assert not result.chained_input_found

    def test_marks_deposits_swept(self, bridge, clock, two_deposits):
        clock.advance(600)
        sweep_tx = make_sweep_tx(two_deposits, 14_990_000)
        bridge.submit_sweep_proof(sweep_tx, make_sweep_proof(sweep_tx))

        for outpoint in two_deposits:
            record = bridge.get_deposit(*outpoint)
            assert record.swept_at == 1_700_000_600
            assert record.revealed_at == 1_700_000_000

    def test_moves_chain_state(self, bridge, first_sweep):
        sweep_tx, _ = first_sweep
        assert bridge.chain_state == ChainState(
            previous_sweep_tx_hash=sweep_tx.tx_hash(),
            previous_sweep_value=14_990_000,
        )

    def test_emits_swept_event(self, bridge, first_sweep):
        sweep_tx, _ = first_sweep
        event = bridge.events[-1]
        assert isinstance(event, DepositsSwept)
        assert event.sweep_tx_hash == sweep_tx.tx_hash()
        assert event.deposit_count == 2
        assert event.wallet_pubkey_hash == WALLET_PKH

    def test_p2pkh_output_accepted(self, bridge, two_deposits):
        sweep_tx = make_sweep_tx(two_deposits, 14_990_000, witness_output=False)
        bridge.submit_sweep_proof(sweep_tx, make_sweep_proof(sweep_tx))

    def test_fee_not_enforced(self, bridge, two_deposits):
        """Output larger than inputs is accepted; the negative fee is only reported."""
        sweep_tx = make_sweep_tx(two_deposits, 20_000_000)
        result = bridge.submit_sweep_proof(sweep_tx, make_sweep_proof(sweep_tx))
        assert result.implied_fee == -5_000_000


class TestSingleDepositSweep:

    @pytest.fixture
    def default_policy_bridge(self, runtime_config, relay, bank, clock):
        """Engine with the shipped deposit policy: no dust floor."""
        config = replace(runtime_config, deposit=DepositConfig())
        return Bridge(config, relay=relay, bank=bank, clock=clock)

    def test_small_p2sh_deposit_swept_from_genesis_state(self, default_policy_bridge, bank):
        bridge = default_policy_bridge
        assert bridge.chain_state == ChainState()

        reveal = make_reveal()
        funding_tx = make_funding_tx(reveal, amount=10_000, witness=False)
        bridge.reveal_deposit(funding_tx, reveal)

        sweep_tx = make_sweep_tx([(funding_tx.tx_hash(), 0)], 9_000)
        result = bridge.submit_sweep_proof(sweep_tx, make_sweep_proof(sweep_tx))

        assert result.credits == [Credit(depositor=DEPOSITOR, amount=10_000)]
        assert bank.balances == {DEPOSITOR: 10_000}
        assert not result.chained_input_found
        assert bridge.chain_state.previous_sweep_tx_hash == sweep_tx.tx_hash()
        assert bridge.get_deposit(funding_tx.tx_hash(), 0).is_swept


class TestChainedSweep:

    def test_spends_previous_sweep(self, bridge, bank, clock, two_deposits, first_sweep):
        previous_tx, _ = first_sweep
        first_records = {outpoint: bridge.get_deposit(*outpoint) for outpoint in two_deposits}
        clock.advance(600)
        outpoint = reveal_deposit(bridge, DEPOSITOR, 3_000_000, seed=3)

        sweep_tx = make_sweep_tx([(previous_tx.tx_hash(), 0), outpoint], 17_980_000)
        result = bridge.submit_sweep_proof(sweep_tx, make_sweep_proof(sweep_tx))

        assert result.chained_input_found
        assert result.chained_value == 14_990_000
        assert result.implied_fee == 10_000
        assert result.credits == [Credit(depositor=DEPOSITOR, amount=3_000_000)]
        assert bank.balance_of(DEPOSITOR) == 13_000_000
        assert bank.balance_of(OTHER_DEPOSITOR) == 5_000_000
        assert bridge.chain_state.previous_sweep_tx_hash == sweep_tx.tx_hash()
        assert bridge.get_deposit(*outpoint).swept_at == 1_700_000_600
        for earlier, record in first_records.items():
            assert bridge.get_deposit(*earlier) == record
            assert record.swept_at == 1_700_000_000

    def test_chained_input_in_any_position(self, bridge, first_sweep):
        previous_tx, _ = first_sweep
        outpoint = reveal_deposit(bridge, DEPOSITOR, 3_000_000, seed=3)
        sweep_tx = make_sweep_tx([outpoint, (previous_tx.tx_hash(), 0)], 17_980_000)
        assert bridge.submit_sweep_proof(sweep_tx, make_sweep_proof(sweep_tx)).chained_input_found

    def test_missing_chained_input(self, bridge, first_sweep, assert_bridge_error):
        outpoint = reveal_deposit(bridge, DEPOSITOR, 3_000_000, seed=3)
        sweep_tx = make_sweep_tx([outpoint], 2_990_000)
        before = capture(bridge)

        with pytest.raises(BridgeException) as exc_info:
            bridge.submit_sweep_proof(sweep_tx, make_sweep_proof(sweep_tx))
        assert_bridge_error(exc_info, "policy_violation", "MISSING_CHAINED_INPUT")
        assert capture(bridge) == before

    def test_chained_input_twice(self, bridge, first_sweep, assert_bridge_error):
        previous_tx, _ = first_sweep
        outpoint = reveal_deposit(bridge, DEPOSITOR, 3_000_000, seed=3)
        chained = (previous_tx.tx_hash(), 0)
        sweep_tx = make_sweep_tx([chained, chained, outpoint], 17_980_000)

        with pytest.raises(BridgeException) as exc_info:
            bridge.submit_sweep_proof(sweep_tx, make_sweep_proof(sweep_tx))
        exc = assert_bridge_error(exc_info, "policy_violation", "UNRECOGNIZED_SWEEP_INPUT")
        assert exc.details["input_index"] == 1

    def test_only_chained_input_is_empty_sweep(self, bridge, first_sweep, assert_bridge_error):
        previous_tx, _ = first_sweep
        sweep_tx = make_sweep_tx([(previous_tx.tx_hash(), 0)], 14_980_000)
        with pytest.raises(BridgeException) as exc_info:
            bridge.submit_sweep_proof(sweep_tx, make_sweep_proof(sweep_tx))
        assert_bridge_error(exc_info, "policy_violation", "EMPTY_SWEEP")


class TestSweepRejections:

    def test_multi_output_rejected(self, bridge, two_deposits, assert_bridge_error):
        change = make_output(5_000, p2wpkh_script(OTHER_WALLET_PKH))
        sweep_tx = make_sweep_tx(two_deposits, 14_985_000, extra_outputs=[change])
        before = capture(bridge)

        with pytest.raises(BridgeException) as exc_info:
            bridge.submit_sweep_proof(sweep_tx, make_sweep_proof(sweep_tx))
        exc = assert_bridge_error(exc_info, "policy_violation", "MULTI_OUTPUT_SWEEP_REJECTED")
        assert exc.details == {"output_count": 2}
        assert capture(bridge) == before

    def test_resubmitted_sweep(self, bridge, bank, first_sweep, assert_bridge_error):
        sweep_tx, _ = first_sweep
        before = capture(bridge)

        with pytest.raises(BridgeException) as exc_info:
            bridge.submit_sweep_proof(sweep_tx, make_sweep_proof(sweep_tx))
        assert_bridge_error(exc_info, "state_conflict", "DOUBLE_SWEEP_ATTEMPT")
        assert capture(bridge) == before
        assert bank.balance_of(DEPOSITOR) == 10_000_000

    def test_duplicate_input_within_sweep(self, bridge, two_deposits, assert_bridge_error):
        sweep_tx = make_sweep_tx([two_deposits[0], two_deposits[0]], 19_990_000)
        with pytest.raises(BridgeException) as exc_info:
            bridge.submit_sweep_proof(sweep_tx, make_sweep_proof(sweep_tx))
        exc = assert_bridge_error(exc_info, "state_conflict", "DOUBLE_SWEEP_ATTEMPT")
        assert exc.details["input_index"] == 1

    def test_merkle_mismatch_changes_nothing(self, bridge, two_deposits, assert_bridge_error):
        sweep_tx = make_sweep_tx(two_deposits, 14_990_000)
        proof = make_sweep_proof(sweep_tx, position=1)
        wrong = proof.model_copy(update={"tx_index_in_block": 0})
        before = capture(bridge)

        with pytest.raises(BridgeException) as exc_info:
            bridge.submit_sweep_proof(sweep_tx, wrong)
        assert_bridge_error(exc_info, "proof_invalid", "MERKLE_PROOF_MISMATCH")
        assert capture(bridge) == before

    def test_shallow_proof(self, runtime_config, relay, bank, clock, assert_bridge_error):
        deep = replace(runtime_config, proof=replace(runtime_config.proof, difficulty_factor=6))
        bridge = Bridge(deep, relay=relay, bank=bank, clock=clock)
        outpoint = reveal_deposit(bridge)
        sweep_tx = make_sweep_tx([outpoint], 9_990_000)

        with pytest.raises(BridgeException) as exc_info:
            bridge.submit_sweep_proof(sweep_tx, make_sweep_proof(sweep_tx, confirmations=1))
        assert_bridge_error(exc_info, "proof_invalid", "INSUFFICIENT_CONFIRMATIONS")
        assert not bridge.get_deposit(*outpoint).is_swept

        bridge.submit_sweep_proof(sweep_tx, make_sweep_proof(sweep_tx, confirmations=6))
        assert bridge.get_deposit(*outpoint).is_swept

    def test_unrecognized_input(self, bridge, two_deposits, assert_bridge_error):
        stranger = (make_txid_bytes(77), 3)
        sweep_tx = make_sweep_tx([*two_deposits, stranger], 14_990_000)
        with pytest.raises(BridgeException) as exc_info:
            bridge.submit_sweep_proof(sweep_tx, make_sweep_proof(sweep_tx))
        exc = assert_bridge_error(exc_info, "policy_violation", "UNRECOGNIZED_SWEEP_INPUT")
        assert exc.details["input_index"] == 2
        assert exc.details["outpoint"].endswith(":3")

    def test_unknown_index_of_known_funding_tx(self, bridge, two_deposits, assert_bridge_error):
        funding_hash, _ = two_deposits[0]
        sweep_tx = make_sweep_tx([(funding_hash, 1)], 1_000)
        with pytest.raises(BridgeException) as exc_info:
            bridge.submit_sweep_proof(sweep_tx, make_sweep_proof(sweep_tx))
        assert_bridge_error(exc_info, "policy_violation", "UNRECOGNIZED_SWEEP_INPUT")

    def test_wallet_mismatch(self, bridge, assert_bridge_error):
        first = reveal_deposit(bridge, DEPOSITOR, seed=1)
        second = reveal_deposit(bridge, OTHER_DEPOSITOR, seed=2, wallet=OTHER_WALLET_PKH)
        sweep_tx = make_sweep_tx([first, second], 19_990_000)
        with pytest.raises(BridgeException) as exc_info:
            bridge.submit_sweep_proof(sweep_tx, make_sweep_proof(sweep_tx))
        assert_bridge_error(exc_info, "policy_violation", "DEPOSIT_WALLET_MISMATCH")

    def test_output_to_other_wallet(self, bridge, two_deposits, assert_bridge_error):
        sweep_tx = make_sweep_tx(two_deposits, 14_990_000, wallet_pubkey_hash=OTHER_WALLET_PKH)
        with pytest.raises(BridgeException) as exc_info:
            bridge.submit_sweep_proof(sweep_tx, make_sweep_proof(sweep_tx))
        assert_bridge_error(exc_info, "policy_violation", "WRONG_SWEEP_OUTPUT")

    def test_output_to_script_hash(self, bridge, two_deposits, assert_bridge_error):
        sweep_tx = make_tx(
            [make_input(prev_hash, index) for prev_hash, index in two_deposits],
            [make_output(14_990_000, b"\xa9\x14" + WALLET_PKH + b"\x87")],
        )
        with pytest.raises(BridgeException) as exc_info:
            bridge.submit_sweep_proof(sweep_tx, make_sweep_proof(sweep_tx))
        assert_bridge_error(exc_info, "policy_violation", "WRONG_SWEEP_OUTPUT")

    def test_malformed_sweep(self, bridge, two_deposits, assert_bridge_error):
        good = make_sweep_tx(two_deposits, 14_990_000)
        broken = type(good)(good.version, good.input_vector, good.output_vector + b"\x00", good.locktime)
        with pytest.raises(BridgeException) as exc_info:
            bridge.submit_sweep_proof(broken, make_sweep_proof(good))
        assert_bridge_error(exc_info, "malformed_input", "MALFORMED_TRANSACTION")


class TestCommitAtomicity:

    def test_ledger_failure_rolls_back(self, runtime_config, relay, clock):
        bridge = Bridge(runtime_config, relay=relay, bank=FailingBank(), clock=clock)
        outpoints = [
            reveal_deposit(bridge, DEPOSITOR, seed=1),
            reveal_deposit(bridge, OTHER_DEPOSITOR, seed=2),
        ]
        sweep_tx = make_sweep_tx(outpoints, 19_990_000)
        before = capture(bridge)

        with pytest.raises(RuntimeError):
            bridge.submit_sweep_proof(sweep_tx, make_sweep_proof(sweep_tx))

        assert capture(bridge) == before
        assert bridge.chain_state == ChainState()
        for outpoint in outpoints:
            assert not bridge.get_deposit(*outpoint).is_swept
