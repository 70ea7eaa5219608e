"""
Module 09 - Sweep Reconciler

Accepts a custodian's sweep transaction together with its SPV proof and
advances every swept deposit from Revealed to Swept.

Verify fully, then commit once:
1. Both vectors are structurally valid                 (malformed_input)
2. SPV proof holds for the transaction hash            (proof_invalid)
3. Exactly one output                                  (policy_violation)
4. Every input is an unswept deposit or the chained
   output of the previous sweep                        (policy_violation / state_conflict)
5. Chained input present unless this is the first sweep
6. Deposits share one wallet and the output pays to it
7. Commit: mark deposits, move chain state, credit the ledger

Steps 1-6 never write. Step 7 runs inside BridgeState.atomic() so a ledger
failure rolls the registry and chain state back.

Known limitation: output value is not reconciled against input value. The
implied fee is computed and reported on the result only.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from bridge.collaborators import BalanceLedger, Clock
from bridge.registry import deposit_key
from bridge.spv import SpvVerifier
from bridge.state import BridgeState
from core.bitcoin.codec import (
    TransactionView,
    extract_outpoint,
    extract_script_pubkey,
    extract_value,
    iter_inputs,
)
from core.bitcoin.endian import be_display
from core.bitcoin.script import p2pkh_script, p2wpkh_script
from core.schemas.errors import (
    ErrorCodes,
    PolicyViolationException,
    StateConflictException,
)
from core.schemas.events import DepositsSwept
from core.schemas.sweep import ChainState, Credit, SweepProof, SweepResult


logger = logging.getLogger(__name__)


@dataclass
class SweepInputsInfo:
    """Tentative outcome of walking a sweep's inputs; nothing is committed yet."""
    deposit_keys: list[bytes] = field(default_factory=list)
    credits: list[Credit] = field(default_factory=list)
    deposited_total: int = 0
    chained_input_found: bool = False
    wallet_pubkey_hash: bytes | None = None


class SweepReconciler:
    """
    Reconciles sweep transactions against the deposit registry.

    Usage:
        reconciler = SweepReconciler(state, verifier, bank, clock)
        result = reconciler.submit_sweep_proof(sweep_tx, proof)
    """

    def __init__(
        self,
        state: BridgeState,
        verifier: SpvVerifier,
        bank: BalanceLedger,
        clock: Clock,
    ) -> None:
        self.state = state
        self.verifier = verifier
        self.bank = bank
        self.clock = clock

    def submit_sweep_proof(self, sweep_tx: TransactionView, proof: SweepProof) -> SweepResult:
        """
        Validate and apply one sweep.

        Returns:
            SweepResult describing the committed changes

        Raises:
            BridgeException subclasses; state is unchanged when raised
        """
        sweep_tx.require_well_formed()

        sweep_tx_hash = sweep_tx.tx_hash()
        self.verifier.prove_tx(sweep_tx_hash, proof)

        if sweep_tx.output_count != 1:
            raise PolicyViolationException(
                "Sweep transaction must have a single output",
                code=ErrorCodes.MULTI_OUTPUT_SWEEP_REJECTED,
                details={"output_count": sweep_tx.output_count},
            )
        output = sweep_tx.output_at(0)
        output_value = extract_value(output)

        chain_state = self.state.chain_state
        info = self.process_inputs(sweep_tx.input_vector, chain_state)

        if chain_state.has_previous_sweep and not info.chained_input_found:
            raise PolicyViolationException(
                "Sweep transaction does not spend the previous sweep output",
                code=ErrorCodes.MISSING_CHAINED_INPUT,
                details={"previous_sweep": be_display(chain_state.previous_sweep_tx_hash)},
            )

        if not info.deposit_keys:
            raise PolicyViolationException(
                "Sweep transaction must process at least one deposit",
                code=ErrorCodes.EMPTY_SWEEP,
            )

        self._check_output_pays_wallet(output, info.wallet_pubkey_hash)

        chained_value = chain_state.previous_sweep_value if info.chained_input_found else 0
        now = self.clock.now()

        with self.state.atomic():
            for key in info.deposit_keys:
                self.state.registry.mark_swept(key, now)
            self.state.chain_state = ChainState(
                previous_sweep_tx_hash=sweep_tx_hash,
                previous_sweep_value=output_value,
            )
            self.bank.increase_balances(info.credits)
            self.state.emit(
                DepositsSwept(
                    wallet_pubkey_hash=info.wallet_pubkey_hash,
                    sweep_tx_hash=sweep_tx_hash,
                    deposit_count=len(info.deposit_keys),
                )
            )

        logger.info(
            f"Accepted sweep {be_display(sweep_tx_hash)}: "
            f"{len(info.deposit_keys)} deposits, {info.deposited_total} sat"
        )

        return SweepResult(
            sweep_tx_hash=sweep_tx_hash,
            wallet_pubkey_hash=info.wallet_pubkey_hash,
            swept_deposit_keys=info.deposit_keys,
            credits=info.credits,
            chained_input_found=info.chained_input_found,
            deposited_total=info.deposited_total,
            chained_value=chained_value,
            output_value=output_value,
            implied_fee=info.deposited_total + chained_value - output_value,
        )

    def process_inputs(self, input_vector: bytes, chain_state: ChainState) -> SweepInputsInfo:
        """
        Classify every input of a sweep without touching state.

        Raises:
            StateConflictException: DOUBLE_SWEEP_ATTEMPT
            PolicyViolationException: UNRECOGNIZED_SWEEP_INPUT,
                DEPOSIT_WALLET_MISMATCH
        """
        info = SweepInputsInfo()
        seen_keys: set[bytes] = set()

        for input_index, tx_input in enumerate(iter_inputs(input_vector)):
            prev_hash, prev_index = extract_outpoint(tx_input)
            key = deposit_key(prev_hash, prev_index)
            record = self.state.registry.lookup(key)

            if record is not None:
                if record.is_swept or key in seen_keys:
                    raise StateConflictException(
                        "Deposit already swept",
                        code=ErrorCodes.DOUBLE_SWEEP_ATTEMPT,
                        details={"input_index": input_index, "deposit_key": key.hex()},
                    )
                if info.wallet_pubkey_hash is None:
                    info.wallet_pubkey_hash = record.wallet_pubkey_hash
                elif record.wallet_pubkey_hash != info.wallet_pubkey_hash:
                    raise PolicyViolationException(
                        "Deposits in one sweep must belong to the same wallet",
                        code=ErrorCodes.DEPOSIT_WALLET_MISMATCH,
                        details={"input_index": input_index},
                    )
                seen_keys.add(key)
                info.deposit_keys.append(key)
                info.credits.append(Credit(depositor=record.depositor, amount=record.amount))
                info.deposited_total += record.amount
                continue

            if (
                chain_state.has_previous_sweep
                and not info.chained_input_found
                and prev_hash == chain_state.previous_sweep_tx_hash
                and prev_index == 0
            ):
                info.chained_input_found = True
                continue

            raise PolicyViolationException(
                "Unknown input type",
                code=ErrorCodes.UNRECOGNIZED_SWEEP_INPUT,
                details={
                    "input_index": input_index,
                    "outpoint": f"{be_display(prev_hash)}:{prev_index}",
                },
            )

        return info

    @staticmethod
    def _check_output_pays_wallet(output: bytes, wallet_pubkey_hash: bytes) -> None:
        script = extract_script_pubkey(output)
        if script not in (p2pkh_script(wallet_pubkey_hash), p2wpkh_script(wallet_pubkey_hash)):
            raise PolicyViolationException(
                "Sweep output must be P2PKH or P2WPKH to the deposits' wallet",
                code=ErrorCodes.WRONG_SWEEP_OUTPUT,
                details={"wallet_pubkey_hash": wallet_pubkey_hash.hex()},
            )


__all__ = [
    "SweepInputsInfo",
    "SweepReconciler",
]
