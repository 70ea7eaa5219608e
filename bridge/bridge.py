"""
Bridge Facade

Single entry point wiring the registry, SPV verifier and sweep reconciler
around one BridgeState. Every mutation goes through reveal_deposit or
submit_sweep_proof; everything else is read-only.

Usage:
    bridge = Bridge(config, relay=StaticRelay(1), bank=InMemoryBank())
    key = bridge.reveal_deposit(funding_tx, reveal)
    result = bridge.submit_sweep_proof(sweep_tx, proof)
"""

from __future__ import annotations

import logging
from typing import Optional

from bridge.collaborators import (
    BalanceLedger,
    Clock,
    InMemoryBank,
    RealClock,
    Relay,
    StaticRelay,
)
from bridge.deposit import reveal_deposit
from bridge.registry import deposit_key
from bridge.spv import SpvVerifier
from bridge.state import BridgeState
from bridge.sweep import SweepReconciler
from core.bitcoin.codec import TransactionView
from core.config.runtime import RuntimeConfig
from core.crypto.hashing import from_hex
from core.schemas.deposit import DepositRecord, RevealParameters
from core.schemas.errors import BridgeException
from core.schemas.events import BridgeEvent
from core.schemas.sweep import ChainState, SweepProof, SweepResult


logger = logging.getLogger(__name__)


class Bridge:
    """Deposit and sweep engine for one custodial bridge."""

    def __init__(
        self,
        config: Optional[RuntimeConfig] = None,
        relay: Optional[Relay] = None,
        bank: Optional[BalanceLedger] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.config = config or RuntimeConfig()
        self.relay = relay or StaticRelay(
            self.config.relay.current_epoch_difficulty,
            self.config.relay.previous_epoch_difficulty,
        )
        self.bank = bank or InMemoryBank()
        self.clock = clock or RealClock()

        self.state = BridgeState(
            trusted_vaults={from_hex(vault) for vault in self.config.deposit.trusted_vaults},
        )
        self.verifier = SpvVerifier(
            self.relay,
            difficulty_factor=self.config.proof.difficulty_factor,
            params=self.config.proof.network_params,
        )
        self.reconciler = SweepReconciler(self.state, self.verifier, self.bank, self.clock)

        logger.info(
            f"Bridge ready: network={self.config.proof.network}, "
            f"difficulty_factor={self.config.proof.difficulty_factor}, "
            f"dust_threshold={self.config.deposit.dust_threshold}"
        )

    def reveal_deposit(self, funding_tx: TransactionView, reveal: RevealParameters) -> bytes:
        """Register a deposit; returns its registry key."""
        try:
            return reveal_deposit(
                self.state,
                funding_tx,
                reveal,
                dust_threshold=self.config.deposit.dust_threshold,
                now=self.clock.now(),
            )
        except BridgeException as e:
            logger.warning(f"Deposit reveal rejected [{e.code}]: {e.message}")
            raise

    def submit_sweep_proof(self, sweep_tx: TransactionView, proof: SweepProof) -> SweepResult:
        """Apply a proven sweep; all or nothing."""
        try:
            return self.reconciler.submit_sweep_proof(sweep_tx, proof)
        except BridgeException as e:
            logger.warning(f"Sweep rejected [{e.code}]: {e.message}")
            raise

    def get_deposit(self, funding_tx_hash: bytes, funding_output_index: int) -> Optional[DepositRecord]:
        return self.state.registry.lookup(deposit_key(funding_tx_hash, funding_output_index))

    @property
    def chain_state(self) -> ChainState:
        return self.state.chain_state

    @property
    def events(self) -> list[BridgeEvent]:
        return list(self.state.events)


__all__ = [
    "Bridge",
]
