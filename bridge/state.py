"""
Bridge State

The single mutable store of the engine: deposit registry, chain state,
trusted vaults and the event log. Passed explicitly to the reveal and sweep
flows; there is no module-level instance.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator

from bridge.registry import DepositRegistry
from core.schemas.events import BridgeEvent
from core.schemas.sweep import ChainState


logger = logging.getLogger(__name__)


@dataclass
class StateSnapshot:
    deposits: dict
    chain_state: ChainState
    event_count: int
    trusted_vaults: frozenset[bytes]


@dataclass
class BridgeState:
    registry: DepositRegistry = field(default_factory=DepositRegistry)
    chain_state: ChainState = field(default_factory=ChainState)
    trusted_vaults: set[bytes] = field(default_factory=set)
    events: list[BridgeEvent] = field(default_factory=list)

    def snapshot(self) -> StateSnapshot:
        return StateSnapshot(
            deposits=self.registry.snapshot(),
            chain_state=self.chain_state,
            event_count=len(self.events),
            trusted_vaults=frozenset(self.trusted_vaults),
        )

    def restore(self, snapshot: StateSnapshot) -> None:
        self.registry.restore(snapshot.deposits)
        self.chain_state = snapshot.chain_state
        del self.events[snapshot.event_count:]
        self.trusted_vaults = set(snapshot.trusted_vaults)

    @contextmanager
    def atomic(self) -> Iterator["BridgeState"]:
        """
        Commit block: any exception inside restores the pre-block state.

        Usage:
            with state.atomic():
                state.registry.mark_swept(key, now)
                bank.increase_balances(credits)
        """
        snapshot = self.snapshot()
        try:
            yield self
        except BaseException:
            logger.warning("Rolling back bridge state after failed commit")
            self.restore(snapshot)
            raise

    def emit(self, event: BridgeEvent) -> None:
        self.events.append(event)
        logger.info(f"Event {event.kind}")


__all__ = [
    "StateSnapshot",
    "BridgeState",
]
