"""
External Collaborators

Interfaces the engine depends on but does not own:
- Relay: reports the source chain's current and previous epoch difficulty
- BalanceLedger: receives credits for swept deposits
- Clock: supplies timestamps for reveal and sweep records

Reference implementations are provided for tests, the CLI and the API.
"""

from __future__ import annotations

import logging
import time
from typing import Protocol, Sequence

from core.schemas.sweep import Credit


logger = logging.getLogger(__name__)


class Relay(Protocol):
    """Difficulty oracle for the source chain."""

    def current_epoch_difficulty(self) -> int:
        ...

    def previous_epoch_difficulty(self) -> int:
        ...


class BalanceLedger(Protocol):
    """
    Destination-side balance store.

    increase_balances receives every credit of one sweep in a single call
    and must apply all of them or none.
    """

    def increase_balances(self, credits: Sequence[Credit]) -> None:
        ...


class Clock(Protocol):
    """
    Protocol for time source.

    Can be real time or frozen for deterministic testing.
    """

    def now(self) -> int:
        """Current unix time in seconds; never 0."""
        ...


class RealClock:
    """Real-time clock implementation."""

    def now(self) -> int:
        return int(time.time())


class FrozenClock:
    """
    Frozen clock for deterministic testing.

    Returns the same time until advanced.
    """

    def __init__(self, frozen_time: int = 1_700_000_000) -> None:
        self._time = frozen_time

    def now(self) -> int:
        return self._time

    def advance(self, seconds: int) -> None:
        self._time += seconds


class StaticRelay:
    """Relay returning fixed epoch difficulties."""

    def __init__(self, current: int, previous: int | None = None) -> None:
        self.current = current
        self.previous = current if previous is None else previous

    def current_epoch_difficulty(self) -> int:
        return self.current

    def previous_epoch_difficulty(self) -> int:
        return self.previous

    def retarget(self, new_difficulty: int) -> None:
        """Move to a new epoch: the current difficulty becomes the previous one."""
        self.previous = self.current
        self.current = new_difficulty


class InMemoryBank:
    """
    Minimal balance ledger keyed by 20-byte depositor identity.

    Usage:
        bank = InMemoryBank()
        bank.increase_balances([Credit(depositor=addr, amount=10_000)])
        bank.balance_of(addr)  # 10_000
    """

    def __init__(self) -> None:
        self._balances: dict[bytes, int] = {}

    def increase_balances(self, credits: Sequence[Credit]) -> None:
        # Stage first so a bad entry leaves every balance untouched
        staged = dict(self._balances)
        for credit in credits:
            if credit.amount < 0:
                raise ValueError(f"Negative credit for {credit.depositor.hex()}")
            staged[credit.depositor] = staged.get(credit.depositor, 0) + credit.amount
        self._balances = staged
        logger.debug(f"Applied {len(credits)} credits")

    def balance_of(self, depositor: bytes) -> int:
        return self._balances.get(depositor, 0)

    @property
    def balances(self) -> dict[bytes, int]:
        return dict(self._balances)


__all__ = [
    "Relay",
    "BalanceLedger",
    "Clock",
    "RealClock",
    "FrozenClock",
    "StaticRelay",
    "InMemoryBank",
]
