"""
Module 07 - Deposit Registry

Content-addressed store of deposit records keyed by funding outpoint.

Lifecycle enforced here:
    Unknown --reveal--> Revealed --mark_swept--> Swept

A key is revealed at most once and swept at most once. Records are never
deleted. Only the reveal flow inserts and only the sweep reconciler marks.
"""

from __future__ import annotations

import logging
from typing import Iterator, Optional

from core.bitcoin.endian import u32_to_le_bytes
from core.crypto.hashing import sha256
from core.schemas.deposit import DepositRecord
from core.schemas.errors import ErrorCodes, StateConflictException


logger = logging.getLogger(__name__)


def deposit_key(funding_tx_hash: bytes, funding_output_index: int) -> bytes:
    """
    Registry key of a funding outpoint.

    Args:
        funding_tx_hash: Funding transaction hash, internal (little-endian) order
        funding_output_index: Output index within that transaction

    Returns:
        sha256(funding_tx_hash ‖ u32_le(funding_output_index))
    """
    if len(funding_tx_hash) != 32:
        raise ValueError(f"Funding tx hash must be 32 bytes, got {len(funding_tx_hash)}")
    return sha256(funding_tx_hash + u32_to_le_bytes(funding_output_index))


class DepositRegistry:
    """In-memory deposit store owned by a single BridgeState."""

    def __init__(self) -> None:
        self._records: dict[bytes, DepositRecord] = {}

    def reveal(self, key: bytes, record: DepositRecord) -> None:
        """
        Insert a newly revealed deposit.

        Raises:
            StateConflictException: ALREADY_REVEALED if the key exists
        """
        if key in self._records:
            raise StateConflictException(
                "Deposit already revealed",
                code=ErrorCodes.ALREADY_REVEALED,
                details={"deposit_key": key.hex()},
            )
        self._records[key] = record.model_copy(update={"swept_at": 0})

    def lookup(self, key: bytes) -> Optional[DepositRecord]:
        return self._records.get(key)

    def mark_swept(self, key: bytes, timestamp: int) -> None:
        """
        Record the sweep time of a revealed deposit.

        Raises:
            StateConflictException: NOT_REVEALED or ALREADY_SWEPT
        """
        record = self._records.get(key)
        if record is None:
            raise StateConflictException(
                "Deposit not revealed",
                code=ErrorCodes.NOT_REVEALED,
                details={"deposit_key": key.hex()},
            )
        if record.is_swept:
            raise StateConflictException(
                "Deposit already swept",
                code=ErrorCodes.ALREADY_SWEPT,
                details={"deposit_key": key.hex(), "swept_at": record.swept_at},
            )
        if timestamp <= 0:
            raise ValueError(f"Sweep timestamp must be positive, got {timestamp}")
        self._records[key] = record.model_copy(update={"swept_at": timestamp})

    def snapshot(self) -> dict[bytes, DepositRecord]:
        """Shallow copy; records are immutable so this is a full snapshot."""
        return dict(self._records)

    def restore(self, snapshot: dict[bytes, DepositRecord]) -> None:
        self._records = dict(snapshot)

    def __contains__(self, key: bytes) -> bool:
        return key in self._records

    def __len__(self) -> int:
        return len(self._records)

    def items(self) -> Iterator[tuple[bytes, DepositRecord]]:
        return iter(self._records.items())


__all__ = [
    "deposit_key",
    "DepositRegistry",
]
