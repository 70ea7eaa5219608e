"""
Module 00 - Schemas
File: events.py

Purpose: Notifications observed by custodian software and auditors.
"""

from __future__ import annotations

from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class DepositRevealed(BaseModel):
    """Emitted once per successful reveal; custodians use it to plan sweeps."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["deposit_revealed"] = "deposit_revealed"
    funding_tx_hash: bytes = Field(..., min_length=32, max_length=32)
    funding_output_index: int
    depositor: bytes
    amount: int
    blinding_factor: bytes
    wallet_pubkey_hash: bytes
    refund_pubkey_hash: bytes
    refund_locktime: bytes
    vault: bytes | None = None


class DepositsSwept(BaseModel):
    """Emitted once per accepted sweep."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["deposits_swept"] = "deposits_swept"
    wallet_pubkey_hash: bytes
    sweep_tx_hash: bytes = Field(..., min_length=32, max_length=32)
    deposit_count: int


BridgeEvent = Union[DepositRevealed, DepositsSwept]


__all__ = [
    "DepositRevealed",
    "DepositsSwept",
    "BridgeEvent",
]
