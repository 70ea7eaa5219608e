"""
Module 00 - Schemas
File: sweep.py

Purpose: Bridge-wide chain state, SPV proof payloads and sweep outcomes.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


ZERO_HASH = b"\x00" * 32


class ChainState(BaseModel):
    """
    Link to the most recent accepted sweep.

    previous_sweep_tx_hash == ZERO_HASH means no sweep has been accepted
    yet, so the next sweep needs no chained input.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    previous_sweep_tx_hash: bytes = Field(
        default=ZERO_HASH,
        description="Internal-order hash of the last accepted sweep",
        min_length=32,
        max_length=32,
    )
    previous_sweep_value: int = Field(
        default=0,
        description="Satoshi value of that sweep's single output",
        ge=0,
    )

    @property
    def has_previous_sweep(self) -> bool:
        return self.previous_sweep_tx_hash != ZERO_HASH


class SweepProof(BaseModel):
    """
    SPV proof that a transaction is buried in the source chain.

    Attributes:
        merkle_proof: Concatenated 32-byte siblings, bottom to top
        tx_index_in_block: Position of the transaction in its block
        bitcoin_headers: Concatenated 80-byte headers, first one containing
            the transaction, lowest height first
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    merkle_proof: bytes = Field(default=b"")
    tx_index_in_block: int = Field(..., ge=0)
    bitcoin_headers: bytes = Field(...)


class Credit(BaseModel):
    """One balance increase owed to a depositor."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    depositor: bytes = Field(..., min_length=20, max_length=20)
    amount: int = Field(..., ge=0)


class SweepResult(BaseModel):
    """
    Outcome of an accepted sweep.

    implied_fee is reported, not enforced: deposits + chained value minus
    the output value.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    sweep_tx_hash: bytes
    wallet_pubkey_hash: bytes
    swept_deposit_keys: list[bytes] = Field(default_factory=list)
    credits: list[Credit] = Field(default_factory=list)
    chained_input_found: bool = False
    deposited_total: int = 0
    chained_value: int = 0
    output_value: int = 0
    implied_fee: int = 0


__all__ = [
    "ZERO_HASH",
    "ChainState",
    "SweepProof",
    "Credit",
    "SweepResult",
]
