"""
Module 00 - Schemas
File: deposit.py

Purpose: Deposit reveal parameters and the per-deposit ledger record.

Byte fields are raw bytes in wire order. The API layer converts from and to
hex at its boundary; nothing in here interprets the blinding factor or the
refund locktime as numbers.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from core.bitcoin.endian import le_bytes_to_u32, le_bytes_to_u64


class RevealParameters(BaseModel):
    """
    Depositor's declaration of a funding output.

    The five script fields (depositor, blinding_factor, wallet_pubkey_hash,
    refund_pubkey_hash, refund_locktime) fully determine the expected
    locking script; funding_output_index and vault only affect bookkeeping.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    funding_output_index: int = Field(
        ...,
        description="Index of the deposit output in the funding transaction",
        ge=0,
        le=0xFFFFFFFF,
    )
    depositor: bytes = Field(
        ...,
        description="20-byte destination-ledger identity credited on sweep",
        min_length=20,
        max_length=20,
    )
    blinding_factor: bytes = Field(
        ...,
        description="8 opaque bytes making the script unique",
        min_length=8,
        max_length=8,
    )
    wallet_pubkey_hash: bytes = Field(
        ...,
        description="hash160 of the custodian wallet's public key",
        min_length=20,
        max_length=20,
    )
    refund_pubkey_hash: bytes = Field(
        ...,
        description="hash160 of the depositor's refund public key",
        min_length=20,
        max_length=20,
    )
    refund_locktime: bytes = Field(
        ...,
        description="4-byte little-endian locktime after which refund is possible",
        min_length=4,
        max_length=4,
    )
    vault: bytes | None = Field(
        default=None,
        description="Optional 20-byte destination vault identity",
        min_length=20,
        max_length=20,
    )

    @property
    def refund_locktime_value(self) -> int:
        return le_bytes_to_u32(self.refund_locktime)


class DepositRecord(BaseModel):
    """
    A revealed deposit.

    Lifecycle: Unknown -> Revealed (swept_at == 0) -> Swept (swept_at > 0).
    Records are replaced, never edited, when swept_at is set.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    depositor: bytes = Field(..., min_length=20, max_length=20)
    amount_le: bytes = Field(
        ...,
        description="Raw 8-byte little-endian satoshi value of the funding output",
        min_length=8,
        max_length=8,
    )
    revealed_at: int = Field(..., ge=1)
    vault: bytes | None = Field(default=None)
    wallet_pubkey_hash: bytes = Field(..., min_length=20, max_length=20)
    swept_at: int = Field(default=0, ge=0)

    @property
    def amount(self) -> int:
        """Deposit value in satoshi, widened from amount_le."""
        return le_bytes_to_u64(self.amount_le)

    @property
    def is_swept(self) -> bool:
        return self.swept_at != 0


__all__ = [
    "RevealParameters",
    "DepositRecord",
]
