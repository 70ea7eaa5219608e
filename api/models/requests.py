"""
Module 11D - API Request Models

Pydantic models for API request validation. Byte fields travel as hex
strings, with or without a 0x prefix, and are decoded here.
"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from core.bitcoin.codec import TransactionView
from core.schemas.deposit import RevealParameters
from core.schemas.sweep import SweepProof


def decode_hex(value: str) -> bytes:
    """Hex string (optional 0x prefix) to bytes."""
    if value.startswith("0x") or value.startswith("0X"):
        value = value[2:]
    return bytes.fromhex(value)


class HexModel(BaseModel):
    """Base for models whose string fields must all be valid hex."""

    @field_validator("*", mode="before")
    @classmethod
    def check_hex(cls, value):
        if isinstance(value, str):
            try:
                decode_hex(value)
            except ValueError as e:
                raise ValueError(f"not a hex string: {e}") from e
        return value


class TransactionModel(HexModel):
    """
    A source-chain transaction, either as one raw hex blob or as its four
    fields (version, input vector, output vector, locktime).
    """

    raw: Optional[str] = Field(default=None, description="Full raw transaction")
    version: Optional[str] = Field(default=None, description="4-byte version")
    input_vector: Optional[str] = Field(default=None, description="Compact-size prefixed inputs")
    output_vector: Optional[str] = Field(default=None, description="Compact-size prefixed outputs")
    locktime: Optional[str] = Field(default=None, description="4-byte locktime")

    @model_validator(mode="after")
    def check_form(self) -> "TransactionModel":
        fields = (self.version, self.input_vector, self.output_vector, self.locktime)
        if self.raw is None and any(f is None for f in fields):
            raise ValueError("provide either raw or all of version, input_vector, output_vector, locktime")
        return self

    def to_view(self) -> TransactionView:
        if self.raw is not None:
            return TransactionView.parse(decode_hex(self.raw))
        return TransactionView(
            version=decode_hex(self.version),
            input_vector=decode_hex(self.input_vector),
            output_vector=decode_hex(self.output_vector),
            locktime=decode_hex(self.locktime),
        )


class RevealModel(HexModel):
    """Deposit reveal parameters."""

    funding_output_index: int = Field(..., ge=0, le=0xFFFFFFFF)
    depositor: str = Field(..., description="20-byte depositor identity")
    blinding_factor: str = Field(..., description="8-byte blinding factor")
    wallet_pubkey_hash: str = Field(..., description="20-byte wallet key hash")
    refund_pubkey_hash: str = Field(..., description="20-byte refund key hash")
    refund_locktime: str = Field(..., description="4-byte little-endian locktime")
    vault: Optional[str] = Field(default=None, description="Optional 20-byte vault")

    def to_parameters(self) -> RevealParameters:
        return RevealParameters(
            funding_output_index=self.funding_output_index,
            depositor=decode_hex(self.depositor),
            blinding_factor=decode_hex(self.blinding_factor),
            wallet_pubkey_hash=decode_hex(self.wallet_pubkey_hash),
            refund_pubkey_hash=decode_hex(self.refund_pubkey_hash),
            refund_locktime=decode_hex(self.refund_locktime),
            vault=decode_hex(self.vault) if self.vault is not None else None,
        )


class RevealDepositRequest(BaseModel):
    """Request body for POST /deposits/reveal."""

    funding_tx: TransactionModel
    reveal: RevealModel


class ProofModel(HexModel):
    """SPV proof of inclusion and confirmation depth."""

    merkle_proof: str = Field(default="", description="Concatenated 32-byte siblings")
    tx_index_in_block: int = Field(..., ge=0)
    bitcoin_headers: str = Field(..., description="Concatenated 80-byte headers")

    def to_proof(self) -> SweepProof:
        return SweepProof(
            merkle_proof=decode_hex(self.merkle_proof),
            tx_index_in_block=self.tx_index_in_block,
            bitcoin_headers=decode_hex(self.bitcoin_headers),
        )


class SubmitSweepRequest(BaseModel):
    """Request body for POST /sweeps."""

    sweep_tx: TransactionModel
    proof: ProofModel

