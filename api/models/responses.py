"""
Module 11D - API Response Models

Pydantic models for API response serialization. Transaction hashes are
rendered in display (big-endian) order; other byte fields as 0x hex.
"""

from typing import Any

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response for GET /health endpoint."""

    ok: bool = True
    service: str = "spv-bridge-api"
    version: str = "v1"
    network: str = Field(..., description="Source chain the engine verifies against")
    difficulty_factor: int
    deposit_count: int
    event_count: int


class RevealDepositResponse(BaseModel):
    """Response for POST /deposits/reveal."""

    ok: bool = True
    deposit_key: str = Field(..., description="Registry key of the deposit")
    funding_txid: str = Field(..., description="Funding transaction id, display order")
    funding_output_index: int
    amount: int = Field(..., description="Deposit value in satoshi")


class DepositResponse(BaseModel):
    """Response for GET /deposits/{txid}/{index}."""

    ok: bool = True
    deposit_key: str
    depositor: str
    amount: int
    revealed_at: int
    swept_at: int
    vault: str | None = None
    wallet_pubkey_hash: str


class CreditInfo(BaseModel):
    depositor: str
    amount: int


class SweepResponse(BaseModel):
    """Response for POST /sweeps."""

    ok: bool = True
    sweep_txid: str
    wallet_pubkey_hash: str
    deposit_count: int
    deposited_total: int
    chained_input_found: bool
    chained_value: int
    output_value: int
    implied_fee: int = Field(..., description="Reported only; not enforced")
    credits: list[CreditInfo] = Field(default_factory=list)


class ChainStateResponse(BaseModel):
    """Response for GET /chain-state."""

    previous_sweep_txid: str
    previous_sweep_value: int
    has_previous_sweep: bool


class EventsResponse(BaseModel):
    """Response for GET /events."""

    count: int
    events: list[dict[str, Any]] = Field(default_factory=list)


class ErrorDetail(BaseModel):
    """Detailed error information."""

    code: str = Field(..., description="Error code")
    category: str | None = Field(default=None, description="Rejection category")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    """Standard error response."""

    ok: bool = False
    error: ErrorDetail = Field(..., description="Error details")
