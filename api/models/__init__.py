"""API request and response models."""

from api.models.requests import (
    ProofModel,
    RevealDepositRequest,
    RevealModel,
    SubmitSweepRequest,
    TransactionModel,
)
from api.models.responses import (
    ChainStateResponse,
    CreditInfo,
    DepositResponse,
    ErrorDetail,
    ErrorResponse,
    EventsResponse,
    HealthResponse,
    RevealDepositResponse,
    SweepResponse,
)

__all__ = [
    "ProofModel",
    "RevealDepositRequest",
    "RevealModel",
    "SubmitSweepRequest",
    "TransactionModel",
    "ChainStateResponse",
    "CreditInfo",
    "DepositResponse",
    "ErrorDetail",
    "ErrorResponse",
    "EventsResponse",
    "HealthResponse",
    "RevealDepositResponse",
    "SweepResponse",
]
