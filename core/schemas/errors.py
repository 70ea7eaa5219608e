"""
Module 00 - Schemas
File: errors.py

Purpose: Standard error taxonomy for the bridge engine.
Defines both Pydantic models for structured error communication
and Python exceptions for control flow.

Every rejection belongs to exactly one category:
- malformed_input: codec/parse failures and reveal/output mismatches
- proof_invalid: Merkle inclusion or header-chain difficulty failures
- policy_violation: sweep shape rules, unknown inputs, missing chain link
- state_conflict: lifecycle violations (already revealed, already swept)

All categories are terminal for the current operation and never retried.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


ErrorCategory = Literal[
    "malformed_input",
    "proof_invalid",
    "policy_violation",
    "state_conflict",
]


# =============================================================================
# Error Codes (Machine-Readable Constants)
# =============================================================================

class ErrorCodes:
    """Stable machine-readable error codes used across the engine."""

    # Codec & parsing
    MALFORMED_LENGTH = "MALFORMED_LENGTH"
    INDEX_OUT_OF_RANGE = "INDEX_OUT_OF_RANGE"
    MALFORMED_TRANSACTION = "MALFORMED_TRANSACTION"
    MALFORMED_HEADER = "MALFORMED_HEADER"
    WRONG_SCRIPT_HASH = "WRONG_SCRIPT_HASH"

    # SPV proof
    MERKLE_PROOF_MISMATCH = "MERKLE_PROOF_MISMATCH"
    INVALID_CHAIN_LENGTH = "INVALID_CHAIN_LENGTH"
    INVALID_HEADER_CHAIN = "INVALID_HEADER_CHAIN"
    INSUFFICIENT_WORK = "INSUFFICIENT_WORK"
    UNRECOGNIZED_DIFFICULTY = "UNRECOGNIZED_DIFFICULTY"
    INSUFFICIENT_CONFIRMATIONS = "INSUFFICIENT_CONFIRMATIONS"

    # Policy
    MULTI_OUTPUT_SWEEP_REJECTED = "MULTI_OUTPUT_SWEEP_REJECTED"
    UNRECOGNIZED_SWEEP_INPUT = "UNRECOGNIZED_SWEEP_INPUT"
    MISSING_CHAINED_INPUT = "MISSING_CHAINED_INPUT"
    EMPTY_SWEEP = "EMPTY_SWEEP"
    DEPOSIT_WALLET_MISMATCH = "DEPOSIT_WALLET_MISMATCH"
    WRONG_SWEEP_OUTPUT = "WRONG_SWEEP_OUTPUT"
    DEPOSIT_BELOW_DUST = "DEPOSIT_BELOW_DUST"
    VAULT_NOT_TRUSTED = "VAULT_NOT_TRUSTED"

    # State
    ALREADY_REVEALED = "ALREADY_REVEALED"
    NOT_REVEALED = "NOT_REVEALED"
    ALREADY_SWEPT = "ALREADY_SWEPT"
    DOUBLE_SWEEP_ATTEMPT = "DOUBLE_SWEEP_ATTEMPT"


# =============================================================================
# Pydantic Error Models (Structured Communication)
# =============================================================================

class BridgeError(BaseModel):
    """
    Structured rejection reason.

    Used by the API layer and the CLI's JSON output to report why an
    operation was refused, without carrying the exception itself.
    """

    model_config = ConfigDict(extra="forbid")

    code: str = Field(
        ...,
        description="Stable machine-readable error code",
        examples=[ErrorCodes.WRONG_SCRIPT_HASH],
    )
    category: ErrorCategory = Field(
        ...,
        description="Taxonomy bucket the code belongs to",
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional structured details about the error",
    )

    def to_exception(self) -> "BridgeException":
        """Convert this error model to the matching exception class."""
        exc_cls = _CATEGORY_EXCEPTIONS.get(self.category, BridgeException)
        return exc_cls(self.message, code=self.code, details=self.details)


# =============================================================================
# Python Exceptions (Control Flow)
# =============================================================================

class BridgeException(Exception):
    """
    Base exception for all bridge engine rejections.

    Carries structured error information and can be converted to a
    BridgeError model.
    """

    category: ErrorCategory = "malformed_input"

    def __init__(
        self,
        message: str,
        code: str = "BRIDGE_ERROR",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_error_model(self) -> BridgeError:
        """Convert this exception to a BridgeError model."""
        return BridgeError(
            code=self.code,
            category=self.category,
            message=self.message,
            details=self.details,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class MalformedInputException(BridgeException):
    """Raised when untrusted bytes cannot be parsed or do not match the reveal."""

    category: ErrorCategory = "malformed_input"


class ProofInvalidException(BridgeException):
    """Raised when a Merkle or header-chain proof does not hold."""

    category: ErrorCategory = "proof_invalid"


class PolicyViolationException(BridgeException):
    """Raised when a well-formed, proven transaction breaks a bridge rule."""

    category: ErrorCategory = "policy_violation"


class StateConflictException(BridgeException):
    """Raised when an operation conflicts with a deposit's lifecycle."""

    category: ErrorCategory = "state_conflict"


_CATEGORY_EXCEPTIONS: dict[str, type[BridgeException]] = {
    "malformed_input": MalformedInputException,
    "proof_invalid": ProofInvalidException,
    "policy_violation": PolicyViolationException,
    "state_conflict": StateConflictException,
}


__all__ = [
    "ErrorCategory",
    "ErrorCodes",
    "BridgeError",
    "BridgeException",
    "MalformedInputException",
    "ProofInvalidException",
    "PolicyViolationException",
    "StateConflictException",
]
