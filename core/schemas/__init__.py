"""
Module 00 - Schemas
File: __init__.py

Purpose: Export the public API for the schemas module.
This is the main entry point for other modules to import schema definitions.
"""

# Error models and exceptions
from .errors import (
    BridgeError,
    BridgeException,
    ErrorCategory,
    ErrorCodes,
    MalformedInputException,
    PolicyViolationException,
    ProofInvalidException,
    StateConflictException,
)

# Deposit schemas
from .deposit import DepositRecord, RevealParameters

# Sweep schemas
from .sweep import ZERO_HASH, ChainState, Credit, SweepProof, SweepResult

# Events
from .events import BridgeEvent, DepositRevealed, DepositsSwept


__all__ = [
    # Errors
    "BridgeError",
    "BridgeException",
    "ErrorCategory",
    "ErrorCodes",
    "MalformedInputException",
    "PolicyViolationException",
    "ProofInvalidException",
    "StateConflictException",
    # Deposit
    "DepositRecord",
    "RevealParameters",
    # Sweep
    "ZERO_HASH",
    "ChainState",
    "Credit",
    "SweepProof",
    "SweepResult",
    # Events
    "BridgeEvent",
    "DepositRevealed",
    "DepositsSwept",
]
