"""
Deposit/sweep reconciliation engine.

Exports the Bridge facade and the pieces it is built from.
"""

from .collaborators import (
    BalanceLedger,
    Clock,
    FrozenClock,
    InMemoryBank,
    RealClock,
    Relay,
    StaticRelay,
)
from .registry import DepositRegistry, deposit_key
from .state import BridgeState
from .spv import SpvVerifier, evaluate_proof_difficulty
from .deposit import reveal_deposit
from .sweep import SweepReconciler
from .bridge import Bridge

__all__ = [
    "BalanceLedger",
    "Clock",
    "FrozenClock",
    "InMemoryBank",
    "RealClock",
    "Relay",
    "StaticRelay",
    "DepositRegistry",
    "deposit_key",
    "BridgeState",
    "SpvVerifier",
    "evaluate_proof_difficulty",
    "reveal_deposit",
    "SweepReconciler",
    "Bridge",
]
