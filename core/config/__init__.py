"""
Runtime Configuration Module

Provides configuration loading and management for the bridge engine.
"""

from .runtime import (
    ApiConfig,
    ChainClientConfig,
    DepositConfig,
    ProofConfig,
    RelayConfig,
    RuntimeConfig,
    get_default_config,
    load_runtime_config,
    set_default_config,
)

__all__ = [
    "ApiConfig",
    "ChainClientConfig",
    "DepositConfig",
    "ProofConfig",
    "RelayConfig",
    "RuntimeConfig",
    "get_default_config",
    "load_runtime_config",
    "set_default_config",
]
