"""
Module 11A - Runtime Configuration

Central configuration for proof policy, deposit policy, the difficulty relay,
the chain client and the HTTP service.
"""

from __future__ import annotations

import copy
import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

from core.bitcoin.headers import NetworkParams, get_network

load_dotenv()


# Environment variable prefix
ENV_PREFIX = "BRIDGE_"


@dataclass
class ProofConfig:
    """SPV proof policy."""
    # Required accumulated work, in multiples of the epoch difficulty.
    # 6 on public networks, 1 in local test setups.
    difficulty_factor: int = 6
    network: str = "mainnet"

    def __post_init__(self):
        if self.difficulty_factor < 1:
            raise ValueError(
                f"difficulty_factor must be >= 1, got {self.difficulty_factor}"
            )
        get_network(self.network)

    @property
    def network_params(self) -> NetworkParams:
        return get_network(self.network)


@dataclass
class DepositConfig:
    """Deposit reveal policy.

    The dust threshold is opt-in. Public deployments set it to 1_000_000 sat.
    Trusted vaults are fixed at construction.
    """
    dust_threshold: int = 0  # satoshi
    trusted_vaults: list[str] = field(default_factory=list)  # 0x-prefixed hex

    def __post_init__(self):
        if self.dust_threshold < 0:
            raise ValueError(f"dust_threshold must be >= 0, got {self.dust_threshold}")
        for vault in self.trusted_vaults:
            if len(vault.removeprefix("0x")) != 40:
                raise ValueError(f"Trusted vault must be 20 bytes of hex, got {vault!r}")


@dataclass
class RelayConfig:
    """Static epoch difficulties used when no live relay is wired in."""
    current_epoch_difficulty: int = 1
    previous_epoch_difficulty: int = 1


@dataclass
class ChainClientConfig:
    """Esplora-compatible HTTP endpoint for reading the source chain."""
    base_url: str = "https://blockstream.info/api"
    timeout: float = 30.0


@dataclass
class ApiConfig:
    host: str = "0.0.0.0"
    port: int = 8000


@dataclass
class RuntimeConfig:
    """
    Complete runtime configuration for the bridge engine.

    Can be loaded from:
    - Environment variables
    - YAML or JSON file
    - Programmatic construction
    """
    proof: ProofConfig = field(default_factory=ProofConfig)
    deposit: DepositConfig = field(default_factory=DepositConfig)
    relay: RelayConfig = field(default_factory=RelayConfig)
    chain: ChainClientConfig = field(default_factory=ChainClientConfig)
    api: ApiConfig = field(default_factory=ApiConfig)
    log_level: str = "INFO"
    extra: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def _get_env_overrides() -> dict[str, Any]:
        """
        Get configuration overrides from environment variables.

        This is the SINGLE source of truth for all env var reading.

        Supported variables:
        - BRIDGE_DIFFICULTY_FACTOR: Required work multiple for SPV proofs
        - BRIDGE_NETWORK: mainnet, testnet or regtest
        - BRIDGE_DUST_THRESHOLD: Minimum deposit in satoshi
        - BRIDGE_CURRENT_EPOCH_DIFFICULTY / BRIDGE_PREVIOUS_EPOCH_DIFFICULTY
        - BRIDGE_ESPLORA_URL: Chain client base URL
        - BRIDGE_LOG_LEVEL: Log level
        """
        overrides: dict[str, Any] = {}

        if os.getenv(f"{ENV_PREFIX}DIFFICULTY_FACTOR"):
            overrides.setdefault("proof", {})["difficulty_factor"] = int(
                os.getenv(f"{ENV_PREFIX}DIFFICULTY_FACTOR", "6")
            )
        if os.getenv(f"{ENV_PREFIX}NETWORK"):
            overrides.setdefault("proof", {})["network"] = os.getenv(f"{ENV_PREFIX}NETWORK")

        if os.getenv(f"{ENV_PREFIX}DUST_THRESHOLD"):
            overrides.setdefault("deposit", {})["dust_threshold"] = int(
                os.getenv(f"{ENV_PREFIX}DUST_THRESHOLD", "0")
            )

        if os.getenv(f"{ENV_PREFIX}CURRENT_EPOCH_DIFFICULTY"):
            overrides.setdefault("relay", {})["current_epoch_difficulty"] = int(
                os.getenv(f"{ENV_PREFIX}CURRENT_EPOCH_DIFFICULTY", "1")
            )
        if os.getenv(f"{ENV_PREFIX}PREVIOUS_EPOCH_DIFFICULTY"):
            overrides.setdefault("relay", {})["previous_epoch_difficulty"] = int(
                os.getenv(f"{ENV_PREFIX}PREVIOUS_EPOCH_DIFFICULTY", "1")
            )

        if os.getenv(f"{ENV_PREFIX}ESPLORA_URL"):
            overrides.setdefault("chain", {})["base_url"] = os.getenv(f"{ENV_PREFIX}ESPLORA_URL")

        if os.getenv(f"{ENV_PREFIX}LOG_LEVEL"):
            overrides["log_level"] = os.getenv(f"{ENV_PREFIX}LOG_LEVEL")

        return overrides

    @classmethod
    def from_env(cls) -> "RuntimeConfig":
        """
        Load configuration purely from environment variables.

        Uses defaults for any values not specified in env vars.
        """
        return cls.from_dict(cls._get_env_overrides())

    @classmethod
    def from_yaml(cls, path: str | Path) -> "RuntimeConfig":
        """Load configuration from a YAML file."""
        import yaml
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls.from_dict(data)

    @classmethod
    def from_file(cls, path: str | Path) -> "RuntimeConfig":
        """Load from .yaml/.yml or .json depending on the extension."""
        path = Path(path)
        if path.suffix in (".yaml", ".yml"):
            return cls.from_yaml(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            return cls.from_dict(json.load(f))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RuntimeConfig":
        """Load configuration from a dictionary (supports partial data)."""
        proof_data = data.get("proof", {})
        deposit_data = data.get("deposit", {})
        relay_data = data.get("relay", {})
        chain_data = data.get("chain", {})
        api_data = data.get("api", {})

        return cls(
            proof=ProofConfig(**proof_data) if proof_data else ProofConfig(),
            deposit=DepositConfig(**deposit_data) if deposit_data else DepositConfig(),
            relay=RelayConfig(**relay_data) if relay_data else RelayConfig(),
            chain=ChainClientConfig(**chain_data) if chain_data else ChainClientConfig(),
            api=ApiConfig(**api_data) if api_data else ApiConfig(),
            log_level=data.get("log_level", "INFO"),
            extra=data.get("extra", {}),
        )

    def with_env_overrides(self) -> "RuntimeConfig":
        """
        Return a new config with environment variable overrides applied.

        This allows loading from a config file first, then overlaying env vars.
        """
        overrides = self._get_env_overrides()
        if not overrides:
            return self

        new_config = copy.deepcopy(self)

        for section in ("proof", "deposit", "relay", "chain"):
            for key, value in overrides.get(section, {}).items():
                setattr(getattr(new_config, section), key, value)

        if "log_level" in overrides:
            new_config.log_level = overrides["log_level"]

        return new_config

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to a dictionary."""
        return {
            "proof": {
                "difficulty_factor": self.proof.difficulty_factor,
                "network": self.proof.network,
            },
            "deposit": {
                "dust_threshold": self.deposit.dust_threshold,
                "trusted_vaults": list(self.deposit.trusted_vaults),
            },
            "relay": {
                "current_epoch_difficulty": self.relay.current_epoch_difficulty,
                "previous_epoch_difficulty": self.relay.previous_epoch_difficulty,
            },
            "chain": {
                "base_url": self.chain.base_url,
                "timeout": self.chain.timeout,
            },
            "api": {
                "host": self.api.host,
                "port": self.api.port,
            },
            "log_level": self.log_level,
            "extra": self.extra,
        }


def load_runtime_config(path: Optional[str | Path] = None) -> RuntimeConfig:
    """
    Load RuntimeConfig from a config file, then overlay environment variables.

    Search order when no path is given:
      1. ./bridge.json
      2. ./bridge.yaml
      3. ~/.config/spv-bridge/config.json

    Environment variables ALWAYS override config file values.
    """
    if path is not None:
        return RuntimeConfig.from_file(path).with_env_overrides()

    search_paths = [
        Path.cwd() / "bridge.json",
        Path.cwd() / "bridge.yaml",
        Path.home() / ".config" / "spv-bridge" / "config.json",
    ]
    for candidate in search_paths:
        if candidate.exists():
            return RuntimeConfig.from_file(candidate).with_env_overrides()

    return RuntimeConfig().with_env_overrides()


# Global default configuration
_default_config: Optional[RuntimeConfig] = None


def get_default_config() -> RuntimeConfig:
    """Get the default runtime configuration."""
    global _default_config
    if _default_config is None:
        _default_config = RuntimeConfig.from_env()
    return _default_config


def set_default_config(config: RuntimeConfig) -> None:
    """Set the default runtime configuration."""
    global _default_config
    _default_config = config
