"""
Pytest configuration and shared fixtures for SPV bridge tests.

This conftest.py:
1. Adds project root to sys.path for imports
2. Provides commonly-used fixtures via pytest's autodiscovery
3. Configures pytest markers and settings
"""

import sys
from pathlib import Path

import pytest

# =============================================================================
# Path Setup - Must happen before any local imports
# =============================================================================

# Get the project root (parent of tests/)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_TESTS_ROOT = Path(__file__).resolve().parent

# Add both project root and tests root to sys.path
for _path in [str(_PROJECT_ROOT), str(_TESTS_ROOT)]:
    if _path not in sys.path:
        sys.path.insert(0, _path)

# =============================================================================
# Import fixtures using importlib (more robust for pytest loading)
# =============================================================================

import importlib

_chain = importlib.import_module("fixtures.chain")

make_reveal = _chain.make_reveal
make_funding_tx = _chain.make_funding_tx

from bridge import Bridge, FrozenClock, InMemoryBank, StaticRelay  # noqa: E402
from core.config.runtime import (  # noqa: E402
    DepositConfig,
    ProofConfig,
    RelayConfig,
    RuntimeConfig,
)


# =============================================================================
# Pytest Fixtures (autodiscovered by pytest)
# =============================================================================

@pytest.fixture
def runtime_config() -> RuntimeConfig:
    """Regtest config: difficulty factor 1, dust threshold 1_000_000 sat."""
    return RuntimeConfig(
        proof=ProofConfig(difficulty_factor=1, network="regtest"),
        deposit=DepositConfig(dust_threshold=1_000_000),
        relay=RelayConfig(current_epoch_difficulty=1, previous_epoch_difficulty=1),
    )


@pytest.fixture
def relay() -> StaticRelay:
    return StaticRelay(1, 1)


@pytest.fixture
def bank() -> InMemoryBank:
    return InMemoryBank()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(1_700_000_000)


@pytest.fixture
def bridge(runtime_config, relay, bank, clock) -> Bridge:
    """A fresh engine on regtest with no deposits."""
    return Bridge(runtime_config, relay=relay, bank=bank, clock=clock)


@pytest.fixture
def reveal():
    """Default reveal parameters, deposit at output 0."""
    return make_reveal()


@pytest.fixture
def funding_tx(reveal):
    """Funding transaction paying 10_000_000 sat to the reveal's P2WSH."""
    return make_funding_tx(reveal, amount=10_000_000)


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )


# =============================================================================
# Test Helpers (available to all tests via fixtures)
# =============================================================================

@pytest.fixture
def assert_bridge_error():
    """Helper to assert a BridgeException carries the expected category and code."""
    def _assert(exc_info, category: str, code: str):
        exc = exc_info.value
        assert exc.category == category, f"Expected category {category!r}, got {exc.category!r}"
        assert exc.code == code, f"Expected code {code!r}, got {exc.code!r}"
        return exc
    return _assert
