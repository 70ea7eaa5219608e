"""
Module 11D - API Dependencies

Dependency injection for the API. One Bridge instance lives on app.state;
routes receive it through get_bridge.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import Request

from bridge import Bridge
from core.config.runtime import RuntimeConfig, load_runtime_config

logger = logging.getLogger(__name__)


def build_bridge(config: Optional[RuntimeConfig] = None) -> Bridge:
    """
    Create the service's Bridge.

    Without an explicit config, reads bridge.json / bridge.yaml from the
    usual locations and overlays BRIDGE_* environment variables. The relay
    is static, seeded from the relay section of the config.
    """
    if config is None:
        config = load_runtime_config()
        logger.info(f"Loaded bridge config (network={config.proof.network})")
    return Bridge(config)


def get_bridge(request: Request) -> Bridge:
    """FastAPI dependency returning the app's Bridge."""
    return request.app.state.bridge
