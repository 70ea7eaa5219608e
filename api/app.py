"""
Module 11D - FastAPI Application

Main application setup and configuration.

Usage:
    uvicorn api.app:app --reload

    # Or run directly
    python -m api.app
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.deps import build_bridge
from api.errors import APIError, api_error_handler, bridge_error_handler, generic_error_handler
from api.routes import chain, deposits, health, sweeps
from bridge import Bridge
from core.schemas.errors import BridgeException


# Configure logging: BRIDGE_LOG_LEVEL env var, then bridge.json log_level
def _resolve_log_level() -> int:
    """Resolve log level from env var or bridge.json, defaulting to INFO."""
    raw = os.getenv("BRIDGE_LOG_LEVEL")
    if raw is None:
        cfg_path = Path.cwd() / "bridge.json"
        if cfg_path.exists():
            try:
                with open(cfg_path) as f:
                    raw = json.load(f).get("log_level")
            except (OSError, ValueError):
                raw = None
    return getattr(logging, (raw or "INFO").upper(), logging.INFO)


logging.basicConfig(
    level=_resolve_log_level(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)


def create_app(bridge: Optional[Bridge] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        bridge: Engine instance to serve; built from config when omitted
    """

    app = FastAPI(
        title="SPV Bridge API",
        description="""
HTTP API for the SPV deposit/sweep reconciliation engine.

## Endpoints

- **POST /deposits/reveal** - Reveal a deposit locked in a funding transaction
- **GET /deposits/{txid}/{index}** - Look up a deposit by funding outpoint
- **POST /sweeps** - Submit a sweep transaction with its SPV proof
- **GET /chain-state** - Last accepted sweep
- **GET /events** - Event log
- **GET /health** - Health check

## Errors

Rejections carry a stable error code and a category:
`malformed_input` (400), `proof_invalid` (422), `policy_violation` (422),
`state_conflict` (409).
        """,
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.state.bridge = bridge if bridge is not None else build_bridge()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register exception handlers
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(BridgeException, bridge_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)

    # Include routers
    app.include_router(health.router)
    app.include_router(deposits.router)
    app.include_router(sweeps.router)
    app.include_router(chain.router)

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    from core.config.runtime import load_runtime_config

    api_config = load_runtime_config().api
    uvicorn.run(app, host=api_config.host, port=api_config.port)
