"""
Module 11D - Health Check Route

Liveness probe that also reports which chain and policy the engine runs
with, plus a couple of counters for dashboards.
"""

from fastapi import APIRouter, Depends

from api.deps import get_bridge
from api.models.responses import HealthResponse
from bridge import Bridge


router = APIRouter(tags=["health"])


def _status(bridge: Bridge) -> HealthResponse:
    return HealthResponse(
        network=bridge.config.proof.network,
        difficulty_factor=bridge.config.proof.difficulty_factor,
        deposit_count=len(bridge.state.registry),
        event_count=len(bridge.state.events),
    )


@router.get("/health", response_model=HealthResponse)
async def health_check(bridge: Bridge = Depends(get_bridge)) -> HealthResponse:
    return _status(bridge)


@router.get("/", response_model=HealthResponse)
async def root(bridge: Bridge = Depends(get_bridge)) -> HealthResponse:
    """Same as /health."""
    return _status(bridge)
