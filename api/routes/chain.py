"""
Module 11D - Chain State Routes

Read-only views of the bridge's chain state and event log.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query

from api.deps import get_bridge
from api.models.responses import ChainStateResponse, EventsResponse
from bridge import Bridge
from core.bitcoin.endian import be_display
from core.crypto.hashing import to_hex
from core.schemas.events import BridgeEvent


router = APIRouter(tags=["chain"])

# Fields holding transaction hashes are shown as explorer txids
_TX_HASH_FIELDS = {"funding_tx_hash", "sweep_tx_hash"}


def event_to_dict(event: BridgeEvent) -> dict[str, Any]:
    """JSON-safe rendering of an event."""
    payload: dict[str, Any] = {}
    for name, value in event.model_dump().items():
        if isinstance(value, bytes):
            value = be_display(value) if name in _TX_HASH_FIELDS else to_hex(value)
        payload[name] = value
    return payload


@router.get("/chain-state", response_model=ChainStateResponse)
async def get_chain_state(bridge: Bridge = Depends(get_bridge)) -> ChainStateResponse:
    state = bridge.chain_state
    return ChainStateResponse(
        previous_sweep_txid=be_display(state.previous_sweep_tx_hash),
        previous_sweep_value=state.previous_sweep_value,
        has_previous_sweep=state.has_previous_sweep,
    )


@router.get("/events", response_model=EventsResponse)
async def get_events(
    since: int = Query(default=0, ge=0, description="Skip this many earliest events"),
    bridge: Bridge = Depends(get_bridge),
) -> EventsResponse:
    """Event log in emission order."""
    events = bridge.events[since:]
    return EventsResponse(
        count=len(events),
        events=[event_to_dict(event) for event in events],
    )
