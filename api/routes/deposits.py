"""
Module 11D - Deposit Routes

Reveal deposits and look them up by funding outpoint.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from pydantic import ValidationError

from api.deps import get_bridge
from api.errors import InvalidRequestError, NotFoundError
from api.models.requests import RevealDepositRequest
from api.models.responses import DepositResponse, RevealDepositResponse
from bridge import Bridge, deposit_key
from core.bitcoin.endian import from_be_display
from core.crypto.hashing import to_hex


logger = logging.getLogger(__name__)

router = APIRouter(tags=["deposits"])


@router.post("/deposits/reveal", response_model=RevealDepositResponse)
async def reveal_deposit(
    request: RevealDepositRequest,
    bridge: Bridge = Depends(get_bridge),
) -> RevealDepositResponse:
    """
    Reveal a deposit.

    Checks that the funding output locks funds to the deposit script built
    from the reveal parameters, then records it.
    """
    try:
        reveal = request.reveal.to_parameters()
    except ValidationError as e:
        raise InvalidRequestError(
            "Invalid reveal parameters",
            details={"errors": e.errors(include_url=False, include_context=False, include_input=False)},
        )

    funding_tx = request.funding_tx.to_view()
    key = bridge.reveal_deposit(funding_tx, reveal)
    record = bridge.state.registry.lookup(key)

    return RevealDepositResponse(
        deposit_key=to_hex(key),
        funding_txid=funding_tx.txid_display(),
        funding_output_index=reveal.funding_output_index,
        amount=record.amount,
    )


@router.get("/deposits/{funding_txid}/{funding_output_index}", response_model=DepositResponse)
async def get_deposit(
    funding_txid: str,
    funding_output_index: int,
    bridge: Bridge = Depends(get_bridge),
) -> DepositResponse:
    """Look up a deposit by display-order funding txid and output index."""
    try:
        funding_tx_hash = from_be_display(funding_txid)
    except ValueError:
        raise InvalidRequestError("funding_txid must be hex", details={"funding_txid": funding_txid})
    if len(funding_tx_hash) != 32 or not 0 <= funding_output_index <= 0xFFFFFFFF:
        raise InvalidRequestError("Invalid funding outpoint")

    record = bridge.get_deposit(funding_tx_hash, funding_output_index)
    if record is None:
        raise NotFoundError(
            "Deposit not revealed",
            details={"funding_txid": funding_txid, "funding_output_index": funding_output_index},
        )

    return DepositResponse(
        deposit_key=to_hex(deposit_key(funding_tx_hash, funding_output_index)),
        depositor=to_hex(record.depositor),
        amount=record.amount,
        revealed_at=record.revealed_at,
        swept_at=record.swept_at,
        vault=to_hex(record.vault) if record.vault is not None else None,
        wallet_pubkey_hash=to_hex(record.wallet_pubkey_hash),
    )

