"""
Module 11D - Sweep Route

Submit a sweep transaction with its SPV proof.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from api.deps import get_bridge
from api.models.requests import SubmitSweepRequest
from api.models.responses import CreditInfo, SweepResponse
from bridge import Bridge
from core.bitcoin.endian import be_display
from core.crypto.hashing import to_hex


logger = logging.getLogger(__name__)

router = APIRouter(tags=["sweeps"])


@router.post("/sweeps", response_model=SweepResponse)
async def submit_sweep(
    request: SubmitSweepRequest,
    bridge: Bridge = Depends(get_bridge),
) -> SweepResponse:
    """
    Submit a sweep proof.

    Either every swept deposit is credited and the chain state moves to
    this sweep, or the request is rejected and nothing changes.
    """
    result = bridge.submit_sweep_proof(request.sweep_tx.to_view(), request.proof.to_proof())

    return SweepResponse(
        sweep_txid=be_display(result.sweep_tx_hash),
        wallet_pubkey_hash=to_hex(result.wallet_pubkey_hash),
        deposit_count=len(result.swept_deposit_keys),
        deposited_total=result.deposited_total,
        chained_input_found=result.chained_input_found,
        chained_value=result.chained_value,
        output_value=result.output_value,
        implied_fee=result.implied_fee,
        credits=[
            CreditInfo(depositor=to_hex(credit.depositor), amount=credit.amount)
            for credit in result.credits
        ],
    )
