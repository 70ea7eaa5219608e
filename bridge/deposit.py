"""
Module 08 - Deposit Reveal

Registers a funding output as a deposit after checking that it really locks
funds to the script the depositor describes.

Order of checks:
1. Vault, if any, is trusted
2. Funding transaction vectors are well-formed
3. Output at funding_output_index exists and matches the deposit script
4. Amount is at or above the dust threshold
5. Outpoint not revealed before (registry)

Nothing is written before every check has passed.
"""

from __future__ import annotations

import logging

from bridge.registry import deposit_key
from bridge.state import BridgeState
from core.bitcoin.codec import TransactionView, extract_output_at, extract_value_le
from core.bitcoin.endian import be_display, le_bytes_to_u64
from core.bitcoin.script import match_funding_output
from core.schemas.deposit import DepositRecord, RevealParameters
from core.schemas.errors import ErrorCodes, PolicyViolationException
from core.schemas.events import DepositRevealed


logger = logging.getLogger(__name__)


def reveal_deposit(
    state: BridgeState,
    funding_tx: TransactionView,
    reveal: RevealParameters,
    *,
    dust_threshold: int,
    now: int,
) -> bytes:
    """
    Reveal a deposit locked in `funding_tx`.

    Args:
        state: Bridge state to insert into
        funding_tx: The depositor's funding transaction
        reveal: Declared deposit parameters
        dust_threshold: Minimum accepted amount in satoshi
        now: Reveal timestamp

    Returns:
        The registry key of the new deposit

    Raises:
        MalformedInputException: MALFORMED_TRANSACTION, INDEX_OUT_OF_RANGE,
            WRONG_SCRIPT_HASH
        PolicyViolationException: VAULT_NOT_TRUSTED, DEPOSIT_BELOW_DUST
        StateConflictException: ALREADY_REVEALED
    """
    if reveal.vault is not None and reveal.vault not in state.trusted_vaults:
        raise PolicyViolationException(
            "Vault is not trusted",
            code=ErrorCodes.VAULT_NOT_TRUSTED,
            details={"vault": reveal.vault.hex()},
        )

    funding_tx.require_well_formed()

    funding_output = extract_output_at(funding_tx.output_vector, reveal.funding_output_index)
    match_funding_output(reveal, funding_output)

    amount_le = extract_value_le(funding_output)
    amount = le_bytes_to_u64(amount_le)
    if amount < dust_threshold:
        raise PolicyViolationException(
            "Deposit amount too small",
            code=ErrorCodes.DEPOSIT_BELOW_DUST,
            details={"amount": amount, "dust_threshold": dust_threshold},
        )

    funding_tx_hash = funding_tx.tx_hash()
    key = deposit_key(funding_tx_hash, reveal.funding_output_index)

    state.registry.reveal(
        key,
        DepositRecord(
            depositor=reveal.depositor,
            amount_le=amount_le,
            revealed_at=now,
            vault=reveal.vault,
            wallet_pubkey_hash=reveal.wallet_pubkey_hash,
        ),
    )

    state.emit(
        DepositRevealed(
            funding_tx_hash=funding_tx_hash,
            funding_output_index=reveal.funding_output_index,
            depositor=reveal.depositor,
            amount=amount,
            blinding_factor=reveal.blinding_factor,
            wallet_pubkey_hash=reveal.wallet_pubkey_hash,
            refund_pubkey_hash=reveal.refund_pubkey_hash,
            refund_locktime=reveal.refund_locktime,
            vault=reveal.vault,
        )
    )

    logger.info(
        f"Revealed deposit {be_display(funding_tx_hash)}:{reveal.funding_output_index} "
        f"for {amount} sat"
    )
    return key


__all__ = [
    "reveal_deposit",
]
