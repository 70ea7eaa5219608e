"""
Module 10 - Esplora Chain Client

Read-only access to a source-chain indexer speaking the Esplora REST API
(blockstream.info, mempool.space, a local electrs). Used to assemble the
inputs of a sweep submission from public chain data.

Endpoints used:
    GET /tx/{txid}/hex            raw transaction
    GET /tx/{txid}/merkle-proof   {"block_height", "merkle", "pos"}
    GET /block-height/{height}    block hash
    GET /block/{hash}/header      80-byte header as hex
    GET /blocks/tip/height        best height

Merkle siblings arrive in display (big-endian) order and are reversed here,
once, into the internal order verify_inclusion expects.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from core.bitcoin.codec import TransactionView
from core.bitcoin.endian import from_be_display
from core.bitcoin.headers import HEADER_SIZE
from core.config.runtime import ChainClientConfig
from core.http import HttpClient, HttpError
from core.schemas.errors import BridgeException
from core.schemas.sweep import SweepProof


logger = logging.getLogger(__name__)


class ChainClientError(Exception):
    """Source-chain data could not be fetched or is unusable."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


@dataclass(frozen=True)
class TxMerkleProof:
    """Inclusion data for one transaction, siblings in internal order."""
    block_height: int
    position: int
    siblings: list[bytes]

    @property
    def branch(self) -> bytes:
        return b"".join(self.siblings)


class EsploraClient:
    """
    Esplora REST client.

    Usage:
        client = EsploraClient.from_config(config.chain)
        tx, proof = client.assemble_sweep_proof(txid, required_confirmations=6)
    """

    def __init__(self, http: HttpClient) -> None:
        self.http = http

    @classmethod
    def from_config(cls, config: ChainClientConfig) -> "EsploraClient":
        return cls(HttpClient(config.base_url, timeout=config.timeout))

    def _get_text(self, path: str) -> str:
        try:
            return self.http.get_text(path)
        except HttpError as e:
            raise ChainClientError(
                f"Chain query failed: {path}",
                details={"path": path, "status_code": e.status_code, "error": str(e)},
            ) from e

    def _get_json(self, path: str) -> Any:
        try:
            return self.http.get_json(path)
        except HttpError as e:
            raise ChainClientError(
                f"Chain query failed: {path}",
                details={"path": path, "status_code": e.status_code, "error": str(e)},
            ) from e
        except ValueError as e:
            raise ChainClientError(f"Invalid JSON from {path}", details={"path": path}) from e

    def get_raw_transaction(self, txid: str) -> TransactionView:
        raw_hex = self._get_text(f"/tx/{txid}/hex")
        try:
            tx = TransactionView.from_hex(raw_hex)
        except (ValueError, BridgeException) as e:
            raise ChainClientError(f"Unparseable transaction body for {txid}") from e
        if tx.txid_display() != txid.lower():
            raise ChainClientError(
                "Returned transaction does not hash to the requested txid",
                details={"requested": txid, "received": tx.txid_display()},
            )
        return tx

    def get_merkle_proof(self, txid: str) -> TxMerkleProof:
        data = self._get_json(f"/tx/{txid}/merkle-proof")
        try:
            return TxMerkleProof(
                block_height=int(data["block_height"]),
                position=int(data["pos"]),
                siblings=[from_be_display(node) for node in data["merkle"]],
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ChainClientError(
                f"Malformed merkle proof for {txid}", details={"response": data}
            ) from e

    def get_block_hash(self, height: int) -> str:
        return self._get_text(f"/block-height/{height}")

    def get_block_header(self, height: int) -> bytes:
        block_hash = self.get_block_hash(height)
        header_hex = self._get_text(f"/block/{block_hash}/header")
        try:
            header = bytes.fromhex(header_hex)
        except ValueError as e:
            raise ChainClientError(
                f"Unparseable header at height {height}",
                details={"height": height, "block_hash": block_hash},
            ) from e
        if len(header) != HEADER_SIZE:
            raise ChainClientError(
                f"Header at height {height} is {len(header)} bytes",
                details={"height": height, "block_hash": block_hash},
            )
        return header

    def get_tip_height(self) -> int:
        text = self._get_text("/blocks/tip/height")
        try:
            return int(text)
        except ValueError as e:
            raise ChainClientError(f"Invalid tip height: {text!r}") from e

    def get_headers(self, start_height: int, count: int) -> bytes:
        """Concatenated headers for heights start_height .. start_height + count - 1."""
        return b"".join(
            self.get_block_header(height)
            for height in range(start_height, start_height + count)
        )

    def assemble_sweep_proof(
        self,
        txid: str,
        required_confirmations: int,
    ) -> tuple[TransactionView, SweepProof]:
        """
        Gather everything needed to submit a sweep.

        Args:
            txid: Display-order transaction id
            required_confirmations: Number of headers to include, starting
                with the block containing the transaction

        Raises:
            ChainClientError: On fetch failures or too few confirmations
        """
        if required_confirmations < 1:
            raise ValueError("required_confirmations must be at least 1")

        tx = self.get_raw_transaction(txid)
        inclusion = self.get_merkle_proof(txid)
        tip = self.get_tip_height()

        confirmations = tip - inclusion.block_height + 1
        if confirmations < required_confirmations:
            raise ChainClientError(
                f"Transaction has {confirmations} confirmations, "
                f"{required_confirmations} required",
                details={
                    "confirmations": confirmations,
                    "required": required_confirmations,
                    "block_height": inclusion.block_height,
                },
            )

        headers = self.get_headers(inclusion.block_height, required_confirmations)
        logger.info(
            f"Assembled proof for {txid}: height {inclusion.block_height}, "
            f"position {inclusion.position}, {required_confirmations} headers"
        )

        return tx, SweepProof(
            merkle_proof=inclusion.branch,
            tx_index_in_block=inclusion.position,
            bitcoin_headers=headers,
        )

    def close(self) -> None:
        self.http.close()


__all__ = [
    "ChainClientError",
    "EsploraClient",
    "TxMerkleProof",
]
