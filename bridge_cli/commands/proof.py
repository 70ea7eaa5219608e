"""
Module 11C - CLI Proof Commands

- fetch-proof: assemble a transaction and its SPV proof from an Esplora
  indexer and save it as JSON
- verify-proof: check a saved proof offline against static epoch
  difficulties

Proof file layout:
    {
      "txid": "<display txid>",
      "transaction": {"version", "input_vector", "output_vector", "locktime"},
      "proof": {"merkle_proof", "tx_index_in_block", "bitcoin_headers"}
    }
All byte fields are plain hex in wire order.

Usage:
    spv-bridge fetch-proof <txid> [--confirmations N] [--out FILE]
    spv-bridge verify-proof <FILE> [--network NAME] [--difficulty-factor N]
        [--current-difficulty N] [--previous-difficulty N] [--json]
"""

from __future__ import annotations

import json
import logging
import sys
from argparse import Namespace
from dataclasses import asdict, dataclass, replace
from pathlib import Path
from typing import Any

from bridge.collaborators import StaticRelay
from bridge.spv import SpvVerifier
from core.bitcoin.codec import TransactionView
from core.bitcoin.headers import get_network
from core.chain import ChainClientError, EsploraClient
from core.config.runtime import RuntimeConfig
from core.schemas.errors import BridgeException
from core.schemas.sweep import SweepProof


logger = logging.getLogger(__name__)


EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


def proof_to_dict(tx: TransactionView, proof: SweepProof) -> dict[str, Any]:
    return {
        "txid": tx.txid_display(),
        "transaction": {
            "version": tx.version.hex(),
            "input_vector": tx.input_vector.hex(),
            "output_vector": tx.output_vector.hex(),
            "locktime": tx.locktime.hex(),
        },
        "proof": {
            "merkle_proof": proof.merkle_proof.hex(),
            "tx_index_in_block": proof.tx_index_in_block,
            "bitcoin_headers": proof.bitcoin_headers.hex(),
        },
    }


def proof_from_dict(data: dict[str, Any]) -> tuple[TransactionView, SweepProof]:
    """
    Inverse of proof_to_dict.

    Raises:
        KeyError / ValueError: On missing fields or bad hex
        MalformedInputException: On wrong-length version or locktime
    """
    tx_data = data["transaction"]
    proof_data = data["proof"]
    tx = TransactionView(
        version=bytes.fromhex(tx_data["version"]),
        input_vector=bytes.fromhex(tx_data["input_vector"]),
        output_vector=bytes.fromhex(tx_data["output_vector"]),
        locktime=bytes.fromhex(tx_data["locktime"]),
    )
    proof = SweepProof(
        merkle_proof=bytes.fromhex(proof_data.get("merkle_proof", "")),
        tx_index_in_block=int(proof_data["tx_index_in_block"]),
        bitcoin_headers=bytes.fromhex(proof_data["bitcoin_headers"]),
    )
    return tx, proof


@dataclass
class ProofCheckSummary:
    """Outcome of an offline proof check."""
    txid: str = ""
    ok: bool = False
    header_count: int = 0
    observed_difficulty: int = 0
    required_difficulty: int = 0
    error_code: str | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        if self.error_code is None:
            del d["error_code"]
            del d["error"]
        return d


def verify_proof_cmd(args: Namespace) -> int:
    """Execute the verify-proof command."""
    config: RuntimeConfig = args.runtime_config
    path = Path(args.proof_file)

    if not path.exists():
        print(f"Error: Proof file not found: {path}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    try:
        with open(path) as f:
            data = json.load(f)
        tx, proof = proof_from_dict(data)
    except (KeyError, TypeError, ValueError) as e:
        print(f"Error reading proof file: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except BridgeException as e:
        print(f"Malformed transaction in proof file [{e.code}]: {e.message}", file=sys.stderr)
        return EXIT_VERIFICATION_FAILED

    network = args.network or config.proof.network
    factor = args.difficulty_factor or config.proof.difficulty_factor
    current = args.current_difficulty or config.relay.current_epoch_difficulty
    previous = args.previous_difficulty or config.relay.previous_epoch_difficulty

    verifier = SpvVerifier(
        StaticRelay(current, previous),
        difficulty_factor=factor,
        params=get_network(network),
    )

    summary = ProofCheckSummary(
        txid=tx.txid_display(),
        header_count=len(proof.bitcoin_headers) // 80,
    )
    try:
        summary.observed_difficulty = verifier.prove_tx(tx.tx_hash(), proof)
        summary.ok = True
    except BridgeException as e:
        summary.error_code = e.code
        summary.error = e.message
        summary.required_difficulty = e.details.get("required", 0)
        summary.observed_difficulty = e.details.get("observed", 0)

    if args.json:
        print(json.dumps(summary.to_dict(), indent=2))
    else:
        print(f"txid: {summary.txid}")
        print(f"headers: {summary.header_count}")
        print(f"ok: {str(summary.ok).lower()}")
        if summary.ok:
            print(f"observed_difficulty: {summary.observed_difficulty}")
        else:
            print(f"error: [{summary.error_code}] {summary.error}")

    if summary.ok:
        logger.info("Proof verified")
        return EXIT_SUCCESS
    logger.warning(f"Proof rejected: {summary.error_code}")
    return EXIT_VERIFICATION_FAILED


def fetch_proof_cmd(args: Namespace) -> int:
    """Execute the fetch-proof command."""
    config: RuntimeConfig = args.runtime_config
    chain_config = config.chain
    if args.esplora_url:
        chain_config = replace(chain_config, base_url=args.esplora_url)

    client = EsploraClient.from_config(chain_config)
    try:
        tx, proof = client.assemble_sweep_proof(args.txid, args.confirmations)
    except ChainClientError as e:
        print(f"Error fetching proof: {e.message}", file=sys.stderr)
        if e.details:
            print(json.dumps(e.details, indent=2, default=str), file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except BridgeException as e:
        print(f"Indexer returned a malformed transaction [{e.code}]: {e.message}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    finally:
        client.close()

    payload = json.dumps(proof_to_dict(tx, proof), indent=2)
    if args.out:
        Path(args.out).write_text(payload + "\n")
        print(f"Saved proof for {tx.txid_display()} to {args.out}")
    else:
        print(payload)
    return EXIT_SUCCESS
