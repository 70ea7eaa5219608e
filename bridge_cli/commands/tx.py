"""
Module 11C - CLI Transaction Commands

Offline helpers:
- txid: parse a raw transaction and print its id and shape
- deposit-script: derive the deposit locking script and its hashes

Usage:
    spv-bridge txid <raw_hex | @file> [--json]
    spv-bridge deposit-script --depositor HEX --blinding-factor HEX \\
        --wallet-pkh HEX --refund-pkh HEX --refund-locktime HEX [--json]
"""

from __future__ import annotations

import json
import logging
import sys
from argparse import Namespace
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from core.bitcoin.codec import TransactionView, extract_value
from core.bitcoin.script import build_deposit_script, deposit_script_hashes, extract_hash
from core.schemas.deposit import RevealParameters
from core.schemas.errors import BridgeException


logger = logging.getLogger(__name__)


EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


def read_hex_argument(value: str) -> bytes:
    """Hex from the argument itself, or from a file when prefixed with @."""
    if value.startswith("@"):
        value = Path(value[1:]).read_text()
    value = "".join(value.split())
    if value.startswith("0x"):
        value = value[2:]
    return bytes.fromhex(value)


def describe_transaction(tx: TransactionView) -> dict[str, Any]:
    outputs = []
    for index in range(tx.output_count):
        output = tx.output_at(index)
        outputs.append({
            "index": index,
            "value": extract_value(output),
            "hash": extract_hash(output).hex(),
        })
    return {
        "txid": tx.txid_display(),
        "version": tx.version.hex(),
        "locktime": tx.locktime.hex(),
        "input_count": tx.input_count,
        "output_count": tx.output_count,
        "outputs": outputs,
    }


def txid_cmd(args: Namespace) -> int:
    """Execute the txid command."""
    try:
        raw = read_hex_argument(args.raw_tx)
    except (OSError, ValueError) as e:
        print(f"Error reading transaction: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    try:
        tx = TransactionView.parse(raw)
        tx.require_well_formed()
    except BridgeException as e:
        print(f"Malformed transaction [{e.code}]: {e.message}", file=sys.stderr)
        return EXIT_VERIFICATION_FAILED

    info = describe_transaction(tx)
    if args.json:
        print(json.dumps(info, indent=2))
    else:
        print(f"txid: {info['txid']}")
        print(f"inputs: {info['input_count']}")
        print(f"outputs: {info['output_count']}")
        for output in info["outputs"]:
            hash_text = output["hash"] or "(unrecognized script)"
            print(f"  [{output['index']}] {output['value']} sat -> {hash_text}")
    return EXIT_SUCCESS


def deposit_script_cmd(args: Namespace) -> int:
    """Execute the deposit-script command."""
    try:
        reveal = RevealParameters(
            funding_output_index=0,
            depositor=read_hex_argument(args.depositor),
            blinding_factor=read_hex_argument(args.blinding_factor),
            wallet_pubkey_hash=read_hex_argument(args.wallet_pkh),
            refund_pubkey_hash=read_hex_argument(args.refund_pkh),
            refund_locktime=read_hex_argument(args.refund_locktime),
        )
    except (ValueError, ValidationError) as e:
        print(f"Invalid deposit parameters: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    script = build_deposit_script(reveal)
    hashes = deposit_script_hashes(reveal)
    info = {
        "script": script.hex(),
        "script_length": len(script),
        "p2sh_hash": hashes["p2sh"].hex(),
        "p2wsh_hash": hashes["p2wsh"].hex(),
        "refund_locktime": reveal.refund_locktime_value,
    }

    if args.json:
        print(json.dumps(info, indent=2))
    else:
        for key, value in info.items():
            print(f"{key}: {value}")
    return EXIT_SUCCESS
