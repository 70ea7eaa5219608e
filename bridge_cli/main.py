"""
Module 11C - CLI Main Entry Point

Parses command-line arguments and dispatches to subcommands.

Usage:
    python -m bridge_cli txid <raw_hex | @file> [--json]
    python -m bridge_cli deposit-script --depositor HEX --blinding-factor HEX \\
        --wallet-pkh HEX --refund-pkh HEX --refund-locktime HEX [--json]
    python -m bridge_cli fetch-proof <txid> [--confirmations N] [--out FILE]
    python -m bridge_cli verify-proof <FILE> [--network NAME] [--json]
    python -m bridge_cli config --init | --show

Environment Variables:
    BRIDGE_NETWORK                  mainnet, testnet or regtest
    BRIDGE_DIFFICULTY_FACTOR        Required work multiple (default: 6)
    BRIDGE_CURRENT_EPOCH_DIFFICULTY Static relay current difficulty
    BRIDGE_PREVIOUS_EPOCH_DIFFICULTY Static relay previous difficulty
    BRIDGE_ESPLORA_URL              Chain indexer base URL
    BRIDGE_LOG_LEVEL                Log level (default: INFO)
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import traceback
from pathlib import Path
from typing import Sequence

from bridge_cli.commands import proof, tx
from bridge_cli.config import DEFAULT_CONFIG_FILENAME, get_default_config_template, load_config


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


def setup_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """Configure logging for the CLI."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers,
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="spv-bridge",
        description="SPV Bridge CLI - Inspect transactions, derive deposit scripts, and check SPV proofs.",
    )
    parser.add_argument(
        "--version", action="version", version="%(prog)s 0.1.0"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=None,
        help="Path to configuration file (default: ./bridge.json, ./bridge.yaml or ~/.config/spv-bridge/config.json)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (overrides config)",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Also write logs to this file",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- txid command ---
    txid_parser = subparsers.add_parser(
        "txid",
        help="Parse a raw transaction and print its id",
        description="Parse a raw (legacy or segwit) transaction and print its txid and outputs.",
    )
    txid_parser.add_argument(
        "raw_tx",
        type=str,
        help="Raw transaction hex, or @path to a file containing it",
    )
    txid_parser.add_argument("--json", action="store_true", default=False, help="JSON output")
    txid_parser.set_defaults(func=tx.txid_cmd)

    # --- deposit-script command ---
    script_parser = subparsers.add_parser(
        "deposit-script",
        help="Derive the deposit locking script",
        description="Build the deposit script and its P2SH / P2WSH hashes from reveal parameters.",
    )
    script_parser.add_argument("--depositor", required=True, help="20-byte depositor identity (hex)")
    script_parser.add_argument("--blinding-factor", required=True, help="8-byte blinding factor (hex)")
    script_parser.add_argument("--wallet-pkh", required=True, help="20-byte wallet public key hash (hex)")
    script_parser.add_argument("--refund-pkh", required=True, help="20-byte refund public key hash (hex)")
    script_parser.add_argument("--refund-locktime", required=True, help="4-byte little-endian locktime (hex)")
    script_parser.add_argument("--json", action="store_true", default=False, help="JSON output")
    script_parser.set_defaults(func=tx.deposit_script_cmd)

    # --- verify-proof command ---
    verify_parser = subparsers.add_parser(
        "verify-proof",
        help="Check a saved SPV proof offline",
        description="Verify Merkle inclusion and accumulated difficulty of a saved proof file.",
    )
    verify_parser.add_argument("proof_file", type=str, help="Proof JSON file (see fetch-proof)")
    verify_parser.add_argument(
        "--network",
        type=str,
        choices=["mainnet", "testnet", "regtest"],
        default=None,
        help="Network difficulty constants (default: from config)",
    )
    verify_parser.add_argument("--difficulty-factor", type=int, default=None, help="Required work multiple")
    verify_parser.add_argument("--current-difficulty", type=int, default=None, help="Relay current epoch difficulty")
    verify_parser.add_argument("--previous-difficulty", type=int, default=None, help="Relay previous epoch difficulty")
    verify_parser.add_argument("--json", action="store_true", default=False, help="JSON output")
    verify_parser.add_argument("--debug", action="store_true", default=False, help="Show tracebacks")
    verify_parser.set_defaults(func=proof.verify_proof_cmd)

    # --- fetch-proof command ---
    fetch_parser = subparsers.add_parser(
        "fetch-proof",
        help="Assemble an SPV proof from an Esplora indexer",
        description="Fetch a transaction, its Merkle branch and confirming headers.",
    )
    fetch_parser.add_argument("txid", type=str, help="Transaction id (display order)")
    fetch_parser.add_argument(
        "--confirmations",
        type=int,
        default=6,
        help="Number of headers to include (default: 6)",
    )
    fetch_parser.add_argument("--esplora-url", type=str, default=None, help="Indexer base URL (overrides config)")
    fetch_parser.add_argument("--out", "-o", type=str, default=None, help="Write proof JSON to this file")
    fetch_parser.add_argument("--debug", action="store_true", default=False, help="Show tracebacks")
    fetch_parser.set_defaults(func=proof.fetch_proof_cmd)

    # --- config command ---
    config_parser = subparsers.add_parser(
        "config",
        help="Manage configuration",
        description="Initialize or display configuration.",
    )
    config_parser.add_argument(
        "--init",
        action="store_true",
        default=False,
        help="Create a template configuration file",
    )
    config_parser.add_argument(
        "--show",
        action="store_true",
        default=False,
        help="Show current configuration",
    )
    config_parser.add_argument(
        "--path",
        type=str,
        default=DEFAULT_CONFIG_FILENAME,
        help=f"Path for config file (default: {DEFAULT_CONFIG_FILENAME})",
    )
    config_parser.set_defaults(func=config_cmd)

    return parser


def config_cmd(args: argparse.Namespace) -> int:
    """Handle config command."""
    if args.init:
        config_path = Path(args.path)
        if config_path.exists():
            print(f"Error: Config file already exists: {config_path}", file=sys.stderr)
            return EXIT_RUNTIME_ERROR

        config_path.write_text(get_default_config_template())
        print(f"Created configuration file: {config_path}")
        print("\nEdit this file to configure your settings.")
        print("You can also use environment variables (BRIDGE_* prefix).")
        return EXIT_SUCCESS

    if args.show:
        print(json.dumps(args.runtime_config.to_dict(), indent=2))
        return EXIT_SUCCESS

    # Default: show help
    print("Usage: spv-bridge config [--init|--show]")
    print("  --init  Create a template configuration file")
    print("  --show  Show current configuration")
    return EXIT_SUCCESS


def main(argv: Sequence[str] | None = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0=success, 1=error, 2=verification failed)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_RUNTIME_ERROR

    # Load configuration
    try:
        config = load_config(args.config)
    except Exception as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    # Setup logging
    log_level = args.log_level or config.log_level
    setup_logging(level=log_level, log_file=args.log_file)

    # Attach config to args for commands to use
    args.runtime_config = config

    try:
        return args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except Exception as e:
        if getattr(args, "debug", False):
            traceback.print_exc()
        else:
            print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR


if __name__ == "__main__":
    sys.exit(main())
