"""
Module 11C - SPV Bridge CLI

Command-line interface for inspecting transactions, deriving deposit
scripts and checking SPV proofs.

Usage:
    python -m bridge_cli txid <raw_tx_hex>
    python -m bridge_cli deposit-script --depositor ... --wallet-pkh ...
    python -m bridge_cli fetch-proof <txid> --confirmations 6 --out proof.json
    python -m bridge_cli verify-proof proof.json
"""

__version__ = "0.1.0"
