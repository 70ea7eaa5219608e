"""
Test fixtures package for SPV bridge tests.

- chain.py: raw transactions, deposit reveals, Merkle branches and mined
  regtest header chains

Usage:
    from fixtures.chain import make_reveal, make_funding_tx, make_sweep_proof

    def test_something():
        reveal = make_reveal()
        funding_tx = make_funding_tx(reveal, amount=10_000_000)
"""

from .chain import (
    make_input,
    make_output,
    make_tx,
    make_reveal,
    make_funding_tx,
    make_sweep_tx,
    make_sweep_proof,
    mine_chain,
    mine_header,
)

__all__ = [
    "make_input",
    "make_output",
    "make_tx",
    "make_reveal",
    "make_funding_tx",
    "make_sweep_tx",
    "make_sweep_proof",
    "mine_chain",
    "mine_header",
]
