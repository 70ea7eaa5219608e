"""
CLI command modules.
"""

from bridge_cli.commands import tx, proof

__all__ = ["tx", "proof"]
