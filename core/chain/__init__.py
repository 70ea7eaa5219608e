"""
Source-chain readers.
"""

from .esplora import ChainClientError, EsploraClient, TxMerkleProof

__all__ = [
    "ChainClientError",
    "EsploraClient",
    "TxMerkleProof",
]
