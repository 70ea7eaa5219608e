"""
Module 05 - Header Chain Evaluation
Proof-of-work checks over a flat concatenation of block headers.

Owner: Protocol/Crypto Engineer
Module ID: M05

Header layout (80 bytes, little-endian):
    version(4) ‖ prev_block_hash(32) ‖ merkle_root(32) ‖ time(4) ‖ bits(4) ‖ nonce(4)

Rules:
1. Buffer must be a non-empty multiple of 80 bytes
2. Each header's prev_block_hash equals hash256 of the header before it
3. Each header's hash, read as a little-endian integer, is <= its own target
4. Accumulated difficulty is the sum of per-header difficulties, where
   difficulty = diff1_target // target for the network in use
"""
from __future__ import annotations

from dataclasses import dataclass

from core.bitcoin.endian import le_bytes_to_int, le_bytes_to_u32
from core.crypto.hashing import hash256
from core.schemas.errors import ErrorCodes, MalformedInputException, ProofInvalidException


HEADER_SIZE = 80


@dataclass(frozen=True)
class NetworkParams:
    """Proof-of-work constants of one source-chain network."""
    name: str
    diff1_target: int


MAINNET = NetworkParams(name="mainnet", diff1_target=0xFFFF * 256 ** (0x1D - 3))
TESTNET = NetworkParams(name="testnet", diff1_target=0xFFFF * 256 ** (0x1D - 3))
REGTEST = NetworkParams(name="regtest", diff1_target=0x7FFFFF * 256 ** (0x20 - 3))

NETWORKS: dict[str, NetworkParams] = {
    params.name: params for params in (MAINNET, TESTNET, REGTEST)
}


def get_network(name: str) -> NetworkParams:
    try:
        return NETWORKS[name.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown network {name!r}, expected one of {sorted(NETWORKS)}"
        ) from None


# =============================================================================
# Field extraction
# =============================================================================

def _require_header(header: bytes) -> None:
    if len(header) != HEADER_SIZE:
        raise MalformedInputException(
            f"Header must be {HEADER_SIZE} bytes, got {len(header)}",
            code=ErrorCodes.MALFORMED_HEADER,
            details={"length": len(header)},
        )


def extract_prev_block_hash(header: bytes) -> bytes:
    _require_header(header)
    return header[4:36]


def extract_merkle_root(header: bytes) -> bytes:
    """Merkle root in internal (little-endian) order."""
    _require_header(header)
    return header[36:68]


def extract_bits(header: bytes) -> int:
    _require_header(header)
    return le_bytes_to_u32(header[72:76])


def bits_to_target(bits: int) -> int:
    """Expand compact nBits into the full 256-bit target."""
    exponent = bits >> 24
    mantissa = bits & 0x007FFFFF
    if exponent <= 3:
        return mantissa >> (8 * (3 - exponent))
    return mantissa * 256 ** (exponent - 3)


def extract_target(header: bytes) -> int:
    return bits_to_target(extract_bits(header))


def calculate_difficulty(target: int, params: NetworkParams = MAINNET) -> int:
    """Integer difficulty of a target relative to the network's difficulty-1 target."""
    if target <= 0:
        return 0
    return params.diff1_target // target


def header_hash(header: bytes) -> bytes:
    """Block hash in internal order."""
    _require_header(header)
    return hash256(header)


def header_work_is_valid(header: bytes) -> bool:
    """True when the header's hash satisfies its own declared target."""
    target = extract_target(header)
    return target > 0 and le_bytes_to_int(header_hash(header)) <= target


def split_headers(headers: bytes) -> list[bytes]:
    """
    Split a flat header buffer into 80-byte headers.

    Raises:
        ProofInvalidException: INVALID_CHAIN_LENGTH if empty or misaligned
    """
    if len(headers) == 0 or len(headers) % HEADER_SIZE != 0:
        raise ProofInvalidException(
            "Invalid length of the headers array",
            code=ErrorCodes.INVALID_CHAIN_LENGTH,
            details={"length": len(headers)},
        )
    return [
        headers[i:i + HEADER_SIZE] for i in range(0, len(headers), HEADER_SIZE)
    ]


# =============================================================================
# Chain validation
# =============================================================================

def validate_header_chain(headers: bytes, params: NetworkParams = MAINNET) -> int:
    """
    Validate linkage and proof-of-work of a header chain, lowest height first.

    Args:
        headers: Concatenated 80-byte headers
        params: Network constants used for difficulty

    Returns:
        Accumulated difficulty of the chain

    Raises:
        ProofInvalidException: INVALID_CHAIN_LENGTH, INVALID_HEADER_CHAIN
            or INSUFFICIENT_WORK
    """
    total_difficulty = 0
    previous_digest: bytes | None = None

    for height_offset, header in enumerate(split_headers(headers)):
        if previous_digest is not None and extract_prev_block_hash(header) != previous_digest:
            raise ProofInvalidException(
                "Invalid headers chain",
                code=ErrorCodes.INVALID_HEADER_CHAIN,
                details={"header_index": height_offset},
            )

        if not header_work_is_valid(header):
            raise ProofInvalidException(
                "Insufficient work in a header",
                code=ErrorCodes.INSUFFICIENT_WORK,
                details={"header_index": height_offset},
            )

        total_difficulty += calculate_difficulty(extract_target(header), params)
        previous_digest = header_hash(header)

    return total_difficulty


__all__ = [
    "HEADER_SIZE",
    "NetworkParams",
    "MAINNET",
    "TESTNET",
    "REGTEST",
    "NETWORKS",
    "get_network",
    "extract_prev_block_hash",
    "extract_merkle_root",
    "extract_bits",
    "bits_to_target",
    "extract_target",
    "calculate_difficulty",
    "header_hash",
    "header_work_is_valid",
    "split_headers",
    "validate_header_chain",
]
