"""
Width and byte-order conversions.

The source chain serializes every integer and every hash little-endian.
Humans and block explorers display hashes big-endian. Each conversion
below names its width and direction; nothing else in the code base calls
int.from_bytes / int.to_bytes on wire data directly.
"""
from __future__ import annotations


def le_bytes_to_u32(data: bytes) -> int:
    """Decode exactly 4 little-endian bytes."""
    if len(data) != 4:
        raise ValueError(f"u32 requires 4 bytes, got {len(data)}")
    return int.from_bytes(data, "little")


def le_bytes_to_u64(data: bytes) -> int:
    """Decode exactly 8 little-endian bytes (satoshi values)."""
    if len(data) != 8:
        raise ValueError(f"u64 requires 8 bytes, got {len(data)}")
    return int.from_bytes(data, "little")


def le_bytes_to_int(data: bytes) -> int:
    """Decode an arbitrary-width little-endian unsigned integer (hashes, targets)."""
    return int.from_bytes(data, "little")


def u32_to_le_bytes(value: int) -> bytes:
    """Encode an unsigned 32-bit integer as 4 little-endian bytes."""
    if not 0 <= value <= 0xFFFFFFFF:
        raise ValueError(f"Value out of u32 range: {value}")
    return value.to_bytes(4, "little")


def u64_to_le_bytes(value: int) -> bytes:
    """Encode an unsigned 64-bit integer as 8 little-endian bytes."""
    if not 0 <= value <= 0xFFFFFFFFFFFFFFFF:
        raise ValueError(f"Value out of u64 range: {value}")
    return value.to_bytes(8, "little")


def be_display(digest: bytes) -> str:
    """
    Render an internal (little-endian) digest the way explorers show it.

    Example:
        >>> be_display(bytes.fromhex("3ba3ed"))
        'eda33b'
    """
    return digest[::-1].hex()


def from_be_display(hex_string: str) -> bytes:
    """Parse an explorer-style (big-endian) hex id into internal byte order."""
    return bytes.fromhex(hex_string)[::-1]


__all__ = [
    "le_bytes_to_u32",
    "le_bytes_to_u64",
    "le_bytes_to_int",
    "u32_to_le_bytes",
    "u64_to_le_bytes",
    "be_display",
    "from_be_display",
]
