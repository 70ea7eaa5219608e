"""
Bounds-checked reading over untrusted byte buffers.

Every read states its width up front and fails with MALFORMED_LENGTH when
the buffer cannot satisfy it, so callers never slice past the end and
silently get a short result.
"""
from __future__ import annotations

from core.bitcoin.endian import le_bytes_to_int
from core.schemas.errors import ErrorCodes, MalformedInputException


# Compact-size prefix byte -> width of the integer that follows it
_VAR_INT_WIDTHS = {0xFD: 2, 0xFE: 4, 0xFF: 8}


def parse_var_int(buffer: bytes, offset: int = 0) -> tuple[int, int]:
    """
    Decode a compact-size unsigned integer.

    Args:
        buffer: Bytes containing the encoding
        offset: Position of the prefix byte

    Returns:
        (value, width) where width counts the prefix byte too (1, 3, 5 or 9)

    Raises:
        MalformedInputException: If the buffer ends before the declared width
    """
    if offset < 0 or offset >= len(buffer):
        raise MalformedInputException(
            "Buffer too short for compact-size prefix",
            code=ErrorCodes.MALFORMED_LENGTH,
            details={"offset": offset, "buffer_length": len(buffer)},
        )

    prefix = buffer[offset]
    data_width = _VAR_INT_WIDTHS.get(prefix)
    if data_width is None:
        return prefix, 1

    end = offset + 1 + data_width
    if end > len(buffer):
        raise MalformedInputException(
            f"Compact-size prefix 0x{prefix:02x} needs {data_width} more bytes",
            code=ErrorCodes.MALFORMED_LENGTH,
            details={"offset": offset, "buffer_length": len(buffer)},
        )
    return le_bytes_to_int(buffer[offset + 1:end]), 1 + data_width


def encode_var_int(value: int) -> bytes:
    """Encode a compact-size unsigned integer using the minimal width."""
    if value < 0:
        raise ValueError(f"Compact-size value must be non-negative, got {value}")
    if value < 0xFD:
        return bytes([value])
    if value <= 0xFFFF:
        return b"\xfd" + value.to_bytes(2, "little")
    if value <= 0xFFFFFFFF:
        return b"\xfe" + value.to_bytes(4, "little")
    return b"\xff" + value.to_bytes(8, "little")


class ByteCursor:
    """
    Forward-only reader over a byte string.

    Usage:
        cursor = ByteCursor(raw)
        version = cursor.read_fixed(4)
        script = cursor.read_length_prefixed()
    """

    def __init__(self, data: bytes, offset: int = 0) -> None:
        self.data = data
        self.offset = offset

    @property
    def remaining(self) -> int:
        return len(self.data) - self.offset

    def at_end(self) -> bool:
        return self.offset == len(self.data)

    def peek(self, width: int) -> bytes:
        self._require(width)
        return self.data[self.offset:self.offset + width]

    def read_fixed(self, width: int) -> bytes:
        """Read exactly `width` bytes."""
        chunk = self.peek(width)
        self.offset += width
        return chunk

    def read_var_int(self) -> int:
        value, width = parse_var_int(self.data, self.offset)
        self.offset += width
        return value

    def read_length_prefixed(self) -> bytes:
        """Read a compact-size length followed by that many bytes."""
        length = self.read_var_int()
        return self.read_fixed(length)

    def _require(self, width: int) -> None:
        if width < 0 or width > self.remaining:
            raise MalformedInputException(
                f"Need {width} bytes at offset {self.offset}, {self.remaining} left",
                code=ErrorCodes.MALFORMED_LENGTH,
                details={"offset": self.offset, "requested": width},
            )


__all__ = [
    "parse_var_int",
    "encode_var_int",
    "ByteCursor",
]
