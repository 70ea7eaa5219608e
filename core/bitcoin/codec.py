"""
Module 02 - Byte-Vector Codec
Parsing of compact-size prefixed input/output vectors and transaction ids.

Owner: Protocol/Crypto Engineer
Module ID: M02

This module provides:
- Element length functions for inputs and outputs
- Index-based extraction from input/output vectors
- Structural validation of whole vectors
- TransactionView: an immutable parsed view with its hash256 identity

Wire format (all integers little-endian):
    transaction = version(4) ‖ input_vector ‖ output_vector ‖ locktime(4)
    vector      = compact_size(count) ‖ element * count
    input       = prev_tx_hash(32) ‖ prev_index(4) ‖ script_sig(var) ‖ sequence(4)
    output      = value(8) ‖ script_pubkey(var)

Byte Order Notes:
- tx_hash() is always internal order; txid_display() reverses exactly once
- Outpoint hashes inside inputs are internal order as well
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterator

from core.bitcoin.cursor import ByteCursor, encode_var_int, parse_var_int
from core.bitcoin.endian import be_display, le_bytes_to_u32, le_bytes_to_u64
from core.crypto.hashing import hash256
from core.schemas.errors import ErrorCodes, MalformedInputException


OUTPOINT_SIZE = 36
SEQUENCE_SIZE = 4
VALUE_SIZE = 8


# =============================================================================
# Element lengths
# =============================================================================

def determine_input_length(vector: bytes, offset: int = 0) -> int:
    """
    Length in bytes of the input starting at `offset`.

    outpoint(36) + compact-size script length + script + sequence(4).
    Witness inputs carry an empty script_sig here; their witness data lives
    outside the input vector.
    """
    script_len, width = parse_var_int(vector, offset + OUTPOINT_SIZE)
    length = OUTPOINT_SIZE + width + script_len + SEQUENCE_SIZE
    _require_span(vector, offset, length, "input")
    return length


def determine_output_length(vector: bytes, offset: int = 0) -> int:
    """Length in bytes of the output starting at `offset`: value(8) + var script."""
    script_len, width = parse_var_int(vector, offset + VALUE_SIZE)
    length = VALUE_SIZE + width + script_len
    _require_span(vector, offset, length, "output")
    return length


def _require_span(vector: bytes, offset: int, length: int, kind: str) -> None:
    if offset + length > len(vector):
        raise MalformedInputException(
            f"Declared {kind} length {length} runs past end of vector",
            code=ErrorCodes.MALFORMED_LENGTH,
            details={"offset": offset, "length": length, "vector_length": len(vector)},
        )


# =============================================================================
# Vector walking
# =============================================================================

LengthFn = Callable[[bytes, int], int]


def iter_elements(vector: bytes, length_fn: LengthFn) -> Iterator[bytes]:
    """Yield each element of a compact-size prefixed vector in order."""
    count, offset = parse_var_int(vector, 0)
    for _ in range(count):
        length = length_fn(vector, offset)
        yield vector[offset:offset + length]
        offset += length


def _extract_element_at(vector: bytes, index: int, length_fn: LengthFn, kind: str) -> bytes:
    if index < 0:
        raise MalformedInputException(
            f"Negative {kind} index {index}",
            code=ErrorCodes.INDEX_OUT_OF_RANGE,
            details={"index": index},
        )

    count, offset = parse_var_int(vector, 0)
    if index >= count:
        raise MalformedInputException(
            f"{kind.capitalize()} index {index} out of range for vector of {count}",
            code=ErrorCodes.INDEX_OUT_OF_RANGE,
            details={"index": index, "count": count},
        )

    # Sum element lengths until the requested one
    for _ in range(index):
        offset += length_fn(vector, offset)

    length = length_fn(vector, offset)
    return vector[offset:offset + length]


def extract_input_at(vin: bytes, index: int) -> bytes:
    """Return the raw input at `index` of an input vector."""
    return _extract_element_at(vin, index, determine_input_length, "input")


def extract_output_at(vout: bytes, index: int) -> bytes:
    """Return the raw output at `index` of an output vector."""
    return _extract_element_at(vout, index, determine_output_length, "output")


def iter_inputs(vin: bytes) -> Iterator[bytes]:
    return iter_elements(vin, determine_input_length)


def iter_outputs(vout: bytes) -> Iterator[bytes]:
    return iter_elements(vout, determine_output_length)


def _validate_vector(vector: bytes, length_fn: LengthFn) -> bool:
    try:
        count, offset = parse_var_int(vector, 0)
        if count == 0:
            return False
        for _ in range(count):
            offset += length_fn(vector, offset)
    except MalformedInputException:
        return False
    # Elements must consume the buffer exactly
    return offset == len(vector)


def validate_vin(vin: bytes) -> bool:
    """True when the input vector is non-empty and exactly length-consistent."""
    return _validate_vector(vin, determine_input_length)


def validate_vout(vout: bytes) -> bool:
    """True when the output vector is non-empty and exactly length-consistent."""
    return _validate_vector(vout, determine_output_length)


def count_elements(vector: bytes) -> int:
    count, _ = parse_var_int(vector, 0)
    return count


# =============================================================================
# Element fields
# =============================================================================

def extract_outpoint(tx_input: bytes) -> tuple[bytes, int]:
    """
    Return (previous tx hash in internal order, previous output index).
    """
    cursor = ByteCursor(tx_input)
    prev_hash = cursor.read_fixed(32)
    prev_index = le_bytes_to_u32(cursor.read_fixed(4))
    return prev_hash, prev_index


def extract_value(output: bytes) -> int:
    """Satoshi value of an output, widened from its 8 raw bytes."""
    return le_bytes_to_u64(extract_value_le(output))


def extract_value_le(output: bytes) -> bytes:
    """The raw 8-byte little-endian value field of an output."""
    return ByteCursor(output).read_fixed(VALUE_SIZE)


def extract_script_pubkey(output: bytes) -> bytes:
    cursor = ByteCursor(output, VALUE_SIZE)
    return cursor.read_length_prefixed()


# =============================================================================
# Transaction view
# =============================================================================

@dataclass(frozen=True)
class TransactionView:
    """
    Parsed view over a raw transaction in its legacy (non-witness) form.

    Attributes:
        version: 4 raw bytes
        input_vector: compact-size prefixed inputs
        output_vector: compact-size prefixed outputs
        locktime: 4 raw bytes
    """
    version: bytes
    input_vector: bytes
    output_vector: bytes
    locktime: bytes

    def __post_init__(self) -> None:
        if len(self.version) != 4 or len(self.locktime) != 4:
            raise MalformedInputException(
                "Transaction version and locktime must be 4 bytes each",
                code=ErrorCodes.MALFORMED_TRANSACTION,
                details={"version": len(self.version), "locktime": len(self.locktime)},
            )

    def serialize(self) -> bytes:
        return self.version + self.input_vector + self.output_vector + self.locktime

    def tx_hash(self) -> bytes:
        """hash256 of the concatenated fields, internal (little-endian) order."""
        return hash256(self.serialize())

    def txid_display(self) -> str:
        """Transaction id as shown by explorers (big-endian hex)."""
        return be_display(self.tx_hash())

    def is_well_formed(self) -> bool:
        return validate_vin(self.input_vector) and validate_vout(self.output_vector)

    def require_well_formed(self) -> None:
        """Raise MALFORMED_TRANSACTION unless both vectors validate."""
        if not validate_vin(self.input_vector):
            raise MalformedInputException(
                "Invalid input vector provided",
                code=ErrorCodes.MALFORMED_TRANSACTION,
                details={"vector": "input"},
            )
        if not validate_vout(self.output_vector):
            raise MalformedInputException(
                "Invalid output vector provided",
                code=ErrorCodes.MALFORMED_TRANSACTION,
                details={"vector": "output"},
            )

    @property
    def input_count(self) -> int:
        return count_elements(self.input_vector)

    @property
    def output_count(self) -> int:
        return count_elements(self.output_vector)

    def output_at(self, index: int) -> bytes:
        return extract_output_at(self.output_vector, index)

    def input_at(self, index: int) -> bytes:
        return extract_input_at(self.input_vector, index)

    @classmethod
    def from_hex(cls, raw_hex: str) -> "TransactionView":
        return cls.parse(bytes.fromhex(raw_hex))

    @classmethod
    def parse(cls, raw: bytes) -> "TransactionView":
        """
        Split a full raw transaction into its four fields.

        Segwit serializations (marker 0x00, flag 0x01) are accepted; the
        witness section is skipped so that tx_hash() is the txid, not the
        wtxid.

        Raises:
            MalformedInputException: On truncation or trailing bytes
        """
        cursor = ByteCursor(raw)
        version = cursor.read_fixed(4)

        has_witness = cursor.remaining >= 2 and cursor.peek(2) == b"\x00\x01"
        if has_witness:
            cursor.read_fixed(2)

        vin_start = cursor.offset
        input_count = cursor.read_var_int()
        for _ in range(input_count):
            cursor.read_fixed(determine_input_length(raw, cursor.offset))
        input_vector = raw[vin_start:cursor.offset]

        vout_start = cursor.offset
        output_count = cursor.read_var_int()
        for _ in range(output_count):
            cursor.read_fixed(determine_output_length(raw, cursor.offset))
        output_vector = raw[vout_start:cursor.offset]

        if has_witness:
            for _ in range(input_count):
                for _ in range(cursor.read_var_int()):
                    cursor.read_length_prefixed()

        locktime = cursor.read_fixed(4)
        if not cursor.at_end():
            raise MalformedInputException(
                f"{cursor.remaining} trailing bytes after locktime",
                code=ErrorCodes.MALFORMED_TRANSACTION,
                details={"trailing": cursor.remaining},
            )

        return cls(
            version=version,
            input_vector=input_vector,
            output_vector=output_vector,
            locktime=locktime,
        )


def build_vector(elements: list[bytes]) -> bytes:
    """Prefix already-serialized elements with their compact-size count."""
    return encode_var_int(len(elements)) + b"".join(elements)


__all__ = [
    "determine_input_length",
    "determine_output_length",
    "parse_var_int",
    "extract_input_at",
    "extract_output_at",
    "iter_inputs",
    "iter_outputs",
    "validate_vin",
    "validate_vout",
    "count_elements",
    "extract_outpoint",
    "extract_value",
    "extract_value_le",
    "extract_script_pubkey",
    "TransactionView",
    "build_vector",
]
