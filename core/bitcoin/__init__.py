"""
Source-chain binary primitives.

- endian: explicit width/byte-order conversions
- cursor: bounds-checked reads and compact-size integers
- codec: input/output vectors and TransactionView
- script: deposit script construction and funding output matching
- headers: header fields, targets, difficulty and chain validation
"""
from .endian import (
    le_bytes_to_u32,
    le_bytes_to_u64,
    le_bytes_to_int,
    u32_to_le_bytes,
    u64_to_le_bytes,
    be_display,
    from_be_display,
)
from .cursor import ByteCursor, parse_var_int, encode_var_int
from .codec import (
    TransactionView,
    build_vector,
    extract_input_at,
    extract_output_at,
    extract_outpoint,
    extract_value,
    validate_vin,
    validate_vout,
)
from .script import build_deposit_script, extract_hash, match_funding_output
from .headers import (
    HEADER_SIZE,
    NetworkParams,
    MAINNET,
    REGTEST,
    get_network,
    validate_header_chain,
)

__all__ = [
    "le_bytes_to_u32",
    "le_bytes_to_u64",
    "le_bytes_to_int",
    "u32_to_le_bytes",
    "u64_to_le_bytes",
    "be_display",
    "from_be_display",
    "ByteCursor",
    "parse_var_int",
    "encode_var_int",
    "TransactionView",
    "build_vector",
    "extract_input_at",
    "extract_output_at",
    "extract_outpoint",
    "extract_value",
    "validate_vin",
    "validate_vout",
    "build_deposit_script",
    "extract_hash",
    "match_funding_output",
    "HEADER_SIZE",
    "NetworkParams",
    "MAINNET",
    "REGTEST",
    "get_network",
    "validate_header_chain",
]
