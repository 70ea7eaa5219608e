"""
Module 02 - Byte-Vector Codec Unit Tests
Tests for core/bitcoin/cursor.py and core/bitcoin/codec.py

Tests:
- Compact-size decoding at every width, and truncation
- Input/output length rules and index extraction
- Vector validation (empty, short, trailing bytes)
- Transaction id of the genesis coinbase (pinned)
- Segwit serializations hash to the legacy txid
"""
import pytest

from core.bitcoin.codec import (
    TransactionView,
    build_vector,
    determine_input_length,
    determine_output_length,
    extract_input_at,
    extract_outpoint,
    extract_output_at,
    extract_script_pubkey,
    extract_value,
    iter_outputs,
    validate_vin,
    validate_vout,
)
from core.bitcoin.cursor import ByteCursor, encode_var_int, parse_var_int
from core.schemas.errors import ErrorCodes, MalformedInputException

from fixtures.chain import (
    GENESIS_COINBASE_HEX,
    GENESIS_COINBASE_TXID,
    make_input,
    make_output,
    make_segwit_raw,
    make_tx,
    make_txid_bytes,
)


class TestCompactSize:
    """Tests for parse_var_int / encode_var_int."""

    @pytest.mark.parametrize("encoded,value,width", [
        ("00", 0, 1),
        ("fc", 252, 1),
        ("fd0001", 256, 3),
        ("fdfd00", 253, 3),
        ("fe00000100", 65536, 5),
        ("ff0000000001000000", 2**32, 9),
    ])
    def test_widths(self, encoded, value, width):
        assert parse_var_int(bytes.fromhex(encoded)) == (value, width)

    def test_offset(self):
        assert parse_var_int(b"\xaa\xfd\x01\x02", 1) == (0x0201, 3)

    @pytest.mark.parametrize("encoded", ["", "fd", "fd00", "fe000000", "ff00000000000000"])
    def test_truncated_prefix_raises(self, encoded):
        with pytest.raises(MalformedInputException) as exc_info:
            parse_var_int(bytes.fromhex(encoded))
        assert exc_info.value.code == ErrorCodes.MALFORMED_LENGTH

    @pytest.mark.parametrize("value", [0, 252, 253, 0xFFFF, 0x10000, 2**32])
    def test_encode_then_parse(self, value):
        encoded = encode_var_int(value)
        assert parse_var_int(encoded) == (value, len(encoded))

    def test_encode_uses_minimal_width(self):
        assert encode_var_int(252) == b"\xfc"
        assert encode_var_int(253) == b"\xfd\xfd\x00"


class TestByteCursor:

    def test_reads_advance(self):
        cursor = ByteCursor(b"\x01\x02\x03\x02\xaa\xbb")
        assert cursor.read_fixed(3) == b"\x01\x02\x03"
        assert cursor.read_length_prefixed() == b"\xaa\xbb"
        assert cursor.at_end()

    def test_overread_raises_without_advancing(self):
        cursor = ByteCursor(b"\x01\x02")
        with pytest.raises(MalformedInputException) as exc_info:
            cursor.read_fixed(3)
        assert exc_info.value.code == ErrorCodes.MALFORMED_LENGTH
        assert cursor.offset == 0


class TestElementLengths:

    def test_input_length(self):
        tx_input = make_input(make_txid_bytes(1), 0, script_sig=b"\x51" * 10)
        assert determine_input_length(tx_input) == 36 + 1 + 10 + 4

    def test_output_length(self):
        output = make_output(1000, b"\x00\x14" + b"\x11" * 20)
        assert determine_output_length(output) == 8 + 1 + 22

    def test_long_script_uses_three_byte_prefix(self):
        output = make_output(1, b"\x6a" * 300)
        assert determine_output_length(output) == 8 + 3 + 300

    def test_declared_length_past_end_raises(self):
        output = make_output(1000, b"\x51" * 5)[:-1]
        with pytest.raises(MalformedInputException) as exc_info:
            determine_output_length(output)
        assert exc_info.value.code == ErrorCodes.MALFORMED_LENGTH


class TestExtraction:

    @pytest.fixture
    def tx(self):
        return make_tx(
            [make_input(make_txid_bytes(i), i) for i in range(3)],
            [make_output(1000 * (i + 1), b"\x51" * (i + 1)) for i in range(3)],
        )

    def test_extract_each_output(self, tx):
        for index in range(3):
            output = extract_output_at(tx.output_vector, index)
            assert extract_value(output) == 1000 * (index + 1)
            assert extract_script_pubkey(output) == b"\x51" * (index + 1)

    def test_extract_each_input(self, tx):
        for index in range(3):
            prev_hash, prev_index = extract_outpoint(extract_input_at(tx.input_vector, index))
            assert prev_hash == make_txid_bytes(index)
            assert prev_index == index

    def test_index_equal_to_count_is_out_of_range(self, tx):
        with pytest.raises(MalformedInputException) as exc_info:
            extract_output_at(tx.output_vector, 3)
        assert exc_info.value.code == ErrorCodes.INDEX_OUT_OF_RANGE

    def test_iter_outputs(self, tx):
        assert [extract_value(o) for o in iter_outputs(tx.output_vector)] == [1000, 2000, 3000]


class TestVectorValidation:

    def test_valid_vectors(self):
        vin = build_vector([make_input(make_txid_bytes(1))])
        vout = build_vector([make_output(1, b"\x51")])
        assert validate_vin(vin)
        assert validate_vout(vout)

    def test_zero_count_is_invalid(self):
        assert not validate_vin(b"\x00")
        assert not validate_vout(b"\x00")

    def test_empty_buffer_is_invalid(self):
        assert not validate_vin(b"")
        assert not validate_vout(b"")

    def test_trailing_bytes_are_invalid(self):
        vout = build_vector([make_output(1, b"\x51")]) + b"\x00"
        assert not validate_vout(vout)

    def test_count_larger_than_elements_is_invalid(self):
        vin = b"\x02" + make_input(make_txid_bytes(1))
        assert not validate_vin(vin)

    def test_truncated_script_is_invalid(self):
        vout = build_vector([make_output(1, b"\x51" * 4)])[:-1]
        assert not validate_vout(vout)


class TestTransactionView:

    def test_genesis_coinbase_txid(self):
        """Pinned: display txid of the first coinbase ever."""
        tx = TransactionView.from_hex(GENESIS_COINBASE_HEX)
        assert tx.txid_display() == GENESIS_COINBASE_TXID
        assert tx.tx_hash()[::-1].hex() == GENESIS_COINBASE_TXID
        assert tx.is_well_formed()
        assert tx.input_count == 1
        assert tx.output_count == 1
        assert extract_value(tx.output_at(0)) == 5_000_000_000

    def test_serialize_is_field_concatenation(self):
        tx = TransactionView.from_hex(GENESIS_COINBASE_HEX)
        assert tx.serialize().hex() == GENESIS_COINBASE_HEX

    def test_segwit_serialization_hashes_to_legacy_txid(self):
        tx = make_tx(
            [make_input(make_txid_bytes(7), 1), make_input(make_txid_bytes(8), 0)],
            [make_output(5000, b"\x00\x14" + b"\x22" * 20)],
        )
        parsed = TransactionView.parse(make_segwit_raw(tx))
        assert parsed == tx
        assert parsed.tx_hash() == tx.tx_hash()

    def test_trailing_bytes_rejected(self):
        raw = bytes.fromhex(GENESIS_COINBASE_HEX) + b"\x00"
        with pytest.raises(MalformedInputException) as exc_info:
            TransactionView.parse(raw)
        assert exc_info.value.code == ErrorCodes.MALFORMED_TRANSACTION

    def test_truncated_raw_rejected(self):
        raw = bytes.fromhex(GENESIS_COINBASE_HEX)[:-10]
        with pytest.raises(MalformedInputException):
            TransactionView.parse(raw)

    def test_wrong_version_width_rejected(self):
        with pytest.raises(MalformedInputException) as exc_info:
            TransactionView(version=b"\x01", input_vector=b"", output_vector=b"", locktime=b"\x00" * 4)
        assert exc_info.value.code == ErrorCodes.MALFORMED_TRANSACTION

    def test_require_well_formed_names_the_bad_vector(self):
        good = make_tx([make_input(make_txid_bytes(1))], [make_output(1, b"\x51")])
        bad_vin = TransactionView(good.version, b"\x00", good.output_vector, good.locktime)
        bad_vout = TransactionView(good.version, good.input_vector, b"\x00", good.locktime)

        with pytest.raises(MalformedInputException) as exc_info:
            bad_vin.require_well_formed()
        assert exc_info.value.details == {"vector": "input"}

        with pytest.raises(MalformedInputException) as exc_info:
            bad_vout.require_well_formed()
        assert exc_info.value.details == {"vector": "output"}
