"""
Module 03 - Script Matcher
Rebuilds the deposit locking script and checks it against a funding output.

Owner: Protocol/Crypto Engineer
Module ID: M03

Deposit script (compatibility contract with wallet software, byte-exact):

    <depositor:20>        OP_DROP
    <blinding_factor:8>   OP_DROP
    OP_DUP OP_HASH160 <wallet_pubkey_hash:20> OP_EQUAL
    OP_IF
        OP_CHECKSIG
    OP_ELSE
        OP_DUP OP_HASH160 <refund_pubkey_hash:20> OP_EQUALVERIFY
        <refund_locktime:4> OP_CHECKLOCKTIMEVERIFY OP_DROP
        OP_CHECKSIG
    OP_ENDIF

Supported funding output families:
- P2SH: 20-byte hash, compared with hash160(script)
- P2WSH: 32-byte hash, compared with sha256(script)

Anything else is rejected; the matcher never guesses.
"""
from __future__ import annotations

from typing import TYPE_CHECKING

from core.bitcoin.codec import VALUE_SIZE
from core.bitcoin.cursor import ByteCursor
from core.crypto.hashing import hash160, sha256
from core.schemas.errors import ErrorCodes, MalformedInputException

if TYPE_CHECKING:
    from core.schemas.deposit import RevealParameters


OP_0 = 0x00
OP_DROP = 0x75
OP_DUP = 0x76
OP_EQUAL = 0x87
OP_EQUALVERIFY = 0x88
OP_IF = 0x63
OP_ELSE = 0x67
OP_ENDIF = 0x68
OP_HASH160 = 0xA9
OP_CHECKSIG = 0xAC
OP_CHECKLOCKTIMEVERIFY = 0xB1

PUSH_4 = 0x04
PUSH_8 = 0x08
PUSH_20 = 0x14
PUSH_32 = 0x20


def build_deposit_script(reveal: "RevealParameters") -> bytes:
    """
    Construct the expected deposit locking script from reveal parameters.

    Args:
        reveal: Declared deposit parameters

    Returns:
        92-byte script
    """
    return b"".join([
        bytes([PUSH_20]), reveal.depositor,
        bytes([OP_DROP, PUSH_8]), reveal.blinding_factor,
        bytes([OP_DROP, OP_DUP, OP_HASH160, PUSH_20]), reveal.wallet_pubkey_hash,
        bytes([OP_EQUAL, OP_IF, OP_CHECKSIG, OP_ELSE, OP_DUP, OP_HASH160, PUSH_20]),
        reveal.refund_pubkey_hash,
        bytes([OP_EQUALVERIFY, PUSH_4]), reveal.refund_locktime,
        bytes([OP_CHECKLOCKTIMEVERIFY, OP_DROP, OP_CHECKSIG, OP_ENDIF]),
    ])


# =============================================================================
# Output script templates
# =============================================================================

def p2sh_script(script_hash: bytes) -> bytes:
    return bytes([OP_HASH160, PUSH_20]) + script_hash + bytes([OP_EQUAL])


def p2wsh_script(script_hash: bytes) -> bytes:
    return bytes([OP_0, PUSH_32]) + script_hash


def p2pkh_script(pubkey_hash: bytes) -> bytes:
    return (
        bytes([OP_DUP, OP_HASH160, PUSH_20])
        + pubkey_hash
        + bytes([OP_EQUALVERIFY, OP_CHECKSIG])
    )


def p2wpkh_script(pubkey_hash: bytes) -> bytes:
    return bytes([OP_0, PUSH_20]) + pubkey_hash


def deposit_script_hashes(reveal: "RevealParameters") -> dict[str, bytes]:
    """Expected P2SH and P2WSH commitments for a reveal (tooling helper)."""
    script = build_deposit_script(reveal)
    return {
        "script": script,
        "p2sh": hash160(script),
        "p2wsh": sha256(script),
    }


# =============================================================================
# Hash extraction
# =============================================================================

def extract_hash(output: bytes) -> bytes:
    """
    Return the hash field embedded in an output's locking script.

    Recognized forms:
        P2PKH   76 a9 14 <20> 88 ac   -> 20 bytes
        P2SH    a9 14 <20> 87         -> 20 bytes
        witness v0  00 <n> <n bytes>  -> n bytes (as declared)

    Returns:
        The hash bytes, or b"" when the script is none of these forms
    """
    cursor = ByteCursor(output, VALUE_SIZE)
    script = cursor.read_length_prefixed()

    if len(script) >= 2 and script[0] == OP_0:
        program_len = script[1]
        if program_len != len(script) - 2:
            return b""
        return script[2:]

    if (
        len(script) == 25
        and script[:3] == bytes([OP_DUP, OP_HASH160, PUSH_20])
        and script[23:] == bytes([OP_EQUALVERIFY, OP_CHECKSIG])
    ):
        return script[3:23]

    if (
        len(script) == 23
        and script[:2] == bytes([OP_HASH160, PUSH_20])
        and script[22] == OP_EQUAL
    ):
        return script[2:22]

    return b""


def match_funding_output(reveal: "RevealParameters", output: bytes) -> None:
    """
    Verify that `output` locks funds to the deposit script of `reveal`.

    Raises:
        MalformedInputException: WRONG_SCRIPT_HASH on unsupported hash length
            or on mismatch
    """
    embedded = extract_hash(output)
    script = build_deposit_script(reveal)

    if len(embedded) == 20:
        expected = hash160(script)
        family = "p2sh"
    elif len(embedded) == 32:
        expected = sha256(script)
        family = "p2wsh"
    else:
        raise MalformedInputException(
            f"Unsupported funding output hash length {len(embedded)}",
            code=ErrorCodes.WRONG_SCRIPT_HASH,
            details={"hash_length": len(embedded)},
        )

    if embedded != expected:
        raise MalformedInputException(
            f"Wrong {family} script hash",
            code=ErrorCodes.WRONG_SCRIPT_HASH,
            details={"hash_length": len(embedded), "family": family},
        )


__all__ = [
    "build_deposit_script",
    "p2sh_script",
    "p2wsh_script",
    "p2pkh_script",
    "p2wpkh_script",
    "deposit_script_hashes",
    "extract_hash",
    "match_funding_output",
]
