"""
Locking script helpers.

Classification and address rendering for human-readable output, plus the
push-data tokenizer used by the action envelope. Nothing here executes
scripts.
"""

from __future__ import annotations

import hashlib
import struct

import base58
import bech32

from itxcore.constants import (
    OP_1,
    OP_1NEGATE,
    OP_16,
    OP_CHECKSIG,
    OP_DUP,
    OP_EQUAL,
    OP_EQUALVERIFY,
    OP_FALSE,
    OP_HASH160,
    OP_PUSHDATA1,
    OP_PUSHDATA2,
    OP_PUSHDATA4,
    OP_RETURN,
)
from itxcore.models import NetworkType


class ScriptError(Exception):
    """Raised when a script cannot be tokenized."""

    pass


OPCODE_NAMES = {
    OP_FALSE: "OP_FALSE",
    OP_1NEGATE: "OP_1NEGATE",
    OP_RETURN: "OP_RETURN",
    OP_DUP: "OP_DUP",
    OP_EQUAL: "OP_EQUAL",
    OP_EQUALVERIFY: "OP_EQUALVERIFY",
    OP_HASH160: "OP_HASH160",
    OP_CHECKSIG: "OP_CHECKSIG",
}


def hash160(data: bytes) -> bytes:
    """RIPEMD160(SHA256(data))"""
    h = hashlib.new("ripemd160")
    h.update(hashlib.sha256(data).digest())
    return h.digest()


def p2pkh_locking_script(pubkey: bytes) -> bytes:
    # P2PKH: OP_DUP OP_HASH160 <20-byte-pubkeyhash> OP_EQUALVERIFY OP_CHECKSIG
    return (
        bytes([OP_DUP, OP_HASH160, 0x14]) + hash160(pubkey) + bytes([OP_EQUALVERIFY, OP_CHECKSIG])
    )


def is_unspendable(script: bytes) -> bool:
    """True for data carrier scripts (OP_RETURN or OP_FALSE OP_RETURN)."""
    if len(script) > 0 and script[0] == OP_RETURN:
        return True
    return len(script) > 1 and script[0] == OP_FALSE and script[1] == OP_RETURN


def push_data(data: bytes) -> bytes:
    """Minimal push of data onto the stack."""
    n = len(data)
    if n < OP_PUSHDATA1:
        return bytes([n]) + data
    elif n <= 0xFF:
        return bytes([OP_PUSHDATA1, n]) + data
    elif n <= 0xFFFF:
        return bytes([OP_PUSHDATA2]) + struct.pack("<H", n) + data
    else:
        return bytes([OP_PUSHDATA4]) + struct.pack("<I", n) + data


def parse_pushes(script: bytes) -> list[tuple[int, bytes | None]]:
    """
    Tokenize a script into (opcode, data) pairs.

    data is None for non-push opcodes. OP_FALSE is reported as a push of
    empty data.

    Raises:
        ScriptError: If a push runs past the end of the script
    """
    items: list[tuple[int, bytes | None]] = []
    offset = 0
    while offset < len(script):
        opcode = script[offset]
        offset += 1

        if opcode < OP_PUSHDATA1:
            size = opcode
        elif opcode == OP_PUSHDATA1:
            if offset + 1 > len(script):
                raise ScriptError("OP_PUSHDATA1 missing length")
            size = script[offset]
            offset += 1
        elif opcode == OP_PUSHDATA2:
            if offset + 2 > len(script):
                raise ScriptError("OP_PUSHDATA2 missing length")
            size = struct.unpack("<H", script[offset : offset + 2])[0]
            offset += 2
        elif opcode == OP_PUSHDATA4:
            if offset + 4 > len(script):
                raise ScriptError("OP_PUSHDATA4 missing length")
            size = struct.unpack("<I", script[offset : offset + 4])[0]
            offset += 4
        else:
            items.append((opcode, None))
            continue

        if offset + size > len(script):
            raise ScriptError(f"Push of {size} bytes past end of script")
        items.append((opcode, script[offset : offset + size]))
        offset += size

    return items


def script_to_asm(script: bytes) -> str:
    """Short human-readable rendering of a script."""
    try:
        items = parse_pushes(script)
    except ScriptError:
        return f"[invalid] {script.hex()}"

    parts = []
    for opcode, data in items:
        if data is not None:
            parts.append("OP_FALSE" if opcode == OP_FALSE else f"0x{data.hex()}")
        elif OP_1 <= opcode <= OP_16:
            parts.append(f"OP_{opcode - OP_1 + 1}")
        else:
            parts.append(OPCODE_NAMES.get(opcode, f"OP_UNKNOWN{opcode}"))
    return " ".join(parts)


def get_bech32_hrp(network: NetworkType) -> str:
    """Get bech32 human-readable part for network."""
    return {
        NetworkType.MAINNET: "bc",
        NetworkType.TESTNET: "tb",
        NetworkType.SIGNET: "tb",
        NetworkType.REGTEST: "bcrt",
    }[network]


def script_to_address(script: bytes, network: NetworkType = NetworkType.MAINNET) -> str | None:
    """
    Convert a locking script to its address, if it has one.

    Supports P2PKH, P2SH, P2WPKH and P2WSH. Taproot (bech32m) is not rendered.

    Returns:
        Address string, or None for scripts with no address form
    """
    is_mainnet = network == NetworkType.MAINNET

    # P2PKH
    if (
        len(script) == 25
        and script[:3] == bytes([OP_DUP, OP_HASH160, 0x14])
        and script[23:] == bytes([OP_EQUALVERIFY, OP_CHECKSIG])
    ):
        version = 0x00 if is_mainnet else 0x6F
        return base58.b58encode_check(bytes([version]) + script[3:23]).decode("ascii")

    # P2SH
    if len(script) == 23 and script[:2] == bytes([OP_HASH160, 0x14]) and script[22] == OP_EQUAL:
        version = 0x05 if is_mainnet else 0xC4
        return base58.b58encode_check(bytes([version]) + script[2:22]).decode("ascii")

    hrp = get_bech32_hrp(network)

    # P2WPKH / P2WSH
    if script[:1] == bytes([OP_FALSE]) and len(script) in (22, 34) and script[1] == len(script) - 2:
        return bech32.encode(hrp, 0, script[2:])

    return None
