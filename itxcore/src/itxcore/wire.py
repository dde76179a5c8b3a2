"""
Bitcoin transaction wire format.

Encodes and decodes raw (non-witness) transactions and computes their txid.
Txids are carried as display hex, byte-reversed the way node RPC shows them,
and reversed again when written to the wire.
"""

from __future__ import annotations

import copy
import hashlib
import struct
from dataclasses import dataclass, field

from itxcore.constants import COINBASE_INDEX, MAX_MESSAGE_ITEMS, SEQUENCE_FINAL


class WireError(Exception):
    """Raised when raw transaction bytes are malformed or truncated."""

    pass


def varint(n: int) -> bytes:
    """Encode integer as Bitcoin varint."""
    if n < 0:
        raise ValueError(f"varint cannot encode negative value {n}")
    if n < 0xFD:
        return bytes([n])
    elif n <= 0xFFFF:
        return bytes([0xFD]) + struct.pack("<H", n)
    elif n <= 0xFFFFFFFF:
        return bytes([0xFE]) + struct.pack("<I", n)
    else:
        return bytes([0xFF]) + struct.pack("<Q", n)


def varbytes(data: bytes) -> bytes:
    """Length-prefixed bytes."""
    return varint(len(data)) + data


def txid_to_bytes(txid: str) -> bytes:
    """Display hex txid to 32 wire bytes."""
    try:
        raw = bytes.fromhex(txid)
    except ValueError as e:
        raise WireError(f"Invalid txid hex: {txid!r}") from e
    if len(raw) != 32:
        raise WireError(f"Invalid txid length: {len(raw)} bytes")
    return raw[::-1]


def bytes_to_txid(data: bytes) -> str:
    """32 wire bytes to display hex txid."""
    return data[::-1].hex()


def double_sha256(data: bytes) -> bytes:
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()


class ByteReader:
    """
    Sequential reader over a byte buffer.

    All reads raise WireError instead of returning short data, so callers can
    treat any truncation as malformed input.
    """

    def __init__(self, buf: bytes):
        self._buf = bytes(buf)
        self._off = 0

    @property
    def offset(self) -> int:
        return self._off

    @property
    def remaining(self) -> int:
        return len(self._buf) - self._off

    @property
    def eof(self) -> bool:
        return self._off >= len(self._buf)

    def read(self, n: int) -> bytes:
        if n < 0 or self._off + n > len(self._buf):
            raise WireError(
                f"Unexpected end of data: need {n} bytes at offset {self._off}, "
                f"have {self.remaining}"
            )
        data = self._buf[self._off : self._off + n]
        self._off += n
        return data

    def u8(self) -> int:
        return self.read(1)[0]

    def u32le(self) -> int:
        return struct.unpack("<I", self.read(4))[0]

    def u64le(self) -> int:
        return struct.unpack("<Q", self.read(8))[0]

    def varint(self) -> int:
        first = self.u8()
        if first < 0xFD:
            return first
        elif first == 0xFD:
            return struct.unpack("<H", self.read(2))[0]
        elif first == 0xFE:
            return struct.unpack("<I", self.read(4))[0]
        else:
            return struct.unpack("<Q", self.read(8))[0]

    def varbytes(self) -> bytes:
        return self.read(self.varint())

    def count(self, min_item_size: int) -> int:
        """Read a varint item count, rejecting counts the remaining data can't hold."""
        n = self.varint()
        if n > MAX_MESSAGE_ITEMS or n * min_item_size > self.remaining:
            raise WireError(f"Item count {n} exceeds remaining data ({self.remaining} bytes)")
        return n


@dataclass(frozen=True)
class OutPoint:
    """Reference to a previous transaction output (txid:index)."""

    txid: str
    index: int

    def is_coinbase(self) -> bool:
        return self.index == COINBASE_INDEX

    def serialize(self) -> bytes:
        return txid_to_bytes(self.txid) + struct.pack("<I", self.index)

    @classmethod
    def read(cls, reader: ByteReader) -> OutPoint:
        txid = bytes_to_txid(reader.read(32))
        return cls(txid=txid, index=reader.u32le())

    def __str__(self) -> str:
        return f"{self.txid}:{self.index}"


@dataclass
class TxIn:
    """Transaction input."""

    previous_outpoint: OutPoint
    unlocking_script: bytes = b""
    sequence: int = SEQUENCE_FINAL

    def serialize(self) -> bytes:
        return (
            self.previous_outpoint.serialize()
            + varbytes(self.unlocking_script)
            + struct.pack("<I", self.sequence)
        )

    @classmethod
    def read(cls, reader: ByteReader) -> TxIn:
        outpoint = OutPoint.read(reader)
        script = reader.varbytes()
        return cls(previous_outpoint=outpoint, unlocking_script=script, sequence=reader.u32le())


@dataclass
class TxOut:
    """Transaction output."""

    value: int
    locking_script: bytes = b""

    def serialize(self) -> bytes:
        return struct.pack("<Q", self.value) + varbytes(self.locking_script)

    @classmethod
    def read(cls, reader: ByteReader) -> TxOut:
        value = reader.u64le()
        return cls(value=value, locking_script=reader.varbytes())


@dataclass
class MsgTx:
    """A raw Bitcoin transaction."""

    version: int = 1
    tx_in: list[TxIn] = field(default_factory=list)
    tx_out: list[TxOut] = field(default_factory=list)
    lock_time: int = 0

    def serialize(self) -> bytes:
        """Serialize transaction to bytes."""
        # Version (4 bytes, little-endian)
        result = struct.pack("<I", self.version)

        result += varint(len(self.tx_in))
        for inp in self.tx_in:
            result += inp.serialize()

        result += varint(len(self.tx_out))
        for out in self.tx_out:
            result += out.serialize()

        result += struct.pack("<I", self.lock_time)
        return result

    def write(self, buf: bytearray) -> None:
        buf.extend(self.serialize())

    def serialize_size(self) -> int:
        return len(self.serialize())

    def tx_hash(self) -> str:
        """Calculate txid (double SHA256 of the serialized tx)."""
        return bytes_to_txid(double_sha256(self.serialize()))

    def copy(self) -> MsgTx:
        return copy.deepcopy(self)

    @classmethod
    def read(cls, reader: ByteReader) -> MsgTx:
        """Read a transaction, leaving the reader positioned just past it."""
        version = reader.u32le()

        # 32-byte outpoint hash + 4 index + 1 script length + 4 sequence
        tx_in = [TxIn.read(reader) for _ in range(reader.count(41))]

        # 8-byte value + 1 script length
        tx_out = [TxOut.read(reader) for _ in range(reader.count(9))]

        lock_time = reader.u32le()
        return cls(version=version, tx_in=tx_in, tx_out=tx_out, lock_time=lock_time)

    @classmethod
    def from_bytes(cls, data: bytes) -> MsgTx:
        reader = ByteReader(data)
        tx = cls.read(reader)
        if not reader.eof:
            raise WireError(f"{reader.remaining} trailing bytes after transaction")
        return tx

    @classmethod
    def from_hex(cls, tx_hex: str) -> MsgTx:
        try:
            data = bytes.fromhex(tx_hex)
        except ValueError as e:
            raise WireError(f"Invalid transaction hex: {e}") from e
        return cls.from_bytes(data)

    def to_hex(self) -> str:
        return self.serialize().hex()
