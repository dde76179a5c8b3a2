"""
Core data models shared by the inspector components.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import Enum

from itxcore.wire import ByteReader, OutPoint, bytes_to_txid, txid_to_bytes, varbytes


class NetworkType(str, Enum):
    MAINNET = "mainnet"
    TESTNET = "testnet"
    SIGNET = "signet"
    REGTEST = "regtest"

    @property
    def is_test(self) -> bool:
        return self != NetworkType.MAINNET


@dataclass
class UTXO:
    """An output available to be spent, keyed by its outpoint."""

    txid: str
    index: int
    value: int
    locking_script: bytes = b""

    def outpoint(self) -> OutPoint:
        return OutPoint(txid=self.txid, index=self.index)

    def serialize(self) -> bytes:
        """Record layout: 32-byte txid, u32le index, u64le value, varbytes script."""
        return (
            txid_to_bytes(self.txid)
            + struct.pack("<I", self.index)
            + struct.pack("<Q", self.value)
            + varbytes(self.locking_script)
        )

    def write(self, buf: bytearray) -> None:
        buf.extend(self.serialize())

    @classmethod
    def read(cls, reader: ByteReader) -> UTXO:
        txid = bytes_to_txid(reader.read(32))
        index = reader.u32le()
        value = reader.u64le()
        return cls(txid=txid, index=index, value=value, locking_script=reader.varbytes())


class UTXOs(list[UTXO]):
    """A list of UTXOs with aggregate helpers."""

    def value(self) -> int:
        """Total value of the set of UTXOs."""
        return sum(utxo.value for utxo in self)

    def for_locking_script(self, locking_script: bytes) -> UTXOs:
        """UTXOs that pay to the given locking script."""
        return UTXOs(utxo for utxo in self if utxo.locking_script == locking_script)
