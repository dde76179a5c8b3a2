"""
Persisted binary form of inspected transactions.

Layout:
- version byte (0-3)
- raw transaction
- input count, u32le (versions >= 2 only; otherwise the raw input count)
- one record per input, layout depends on the version:
    0: full previous transaction (read and discarded)
    1, 2: UTXO record (txid, index, value, locking script)
    3: u64le value, varint length, locking script
- rejection code byte

Writers always emit version 3. Outputs are not persisted: actions of inputs
and outputs are detected again on decode.
"""

from __future__ import annotations

import os
import struct
from collections.abc import Callable
from enum import IntEnum

from itxcore.models import UTXO
from itxcore.wire import ByteReader, MsgTx, WireError, varbytes
from loguru import logger

from inspector.errors import DecodeError, UnknownVersionError
from inspector.models import Input, Rejection
from inspector.resolve import detect_input_actions, parse_outputs
from inspector.transaction import InspectedTransaction


class FormatVersion(IntEnum):
    V0 = 0  # embedded previous transactions
    V1 = 1  # UTXO records, implicit count
    V2 = 2  # UTXO records, explicit count
    V3 = 3  # value and locking script


CURRENT_VERSION = FormatVersion.V3

# Minimum bytes of one input record, per version, to bound the count field
_MIN_INPUT_SIZE = {
    FormatVersion.V0: 10,
    FormatVersion.V1: 45,
    FormatVersion.V2: 45,
    FormatVersion.V3: 9,
}


def _read_input_v0(reader: ByteReader) -> Input:
    # The previous transaction was stored whole; nothing of it is kept
    MsgTx.read(reader)
    return Input()


def _read_input_utxo(reader: ByteReader) -> Input:
    utxo = UTXO.read(reader)
    return Input(value=utxo.value, locking_script=utxo.locking_script)


def _read_input_v3(reader: ByteReader) -> Input:
    value = reader.u64le()
    return Input(value=value, locking_script=reader.varbytes())


_INPUT_READERS: dict[FormatVersion, Callable[[ByteReader], Input]] = {
    FormatVersion.V0: _read_input_v0,
    FormatVersion.V1: _read_input_utxo,
    FormatVersion.V2: _read_input_utxo,
    FormatVersion.V3: _read_input_v3,
}


def _write_input(buf: bytearray, inp: Input) -> None:
    buf.extend(struct.pack("<Q", inp.value))
    buf.extend(varbytes(inp.locking_script))


def encode(itx: InspectedTransaction) -> bytes:
    """Serialize a record in the current format version."""
    with itx._lock.read():
        buf = bytearray([CURRENT_VERSION])
        itx.msg_tx.write(buf)
        buf.extend(struct.pack("<I", len(itx.inputs)))
        for inp in itx.inputs:
            _write_input(buf, inp)
        buf.append(itx.reject_code & 0xFF)
    return bytes(buf)


def encode_legacy(itx: InspectedTransaction, version: int) -> bytes:
    """
    Serialize a record in format version 1 or 2.

    Only for exercising migration from old records. The original outpoints
    of the spent outputs were never stored, so each UTXO record gets a
    random txid and index 1.
    """
    if version not in (FormatVersion.V1, FormatVersion.V2):
        raise ValueError(f"Legacy encoding supports versions 1 and 2, not {version}")

    with itx._lock.read():
        buf = bytearray([version])
        itx.msg_tx.write(buf)
        if version >= FormatVersion.V2:
            buf.extend(struct.pack("<I", len(itx.inputs)))
        for inp in itx.inputs:
            utxo = UTXO(
                txid=os.urandom(32).hex(),
                index=1,
                value=inp.value,
                locking_script=inp.locking_script,
            )
            utxo.write(buf)
        buf.append(itx.reject_code & 0xFF)
    return bytes(buf)


def decode(data: bytes, is_test: bool) -> InspectedTransaction:
    """
    Restore a record from any supported format version.

    Args:
        data: Persisted bytes
        is_test: Whether actions use the test network protocol id

    Returns:
        The restored record, with actions detected again

    Raises:
        UnknownVersionError: If the version byte is not 0-3
        DecodeError: If the bytes are truncated or malformed
    """
    reader = ByteReader(data)
    try:
        raw_version = reader.u8()
        try:
            version = FormatVersion(raw_version)
        except ValueError:
            raise UnknownVersionError(raw_version) from None

        msg_tx = MsgTx.read(reader)

        if version >= FormatVersion.V2:
            count = reader.u32le()
            if count * _MIN_INPUT_SIZE[version] > reader.remaining:
                raise DecodeError(f"Input count {count} exceeds remaining data")
        else:
            count = len(msg_tx.tx_in)

        read_input = _INPUT_READERS[version]
        inputs = []
        for i in range(count):
            try:
                inputs.append(read_input(reader))
            except WireError as e:
                raise DecodeError(f"Input {i}: {e}") from e

        reject_code = reader.u8()
    except WireError as e:
        raise DecodeError(f"Malformed record: {e}") from e

    if not reader.eof:
        logger.debug(f"Ignoring {reader.remaining} trailing bytes after record")

    detect_input_actions(inputs, is_test)
    outputs = parse_outputs(msg_tx, is_test)
    rejection = Rejection(code=reject_code) if reject_code else None

    itx = InspectedTransaction(
        txid=msg_tx.tx_hash(),
        msg_tx=msg_tx,
        inputs=inputs,
        outputs=outputs,
        rejection=rejection,
        promoted=len(inputs) == len(msg_tx.tx_in),
    )
    logger.debug(f"Decoded {itx.txid} from version {version} record ({len(inputs)} inputs)")
    return itx
