"""
itxcore - Core library for the transaction inspector

Provides the transaction wire codec, script helpers, UTXO models and the
protocol action codec.
"""

__version__ = "1.0.0"

from itxcore.actions import (
    ACTION_TYPES,
    ACTIONS_BY_CODE,
    REQUEST_CODES,
    RESPONSE_CODES,
    Action,
    ActionValidationError,
    RejectionCode,
)
from itxcore.expanded import BuiltTx, ExpandedTx, MissingAncestorError
from itxcore.models import UTXO, NetworkType, UTXOs
from itxcore.protocol import ProtocolError
from itxcore.wire import ByteReader, MsgTx, OutPoint, TxIn, TxOut, WireError

__all__ = [
    "ACTION_TYPES",
    "ACTIONS_BY_CODE",
    "Action",
    "ActionValidationError",
    "BuiltTx",
    "ByteReader",
    "ExpandedTx",
    "MissingAncestorError",
    "MsgTx",
    "NetworkType",
    "OutPoint",
    "ProtocolError",
    "REQUEST_CODES",
    "RESPONSE_CODES",
    "RejectionCode",
    "TxIn",
    "TxOut",
    "UTXO",
    "UTXOs",
    "WireError",
]
