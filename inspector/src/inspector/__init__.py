"""
inspector - Inspected transactions

Resolves the outputs spent by a transaction's inputs, detects protocol
actions in locking scripts, answers fee and classification queries and
persists the result in a versioned binary form.
"""

__version__ = "1.0.0"

from inspector.codec import FormatVersion, decode, encode, encode_legacy
from inspector.construct import (
    new_base_transaction,
    new_promoted_transaction,
    new_transaction,
    new_transaction_from_builder,
    new_transaction_from_expanded,
    new_transaction_from_hash,
    new_transaction_from_outputs,
    new_transaction_from_wire,
)
from inspector.errors import (
    AlreadyPromotedError,
    DecodeError,
    IncompleteTxError,
    InspectorError,
    MismatchedUTXOError,
    MissingInputsError,
    MissingOutputsError,
    NegativeFeeError,
    UnknownVersionError,
    UnpromotedTxError,
)
from inspector.models import Input, Output, Rejection
from inspector.sort import sort_by_timestamp
from inspector.transaction import InspectedTransaction

__all__ = [
    "AlreadyPromotedError",
    "DecodeError",
    "FormatVersion",
    "IncompleteTxError",
    "Input",
    "InspectedTransaction",
    "InspectorError",
    "MismatchedUTXOError",
    "MissingInputsError",
    "MissingOutputsError",
    "NegativeFeeError",
    "Output",
    "Rejection",
    "UnknownVersionError",
    "UnpromotedTxError",
    "decode",
    "encode",
    "encode_legacy",
    "new_base_transaction",
    "new_promoted_transaction",
    "new_transaction",
    "new_transaction_from_builder",
    "new_transaction_from_expanded",
    "new_transaction_from_hash",
    "new_transaction_from_outputs",
    "new_transaction_from_wire",
    "sort_by_timestamp",
]
