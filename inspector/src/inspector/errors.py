"""
Inspector exceptions.
"""

from __future__ import annotations


class InspectorError(Exception):
    """Base class for inspector errors."""

    pass


class DecodeError(InspectorError):
    """Failed to decode a transaction payload (bad hex or malformed bytes)."""

    pass


class MissingInputsError(InspectorError):
    """Transaction is missing inputs."""

    pass


class MissingOutputsError(InspectorError):
    """Transaction is missing outputs, or previous outputs don't match inputs."""

    pass


class MismatchedUTXOError(InspectorError):
    """A UTXO doesn't match the outpoint of the input it should resolve."""

    pass


class NegativeFeeError(InspectorError):
    """Outputs spend more than the inputs provide."""

    pass


class UnpromotedTxError(InspectorError):
    """Inputs have not been resolved."""

    pass


class IncompleteTxError(InspectorError):
    """Transaction has no serialized size."""

    pass


class UnknownVersionError(DecodeError):
    """Persisted record has an unknown format version."""

    def __init__(self, version: int):
        super().__init__(f"Unknown version: {version}")
        self.version = version


class AlreadyPromotedError(InspectorError):
    """Promotion was attempted on a record that is already promoted."""

    pass
