"""
Input resolution and action detection.

Resolution pairs each non-coinbase input, in order, with the next UTXO and
requires the UTXO to be exactly the outpoint the input spends. There is no
reordering and no skipping: the UTXOs must be aligned with the inputs.
"""

from __future__ import annotations

from collections.abc import Sequence

from itxcore import protocol
from itxcore.actions import Action
from itxcore.models import UTXO
from itxcore.protocol import ProtocolError
from itxcore.wire import MsgTx, OutPoint

from inspector.errors import MismatchedUTXOError
from inspector.models import Input, Output


def spent_outpoints(msg_tx: MsgTx) -> list[OutPoint]:
    """Outpoints of all non-coinbase inputs, in input order."""
    return [
        txin.previous_outpoint for txin in msg_tx.tx_in if not txin.previous_outpoint.is_coinbase()
    ]


def detect_action(locking_script: bytes, is_test: bool) -> Action | None:
    """Decode the action carried by a script. Unrecognized scripts carry none."""
    try:
        return protocol.deserialize(locking_script, is_test)
    except ProtocolError:
        return None


def resolve_inputs(msg_tx: MsgTx, utxos: Sequence[UTXO]) -> list[Input]:
    """
    Build resolved inputs from UTXOs aligned with the non-coinbase inputs.

    Raises:
        MismatchedUTXOError: If a UTXO doesn't match its input's outpoint, or
            there are too few or too many UTXOs
    """
    inputs: list[Input] = []
    offset = 0
    for i, txin in enumerate(msg_tx.tx_in):
        outpoint = txin.previous_outpoint
        if outpoint.is_coinbase():
            inputs.append(Input())
            continue

        if offset >= len(utxos):
            raise MismatchedUTXOError(f"Missing UTXO for input {i} ({outpoint})")

        utxo = utxos[offset]
        if utxo.txid != outpoint.txid or utxo.index != outpoint.index:
            raise MismatchedUTXOError(
                f"Mismatched UTXO for input {i}: got {utxo.txid}:{utxo.index}, want {outpoint}"
            )

        inputs.append(Input(value=utxo.value, locking_script=utxo.locking_script))
        offset += 1

    if offset != len(utxos):
        raise MismatchedUTXOError(f"{len(utxos) - offset} UTXOs left over after resolving inputs")

    return inputs


def detect_input_actions(inputs: Sequence[Input], is_test: bool) -> None:
    for inp in inputs:
        inp.action = detect_action(inp.locking_script, is_test)


def parse_outputs(msg_tx: MsgTx, is_test: bool) -> list[Output]:
    return [Output(action=detect_action(txout.locking_script, is_test)) for txout in msg_tx.tx_out]
