"""
Construction of inspected transactions.

Every path funnels into new_transaction_from_wire, which checks the raw tx
has inputs and outputs, copies it and detects actions. The paths differ in
where the outputs spent by the inputs come from:

- a ledger node (new_promoted_transaction, new_transaction_from_hash)
- a transaction builder result (new_transaction_from_builder)
- ancestor transactions (new_transaction_from_expanded)
- an explicit list aligned with the inputs (new_transaction_from_outputs)

new_base_transaction skips all of it; the caller promotes explicitly.
"""

from __future__ import annotations

from collections.abc import Sequence

from itxcore.expanded import BuiltTx, ExpandedTx, MissingAncestorError
from itxcore.models import UTXO
from itxcore.wire import MsgTx, TxOut, WireError
from loguru import logger

from inspector.backends.base import Node
from inspector.errors import DecodeError, MissingInputsError, MissingOutputsError
from inspector.transaction import InspectedTransaction


def decode_raw(raw: str) -> MsgTx:
    """Decode a hex encoded raw transaction, ignoring surrounding whitespace."""
    data = raw.strip()
    try:
        payload = bytes.fromhex(data)
    except ValueError as e:
        raise DecodeError(f"Invalid hex: {e}") from e

    try:
        return MsgTx.from_bytes(payload)
    except WireError as e:
        raise DecodeError(f"Malformed transaction: {e}") from e


def new_base_transaction(tx: MsgTx, txid: str | None = None) -> InspectedTransaction:
    """Build an unpromoted record. No derived query is valid until it is promoted."""
    return InspectedTransaction(txid=txid or tx.tx_hash(), msg_tx=tx.copy())


def new_transaction_from_wire(
    tx: MsgTx, is_test: bool, txid: str | None = None
) -> InspectedTransaction:
    """
    Build a record from a raw tx and detect output actions, without resolving inputs.

    Raises:
        MissingInputsError: If the tx has no inputs
        MissingOutputsError: If the tx has no outputs
    """
    if not tx.tx_in:
        raise MissingInputsError("Transaction has no inputs")
    if not tx.tx_out:
        raise MissingOutputsError("Transaction has no outputs")

    itx = new_base_transaction(tx, txid)
    itx.setup(is_test)
    return itx


def new_transaction(raw: str, is_test: bool) -> InspectedTransaction:
    """Build a record from hex, without resolving inputs."""
    return new_transaction_from_wire(decode_raw(raw), is_test)


async def new_promoted_transaction(raw: str, node: Node, is_test: bool) -> InspectedTransaction:
    """Build a record from hex and resolve its inputs through `node`."""
    itx = new_transaction(raw, is_test)
    await itx.promote(node, is_test)
    return itx


async def new_transaction_from_hash(
    node: Node, txid: str, is_test: bool, promote: bool = True
) -> InspectedTransaction:
    """
    Fetch a transaction from `node` and build a record from it.

    Args:
        node: Ledger node
        txid: Transaction id
        is_test: Whether actions use the test network protocol id
        promote: Also resolve the inputs through `node`

    Raises:
        TransactionNotFoundError: If the node doesn't know the transaction
    """
    tx = await node.get_tx(txid)
    itx = new_transaction_from_wire(tx, is_test, txid=txid)
    if promote:
        await itx.promote(node, is_test)
    logger.debug(f"Built {txid} from node (promoted={itx.is_promoted()})")
    return itx


def _promote_with_outputs(
    itx: InspectedTransaction, spent: Sequence[TxOut | None], is_test: bool
) -> InspectedTransaction:
    # spent[i] is None for coinbase inputs
    utxos = [
        UTXO(
            txid=txin.previous_outpoint.txid,
            index=txin.previous_outpoint.index,
            value=output.value,
            locking_script=output.locking_script,
        )
        for txin, output in zip(itx.msg_tx.tx_in, spent)
        if output is not None and not txin.previous_outpoint.is_coinbase()
    ]
    itx.promote_from_utxos(utxos, is_test)
    return itx


def new_transaction_from_builder(built: BuiltTx, is_test: bool) -> InspectedTransaction:
    """Build and promote a record from a builder result, without a node round trip."""
    itx = new_transaction_from_wire(built.msg_tx, is_test)
    if len(built.inputs) != len(built.msg_tx.tx_in):
        raise MissingOutputsError(
            f"Builder has {len(built.inputs)} spent outputs for {len(built.msg_tx.tx_in)} inputs"
        )
    return _promote_with_outputs(itx, built.inputs, is_test)


def new_transaction_from_expanded(expanded: ExpandedTx, is_test: bool) -> InspectedTransaction:
    """
    Build and promote a record from a transaction carrying its ancestors.

    Raises:
        MissingOutputsError: If an ancestor or a spent output is missing
    """
    itx = new_transaction_from_wire(expanded.msg_tx, is_test)

    spent: list[TxOut | None] = []
    for i in range(expanded.input_count()):
        if expanded.input(i).previous_outpoint.is_coinbase():
            spent.append(None)
            continue
        try:
            spent.append(expanded.input_output(i))
        except MissingAncestorError as e:
            raise MissingOutputsError(f"Input {i}: {e}") from e

    return _promote_with_outputs(itx, spent, is_test)


def new_transaction_from_outputs(
    tx: MsgTx, outputs: Sequence[TxOut], is_test: bool, txid: str | None = None
) -> InspectedTransaction:
    """
    Build and promote a record from the outputs spent by its inputs.

    `outputs[i]` is the output spent by `tx.tx_in[i]`; the entry for a
    coinbase input is ignored.

    Raises:
        MissingOutputsError: If `outputs` isn't aligned with the inputs
    """
    if len(outputs) != len(tx.tx_in):
        raise MissingOutputsError(f"Got {len(outputs)} spent outputs for {len(tx.tx_in)} inputs")

    itx = new_transaction_from_wire(tx, is_test, txid=txid)
    return _promote_with_outputs(itx, outputs, is_test)
