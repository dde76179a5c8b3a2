"""
Base ledger node interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from itxcore.models import UTXO
from itxcore.wire import MsgTx, OutPoint


class NodeError(Exception):
    """Raised when the node fails to answer a request."""

    pass


class TransactionNotFoundError(NodeError):
    """Raised when the node doesn't know a transaction."""

    def __init__(self, txid: str):
        super().__init__(f"Transaction not found: {txid}")
        self.txid = txid


class Node(ABC):
    """
    Abstract ledger node.

    Looks up transactions and resolves outpoints to the outputs they
    reference. Calls may block on I/O without an internal timeout beyond the
    transport's own; callers own cancellation.
    """

    @abstractmethod
    async def get_tx(self, txid: str) -> MsgTx:
        """Get raw transaction by txid. Raises TransactionNotFoundError."""

    @abstractmethod
    async def get_outputs(self, outpoints: Sequence[OutPoint]) -> list[UTXO]:
        """Resolve outpoints to UTXOs, aligned 1:1 and in order with `outpoints`."""

    @abstractmethod
    async def save_tx(self, tx: MsgTx) -> None:
        """Make a transaction available to later lookups."""

    async def close(self) -> None:
        """Close node connection"""
        pass


async def outputs_from_txs(node: Node, outpoints: Sequence[OutPoint]) -> list[UTXO]:
    """
    Resolve outpoints by fetching each previous transaction once.

    Shared by nodes that can only look up whole transactions.
    """
    txs: dict[str, MsgTx] = {}
    utxos: list[UTXO] = []
    for outpoint in outpoints:
        tx = txs.get(outpoint.txid)
        if tx is None:
            tx = await node.get_tx(outpoint.txid)
            txs[outpoint.txid] = tx

        if outpoint.index >= len(tx.tx_out):
            raise NodeError(f"Transaction {outpoint.txid} has no output {outpoint.index}")

        output = tx.tx_out[outpoint.index]
        utxos.append(
            UTXO(
                txid=outpoint.txid,
                index=outpoint.index,
                value=output.value,
                locking_script=output.locking_script,
            )
        )
    return utxos
