"""
In-memory ledger node.

Holds transactions saved to it. Useful offline, when the ancestors of the
transactions being inspected are already at hand.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from itxcore.models import UTXO
from itxcore.wire import MsgTx, OutPoint
from loguru import logger

from inspector.backends.base import Node, TransactionNotFoundError, outputs_from_txs


class MemoryNode(Node):
    def __init__(self, txs: Iterable[MsgTx] = ()):
        self._txs: dict[str, MsgTx] = {}
        for tx in txs:
            self._txs[tx.tx_hash()] = tx.copy()

    async def get_tx(self, txid: str) -> MsgTx:
        tx = self._txs.get(txid)
        if tx is None:
            raise TransactionNotFoundError(txid)
        return tx.copy()

    async def get_outputs(self, outpoints: Sequence[OutPoint]) -> list[UTXO]:
        return await outputs_from_txs(self, outpoints)

    async def save_tx(self, tx: MsgTx) -> None:
        txid = tx.tx_hash()
        self._txs[txid] = tx.copy()
        logger.debug(f"Saved transaction {txid}")

    def __contains__(self, txid: str) -> bool:
        return txid in self._txs

    def __len__(self) -> int:
        return len(self._txs)
