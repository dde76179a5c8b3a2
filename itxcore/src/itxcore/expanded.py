"""
Transactions that carry the outputs they spend.

BuiltTx is what a transaction builder hands back: the raw tx plus, for each
input, the previous output it spends. ExpandedTx carries full ancestor
transactions and looks spent outputs up on demand.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from itxcore.wire import MsgTx, TxIn, TxOut


class MissingAncestorError(Exception):
    """Raised when the output spent by an input is not available."""

    pass


@dataclass
class BuiltTx:
    msg_tx: MsgTx
    # inputs[i] is the output spent by msg_tx.tx_in[i]
    inputs: list[TxOut] = field(default_factory=list)


@dataclass
class ExpandedTx:
    msg_tx: MsgTx
    ancestors: list[MsgTx] = field(default_factory=list)

    def __post_init__(self) -> None:
        self._by_txid = {ancestor.tx_hash(): ancestor for ancestor in self.ancestors}

    def add_ancestor(self, tx: MsgTx) -> None:
        self.ancestors.append(tx)
        self._by_txid[tx.tx_hash()] = tx

    def input_count(self) -> int:
        return len(self.msg_tx.tx_in)

    def input(self, index: int) -> TxIn:
        return self.msg_tx.tx_in[index]

    def input_output(self, index: int) -> TxOut:
        """
        Return the output spent by input `index`.

        Raises:
            MissingAncestorError: If the ancestor tx or its output is unknown
        """
        outpoint = self.msg_tx.tx_in[index].previous_outpoint
        ancestor = self._by_txid.get(outpoint.txid)
        if ancestor is None:
            raise MissingAncestorError(f"Missing ancestor {outpoint.txid} for input {index}")
        if outpoint.index >= len(ancestor.tx_out):
            raise MissingAncestorError(
                f"Ancestor {outpoint.txid} has no output {outpoint.index} (input {index})"
            )
        return ancestor.tx_out[outpoint.index]
