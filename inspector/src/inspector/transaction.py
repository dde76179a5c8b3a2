"""
Inspected transaction.

An InspectedTransaction wraps a raw transaction and, once promoted, knows the
value and locking script of every output its inputs spend and the protocol
actions carried by those scripts and by its own outputs.

Promotion happens once. It takes the record's lock exclusively while inputs
and outputs are rebuilt and always releases it, on success or failure.
Queries take the lock shared for their own duration only.
"""

from __future__ import annotations

import json
from collections.abc import Iterator, Sequence
from typing import TYPE_CHECKING

from itxcore import protocol
from itxcore.actions import (
    REQUEST_CODES,
    RESPONSE_CODES,
    Action,
    ActionValidationError,
    RejectionCode,
)
from itxcore.constants import SATOSHIS_PER_COIN
from itxcore.models import UTXO, NetworkType, UTXOs
from itxcore.script import is_unspendable, script_to_address, script_to_asm
from itxcore.wire import MsgTx
from loguru import logger

from inspector.errors import (
    AlreadyPromotedError,
    IncompleteTxError,
    NegativeFeeError,
    UnpromotedTxError,
)
from inspector.locks import RWLock
from inspector.models import Input, Output, Rejection
from inspector.resolve import detect_input_actions, parse_outputs, resolve_inputs, spent_outpoints
from inspector.sort import action_timestamp

if TYPE_CHECKING:
    from inspector.backends.base import Node


class InspectedTransaction:
    """
    A raw transaction enriched with resolved inputs and detected actions.

    Construct through the functions in inspector.construct, or decode a
    persisted record with inspector.codec.
    """

    def __init__(
        self,
        txid: str,
        msg_tx: MsgTx,
        inputs: list[Input] | None = None,
        outputs: list[Output] | None = None,
        rejection: Rejection | None = None,
        promoted: bool = False,
    ):
        self.txid = txid
        self.msg_tx = msg_tx
        self.inputs: list[Input] = inputs if inputs is not None else []
        self.outputs: list[Output] = outputs if outputs is not None else []
        self.rejection = rejection
        self._promoted = promoted
        self._lock = RWLock()

    def __repr__(self) -> str:
        return (
            f"InspectedTransaction(txid={self.txid}, inputs={len(self.msg_tx.tx_in)}, "
            f"outputs={len(self.msg_tx.tx_out)}, promoted={self._promoted})"
        )

    # Promotion

    def setup(self, is_test: bool) -> None:
        """Detect actions in the current inputs and the outputs, without resolving inputs."""
        with self._lock.write():
            detect_input_actions(self.inputs, is_test)
            self.outputs = parse_outputs(self.msg_tx, is_test)

    def promote_from_utxos(self, utxos: Sequence[UTXO], is_test: bool) -> None:
        """
        Resolve inputs from UTXOs aligned with the non-coinbase inputs, then detect actions.

        Raises:
            AlreadyPromotedError: If the record was already promoted
            MismatchedUTXOError: If the UTXOs don't line up with the inputs
        """
        with self._lock.write():
            if self._promoted:
                raise AlreadyPromotedError(f"Transaction {self.txid} already promoted")

            inputs = resolve_inputs(self.msg_tx, utxos)
            detect_input_actions(inputs, is_test)
            outputs = parse_outputs(self.msg_tx, is_test)

            self.inputs = inputs
            self.outputs = outputs
            self._promoted = True

        logger.debug(
            f"Promoted {self.txid}: {len(self.inputs)} inputs, {len(self.outputs)} outputs"
        )

    async def promote(self, node: Node, is_test: bool) -> None:
        """
        Resolve inputs through a ledger node, then detect actions.

        The node is queried before the lock is taken, so readers aren't held
        up by node I/O.
        """
        if self.is_promoted():
            raise AlreadyPromotedError(f"Transaction {self.txid} already promoted")

        outpoints = spent_outpoints(self.msg_tx)
        utxos = await node.get_outputs(outpoints) if outpoints else []
        self.promote_from_utxos(utxos, is_test)

    def is_promoted(self) -> bool:
        with self._lock.read():
            return self._promoted

    # Validation

    def validate(self) -> Rejection | None:
        """
        Validate every action, recording a rejection for the first invalid one.

        An invalid action is recorded state, not an error: the transaction
        remains inspectable.

        Returns:
            The recorded rejection, or None if all actions are valid
        """
        with self._lock.read():
            failure = None
            for action in self._actions():
                try:
                    action.validate_message()
                except ActionValidationError as e:
                    failure = f"{action.code}: {e}"
                    break

        if failure is None:
            return None

        logger.warning(f"Protocol message is invalid : {failure}")
        rejection = Rejection(code=RejectionCode.MSG_MALFORMED, text=failure)
        with self._lock.write():
            self.rejection = rejection
        return rejection

    @property
    def reject_code(self) -> int:
        return self.rejection.code if self.rejection is not None else 0

    # Fees

    def _fee(self) -> int:
        if len(self.inputs) != len(self.msg_tx.tx_in):
            raise UnpromotedTxError(f"Transaction {self.txid} inputs not resolved")

        result = sum(inp.value for inp in self.inputs)
        for i, output in enumerate(self.msg_tx.tx_out):
            if output.value > result:
                raise NegativeFeeError(f"Output {i} spends more than remains ({result})")
            result -= output.value

        return result

    def fee(self) -> int:
        """
        Input value minus output value, in satoshis.

        Raises:
            UnpromotedTxError: If inputs are not resolved
            NegativeFeeError: If outputs spend more than the inputs provide
        """
        with self._lock.read():
            return self._fee()

    def fee_rate(self) -> float:
        """Fee per serialized byte."""
        with self._lock.read():
            fee = self._fee()
            size = self.msg_tx.serialize_size()
            if size == 0:
                raise IncompleteTxError(f"Transaction {self.txid} has no size")
            return fee / size

    # Classification

    def _actions(self) -> Iterator[Action]:
        """Actions of inputs, then outputs."""
        for inp in self.inputs:
            if inp.action is not None:
                yield inp.action
        for output in self.outputs:
            if output.action is not None:
                yield output.action

    def is_tokenized(self) -> bool:
        """True if any input or output carries an action."""
        with self._lock.read():
            return any(True for _ in self._actions())

    def is_request(self) -> bool:
        with self._lock.read():
            return any(action.code in REQUEST_CODES for action in self._actions())

    def is_response(self) -> bool:
        with self._lock.read():
            return any(action.code in RESPONSE_CODES for action in self._actions())

    def reordering_timestamp(self) -> int | None:
        """Timestamp of the first response action in the outputs, if any."""
        with self._lock.read():
            for output in self.outputs:
                timestamp = action_timestamp(output.action)
                if timestamp is not None:
                    return timestamp
        return None

    # Scripts

    def is_relevant(self, locking_script: bytes) -> bool:
        """True if any spent output or own output pays to `locking_script`."""
        with self._lock.read():
            # coinbase inputs have no locking script
            spent = (inp.locking_script for inp in self.inputs if inp.locking_script)
            if any(script == locking_script for script in spent):
                return True
            return any(out.locking_script == locking_script for out in self.msg_tx.tx_out)

    def locking_scripts(self) -> list[bytes]:
        """Unique spendable locking scripts of inputs and outputs, in first-seen order."""
        with self._lock.read():
            scripts = [inp.locking_script for inp in self.inputs if inp.locking_script]
            scripts += [out.locking_script for out in self.msg_tx.tx_out]

        # dict keeps insertion order
        return list(dict.fromkeys(s for s in scripts if not is_unspendable(s)))

    def input_txids(self) -> list[str]:
        """Txids of the transactions spent by the inputs."""
        return [txin.previous_outpoint.txid for txin in self.msg_tx.tx_in]

    def utxos(self) -> UTXOs:
        """The outputs created by this transaction."""
        return UTXOs(
            UTXO(txid=self.txid, index=i, value=out.value, locking_script=out.locking_script)
            for i, out in enumerate(self.msg_tx.tx_out)
        )

    # Persistence

    def serialize(self) -> bytes:
        """Persisted form, in the current format version."""
        from inspector.codec import encode

        return encode(self)

    @classmethod
    def deserialize(cls, data: bytes, is_test: bool) -> InspectedTransaction:
        from inspector.codec import decode

        return decode(data, is_test)

    # Comparison and rendering

    def _snapshot(self) -> tuple[str, bytes, int, list[tuple[int, bytes, bytes | None]], list]:
        with self._lock.read():
            inputs = [
                (inp.value, inp.locking_script, _action_bytes(inp.action)) for inp in self.inputs
            ]
            outputs = [_action_bytes(out.action) for out in self.outputs]
            return self.txid, self.msg_tx.serialize(), self.reject_code, inputs, outputs

    def __eq__(self, other: object) -> bool:
        """Field equality; actions compare by their protocol encoding."""
        if not isinstance(other, InspectedTransaction):
            return NotImplemented
        if other is self:
            return True
        return self._snapshot() == other._snapshot()

    __hash__ = None  # type: ignore[assignment]

    def render(self, network: NetworkType = NetworkType.MAINNET) -> str:
        """Human-readable dump of the transaction."""
        with self._lock.read():
            lines = [
                f"TxId: {self.txid} ({self.msg_tx.serialize_size()} bytes)",
                f"  Version: {self.msg_tx.version}",
                "  Inputs:",
                "",
            ]
            for i, txin in enumerate(self.msg_tx.tx_in):
                lines.append(f"    Outpoint: {txin.previous_outpoint}")
                lines.append(f"    UnlockingScript: {script_to_asm(txin.unlocking_script)}")
                lines.append(f"    Sequence: {txin.sequence:x}")
                if i < len(self.inputs):
                    inp = self.inputs[i]
                    lines.append(f"    LockingScript: {script_to_asm(inp.locking_script)}")
                    lines.extend(_address_lines(inp.locking_script, network))
                    lines.append(f"    Value: {inp.value}")
                    lines.extend(_action_lines(inp.action))
                lines.append("")

            lines += ["  Outputs:", ""]
            for i, txout in enumerate(self.msg_tx.tx_out):
                lines.append(f"    Value: {txout.value / SATOSHIS_PER_COIN:.08f}")
                lines.append(f"    LockingScript: {script_to_asm(txout.locking_script)}")
                lines.extend(_address_lines(txout.locking_script, network))
                if i < len(self.outputs):
                    lines.extend(_action_lines(self.outputs[i].action))
                lines.append("")

            lines.append(f"  LockTime: {self.msg_tx.lock_time}")
            if self.rejection is not None:
                lines.append(f"  Rejection: {self.rejection.code} {self.rejection.text}")
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.render()


def _action_bytes(action: Action | None) -> bytes | None:
    if action is None:
        return None
    return protocol.serialize(action, True)


def _address_lines(locking_script: bytes, network: NetworkType) -> list[str]:
    if is_unspendable(locking_script):
        return []
    address = script_to_address(locking_script, network)
    return [f"    Address: {address}"] if address else []


def _action_lines(action: Action | None) -> list[str]:
    if action is None:
        return []
    body = json.dumps(action.model_dump(mode="json"), indent=2).replace("\n", "\n      ")
    return [f"    Action: {type(action).__name__} ({action.code})", f"      {body}"]
