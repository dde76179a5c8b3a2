"""
Tests for input resolution and action detection.
"""

import pytest
from itxcore.actions import ContractOffer
from itxcore.models import UTXO
from itxcore.wire import MsgTx, OutPoint, TxIn, TxOut

from inspector.errors import MismatchedUTXOError
from inspector.models import Input
from inspector.resolve import (
    detect_action,
    detect_input_actions,
    parse_outputs,
    resolve_inputs,
    spent_outpoints,
)

COINBASE = OutPoint(txid="00" * 32, index=0xFFFFFFFF)


def _tx(*outpoints: OutPoint) -> MsgTx:
    return MsgTx(
        tx_in=[TxIn(previous_outpoint=op) for op in outpoints],
        tx_out=[TxOut(value=1)],
    )


def _utxo(outpoint: OutPoint, value: int = 100, script: bytes = b"\x51") -> UTXO:
    return UTXO(txid=outpoint.txid, index=outpoint.index, value=value, locking_script=script)


class TestResolveInputs:
    def test_aligned(self):
        a = OutPoint(txid="aa" * 32, index=0)
        b = OutPoint(txid="bb" * 32, index=2)
        inputs = resolve_inputs(_tx(a, b), [_utxo(a, 10, b"\x52"), _utxo(b, 20, b"\x53")])
        assert inputs == [Input(10, b"\x52"), Input(20, b"\x53")]

    def test_out_of_order(self):
        a = OutPoint(txid="aa" * 32, index=0)
        b = OutPoint(txid="bb" * 32, index=2)
        with pytest.raises(MismatchedUTXOError, match="input 0"):
            resolve_inputs(_tx(a, b), [_utxo(b), _utxo(a)])

    def test_mismatched_index(self):
        a = OutPoint(txid="aa" * 32, index=0)
        with pytest.raises(MismatchedUTXOError):
            resolve_inputs(_tx(a), [_utxo(OutPoint(txid="aa" * 32, index=1))])

    def test_too_few(self):
        a = OutPoint(txid="aa" * 32, index=0)
        b = OutPoint(txid="bb" * 32, index=2)
        with pytest.raises(MismatchedUTXOError, match="Missing UTXO for input 1"):
            resolve_inputs(_tx(a, b), [_utxo(a)])

    def test_too_many(self):
        a = OutPoint(txid="aa" * 32, index=0)
        b = OutPoint(txid="bb" * 32, index=2)
        with pytest.raises(MismatchedUTXOError, match="left over"):
            resolve_inputs(_tx(a), [_utxo(a), _utxo(b)])

    def test_coinbase_exempt(self):
        inputs = resolve_inputs(_tx(COINBASE), [])
        assert inputs == [Input()]
        assert inputs[0].value == 0
        assert inputs[0].locking_script == b""
        assert inputs[0].action is None

    def test_coinbase_does_not_consume_utxo(self):
        a = OutPoint(txid="aa" * 32, index=0)
        inputs = resolve_inputs(_tx(COINBASE, a), [_utxo(a, 55)])
        assert inputs == [Input(), Input(55, b"\x51")]


class TestSpentOutpoints:
    def test_skips_coinbase(self):
        a = OutPoint(txid="aa" * 32, index=0)
        assert spent_outpoints(_tx(COINBASE, a)) == [a]


class TestDetection:
    def test_detect_action(self, offer_script):
        action = detect_action(offer_script, True)
        assert isinstance(action, ContractOffer)
        assert action.contract_name == "Test Contract"

    def test_wrong_network_is_absent(self, offer_script):
        assert detect_action(offer_script, False) is None

    def test_plain_script_is_absent(self, known_locking_script):
        assert detect_action(known_locking_script, True) is None
        assert detect_action(b"", True) is None

    def test_detect_input_actions(self, offer_script, known_locking_script):
        inputs = [Input(1, offer_script), Input(2, known_locking_script)]
        detect_input_actions(inputs, True)
        assert isinstance(inputs[0].action, ContractOffer)
        assert inputs[1].action is None

    def test_parse_outputs(self, funding_tx):
        outputs = parse_outputs(funding_tx, True)
        assert len(outputs) == 2
        assert outputs[0].action is None
        assert isinstance(outputs[1].action, ContractOffer)

    def test_parse_outputs_plain(self, spending_tx):
        outputs = parse_outputs(spending_tx, True)
        assert len(outputs) == 2
        assert all(output.action is None for output in outputs)
