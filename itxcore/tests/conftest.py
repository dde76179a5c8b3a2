"""
Test fixtures for itxcore.
"""

import pytest

from itxcore.wire import MsgTx, OutPoint, TxIn, TxOut

# Bitcoin genesis block coinbase transaction
GENESIS_TX_HEX = (
    "01000000010000000000000000000000000000000000000000000000000000000000000000ffffffff4d04ffff"
    "001d0104455468652054696d65732030332f4a616e2f32303039204368616e63656c6c6f72206f6e206272696e"
    "6b206f66207365636f6e64206261696c6f757420666f722062616e6b73ffffffff0100f2052a01000000434104"
    "678afdb0fe5548271967f1a67130b7105cd6a828e03909a67962e0ea1f61deb649f6bc3f4cef38c4f35504e51e"
    "c112de5c384df7ba0b8d578a4c702b6bf11d5fac00000000"
)
GENESIS_TXID = "4a5e1e4baab89f3a32518a88c31bc87f618f76673e2cc77ab2127b7afdeda33b"

P2PKH_SCRIPT = bytes.fromhex("76a91417b1f6c26244711214fee7150e5a6b9b3080c13488ac")


@pytest.fixture
def genesis_tx() -> MsgTx:
    return MsgTx.from_hex(GENESIS_TX_HEX)


@pytest.fixture
def simple_tx() -> MsgTx:
    return MsgTx(
        version=2,
        tx_in=[
            TxIn(previous_outpoint=OutPoint(txid="ab" * 32, index=1), unlocking_script=b"\x51"),
        ],
        tx_out=[
            TxOut(value=50_000, locking_script=P2PKH_SCRIPT),
            TxOut(value=1_000, locking_script=b"\x00\x6a"),
        ],
        lock_time=700_000,
    )


@pytest.fixture
def genesis_hex() -> str:
    return GENESIS_TX_HEX


@pytest.fixture
def genesis_txid() -> str:
    return GENESIS_TXID


@pytest.fixture
def p2pkh_script() -> bytes:
    return P2PKH_SCRIPT
