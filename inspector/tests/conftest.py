"""
Pytest configuration and fixtures for inspector tests.
"""

from __future__ import annotations

import pytest
from coincurve import PrivateKey
from itxcore import protocol
from itxcore.actions import ContractFormation, ContractOffer
from itxcore.script import p2pkh_locking_script
from itxcore.wire import MsgTx, OutPoint, TxIn, TxOut

from inspector.backends.memory import MemoryNode

FUNDING_VALUE = 7_605_340

# 5 element P2PKH script
KNOWN_LOCKING_SCRIPT = bytes(
    [118, 169, 20, 23, 177, 246, 194, 98, 68, 113, 18, 20, 254, 231, 21, 14, 90, 107, 155, 48]
    + [128, 193, 52, 136, 172]
)


@pytest.fixture
def test_private_key() -> PrivateKey:
    return PrivateKey()


@pytest.fixture
def locking_script(test_private_key: PrivateKey) -> bytes:
    """P2PKH locking script for the test key."""
    return p2pkh_locking_script(test_private_key.public_key.format(compressed=True))


@pytest.fixture
def other_locking_script() -> bytes:
    return p2pkh_locking_script(PrivateKey().public_key.format(compressed=True))


@pytest.fixture
def known_locking_script() -> bytes:
    return KNOWN_LOCKING_SCRIPT


@pytest.fixture
def offer_script() -> bytes:
    """Test network script carrying a contract offer (request)."""
    return protocol.serialize(ContractOffer(contract_name="Test Contract"), True)


@pytest.fixture
def formation_script() -> bytes:
    """Test network script carrying a contract formation (response)."""
    return protocol.serialize(
        ContractFormation(contract_name="Test Contract", timestamp=1_600_000_000), True
    )


@pytest.fixture
def funding_tx(known_locking_script: bytes, offer_script: bytes) -> MsgTx:
    """Previous transaction: output 0 pays FUNDING_VALUE, output 1 carries an offer."""
    return MsgTx(
        version=1,
        tx_in=[TxIn(previous_outpoint=OutPoint(txid="11" * 32, index=0))],
        tx_out=[
            TxOut(value=FUNDING_VALUE, locking_script=known_locking_script),
            TxOut(value=1_000, locking_script=offer_script),
        ],
    )


@pytest.fixture
def spending_tx(funding_tx: MsgTx, locking_script: bytes, other_locking_script: bytes) -> MsgTx:
    """Spends output 0 of funding_tx into two plain outputs, fee 5340."""
    return MsgTx(
        version=1,
        tx_in=[
            TxIn(
                previous_outpoint=OutPoint(txid=funding_tx.tx_hash(), index=0),
                unlocking_script=b"\x01\x02",
            )
        ],
        tx_out=[
            TxOut(value=7_000_000, locking_script=locking_script),
            TxOut(value=600_000, locking_script=other_locking_script),
        ],
    )


@pytest.fixture
def coinbase_tx(locking_script: bytes) -> MsgTx:
    return MsgTx(
        version=1,
        tx_in=[
            TxIn(
                previous_outpoint=OutPoint(txid="00" * 32, index=0xFFFFFFFF),
                unlocking_script=b"\x03\x01\x02\x03",
            )
        ],
        tx_out=[TxOut(value=625_000_000, locking_script=locking_script)],
    )


@pytest.fixture
def memory_node(funding_tx: MsgTx) -> MemoryNode:
    return MemoryNode([funding_tx])
