"""
Ledger node implementations.

Available nodes:
- BitcoinCoreNode: Full node via Bitcoin Core RPC (getrawtransaction)
- MemoryNode: In-memory transaction store
"""

from inspector.backends.base import Node, NodeError, TransactionNotFoundError
from inspector.backends.bitcoin_core import BitcoinCoreNode, RPCError
from inspector.backends.memory import MemoryNode

__all__ = [
    "BitcoinCoreNode",
    "MemoryNode",
    "Node",
    "NodeError",
    "RPCError",
    "TransactionNotFoundError",
]
