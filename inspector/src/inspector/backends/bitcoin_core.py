"""
Bitcoin Core RPC ledger node.
Uses getrawtransaction only; needs a node with -txindex to resolve
arbitrary historical outpoints.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import httpx
from itxcore.models import UTXO
from itxcore.wire import MsgTx, OutPoint, WireError
from loguru import logger

from inspector.backends.base import Node, NodeError, TransactionNotFoundError, outputs_from_txs

# Timeout for RPC calls (seconds)
DEFAULT_RPC_TIMEOUT = 30.0

# RPC_INVALID_ADDRESS_OR_KEY, returned for unknown transactions
RPC_NOT_FOUND_CODE = -5


class RPCError(NodeError):
    def __init__(self, code: int | str, message: str):
        super().__init__(f"RPC error {code}: {message}")
        self.code = code


class BitcoinCoreNode(Node):
    """
    Ledger node backed by Bitcoin Core RPC.

    Fetched and saved transactions are cached locally, so resolving several
    inputs spending the same transaction costs one RPC call.
    """

    def __init__(
        self,
        rpc_url: str = "http://127.0.0.1:8332",
        rpc_user: str = "rpcuser",
        rpc_password: str = "rpcpassword",
        timeout: float = DEFAULT_RPC_TIMEOUT,
    ):
        self.rpc_url = rpc_url.rstrip("/")
        self.rpc_user = rpc_user
        self.rpc_password = rpc_password
        self.client = httpx.AsyncClient(timeout=timeout, auth=(rpc_user, rpc_password))
        self._request_id = 0
        self._cache: dict[str, MsgTx] = {}

    async def _rpc_call(self, method: str, params: list | None = None) -> Any:
        """
        Make an RPC call to Bitcoin Core.

        Args:
            method: RPC method name
            params: Method parameters

        Returns:
            RPC result

        Raises:
            RPCError: On RPC errors
            httpx.HTTPError: On connection/timeout errors
        """
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params or [],
        }

        try:
            response = await self.client.post(self.rpc_url, json=payload)
            try:
                data = response.json()
            except ValueError as e:
                # Non-JSON bodies come with HTTP errors (e.g. 401 on bad credentials)
                response.raise_for_status()
                raise NodeError(f"Invalid RPC response for {method}") from e

            if "error" in data and data["error"]:
                error_info = data["error"]
                error_code = error_info.get("code", "unknown")
                error_msg = error_info.get("message", str(error_info))
                raise RPCError(error_code, error_msg)

            response.raise_for_status()
            return data.get("result")

        except httpx.TimeoutException as e:
            logger.error(f"RPC call timed out: {method} - {e}")
            raise
        except httpx.HTTPError as e:
            logger.error(f"RPC call failed: {method} - {e}")
            raise

    async def get_tx(self, txid: str) -> MsgTx:
        cached = self._cache.get(txid)
        if cached is not None:
            return cached.copy()

        try:
            raw_hex = await self._rpc_call("getrawtransaction", [txid, False])
        except RPCError as e:
            if e.code == RPC_NOT_FOUND_CODE:
                raise TransactionNotFoundError(txid) from e
            raise

        if not raw_hex:
            raise TransactionNotFoundError(txid)

        try:
            tx = MsgTx.from_hex(raw_hex)
        except WireError as e:
            raise NodeError(f"Node returned malformed transaction {txid}: {e}") from e

        self._cache[txid] = tx
        logger.debug(f"Fetched transaction {txid} ({tx.serialize_size()} bytes)")
        return tx.copy()

    async def get_outputs(self, outpoints: Sequence[OutPoint]) -> list[UTXO]:
        return await outputs_from_txs(self, outpoints)

    async def save_tx(self, tx: MsgTx) -> None:
        self._cache[tx.tx_hash()] = tx.copy()

    async def close(self) -> None:
        await self.client.aclose()
