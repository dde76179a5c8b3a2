"""
Transaction inspector CLI - Inspect raw transactions, resolve their inputs and
convert persisted records.
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

import httpx
import typer
from itxcore.models import NetworkType
from itxcore.wire import TxOut
from loguru import logger

from inspector.backends.base import NodeError
from inspector.backends.bitcoin_core import BitcoinCoreNode
from inspector.codec import decode as decode_record
from inspector.codec import encode as encode_record
from inspector.config import Settings, get_settings
from inspector.construct import (
    decode_raw,
    new_promoted_transaction,
    new_transaction,
    new_transaction_from_hash,
    new_transaction_from_outputs,
)
from inspector.errors import InspectorError
from inspector.transaction import InspectedTransaction

# Failures of commands that talk to the node
NODE_ERRORS = (InspectorError, NodeError, httpx.HTTPError)

app = typer.Typer(
    name="itx",
    help="Inspect transactions carrying tokenized protocol actions",
    add_completion=False,
)


def setup_logging(level: str = "INFO") -> None:
    """Configure loguru logging."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
    )


def _load_settings(network: str | None, log_level: str | None) -> Settings:
    if network is None:
        settings = get_settings()
    else:
        settings = Settings(network=network)  # type: ignore[arg-type]
    setup_logging(log_level or settings.log_level)
    return settings


def _read_raw(raw: str | None) -> str:
    if raw is None or raw == "-":
        return sys.stdin.read()
    return raw


def _make_node(settings: Settings) -> BitcoinCoreNode:
    return BitcoinCoreNode(
        rpc_url=settings.rpc_url,
        rpc_user=settings.rpc_user,
        rpc_password=settings.rpc_password,
        timeout=settings.rpc_timeout,
    )


def _print_summary(itx: InspectedTransaction, network: NetworkType) -> None:
    typer.echo(itx.render(network))
    typer.echo("")
    typer.echo(f"Tokenized: {itx.is_tokenized()}")
    typer.echo(f"Request:   {itx.is_request()}")
    typer.echo(f"Response:  {itx.is_response()}")

    try:
        fee = itx.fee()
        typer.echo(f"Fee:       {fee} sats ({itx.fee_rate():.2f} sat/B)")
    except InspectorError as e:
        typer.echo(f"Fee:       unavailable ({e})")

    rejection = itx.validate()
    if rejection is not None:
        typer.echo(f"Rejected:  {rejection.code} {rejection.text}")


@app.command()
def inspect(
    raw: str | None = typer.Argument(None, help="Raw transaction hex (default: stdin)"),
    resolve: bool = typer.Option(
        False, "--resolve", "-r", help="Resolve inputs through the configured node"
    ),
    network: str | None = typer.Option(None, "--network", "-n", help="Bitcoin network"),
    log_level: str | None = typer.Option(None, "--log-level", "-l"),
) -> None:
    """Inspect a raw transaction."""
    settings = _load_settings(network, log_level)
    data = _read_raw(raw)

    try:
        if resolve:
            itx = asyncio.run(_inspect_with_node(data, settings))
        else:
            itx = new_transaction(data, settings.is_test)
    except NODE_ERRORS as e:
        logger.error(f"Failed to inspect transaction: {e}")
        raise typer.Exit(1)

    _print_summary(itx, settings.network_type)


async def _inspect_with_node(raw: str, settings: Settings) -> InspectedTransaction:
    node = _make_node(settings)
    try:
        return await new_promoted_transaction(raw, node, settings.is_test)
    finally:
        await node.close()


@app.command()
def fetch(
    txid: str = typer.Argument(..., help="Transaction id"),
    output_file: Path | None = typer.Option(
        None, "--output", "-o", help="Write the persisted record to this file"
    ),
    network: str | None = typer.Option(None, "--network", "-n", help="Bitcoin network"),
    log_level: str | None = typer.Option(None, "--log-level", "-l"),
) -> None:
    """Fetch a transaction from the node, resolve its inputs and inspect it."""
    settings = _load_settings(network, log_level)

    try:
        itx = asyncio.run(_fetch(txid, settings))
    except NODE_ERRORS as e:
        logger.error(f"Failed to fetch {txid}: {e}")
        raise typer.Exit(1)

    if output_file is not None:
        output_file.write_bytes(encode_record(itx))
        logger.info(f"Record saved to {output_file}")

    _print_summary(itx, settings.network_type)


async def _fetch(txid: str, settings: Settings) -> InspectedTransaction:
    node = _make_node(settings)
    try:
        return await new_transaction_from_hash(node, txid, settings.is_test)
    finally:
        await node.close()


@app.command()
def decode(
    record_file: Path = typer.Argument(..., help="Persisted record file"),
    network: str | None = typer.Option(None, "--network", "-n", help="Bitcoin network"),
    log_level: str | None = typer.Option(None, "--log-level", "-l"),
) -> None:
    """Decode and inspect a persisted record."""
    settings = _load_settings(network, log_level)

    if not record_file.exists():
        logger.error(f"Record file not found: {record_file}")
        raise typer.Exit(1)

    try:
        itx = decode_record(record_file.read_bytes(), settings.is_test)
    except InspectorError as e:
        logger.error(f"Failed to decode {record_file}: {e}")
        raise typer.Exit(1)

    _print_summary(itx, settings.network_type)


@app.command()
def encode(
    raw: str = typer.Argument(..., help="Raw transaction hex"),
    prevouts_file: Path = typer.Option(
        ...,
        "--prevouts",
        "-p",
        help='JSON list of spent outputs, one per input: [{"value": 1000, "script": "76a9..."}]',
    ),
    output_file: Path | None = typer.Option(
        None, "--output", "-o", help="Output file (default: hex to stdout)"
    ),
    network: str | None = typer.Option(None, "--network", "-n", help="Bitcoin network"),
    log_level: str | None = typer.Option(None, "--log-level", "-l"),
) -> None:
    """Build a persisted record from a raw transaction and the outputs it spends."""
    settings = _load_settings(network, log_level)

    try:
        entries = json.loads(prevouts_file.read_text())
        spent = [
            TxOut(value=int(e["value"]), locking_script=bytes.fromhex(e["script"])) for e in entries
        ]
    except (OSError, ValueError, KeyError, TypeError) as e:
        logger.error(f"Invalid prevouts file {prevouts_file}: {e}")
        raise typer.Exit(1)

    try:
        itx = new_transaction_from_outputs(decode_raw(raw), spent, settings.is_test)
    except InspectorError as e:
        logger.error(f"Failed to build record: {e}")
        raise typer.Exit(1)

    data = encode_record(itx)
    if output_file is not None:
        output_file.write_bytes(data)
        logger.info(f"Record for {itx.txid} saved to {output_file}")
    else:
        typer.echo(data.hex())


def main() -> None:
    app()


if __name__ == "__main__":
    main()
