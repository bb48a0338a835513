"""kucoin-stream watch <stream> [SYMBOL] -- Print live push messages.

Futures streams: trades, ticker, book, depth, instrument, snapshot, announcements
Spot streams:    trades, ticker, depth

Usage:
    kucoin-stream watch ticker XBTUSDM
    kucoin-stream watch depth XBTUSDM --limit 5
    kucoin-stream watch trades BTC-USDT --spot
"""

from __future__ import annotations

import asyncio
from typing import Optional

import orjson
import typer
from rich.table import Table

from kucoin_stream.cli.display import console
from kucoin_stream.clients.socket_client import KucoinSocketClient
from kucoin_stream.config import get_config
from kucoin_stream.errors import KucoinStreamError
from kucoin_stream.log import configure_logging
from kucoin_stream.models import DataEvent

FUTURES_STREAMS = ("trades", "ticker", "book", "depth", "instrument", "snapshot", "announcements")
SPOT_STREAMS = ("trades", "ticker", "depth")


def _list_streams() -> None:
    table = Table(title="Available Streams", show_lines=False, pad_edge=True)
    table.add_column("Market", style="bold")
    table.add_column("Streams", style="dim")
    table.add_row("futures", ", ".join(FUTURES_STREAMS))
    table.add_row("spot", ", ".join(SPOT_STREAMS))
    console.print(table)


def _print_event(event: DataEvent) -> None:
    payload = orjson.dumps(event.data.model_dump(mode="json")).decode()
    subject = f" [muted]{event.subject}[/muted]" if event.subject else ""
    console.print(f"[header]{event.symbol or event.topic}[/header]{subject} {payload}")


async def _subscribe(client: KucoinSocketClient, stream: str, symbol: str | None, limit: int, spot: bool):
    if spot:
        facade = client.spot
        if stream == "trades":
            return await facade.subscribe_to_trade_updates(symbol, _print_event)
        if stream == "ticker":
            return await facade.subscribe_to_ticker_updates(symbol, _print_event)
        return await facade.subscribe_to_partial_order_book_updates(symbol, limit, _print_event)

    facade = client.futures
    if stream == "trades":
        return await facade.subscribe_to_trade_updates(symbol, _print_event)
    if stream == "ticker":
        return await facade.subscribe_to_ticker_updates(symbol, _print_event)
    if stream == "book":
        return await facade.subscribe_to_order_book_updates(symbol, _print_event)
    if stream == "depth":
        return await facade.subscribe_to_partial_order_book_updates(symbol, limit, _print_event)
    if stream == "instrument":
        return await facade.subscribe_to_market_updates(symbol, _print_event, _print_event)
    if stream == "snapshot":
        return await facade.subscribe_to_24hour_snapshot_updates(symbol, _print_event)
    return await facade.subscribe_to_system_announcements(_print_event)


async def _watch_async(stream: str, symbol: str | None, limit: int, spot: bool) -> None:
    config = get_config()
    configure_logging(config.logging)

    async with KucoinSocketClient(config) as client:
        manager = client.spot_manager if spot else client.futures_manager
        await manager.wait_connected(timeout=config.tuning.ws_open_timeout * 3)
        sub = await _subscribe(client, stream, symbol, limit, spot)
        console.print(f"[muted]Subscribed to {sub.topic} (Ctrl+C to stop)[/muted]")
        await client.run_forever()


def watch(
    stream: str = typer.Argument(..., help="Stream name, e.g. ticker, depth, trades"),
    symbol: Optional[str] = typer.Argument(None, help="Contract or spot symbol"),
    limit: int = typer.Option(5, "--limit", "-l", help="Depth for the depth stream"),
    spot: bool = typer.Option(False, "--spot", help="Use the spot connection instead of futures"),
) -> None:
    """Subscribe to a public stream and print every event."""
    available = SPOT_STREAMS if spot else FUTURES_STREAMS
    if stream not in available:
        console.print(f"[red]Unknown stream:[/red] '{stream}'")
        console.print()
        _list_streams()
        raise typer.Exit(code=2)
    if symbol is None and stream != "announcements":
        console.print(f"[red]Stream '{stream}' needs a symbol[/red]")
        raise typer.Exit(code=2)

    try:
        asyncio.run(_watch_async(stream, symbol, limit, spot))
    except KeyboardInterrupt:
        console.print("\n[dim]Watch stopped.[/dim]")
    except (KucoinStreamError, asyncio.TimeoutError) as e:
        console.print(f"[red]Error:[/red] {e or 'timed out waiting for connection'}")
        raise typer.Exit(code=1) from e
