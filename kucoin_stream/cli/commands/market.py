"""REST market-data commands: server-time, symbols, ticker, trades, depth.

Usage:
    kucoin-stream server-time
    kucoin-stream symbols --market USDS
    kucoin-stream ticker BTC-USDT
    kucoin-stream trades BTC-USDT --limit 20
    kucoin-stream depth BTC-USDT --depth 10
"""

from __future__ import annotations

import asyncio
from typing import Optional

import typer

from kucoin_stream.cli.display import (
    console,
    create_book_table,
    create_symbols_table,
    create_trades_table,
    format_decimal,
)
from kucoin_stream.config import get_config
from kucoin_stream.errors import KucoinStreamError
from kucoin_stream.ingestion.rest_client import KucoinRESTClient


def _client() -> KucoinRESTClient:
    config = get_config()
    return KucoinRESTClient(config.kucoin.spot_rest_url, timeout=config.tuning.rest_timeout)


def _run(coro) -> None:
    try:
        asyncio.run(coro)
    except KucoinStreamError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1) from e


async def _server_time() -> None:
    async with _client() as rest:
        ts = await rest.get_server_time()
    console.print(f"[header]Server time:[/header] {ts.isoformat()}")


async def _symbols(market: str | None) -> None:
    async with _client() as rest:
        symbols = await rest.get_symbols(market)
    console.print(create_symbols_table(symbols))


async def _ticker(symbol: str) -> None:
    async with _client() as rest:
        tick = await rest.get_ticker(symbol)
        stats = await rest.get_24hour_stats(symbol)
    console.print(
        f"[header]{symbol}[/header] last {format_decimal(tick.price)}  "
        f"bid {format_decimal(tick.best_bid)} / ask {format_decimal(tick.best_ask)}  "
        f"24h vol {format_decimal(stats.vol)}  change {format_decimal(stats.change_rate)}"
    )


async def _trades(symbol: str, limit: int) -> None:
    async with _client() as rest:
        trades = await rest.get_trade_history(symbol)
    console.print(create_trades_table(symbol, trades[-limit:]))


async def _depth(symbol: str, depth: int) -> None:
    async with _client() as rest:
        book = await rest.get_aggregated_partial_order_book(symbol, 20)
    console.print(create_book_table(symbol, book, depth))


def server_time() -> None:
    """Print the exchange server time."""
    _run(_server_time())


def symbols(
    market: Optional[str] = typer.Option(None, "--market", "-m", help="Filter by market, e.g. USDS"),
) -> None:
    """List tradable spot symbols."""
    _run(_symbols(market))


def ticker(symbol: str = typer.Argument(..., help="Spot symbol, e.g. BTC-USDT")) -> None:
    """Show level-1 ticker and 24h stats for a symbol."""
    _run(_ticker(symbol))


def trades(
    symbol: str = typer.Argument(..., help="Spot symbol, e.g. BTC-USDT"),
    limit: int = typer.Option(20, "--limit", "-n", help="Number of trades to show"),
) -> None:
    """Show the most recent public trades."""
    _run(_trades(symbol, limit))


def depth(
    symbol: str = typer.Argument(..., help="Spot symbol, e.g. BTC-USDT"),
    depth: int = typer.Option(10, "--depth", "-d", min=1, max=20, help="Levels per side"),
) -> None:
    """Show the top of the aggregated order book."""
    _run(_depth(symbol, depth))
