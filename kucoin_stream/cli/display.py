"""Rich console formatting helpers for the kucoin-stream CLI."""

from __future__ import annotations

from decimal import Decimal

from rich.console import Console
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

from kucoin_stream.models import KucoinOrderBook, KucoinSymbol, KucoinTrade

THEME = Theme(
    {
        "buy": "bold green",
        "sell": "bold red",
        "header": "bold cyan",
        "muted": "dim",
    }
)

console = Console(theme=THEME)


def format_side(side: str | None) -> Text:
    if side is None:
        return Text("--", style="dim")
    return Text(side.upper(), style="buy" if side == "buy" else "sell")


def format_decimal(value: Decimal | None) -> str:
    if value is None:
        return "--"
    return f"{value.normalize():f}"


def create_symbols_table(symbols: list[KucoinSymbol]) -> Table:
    table = Table(title="Symbols", header_style="header")
    table.add_column("Symbol", style="bold")
    table.add_column("Market")
    table.add_column("Min size", justify="right")
    table.add_column("Price step", justify="right")
    table.add_column("Trading")
    for s in symbols:
        table.add_row(
            s.symbol,
            s.market or "--",
            format_decimal(s.base_min_size),
            format_decimal(s.price_increment),
            "yes" if s.enable_trading else "[muted]no[/muted]",
        )
    return table


def create_trades_table(symbol: str, trades: list[KucoinTrade]) -> Table:
    table = Table(title=f"Recent trades {symbol}", header_style="header")
    table.add_column("Side")
    table.add_column("Price", justify="right")
    table.add_column("Size", justify="right")
    for t in trades:
        table.add_row(format_side(t.side.value), format_decimal(t.price), format_decimal(t.size))
    return table


def create_book_table(symbol: str, book: KucoinOrderBook, depth: int) -> Table:
    table = Table(title=f"Order book {symbol}", header_style="header")
    table.add_column("Bid size", justify="right", style="buy")
    table.add_column("Bid", justify="right", style="buy")
    table.add_column("Ask", justify="right", style="sell")
    table.add_column("Ask size", justify="right", style="sell")
    for i in range(depth):
        bid = book.bids[i] if i < len(book.bids) else None
        ask = book.asks[i] if i < len(book.asks) else None
        table.add_row(
            format_decimal(bid[1]) if bid else "",
            format_decimal(bid[0]) if bid else "",
            format_decimal(ask[0]) if ask else "",
            format_decimal(ask[1]) if ask else "",
        )
    return table
