"""kucoin-stream CLI entry point.

Usage:
    python -m kucoin_stream.cli.main [COMMAND] [OPTIONS]

Or via the installed console script:
    kucoin-stream [COMMAND] [OPTIONS]
"""

from __future__ import annotations

import typer

from kucoin_stream.cli.commands import market, watch

app = typer.Typer(
    name="kucoin-stream",
    help="kucoin-stream -- KuCoin market data from the command line",
    no_args_is_help=True,
    add_completion=False,
    pretty_exceptions_enable=True,
)

app.command(name="server-time", help="Exchange server time")(market.server_time)
app.command(name="symbols", help="List spot symbols")(market.symbols)
app.command(name="ticker", help="Spot ticker and 24h stats")(market.ticker)
app.command(name="trades", help="Recent spot trades")(market.trades)
app.command(name="depth", help="Spot order book snapshot")(market.depth)
app.command(name="watch", help="Print a live WebSocket stream")(watch.watch)


if __name__ == "__main__":
    app()
