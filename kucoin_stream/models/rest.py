"""Pydantic models for spot market-data REST responses."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from pydantic import Field

from kucoin_stream.models.base import KucoinModel
from kucoin_stream.models.enums import OrderSide


class KucoinSymbol(KucoinModel):
    symbol: str
    name: str
    base_currency: str
    quote_currency: str
    fee_currency: str | None = None
    market: str | None = None
    base_min_size: Decimal
    quote_min_size: Decimal
    base_max_size: Decimal
    quote_max_size: Decimal
    base_increment: Decimal
    quote_increment: Decimal
    price_increment: Decimal
    price_limit_rate: Decimal | None = None
    min_funds: Decimal | None = None
    is_margin_enabled: bool = False
    enable_trading: bool = True


class KucoinTick(KucoinModel):
    """Level-1 ticker for one symbol."""

    sequence: str
    price: Decimal
    size: Decimal
    best_bid: Decimal
    best_bid_size: Decimal
    best_ask: Decimal
    best_ask_size: Decimal
    time: int


class KucoinAllTick(KucoinModel):
    symbol: str
    symbol_name: str | None = None
    buy: Decimal | None = None
    sell: Decimal | None = None
    change_rate: Decimal | None = None
    change_price: Decimal | None = None
    high: Decimal | None = None
    low: Decimal | None = None
    vol: Decimal | None = None
    vol_value: Decimal | None = None
    last: Decimal | None = None
    average_price: Decimal | None = None


class KucoinTicks(KucoinModel):
    time: int
    ticker: list[KucoinAllTick] = Field(default_factory=list)


class Kucoin24HourStat(KucoinModel):
    symbol: str
    time: int
    buy: Decimal | None = None
    sell: Decimal | None = None
    change_rate: Decimal | None = None
    change_price: Decimal | None = None
    high: Decimal | None = None
    low: Decimal | None = None
    vol: Decimal | None = None
    vol_value: Decimal | None = None
    last: Decimal | None = None
    average_price: Decimal | None = None


class KucoinOrderBook(KucoinModel):
    sequence: str
    time: int
    bids: list[tuple[Decimal, Decimal]] = Field(default_factory=list)
    asks: list[tuple[Decimal, Decimal]] = Field(default_factory=list)


class KucoinTrade(KucoinModel):
    sequence: str
    price: Decimal
    size: Decimal
    side: OrderSide
    time: int = Field(description="Unix timestamp in nanoseconds")


class KucoinKline(KucoinModel):
    """One candle. The API sends these as positional string arrays."""

    open_time: datetime
    open_price: Decimal
    close_price: Decimal
    high_price: Decimal
    low_price: Decimal
    volume: Decimal
    quote_volume: Decimal

    @classmethod
    def from_row(cls, row: list[str]) -> KucoinKline:
        return cls(
            open_time=datetime.fromtimestamp(int(row[0]), tz=timezone.utc),
            open_price=row[1],
            close_price=row[2],
            high_price=row[3],
            low_price=row[4],
            volume=row[5],
            quote_volume=row[6],
        )


class KucoinAsset(KucoinModel):
    currency: str
    name: str
    full_name: str | None = None
    precision: int
    confirms: int | None = None
    contract_address: str | None = None
    is_margin_enabled: bool = False
    is_debit_enabled: bool = False
