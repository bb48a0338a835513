"""Pydantic models for futures push-message payloads."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from pydantic import Field

from kucoin_stream.models.base import KucoinModel
from kucoin_stream.models.enums import (
    FuturesOrderStatus,
    FuturesOrderUpdateType,
    OrderSide,
    StopCondition,
    StopOrderUpdateType,
)


def _from_ms(value: int | None) -> datetime | None:
    if value is None:
        return None
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


def _from_ns(value: int | None) -> datetime | None:
    if value is None:
        return None
    return datetime.fromtimestamp(value / 1_000_000_000, tz=timezone.utc)


# ── Market data ───────────────────────────────────────────────────────


class KucoinStreamFuturesMatch(KucoinModel):
    """A trade execution from '/contractMarket/execution'."""

    symbol: str
    sequence: int
    side: OrderSide
    size: Decimal = Field(description="Contract count")
    price: Decimal
    taker_order_id: str = ""
    maker_order_id: str = ""
    trade_id: str = ""
    ts: int = Field(description="Unix timestamp in nanoseconds")

    @property
    def timestamp(self) -> datetime:
        return _from_ns(self.ts)


class KucoinStreamFuturesTick(KucoinModel):
    """Best bid/ask update from '/contractMarket/tickerV2'."""

    symbol: str
    sequence: int
    best_bid_price: Decimal
    best_bid_size: Decimal
    best_ask_price: Decimal
    best_ask_size: Decimal
    ts: int = Field(description="Unix timestamp in nanoseconds")

    @property
    def timestamp(self) -> datetime:
        return _from_ns(self.ts)

    @property
    def spread(self) -> Decimal:
        return self.best_ask_price - self.best_bid_price


class KucoinFuturesOrderBookChange(KucoinModel):
    """A single level change decoded from the level2 'change' string."""

    sequence: int
    price: Decimal
    side: OrderSide
    quantity: Decimal
    timestamp: int | None = None


class KucoinStreamOrderBookChanged(KucoinModel):
    """Top-N book snapshot from the partial depth streams.

    Levels are [price, quantity] pairs, best first.
    """

    asks: list[tuple[Decimal, Decimal]] = Field(default_factory=list)
    bids: list[tuple[Decimal, Decimal]] = Field(default_factory=list)
    timestamp: int | None = None
    ts: int | None = None

    @property
    def best_ask(self) -> Decimal | None:
        return self.asks[0][0] if self.asks else None

    @property
    def best_bid(self) -> Decimal | None:
        return self.bids[0][0] if self.bids else None

    @property
    def time(self) -> datetime | None:
        return _from_ms(self.timestamp if self.timestamp is not None else self.ts)


class KucoinStreamFuturesMarkIndexPrice(KucoinModel):
    granularity: int
    index_price: Decimal
    mark_price: Decimal
    timestamp: int

    @property
    def time(self) -> datetime:
        return _from_ms(self.timestamp)


class KucoinStreamFuturesFundingRate(KucoinModel):
    granularity: int
    funding_rate: Decimal
    timestamp: int

    @property
    def time(self) -> datetime:
        return _from_ms(self.timestamp)


class KucoinContractAnnouncement(KucoinModel):
    """Funding settlement announcement. `event` carries the message subject."""

    symbol: str
    funding_time: int | None = None
    funding_rate: Decimal | None = None
    timestamp: int | None = None
    event: str = ""


class KucoinStreamTransactionStatisticsUpdate(KucoinModel):
    """Rolling 24 hour statistics from '/contractMarket/snapshot'."""

    symbol: str | None = None
    volume: Decimal
    turnover: Decimal
    last_price: Decimal
    price_chg_pct: Decimal
    ts: int | None = None


# ── Private account data ──────────────────────────────────────────────


class KucoinStreamFuturesOrderUpdate(KucoinModel):
    order_id: str
    symbol: str
    type: FuturesOrderUpdateType
    status: FuturesOrderStatus
    side: OrderSide
    order_type: str | None = None
    price: Decimal | None = None
    size: Decimal | None = None
    remain_size: Decimal | None = None
    filled_size: Decimal | None = None
    canceled_size: Decimal | None = None
    match_size: Decimal | None = None
    match_price: Decimal | None = None
    old_size: Decimal | None = None
    trade_id: str | None = None
    client_oid: str | None = None
    liquidity: str | None = None
    order_time: int | None = None
    ts: int | None = None


class KucoinStreamStopOrderUpdateBase(KucoinModel):
    """Stop-order fields every stop-order stream carries. Futures adds its own on top."""

    order_id: str
    symbol: str
    type: StopOrderUpdateType
    side: OrderSide
    order_type: str | None = None
    size: Decimal | None = None
    order_price: Decimal | None = None
    stop: StopCondition | None = None
    stop_price: Decimal | None = None
    created_at: int | None = None
    ts: int | None = None


class KucoinStreamFuturesStopOrderUpdate(KucoinStreamStopOrderUpdateBase):
    stop_price_type: str | None = None
    trigger_success: bool | None = None
    error: str | None = None
    leverage: Decimal | None = None


class KucoinStreamOrderMarginUpdate(KucoinModel):
    order_margin: Decimal
    asset: str = Field(alias="currency")
    timestamp: int | None = None


class KucoinStreamFuturesBalanceUpdate(KucoinModel):
    available_balance: Decimal
    hold_balance: Decimal | None = None
    asset: str = Field(alias="currency")
    timestamp: int | None = None


class KucoinStreamFuturesWithdrawableUpdate(KucoinModel):
    withdraw_hold: Decimal
    asset: str = Field(alias="currency")
    timestamp: int | None = None


class KucoinPosition(KucoinModel):
    """Position change or settlement from '/contract/position'."""

    symbol: str | None = None
    current_qty: Decimal | None = None
    current_cost: Decimal | None = None
    current_comm: Decimal | None = None
    avg_entry_price: Decimal | None = None
    mark_price: Decimal | None = None
    liquidation_price: Decimal | None = None
    real_leverage: Decimal | None = None
    unrealised_pnl: Decimal | None = None
    realised_pnl: Decimal | None = None
    pos_margin: Decimal | None = None
    is_open: bool | None = None
    change_reason: str | None = None
    settle_currency: str | None = None
    current_timestamp: int | None = None

    @property
    def is_long(self) -> bool:
        return bool(self.current_qty and self.current_qty > 0)
