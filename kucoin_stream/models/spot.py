"""Pydantic models for spot push-message payloads."""

from __future__ import annotations

from decimal import Decimal

from pydantic import Field

from kucoin_stream.models.base import KucoinModel
from kucoin_stream.models.enums import OrderSide


class KucoinStreamMatch(KucoinModel):
    """A trade execution from '/market/match'."""

    symbol: str
    sequence: int
    side: OrderSide
    price: Decimal
    size: Decimal
    taker_order_id: str = ""
    maker_order_id: str = ""
    trade_id: str = ""
    time: int | None = Field(default=None, description="Unix timestamp in nanoseconds")


class KucoinStreamTick(KucoinModel):
    """Level-1 update from '/market/ticker'. The symbol comes from the topic."""

    sequence: int
    price: Decimal
    size: Decimal
    best_ask: Decimal
    best_ask_size: Decimal
    best_bid: Decimal
    best_bid_size: Decimal
    time: int | None = None


class KucoinStreamOrderUpdate(KucoinModel):
    order_id: str
    symbol: str
    type: str
    side: OrderSide
    status: str | None = None
    order_type: str | None = None
    price: Decimal | None = None
    size: Decimal | None = None
    filled_size: Decimal | None = None
    remain_size: Decimal | None = None
    match_price: Decimal | None = None
    match_size: Decimal | None = None
    trade_id: str | None = None
    client_oid: str | None = None
    liquidity: str | None = None
    order_time: int | None = None
    ts: int | None = None


class KucoinStreamBalanceUpdate(KucoinModel):
    asset: str = Field(alias="currency")
    total: Decimal
    available: Decimal
    hold: Decimal
    available_change: Decimal | None = None
    hold_change: Decimal | None = None
    relation_event: str | None = None
    relation_event_id: str | None = None
    time: int | None = None
