"""Spot push-message subscriptions."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from kucoin_stream.clients.futures_market import require_symbol
from kucoin_stream.errors import InvalidParameter
from kucoin_stream.ingestion.dispatcher import HandlerBinding, HandlerTable
from kucoin_stream.ingestion.ws_client import KucoinWSManager, UpdateSubscription
from kucoin_stream.models import (
    DataEvent,
    KucoinStreamBalanceUpdate,
    KucoinStreamMatch,
    KucoinStreamOrderBookChanged,
    KucoinStreamOrderUpdate,
    KucoinStreamTick,
)

PARTIAL_BOOK_LIMITS = (5, 50)

Callback = Callable[[DataEvent[Any]], Any]


class KucoinSocketClientSpotMarket:
    def __init__(self, manager: KucoinWSManager) -> None:
        self._manager = manager

    async def subscribe_to_trade_updates(
        self, symbol: str, on_data: Callback, timeout: float | None = None
    ) -> UpdateSubscription:
        symbol = require_symbol(symbol)
        return await self._manager.subscribe(
            f"/market/match:{symbol}",
            HandlerTable.single(HandlerBinding(KucoinStreamMatch, on_data)),
            symbol=symbol,
            timeout=timeout,
        )

    async def subscribe_to_ticker_updates(
        self, symbol: str, on_data: Callback, timeout: float | None = None
    ) -> UpdateSubscription:
        symbol = require_symbol(symbol)
        return await self._manager.subscribe(
            f"/market/ticker:{symbol}",
            HandlerTable.single(HandlerBinding(KucoinStreamTick, on_data)),
            symbol=symbol,
            timeout=timeout,
        )

    async def subscribe_to_partial_order_book_updates(
        self, symbol: str, limit: int, on_data: Callback, timeout: float | None = None
    ) -> UpdateSubscription:
        symbol = require_symbol(symbol)
        if limit not in PARTIAL_BOOK_LIMITS:
            raise InvalidParameter("limit", limit, PARTIAL_BOOK_LIMITS)
        return await self._manager.subscribe(
            f"/spotMarket/level2Depth{limit}:{symbol}",
            HandlerTable.single(HandlerBinding(KucoinStreamOrderBookChanged, on_data)),
            symbol=symbol,
            timeout=timeout,
        )

    async def subscribe_to_order_updates(
        self, on_data: Callback, timeout: float | None = None
    ) -> UpdateSubscription:
        binding = HandlerBinding(KucoinStreamOrderUpdate, on_data, symbol_field="symbol")
        return await self._manager.subscribe(
            "/spotMarket/tradeOrders",
            HandlerTable.single(binding),
            requires_auth=True,
            timeout=timeout,
        )

    async def subscribe_to_balance_updates(
        self, on_data: Callback, timeout: float | None = None
    ) -> UpdateSubscription:
        binding = HandlerBinding(KucoinStreamBalanceUpdate, on_data, symbol_field="asset")
        return await self._manager.subscribe(
            "/account/balance",
            HandlerTable.single(binding),
            requires_auth=True,
            timeout=timeout,
        )
