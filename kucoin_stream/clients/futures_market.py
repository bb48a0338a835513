"""Futures push-message subscriptions."""

from __future__ import annotations

from collections.abc import Callable
from decimal import Decimal, InvalidOperation
from typing import Any


from kucoin_stream.errors import InvalidParameter
from kucoin_stream.ingestion.dispatcher import HandlerBinding, HandlerTable
from kucoin_stream.ingestion.ws_client import KucoinWSManager, UpdateSubscription
from kucoin_stream.models import (
    DataEvent,
    KucoinContractAnnouncement,
    KucoinFuturesOrderBookChange,
    KucoinPosition,
    KucoinStreamFuturesBalanceUpdate,
    KucoinStreamFuturesFundingRate,
    KucoinStreamFuturesMarkIndexPrice,
    KucoinStreamFuturesMatch,
    KucoinStreamFuturesOrderUpdate,
    KucoinStreamFuturesStopOrderUpdate,
    KucoinStreamFuturesTick,
    KucoinStreamFuturesWithdrawableUpdate,
    KucoinStreamOrderBookChanged,
    KucoinStreamOrderMarginUpdate,
    KucoinStreamStopOrderUpdateBase,
    KucoinStreamTransactionStatisticsUpdate,
    OrderSide,
)

PARTIAL_BOOK_LIMITS = (5, 20, 50)

# Subjects multiplexed on a single topic
SUBJECT_MARK_INDEX_PRICE = "mark.index.price"
SUBJECT_FUNDING_RATE = "funding.rate"
SUBJECT_ORDER_MARGIN = "orderMargin.change"
SUBJECT_AVAILABLE_BALANCE = "availableBalance.change"
SUBJECT_WITHDRAW_HOLD = "withdrawHold.change"

Callback = Callable[[DataEvent[Any]], Any]


def parse_order_book_change(payload: Any) -> KucoinFuturesOrderBookChange | None:
    """Decode a level2 diff whose 'change' field is "price,side,quantity".

    Empty or malformed changes show up as keep-alives; they return None.
    """
    if not isinstance(payload, dict):
        return None
    change = payload.get("change")
    sequence = payload.get("sequence")
    if not change or sequence in (None, ""):
        return None

    items = str(change).split(",")
    if len(items) < 3 or not all(items[:3]):
        return None
    try:
        return KucoinFuturesOrderBookChange(
            sequence=int(sequence),
            price=Decimal(items[0]),
            side=OrderSide.SELL if items[1] == "sell" else OrderSide.BUY,
            quantity=Decimal(items[2]),
            timestamp=payload.get("timestamp"),
        )
    except (InvalidOperation, ValueError):
        return None


def require_symbol(symbol: str | None) -> str:
    if not symbol or not isinstance(symbol, str):
        raise InvalidParameter("symbol", symbol)
    return symbol


class KucoinSocketClientFuturesMarket:
    """One method per futures stream. Each returns an UpdateSubscription."""

    def __init__(self, manager: KucoinWSManager) -> None:
        self._manager = manager

    async def subscribe_to_trade_updates(
        self, symbol: str, on_data: Callback, timeout: float | None = None
    ) -> UpdateSubscription:
        symbol = require_symbol(symbol)
        return await self._manager.subscribe(
            f"/contractMarket/execution:{symbol}",
            HandlerTable.single(HandlerBinding(KucoinStreamFuturesMatch, on_data)),
            symbol=symbol,
            timeout=timeout,
        )

    async def subscribe_to_ticker_updates(
        self, symbol: str, on_data: Callback, timeout: float | None = None
    ) -> UpdateSubscription:
        symbol = require_symbol(symbol)
        return await self._manager.subscribe(
            f"/contractMarket/tickerV2:{symbol}",
            HandlerTable.single(HandlerBinding(KucoinStreamFuturesTick, on_data)),
            symbol=symbol,
            timeout=timeout,
        )

    async def subscribe_to_order_book_updates(
        self, symbol: str, on_data: Callback, timeout: float | None = None
    ) -> UpdateSubscription:
        symbol = require_symbol(symbol)
        binding = HandlerBinding(
            KucoinFuturesOrderBookChange, on_data, parser=parse_order_book_change
        )
        return await self._manager.subscribe(
            f"/contractMarket/level2:{symbol}",
            HandlerTable.single(binding),
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
            f"/contractMarket/level2Depth{limit}:{symbol}",
            HandlerTable.single(HandlerBinding(KucoinStreamOrderBookChanged, on_data)),
            symbol=symbol,
            timeout=timeout,
        )

    async def subscribe_to_market_updates(
        self,
        symbol: str,
        on_mark_index_price: Callback,
        on_funding_rate: Callback,
        timeout: float | None = None,
    ) -> UpdateSubscription:
        """Mark/index price and funding rate share '/contract/instrument'."""
        symbol = require_symbol(symbol)
        handlers = HandlerTable.by_subject(
            {
                SUBJECT_MARK_INDEX_PRICE: HandlerBinding(
                    KucoinStreamFuturesMarkIndexPrice, on_mark_index_price
                ),
                SUBJECT_FUNDING_RATE: HandlerBinding(
                    KucoinStreamFuturesFundingRate, on_funding_rate
                ),
            }
        )
        return await self._manager.subscribe(
            f"/contract/instrument:{symbol}", handlers, symbol=symbol, timeout=timeout
        )

    async def subscribe_to_system_announcements(
        self, on_data: Callback, timeout: float | None = None
    ) -> UpdateSubscription:
        binding = HandlerBinding(
            KucoinContractAnnouncement, on_data, symbol_field="symbol", subject_field="event"
        )
        return await self._manager.subscribe(
            "/contract/announcement", HandlerTable.single(binding), timeout=timeout
        )

    async def subscribe_to_24hour_snapshot_updates(
        self, symbol: str, on_data: Callback, timeout: float | None = None
    ) -> UpdateSubscription:
        symbol = require_symbol(symbol)
        return await self._manager.subscribe(
            f"/contractMarket/snapshot:{symbol}",
            HandlerTable.single(HandlerBinding(KucoinStreamTransactionStatisticsUpdate, on_data)),
            symbol=symbol,
            timeout=timeout,
        )

    # ── Private streams ───────────────────────────────────────────────

    async def subscribe_to_order_updates(
        self, symbol: str | None, on_data: Callback, timeout: float | None = None
    ) -> UpdateSubscription:
        """Order updates for one symbol, or for every symbol when symbol is None."""
        topic = "/contractMarket/tradeOrders"
        if symbol is not None:
            topic += f":{require_symbol(symbol)}"
        binding = HandlerBinding(KucoinStreamFuturesOrderUpdate, on_data, symbol_field="symbol")
        return await self._manager.subscribe(
            topic,
            HandlerTable.single(binding),
            symbol=symbol,
            requires_auth=True,
            timeout=timeout,
        )

    async def subscribe_to_stop_order_updates(
        self, on_data: Callback, timeout: float | None = None
    ) -> UpdateSubscription:
        """Stop order updates. Events carry a KucoinStreamStopOrderUpdateBase.

        The stream sends the wider futures payload; it is parsed in full
        and handed over as its base type.
        """
        binding = HandlerBinding(
            KucoinStreamStopOrderUpdateBase,
            on_data,
            parser=KucoinStreamFuturesStopOrderUpdate.model_validate,
            symbol_field="symbol",
        )
        return await self._manager.subscribe(
            "/contractMarket/advancedOrders",
            HandlerTable.single(binding),
            requires_auth=True,
            timeout=timeout,
        )

    async def subscribe_to_balance_updates(
        self,
        on_order_margin_update: Callback,
        on_balance_update: Callback,
        on_withdrawable_update: Callback,
        timeout: float | None = None,
    ) -> UpdateSubscription:
        """Three wallet event kinds share '/contractAccount/wallet'."""
        handlers = HandlerTable.by_subject(
            {
                SUBJECT_ORDER_MARGIN: HandlerBinding(
                    KucoinStreamOrderMarginUpdate, on_order_margin_update, symbol_field="asset"
                ),
                SUBJECT_AVAILABLE_BALANCE: HandlerBinding(
                    KucoinStreamFuturesBalanceUpdate, on_balance_update, symbol_field="asset"
                ),
                SUBJECT_WITHDRAW_HOLD: HandlerBinding(
                    KucoinStreamFuturesWithdrawableUpdate,
                    on_withdrawable_update,
                    symbol_field="asset",
                ),
            }
        )
        return await self._manager.subscribe(
            "/contractAccount/wallet", handlers, requires_auth=True, timeout=timeout
        )

    async def subscribe_to_position_updates(
        self, symbol: str, on_data: Callback, timeout: float | None = None
    ) -> UpdateSubscription:
        symbol = require_symbol(symbol)
        return await self._manager.subscribe(
            f"/contract/position:{symbol}",
            HandlerTable.single(HandlerBinding(KucoinPosition, on_data)),
            symbol=symbol,
            requires_auth=True,
            timeout=timeout,
        )
