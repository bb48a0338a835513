"""Enumerations used by KuCoin payloads."""

from __future__ import annotations

from enum import Enum


class OrderSide(str, Enum):
    BUY = "buy"
    SELL = "sell"


class FuturesOrderStatus(str, Enum):
    """Order status as reported on the futures order stream."""

    MATCH = "match"
    OPEN = "open"
    DONE = "done"


class FuturesOrderUpdateType(str, Enum):
    OPEN = "open"
    MATCH = "match"
    FILLED = "filled"
    CANCELED = "canceled"
    UPDATE = "update"


class StopOrderUpdateType(str, Enum):
    OPEN = "open"
    TRIGGERED = "triggered"
    CANCEL = "cancel"


class StopCondition(str, Enum):
    UP = "up"
    DOWN = "down"


class KlineInterval(str, Enum):
    ONE_MINUTE = "1min"
    THREE_MINUTES = "3min"
    FIVE_MINUTES = "5min"
    FIFTEEN_MINUTES = "15min"
    THIRTY_MINUTES = "30min"
    ONE_HOUR = "1hour"
    TWO_HOURS = "2hour"
    FOUR_HOURS = "4hour"
    SIX_HOURS = "6hour"
    EIGHT_HOURS = "8hour"
    TWELVE_HOURS = "12hour"
    ONE_DAY = "1day"
    ONE_WEEK = "1week"
