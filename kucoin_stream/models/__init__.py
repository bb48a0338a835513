from .events import DataEvent
from .enums import (
    FuturesOrderStatus,
    FuturesOrderUpdateType,
    KlineInterval,
    OrderSide,
    StopCondition,
    StopOrderUpdateType,
)
from .futures import (
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
)
from .spot import (
    KucoinStreamBalanceUpdate,
    KucoinStreamMatch,
    KucoinStreamOrderUpdate,
    KucoinStreamTick,
)
from .rest import (
    Kucoin24HourStat,
    KucoinAllTick,
    KucoinAsset,
    KucoinKline,
    KucoinOrderBook,
    KucoinSymbol,
    KucoinTick,
    KucoinTicks,
    KucoinTrade,
)

__all__ = [
    "DataEvent",
    "FuturesOrderStatus",
    "FuturesOrderUpdateType",
    "KlineInterval",
    "OrderSide",
    "StopCondition",
    "StopOrderUpdateType",
    "KucoinContractAnnouncement",
    "KucoinFuturesOrderBookChange",
    "KucoinPosition",
    "KucoinStreamFuturesBalanceUpdate",
    "KucoinStreamFuturesFundingRate",
    "KucoinStreamFuturesMarkIndexPrice",
    "KucoinStreamFuturesMatch",
    "KucoinStreamFuturesOrderUpdate",
    "KucoinStreamFuturesStopOrderUpdate",
    "KucoinStreamFuturesTick",
    "KucoinStreamFuturesWithdrawableUpdate",
    "KucoinStreamOrderBookChanged",
    "KucoinStreamOrderMarginUpdate",
    "KucoinStreamStopOrderUpdateBase",
    "KucoinStreamTransactionStatisticsUpdate",
    "KucoinStreamBalanceUpdate",
    "KucoinStreamMatch",
    "KucoinStreamOrderUpdate",
    "KucoinStreamTick",
    "Kucoin24HourStat",
    "KucoinAllTick",
    "KucoinAsset",
    "KucoinKline",
    "KucoinOrderBook",
    "KucoinSymbol",
    "KucoinTick",
    "KucoinTicks",
    "KucoinTrade",
]
