"""Shared test fixtures for the kucoin-stream test suite."""

from __future__ import annotations

import asyncio
from typing import Any
from unittest.mock import MagicMock

import orjson
import pytest

from kucoin_stream.errors import NotConnected
from kucoin_stream.ingestion.ws_client import ConnectionState, KucoinWSManager


class FakeTransport:
    """Records sent frames and answers subscribe/unsubscribe like the server would.

    With ``serial=True`` replies go to ``inbox`` and only reach the manager
    through ``pump()``, one item at a time, as frames do on a real socket.
    Connection states put on ``inbox`` are delivered the same way.
    """

    def __init__(self, connected: bool = True, auto_ack: bool = True, serial: bool = False) -> None:
        self.is_connected = connected
        self.auto_ack = auto_ack
        self.reject_topics: set[str] = set()
        self.sent: list[dict[str, Any]] = []
        self.manager: KucoinWSManager | None = None
        self.serial = serial
        self.inbox: asyncio.Queue = asyncio.Queue()
        self._tasks: list[asyncio.Task] = []

    async def send(self, payload: dict[str, Any]) -> None:
        if not self.is_connected:
            raise NotConnected("fake transport is down")
        self.sent.append(payload)
        if self.manager is None or payload.get("type") not in ("subscribe", "unsubscribe"):
            return
        if payload["topic"] in self.reject_topics:
            reply = {"id": payload["id"], "type": "error", "code": 404, "data": "topic not found"}
        elif self.auto_ack:
            reply = {"id": payload["id"], "type": "ack"}
        else:
            return
        if self.serial:
            self.inbox.put_nowait(orjson.dumps(reply))
        else:
            self._tasks.append(asyncio.create_task(self.manager.on_frame(orjson.dumps(reply))))

    async def pump(self) -> None:
        while True:
            item = await self.inbox.get()
            if isinstance(item, ConnectionState):
                await self.manager.on_connection_state(item)
            else:
                await self.manager.on_frame(item)

    def sent_of_type(self, frame_type: str) -> list[dict[str, Any]]:
        return [p for p in self.sent if p.get("type") == frame_type]


def message_frame(topic: str, data: Any, subject: str | None = None) -> bytes:
    frame: dict[str, Any] = {"type": "message", "topic": topic, "data": data}
    if subject is not None:
        frame["subject"] = subject
    return orjson.dumps(frame)


@pytest.fixture
def mock_config() -> MagicMock:
    config = MagicMock()
    config.tuning.ws_ack_timeout = 0.5
    config.tuning.ws_stats_interval = 60
    return config


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def manager(transport: FakeTransport, mock_config: MagicMock) -> KucoinWSManager:
    """An authenticated manager wired to a connected fake transport."""
    mgr = KucoinWSManager("futures", authenticated=True, config=mock_config, transport=transport)
    transport.manager = mgr
    return mgr


@pytest.fixture
def public_manager(transport: FakeTransport, mock_config: MagicMock) -> KucoinWSManager:
    """A manager built without API credentials."""
    mgr = KucoinWSManager("futures", authenticated=False, config=mock_config, transport=transport)
    transport.manager = mgr
    return mgr


@pytest.fixture
def sample_futures_match() -> dict:
    return {
        "symbol": "XBTUSDM",
        "sequence": 36,
        "side": "buy",
        "size": 1,
        "price": 3200.00,
        "takerOrderId": "5c9dcf4170744d6f5a3d32fb",
        "makerOrderId": "5c9d852070744d0976909a0c",
        "tradeId": "5c9dcf4170744d6f5a3d32fc",
        "ts": 1553846281766256031,
    }


@pytest.fixture
def sample_futures_tick() -> dict:
    return {
        "symbol": "XBTUSDM",
        "sequence": 1638296,
        "bestBidSize": 795,
        "bestBidPrice": "3200.0",
        "bestAskPrice": "3600.0",
        "bestAskSize": 284,
        "ts": 1553846081210004941,
    }


@pytest.fixture
def sample_partial_book() -> dict:
    return {
        "sequence": 1658,
        "asks": [["9993", "3"], ["9994", "2"]],
        "bids": [["9989", "8"], ["9988", "1"]],
        "ts": 1604643014000,
        "timestamp": 1604643014000,
    }


@pytest.fixture
def sample_futures_order_update() -> dict:
    return {
        "orderId": "5cdfc138b21023a909e5ad55",
        "symbol": "XBTUSDM",
        "type": "match",
        "status": "open",
        "matchSize": "",
        "matchPrice": "3600",
        "orderType": "limit",
        "side": "buy",
        "price": "3600",
        "size": "20000",
        "remainSize": "20001",
        "filledSize": "20000",
        "canceledSize": "0",
        "tradeId": "5ce24c16b210233c36eexxxx",
        "clientOid": "5ce24c16b210233c36ee321d",
        "orderTime": 1545914149935808589,
        "liquidity": "maker",
        "ts": 1545914149935808589,
    }


@pytest.fixture
def sample_stop_order_update() -> dict:
    return {
        "orderId": "5cdfc138b21023a909e5ad55",
        "symbol": "XBTUSDM",
        "type": "open",
        "orderType": "stop",
        "side": "buy",
        "size": "1000",
        "orderPrice": "9000",
        "stop": "up",
        "stopPrice": "9100",
        "stopPriceType": "TP",
        "triggerSuccess": True,
        "error": "error.createOrder.accountBalanceInsufficient",
        "createdAt": 1558074652423,
        "ts": 1558074652423004000,
    }


@pytest.fixture
def sample_position() -> dict:
    return {
        "symbol": "XBTUSDM",
        "realisedGrossPnl": 0E-8,
        "currentQty": 2,
        "currentCost": "0.0001",
        "currentComm": "0.00000006",
        "avgEntryPrice": 20000,
        "markPrice": 20100.5,
        "liquidationPrice": 15000,
        "realLeverage": 2.5,
        "unrealisedPnl": 0.00000100,
        "realisedPnl": -0.00000006,
        "posMargin": 0.00005,
        "isOpen": True,
        "changeReason": "positionChange",
        "settleCurrency": "XBT",
        "currentTimestamp": 1558506060394,
    }


@pytest.fixture
def make_frame():
    """Build a raw pushed 'message' frame."""
    return message_frame


@pytest.fixture
async def serial_manager(mock_config: MagicMock):
    """A manager fed by a single frame pump, with its fake transport."""
    transport = FakeTransport(serial=True)
    mgr = KucoinWSManager("futures", authenticated=True, config=mock_config, transport=transport)
    transport.manager = mgr
    pump = asyncio.create_task(transport.pump())
    yield mgr, transport
    pump.cancel()
    await asyncio.gather(pump, return_exceptions=True)
    await mgr.close()
