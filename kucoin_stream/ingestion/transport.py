"""WebSocket transport built on the ``websockets`` reconnecting client.

Fetches a connection token, opens the socket, keeps it alive with the
application-level pings KuCoin expects, and hands every frame to the
manager in arrival order. Reconnection and its backoff are left to
``websockets.asyncio.client.connect`` used as an async iterator.
"""

from __future__ import annotations

import asyncio
import itertools
import uuid
from collections.abc import Awaitable, Callable
from typing import Any

import orjson
import structlog
import websockets
import websockets.asyncio.client

from kucoin_stream.config import AppConfig, get_config
from kucoin_stream.errors import NotConnected
from kucoin_stream.ingestion.ws_client import ConnectionState
from kucoin_stream.ingestion.ws_token import TokenProvider

logger = structlog.get_logger(__name__)

FrameCallback = Callable[[str | bytes], Awaitable[None]]
StateCallback = Callable[[ConnectionState], Awaitable[None]]


class WSTransport:
    """One KuCoin WebSocket connection, kept open until ``close()``."""

    def __init__(
        self,
        name: str,
        token_provider: TokenProvider,
        on_frame: FrameCallback,
        on_state: StateCallback,
        config: AppConfig | None = None,
        next_id: Callable[[], int] | None = None,
    ) -> None:
        self.name = name
        self._token_provider = token_provider
        self._on_frame = on_frame
        self._on_state = on_state
        self._config = config or get_config()
        # Ping ids share the connection's request id sequence when one is given
        self._next_id = next_id or itertools.count(1).__next__

        self._ws: websockets.asyncio.client.ClientConnection | None = None
        self._closing = False
        self._has_connected = False
        self._token_retry_delay = 1.0

    @property
    def is_connected(self) -> bool:
        return self._ws is not None

    async def send(self, payload: dict[str, Any]) -> None:
        ws = self._ws
        if ws is None:
            raise NotConnected(f"{self.name} websocket is not connected")
        await ws.send(orjson.dumps(payload).decode())

    async def close(self) -> None:
        self._closing = True
        if self._ws is not None:
            await self._ws.close()

    # ── Connection lifecycle ──────────────────────────────────────────

    async def run(self) -> None:
        """Connect and pump frames until closed."""
        while not self._closing:
            try:
                token = await self._token_provider()
                server = token.instance_servers[0]
                await self._run_with_token(token.connect_url(uuid.uuid4().hex), server.ping_interval)
                self._token_retry_delay = 1.0
            except websockets.InvalidStatus as e:
                # Usually an expired token; fetch a fresh one.
                logger.error(
                    "websocket_handshake_rejected",
                    conn=self.name,
                    status=e.response.status_code,
                )
            except OSError as e:
                logger.error("websocket_connection_error", conn=self.name, error=str(e))
            except Exception:
                logger.exception("websocket_unexpected_error", conn=self.name)

            if self._closing:
                break
            logger.info("websocket_token_refresh", conn=self.name, delay=self._token_retry_delay)
            await asyncio.sleep(self._token_retry_delay)
            self._token_retry_delay = min(self._token_retry_delay * 2, 60.0)

    async def _run_with_token(self, url: str, ping_interval_ms: int) -> None:
        tuning = self._config.tuning
        async for ws in websockets.asyncio.client.connect(
            url,
            ping_interval=None,  # KuCoin wants JSON pings, not protocol pings
            open_timeout=tuning.ws_open_timeout,
            max_size=tuning.ws_max_message_size,
        ):
            if self._closing:
                await ws.close()
                return
            self._ws = ws
            state = ConnectionState.RECONNECTED if self._has_connected else ConnectionState.CONNECTED
            self._has_connected = True
            logger.info("websocket_connected", conn=self.name, state=state.value)

            ping_task = asyncio.create_task(self._ping_loop(ws, ping_interval_ms / 1000))
            try:
                await self._on_state(state)
                async for raw in ws:
                    await self._on_frame(raw)
            except websockets.ConnectionClosed as e:
                logger.warning("websocket_disconnected", conn=self.name, code=e.code, reason=e.reason)
            finally:
                ping_task.cancel()
                self._ws = None
                await self._on_state(ConnectionState.DISCONNECTED)

            if self._closing:
                return

    async def _ping_loop(self, ws: websockets.asyncio.client.ClientConnection, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                await ws.send(orjson.dumps({"id": str(self._next_id()), "type": "ping"}).decode())
            except websockets.ConnectionClosed:
                return
