"""Top-level KuCoin socket client: one connection each for spot and futures."""

from __future__ import annotations

import asyncio

import structlog

from kucoin_stream.clients.futures_market import KucoinSocketClientFuturesMarket
from kucoin_stream.clients.spot_market import KucoinSocketClientSpotMarket
from kucoin_stream.config import AppConfig, get_config
from kucoin_stream.ingestion.rest_client import KucoinRESTClient
from kucoin_stream.ingestion.transport import WSTransport
from kucoin_stream.ingestion.ws_client import KucoinWSManager
from kucoin_stream.ingestion.ws_token import PublicTokenProvider, TokenProvider

logger = structlog.get_logger(__name__)


class KucoinSocketClient:
    """
    Entry point for KuCoin push-message streams.

    Subscriptions made before ``start()`` are sent as soon as each
    connection opens. Private streams need API credentials in the config
    and a token provider returning private connection tokens.

    Usage:
        async with KucoinSocketClient() as client:
            await client.futures.subscribe_to_ticker_updates("XBTUSDM", on_tick)
            await client.run_forever()
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        spot_token_provider: TokenProvider | None = None,
        futures_token_provider: TokenProvider | None = None,
    ) -> None:
        self._config = config or get_config()
        authenticated = self._config.kucoin.has_credentials
        self._rest_clients: list[KucoinRESTClient] = []

        self.spot_manager = KucoinWSManager("spot", authenticated, self._config)
        self.futures_manager = KucoinWSManager("futures", authenticated, self._config)

        self._transports = [
            self._build_transport(
                self.spot_manager,
                spot_token_provider,
                self._config.kucoin.spot_rest_url,
            ),
            self._build_transport(
                self.futures_manager,
                futures_token_provider,
                self._config.kucoin.futures_rest_url,
            ),
        ]
        self._tasks: list[asyncio.Task] = []

        self.spot = KucoinSocketClientSpotMarket(self.spot_manager)
        self.futures = KucoinSocketClientFuturesMarket(self.futures_manager)

    def _build_transport(
        self,
        manager: KucoinWSManager,
        token_provider: TokenProvider | None,
        rest_url: str,
    ) -> WSTransport:
        if token_provider is None:
            rest = KucoinRESTClient(rest_url, timeout=self._config.tuning.rest_timeout)
            self._rest_clients.append(rest)
            token_provider = PublicTokenProvider(rest)
        transport = WSTransport(
            manager.name,
            token_provider,
            on_frame=manager.on_frame,
            on_state=manager.on_connection_state,
            config=self._config,
            next_id=manager.registry.next_id,
        )
        manager.attach(transport)
        return transport

    async def start(self) -> None:
        """Start both connections in the background."""
        if self._tasks:
            return
        for transport in self._transports:
            self._tasks.append(asyncio.create_task(transport.run(), name=f"ws-{transport.name}"))
        logger.info("socket_client_started")

    async def run_forever(self) -> None:
        await self.start()
        await asyncio.gather(*self._tasks)

    async def close(self) -> None:
        for transport in self._transports:
            await transport.close()
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()
        await self.spot_manager.close()
        await self.futures_manager.close()
        for rest in self._rest_clients:
            await rest.close()
        logger.info("socket_client_closed")

    async def __aenter__(self) -> KucoinSocketClient:
        await self.start()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()
