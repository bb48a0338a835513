"""Async REST client for KuCoin's public spot market-data endpoints."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Iterable
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

import httpx
import structlog

from kucoin_stream.errors import InvalidParameter, KucoinAPIError
from kucoin_stream.ingestion.ws_token import ConnectionToken
from kucoin_stream.models import (
    Kucoin24HourStat,
    KucoinAsset,
    KlineInterval,
    KucoinKline,
    KucoinOrderBook,
    KucoinSymbol,
    KucoinTick,
    KucoinTicks,
    KucoinTrade,
)

logger = structlog.get_logger(__name__)

SUCCESS_CODE = "200000"
PARTIAL_BOOK_LIMITS = (20, 100)


class KucoinRESTClient:
    """Unauthenticated async HTTP client for the KuCoin REST API."""

    def __init__(
        self,
        base_url: str = "https://api.kucoin.com",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout,
            transport=transport,
        )
        self._rate_limit_remaining: int | None = None
        self._rate_limit_reset: float | None = None

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> KucoinRESTClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        """Make a request, unwrap the KuCoin envelope, respect rate limits."""
        if self._rate_limit_remaining is not None and self._rate_limit_remaining <= 1:
            if self._rate_limit_reset:
                wait = max(0.0, self._rate_limit_reset - time.monotonic())
                if wait > 0:
                    logger.warning("rate_limit_wait", wait_seconds=wait)
                    await asyncio.sleep(wait)

        response = await self._client.request(method, path, **kwargs)

        # gw-ratelimit-reset is milliseconds until the window resets
        if "gw-ratelimit-remaining" in response.headers:
            self._rate_limit_remaining = int(response.headers["gw-ratelimit-remaining"])
        if "gw-ratelimit-reset" in response.headers:
            self._rate_limit_reset = (
                time.monotonic() + int(response.headers["gw-ratelimit-reset"]) / 1000
            )

        response.raise_for_status()
        body = response.json()
        code = str(body.get("code", ""))
        if code != SUCCESS_CODE:
            logger.warning("api_error", path=path, code=code, msg=body.get("msg"))
            raise KucoinAPIError(code, body.get("msg", ""))
        return body.get("data")

    async def get(self, path: str, params: dict | None = None) -> Any:
        return await self._request("GET", path, params=params)

    async def get_server_time(self) -> datetime:
        """GET /api/v1/timestamp"""
        ms = await self.get("/api/v1/timestamp")
        return datetime.fromtimestamp(int(ms) / 1000, tz=timezone.utc)

    async def get_symbols(self, market: str | None = None) -> list[KucoinSymbol]:
        """GET /api/v2/symbols"""
        params = {"market": market} if market else None
        data = await self.get("/api/v2/symbols", params=params)
        return [KucoinSymbol.model_validate(s) for s in data or []]

    async def get_ticker(self, symbol: str) -> KucoinTick:
        """GET /api/v1/market/orderbook/level1"""
        data = await self.get("/api/v1/market/orderbook/level1", params={"symbol": symbol})
        return KucoinTick.model_validate(data)

    async def get_tickers(self) -> KucoinTicks:
        """GET /api/v1/market/allTickers"""
        return KucoinTicks.model_validate(await self.get("/api/v1/market/allTickers"))

    async def get_24hour_stats(self, symbol: str) -> Kucoin24HourStat:
        """GET /api/v1/market/stats"""
        data = await self.get("/api/v1/market/stats", params={"symbol": symbol})
        return Kucoin24HourStat.model_validate(data)

    async def get_markets(self) -> list[str]:
        """GET /api/v1/markets"""
        return list(await self.get("/api/v1/markets") or [])

    async def get_aggregated_partial_order_book(self, symbol: str, limit: int) -> KucoinOrderBook:
        """GET /api/v1/market/orderbook/level2_{20|100}"""
        if limit not in PARTIAL_BOOK_LIMITS:
            raise InvalidParameter("limit", limit, PARTIAL_BOOK_LIMITS)
        data = await self.get(
            f"/api/v1/market/orderbook/level2_{limit}", params={"symbol": symbol}
        )
        return KucoinOrderBook.model_validate(data)

    async def get_trade_history(self, symbol: str) -> list[KucoinTrade]:
        """GET /api/v1/market/histories"""
        data = await self.get("/api/v1/market/histories", params={"symbol": symbol})
        return [KucoinTrade.model_validate(t) for t in data or []]

    async def get_klines(
        self,
        symbol: str,
        interval: KlineInterval,
        start_time: datetime | None = None,
        end_time: datetime | None = None,
    ) -> list[KucoinKline]:
        """GET /api/v1/market/candles (newest first, as the API returns them)"""
        params: dict[str, Any] = {"symbol": symbol, "type": KlineInterval(interval).value}
        if start_time:
            params["startAt"] = int(start_time.timestamp())
        if end_time:
            params["endAt"] = int(end_time.timestamp())
        data = await self.get("/api/v1/market/candles", params=params)
        return [KucoinKline.from_row(row) for row in data or []]

    async def get_assets(self) -> list[KucoinAsset]:
        """GET /api/v1/currencies"""
        data = await self.get("/api/v1/currencies")
        return [KucoinAsset.model_validate(a) for a in data or []]

    async def get_asset(self, asset: str) -> KucoinAsset:
        """GET /api/v1/currencies/{asset}"""
        return KucoinAsset.model_validate(await self.get(f"/api/v1/currencies/{asset}"))

    async def get_fiat_prices(
        self,
        fiat_base: str | None = None,
        assets: Iterable[str] | None = None,
    ) -> dict[str, Decimal]:
        """GET /api/v1/prices"""
        params: dict[str, Any] = {}
        if fiat_base:
            params["base"] = fiat_base
        if assets:
            params["currencies"] = ",".join(assets)
        data = await self.get("/api/v1/prices", params=params or None)
        return {asset: Decimal(str(price)) for asset, price in (data or {}).items()}

    async def get_public_ws_token(self) -> ConnectionToken:
        """POST /api/v1/bullet-public"""
        data = await self._request("POST", "/api/v1/bullet-public")
        return ConnectionToken.model_validate(data)
