"""Connection tokens ("bullets") needed to open a KuCoin WebSocket."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING
from urllib.parse import urlencode

from pydantic import Field

from kucoin_stream.models.base import KucoinModel

if TYPE_CHECKING:
    from kucoin_stream.ingestion.rest_client import KucoinRESTClient


class InstanceServer(KucoinModel):
    endpoint: str
    encrypt: bool = True
    protocol: str = "websocket"
    ping_interval: int = Field(default=18000, description="Milliseconds")
    ping_timeout: int = Field(default=10000, description="Milliseconds")


class ConnectionToken(KucoinModel):
    token: str
    instance_servers: list[InstanceServer]

    def connect_url(self, connect_id: str) -> str:
        server = self.instance_servers[0]
        return f"{server.endpoint}?{urlencode({'token': self.token, 'connectId': connect_id})}"


TokenProvider = Callable[[], Awaitable[ConnectionToken]]


class PublicTokenProvider:
    """Fetches a public connection token from '/api/v1/bullet-public'.

    Private tokens need a signed request; pass your own TokenProvider
    for those.
    """

    def __init__(self, rest_client: KucoinRESTClient) -> None:
        self._rest = rest_client

    async def __call__(self) -> ConnectionToken:
        return await self._rest.get_public_ws_token()
