"""Typed KuCoin spot/futures WebSocket streams and public REST market data."""

from .clients.socket_client import KucoinSocketClient
from .errors import (
    AuthenticationRequired,
    InvalidParameter,
    KucoinAPIError,
    KucoinStreamError,
    MalformedMessage,
    NoMatchingHandler,
    NotConnected,
    SubscriptionFailed,
)
from .ingestion.rest_client import KucoinRESTClient
from .ingestion.ws_client import UpdateSubscription
from .models import DataEvent

__all__ = [
    "KucoinSocketClient",
    "KucoinRESTClient",
    "UpdateSubscription",
    "DataEvent",
    "AuthenticationRequired",
    "InvalidParameter",
    "KucoinAPIError",
    "KucoinStreamError",
    "MalformedMessage",
    "NoMatchingHandler",
    "NotConnected",
    "SubscriptionFailed",
]
