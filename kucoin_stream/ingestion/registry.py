"""Subscription registry: active streams, their handlers, and pending acks."""

from __future__ import annotations

import asyncio
import itertools
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

import structlog

from kucoin_stream.errors import AuthenticationRequired, SubscriptionFailed
from kucoin_stream.ingestion.envelope import split_topic

if TYPE_CHECKING:
    from kucoin_stream.ingestion.dispatcher import HandlerTable

logger = structlog.get_logger(__name__)


class SubscriptionState(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"


@dataclass
class Subscription:
    """One live stream and the handlers its messages go to.

    ``symbol`` is None for streams covering every symbol (e.g. all-symbol
    order updates); those match any envelope on the same topic template.
    """

    id: int
    topic: str
    symbol: str | None
    requires_auth: bool
    handlers: HandlerTable
    state: SubscriptionState = SubscriptionState.PENDING
    # Events waiting for the handler, drained in order by one worker task
    queue: asyncio.Queue = field(default_factory=asyncio.Queue, repr=False)
    worker: asyncio.Task | None = field(default=None, repr=False)

    @property
    def template(self) -> str:
        return split_topic(self.topic)[0]

    @property
    def is_active(self) -> bool:
        return self.state is SubscriptionState.ACTIVE

    def subscribe_request(self, request_id: str | None = None) -> dict[str, Any]:
        return {
            "id": request_id or str(self.id),
            "type": "subscribe",
            "topic": self.topic,
            "privateChannel": self.requires_auth,
            "response": True,
        }

    def unsubscribe_request(self, request_id: str) -> dict[str, Any]:
        return {
            "id": request_id,
            "type": "unsubscribe",
            "topic": self.topic,
            "privateChannel": self.requires_auth,
            "response": True,
        }


@dataclass
class PendingRequest:
    """An outbound request waiting for its ack or error frame."""

    request_id: str
    action: str
    subscription_id: int | None = None
    topic: str | None = None
    future: asyncio.Future | None = None


class SubscriptionRegistry:
    """
    Owns every subscription of one connection.

    All mutation, including correlation id allocation, happens under a
    single lock so concurrent facade calls never share an id.
    """

    def __init__(self, authenticated: bool = False) -> None:
        self._authenticated = authenticated
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._subscriptions: dict[int, Subscription] = {}
        self._pending: dict[str, PendingRequest] = {}

    @property
    def authenticated(self) -> bool:
        return self._authenticated

    def next_id(self) -> int:
        with self._lock:
            return next(self._ids)

    # ── Subscriptions ─────────────────────────────────────────────────

    def register(
        self,
        topic: str,
        symbol: str | None,
        requires_auth: bool,
        handlers: HandlerTable,
    ) -> Subscription:
        """Add a subscription. Raises AuthenticationRequired before anything is sent."""
        if requires_auth and not self._authenticated:
            raise AuthenticationRequired(f"{topic} requires API credentials")

        if symbol is None:
            symbol = split_topic(topic)[1]

        with self._lock:
            sub = Subscription(
                id=next(self._ids),
                topic=topic,
                symbol=symbol,
                requires_auth=requires_auth,
                handlers=handlers,
            )
            self._subscriptions[sub.id] = sub

        logger.debug("subscription_registered", sid=sub.id, topic=topic)
        return sub

    def unregister(self, subscription_id: int) -> Subscription | None:
        """Remove a subscription. A subscribe still waiting for its ack fails."""
        with self._lock:
            sub = self._subscriptions.pop(subscription_id, None)
            dropped = [
                self._pending.pop(request_id)
                for request_id, pending in list(self._pending.items())
                if pending.subscription_id == subscription_id and pending.action == "subscribe"
            ]
        for pending in dropped:
            if pending.future is not None and not pending.future.done():
                pending.future.set_exception(
                    SubscriptionFailed(pending.topic or "?", "unsubscribed")
                )
        return sub

    def get(self, subscription_id: int) -> Subscription | None:
        with self._lock:
            return self._subscriptions.get(subscription_id)

    def subscriptions(self) -> list[Subscription]:
        with self._lock:
            return list(self._subscriptions.values())

    def has_topic(self, topic: str) -> bool:
        """Whether any registered subscription still uses this wire topic."""
        with self._lock:
            return any(s.topic == topic for s in self._subscriptions.values())

    def resolve(self, topic: str) -> list[Subscription]:
        """Active subscriptions for a pushed topic, exact symbol matches first."""
        template, symbol = split_topic(topic)
        with self._lock:
            candidates = [
                s for s in self._subscriptions.values()
                if s.is_active and s.template == template
            ]
        exact = [s for s in candidates if s.symbol is not None and s.symbol == symbol]
        wildcard = [s for s in candidates if s.symbol is None]
        return exact + wildcard

    def __len__(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    # ── Pending acknowledgements ──────────────────────────────────────

    def track(
        self,
        request_id: str,
        action: str,
        subscription_id: int | None = None,
        topic: str | None = None,
        future: asyncio.Future | None = None,
    ) -> PendingRequest:
        pending = PendingRequest(
            request_id=request_id,
            action=action,
            subscription_id=subscription_id,
            topic=topic,
            future=future,
        )
        with self._lock:
            self._pending[request_id] = pending
        return pending

    def acknowledge(self, request_id: str) -> PendingRequest | None:
        """Mark the request as acked; a subscribe ack activates its subscription."""
        with self._lock:
            pending = self._pending.pop(request_id, None)
            if pending is None:
                return None
            if pending.action == "subscribe" and pending.subscription_id is not None:
                sub = self._subscriptions.get(pending.subscription_id)
                if sub is not None:
                    sub.state = SubscriptionState.ACTIVE
        if pending.future is not None and not pending.future.done():
            pending.future.set_result(True)
        return pending

    def reject(self, request_id: str, reason: str) -> PendingRequest | None:
        with self._lock:
            pending = self._pending.pop(request_id, None)
        if pending is None:
            return None
        if pending.future is not None and not pending.future.done():
            pending.future.set_exception(
                SubscriptionFailed(pending.topic or "?", reason)
            )
        return pending

    def reject_all(self, reason: str) -> int:
        """Fail every request still waiting, e.g. when the connection drops."""
        with self._lock:
            request_ids = list(self._pending)
        for request_id in request_ids:
            self.reject(request_id, reason)
        return len(request_ids)

    def discard(self, request_id: str) -> None:
        with self._lock:
            self._pending.pop(request_id, None)

    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)
