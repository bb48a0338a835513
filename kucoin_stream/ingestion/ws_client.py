"""KuCoin WebSocket subscription manager.

Sits between a transport and the subscription registry: sends subscribe and
unsubscribe requests, waits for their acks, re-subscribes after reconnects,
and routes pushed frames to the typed dispatcher. Handlers and state
listeners run in their own tasks so they can subscribe while the frame pump
keeps reading acks.
"""

from __future__ import annotations

import asyncio
import inspect
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

import structlog

from kucoin_stream.config import AppConfig, get_config
from kucoin_stream.errors import MalformedMessage, NotConnected, SubscriptionFailed
from kucoin_stream.ingestion.dispatcher import HandlerTable, TypedDispatcher
from kucoin_stream.ingestion.envelope import Envelope, decode_envelope
from kucoin_stream.ingestion.registry import SubscriptionRegistry
from kucoin_stream.ingestion.ws_router import MESSAGE_HANDLERS

logger = structlog.get_logger(__name__)


class ConnectionState(str, Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    RECONNECTED = "reconnected"


class Transport(Protocol):
    @property
    def is_connected(self) -> bool: ...

    async def send(self, payload: dict[str, Any]) -> None: ...


StateListener = Callable[[ConnectionState], Any]


@dataclass
class UpdateSubscription:
    """Handle for a live subscription. ``close()`` unsubscribes it."""

    id: int
    topic: str
    symbol: str | None
    _manager: KucoinWSManager = field(repr=False)

    @property
    def is_active(self) -> bool:
        sub = self._manager.registry.get(self.id)
        return sub is not None and sub.is_active

    async def close(self, timeout: float | None = None) -> None:
        await self._manager.unsubscribe(self.id, timeout=timeout)


class KucoinWSManager:
    """
    Manages the subscriptions of one KuCoin WebSocket connection.

    The transport calls ``on_frame`` for every inbound frame and
    ``on_connection_state`` when the connection opens, drops or comes back.
    """

    def __init__(
        self,
        name: str,
        authenticated: bool = False,
        config: AppConfig | None = None,
        transport: Transport | None = None,
    ) -> None:
        self.name = name
        self._config = config or get_config()
        self._transport = transport
        self.registry = SubscriptionRegistry(authenticated=authenticated)
        self.dispatcher = TypedDispatcher(self.registry)

        self._connected_event = asyncio.Event()
        self._state_listeners: list[StateListener] = []
        self._listener_tasks: set[asyncio.Task] = set()

        # Stats
        self._msg_counts: dict[str, int] = {}
        self._last_stats_time: float = time.time()

    def attach(self, transport: Transport) -> None:
        self._transport = transport

    @property
    def connected(self) -> bool:
        return self._transport is not None and self._transport.is_connected

    def add_state_listener(self, listener: StateListener) -> None:
        self._state_listeners.append(listener)

    async def wait_connected(self, timeout: float | None = None) -> None:
        await asyncio.wait_for(self._connected_event.wait(), timeout)

    async def close(self) -> None:
        """Stop state listeners and handler delivery still running."""
        tasks = list(self._listener_tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        await self.dispatcher.close()

    # ── Subscription management ───────────────────────────────────────

    async def subscribe(
        self,
        topic: str,
        handlers: HandlerTable,
        *,
        symbol: str | None = None,
        requires_auth: bool = False,
        timeout: float | None = None,
    ) -> UpdateSubscription:
        """Register handlers for a topic and, when connected, wait for the ack.

        Raises AuthenticationRequired before sending anything and
        SubscriptionFailed when the server rejects the request. Either way,
        and on cancellation, nothing stays registered.
        """
        sub = self.registry.register(topic, symbol, requires_auth, handlers)
        handle = UpdateSubscription(id=sub.id, topic=sub.topic, symbol=sub.symbol, _manager=self)

        if not self.connected:
            logger.info("subscription_deferred", conn=self.name, sid=sub.id, topic=topic)
            return handle

        try:
            await self._request(
                sub.subscribe_request(str(sub.id)),
                action="subscribe",
                subscription_id=sub.id,
                topic=topic,
                timeout=timeout,
            )
        except BaseException:
            self.registry.unregister(sub.id)
            logger.info("subscription_rolled_back", conn=self.name, sid=sub.id, topic=topic)
            raise

        logger.info("subscription_added", conn=self.name, sid=sub.id, topic=topic)
        return handle

    async def unsubscribe(self, subscription_id: int, timeout: float | None = None) -> bool:
        """Stop dispatching to a subscription and tell the server, if nobody else needs the topic."""
        sub = self.registry.unregister(subscription_id)
        if sub is None:
            logger.warning("unsubscribe_unknown_subscription", conn=self.name, sid=subscription_id)
            return False

        if self.connected and not self.registry.has_topic(sub.topic):
            request_id = str(self.registry.next_id())
            try:
                await self._request(
                    sub.unsubscribe_request(request_id),
                    action="unsubscribe",
                    subscription_id=sub.id,
                    topic=sub.topic,
                    timeout=timeout,
                )
            except SubscriptionFailed as e:
                logger.warning(
                    "unsubscribe_not_acknowledged",
                    conn=self.name,
                    sid=sub.id,
                    topic=sub.topic,
                    reason=e.reason,
                )

        logger.info("unsubscribed", conn=self.name, sid=sub.id, topic=sub.topic)
        return True

    async def _request(
        self,
        payload: dict[str, Any],
        *,
        action: str,
        subscription_id: int,
        topic: str,
        timeout: float | None,
    ) -> None:
        """Send a request and wait for the matching ack or error frame."""
        request_id = payload["id"]
        future = asyncio.get_running_loop().create_future()
        self.registry.track(request_id, action, subscription_id, topic, future)
        timeout = timeout if timeout is not None else self._config.tuning.ws_ack_timeout
        try:
            await self._transport.send(payload)
            await asyncio.wait_for(future, timeout)
        except asyncio.TimeoutError:
            raise SubscriptionFailed(topic, f"no ack within {timeout}s") from None
        except NotConnected as e:
            raise SubscriptionFailed(topic, "not connected") from e
        finally:
            self.registry.discard(request_id)

    async def _resubscribe_all(self) -> None:
        """Re-issue subscribe requests for every registered subscription."""
        subs = self.registry.subscriptions()
        if not subs:
            return

        logger.info("resubscribing", conn=self.name, count=len(subs))
        for sub in subs:
            request_id = str(self.registry.next_id())
            self.registry.track(request_id, "subscribe", sub.id, sub.topic)
            try:
                await self._transport.send(sub.subscribe_request(request_id))
            except Exception:
                self.registry.discard(request_id)
                logger.exception("resubscribe_failed", conn=self.name, sid=sub.id)

    # ── Transport callbacks ───────────────────────────────────────────

    async def on_connection_state(self, state: ConnectionState) -> None:
        if state is ConnectionState.DISCONNECTED:
            self._connected_event.clear()
            failed = self.registry.reject_all("connection lost")
            logger.warning("connection_lost", conn=self.name, pending_failed=failed)
        else:
            self._connected_event.set()
            logger.info("connection_ready", conn=self.name, state=state.value)
            await self._resubscribe_all()

        # Listeners may subscribe, which needs this pump free to read the ack
        for listener in list(self._state_listeners):
            task = asyncio.create_task(self._notify(listener, state))
            self._listener_tasks.add(task)
            task.add_done_callback(self._listener_tasks.discard)

    async def _notify(self, listener: StateListener, state: ConnectionState) -> None:
        try:
            result = listener(state)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("state_listener_error", conn=self.name, state=state.value)

    async def on_frame(self, raw: str | bytes) -> None:
        """Decode one frame and route it by type."""
        try:
            envelope = decode_envelope(raw)
        except MalformedMessage as e:
            snippet = raw[:200] if isinstance(raw, str) else raw[:200].decode(errors="replace")
            logger.error("malformed_frame", conn=self.name, error=str(e), raw=snippet)
            return

        handler_name = MESSAGE_HANDLERS.get(envelope.type)
        if handler_name:
            handler = getattr(self, handler_name)
            try:
                await handler(envelope)
            except Exception:
                logger.exception("frame_handler_error", conn=self.name, frame_type=envelope.type)
        else:
            logger.debug("unknown_frame_type", conn=self.name, frame_type=envelope.type)

        key = envelope.template or envelope.type
        self._msg_counts[key] = self._msg_counts.get(key, 0) + 1

        now = time.time()
        if now - self._last_stats_time >= self._config.tuning.ws_stats_interval:
            self._log_stats()
            self._last_stats_time = now

    def _log_stats(self) -> None:
        logger.info(
            "ws_stats",
            conn=self.name,
            total_messages=sum(self._msg_counts.values()),
            by_topic=dict(self._msg_counts),
            subscriptions=len(self.registry),
        )
        self._msg_counts.clear()

    # ── Frame handlers ────────────────────────────────────────────────

    async def _handle_welcome(self, envelope: Envelope) -> None:
        logger.info("ws_welcome", conn=self.name, connect_id=envelope.id)

    async def _handle_ack(self, envelope: Envelope) -> None:
        if envelope.id is None:
            return
        pending = self.registry.acknowledge(envelope.id)
        if pending is None:
            logger.debug("ack_for_unknown_request", conn=self.name, request_id=envelope.id)
        else:
            logger.debug(
                "request_acknowledged",
                conn=self.name,
                request_id=envelope.id,
                action=pending.action,
                sid=pending.subscription_id,
            )

    async def _handle_message(self, envelope: Envelope) -> None:
        await self.dispatcher.dispatch(envelope)

    async def _handle_error(self, envelope: Envelope) -> None:
        reason = f"{envelope.code}: {envelope.data}" if envelope.code else str(envelope.data)
        pending = self.registry.reject(envelope.id, reason) if envelope.id else None
        if pending is None:
            logger.error("ws_server_error", conn=self.name, code=envelope.code, data=envelope.data)
        else:
            logger.warning(
                "request_rejected",
                conn=self.name,
                request_id=envelope.id,
                action=pending.action,
                topic=pending.topic,
                reason=reason,
            )

    async def _handle_pong(self, envelope: Envelope) -> None:
        logger.debug("ws_pong", conn=self.name, request_id=envelope.id)

    async def _handle_notice(self, envelope: Envelope) -> None:
        logger.info("ws_notice", conn=self.name, data=envelope.data)
