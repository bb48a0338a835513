"""Routes decoded envelopes to typed subscription handlers."""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

import structlog
from pydantic import BaseModel, ValidationError

from kucoin_stream.errors import MalformedMessage
from kucoin_stream.ingestion.envelope import Envelope
from kucoin_stream.ingestion.registry import Subscription, SubscriptionRegistry
from kucoin_stream.models.events import DataEvent

logger = structlog.get_logger(__name__)

Handler = Callable[[DataEvent[Any]], Any]
PayloadParser = Callable[[Any], "BaseModel | None"]


@dataclass(frozen=True)
class HandlerBinding:
    """A callback plus how to turn a raw payload into the model it expects.

    ``parser`` replaces ``model.model_validate``; returning None drops the
    payload without a warning. ``symbol_field`` names the model attribute
    holding the symbol for topics that cover every symbol.
    ``subject_field`` copies the envelope subject into the payload.
    """

    model: type[BaseModel]
    callback: Handler
    parser: PayloadParser | None = None
    symbol_field: str | None = None
    subject_field: str | None = None

    def parse(self, envelope: Envelope) -> BaseModel | None:
        payload = envelope.data
        if self.subject_field is not None:
            if not isinstance(payload, dict):
                raise MalformedMessage("payload is not an object")
            payload = {**payload, self.subject_field: envelope.subject or ""}
        if self.parser is not None:
            return self.parser(payload)
        return self.model.model_validate(payload)


class HandlerTable:
    """Subject -> binding table, built once when a subscription is made.

    A table made with ``single`` accepts any subject. A table made with
    ``by_subject`` is mutually exclusive: exactly one binding or none.
    """

    def __init__(self, bindings: Mapping[str | None, HandlerBinding]) -> None:
        if not bindings:
            raise ValueError("a handler table needs at least one binding")
        self._bindings = dict(bindings)

    @classmethod
    def single(cls, binding: HandlerBinding) -> HandlerTable:
        return cls({None: binding})

    @classmethod
    def by_subject(cls, bindings: Mapping[str, HandlerBinding]) -> HandlerTable:
        return cls(dict(bindings))

    @property
    def subjects(self) -> list[str]:
        return [s for s in self._bindings if s is not None]

    @property
    def is_multiplexed(self) -> bool:
        return None not in self._bindings

    def select(self, subject: str | None) -> HandlerBinding | None:
        if not self.is_multiplexed:
            return self._bindings[None]
        if subject is None:
            return None
        return self._bindings.get(subject)


class TypedDispatcher:
    """
    Turns envelopes into DataEvents and hands them to registered callbacks.

    ``dispatch`` only decodes and queues; callbacks run in one worker task
    per subscription, so a slow or blocking handler (one that subscribes
    and waits for an ack, say) never holds up the frame pump or other
    subscriptions. Within a subscription events are delivered one at a
    time in arrival order. Nothing raised while decoding a payload or
    running a callback escapes.
    """

    def __init__(self, registry: SubscriptionRegistry) -> None:
        self._registry = registry
        self._workers: set[asyncio.Task] = set()

    async def dispatch(self, envelope: Envelope) -> int:
        """Queue one envelope for delivery. Returns how many events were queued."""
        if envelope.topic is None:
            return 0

        subs = self._registry.resolve(envelope.topic)
        if not subs:
            logger.debug("no_subscription_for_topic", topic=envelope.topic)
            return 0

        queued = 0
        for sub in subs:
            if self._enqueue(sub, envelope):
                queued += 1
        return queued

    def _enqueue(self, sub: Subscription, envelope: Envelope) -> bool:
        binding = sub.handlers.select(envelope.subject)
        if binding is None:
            logger.warning(
                "no_matching_handler",
                sid=sub.id,
                topic=envelope.topic,
                subject=envelope.subject,
                known=sub.handlers.subjects,
            )
            return False

        try:
            data = binding.parse(envelope)
        except (ValidationError, MalformedMessage, ValueError, TypeError) as e:
            logger.warning(
                "payload_parse_error",
                sid=sub.id,
                topic=envelope.topic,
                subject=envelope.subject,
                model=binding.model.__name__,
                error=str(e),
            )
            return False

        if data is None:
            logger.debug("payload_skipped", sid=sub.id, topic=envelope.topic)
            return False

        event = DataEvent(
            data=data,
            topic=envelope.topic,
            symbol=self._resolve_symbol(sub, binding, data, envelope),
            subject=envelope.subject,
            timestamp=envelope.received_at,
        )
        sub.queue.put_nowait((binding, event))
        if sub.worker is None or sub.worker.done():
            sub.worker = asyncio.create_task(self._drain(sub), name=f"dispatch-{sub.id}")
            self._workers.add(sub.worker)
            sub.worker.add_done_callback(self._workers.discard)
        return True

    async def _drain(self, sub: Subscription) -> None:
        """Run queued callbacks for one subscription until its queue is empty."""
        try:
            while not sub.queue.empty():
                binding, event = sub.queue.get_nowait()
                try:
                    # Unsubscribed since the event was queued
                    if self._registry.get(sub.id) is None:
                        continue
                    result = binding.callback(event)
                    if inspect.isawaitable(result):
                        await result
                except Exception:
                    logger.exception("handler_error", sid=sub.id, topic=event.topic)
                finally:
                    sub.queue.task_done()
        finally:
            sub.worker = None

    async def join(self) -> None:
        """Wait until every queued event has been handed to its callback."""
        while self._workers:
            await asyncio.gather(*list(self._workers), return_exceptions=True)

    async def close(self) -> None:
        """Cancel delivery still in progress. Queued events are dropped."""
        workers = list(self._workers)
        for task in workers:
            task.cancel()
        await asyncio.gather(*workers, return_exceptions=True)

    @staticmethod
    def _resolve_symbol(
        sub: Subscription,
        binding: HandlerBinding,
        data: BaseModel,
        envelope: Envelope,
    ) -> str | None:
        if binding.symbol_field is not None:
            symbol = getattr(data, binding.symbol_field, None)
            if symbol:
                return str(symbol)
        return sub.symbol or envelope.symbol
