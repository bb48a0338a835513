"""Decodes raw KuCoin WebSocket frames into routing envelopes."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import orjson

from kucoin_stream.errors import MalformedMessage


@dataclass(frozen=True)
class Envelope:
    """One decoded frame, before the payload is turned into a model.

    ``topic`` looks like ``/contractMarket/level2Depth5:XBTUSDM``; the part
    after the first ``:`` is the symbol, when the stream has one.
    """

    type: str
    id: str | None = None
    topic: str | None = None
    subject: str | None = None
    data: Any = None
    code: int | None = None
    received_at: datetime = field(default_factory=lambda: datetime.now(tz=timezone.utc))

    @property
    def template(self) -> str | None:
        if self.topic is None:
            return None
        return self.topic.partition(":")[0]

    @property
    def symbol(self) -> str | None:
        if self.topic is None:
            return None
        _, sep, symbol = self.topic.partition(":")
        return symbol if sep and symbol else None


def split_topic(topic: str) -> tuple[str, str | None]:
    """Split ``template:symbol`` into its parts."""
    template, sep, symbol = topic.partition(":")
    return template, (symbol if sep and symbol else None)


def decode_envelope(raw: str | bytes) -> Envelope:
    """Parse one inbound frame. Raises MalformedMessage when it can't be routed."""
    try:
        msg = orjson.loads(raw)
    except orjson.JSONDecodeError as e:
        raise MalformedMessage(f"invalid json: {e}") from e

    if not isinstance(msg, dict):
        raise MalformedMessage(f"expected an object, got {type(msg).__name__}")

    msg_type = msg.get("type")
    if not isinstance(msg_type, str) or not msg_type:
        raise MalformedMessage("frame has no type")

    topic = msg.get("topic")
    if msg_type == "message" and not isinstance(topic, str):
        raise MalformedMessage("message frame has no topic")

    msg_id = msg.get("id")
    code = msg.get("code")
    try:
        code = int(code) if code is not None else None
    except (TypeError, ValueError):
        code = None

    data = msg.get("data")
    if data is None and msg_type == "message":
        data = {}

    return Envelope(
        type=msg_type,
        id=str(msg_id) if msg_id is not None else None,
        topic=topic if isinstance(topic, str) else None,
        subject=msg.get("subject"),
        data=data,
        code=code,
    )
