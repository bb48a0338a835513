"""Typed event wrapper handed to subscription callbacks."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class DataEvent(Generic[T]):
    """A deserialized push message plus where and when it came from."""

    data: T
    topic: str
    symbol: str | None = None
    subject: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(tz=timezone.utc))
