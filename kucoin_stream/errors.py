"""Exception types raised by the SDK."""

from __future__ import annotations


class KucoinStreamError(Exception):
    """Base class for all SDK errors."""


class MalformedMessage(KucoinStreamError):
    """An inbound frame or payload could not be decoded. Never reaches callers."""


class NoMatchingHandler(KucoinStreamError):
    """A multiplexed topic carried a subject nobody registered for."""


class AuthenticationRequired(KucoinStreamError):
    """A private stream was requested on a client without credentials."""


class InvalidParameter(KucoinStreamError):
    """A facade argument is outside its allowed values."""

    def __init__(self, name: str, value: object, allowed: object = None) -> None:
        self.name = name
        self.value = value
        self.allowed = allowed
        msg = f"invalid value for {name}: {value!r}"
        if allowed is not None:
            msg += f" (allowed: {allowed})"
        super().__init__(msg)


class SubscriptionFailed(KucoinStreamError):
    """The server rejected a subscribe request or never acknowledged it."""

    def __init__(self, topic: str, reason: str) -> None:
        self.topic = topic
        self.reason = reason
        super().__init__(f"subscription to {topic} failed: {reason}")


class NotConnected(KucoinStreamError):
    """A frame was sent while no WebSocket connection was open."""


class KucoinAPIError(KucoinStreamError):
    """The REST API answered with a non-success code."""

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")
