"""Routes incoming WebSocket frames to manager handlers by frame type."""

from __future__ import annotations

# Frame type → handler method name mapping
MESSAGE_HANDLERS: dict[str, str] = {
    "welcome": "_handle_welcome",
    "ack": "_handle_ack",
    "message": "_handle_message",
    "error": "_handle_error",
    "pong": "_handle_pong",
    "notice": "_handle_notice",
}
