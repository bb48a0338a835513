"""Unit tests for frame decoding."""

from __future__ import annotations

import orjson
import pytest

from kucoin_stream.errors import MalformedMessage
from kucoin_stream.ingestion.envelope import decode_envelope, split_topic


class TestDecodeEnvelope:
    def test_message_frame(self) -> None:
        raw = orjson.dumps(
            {
                "type": "message",
                "topic": "/contract/instrument:XBTUSDM",
                "subject": "mark.index.price",
                "data": {"granularity": 1000, "indexPrice": 4000.23, "markPrice": 4010.52},
            }
        )
        env = decode_envelope(raw)
        assert env.type == "message"
        assert env.topic == "/contract/instrument:XBTUSDM"
        assert env.template == "/contract/instrument"
        assert env.symbol == "XBTUSDM"
        assert env.subject == "mark.index.price"
        assert env.data["indexPrice"] == 4000.23
        assert env.received_at.tzinfo is not None

    def test_accepts_str_frames(self) -> None:
        env = decode_envelope('{"id": "hQvf8jkno", "type": "welcome"}')
        assert env.type == "welcome"
        assert env.id == "hQvf8jkno"
        assert env.topic is None

    def test_numeric_id_becomes_string(self) -> None:
        env = decode_envelope(b'{"id": 42, "type": "ack"}')
        assert env.id == "42"

    def test_error_frame_code(self) -> None:
        env = decode_envelope(b'{"id": "7", "type": "error", "code": 404, "data": "topic not found"}')
        assert env.code == 404
        assert env.data == "topic not found"

    def test_topic_without_symbol(self) -> None:
        env = decode_envelope(b'{"type": "message", "topic": "/contractAccount/wallet", "data": {}}')
        assert env.template == "/contractAccount/wallet"
        assert env.symbol is None

    def test_missing_data_becomes_empty(self) -> None:
        env = decode_envelope(b'{"type": "message", "topic": "/contract/announcement"}')
        assert env.data == {}

    def test_unknown_fields_ignored(self) -> None:
        env = decode_envelope(
            b'{"type": "message", "topic": "/a:B", "data": {}, "userId": "x", "channelType": "private"}'
        )
        assert env.topic == "/a:B"

    @pytest.mark.parametrize(
        "raw",
        [
            b"not json",
            b"[1, 2, 3]",
            b'{"topic": "/a:B"}',
            b'{"type": ""}',
            b'{"type": "message", "data": {}}',
        ],
    )
    def test_malformed(self, raw: bytes) -> None:
        with pytest.raises(MalformedMessage):
            decode_envelope(raw)


class TestSplitTopic:
    def test_with_symbol(self) -> None:
        assert split_topic("/contractMarket/level2Depth20:X") == ("/contractMarket/level2Depth20", "X")

    def test_without_symbol(self) -> None:
        assert split_topic("/contractMarket/tradeOrders") == ("/contractMarket/tradeOrders", None)

    def test_trailing_colon(self) -> None:
        assert split_topic("/contractMarket/tradeOrders:") == ("/contractMarket/tradeOrders", None)
