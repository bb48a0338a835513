"""Unit tests for typed dispatch."""

from __future__ import annotations

import asyncio

import pytest
from structlog.testing import capture_logs

from kucoin_stream.ingestion.dispatcher import HandlerBinding, HandlerTable, TypedDispatcher
from kucoin_stream.ingestion.envelope import Envelope
from kucoin_stream.ingestion.registry import SubscriptionRegistry
from kucoin_stream.models import (
    DataEvent,
    KucoinContractAnnouncement,
    KucoinStreamFuturesFundingRate,
    KucoinStreamFuturesMarkIndexPrice,
    KucoinStreamFuturesOrderUpdate,
    KucoinStreamFuturesTick,
)


def _activate(registry: SubscriptionRegistry, topic: str, table: HandlerTable, auth: bool = False):
    sub = registry.register(topic, None, auth, table)
    registry.track(str(sub.id), "subscribe", sub.id, topic)
    registry.acknowledge(str(sub.id))
    return sub


def _envelope(topic: str, data, subject: str | None = None) -> Envelope:
    return Envelope(type="message", topic=topic, subject=subject, data=data)


@pytest.fixture
def registry() -> SubscriptionRegistry:
    return SubscriptionRegistry(authenticated=True)


@pytest.fixture
def dispatcher(registry: SubscriptionRegistry) -> TypedDispatcher:
    return TypedDispatcher(registry)


class TestIsolation:
    async def test_only_matching_subscription_invoked(
        self, registry, dispatcher, sample_futures_tick: dict
    ) -> None:
        got_a: list[DataEvent] = []
        got_b: list[DataEvent] = []
        _activate(
            registry,
            "/contractMarket/tickerV2:XBTUSDM",
            HandlerTable.single(HandlerBinding(KucoinStreamFuturesTick, got_a.append)),
        )
        _activate(
            registry,
            "/contractMarket/tickerV2:ETHUSDM",
            HandlerTable.single(HandlerBinding(KucoinStreamFuturesTick, got_b.append)),
        )

        count = await dispatcher.dispatch(
            _envelope("/contractMarket/tickerV2:XBTUSDM", sample_futures_tick)
        )
        await dispatcher.join()

        assert count == 1
        assert len(got_a) == 1
        assert got_b == []
        event = got_a[0]
        assert isinstance(event.data, KucoinStreamFuturesTick)
        assert event.symbol == "XBTUSDM"
        assert event.topic == "/contractMarket/tickerV2:XBTUSDM"

    async def test_unmatched_topic_dropped(self, dispatcher) -> None:
        assert await dispatcher.dispatch(_envelope("/contractMarket/tickerV2:NOPE", {})) == 0

    async def test_envelope_without_topic(self, dispatcher) -> None:
        assert await dispatcher.dispatch(Envelope(type="message")) == 0


class TestSubjectRouting:
    @pytest.fixture
    def calls(self, registry) -> dict[str, list[DataEvent]]:
        calls: dict[str, list[DataEvent]] = {"mark": [], "funding": []}
        _activate(
            registry,
            "/contract/instrument:XBTUSDM",
            HandlerTable.by_subject(
                {
                    "mark.index.price": HandlerBinding(
                        KucoinStreamFuturesMarkIndexPrice, calls["mark"].append
                    ),
                    "funding.rate": HandlerBinding(
                        KucoinStreamFuturesFundingRate, calls["funding"].append
                    ),
                }
            ),
        )
        return calls

    async def test_mark_price(self, dispatcher, calls) -> None:
        await dispatcher.dispatch(
            _envelope(
                "/contract/instrument:XBTUSDM",
                {"granularity": 1000, "indexPrice": 4000.23, "markPrice": 4010.52, "timestamp": 1551770400000},
                subject="mark.index.price",
            )
        )
        await dispatcher.join()
        assert len(calls["mark"]) == 1
        assert calls["funding"] == []
        assert calls["mark"][0].subject == "mark.index.price"

    async def test_funding_rate(self, dispatcher, calls) -> None:
        await dispatcher.dispatch(
            _envelope(
                "/contract/instrument:XBTUSDM",
                {"granularity": 60000, "fundingRate": -0.002966, "timestamp": 1551770400000},
                subject="funding.rate",
            )
        )
        await dispatcher.join()
        assert calls["mark"] == []
        assert len(calls["funding"]) == 1
        assert float(calls["funding"][0].data.funding_rate) == -0.002966

    async def test_unknown_subject_warns_and_drops(self, dispatcher, calls) -> None:
        with capture_logs() as logs:
            count = await dispatcher.dispatch(
                _envelope("/contract/instrument:XBTUSDM", {}, subject="premium.index")
            )
            await dispatcher.join()
        assert count == 0
        assert calls == {"mark": [], "funding": []}
        warnings = [entry for entry in logs if entry["event"] == "no_matching_handler"]
        assert len(warnings) == 1
        assert warnings[0]["log_level"] == "warning"
        assert warnings[0]["subject"] == "premium.index"

    async def test_missing_subject_drops(self, dispatcher, calls) -> None:
        assert await dispatcher.dispatch(_envelope("/contract/instrument:XBTUSDM", {})) == 0


class TestFailures:
    async def test_invalid_payload_dropped(self, registry, dispatcher) -> None:
        got: list[DataEvent] = []
        _activate(
            registry,
            "/contractMarket/tickerV2:XBTUSDM",
            HandlerTable.single(HandlerBinding(KucoinStreamFuturesTick, got.append)),
        )
        with capture_logs() as logs:
            count = await dispatcher.dispatch(
                _envelope("/contractMarket/tickerV2:XBTUSDM", {"symbol": "XBTUSDM"})
            )
            await dispatcher.join()
        assert count == 0
        assert got == []
        assert any(entry["event"] == "payload_parse_error" for entry in logs)

    async def test_parser_returning_none_is_silent(self, registry, dispatcher) -> None:
        got: list[DataEvent] = []
        binding = HandlerBinding(KucoinStreamFuturesTick, got.append, parser=lambda payload: None)
        _activate(registry, "/contractMarket/level2:XBTUSDM", HandlerTable.single(binding))

        with capture_logs() as logs:
            count = await dispatcher.dispatch(_envelope("/contractMarket/level2:XBTUSDM", {}))
            await dispatcher.join()
        assert count == 0
        assert got == []
        assert not any(entry["log_level"] == "warning" for entry in logs)

    async def test_handler_error_does_not_leak(
        self, registry, dispatcher, sample_futures_tick: dict
    ) -> None:
        def boom(event: DataEvent) -> None:
            raise RuntimeError("user bug")

        got: list[DataEvent] = []
        topic = "/contractMarket/tickerV2:XBTUSDM"
        _activate(registry, topic, HandlerTable.single(HandlerBinding(KucoinStreamFuturesTick, boom)))
        _activate(registry, topic, HandlerTable.single(HandlerBinding(KucoinStreamFuturesTick, got.append)))

        count = await dispatcher.dispatch(_envelope(topic, sample_futures_tick))
        await dispatcher.join()
        assert count == 2
        assert len(got) == 1


class TestDelivery:
    async def test_async_handler_awaited(
        self, registry, dispatcher, sample_futures_tick: dict
    ) -> None:
        got: list[DataEvent] = []

        async def handler(event: DataEvent) -> None:
            await asyncio.sleep(0)
            got.append(event)

        _activate(
            registry,
            "/contractMarket/tickerV2:XBTUSDM",
            HandlerTable.single(HandlerBinding(KucoinStreamFuturesTick, handler)),
        )
        await dispatcher.dispatch(_envelope("/contractMarket/tickerV2:XBTUSDM", sample_futures_tick))
        await dispatcher.join()
        assert len(got) == 1

    async def test_symbol_from_payload(
        self, registry, dispatcher, sample_futures_order_update: dict
    ) -> None:
        got: list[DataEvent] = []
        binding = HandlerBinding(KucoinStreamFuturesOrderUpdate, got.append, symbol_field="symbol")
        _activate(registry, "/contractMarket/tradeOrders", HandlerTable.single(binding), auth=True)

        await dispatcher.dispatch(_envelope("/contractMarket/tradeOrders", sample_futures_order_update))
        await dispatcher.join()
        assert got[0].symbol == "XBTUSDM"

    async def test_subject_injected(self, registry, dispatcher) -> None:
        got: list[DataEvent] = []
        binding = HandlerBinding(
            KucoinContractAnnouncement, got.append, symbol_field="symbol", subject_field="event"
        )
        _activate(registry, "/contract/announcement", HandlerTable.single(binding))

        await dispatcher.dispatch(
            _envelope(
                "/contract/announcement",
                {"symbol": "XBTUSDM", "fundingTime": 1551770400000, "fundingRate": -0.002966, "timestamp": 1551770400000},
                subject="funding.begin",
            )
        )
        await dispatcher.join()
        assert got[0].data.event == "funding.begin"
        assert got[0].symbol == "XBTUSDM"

    async def test_events_of_one_subscription_do_not_interleave(
        self, registry, dispatcher, sample_futures_tick: dict
    ) -> None:
        trace: list[tuple[str, int]] = []

        async def slow(event: DataEvent) -> None:
            trace.append(("start", event.data.sequence))
            await asyncio.sleep(0.01)
            trace.append(("end", event.data.sequence))

        topic = "/contractMarket/tickerV2:XBTUSDM"
        _activate(registry, topic, HandlerTable.single(HandlerBinding(KucoinStreamFuturesTick, slow)))

        await asyncio.gather(
            *(
                dispatcher.dispatch(_envelope(topic, {**sample_futures_tick, "sequence": i}))
                for i in range(5)
            )
        )
        await dispatcher.join()

        expected = [step for i in range(5) for step in (("start", i), ("end", i))]
        assert trace == expected

    async def test_unsubscribed_while_waiting_is_skipped(
        self, registry, dispatcher, sample_futures_tick: dict
    ) -> None:
        got: list[int] = []
        topic = "/contractMarket/tickerV2:XBTUSDM"

        async def handler(event: DataEvent) -> None:
            got.append(event.data.sequence)
            registry.unregister(sub.id)
            await asyncio.sleep(0)

        sub = _activate(registry, topic, HandlerTable.single(HandlerBinding(KucoinStreamFuturesTick, handler)))
        await asyncio.gather(
            dispatcher.dispatch(_envelope(topic, {**sample_futures_tick, "sequence": 1})),
            dispatcher.dispatch(_envelope(topic, {**sample_futures_tick, "sequence": 2})),
        )
        await dispatcher.join()
        assert got == [1]

    async def test_blocked_handler_does_not_hold_other_subscriptions(
        self, registry, dispatcher, sample_futures_tick: dict
    ) -> None:
        gate = asyncio.Event()
        got: list[str] = []

        async def blocked(event: DataEvent) -> None:
            await gate.wait()
            got.append("blocked")

        _activate(
            registry,
            "/contractMarket/tickerV2:XBTUSDM",
            HandlerTable.single(HandlerBinding(KucoinStreamFuturesTick, blocked)),
        )
        _activate(
            registry,
            "/contractMarket/tickerV2:ETHUSDM",
            HandlerTable.single(HandlerBinding(KucoinStreamFuturesTick, lambda e: got.append("other"))),
        )

        await dispatcher.dispatch(_envelope("/contractMarket/tickerV2:XBTUSDM", sample_futures_tick))
        await dispatcher.dispatch(_envelope("/contractMarket/tickerV2:ETHUSDM", sample_futures_tick))
        for _ in range(3):
            await asyncio.sleep(0)
        assert got == ["other"]

        gate.set()
        await dispatcher.join()
        assert got == ["other", "blocked"]

    async def test_close_cancels_running_handler(
        self, registry, dispatcher, sample_futures_tick: dict
    ) -> None:
        async def never_returns(event: DataEvent) -> None:
            await asyncio.Event().wait()

        topic = "/contractMarket/tickerV2:XBTUSDM"
        _activate(registry, topic, HandlerTable.single(HandlerBinding(KucoinStreamFuturesTick, never_returns)))
        await dispatcher.dispatch(_envelope(topic, sample_futures_tick))
        await asyncio.sleep(0)

        await dispatcher.close()
        await asyncio.wait_for(dispatcher.join(), 1)


class TestHandlerTable:
    def test_empty_rejected(self) -> None:
        with pytest.raises(ValueError):
            HandlerTable({})

    def test_single_matches_any_subject(self) -> None:
        binding = HandlerBinding(KucoinStreamFuturesTick, print)
        table = HandlerTable.single(binding)
        assert table.select("anything") is binding
        assert table.select(None) is binding
        assert not table.is_multiplexed
