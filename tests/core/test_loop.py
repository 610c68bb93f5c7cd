import logging

import pytest

from flow_forwarder.core.batch import BatchAccumulator
from flow_forwarder.core.dispatch import RetryingDispatcher, RetryPolicy
from flow_forwarder.core.loop import IngestionLoop, LoopState
from tests.conftest import StubSink, aiter_lines, flow_json


def _loop(sink, sleep, capacity=2, attempts=3, pace=10.0, progress_every=1000):
    dispatcher = RetryingDispatcher(sink, "flows", RetryPolicy(max_attempts=attempts, delay_seconds=0.5), sleep=sleep)
    return IngestionLoop(
        accumulator=BatchAccumulator(capacity),
        dispatcher=dispatcher,
        pace_seconds=pace,
        progress_every=progress_every,
        sleep=sleep,
    )


@pytest.mark.asyncio
async def test_every_accepted_record_reaches_the_sink_in_order(sink, sleep):
    lines = [flow_json(src_addr=f"10.0.0.{i}", sequence_num=i) for i in range(5)]
    loop = _loop(sink, sleep, capacity=2)

    stats = await loop.run(aiter_lines(lines))

    assert loop.state is LoopState.STOPPED
    assert [len(batch) for _, batch in sink.calls] == [2, 2, 1]
    assert [u.field_value("sequence_num") for u in sink.units] == [0, 1, 2, 3, 4]
    assert stats.accepted == 5
    assert stats.units_written == 5
    assert stats.batches_written == 3
    # pacing after each full batch, none after the final partial flush
    assert sleep.delays == [10.0, 10.0]


@pytest.mark.asyncio
async def test_mixed_stream_counts(sink, sleep):
    lines = [
        flow_json(src_addr="10.1.2.3"),
        "",
        "   ",
        "{not json",
        flow_json(src_addr="8.8.8.8"),
        flow_json(src_addr="not-an-ip"),
        flow_json(src_addr="fd00::1"),
        flow_json(src_addr="192.168.1.5"),
        "[]",
    ]
    loop = _loop(sink, sleep, capacity=100)

    stats = await loop.run(aiter_lines(lines))

    assert stats.lines_read == 9
    assert stats.parse_failed == 2
    assert stats.parsed == 5
    assert stats.filtered_out == 3
    assert stats.accepted == 2
    assert [u.tag("src_addr") for u in sink.units] == ["10.1.2.3", "192.168.1.5"]


@pytest.mark.asyncio
async def test_partial_batch_is_flushed_once_at_end_of_stream(sleep):
    sink = StubSink(always_fail=True)
    loop = _loop(sink, sleep, capacity=10, attempts=3)

    stats = await loop.run(aiter_lines([flow_json(), flow_json()]))

    # one final flush sequence: 3 attempts, retry delays only, no pacing
    assert len(sink.calls) == 3
    assert all(len(batch) == 2 for _, batch in sink.calls)
    assert sleep.delays == [0.5, 0.5]
    assert stats.batches_failed == 1
    assert stats.units_dropped == 2
    assert stats.units_written == 0


@pytest.mark.asyncio
async def test_empty_stream_never_writes(sink, sleep):
    stats = await _loop(sink, sleep).run(aiter_lines(["", "\n"]))
    assert sink.calls == []
    assert sleep.delays == []
    assert stats.accepted == 0


@pytest.mark.asyncio
async def test_exhausted_batch_does_not_stop_the_loop(sleep):
    sink = StubSink(fail_times=2)
    loop = _loop(sink, sleep, capacity=2, attempts=2, pace=3.0)

    stats = await loop.run(aiter_lines([flow_json() for _ in range(4)]))

    # first batch: 2 failed attempts and dropped, second batch written
    assert len(sink.calls) == 3
    assert stats.batches_failed == 1
    assert stats.units_dropped == 2
    assert stats.batches_written == 1
    assert stats.units_written == 2
    assert sleep.delays == [0.5, 3.0, 3.0]


@pytest.mark.asyncio
async def test_batch_never_exceeds_capacity_when_flushed(sink, sleep):
    loop = _loop(sink, sleep, capacity=3)
    await loop.run(aiter_lines([flow_json() for _ in range(10)]))
    assert max(len(batch) for _, batch in sink.calls) == 3
    assert len(sink.units) == 10


@pytest.mark.asyncio
async def test_progress_and_parse_failures_are_logged(sink, sleep, caplog):
    caplog.set_level(logging.INFO, logger="flow_forwarder")
    loop = _loop(sink, sleep, capacity=100, progress_every=2)

    await loop.run(aiter_lines([flow_json(), "garbage", flow_json(src_addr="8.8.8.8")]))

    messages = [r.getMessage() for r in caplog.records]
    assert any("Failed to parse JSON line: garbage" in m for m in messages)
    assert any(m.startswith("Processed: 2, Filtered: 1, Pending: 1") for m in messages)
    assert any(m.startswith("Processing completed.") for m in messages)


@pytest.mark.asyncio
async def test_oversized_counter_does_not_poison_the_batch(sink, sleep):
    lines = [flow_json(sequence_num=1), flow_json(bytes=2 ** 64), flow_json(sequence_num=3)]
    stats = await _loop(sink, sleep, capacity=2).run(aiter_lines(lines))

    assert stats.parse_failed == 1
    assert stats.units_written == 2
    assert [u.field_value("sequence_num") for u in sink.units] == [1, 3]
