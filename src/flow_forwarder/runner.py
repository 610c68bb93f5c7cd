from __future__ import annotations
import asyncio

from .config import ForwarderConfig
from .core.batch import BatchAccumulator
from .core.dispatch import RetryingDispatcher, SleepFn
from .core.loop import IngestionLoop, IngestionStats
from .core.scope import ScopeFilter
from .sinks.base import Sink
from .sinks.influx import InfluxSink
from .sources.base import LineSource


def build_sink(config: ForwarderConfig) -> InfluxSink:
    return InfluxSink(
        url=config.influxdb_url,
        token=config.influxdb_token,
        org=config.influxdb_org,
        timeout_seconds=config.influxdb_timeout_seconds,
    )


def build_loop(config: ForwarderConfig, sink: Sink, sleep: SleepFn = asyncio.sleep) -> IngestionLoop:
    """
    Wire one IngestionLoop from config. A fresh accumulator per loop,
    so two passes never share a batch.
    """
    dispatcher = RetryingDispatcher(
        sink=sink,
        bucket=config.influxdb_bucket,
        policy=config.retry_policy,
        sleep=sleep,
    )
    return IngestionLoop(
        accumulator=BatchAccumulator(config.batch_size),
        dispatcher=dispatcher,
        scope=ScopeFilter(config.scope_networks),
        pace_seconds=config.flush_interval_seconds,
        progress_every=config.progress_every,
        sleep=sleep,
    )


async def forward(
    config: ForwarderConfig,
    source: LineSource,
    sink: Sink,
    sleep: SleepFn = asyncio.sleep,
) -> IngestionStats:
    """
    Run one ingestion pass from source to sink. The source is closed
    afterwards, the sink is left to the caller.
    """
    loop = build_loop(config, sink, sleep=sleep)
    try:
        return await loop.run(source.lines())
    finally:
        source.close()
