import json
import pytest

from flow_forwarder.config import ForwarderConfig
from flow_forwarder.errors import SinkWriteError


class StubSink:
    """
    Records every write. Fails the first fail_times calls, or every call.
    """

    def __init__(self, fail_times: int = 0, always_fail: bool = False):
        self.fail_times = fail_times
        self.always_fail = always_fail
        self.calls = []
        self.closed = False

    async def write(self, bucket, units):
        self.calls.append((bucket, list(units)))
        if self.always_fail or len(self.calls) <= self.fail_times:
            raise SinkWriteError(f"write {len(self.calls)} rejected", status=503)

    async def close(self):
        self.closed = True

    @property
    def units(self):
        return [u for _, batch in self.calls for u in batch]


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


async def aiter_lines(lines):
    for line in lines:
        yield line


def flow_json(**overrides) -> str:
    flow = {
        "type": "SFLOW_5",
        "time_received_ns": 1_700_000_000_000_000_000,
        "sequence_num": 42,
        "sampling_rate": 512,
        "sampler_address": "10.0.0.254",
        "time_flow_start_ns": 1_699_999_999_000_000_000,
        "time_flow_end_ns": 1_700_000_000_000_000_000,
        "bytes": 1500,
        "packets": 3,
        "src_addr": "10.1.2.3",
        "dst_addr": "10.0.0.2",
        "etype": "IPv4",
        "proto": "TCP",
        "src_port": 51514,
        "dst_port": 443,
        "in_if": 1,
        "out_if": 2,
    }
    flow.update(overrides)
    return json.dumps(flow)


@pytest.fixture
def sink():
    return StubSink()


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def config():
    return ForwarderConfig(
        influxdb_url="http://influx:8086",
        influxdb_token="secret-token",
        influxdb_org="netops",
        influxdb_bucket="flows",
        batch_size=2,
        flush_interval_seconds=0.0,
        retry_attempts=3,
        retry_delay_ms=0,
    )
