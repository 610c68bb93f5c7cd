from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Mapping, Tuple


@dataclass(frozen=True)
class FlowRecord:
    """
    One flow record as emitted by the goflow2 JSON formatter.

    Fields:
      flow_type
        Export protocol reported by the collector, for example SFLOW_5 or NETFLOW_V9.

      time_received_ns
        Unix time in nanoseconds when the collector received the flow.
        This is the point timestamp in the sink, not the flow start or end.

      src_addr, dst_addr
        IP addresses as strings. Empty when the collector did not report them.

      proto, etype
        Protocol and ether type as reported, usually names like TCP or IPv4.

      time_flow_start_ns, time_flow_end_ns
        Flow window reported by the exporter.

      bytes, packets, src_port, dst_port, in_if, out_if, sequence_num, sampling_rate
        Counters and identifiers. Missing values are 0.

      extras
        Every other key of the JSON object, passed through unchanged.
    """

    src_addr: str = ""
    dst_addr: str = ""
    flow_type: str = ""
    time_received_ns: int = 0
    sequence_num: int = 0
    sampling_rate: int = 0
    sampler_address: str = ""
    time_flow_start_ns: int = 0
    time_flow_end_ns: int = 0
    bytes: int = 0
    packets: int = 0
    etype: str = ""
    proto: str = ""
    src_port: int = 0
    dst_port: int = 0
    in_if: int = 0
    out_if: int = 0
    extras: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ParseFailure:
    """
    A line that could not be decoded into a FlowRecord.
    """

    line: str
    reason: str


@dataclass(frozen=True)
class WriteUnit:
    """
    Sink native representation of one accepted record.

    tags and fields are tuples of (key, value) pairs so the unit stays
    immutable and keeps a stable key order on the wire.
    """

    measurement: str
    tags: Tuple[Tuple[str, str], ...]
    fields: Tuple[Tuple[str, int], ...]
    timestamp_ns: int

    def tag(self, name: str) -> str | None:
        for k, v in self.tags:
            if k == name:
                return v
        return None

    def field_value(self, name: str) -> int | None:
        for k, v in self.fields:
            if k == name:
                return v
        return None
