from __future__ import annotations

from .models import FlowRecord, WriteUnit

MEASUREMENT = "netflow"

# Indexed dimensions. Everything numeric goes into fields instead.
TAG_FIELDS = (
    "flow_type",
    "src_addr",
    "dst_addr",
    "proto",
    "sampler_address",
)

VALUE_FIELDS = (
    "bytes",
    "packets",
    "src_port",
    "dst_port",
    "sequence_num",
    "sampling_rate",
    "time_flow_start_ns",
    "time_flow_end_ns",
    "in_if",
    "out_if",
)


def flow_to_write_unit(record: FlowRecord) -> WriteUnit:
    """
    Map an in scope FlowRecord to exactly one WriteUnit.

    The point is stamped with the receipt time, so ordering and overwrite
    behavior in the sink follow arrival rather than the exporter's flow window.
    Empty tag values are left out because the line protocol cannot carry them.
    Numeric values are passed through unchanged.
    """
    tags = tuple(
        (name, getattr(record, name))
        for name in TAG_FIELDS
        if getattr(record, name)
    )
    fields = tuple((name, int(getattr(record, name))) for name in VALUE_FIELDS)

    return WriteUnit(
        measurement=MEASUREMENT,
        tags=tags,
        fields=fields,
        timestamp_ns=int(record.time_received_ns),
    )
