from __future__ import annotations
import json
import time
from typing import Any, Dict, Optional, Union

from .models import FlowRecord, ParseFailure

# goflow2 JSON keys that map onto FlowRecord attributes.
# "type" is renamed because it shadows a builtin.
_TEXT_FIELDS = {
    "type": "flow_type",
    "sampler_address": "sampler_address",
    "src_addr": "src_addr",
    "dst_addr": "dst_addr",
    "etype": "etype",
    "proto": "proto",
}

_INT_FIELDS = (
    "time_received_ns",
    "sequence_num",
    "sampling_rate",
    "time_flow_start_ns",
    "time_flow_end_ns",
    "bytes",
    "packets",
    "src_port",
    "dst_port",
    "in_if",
    "out_if",
)

ParseResult = Union[FlowRecord, ParseFailure, None]

# Integer fields in the sink are signed 64 bit.
INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1


def _check_int(name: str, value: Any) -> int:
    # bool is a subclass of int, a JSON true must not count as 1 byte
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"field {name} must be an integer, got {type(value).__name__}")
    if not INT64_MIN <= value <= INT64_MAX:
        raise ValueError(f"field {name}={value} does not fit a signed 64 bit integer")
    return value


def _check_text(name: str, value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError(f"field {name} must be a string, got {type(value).__name__}")
    return value


def parse_line(line: str, now_ns: Optional[int] = None) -> ParseResult:
    """
    Decode one line of goflow2 JSON output.

    Returns:
      None            blank or whitespace only line, silently ignored
      ParseFailure    malformed JSON, not an object, or a known field of the wrong type
      FlowRecord      everything else

    Missing fields fall back to "" or 0. A record without time_received_ns is
    stamped with now_ns, or the current wall clock, so it still has a receipt time.
    """
    text = line.strip()
    if not text:
        return None

    try:
        obj = json.loads(text)
    except ValueError as e:
        return ParseFailure(line=line, reason=f"invalid json: {e}")

    if not isinstance(obj, dict):
        return ParseFailure(line=line, reason=f"expected a json object, got {type(obj).__name__}")

    values: Dict[str, Any] = {}
    extras: Dict[str, Any] = {}

    try:
        for key, value in obj.items():
            if key in _TEXT_FIELDS:
                # goflow2 emits null for fields it could not fill
                if value is not None:
                    values[_TEXT_FIELDS[key]] = _check_text(key, value)
            elif key in _INT_FIELDS:
                if value is not None:
                    values[key] = _check_int(key, value)
            else:
                extras[key] = value
    except ValueError as e:
        return ParseFailure(line=line, reason=str(e))

    if "time_received_ns" not in values:
        values["time_received_ns"] = now_ns if now_ns is not None else time.time_ns()

    return FlowRecord(extras=extras, **values)
