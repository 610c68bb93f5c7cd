"""
Write sinks. The dispatcher only depends on the Sink protocol.
"""

from .base import Sink
from .influx import InfluxSink, encode_line_protocol

__all__ = ["Sink", "InfluxSink", "encode_line_protocol"]
