"""
flow_forwarder

Forward goflow2 JSON flow records into an InfluxDB v2 bucket.

Core ideas
1. Sources produce text lines, one JSON flow record per line
2. Core parses, scope filters and transforms records into write units
3. Units are batched and written through a retrying dispatcher to a sink
"""

__version__ = "0.1.0"

__all__ = ["core", "sources", "sinks", "cli", "config", "errors"]
