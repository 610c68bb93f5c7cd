"""
Core engine: parse, scope filter, transform, batch, dispatch.

Keep sink wire formats and input plumbing out of this package.
"""

from .models import FlowRecord, ParseFailure, WriteUnit
from .parser import parse_line
from .scope import ScopeFilter, in_scope
from .transform import flow_to_write_unit
from .batch import BatchAccumulator
from .dispatch import DispatchFailure, DispatchResult, RetryingDispatcher, RetryPolicy, RetryState
from .loop import IngestionLoop, IngestionStats, LoopState

__all__ = [
    "FlowRecord",
    "ParseFailure",
    "WriteUnit",
    "parse_line",
    "ScopeFilter",
    "in_scope",
    "flow_to_write_unit",
    "BatchAccumulator",
    "DispatchFailure",
    "DispatchResult",
    "RetryingDispatcher",
    "RetryPolicy",
    "RetryState",
    "IngestionLoop",
    "IngestionStats",
    "LoopState",
]
