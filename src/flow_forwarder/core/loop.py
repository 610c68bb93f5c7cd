from __future__ import annotations
import asyncio
import logging
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, AsyncIterable, Callable, Dict, Optional

from .batch import BatchAccumulator
from .dispatch import RetryingDispatcher, SleepFn
from .models import FlowRecord, ParseFailure, WriteUnit
from .parser import ParseResult, parse_line
from .scope import ScopeFilter
from .transform import flow_to_write_unit

logger = logging.getLogger(__name__)


class LoopState(str, Enum):
    READING = "reading"
    FLUSHING = "flushing"
    PACING = "pacing"
    DRAINING = "draining"
    STOPPED = "stopped"


@dataclass
class IngestionStats:
    """
    Running counters for one ingestion pass.

    parsed counts every decoded record, in or out of scope.
    accepted counts records that passed the scope filter and were batched.
    units_written and units_dropped only move when a batch finishes dispatch.
    """

    lines_read: int = 0
    parsed: int = 0
    parse_failed: int = 0
    filtered_out: int = 0
    accepted: int = 0
    batches_written: int = 0
    batches_failed: int = 0
    units_written: int = 0
    units_dropped: int = 0

    @property
    def processed(self) -> int:
        return self.parsed

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class IngestionLoop:
    """
    Reads lines and drives records through parse, filter, transform, batch
    and dispatch.

    States:
      READING    pull the next line, batch in scope records
      FLUSHING   drain the full batch and hand it to the dispatcher
      PACING     wait pace_seconds before reading again
      DRAINING   end of stream, flush the partial batch once, no pacing
      STOPPED    terminal, stats are returned

    Nothing in record processing stops the loop. Parse failures and exhausted
    write retries are logged and counted, then reading continues.
    """

    def __init__(
        self,
        accumulator: BatchAccumulator,
        dispatcher: RetryingDispatcher,
        scope: Optional[ScopeFilter] = None,
        pace_seconds: float = 10.0,
        progress_every: int = 1000,
        parser: Callable[[str], ParseResult] = parse_line,
        transform: Callable[[FlowRecord], WriteUnit] = flow_to_write_unit,
        sleep: SleepFn = asyncio.sleep,
    ):
        self.accumulator = accumulator
        self.dispatcher = dispatcher
        self.scope = scope or ScopeFilter()
        self.pace_seconds = float(pace_seconds)
        self.progress_every = int(progress_every)
        self.parser = parser
        self.transform = transform
        self._sleep = sleep
        self.state = LoopState.STOPPED

    async def run(self, lines: AsyncIterable[str]) -> IngestionStats:
        stats = IngestionStats()
        self.state = LoopState.READING
        logger.info("Starting to process flow data...")

        async for line in lines:
            stats.lines_read += 1
            if self._handle_line(line, stats):
                self.state = LoopState.FLUSHING
                await self._flush(stats, final=False)

                self.state = LoopState.PACING
                await self._sleep(self.pace_seconds)
                self.state = LoopState.READING

        self.state = LoopState.DRAINING
        if self.accumulator:
            await self._flush(stats, final=True)

        self.state = LoopState.STOPPED
        logger.info(
            "Processing completed. Total: %d, Accepted: %d, Filtered: %d, Parse failures: %d, "
            "Written: %d, Dropped: %d",
            stats.processed,
            stats.accepted,
            stats.filtered_out,
            stats.parse_failed,
            stats.units_written,
            stats.units_dropped,
        )
        return stats

    def _handle_line(self, line: str, stats: IngestionStats) -> bool:
        """
        Process one line while READING. True means the batch is full.
        """
        result = self.parser(line)
        if result is None:
            return False

        if isinstance(result, ParseFailure):
            stats.parse_failed += 1
            logger.warning("Failed to parse JSON line: %s - Error: %s", result.line.rstrip("\n"), result.reason)
            return False

        stats.parsed += 1
        full = False

        if not self.scope.allows(result):
            stats.filtered_out += 1
        else:
            self.accumulator.append(self.transform(result))
            stats.accepted += 1
            full = self.accumulator.is_full()

        if self.progress_every > 0 and stats.parsed % self.progress_every == 0:
            logger.info(
                "Processed: %d, Filtered: %d, Pending: %d",
                stats.processed,
                stats.filtered_out,
                len(self.accumulator),
            )

        return full

    async def _flush(self, stats: IngestionStats, final: bool) -> None:
        batch = self.accumulator.drain()
        result = await self.dispatcher.flush(batch)

        if result.ok:
            stats.batches_written += 1
            stats.units_written += len(batch)
            return

        stats.batches_failed += 1
        stats.units_dropped += len(batch)
        logger.error("%s dropped: %s", "Final batch" if final else "Batch", result.failure)
