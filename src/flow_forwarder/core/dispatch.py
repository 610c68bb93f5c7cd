from __future__ import annotations
import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, List, Optional

from .models import WriteUnit

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryPolicy:
    """
    Fixed delay retry policy.

    max_attempts
      Total number of write attempts for one batch, including the first.

    delay_seconds
      Constant wait between attempts. No backoff, no jitter.
    """

    max_attempts: int = 3
    delay_seconds: float = 1.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")
        if self.delay_seconds < 0:
            raise ValueError(f"delay_seconds must not be negative, got {self.delay_seconds}")


@dataclass(frozen=True)
class DispatchFailure:
    """
    A batch that could not be written within the retry budget.

    The batch itself is not carried here. Its data is dropped.
    """

    batch_size: int
    attempts: int
    last_error: BaseException

    def __str__(self) -> str:
        return f"failed to write batch of {self.batch_size} points after {self.attempts} attempts: {self.last_error}"


@dataclass(frozen=True)
class DispatchResult:
    attempts: int
    failure: Optional[DispatchFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


class RetryDecision(str, Enum):
    RETRY = "retry"
    EXHAUSTED = "exhausted"


class RetryState:
    """
    Attempt bookkeeping for one batch.

    attempt counts attempts started so far. record_failure() decides
    whether another attempt is allowed; the caller does the waiting.
    """

    def __init__(self, policy: RetryPolicy):
        self.policy = policy
        self.attempt = 0
        self.last_error: Optional[BaseException] = None

    def begin_attempt(self) -> int:
        self.attempt += 1
        return self.attempt

    def record_failure(self, error: BaseException) -> RetryDecision:
        self.last_error = error
        if self.attempt >= self.policy.max_attempts:
            return RetryDecision.EXHAUSTED
        return RetryDecision.RETRY

    @property
    def exhausted(self) -> bool:
        return self.attempt >= self.policy.max_attempts


class RetryingDispatcher:
    """
    Writes one batch at a time to a sink, retrying with a fixed delay.

    Main concepts:
      bucket
        Sink destination passed on every write

      policy
        Attempt budget and delay, see RetryPolicy

      sleep
        Awaitable used between attempts. Tests pass a recorder instead
        of asyncio.sleep.

    flush() never raises for write failures. Every exception from the sink
    counts as a failed attempt. After the last attempt the batch is reported
    as a DispatchFailure and dropped.
    """

    def __init__(
        self,
        sink,
        bucket: str,
        policy: RetryPolicy,
        sleep: SleepFn = asyncio.sleep,
    ):
        self.sink = sink
        self.bucket = bucket
        self.policy = policy
        self._sleep = sleep

    async def flush(self, batch: List[WriteUnit]) -> DispatchResult:
        state = RetryState(self.policy)

        while True:
            attempt = state.begin_attempt()
            t0 = time.perf_counter()
            try:
                # Same list object on every attempt, order is preserved.
                await self.sink.write(self.bucket, batch)
            except Exception as e:
                decision = state.record_failure(e)
                if decision is RetryDecision.EXHAUSTED:
                    return DispatchResult(
                        attempts=attempt,
                        failure=DispatchFailure(
                            batch_size=len(batch),
                            attempts=attempt,
                            last_error=e,
                        ),
                    )

                logger.warning(
                    "Attempt %d/%d failed: %s. Retrying in %dms...",
                    attempt,
                    self.policy.max_attempts,
                    e,
                    int(self.policy.delay_seconds * 1000),
                )
                await self._sleep(self.policy.delay_seconds)
                continue

            logger.info(
                "Successfully wrote batch of %d points in %.1f ms (attempt %d)",
                len(batch),
                (time.perf_counter() - t0) * 1000,
                attempt,
            )
            return DispatchResult(attempts=attempt)
