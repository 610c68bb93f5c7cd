from __future__ import annotations

from typing import Protocol, Sequence

from flow_forwarder.core.models import WriteUnit


class Sink(Protocol):
    """
    Required interface for a write sink.

    A sink is responsible for
    1. Encoding WriteUnit objects into its wire format
    2. Delivering one batch per write call
    3. Raising SinkWriteError when the batch was not accepted

    The dispatcher owns retries. A sink must not retry internally,
    otherwise attempt counts and delays stop meaning anything.
    """

    async def write(self, bucket: str, units: Sequence[WriteUnit]) -> None:
        """
        Write one batch. Returning normally means the sink accepted it.
        """
        ...

    async def close(self) -> None:
        """
        Release connections. Called once at shutdown.
        """
        ...
