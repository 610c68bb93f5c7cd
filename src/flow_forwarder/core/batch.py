from __future__ import annotations
from typing import List
from .models import WriteUnit


class BatchAccumulator:
    """
    Bounded buffer of WriteUnit objects waiting to be flushed.

    The accumulator never flushes by itself. The ingestion loop checks
    is_full() after every append and decides when to drain.

    Important:
      capacity is fixed at construction. Configuration rejects zero or
      negative sizes at startup, this check only guards direct use.
    """

    def __init__(self, capacity: int):
        if capacity <= 0:
            raise ValueError(f"batch capacity must be positive, got {capacity}")
        self.capacity = int(capacity)
        self._units: List[WriteUnit] = []

    def append(self, unit: WriteUnit) -> None:
        self._units.append(unit)

    def is_full(self) -> bool:
        return len(self._units) >= self.capacity

    def drain(self) -> List[WriteUnit]:
        """
        Remove and return everything buffered, in arrival order.
        """
        units, self._units = self._units, []
        return units

    def __len__(self) -> int:
        return len(self._units)

    def __bool__(self) -> bool:
        return bool(self._units)
