# app/batching.py
from typing import List, Optional

from .errors import RecordLimitReached
from .schemas import Product


class BatchAccumulator:
    """
    Buffers products into batches of batch_size.

    add() hands back a full batch as soon as one is complete; flush() hands back
    whatever is left and must be called once at the end of the stream. When
    record_limit is set, add() refuses products beyond it.
    """

    def __init__(self, batch_size: int, record_limit: Optional[int] = None):
        if batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        if record_limit is not None and record_limit < 0:
            raise ValueError(f"record_limit must be non-negative, got {record_limit}")
        self.batch_size = batch_size
        self.record_limit = record_limit
        self.accepted = 0
        self._buffer: List[Product] = []

    @property
    def exhausted(self) -> bool:
        return self.record_limit is not None and self.accepted >= self.record_limit

    def __len__(self):
        return len(self._buffer)

    def add(self, product: Product) -> Optional[List[Product]]:
        if self.exhausted:
            raise RecordLimitReached(f"record limit of {self.record_limit} reached")
        self._buffer.append(product)
        self.accepted += 1
        if len(self._buffer) >= self.batch_size:
            return self._take()
        return None

    def flush(self) -> Optional[List[Product]]:
        if not self._buffer:
            return None
        return self._take()

    def _take(self) -> List[Product]:
        batch = self._buffer
        self._buffer = []
        return batch
