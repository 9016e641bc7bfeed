import math
from dataclasses import dataclass
from typing import Iterator, Tuple

import numpy as np

from .config import INITIAL_BUCKETS


def bucket_index(latency_ms: float) -> int:
    """
    Smallest i >= 0 with latency_ms < 2**i.

    Bucket 0 is [0, 1) ms and bucket i is [2**(i-1), 2**i) ms. Anything
    below 1 ms, including zero and negative values from clock skew between
    CPUs, lands in bucket 0.
    """
    if not latency_ms >= 1:
        return 0
    # frexp: latency = m * 2**e with 0.5 <= m < 1, so 2**(e-1) <= latency < 2**e
    _, exp = math.frexp(latency_ms)
    return int(exp)


def bucket_bounds(index: int) -> Tuple[int, int]:
    if index <= 0:
        return 0, 1
    return 1 << (index - 1), 1 << index


@dataclass(frozen=True, eq=False)
class HistogramSnapshot:
    counts: np.ndarray  # indices 0..max_index
    max_index: int

    @property
    def max_value(self) -> int:
        return int(self.counts.max()) if self.counts.size else 0

    @property
    def total(self) -> int:
        return int(self.counts.sum())

    def count(self, index: int) -> int:
        if 0 <= index < self.counts.size:
            return int(self.counts[index])
        return 0

    def rows(self) -> Iterator[Tuple[int, int, int]]:
        for i in range(self.max_index + 1):
            lower, upper = bucket_bounds(i)
            yield lower, upper, self.count(i)


class LatencyHistogram:
    def __init__(self, initial_buckets=INITIAL_BUCKETS):
        self._initial = max(1, int(initial_buckets))
        self.counts = np.zeros(self._initial, dtype=np.int64)
        self.max_index = 0

    def _grow(self, index: int) -> None:
        size = self.counts.size
        while size <= index:
            size *= 2
        grown = np.zeros(size, dtype=np.int64)
        grown[: self.counts.size] = self.counts
        self.counts = grown

    def record(self, latency_ms: float) -> int:
        i = bucket_index(latency_ms)
        if i >= self.counts.size:
            self._grow(i)
        self.counts[i] += 1
        if i > self.max_index:
            self.max_index = i
        return i

    def snapshot(self) -> HistogramSnapshot:
        return HistogramSnapshot(self.counts[: self.max_index + 1].copy(), self.max_index)

    def reset(self) -> None:
        self.counts = np.zeros(self._initial, dtype=np.int64)
        self.max_index = 0
