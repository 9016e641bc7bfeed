from typing import Dict, Hashable, Optional, Tuple

RequestKey = Tuple[Hashable, Hashable]  # (device, location)


class PendingStarts:
    """
    Start timestamps of requests seen starting but not yet completed in the
    current interval, keyed by (device, location).

    At most one request is assumed in flight per key: a second start for the
    same key replaces the first. Completions without a start are dropped,
    which is expected after interval resets, lost events or a start that
    happened before tracing began.
    """

    def __init__(self):
        self._starts: Dict[RequestKey, float] = {}
        self.unmatched = 0
        self.stale = 0
        self.overwritten = 0

    def __len__(self):
        return len(self._starts)

    def __contains__(self, key):
        return key in self._starts

    def on_start(self, key: RequestKey, timestamp: float) -> None:
        if key in self._starts:
            self.overwritten += 1
        self._starts[key] = float(timestamp)

    def on_completion(self, key: RequestKey, timestamp: float) -> Optional[float]:
        """Latency in milliseconds, or None if no start is pending for key."""
        start = self._starts.pop(key, None)
        if start is None:
            self.unmatched += 1
            return None
        return 1000.0 * (float(timestamp) - start)

    def reset(self) -> int:
        discarded = len(self._starts)
        self.stale += discarded
        self._starts.clear()
        return discarded

    def reset_counters(self) -> None:
        self.unmatched = 0
        self.stale = 0
        self.overwritten = 0
