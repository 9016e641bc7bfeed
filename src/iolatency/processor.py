import sys
from datetime import datetime
from fnmatch import fnmatchcase
from typing import Callable, Iterable, Optional

from .correlator import PendingStarts
from .events import EventParser, LostEvents, Start
from .histogram import HistogramSnapshot, LatencyHistogram
from .reporter import HistogramReporter


def _warn_stderr(msg: str) -> None:
    print(msg, file=sys.stderr)


class EventFilter:
    """
    Inline version of the kernel-side filters, for event sources that
    cannot filter.

    device: trace-format "major,minor"; applies to starts and completions.
    iotype: glob over the rwbs flags, e.g. "*W*"; starts without flags pass.
    """

    def __init__(self, device: Optional[str] = None, iotype: Optional[str] = None):
        self.device = device
        self.iotype = iotype

    def __call__(self, event) -> bool:
        if self.device is not None and event.device != self.device:
            return False
        if self.iotype is not None and event.direction:
            return fnmatchcase(event.direction, self.iotype)
        return True


class IntervalProcessor:
    def __init__(
        self,
        parser: EventParser,
        reporter: HistogramReporter,
        event_filter: Optional[Callable] = None,
        warn: Callable[[str], None] = _warn_stderr,
    ):
        self.parser = parser
        self.reporter = reporter
        self.event_filter = event_filter
        self.warn = warn
        self.pending = PendingStarts()
        self.histogram = LatencyHistogram()
        self.lost_markers = 0

    def feed(self, line: str) -> None:
        ev = self.parser.parse(line)
        if ev is None:
            return

        if isinstance(ev, LostEvents):
            self.lost_markers += 1
            self.warn(f"WARNING: {ev.text}")
            return

        if self.event_filter is not None and not self.event_filter(ev):
            return

        key = (ev.device, ev.location)
        if isinstance(ev, Start):
            self.pending.on_start(key, ev.timestamp)
            return

        latency_ms = self.pending.on_completion(key, ev.timestamp)
        if latency_ms is not None:
            self.histogram.record(latency_ms)

    def process_batch(self, lines: Iterable[str]) -> None:
        for line in lines:
            self.feed(line)

    def tick(self, now: Optional[datetime] = None) -> HistogramSnapshot:
        """Print this interval's histogram and start the next interval empty."""
        snap = self.histogram.snapshot()
        self.reporter.report(snap, now)
        self.histogram.reset()
        # the next drain restarts the kernel event stream, so leftover
        # starts can never be matched correctly
        self.pending.reset()
        return snap
