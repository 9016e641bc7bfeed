import sys
from datetime import datetime
from typing import List, Optional

from .config import BAR_WIDTH
from .histogram import HistogramSnapshot


def bar(count: int, max_value: int, width: int = BAR_WIDTH) -> str:
    if max_value <= 0 or count <= 0:
        return ""
    return "#" * int(width * count / max_value + 0.5)


class HistogramReporter:
    def __init__(self, out=None, timestamps=False, bar_width=BAR_WIDTH):
        self.out = out if out is not None else sys.stdout
        self.timestamps = bool(timestamps)
        self.bar_width = int(bar_width)

    def render(self, snapshot: HistogramSnapshot, now: Optional[datetime] = None) -> List[str]:
        w = self.bar_width
        lines = [""]
        if self.timestamps:
            now = now or datetime.now()
            lines.append(now.strftime("%H:%M:%S"))
        lines.append("%8s .. %-8s: %-8s |%-*s|" % (">=(ms)", "<(ms)", "I/O", w, "Distribution"))

        max_value = snapshot.max_value
        for lower, upper, count in snapshot.rows():
            lines.append("%8d -> %-8d: %-8d |%-*s|" % (
                lower, upper, count, w, bar(count, max_value, w)))
        return lines

    def report(self, snapshot: HistogramSnapshot, now: Optional[datetime] = None) -> None:
        for line in self.render(snapshot, now):
            print(line, file=self.out)
        self.out.flush()
