import re
from dataclasses import dataclass, field
from typing import Iterable, Optional, Union

from .config import COMPLETE_EVENT, START_EVENT

LOST_EVENTS_RE = re.compile(r"LOST.*EVENTS")


@dataclass(frozen=True)
class Start:
    device: str
    location: str
    timestamp: float
    direction: str = field(default="", compare=False)


@dataclass(frozen=True)
class Completion:
    device: str
    location: str
    timestamp: float
    direction: str


@dataclass(frozen=True)
class LostEvents:
    text: str


Event = Union[Start, Completion, LostEvents]


def detect_column_offset(lines: Iterable[str]) -> int:
    """
    Column offset for the trace line layout, decided from the trace header.

    Kernels with the irq-info option print an extra flags column between the
    CPU and the timestamp. The header announces it with a field made of '|'
    characters:

      #           TASK-PID   CPU#  ||||    TIMESTAMP  FUNCTION

    Only the first header line naming TASK-PID is looked at.
    """
    for line in lines:
        fields = line.split()
        if not fields or fields[0] != "#":
            continue
        if not any("TASK-PID" in f for f in fields):
            continue
        return 1 if any(set(f) == {"|"} for f in fields[1:]) else 0
    return 0


class EventParser:
    # fields, with o = column offset:
    #   task-pid [cpu] (flags) ts: event: maj,min rwbs ... sector + n [comm]
    # the command field "()" may hold several words, so the sector is
    # counted from the right
    def __init__(self, column_offset=0, start_event=START_EVENT, complete_event=COMPLETE_EVENT):
        self.column_offset = int(column_offset)
        self.start_token = start_event + ":"
        self.complete_token = complete_event + ":"

    @classmethod
    def from_header(cls, lines: Iterable[str], **kwargs) -> "EventParser":
        return cls(column_offset=detect_column_offset(lines), **kwargs)

    def parse(self, line: str) -> Optional[Event]:
        fields = line.split()
        if not fields or fields[0].startswith("#"):
            return None

        if LOST_EVENTS_RE.search(line):
            return LostEvents(line.strip())

        o = self.column_offset
        if len(fields) < 10 + o:
            return None

        is_start = self.start_token in fields
        is_end = self.complete_token in fields
        if not (is_start or is_end):
            return None

        try:
            timestamp = float(fields[2 + o].rstrip(":"))
        except ValueError:
            return None
        device = fields[4 + o]
        location = fields[-4]

        if is_start:
            return Start(device, location, timestamp, fields[5 + o])
        return Completion(device, location, timestamp, fields[5 + o])
