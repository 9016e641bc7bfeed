import os
import sys
import threading
from typing import List, Optional, Tuple

from .config import (
    BUFSIZE_KB,
    COMPLETE_EVENT,
    INTERVAL_SEC,
    LOCK_FILE,
    QUEUE_START_EVENT,
    START_EVENT,
    TRACING_DIR,
)
from .helpers import device_number


class FtraceError(Exception):
    pass


class FtraceBusyError(FtraceError):
    pass


class FtraceUnavailableError(FtraceError):
    pass


def build_filter(device: Optional[Tuple[int, int]] = None, iotype: Optional[str] = None) -> str:
    parts = []
    if device is not None:
        parts.append(f"dev == {device_number(*device)}")
    if iotype:
        parts.append(f'rwbs ~ "{iotype}"')
    return " && ".join(parts)


class FtraceEventSource:
    """
    Block I/O trace lines from ftrace, one batch per interval.

    Usage:
        src = FtraceEventSource(interval=1.0, device=(8, 0))
        src.open()
        header = src.header()
        while ...:
            lines = src.next_batch()
        src.close()

    With a writable `snapshot` file each drain swaps the live buffer into the
    snapshot buffer and reads it from there; otherwise `trace` is read and
    cleared directly. Either way a batch holds the events since the last
    drain, and the event stream restarts from empty after every drain.
    """

    def __init__(
        self,
        interval=INTERVAL_SEC,
        tracing_dir=TRACING_DIR,
        lock_file=LOCK_FILE,
        device: Optional[Tuple[int, int]] = None,
        iotype: Optional[str] = None,
        queue=False,
        bufsize_kb=BUFSIZE_KB,
        stop_event: Optional[threading.Event] = None,
    ):
        self.interval = float(interval)
        self.tracing_dir = tracing_dir
        self.lock_file = lock_file
        self.device = device
        self.iotype = iotype
        self.bufsize_kb = int(bufsize_kb)
        self.start_event = QUEUE_START_EVENT if queue else START_EVENT
        self.stop_event = stop_event or threading.Event()
        self.use_snapshot = False
        self._locked = False
        self._enabled: List[str] = []

    # -------------------------
    # tracefs access
    # -------------------------
    def _path(self, *parts) -> str:
        return os.path.join(self.tracing_dir, *parts)

    def _event_dir(self, event: str) -> str:
        return self._path("events", "block", event)

    def _write(self, rel: str, value: str) -> None:
        with open(self._path(rel), "w") as f:
            f.write(value + "\n")

    def _read_lines(self, rel: str) -> List[str]:
        with open(self._path(rel)) as f:
            return [line for line in f.read().splitlines() if line.strip()]

    @property
    def events(self) -> Tuple[str, str]:
        return self.start_event, COMPLETE_EVENT

    # -------------------------
    # lifecycle
    # -------------------------
    def _acquire_lock(self) -> None:
        if os.path.exists(self.lock_file):
            try:
                with open(self.lock_file) as f:
                    owner = f.read().strip() or "?"
            except OSError:
                owner = "?"
            raise FtraceBusyError(f"ftrace may be in use by PID {owner} {self.lock_file}")
        try:
            with open(self.lock_file, "w") as f:
                f.write(f"{os.getpid()}\n")
        except OSError as exc:
            raise FtraceError(f"unable to write {self.lock_file}: {exc.strerror}") from None
        self._locked = True

    def open(self) -> None:
        if not os.path.isdir(self._path("events")):
            raise FtraceUnavailableError(f"{self.tracing_dir} not found. Missing tracefs/debugfs mount?")
        for ev in self.events:
            if not os.path.isdir(self._event_dir(ev)):
                raise FtraceUnavailableError(f"tracepoint block:{ev} not available")

        self._acquire_lock()
        try:
            self._write("buffer_size_kb", str(self.bufsize_kb))
            filt = build_filter(self.device, self.iotype)
            for ev in self.events:
                if filt:
                    self._write(os.path.join("events", "block", ev, "filter"), filt)
                self._write(os.path.join("events", "block", ev, "enable"), "1")
                self._enabled.append(ev)
            self.use_snapshot = os.access(self._path("snapshot"), os.W_OK)
            self._write("trace", "")
        except OSError as exc:
            self.close()
            raise FtraceError(f"setting up ftrace: {exc}") from None

    def header(self) -> List[str]:
        return [line for line in self._read_lines("trace") if line.startswith("#")]

    def next_batch(self) -> List[str]:
        self.stop_event.wait(self.interval)
        if self.use_snapshot:
            self._write("snapshot", "1")
            self._write("trace", "")
            return self._read_lines("snapshot")
        lines = self._read_lines("trace")
        self._write("trace", "")
        return lines

    def close(self) -> bool:
        """Undo open(). Failures are reported and skipped so every step runs."""
        ok = True

        def step(what, rel, value):
            nonlocal ok
            try:
                self._write(rel, value)
            except OSError as exc:
                ok = False
                print(f"WARNING: {what}: {exc}", file=sys.stderr)

        for ev in self._enabled:
            step(f"disabling block:{ev}", os.path.join("events", "block", ev, "enable"), "0")
            if self.device is not None or self.iotype:
                step(f"clearing block:{ev} filter", os.path.join("events", "block", ev, "filter"), "0")
        self._enabled = []

        if self.use_snapshot:
            step("freeing snapshot buffer", "snapshot", "0")
            self.use_snapshot = False
        step("clearing trace buffer", "trace", "")

        if self._locked:
            try:
                os.remove(self.lock_file)
            except OSError as exc:
                ok = False
                print(f"WARNING: removing {self.lock_file}: {exc}", file=sys.stderr)
            self._locked = False
        return ok
