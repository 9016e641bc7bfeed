import argparse
import signal
import sys
import threading

from .config import COUNT, INTERVAL_SEC
from .events import EventParser
from .ftrace import FtraceError, FtraceEventSource
from .helpers import parse_device, trace_device_id
from .processor import EventFilter, IntervalProcessor
from .reporter import HistogramReporter


def _close_source(source) -> None:
    try:
        source.close()
    except (OSError, FtraceError) as exc:
        print(f"WARNING: tearing down event source: {exc}", file=sys.stderr)


def run_intervals(source, processor, count=COUNT, stop_event=None, on_report=None, teardown=True) -> int:
    """
    Drive the interval loop: wait for a batch, correlate it, report, repeat.

    Stops after `count` reports (0 = unbounded), when `stop_event` is set
    between intervals, or on Ctrl-C. With `teardown` the source is closed
    exactly once here; otherwise the caller owns closing it.
    Returns the number of reports printed.
    """
    reports = 0
    try:
        while count <= 0 or reports < count:
            if stop_event is not None and stop_event.is_set():
                break
            batch = source.next_batch()
            processor.process_batch(batch)
            snap = processor.tick()
            reports += 1
            if on_report is not None:
                on_report(snap)
    except KeyboardInterrupt:
        pass
    finally:
        if teardown:
            _close_source(source)
    return reports


def parse_args(argv=None):
    ap = argparse.ArgumentParser(
        prog="iolatency",
        description="Summarize block device I/O latency as a histogram.",
        epilog="eg: iolatency 5 2   # 2 x 5 second summaries",
    )
    ap.add_argument("-d", "--device", help="trace this device only (major,minor or name, eg 202,1 or sda)")
    ap.add_argument("-i", "--iotype", help="match this I/O type only (rwbs glob, eg '*R*')")
    ap.add_argument("-Q", "--queue", action="store_true", help="use queue insert as start time")
    ap.add_argument("-T", "--timestamp", action="store_true", help="timestamp on output")
    ap.add_argument("-v", "--verbose", action="store_true",
                    help="report dropped completions and stale starts on stderr")
    ap.add_argument("--png", metavar="PATH",
                    help="save each interval's histogram as an image, eg iolatency.png")
    ap.add_argument("interval", nargs="?", type=float, default=INTERVAL_SEC,
                    help="summary interval in seconds (default: 1)")
    ap.add_argument("count", nargs="?", type=int, default=COUNT,
                    help="number of summaries (default: unbounded)")
    args = ap.parse_args(argv)

    if args.interval <= 0:
        ap.error("interval must be positive")
    if args.count < 0:
        ap.error("count must not be negative")
    if args.device is not None:
        try:
            args.device = parse_device(args.device)
        except ValueError as exc:
            ap.error(str(exc))
    return args


def main(argv=None):
    args = parse_args(argv)

    stop_event = threading.Event()

    def handle_stop(sig, frame):
        stop_event.set()

    # Ctrl-C and SIGTERM end the run after the current report
    signal.signal(signal.SIGINT, handle_stop)
    signal.signal(signal.SIGTERM, handle_stop)

    source = FtraceEventSource(
        interval=args.interval,
        device=args.device,
        iotype=args.iotype,
        queue=args.queue,
        stop_event=stop_event,
    )
    try:
        source.open()
    except FtraceError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    plot = None
    try:
        try:
            parser = EventParser.from_header(source.header(), start_event=source.start_event)
        except OSError as exc:
            print(f"ERROR: reading trace header: {exc}", file=sys.stderr)
            return 1

        # kernel filters already applied; this keeps the same semantics inline
        event_filter = None
        if args.device is not None or args.iotype:
            event_filter = EventFilter(
                device=trace_device_id(*args.device) if args.device is not None else None,
                iotype=args.iotype,
            )
        processor = IntervalProcessor(parser, HistogramReporter(timestamps=args.timestamp), event_filter)

        if args.png:
            from .plotting import LivePlot
            plot = LivePlot()

        def on_report(snap):
            if args.verbose:
                p = processor.pending
                print(f"[DROPPED] unmatched completions: {p.unmatched}, stale starts: {p.stale}, "
                      f"overwritten starts: {p.overwritten}, lost markers: {processor.lost_markers}",
                      file=sys.stderr)
                p.reset_counters()
                processor.lost_markers = 0
            if plot is not None:
                plot.update(snap)
                plot.save(args.png)

        print(f"Tracing block I/O. Output every {args.interval:g} seconds. Ctrl-C to end.")
        sys.stdout.flush()

        try:
            run_intervals(source, processor, count=args.count, stop_event=stop_event,
                          on_report=on_report, teardown=False)
        except OSError as exc:
            print(f"ERROR: reading trace buffer: {exc}", file=sys.stderr)
            return 1
    except KeyboardInterrupt:
        pass
    finally:
        if plot is not None:
            plot.close()
        _close_source(source)

    print("\nEnding tracing...", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
