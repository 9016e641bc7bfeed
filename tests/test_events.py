from iolatency.events import Completion, EventParser, LostEvents, Start, detect_column_offset


def test_offset_detected_from_irq_flags_header(irq_header):
    assert detect_column_offset(irq_header) == 1


def test_offset_zero_for_plain_header(plain_header):
    assert detect_column_offset(plain_header) == 0


def test_offset_zero_without_header():
    assert detect_column_offset([]) == 0
    assert detect_column_offset(["not a header", ""]) == 0


def test_only_first_task_pid_line_decides(plain_header, irq_header):
    assert detect_column_offset(plain_header + irq_header) == 0


def test_parse_start(start_line):
    p = EventParser()
    ev = p.parse(start_line("202,1", "12862264", 10.0))
    assert ev == Start("202,1", "12862264", 10.0)


def test_parse_completion(completion_line):
    p = EventParser()
    ev = p.parse(completion_line("202,1", "12862264", 10.003, rwbs="RS"))
    assert ev == Completion("202,1", "12862264", 10.003, "RS")


def test_parse_with_column_offset(irq_header, start_line, completion_line):
    p = EventParser.from_header(irq_header)
    assert p.column_offset == 1
    assert p.parse(start_line("8,0", "100", 5.5, offset=1)) == Start("8,0", "100", 5.5)
    assert p.parse(completion_line("8,0", "100", 5.75, offset=1)) == Completion("8,0", "100", 5.75, "W")


def test_offset_mismatch_does_not_raise(start_line):
    # a line with the flags column read with offset 0 has a non-numeric timestamp
    assert EventParser(column_offset=0).parse(start_line("8,0", "100", 5.5, offset=1)) is None


def test_command_field_with_several_words():
    line = ("  dd-2061  [000]  3.250000: block_rq_issue: 8,16 R 4096 "
            "(28 00 00 c4 43 78 00 00 08 00) 12862264 + 8 [dd]")
    assert EventParser().parse(line) == Start("8,16", "12862264", 3.25)


def test_lost_events_marker():
    ev = EventParser().parse("CPU:1 [LOST 42 EVENTS]")
    assert isinstance(ev, LostEvents)
    assert ev.text == "CPU:1 [LOST 42 EVENTS]"


def test_ignored_lines(start_line):
    p = EventParser()
    assert p.parse("") is None
    assert p.parse("   ") is None
    assert p.parse("#           TASK-PID    CPU#    TIMESTAMP  FUNCTION") is None
    assert p.parse("tick") is None
    assert p.parse("  bash-1 [000] 1.0: sched_switch: prev_comm=bash prev_pid=1 next_comm=x next_pid=2 a b") is None
    # queue insert is not the start event unless asked for
    assert p.parse(start_line("8,0", "1", 1.0, event="block_rq_insert")) is None


def test_bad_timestamp_is_skipped():
    line = "  dd-2061  [000]  abc: block_rq_issue: 8,16 R 4096 () 12862264 + 8 [dd]"
    assert EventParser().parse(line) is None


def test_truncated_line_is_skipped():
    assert EventParser().parse("  dd-2061  [000]  1.0: block_rq_issue: 8,16 R") is None


def test_queue_insert_as_start(start_line):
    p = EventParser(start_event="block_rq_insert")
    assert p.parse(start_line("8,0", "9", 2.0, event="block_rq_insert")) == Start("8,0", "9", 2.0)
    assert p.parse(start_line("8,0", "9", 2.0)) is None


def test_start_keeps_rwbs_without_affecting_equality(start_line):
    ev = EventParser().parse(start_line("8,0", "7", 1.0, rwbs="RA"))
    assert ev.direction == "RA"
    assert ev == Start("8,0", "7", 1.0)
