import pytest

IRQ_HEADER = [
    "# tracer: nop",
    "#",
    "# entries-in-buffer/entries-written: 0/0   #P:2",
    "#",
    "#                              _-----=> irqs-off",
    "#                             / _----=> need-resched",
    "#                            | / _---=> hardirq/softirq",
    "#                            || / _--=> preempt-depth",
    "#                            ||| /     delay",
    "#           TASK-PID   CPU#  ||||    TIMESTAMP  FUNCTION",
    "#              | |       |   ||||       |         |",
]

PLAIN_HEADER = [
    "# tracer: nop",
    "#",
    "#           TASK-PID    CPU#    TIMESTAMP  FUNCTION",
    "#              | |       |          |         |",
]


def make_start(dev, loc, ts, offset=0, event="block_rq_issue", rwbs="W"):
    flags = " d..1" if offset else ""
    return f"             tar-1234  [001]{flags} {ts:.6f}: {event}: {dev} {rwbs} 0 () {loc} + 8 [tar]"


def make_completion(dev, loc, ts, offset=0, rwbs="W"):
    flags = " d.h1" if offset else ""
    return f"          <idle>-0     [001]{flags} {ts:.6f}: block_rq_complete: {dev} {rwbs} () {loc} + 8 [0]"


@pytest.fixture
def start_line():
    return make_start


@pytest.fixture
def completion_line():
    return make_completion


@pytest.fixture
def irq_header():
    return list(IRQ_HEADER)


@pytest.fixture
def plain_header():
    return list(PLAIN_HEADER)
