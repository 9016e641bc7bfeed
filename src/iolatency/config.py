import os

# -------------------------
# Interval cadence
# -------------------------
INTERVAL_SEC = 1.0
COUNT = 0  # 0 = run until interrupted

# -------------------------
# Report layout
# -------------------------
BAR_WIDTH = 38
INITIAL_BUCKETS = 16  # grows on demand

# -------------------------
# ftrace
# -------------------------
TRACING_DIR = os.environ.get("IOLATENCY_TRACING_DIR", "/sys/kernel/debug/tracing")
LOCK_FILE = "/var/tmp/.ftrace-lock"
BUFSIZE_KB = 4096

START_EVENT = "block_rq_issue"
QUEUE_START_EVENT = "block_rq_insert"  # -Q: include queueing time
COMPLETE_EVENT = "block_rq_complete"

# -------------------------
# Matplotlib backend (GUI vs headless)
# -------------------------
HEADLESS = (os.environ.get("DISPLAY", "") == "")
