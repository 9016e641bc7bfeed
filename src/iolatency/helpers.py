import os
import stat
from typing import Tuple


def parse_device(text: str) -> Tuple[int, int]:
    """
    Device given as "major,minor" (the way trace lines print it) or as a
    block device name or path ("sda", "/dev/nvme0n1").
    """
    text = text.strip()
    if "," in text:
        major_s, minor_s = text.split(",", 1)
        try:
            major, minor = int(major_s), int(minor_s)
        except ValueError:
            raise ValueError(f"bad device {text!r}, expected major,minor") from None
        if major < 0 or minor < 0:
            raise ValueError(f"bad device {text!r}, expected major,minor")
        return major, minor

    path = text if text.startswith("/") else os.path.join("/dev", text)
    try:
        st = os.stat(path)
    except OSError as exc:
        raise ValueError(f"cannot stat device {path}: {exc.strerror}") from None
    if not stat.S_ISBLK(st.st_mode):
        raise ValueError(f"{path} is not a block device")
    return os.major(st.st_rdev), os.minor(st.st_rdev)


def device_number(major: int, minor: int) -> int:
    # kernel-internal dev_t layout used by the block tracepoints' dev field
    return (major << 20) | minor


def trace_device_id(major: int, minor: int) -> str:
    return f"{major},{minor}"
