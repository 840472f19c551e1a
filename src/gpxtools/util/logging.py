# gpxtools/util/logging.py
from __future__ import annotations

import datetime
import sys

def _stamp() -> str:
    return datetime.datetime.now().astimezone().isoformat(timespec="seconds")

def log(msg: str) -> None:
    """Print a timestamped log line (local time with timezone)."""
    print(f"{_stamp()}  {msg}")

def warn(msg: str) -> None:
    """Same as log(), but on stderr so piped report output stays clean."""
    print(f"{_stamp()}  WARNING: {msg}", file=sys.stderr)
