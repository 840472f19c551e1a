# gpxtools/util/paths.py
from __future__ import annotations

import re
from pathlib import Path

_name_bad = re.compile(r"[\\/\x00]+")

def ensure_dir(path: Path) -> None:
    """Ensure a directory exists."""
    path.mkdir(parents=True, exist_ok=True)

def track_filename(name: str, *, default: str = "untitled", suffix: str = ".gpx") -> str:
    """File name for a track: its name with path separators replaced, plus suffix."""
    s = _name_bad.sub("_", (name or "").strip())
    return (s or default) + suffix
