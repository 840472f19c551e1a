# gpxtools/analyze/window.py
"""
Trailing distance-bounded windows over a stream of points.

Two forms with the same stopping rule (drop the oldest point while the
window is longer than the cap, never going below one point):

  - truncate_by_length(): in-place on a Track, recomputing length()
    after every removal.
  - TrailingWindow: keeps per-step distances and a running total so
    each eviction is O(1).
"""

from __future__ import annotations

import datetime as _dt
from collections import deque
from typing import Optional

from gpxtools.analyze.track import Point, Track, distance_km


def truncate_by_length(track: Track, max_length_km: float) -> None:
    """Drop leading points of `track` until its length is <= max_length_km."""
    while len(track.points) > 1 and track.length() > max_length_km:
        del track.points[0]


class TrailingWindow:
    """
    Suffix of a point stream whose cumulative distance stays under a cap.

    _steps[i] is the distance from _points[i] to _points[i + 1].
    """

    def __init__(self, max_length_km: float):
        self.max_length_km = max_length_km
        self._points: deque[Point] = deque()
        self._steps: deque[float] = deque()
        self._length = 0.0

    def __len__(self) -> int:
        return len(self._points)

    @property
    def points(self) -> list[Point]:
        return list(self._points)

    def length(self) -> float:
        return self._length

    def elapsed_time(self) -> _dt.timedelta:
        if not self._points:
            return _dt.timedelta(0)
        # pairwise deltas telescope exactly (timedelta is integral)
        return self._points[-1].time - self._points[0].time

    def push(self, pt: Point) -> None:
        """Append a point and evict from the front until within the cap."""
        if self._points:
            step = distance_km(self._points[-1], pt)
            self._steps.append(step)
            self._length += step
        self._points.append(pt)
        self.trim()

    def trim(self) -> None:
        while len(self._points) > 1 and self._length > self.max_length_km:
            self._points.popleft()
            self._length -= self._steps.popleft()
        if len(self._points) == 1:
            # reset accumulated rounding once nothing is left to sum
            self._length = 0.0

    def speed(self) -> Optional[float]:
        """
        Window speed in km/h, or None when it cannot be classified
        (fewer than two points, or zero elapsed time).
        """
        if len(self._points) < 2:
            return None
        hours = self.elapsed_time().total_seconds() / 3600.0
        if hours == 0:
            return None
        return self._length / hours

    def to_track(self, name: str = "window") -> Track:
        return Track(name=name, points=self.points)
