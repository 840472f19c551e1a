# gpxtools/analyze/anomaly.py
"""
Low-speed ("bad") stretch detection.

A point is bad when the speed over the trailing window ending at it
(window bounded by distance, see TrailingWindow) falls below
min_speed_factor times the whole-track average speed. Typical causes
are GPS drift while stationary or a recorder left running.
"""

from __future__ import annotations

from typing import Iterator, Optional

from gpxtools.analyze.track import Point, Track
from gpxtools.analyze.window import TrailingWindow

# how far back to average the track
DEFAULT_SAMPLE_DISTANCE_KM = 0.1
# bad = local speed below this fraction of the global average
DEFAULT_MIN_SPEED_FACTOR = 0.6


def local_speeds(
        track: Track,
        sample_distance_km: float = DEFAULT_SAMPLE_DISTANCE_KM,
) -> Iterator[tuple[Point, Optional[float]]]:
    """Yield (point, window speed in km/h or None) for every point in order."""
    window = TrailingWindow(sample_distance_km)
    for pt in track.points:
        window.push(pt)
        yield pt, window.speed()


def detect_bad(
        track: Track,
        sample_distance_km: float = DEFAULT_SAMPLE_DISTANCE_KM,
        min_speed_factor: float = DEFAULT_MIN_SPEED_FACTOR,
        *,
        name: str = "bad",
) -> Track:
    """
    Return a new Track holding the points classified as bad.

    Points whose window has fewer than two points or zero elapsed time
    are never flagged.

    Raises:
      EmptyTrackError, ZeroDurationError (for the whole-track baseline)
    """
    threshold = track.average_speed() * min_speed_factor

    bad = Track(name=name)
    for pt, speed in local_speeds(track, sample_distance_km):
        if speed is not None and speed < threshold:
            bad.points.append(pt)
    return bad
