# gpxtools/analyze/segment.py
"""
Splitting policies for tracks.

  - split_on_gaps(): group points into segments, breaking wherever two
    consecutive points are further apart than a threshold.
  - partition(): cut a track into parts of at most max_points points,
    for downstream tools with point-count limits.
"""

from __future__ import annotations

import math

from gpxtools.analyze.track import Point, Track, distance_km

DEFAULT_GAP_THRESHOLD_KM = 0.5
DEFAULT_MAX_POINTS = 3000

ROUNDING_POLICIES = ("ceil", "round")


def split_on_gaps(
        track: Track,
        gap_threshold_km: float = DEFAULT_GAP_THRESHOLD_KM,
        *,
        enabled: bool = True,
) -> list[list[Point]]:
    """
    Return the track's points grouped into gap-free segments.

    With enabled=False the whole track is a single segment.
    An empty track has no segments.
    """
    if not track.points:
        return []
    if not enabled:
        return [list(track.points)]

    segments: list[list[Point]] = [[]]
    prev = track.points[0]
    for pt in track.points:
        if distance_km(prev, pt) > gap_threshold_km:
            segments.append([])
        segments[-1].append(pt)
        prev = pt
    return segments


def part_count(n_points: int, max_points: int, rounding: str = "ceil") -> int:
    """
    Number of parts for n_points.

    "ceil" covers every point. "round" rounds half away from zero, so a
    trailing partial chunk smaller than half of max_points is dropped.
    """
    if max_points < 1:
        raise ValueError(f"max_points must be >= 1 (got {max_points})")
    if rounding == "ceil":
        return math.ceil(n_points / max_points)
    if rounding == "round":
        return math.floor(n_points / max_points + 0.5)
    raise ValueError(f"Unknown rounding policy: {rounding!r} (expected one of {ROUNDING_POLICIES})")


def partition(
        track: Track,
        max_points: int = DEFAULT_MAX_POINTS,
        rounding: str = "ceil",
) -> list[Track]:
    """Split a track into contiguous parts named "<name>_<i>"."""
    n = len(track.points)
    parts: list[Track] = []
    for i in range(part_count(n, max_points, rounding)):
        start = i * max_points
        end = min((i + 1) * max_points, n)
        parts.append(Track(name=f"{track.name}_{i}", points=track.points[start:end]))
    return parts
