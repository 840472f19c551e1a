# gpxtools/analyze/track.py
"""
Track model and metric functions for gpxtools

Units used throughout:
  - distance: kilometres
  - speed:    km/h
  - time:     datetime.timedelta
"""

from __future__ import annotations

import datetime as _dt
from dataclasses import dataclass, field

from haversine import haversine, Unit

from gpxtools.errors import EmptyTrackError, ZeroDurationError

# Spherical earth, fixed radius
EARTH_RADIUS_KM = 6371.0

# Placeholder time for points whose <time> was missing or unparsable
SENTINEL_TIME = _dt.datetime(1970, 1, 1, 0, 0, 1, tzinfo=_dt.timezone.utc)


@dataclass(frozen=True)
class Point:
    lat: float
    lon: float
    ele: float = 0.0
    time: _dt.datetime = SENTINEL_TIME


def distance_km(p1: Point, p2: Point) -> float:
    """
    Great-circle (haversine) distance between two points in kilometres.

    Elevation and time are ignored. The central angle comes from the
    haversine package (Unit.RADIANS) and is scaled by EARTH_RADIUS_KM
    rather than the package's own mean radius.
    """
    return EARTH_RADIUS_KM * haversine((p1.lat, p1.lon), (p2.lat, p2.lon), unit=Unit.RADIANS)


@dataclass
class Track:
    """
    A named, ordered sequence of points.

    Points are frozen dataclasses, so tracks built from another track's
    points never share mutable state with it.
    """

    name: str = ""
    points: list[Point] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.points)

    def _require_points(self) -> None:
        if not self.points:
            raise EmptyTrackError(f"track {self.name!r} has no points")

    def length(self) -> float:
        """Total path length in km (sum over consecutive point pairs)."""
        self._require_points()
        total = 0.0
        prev = self.points[0]
        for pt in self.points:
            total += distance_km(prev, pt)
            prev = pt
        return total

    def elapsed_time(self) -> _dt.timedelta:
        """
        Time covered by the track, accumulated pair by pair.

        Equal to last.time - first.time for monotonic input; for
        out-of-order timestamps the running sum is what is returned.
        """
        self._require_points()
        total = _dt.timedelta(0)
        prev = self.points[0].time
        for pt in self.points:
            total += pt.time - prev
            prev = pt.time
        return total

    def average_speed(self) -> float:
        """Average speed in km/h. Raises ZeroDurationError for zero elapsed time."""
        hours = self.elapsed_time().total_seconds() / 3600.0
        if hours == 0:
            raise ZeroDurationError(f"track {self.name!r} has zero elapsed time")
        return self.length() / hours


def compute_step_metrics(points):
    """Return per-step dt (s), distance (km), speed (km/h)."""
    dts = []
    ds = []
    vs = []

    for p0, p1 in zip(points, points[1:]):
        dt_s = (p1.time - p0.time).total_seconds()
        if dt_s <= 0:
            continue

        d_km = distance_km(p0, p1)
        v = d_km / (dt_s / 3600.0)

        dts.append(dt_s)
        ds.append(d_km)
        vs.append(v)

    return dts, ds, vs
