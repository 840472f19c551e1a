import datetime as dt
from pathlib import Path

import pytest

from gpxtools.analyze.track import Point, Track

T0 = dt.datetime(2024, 5, 1, 8, 0, 0, tzinfo=dt.timezone.utc)


@pytest.fixture
def sample_gpx_path() -> Path:
    return Path(__file__).parent / "data" / "sample.gpx"


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep the developer's ~/.config and GPXTOOLS_* variables out of tests."""
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    for var in ("GPXTOOLS_SAMPLE_DISTANCE_KM", "GPXTOOLS_MIN_SPEED_FACTOR",
                "GPXTOOLS_GAP_THRESHOLD_KM", "GPXTOOLS_MAX_POINTS",
                "GPXTOOLS_ROUNDING", "GPXTOOLS_OUT_DIR"):
        monkeypatch.delenv(var, raising=False)


def make_track(coords, *, step_s=10, name="test", start=T0):
    """Track from (lat, lon) pairs, one point every step_s seconds."""
    return Track(name=name, points=[
        Point(lat=lat, lon=lon, ele=0.0, time=start + dt.timedelta(seconds=i * step_s))
        for i, (lat, lon) in enumerate(coords)
    ])


@pytest.fixture
def track_factory():
    return make_track
