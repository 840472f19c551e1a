import datetime as dt
from pathlib import Path
from xml.etree import ElementTree as ET

import pytest

from gpxtools.analyze.track import SENTINEL_TIME, Point, Track
from gpxtools.errors import GpxIOError, InvalidGpxError, MalformedInputError, TimestampParseError
from gpxtools.formats.gpx import (
    GPX_NS,
    _format_gpx_time,
    _parse_gpx_time,
    encode_track,
    read_track,
    write_track,
)

T0 = dt.datetime(2024, 5, 1, 8, 0, 0, tzinfo=dt.timezone.utc)


def _write(tmp_path: Path, body: str, name: str = "in.gpx") -> Path:
    p = tmp_path / name
    p.write_text(body, encoding="utf-8")
    return p


def test_read_sample_gpx(sample_gpx_path):
    result = read_track(sample_gpx_path)
    track = result.track

    assert result.warnings == []
    assert track.name == "Sample Ride"
    assert len(track) == 12
    assert track.points[0] == Point(lat=0.0, lon=0.0, ele=100.5, time=T0)
    assert track.points[-1].lon == pytest.approx(0.011)
    assert track.points[-1].time == T0 + dt.timedelta(seconds=110)


def test_read_bare_gpx_without_namespace(tmp_path):
    p = _write(tmp_path, """<?xml version="1.0"?>
<gpx><trk><name>Bare</name><trkseg>
  <trkpt lat="1.5" lon="2.5" ele="7"><time>2024-05-01T08:00:00.250Z</time></trkpt>
  <trkpt lat="1.6" lon="2.6"><time>2024-05-01T08:00:01.000Z</time><foo>x</foo></trkpt>
</trkseg></trk></gpx>""")

    track = read_track(p).track

    assert track.name == "Bare"
    assert track.points[0].ele == 7.0
    assert track.points[0].time == T0 + dt.timedelta(milliseconds=250)
    assert track.points[1].ele == 0.0


def test_track_name_falls_back_to_metadata(tmp_path):
    p = _write(tmp_path, """<gpx xmlns="http://www.topografix.com/GPX/1/1">
<metadata><name>From Metadata</name></metadata>
<trk><trkseg><trkpt lat="0" lon="0"><time>2024-05-01T08:00:00.000Z</time></trkpt></trkseg></trk>
</gpx>""")
    assert read_track(p).track.name == "From Metadata"


def test_bad_timestamp_is_a_warning_not_an_error(tmp_path):
    p = _write(tmp_path, """<gpx><trk><name>t</name><trkseg>
  <trkpt lat="0" lon="0"><time>2024-05-01T08:00:00.000Z</time></trkpt>
  <trkpt lat="0" lon="0.001"><time>yesterday-ish</time></trkpt>
  <trkpt lat="0" lon="0.002"></trkpt>
  <trkpt lat="0" lon="0.003"><time>2024-05-01T08:00:30.000Z</time></trkpt>
</trkseg></trk></gpx>""")

    result = read_track(p)

    assert len(result.track) == 4
    assert [w.index for w in result.warnings] == [1, 2]
    assert "yesterday-ish" in str(result.warnings[0])
    assert result.track.points[1].time == SENTINEL_TIME
    assert result.track.points[2].time == SENTINEL_TIME
    assert result.track.points[3].time == T0 + dt.timedelta(seconds=30)


def test_bad_elevation_is_a_warning(tmp_path):
    p = _write(tmp_path, """<gpx><trk><trkseg>
  <trkpt lat="0" lon="0"><ele>high</ele><time>2024-05-01T08:00:00.000Z</time></trkpt>
</trkseg></trk></gpx>""")
    result = read_track(p)
    assert result.track.points[0].ele == 0.0
    assert len(result.warnings) == 1


def test_malformed_xml_raises(tmp_path):
    p = _write(tmp_path, "<gpx><trk><trkseg><trkpt lat='0' lon='0'></trk>")
    with pytest.raises(MalformedInputError):
        read_track(p)


@pytest.mark.parametrize(
    "attrs",
    ['lon="0"', 'lat="abc" lon="0"', 'lat="91" lon="0"', 'lat="0" lon="-200"'],
)
def test_invalid_coordinates_raise(tmp_path, attrs):
    p = _write(tmp_path, f"<gpx><trk><trkseg><trkpt {attrs}/></trkseg></trk></gpx>")
    with pytest.raises(InvalidGpxError):
        read_track(p)


def test_missing_file_raises_io_error(tmp_path):
    with pytest.raises(GpxIOError):
        read_track(tmp_path / "nope.gpx")


def test_parse_gpx_time_formats():
    assert _parse_gpx_time("2024-05-01T08:00:00.123Z") == T0 + dt.timedelta(milliseconds=123)
    assert _parse_gpx_time("2024-05-01T08:00:00Z") == T0
    assert _parse_gpx_time("2024-05-01T10:00:00+02:00") == T0
    with pytest.raises(TimestampParseError):
        _parse_gpx_time("")


def test_format_gpx_time_milliseconds():
    t = T0 + dt.timedelta(microseconds=45_678)
    assert _format_gpx_time(t) == "2024-05-01T08:00:00.045Z"
    assert _format_gpx_time(SENTINEL_TIME) == "1970-01-01T00:00:01.000Z"


def _gap_track():
    pts = [
        Point(0.0, 0.000, 10.0, T0),
        Point(0.0, 0.001, 11.0, T0 + dt.timedelta(seconds=10)),
        Point(0.0, 0.100, 12.0, T0 + dt.timedelta(seconds=20)),  # ~11 km jump
        Point(0.0, 0.101, 13.0, T0 + dt.timedelta(seconds=30)),
    ]
    return Track("gappy", pts)


def test_encode_track_autoseg_writes_one_trkseg_per_gap():
    root = encode_track(_gap_track(), autoseg=True, creator="tester")

    assert root.tag == f"{{{GPX_NS['gpx']}}}gpx"
    assert root.get("creator") == "tester"
    segs = root.findall("gpx:trk/gpx:trkseg", GPX_NS)
    assert [len(s.findall("gpx:trkpt", GPX_NS)) for s in segs] == [2, 2]
    first = segs[0].find("gpx:trkpt", GPX_NS)
    assert first.get("lat") == "0.0"
    assert first.get("ele") == "10.0"
    assert first.findtext("gpx:time", namespaces=GPX_NS) == "2024-05-01T08:00:00.000Z"


def test_encode_track_single_segment_policy():
    root = encode_track(_gap_track(), autoseg=False)
    segs = root.findall("gpx:trk/gpx:trkseg", GPX_NS)
    assert len(segs) == 1
    assert len(segs[0]) == 4


def test_encode_empty_track_has_no_segments():
    root = encode_track(Track("bad"))
    assert root.findtext("gpx:trk/gpx:name", namespaces=GPX_NS) == "bad"
    assert root.findall("gpx:trk/gpx:trkseg", GPX_NS) == []


def test_write_track_round_trip(tmp_path):
    track = _gap_track()
    track.points.append(Point(-12.345678901234, 98.7654321, -3.25,
                              T0 + dt.timedelta(seconds=40, milliseconds=125)))

    out = write_track(track, tmp_path / "out")

    assert out == tmp_path / "out" / "gappy.gpx"
    assert out.read_bytes().startswith(b"<?xml version")
    back = read_track(out)
    assert back.warnings == []
    assert back.track.name == track.name
    assert back.track.points == track.points


def test_write_track_empty_name_and_separators(tmp_path):
    assert write_track(Track(""), tmp_path).name == "untitled.gpx"
    assert write_track(Track("a/b"), tmp_path).name == "a_b.gpx"


def test_write_track_unwritable_target_raises(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("x", encoding="utf-8")
    with pytest.raises(GpxIOError):
        write_track(Track("t"), blocker / "sub")


def test_written_file_is_parseable_xml(tmp_path):
    out = write_track(_gap_track(), tmp_path)
    root = ET.parse(out).getroot()
    assert len(root.findall(".//gpx:trkpt", GPX_NS)) == 4
