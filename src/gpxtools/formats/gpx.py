# gpxtools/formats/gpx.py
"""
GPX reading and writing for gpxtools

This module is intentionally format-focused:
- GPX namespace handling
- safely reading and writing ElementTree
- decoding <trkpt> elements into a Track, and encoding a Track back
  (with gap segmentation applied to <trkseg> blocks)

Key design principle:
  Keep orchestration (paths, config, reporting) in the CLI scripts,
  separate from GPX parsing and transformation logic (here).
"""

from __future__ import annotations

import datetime as _dt
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
from xml.etree import ElementTree as ET

from gpxtools.analyze.segment import DEFAULT_GAP_THRESHOLD_KM, split_on_gaps
from gpxtools.analyze.track import SENTINEL_TIME, Point, Track
from gpxtools.errors import GpxIOError, InvalidGpxError, TimestampParseError
from gpxtools.util.paths import ensure_dir, track_filename

# GPX 1.1 default namespace
GPX_NS = {"gpx": "http://www.topografix.com/GPX/1/1"}

DEFAULT_CREATOR = "gpxtools"

ET.register_namespace("", GPX_NS["gpx"])


def qn(tag: str) -> str:
    """
    Build an ElementTree-qualified name for a GPX tag.

    ElementTree represents namespaced tags internally as
      "{namespace-uri}tag"
    """
    return f"{{{GPX_NS['gpx']}}}{tag}"


def _local(tag: str) -> str:
    """Strip any "{namespace}" prefix so bare and namespaced GPX match alike."""
    return tag.rsplit("}", 1)[-1]


def _parse_gpx_time(text: str) -> _dt.datetime:
    """
    Parse an ISO-8601 timestamp commonly found in GPX <time> nodes.

    Expected examples:
      - "2026-01-02T21:14:44.123Z"
      - "2026-01-02T21:14:44Z"
      - "2026-01-02T21:14:44+00:00"

    Raises:
      TimestampParseError
    """
    s = (text or "").strip()
    if not s:
        raise TimestampParseError("empty <time>")

    # ElementTree GPX times commonly use Z for UTC.
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    try:
        dt = _dt.datetime.fromisoformat(s)
    except ValueError as e:
        raise TimestampParseError(f"unparsable <time> {text.strip()!r}") from e

    # Ensure tz-aware; if naive, assume UTC (conservative for GPX sources)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=_dt.timezone.utc)

    return dt.astimezone(_dt.timezone.utc)


def _format_gpx_time(dt: _dt.datetime) -> str:
    """
    Format a datetime as GPX time: UTC, millisecond precision, Z suffix.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=_dt.timezone.utc)
    dt_utc = dt.astimezone(_dt.timezone.utc)
    return dt_utc.strftime("%Y-%m-%dT%H:%M:%S") + f".{dt_utc.microsecond // 1000:03d}Z"


def _indent(elem: ET.Element, level: int = 0, indent: str = "  ") -> None:
    """
    In-place pretty-printer for ElementTree output. Eliminates double blank-line
    issues by explicitly controlling .text/.tail.
    """
    i = "\n" + level * indent
    j = "\n" + (level -1) * indent if level > 0 else "\n"

    children = list(elem)
    if children:
        if elem.text is None or not elem.text.strip():
            elem.text = i + indent
        for child in children:
            _indent(child, level + 1, indent=indent)
        if children[-1].tail is None or not children[-1].tail.strip():
            children[-1].tail = i
    if elem.tail is None or not elem.tail.strip():
        elem.tail = j


def read_gpx(path: Path) -> ET.ElementTree:
    """
    Read a GPX file into an ElementTree.

    Raises:
      InvalidGpxError, GpxIOError
    """
    try:
        return ET.parse(path)
    except ET.ParseError as e:
        raise InvalidGpxError(f"{path}: not well-formed XML ({e})") from e
    except OSError as e:
        raise GpxIOError(f"couldn't read {path} ({e})") from e


def write_gpx(root: ET.Element, out_path: Path, *, pretty: bool = True) -> None:
    """
    Write a GPX XML tree to disk.

    - pretty=True applies indentation for human readability
    - writes UTF-8 with XML declaration

    Raises:
      GpxIOError
    """
    if pretty:
        _indent(root)
    tree = ET.ElementTree(root)
    try:
        ensure_dir(out_path.parent)
        tree.write(out_path, encoding="utf-8", xml_declaration=True)
    except OSError as e:
        raise GpxIOError(f"couldn't write {out_path} ({e})") from e


@dataclass(frozen=True)
class DecodeWarning:
    """A recoverable problem with one trackpoint."""
    index: int
    message: str

    def __str__(self) -> str:
        return f"trkpt #{self.index}: {self.message}"


@dataclass
class DecodeResult:
    track: Track
    warnings: list[DecodeWarning] = field(default_factory=list)


def _child(elem: ET.Element, name: str) -> Optional[ET.Element]:
    for c in elem:
        if _local(c.tag) == name:
            return c
    return None


def _child_text(elem: ET.Element, name: str) -> Optional[str]:
    c = _child(elem, name)
    if c is None or c.text is None:
        return None
    return c.text.strip()


def _coord(trkpt: ET.Element, attr: str, index: int, lo: float, hi: float) -> float:
    raw = trkpt.get(attr)
    if raw is None:
        raise InvalidGpxError(f"trkpt #{index}: missing '{attr}' attribute")
    try:
        v = float(raw)
    except ValueError as e:
        raise InvalidGpxError(f"trkpt #{index}: bad '{attr}' value {raw!r}") from e
    if not lo <= v <= hi:
        raise InvalidGpxError(f"trkpt #{index}: '{attr}' out of range ({v})")
    return v


def _track_name(root: ET.Element) -> str:
    """<trk><name>, falling back to <metadata><name>."""
    for parent in ("trk", "metadata"):
        for elem in root.iter():
            if _local(elem.tag) == parent:
                name = _child_text(elem, "name")
                if name:
                    return name
                break
    return ""


def decode_track(root: ET.Element) -> DecodeResult:
    """
    Decode every <trkpt> (document order) of a GPX document into a Track.

    Unknown elements and attributes are ignored. A missing or
    unparsable <time>/<ele> produces a DecodeWarning instead of an error;
    the point then carries SENTINEL_TIME / 0.0.

    Raises:
      InvalidGpxError (missing or invalid lat/lon)
    """
    track = Track(name=_track_name(root))
    warnings: list[DecodeWarning] = []

    trkpts = [e for e in root.iter() if _local(e.tag) == "trkpt"]
    for index, trkpt in enumerate(trkpts):
        lat = _coord(trkpt, "lat", index, -90.0, 90.0)
        lon = _coord(trkpt, "lon", index, -180.0, 180.0)

        # <ele> element first, then the ele attribute this tool writes
        ele_text = _child_text(trkpt, "ele")
        if ele_text is None:
            ele_text = trkpt.get("ele")
        ele = 0.0
        if ele_text:
            try:
                ele = float(ele_text)
            except ValueError:
                warnings.append(DecodeWarning(index, f"bad elevation {ele_text!r}, using 0"))

        time = SENTINEL_TIME
        try:
            time = _parse_gpx_time(_child_text(trkpt, "time") or "")
        except TimestampParseError as e:
            warnings.append(DecodeWarning(index, str(e)))

        track.points.append(Point(lat=lat, lon=lon, ele=ele, time=time))

    return DecodeResult(track=track, warnings=warnings)


def read_track(path: Path) -> DecodeResult:
    """Read and decode a GPX file. See read_gpx() and decode_track()."""
    return decode_track(read_gpx(path).getroot())


def encode_track(
        track: Track, *,
        autoseg: bool = True,
        gap_threshold_km: float = DEFAULT_GAP_THRESHOLD_KM,
        creator: str = DEFAULT_CREATOR,
) -> ET.Element:
    """
    Build a GPX 1.1 document for a track.

    With autoseg=True each gap segment (see split_on_gaps) becomes its own
    <trkseg>; with autoseg=False all points go into one <trkseg>.
    """
    root = ET.Element(qn("gpx"), {"version": "1.1", "creator": creator})
    trk = ET.SubElement(root, qn("trk"))
    ET.SubElement(trk, qn("name")).text = track.name

    for seg in split_on_gaps(track, gap_threshold_km, enabled=autoseg):
        trkseg = ET.SubElement(trk, qn("trkseg"))
        for pt in seg:
            trkpt = ET.SubElement(trkseg, qn("trkpt"), {
                "lat": str(pt.lat),
                "lon": str(pt.lon),
                "ele": str(pt.ele),
            })
            ET.SubElement(trkpt, qn("time")).text = _format_gpx_time(pt.time)

    return root


def write_track(
        track: Track, out_dir: Path, *,
        autoseg: bool = True,
        gap_threshold_km: float = DEFAULT_GAP_THRESHOLD_KM,
        creator: str = DEFAULT_CREATOR,
        pretty: bool = True,
) -> Path:
    """Encode a track and write it to <out_dir>/<track name>.gpx. Returns the path."""
    out_path = Path(out_dir) / track_filename(track.name)
    root = encode_track(track, autoseg=autoseg, gap_threshold_km=gap_threshold_km, creator=creator)
    write_gpx(root, out_path, pretty=pretty)
    return out_path
