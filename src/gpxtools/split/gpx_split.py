#!/usr/bin/env python3
"""
gpx-split: cut an oversized GPX track into bounded-size GPX files.

Each part is written as <out_dir>/<track name>_<i>.gpx, with physically
discontinuous stretches (gaps larger than the gap threshold) written as
separate <trkseg> blocks unless --no-autoseg is given.

With --bad, the whole track is also swept for low-speed stretches and the
flagged points are written to <out_dir>/bad.gpx.

Resolution of every setting: CLI flag > GPXTOOLS_* env > user config >
repo config > default (see gpxtools.config).
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Optional

from gpxtools.analyze.anomaly import detect_bad
from gpxtools.analyze.segment import ROUNDING_POLICIES, partition
from gpxtools.analyze.track import Track
from gpxtools.config import load_config
from gpxtools.errors import GpxToolsError, ZeroDurationError
from gpxtools.formats.gpx import read_track, write_track
from gpxtools.util.logging import log, warn


def report_part(part: Track, start: int) -> None:
    """Log distance / duration / speed for one part."""
    end = start + len(part) - 1
    if not part.points:
        log(f"Seg {part.name}: no points")
        return
    hours = part.elapsed_time().total_seconds() / 3600.0
    try:
        speed = f"{part.average_speed():.2f} km/h"
    except ZeroDurationError:
        speed = "n/a"
    log(f"Seg dist:     {part.length():.3f} km")
    log(f"Seg duration: {hours:.2f} h")
    log(f"Seg speed:    {speed}")
    log(f"Seg pts:      {start}-{end}")


def split_track(
        track: Track,
        out_dir: Path, *,
        max_points: int,
        rounding: str = "ceil",
        autoseg: bool = True,
        gap_threshold_km: float = 0.5,
        creator: str = "gpxtools",
) -> list[Path]:
    """Partition a track and write every part. Returns the written paths."""
    parts = partition(track, max_points, rounding)
    log(f"Will generate {len(parts)} tracks")
    log(f"Track name:   {track.name!r}")

    written: list[Path] = []
    for i, part in enumerate(parts):
        report_part(part, i * max_points)
        out = write_track(part, out_dir, autoseg=autoseg,
                          gap_threshold_km=gap_threshold_km, creator=creator)
        log(f"Wrote: {out}")
        written.append(out)
    return written


def write_bad(
        track: Track,
        out_dir: Path, *,
        sample_distance_km: float = 0.1,
        min_speed_factor: float = 0.6,
        creator: str = "gpxtools",
) -> Path:
    """Run low-speed detection over the whole track and write bad.gpx."""
    bad = detect_bad(track, sample_distance_km, min_speed_factor)
    log(f"Bad points:   {len(bad)} of {len(track)}")
    out = write_track(bad, out_dir, autoseg=False, creator=creator)
    log(f"Wrote: {out}")
    return out


def main(argv: Optional[list[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="gpxtools: Split a GPX track into bounded-size files.")
    ap.add_argument("gpx", nargs="?", default=None,
                    help="GPX file to process (default: split.default_input from config)")
    ap.add_argument("--maxpoints", type=int, default=None, metavar="NUM",
                    help="Maximum points per output track (default: from config, 3000)")
    ap.add_argument("--out-dir", default=None,
                    help="Output directory (default: from config, current directory)")
    ap.add_argument("--rounding", choices=ROUNDING_POLICIES, default=None,
                    help="Part count policy: ceil keeps every point, round drops a short tail")
    ap.add_argument("--gap-km", type=float, default=None,
                    help="Start a new <trkseg> after a gap larger than this (default: 0.5)")
    ap.add_argument("--no-autoseg", action="store_true",
                    help="Write each part as a single <trkseg>.")
    ap.add_argument("--bad", action="store_true",
                    help="Also detect low-speed points and write bad.gpx.")
    ap.add_argument("--sample-km", type=float, default=None,
                    help="Trailing window distance for local speed (default: 0.1)")
    ap.add_argument("--min-speed-factor", type=float, default=None,
                    help="Bad if local speed < factor * average (default: 0.6)")

    args = ap.parse_args(argv)

    try:
        cfg = load_config()
    except GpxToolsError as e:
        log(f"ERROR: {e}")
        return 2

    gpx_path = Path(args.gpx).expanduser() if args.gpx else cfg.split.default_input
    out_dir = Path(args.out_dir).expanduser() if args.out_dir else cfg.output.out_dir
    max_points = args.maxpoints if args.maxpoints is not None else cfg.split.max_points
    rounding = args.rounding or cfg.split.rounding
    gap_km = args.gap_km if args.gap_km is not None else cfg.segment.gap_threshold_km
    autoseg = cfg.segment.autoseg and not args.no_autoseg

    if max_points < 1:
        log(f"ERROR: --maxpoints must be >= 1 (got {max_points})")
        return 2

    try:
        result = read_track(gpx_path)
        for w in result.warnings:
            warn(f"{gpx_path}: {w}")

        split_track(result.track, out_dir, max_points=max_points, rounding=rounding,
                    autoseg=autoseg, gap_threshold_km=gap_km, creator=cfg.output.creator)
        if args.bad:
            write_bad(
                result.track, out_dir,
                sample_distance_km=(args.sample_km if args.sample_km is not None
                                    else cfg.analysis.sample_distance_km),
                min_speed_factor=(args.min_speed_factor if args.min_speed_factor is not None
                                  else cfg.analysis.min_speed_factor),
                creator=cfg.output.creator,
            )
    except GpxToolsError as e:
        log(f"ERROR: {e}")
        return 2

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
