#!/usr/bin/env python3
"""
gpx-analyze: per-file track statistics and low-speed detection.
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Optional

from gpxtools.analyze.anomaly import detect_bad, local_speeds
from gpxtools.analyze.segment import split_on_gaps
from gpxtools.analyze.track import compute_step_metrics
from gpxtools.config import load_config
from gpxtools.errors import GpxToolsError, TrackError
from gpxtools.formats.gpx import read_track
from gpxtools.util.logging import log, warn


def analyze_track(
        gpx_path: Path, *,
        gap_threshold_km: float = 0.5,
        sample_distance_km: float = 0.1,
        min_speed_factor: float = 0.6,
        plot_path: Optional[Path] = None,
) -> dict:
    result = read_track(gpx_path)
    track = result.track
    for w in result.warnings:
        warn(f"{gpx_path}: {w}")

    stats = {
        "name": track.name,
        "points": len(track),
        "segments": len(split_on_gaps(track, gap_threshold_km)),
        "warnings": len(result.warnings),
    }
    if len(track) < 2:
        return stats

    _, _, vs = compute_step_metrics(track.points)
    stats.update({
        "distance_km": track.length(),
        "duration_s": track.elapsed_time().total_seconds(),
        "max_speed_kmh": max(vs) if vs else 0.0,
    })

    try:
        stats["avg_speed_kmh"] = track.average_speed()
        bad = detect_bad(track, sample_distance_km, min_speed_factor)
    except TrackError as e:
        warn(f"{gpx_path}: {e}")
        return stats
    stats["bad_points"] = len(bad)

    if plot_path is not None:
        from gpxtools.visualize.plot import plot_speed

        speeds = [v for _, v in local_speeds(track, sample_distance_km)]
        plot_speed(track, speeds, bad=bad, out_path=plot_path)

    return stats


def print_report(path: Path, stats: dict, *, tsv: bool) -> None:
    if tsv:
        print(
            f"{path}\t"
            f"{stats.get('points', 0)}\t"
            f"{stats.get('segments', 0)}\t"
            f"{stats.get('distance_km', 0.0):.3f}\t"
            f"{stats.get('duration_s', 0.0):.1f}\t"
            f"{stats.get('avg_speed_kmh', 0.0):.2f}\t"
            f"{stats.get('max_speed_kmh', 0.0):.2f}\t"
            f"{stats.get('bad_points', 0)}\t"
            f"{stats.get('warnings', 0)}"
        )
    else:
        print(f"\n{path}")
        print(f"  name           : {stats.get('name', '')}")
        print(f"  points         : {stats.get('points', 0)}")
        print(f"  segments       : {stats.get('segments', 0)}")
        print(f"  distance (km)  : {stats.get('distance_km', 0.0):.3f}")
        print(f"  duration (s)   : {stats.get('duration_s', 0.0):.1f}")
        print(f"  avg speed km/h : {stats.get('avg_speed_kmh', 0.0):.2f}")
        print(f"  max speed km/h : {stats.get('max_speed_kmh', 0.0):.2f}")
        print(f"  bad points     : {stats.get('bad_points', 0)}")
        print(f"  warnings       : {stats.get('warnings', 0)}")


def main(argv: Optional[list[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="gpxtools: Analyze GPX file(s).")
    ap.add_argument("gpx", nargs="+",
                    help="One or more GPX files.")
    ap.add_argument("--tsv", action="store_true",
                    help="Print tab-separated output (good for piping).")
    ap.add_argument("--gap-km", type=float, default=None,
                    help="Gap threshold for segment counting (default: from config, 0.5)")
    ap.add_argument("--sample-km", type=float, default=None,
                    help="Trailing window distance for local speed (default: from config, 0.1)")
    ap.add_argument("--min-speed-factor", type=float, default=None,
                    help="Bad if local speed < factor * average (default: from config, 0.6)")
    ap.add_argument("--plot", default=None,
                    help="Save a local-speed plot to this PNG (single input only).")

    args = ap.parse_args(argv)  # parse out the arguments into `args`

    try:
        cfg = load_config()
    except GpxToolsError as e:
        log(f"ERROR: {e}")
        return 2

    gap_km = args.gap_km if args.gap_km is not None else cfg.segment.gap_threshold_km
    sample_km = args.sample_km if args.sample_km is not None else cfg.analysis.sample_distance_km
    factor = (args.min_speed_factor if args.min_speed_factor is not None
              else cfg.analysis.min_speed_factor)

    paths = [Path(p).expanduser() for p in args.gpx]
    if args.plot and len(paths) > 1:
        log("ERROR: --plot takes a single GPX file")
        return 2

    if args.tsv:
        print("file\tpoints\tsegments\tdistance_km\tduration_s\tavg_speed_kmh"
              "\tmax_speed_kmh\tbad_points\twarnings")

    rc = 0
    for path in paths:
        if not path.is_file():
            log(f"Skipping (not a file): {path}")
            continue
        try:
            stats = analyze_track(
                path,
                gap_threshold_km=gap_km,
                sample_distance_km=sample_km,
                min_speed_factor=factor,
                plot_path=Path(args.plot) if args.plot else None,
            )
        except GpxToolsError as e:
            log(f"ERROR: {e}")
            rc = 2
            continue
        print_report(path, stats, tsv=args.tsv)

    return rc


if __name__ == "__main__":
    raise SystemExit(main())
