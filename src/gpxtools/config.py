"""
gpxtools configuration loader

This module centralizes *all* configuration handling for gpxtools.

Design goals:
- Keep scripts Unix-friendly: CLI flags override everything.
- Provide sensible defaults if no config exists.
- Allow per-machine config without committing personal paths:
    ~/.config/gpxtools/config.toml
- Allow repo-local config:
    <repo_root>/config/config.toml
- Allow environment variable overrides for automation.

Precedence (highest to lowest) for any given value:
1) CLI argument (handled by each script)
2) Environment variables (GPXTOOLS_*)
3) User config: ~/.config/gpxtools/config.toml
4) Repo config: <repo_root>/config/config.toml
5) Hard defaults (see the dataclasses below)

This module uses Python's built-in tomllib on Python 3.11+, or `tomli` if installed.

Adding a setting:
- add a field (with its default) to the section dataclass
- add a row to _SETTINGS (TOML key, coercion)
- optionally add an environment variable to _ENV_MAP
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Callable, Optional

from gpxtools.errors import ConfigError

# ---------------------------------------------------------------------------
# TOML loading helpers
# ---------------------------------------------------------------------------
def _load_toml(path: Path) -> dict[str, Any]:
    """
    Parse a TOML file at `path`.

    Behavior:
    - If the file does not exist, return an empty dict (non-fatal).
    - If the file exists but is invalid TOML, raise ConfigError
      with a clear, user-facing message.

    Rationale:
    - Missing config files are normal and expected.
    - Malformed config files indicate user intent and should fail loudly.
    """
    if not path.is_file():
        return {}

    try:
        try:
            # Python 3.11+ standard library
            import tomllib
            return tomllib.loads(path.read_text(encoding="utf-8")) or {}
        except ModuleNotFoundError:
            import tomli
            return tomli.loads(path.read_text(encoding="utf-8")) or {}
    except Exception as e:
        # Wrap parsing errors with file context for usability
        raise ConfigError(f"Failed to parse TOML config: {path} ({e})") from e


# ---------------------------------------------------------------------------
# Generic coercion helpers
# ---------------------------------------------------------------------------
def _deep_get(d: dict[str, Any], dotted_key: str) -> Any:
    """
    Fetch nested dictionary values using dot-separated keys.

    Example:
        _deep_get(cfg, "split.max_points")

    Returns None if any part of the path is missing.
    """
    cur: Any = d
    for part in dotted_key.split("."):
        if not isinstance(cur, dict) or part not in cur:
            return None
        cur = cur[part]
    return cur


def _as_path(v: Any) -> Path:
    """Coerce a config value (str or Path) into an expanded Path."""
    if isinstance(v, Path):
        return v.expanduser()
    if isinstance(v, str):
        return Path(v).expanduser()
    raise ValueError(f"expected a path, got {v!r}")


def _as_bool(v: Any) -> bool:
    """
    Coerce loosely-typed config values into booleans.

    Accepts common truthy / falsy representations so that TOML values and
    environment variables behave consistently.
    """
    if isinstance(v, bool):
        return v
    if isinstance(v, (int, float)):
        return bool(v)
    if isinstance(v, str):
        s = v.strip().lower()
        if s in ("true", "yes", "y", "1", "on"):
            return True
        if s in ("false", "no", "n", "0", "off"):
            return False
    raise ValueError(f"expected a boolean, got {v!r}")


def _as_float(v: Any) -> float:
    if isinstance(v, bool):
        raise ValueError(f"expected a number, got {v!r}")
    return float(v)


def _as_positive_int(v: Any) -> int:
    if isinstance(v, bool):
        raise ValueError(f"expected an integer, got {v!r}")
    n = int(v)
    if n < 1:
        raise ValueError(f"expected an integer >= 1, got {v!r}")
    return n


def _as_rounding(v: Any) -> str:
    s = str(v).strip().lower()
    if s not in ("ceil", "round"):
        raise ValueError(f"expected 'ceil' or 'round', got {v!r}")
    return s


# ---------------------------------------------------------------------------
# Repo discovery
# ---------------------------------------------------------------------------
def find_repo_root(start: Path) -> Optional[Path]:
    """
    Walk upward from `start` looking for the gpxtools repo root.

    Heuristic:
    - The presence of a `config/` directory marks the repo root
    """
    start = start.resolve()
    for p in [start] + list(start.parents):
        if (p / "config").is_dir():
            return p
    return None


# ---------------------------------------------------------------------------
# Typed config dataclasses
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class AnalysisConfig:
    """Low-speed detection parameters."""

    sample_distance_km: float = 0.1
    min_speed_factor: float = 0.6


@dataclass(frozen=True)
class SegmentConfig:
    """Gap segmentation applied when writing GPX."""

    gap_threshold_km: float = 0.5
    autoseg: bool = True


@dataclass(frozen=True)
class SplitConfig:
    """Fixed-size partitioning of oversized tracks."""

    max_points: int = 3000
    rounding: str = "ceil"
    default_input: Path = Path("data/Day1-1.gpx")


@dataclass(frozen=True)
class OutputConfig:
    out_dir: Path = Path(".")
    creator: str = "gpxtools"


@dataclass(frozen=True)
class GpxToolsConfig:
    """
    Fully merged gpxtools configuration.

    Attributes:
    - analysis / segment / split / output: typed sections
    - source: provenance map showing where each value came from
    """

    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    segment: SegmentConfig = field(default_factory=SegmentConfig)
    split: SplitConfig = field(default_factory=SplitConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    source: dict[str, str] = field(default_factory=dict)


# dotted key -> coercion; the first part names the section attribute
_SETTINGS: dict[str, Callable[[Any], Any]] = {
    "analysis.sample_distance_km": _as_float,
    "analysis.min_speed_factor": _as_float,
    "segment.gap_threshold_km": _as_float,
    "segment.autoseg": _as_bool,
    "split.max_points": _as_positive_int,
    "split.rounding": _as_rounding,
    "split.default_input": _as_path,
    "output.out_dir": _as_path,
    "output.creator": str,
}

_ENV_MAP = {
    "GPXTOOLS_SAMPLE_DISTANCE_KM": "analysis.sample_distance_km",
    "GPXTOOLS_MIN_SPEED_FACTOR": "analysis.min_speed_factor",
    "GPXTOOLS_GAP_THRESHOLD_KM": "segment.gap_threshold_km",
    "GPXTOOLS_MAX_POINTS": "split.max_points",
    "GPXTOOLS_ROUNDING": "split.rounding",
    "GPXTOOLS_OUT_DIR": "output.out_dir",
}


def _coerce(key: str, raw: Any, origin: str) -> Any:
    try:
        return _SETTINGS[key](raw)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid value for {key} from {origin}: {e}") from e


# ---------------------------------------------------------------------------
# Main config loader
# ---------------------------------------------------------------------------
def load_config(
    repo_root: Optional[Path] = None,
    repo_config_path: Optional[Path] = None,
    user_config_path: Optional[Path] = None,
    environ: Optional[dict[str, str]] = None,
) -> GpxToolsConfig:
    """
    Load, merge, and normalize all gpxtools configuration.

    This function is the single authoritative entry point
    for configuration access.
    """

    # Locate repo and config files
    if repo_root is None:
        repo_root = find_repo_root(Path(__file__).resolve())
    if repo_config_path is None and repo_root is not None:
        repo_config_path = repo_root / "config" / "config.toml"
    if user_config_path is None:
        user_config_path = Path.home() / ".config" / "gpxtools" / "config.toml"
    if environ is None:
        environ = dict(os.environ)

    # Load raw TOML dicts
    repo_cfg = _load_toml(repo_config_path) if repo_config_path else {}
    user_cfg = _load_toml(user_config_path) if user_config_path else {}

    values: dict[str, Any] = {}
    src = {key: "default" for key in _SETTINGS}

    # Repo, then user (user overrides repo)
    for cfg, origin in ((repo_cfg, f"repo:{repo_config_path}"),
                        (user_cfg, f"user:{user_config_path}")):
        for key in _SETTINGS:
            raw = _deep_get(cfg, key)
            if raw is None:
                continue
            values[key] = _coerce(key, raw, origin)
            src[key] = origin

    # Environment variable overrides (highest non-CLI precedence)
    for env, key in _ENV_MAP.items():
        raw = environ.get(env)
        if not raw:
            continue
        values[key] = _coerce(key, raw, f"env:{env}")
        src[key] = f"env:{env}"

    # Fold flat dotted values into the section dataclasses
    sections: dict[str, Any] = {
        "analysis": AnalysisConfig(),
        "segment": SegmentConfig(),
        "split": SplitConfig(),
        "output": OutputConfig(),
    }
    for key, value in values.items():
        section, name = key.split(".", 1)
        sections[section] = replace(sections[section], **{name: value})

    return GpxToolsConfig(source=src, **sections)
