from pathlib import Path

import pytest

from gpxtools.config import GpxToolsConfig, load_config
from gpxtools.errors import ConfigError


def _load(tmp_path, repo_text=None, user_text=None, environ=None):
    repo = tmp_path / "repo.toml"
    user = tmp_path / "user.toml"
    if repo_text is not None:
        repo.write_text(repo_text, encoding="utf-8")
    if user_text is not None:
        user.write_text(user_text, encoding="utf-8")
    return load_config(repo_config_path=repo, user_config_path=user, environ=environ or {})


def test_defaults_when_no_config(tmp_path):
    cfg = _load(tmp_path)

    assert isinstance(cfg, GpxToolsConfig)
    assert cfg.analysis.sample_distance_km == 0.1
    assert cfg.analysis.min_speed_factor == 0.6
    assert cfg.segment.gap_threshold_km == 0.5
    assert cfg.segment.autoseg is True
    assert cfg.split.max_points == 3000
    assert cfg.split.rounding == "ceil"
    assert cfg.output.creator == "gpxtools"
    assert set(cfg.source.values()) == {"default"}


def test_user_overrides_repo(tmp_path):
    cfg = _load(
        tmp_path,
        repo_text='[split]\nmax_points = 1000\nrounding = "round"\n',
        user_text="[split]\nmax_points = 500\n",
    )

    assert cfg.split.max_points == 500
    assert cfg.split.rounding == "round"
    assert cfg.source["split.max_points"].startswith("user:")
    assert cfg.source["split.rounding"].startswith("repo:")


def test_env_overrides_files(tmp_path):
    cfg = _load(
        tmp_path,
        user_text="[analysis]\nmin_speed_factor = 0.5\n",
        environ={"GPXTOOLS_MIN_SPEED_FACTOR": "0.3", "GPXTOOLS_OUT_DIR": "~/tracks"},
    )

    assert cfg.analysis.min_speed_factor == 0.3
    assert cfg.source["analysis.min_speed_factor"] == "env:GPXTOOLS_MIN_SPEED_FACTOR"
    assert cfg.output.out_dir == Path("~/tracks").expanduser()


def test_bool_coercion(tmp_path):
    cfg = _load(tmp_path, repo_text='[segment]\nautoseg = "off"\n')
    assert cfg.segment.autoseg is False


def test_invalid_toml_raises(tmp_path):
    with pytest.raises(ConfigError):
        _load(tmp_path, repo_text="[split\nmax_points = ")


@pytest.mark.parametrize(
    "text",
    ["[split]\nmax_points = 0\n", '[split]\nrounding = "floor"\n', '[analysis]\nsample_distance_km = "far"\n'],
)
def test_invalid_values_raise(tmp_path, text):
    with pytest.raises(ConfigError):
        _load(tmp_path, user_text=text)


def test_invalid_env_value_raises(tmp_path):
    with pytest.raises(ConfigError, match="GPXTOOLS_MAX_POINTS"):
        _load(tmp_path, environ={"GPXTOOLS_MAX_POINTS": "lots"})
