from datetime import date
import importlib
from pathlib import Path

import pytest


config_mod = importlib.import_module("src.snapshots.config")
errors = importlib.import_module("src.snapshots.errors")
PipelineSettings = config_mod.PipelineSettings


def test_defaults_match_published_viewer_layout():
    settings = PipelineSettings()

    assert settings.target_variables == ("hosp",)
    assert settings.first_as_of == date(2022, 1, 8)
    assert settings.data_start_date == date(2021, 12, 1)
    assert settings.generate_latest_only is True
    assert settings.truth_dir == Path("static/data/truth")
    assert settings.assets_dir == Path("assets")


def test_from_env_reads_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("FLUVIZ_GENERATE_LATEST_ONLY", "false")
    monkeypatch.setenv("FLUVIZ_OUTPUT_ROOT", str(tmp_path))
    monkeypatch.setenv("FLUVIZ_HUB_ROOT", str(tmp_path / "hub"))
    monkeypatch.setenv("FLUVIZ_SOURCE", "covidcast")

    settings = PipelineSettings.from_env()

    assert settings.generate_latest_only is False
    assert settings.output_root == tmp_path
    assert settings.hub_root == tmp_path / "hub"
    assert settings.source == "covidcast"


def test_from_env_without_overrides_uses_defaults(monkeypatch):
    for name in (
        "FLUVIZ_GENERATE_LATEST_ONLY",
        "FLUVIZ_OUTPUT_ROOT",
        "FLUVIZ_HUB_ROOT",
        "FLUVIZ_SOURCE",
        "FLUVIZ_LOCATIONS_URL",
    ):
        monkeypatch.delenv(name, raising=False)

    assert PipelineSettings.from_env() == PipelineSettings()


def test_from_env_rejects_unparseable_boolean(monkeypatch):
    monkeypatch.setenv("FLUVIZ_GENERATE_LATEST_ONLY", "sometimes")

    with pytest.raises(errors.InvalidArgument):
        PipelineSettings.from_env()
