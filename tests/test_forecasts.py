from datetime import date
import importlib

import pytest


forecasts_mod = importlib.import_module("src.snapshots.forecasts")
errors = importlib.import_module("src.snapshots.errors")


HEADER = "forecast_date,target,target_end_date,location,type,quantile,value\n"


def _write_submission(hub_root, model, forecast_date, rows):
    model_dir = hub_root / "data-forecasts" / model
    model_dir.mkdir(parents=True, exist_ok=True)
    path = model_dir / f"{forecast_date}-{model}.csv"
    path.write_text(HEADER + "".join(f"{row}\n" for row in rows), encoding="utf-8")
    return path


def _quantile_rows(forecast_date, location, end_date, horizon, base):
    return [
        f"{forecast_date},{horizon} wk ahead inc flu hosp,{end_date},{location},quantile,{q},{base * q}"
        for q in (0.025, 0.1, 0.25, 0.5, 0.75, 0.975)
    ]


def test_select_forecast_files_uses_week_starting_at_as_of(tmp_path):
    _write_submission(tmp_path, "ModelA", "2022-01-03", [])
    _write_submission(tmp_path, "ModelA", "2022-01-10", [])
    _write_submission(tmp_path, "ModelA", "2022-01-11", [])
    _write_submission(tmp_path, "ModelB", "2022-01-15", [])

    files = forecasts_mod.list_forecast_files(tmp_path)
    selected = forecasts_mod.select_forecast_files(files, date(2022, 1, 8))

    assert sorted(selected) == ["ModelA"]
    assert selected["ModelA"].forecast_date == date(2022, 1, 11)


def test_list_forecast_files_ignores_files_for_other_models(tmp_path):
    _write_submission(tmp_path, "ModelA", "2022-01-10", [])
    (tmp_path / "data-forecasts" / "ModelA" / "2022-01-10-ModelB.csv").write_text(HEADER)
    (tmp_path / "data-forecasts" / "ModelA" / "metadata-ModelA.txt").write_text("")

    files = forecasts_mod.list_forecast_files(tmp_path)

    assert [f.path.name for f in files] == ["2022-01-10-ModelA.csv"]


def test_build_forecast_snapshots_collects_quantile_bands(tmp_path):
    rows = (
        _quantile_rows("2022-01-10", "US", "2022-01-15", 1, 100)
        + _quantile_rows("2022-01-10", "US", "2022-01-22", 2, 200)
        + _quantile_rows("2022-01-10", "78", "2022-01-15", 1, 100)
        + ["2022-01-10,1 wk ahead inc covid hosp,2022-01-15,US,quantile,0.5,9999"]
    )
    _write_submission(tmp_path, "ModelA", "2022-01-10", rows)

    snapshots = forecasts_mod.build_forecast_snapshots(
        tmp_path, date(2022, 1, 8), "hosp", location_codes=["06", "36"]
    )

    assert sorted(snapshots) == ["US"]
    series = snapshots["US"]["ModelA"]
    assert series["target_end_date"] == ["2022-01-15", "2022-01-22"]
    assert series["q0.5"] == [50.0, 100.0]
    assert series["q0.025"] == [2.5, 5.0]
    assert "q0.1" not in series


def test_point_forecast_fills_missing_median(tmp_path):
    rows = [
        "2022-01-10,1 wk ahead inc flu hosp,2022-01-15,06,point,NA,42",
        "2022-01-10,1 wk ahead inc flu hosp,2022-01-15,06,quantile,0.975,80",
    ]
    _write_submission(tmp_path, "ModelA", "2022-01-10", rows)

    snapshots = forecasts_mod.build_forecast_snapshots(tmp_path, date(2022, 1, 8), "hosp")

    series = snapshots["06"]["ModelA"]
    assert series["q0.5"] == [42.0]
    assert series["q0.975"] == [80.0]
    assert series["q0.025"] == [None]


def test_list_models_is_sorted_and_tolerates_missing_hub(tmp_path):
    assert forecasts_mod.list_models(tmp_path) == []

    _write_submission(tmp_path, "ModelB", "2022-01-10", [])
    _write_submission(tmp_path, "ModelA", "2022-01-10", [])

    assert forecasts_mod.list_models(tmp_path) == ["ModelA", "ModelB"]


def test_unknown_target_variable_is_rejected(tmp_path):
    path = _write_submission(tmp_path, "ModelA", "2022-01-10", [])

    with pytest.raises(errors.InvalidArgument):
        forecasts_mod.read_forecast_file(path, "death")
