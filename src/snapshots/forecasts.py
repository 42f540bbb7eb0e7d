import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta
from pathlib import Path
from typing import Optional

import pandas as pd

from .errors import InvalidArgument
from .models import NATIONAL_CODE


LOGGER = logging.getLogger(__name__)

QUANTILES = (0.025, 0.25, 0.5, 0.75, 0.975)
TARGET_SUFFIXES = {"hosp": "inc flu hosp"}
FORECAST_WINDOW_DAYS = 7

_FILE_PATTERN = re.compile(r"^(\d{4}-\d{2}-\d{2})-(.+)\.csv$")

ForecastSnapshot = dict[str, dict[str, list[object]]]


@dataclass(frozen=True)
class ForecastFile:
    model: str
    forecast_date: date
    path: Path


def quantile_key(quantile: float) -> str:
    return f"q{quantile:g}"


def list_models(hub_root: Path) -> list[str]:
    forecasts_dir = hub_root / "data-forecasts"
    if not forecasts_dir.is_dir():
        return []
    return sorted(path.name for path in forecasts_dir.iterdir() if path.is_dir())


def list_forecast_files(hub_root: Path) -> list[ForecastFile]:
    files = []
    for model in list_models(hub_root):
        for path in sorted((hub_root / "data-forecasts" / model).glob("*.csv")):
            match = _FILE_PATTERN.match(path.name)
            if match is None or match.group(2) != model:
                continue
            files.append(
                ForecastFile(model=model, forecast_date=date.fromisoformat(match.group(1)), path=path)
            )
    return files


def select_forecast_files(files: Iterable[ForecastFile], as_of: date) -> dict[str, ForecastFile]:
    """Latest submission per model with a forecast date in the week starting at ``as_of``."""
    window_end = as_of + timedelta(days=FORECAST_WINDOW_DAYS - 1)
    selected: dict[str, ForecastFile] = {}
    for forecast_file in files:
        if not as_of <= forecast_file.forecast_date <= window_end:
            continue
        current = selected.get(forecast_file.model)
        if current is None or forecast_file.forecast_date > current.forecast_date:
            selected[forecast_file.model] = forecast_file
    return selected


def read_forecast_file(path: Path, target_var: str) -> pd.DataFrame:
    if target_var not in TARGET_SUFFIXES:
        raise InvalidArgument(f"unsupported target variable: {target_var!r}")
    pattern = rf"^\d+ wk ahead {re.escape(TARGET_SUFFIXES[target_var])}$"

    raw = pd.read_csv(path, dtype={"location": str})
    raw = raw[raw["target"].astype(str).str.match(pattern)]

    quantiles = raw[raw["type"] == "quantile"].copy()
    quantiles["quantile"] = pd.to_numeric(quantiles["quantile"], errors="coerce").round(4)
    quantiles = quantiles[quantiles["quantile"].isin(QUANTILES)].copy()
    quantiles["column"] = [quantile_key(quantile) for quantile in quantiles["quantile"]]

    points = raw[raw["type"] == "point"].copy()
    points["column"] = "point"

    frame = pd.concat([quantiles, points], ignore_index=True)
    return pd.DataFrame(
        {
            "location": frame["location"].astype(str).str.strip(),
            "target_end_date": pd.to_datetime(frame["target_end_date"]).dt.strftime("%Y-%m-%d"),
            "column": frame["column"],
            "value": pd.to_numeric(frame["value"], errors="coerce"),
        }
    )


def _series_for_model(frame: pd.DataFrame) -> dict[str, list[object]]:
    table = frame.pivot_table(
        index="target_end_date", columns="column", values="value", aggfunc="last"
    ).sort_index()
    median_key = quantile_key(0.5)
    if median_key not in table.columns and "point" in table.columns:
        table[median_key] = table["point"]
    elif "point" in table.columns:
        table[median_key] = table[median_key].fillna(table["point"])

    series: dict[str, list[object]] = {"target_end_date": list(table.index)}
    for quantile in QUANTILES:
        key = quantile_key(quantile)
        column = table[key] if key in table.columns else pd.Series(index=table.index, dtype=float)
        series[key] = [None if pd.isna(value) else float(value) for value in column]
    return series


def build_forecast_snapshots(
    hub_root: Path,
    as_of: date,
    target_var: str,
    location_codes: Optional[Iterable[str]] = None,
) -> dict[str, ForecastSnapshot]:
    selected = select_forecast_files(list_forecast_files(hub_root), as_of)
    allowed = set(location_codes) if location_codes is not None else None

    snapshots: dict[str, ForecastSnapshot] = {}
    for model in sorted(selected):
        forecast_file = selected[model]
        frame = read_forecast_file(forecast_file.path, target_var)
        LOGGER.debug("read %d rows from %s", len(frame), forecast_file.path)
        for location, group in frame.groupby("location", sort=True):
            code = str(location)
            if allowed is not None and code not in allowed and code != NATIONAL_CODE:
                continue
            snapshots.setdefault(code, {})[model] = _series_for_model(group)
    return snapshots
