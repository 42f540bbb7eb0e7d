import json
from datetime import date
from pathlib import Path

from .config import PipelineSettings
from .forecasts import ForecastSnapshot
from .generator import snapshot_records
from .models import Snapshot


def truth_file_name(target_var: str, location: str, as_of: date) -> str:
    return f"truth_{target_var}_{location}_{as_of.isoformat()}.json"


def forecast_file_name(target_var: str, location: str, as_of: date) -> str:
    return f"forecasts_{target_var}_{location}_{as_of.isoformat()}.json"


def _dump(payload: object) -> str:
    return json.dumps(payload) + "\n"


class FileSnapshotRepository:
    def __init__(self, settings: PipelineSettings) -> None:
        self.settings = settings
        self.files_written = 0

    def _write(self, path: Path, payload: object) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(_dump(payload), encoding="utf-8")
        self.files_written += 1
        return path

    def write_truth(self, target_var: str, location: str, as_of: date, snapshot: Snapshot) -> Path:
        path = self.settings.truth_dir / truth_file_name(target_var, location, as_of)
        return self._write(path, snapshot_records(snapshot))

    def write_forecast(
        self, target_var: str, location: str, as_of: date, forecast: ForecastSnapshot
    ) -> Path:
        path = self.settings.forecasts_dir / forecast_file_name(target_var, location, as_of)
        return self._write(path, forecast)

    def write_static(self, name: str, payload: object) -> Path:
        return self._write(self.settings.static_data_dir / name, payload)

    def write_asset(self, name: str, payload: object) -> Path:
        return self._write(self.settings.assets_dir / name, payload)


class InMemorySnapshotRepository:
    def __init__(self) -> None:
        self.truth: dict[str, list[dict[str, object]]] = {}
        self.forecasts: dict[str, ForecastSnapshot] = {}
        self.static: dict[str, object] = {}
        self.assets: dict[str, object] = {}

    def write_truth(self, target_var: str, location: str, as_of: date, snapshot: Snapshot) -> str:
        name = truth_file_name(target_var, location, as_of)
        self.truth[name] = snapshot_records(snapshot)
        return name

    def write_forecast(
        self, target_var: str, location: str, as_of: date, forecast: ForecastSnapshot
    ) -> str:
        name = forecast_file_name(target_var, location, as_of)
        self.forecasts[name] = forecast
        return name

    def write_static(self, name: str, payload: object) -> str:
        self.static[name] = payload
        return name

    def write_asset(self, name: str, payload: object) -> str:
        self.assets[name] = payload
        return name

    def snapshot_counts(self) -> dict[str, int]:
        return {
            "truth_files": len(self.truth),
            "forecast_files": len(self.forecasts),
            "static_files": len(self.static),
            "asset_files": len(self.assets),
        }
