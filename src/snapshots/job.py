import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from pathlib import Path
from typing import Optional, Protocol

from .config import PipelineSettings
from .forecasts import ForecastSnapshot, build_forecast_snapshots, list_models
from .generator import SnapshotGenerator
from .locations import LocationReference
from .models import WILDCARD, Snapshot


LOGGER = logging.getLogger(__name__)

SATURDAY = 5

TARGET_VARIABLES: dict[str, dict[str, str]] = {
    "hosp": {
        "text": "Weekly Hospitalizations",
        "plot_text": "Weekly influenza hospitalizations",
    },
}


class SnapshotRepositoryProtocol(Protocol):
    def write_truth(
        self, target_var: str, location: str, as_of: date, snapshot: Snapshot
    ) -> object: ...

    def write_forecast(
        self, target_var: str, location: str, as_of: date, forecast: ForecastSnapshot
    ) -> object: ...

    def write_static(self, name: str, payload: object) -> object: ...

    def write_asset(self, name: str, payload: object) -> object: ...


@dataclass(frozen=True)
class JobResult:
    as_ofs: list[str]
    truth_files: int
    forecast_files: int
    side_files: int
    per_as_of: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        return {
            "as_ofs": self.as_ofs,
            "truth_files": self.truth_files,
            "forecast_files": self.forecast_files,
            "side_files": self.side_files,
            "per_as_of": self.per_as_of,
        }


def last_saturday(today: date) -> date:
    return today - timedelta(days=(today.weekday() - SATURDAY) % 7)


def available_as_ofs(first_as_of: date, today: date) -> list[date]:
    last_as_of = last_saturday(today)
    as_ofs = []
    current = first_as_of
    while current <= last_as_of:
        as_ofs.append(current)
        current += timedelta(days=7)
    return as_ofs


def as_ofs_to_generate(settings: PipelineSettings, today: date) -> list[date]:
    as_ofs = available_as_ofs(settings.first_as_of, today)
    if settings.generate_latest_only:
        return as_ofs[-1:]
    return as_ofs


def _fetch_as_of(
    settings: PipelineSettings, as_of: date, latest: date, supports_vintages: bool
) -> Optional[date]:
    if not supports_vintages and as_of == latest:
        return None
    # Reference dates are Saturdays; data is pulled as of the following Monday.
    return as_of + timedelta(days=settings.as_of_fetch_offset_days)


def write_side_files(
    settings: PipelineSettings,
    reference: LocationReference,
    repository: SnapshotRepositoryProtocol,
    today: date,
) -> int:
    as_ofs = [as_of.isoformat() for as_of in available_as_ofs(settings.first_as_of, today)]
    models = list_models(settings.hub_root) if settings.hub_root is not None else []

    target_variables = []
    for target_var in settings.target_variables:
        labels = TARGET_VARIABLES.get(target_var, {"text": target_var, "plot_text": target_var})
        target_variables.append({"value": target_var, **labels})

    static_files: dict[str, object] = {
        "available_as_ofs.json": {target_var: as_ofs for target_var in settings.target_variables},
        "initial_as_of.json": {"initial_as_of": as_ofs[-1] if as_ofs else None},
        "models.json": models,
    }
    asset_files: dict[str, object] = {
        "locations.json": reference.picker_options(),
        "target_variables.json": target_variables,
    }
    for name, payload in static_files.items():
        repository.write_static(name, payload)
    for name, payload in asset_files.items():
        repository.write_asset(name, payload)
    return len(static_files) + len(asset_files)


def run_truth_job(
    settings: PipelineSettings,
    generator: SnapshotGenerator,
    repository: SnapshotRepositoryProtocol,
    today: date,
) -> dict[str, int]:
    as_ofs = as_ofs_to_generate(settings, today)
    if not as_ofs:
        LOGGER.warning("no as-of dates on or after %s", settings.first_as_of)
        return {}

    latest = as_ofs[-1]
    supports_vintages = generator.supports_vintages(settings.source)
    written: dict[str, int] = {}
    for target_var in settings.target_variables:
        for as_of in as_ofs:
            snapshots = generator.generate(
                pathogen=settings.pathogen,
                as_of=_fetch_as_of(settings, as_of, latest, supports_vintages),
                locations=WILDCARD,
                temporal_resolution=settings.temporal_resolution,
                source=settings.source,
                drop_missing=settings.drop_missing,
            )
            for location, snapshot in snapshots.items():
                repository.write_truth(target_var, location, as_of, snapshot)
            key = f"truth_{target_var}_{as_of.isoformat()}"
            written[key] = len(snapshots)
            LOGGER.info("wrote %d truth files for %s as_of=%s", len(snapshots), target_var, as_of)
    return written


def run_forecast_job(
    settings: PipelineSettings,
    reference: LocationReference,
    repository: SnapshotRepositoryProtocol,
    today: date,
) -> dict[str, int]:
    hub_root: Optional[Path] = settings.hub_root
    if hub_root is None or not hub_root.is_dir():
        LOGGER.warning("forecast hub checkout not found at %s; skipping forecasts", hub_root)
        return {}

    location_codes = [location.code for location in reference.locations]
    written: dict[str, int] = {}
    for target_var in settings.target_variables:
        for as_of in as_ofs_to_generate(settings, today):
            forecasts = build_forecast_snapshots(hub_root, as_of, target_var, location_codes)
            for location, forecast in forecasts.items():
                repository.write_forecast(target_var, location, as_of, forecast)
            written[f"forecasts_{target_var}_{as_of.isoformat()}"] = len(forecasts)
            LOGGER.info(
                "wrote %d forecast files for %s as_of=%s", len(forecasts), target_var, as_of
            )
    return written


def run_refresh_job(
    settings: PipelineSettings,
    generator: SnapshotGenerator,
    repository: SnapshotRepositoryProtocol,
    today: date,
    include_truth: bool = True,
    include_forecasts: bool = True,
) -> JobResult:
    truth_written = run_truth_job(settings, generator, repository, today) if include_truth else {}
    forecasts_written = (
        run_forecast_job(settings, generator.reference, repository, today)
        if include_forecasts
        else {}
    )
    # Side files only ever advertise as-of dates whose snapshots are already written.
    side_files = write_side_files(settings, generator.reference, repository, today)

    return JobResult(
        as_ofs=[as_of.isoformat() for as_of in as_ofs_to_generate(settings, today)],
        truth_files=sum(truth_written.values()),
        forecast_files=sum(forecasts_written.values()),
        side_files=side_files,
        per_as_of={**truth_written, **forecasts_written},
    )
