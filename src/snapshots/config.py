import os
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Optional

from .errors import InvalidArgument


LOCATIONS_URL = (
    "https://raw.githubusercontent.com/cdcepi/Flusight-forecast-data/master/"
    "data-locations/locations.csv"
)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class PipelineSettings:
    target_variables: tuple[str, ...] = ("hosp",)
    first_as_of: date = date(2022, 1, 8)
    data_start_date: date = date(2021, 12, 1)
    # False regenerates every past as-of; only needed after a format change.
    generate_latest_only: bool = True
    as_of_fetch_offset_days: int = 2
    source: str = "healthdata"
    pathogen: str = "flu"
    temporal_resolution: str = "weekly"
    drop_missing: bool = True
    drop_incomplete_weeks: bool = True
    output_root: Path = Path(".")
    hub_root: Optional[Path] = None
    locations_url: str = LOCATIONS_URL
    request_timeout_seconds: float = 60.0

    @property
    def truth_dir(self) -> Path:
        return self.output_root / "static" / "data" / "truth"

    @property
    def forecasts_dir(self) -> Path:
        return self.output_root / "static" / "data" / "forecasts"

    @property
    def static_data_dir(self) -> Path:
        return self.output_root / "static" / "data"

    @property
    def assets_dir(self) -> Path:
        return self.output_root / "assets"

    @classmethod
    def from_env(cls) -> "PipelineSettings":
        defaults = cls()
        hub_root = os.getenv("FLUVIZ_HUB_ROOT")
        return cls(
            generate_latest_only=_parse_bool(
                os.getenv("FLUVIZ_GENERATE_LATEST_ONLY"),
                "FLUVIZ_GENERATE_LATEST_ONLY",
                defaults.generate_latest_only,
            ),
            source=os.getenv("FLUVIZ_SOURCE", defaults.source),
            output_root=Path(os.getenv("FLUVIZ_OUTPUT_ROOT", str(defaults.output_root))),
            hub_root=Path(hub_root) if hub_root else None,
            locations_url=os.getenv("FLUVIZ_LOCATIONS_URL", defaults.locations_url),
        )


def _parse_bool(raw: Optional[str], field_name: str, default: bool) -> bool:
    if raw is None or not raw.strip():
        return default
    normalized = raw.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise InvalidArgument(f"{field_name} must be a boolean, got {raw!r}")
