import logging
from collections.abc import Mapping
from datetime import date
from typing import Optional

import pandas as pd

from .aggregation import add_national_aggregate, aggregate_weekly
from .errors import InvalidArgument, UpstreamUnavailable
from .locations import LocationReference, LocationRequest
from .models import (
    NATIONAL_CODE,
    PATHOGENS,
    RECORD_COLUMNS,
    TEMPORAL_RESOLUTIONS,
    Snapshot,
    SnapshotPoint,
)
from .source_registry import SourceAdapter, validate_source


LOGGER = logging.getLogger(__name__)


class SnapshotGenerator:
    def __init__(
        self,
        reference: LocationReference,
        adapters: Mapping[str, SourceAdapter],
        data_start_date: date,
        drop_incomplete_weeks: bool = True,
    ) -> None:
        self.reference = reference
        self.adapters = dict(adapters)
        self.data_start_date = data_start_date
        self.drop_incomplete_weeks = drop_incomplete_weeks

    def generate(
        self,
        pathogen: str,
        as_of: Optional[date],
        locations: LocationRequest,
        temporal_resolution: str,
        source: str,
        drop_missing: bool,
    ) -> dict[str, Snapshot]:
        adapter = self._validate(pathogen, temporal_resolution, source, drop_missing)
        codes, needs_national = self.reference.resolve(locations)

        fetch_locations = None if needs_national else self._abbreviations(codes)
        records = _coerce_records(adapter.fetch(pathogen, as_of, fetch_locations))
        LOGGER.info(
            "fetched %d %s rows from %s as_of=%s", len(records), pathogen, source, as_of
        )

        if drop_missing:
            records = records.dropna(subset=["value"])
        if needs_national:
            records = add_national_aggregate(records)
        if temporal_resolution == "weekly":
            records = aggregate_weekly(records, drop_incomplete=self.drop_incomplete_weeks)

        records = self._attach_codes(records)
        records = records[records["code"].isin(codes)]
        records = records[records["date"] >= pd.Timestamp(self.data_start_date)]
        return self._to_snapshots(records)

    def _validate(
        self, pathogen: str, temporal_resolution: str, source: str, drop_missing: bool
    ) -> SourceAdapter:
        validate_source(source)
        if source not in self.adapters:
            raise InvalidArgument(f"no adapter configured for source: {source}")
        if pathogen not in PATHOGENS:
            raise InvalidArgument(f"unsupported pathogen: {pathogen!r}")
        if temporal_resolution not in TEMPORAL_RESOLUTIONS:
            raise InvalidArgument(f"unsupported temporal_resolution: {temporal_resolution!r}")
        if not isinstance(drop_missing, bool):
            raise InvalidArgument("drop_missing must be a bool")
        return self.adapters[source]

    def supports_vintages(self, source: str) -> bool:
        adapter = self.adapters.get(validate_source(source))
        return bool(getattr(adapter, "supports_vintages", False))

    def _abbreviations(self, codes: list[str]) -> list[str]:
        return sorted(self.reference.by_code(code).abbreviation for code in codes)

    def _attach_codes(self, records: pd.DataFrame) -> pd.DataFrame:
        frame = records.copy()
        frame["code"] = [
            NATIONAL_CODE
            if location == NATIONAL_CODE
            else self.reference.code_for_abbreviation(location)
            for location in frame["location"]
        ]
        unknown = sorted(set(frame.loc[frame["code"].isna(), "location"]))
        if unknown:
            LOGGER.debug("dropping locations missing from the reference: %s", unknown)
        return frame.dropna(subset=["code"])

    def _to_snapshots(self, records: pd.DataFrame) -> dict[str, Snapshot]:
        snapshots: dict[str, Snapshot] = {}
        ordered = records.sort_values(["code", "date"])
        for code, group in ordered.groupby("code", sort=True):
            snapshots[str(code)] = [
                SnapshotPoint(
                    date=timestamp.date(),
                    value=None if pd.isna(value) else float(value),
                )
                for timestamp, value in zip(group["date"], group["value"])
            ]
        return snapshots


def _coerce_records(raw: pd.DataFrame) -> pd.DataFrame:
    missing = set(RECORD_COLUMNS) - set(raw.columns)
    if missing:
        raise UpstreamUnavailable(f"adapter returned frame without columns: {sorted(missing)}")
    frame = raw[RECORD_COLUMNS].copy()
    frame["location"] = frame["location"].astype(str).str.upper()
    frame["date"] = pd.to_datetime(frame["date"]).dt.normalize()
    frame["value"] = pd.to_numeric(frame["value"], errors="coerce")
    return frame.drop_duplicates(subset=["location", "date"], keep="last").reset_index(drop=True)


def snapshot_records(snapshot: Snapshot) -> list[dict[str, object]]:
    return [point.to_dict() for point in snapshot]
