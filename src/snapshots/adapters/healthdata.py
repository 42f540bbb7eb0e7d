import io
import logging
from collections.abc import Mapping
from datetime import date
from typing import Optional, Protocol

import pandas as pd

from ..errors import InvalidArgument, UnsupportedVintage, UpstreamUnavailable
from ..models import RECORD_COLUMNS
from ..pit_query import select_revision


LOGGER = logging.getLogger(__name__)

REVISIONS_URL = "https://healthdata.gov/api/views/qqte-vkut/rows.csv?accessType=DOWNLOAD"

PATHOGEN_COLUMNS: dict[str, tuple[str, ...]] = {
    "flu": ("previous_day_admission_influenza_confirmed",),
    "covid": (
        "previous_day_admission_adult_covid_confirmed",
        "previous_day_admission_pediatric_covid_confirmed",
    ),
}


class ApiClient(Protocol):
    def request_text(self, url: str, headers: Optional[Mapping[str, str]] = None) -> str: ...


class HealthDataAdapter:
    """State hospital admissions from archived HealthData.gov timeseries.

    Every published revision of the timeseries is archived, so any as-of date
    after the first revision can be served.
    """

    source_name: str = "healthdata"
    supports_vintages: bool = True

    def __init__(self, client: Optional[ApiClient] = None, revisions_url: str = REVISIONS_URL) -> None:
        self.client = client
        self.revisions_url = revisions_url

    def _read_csv(self, text: str, what: str) -> pd.DataFrame:
        try:
            return pd.read_csv(io.StringIO(text))
        except (pd.errors.ParserError, pd.errors.EmptyDataError) as error:
            raise UpstreamUnavailable(
                f"{self.source_name} {what} is not valid CSV: {error}"
            ) from error

    def list_revisions(self) -> list[dict[str, object]]:
        if self.client is None:
            raise ValueError("client is required for fetch operations")
        frame = self._read_csv(self.client.request_text(self.revisions_url), "revision index")
        if "Update Date" not in frame.columns or "Archive Link" not in frame.columns:
            raise UpstreamUnavailable("healthdata revision index has an unexpected layout")

        update_dates = pd.to_datetime(frame["Update Date"], errors="coerce", format="mixed")
        revisions = []
        for update_date, archive_link in zip(update_dates, frame["Archive Link"]):
            if pd.isna(update_date) or pd.isna(archive_link):
                continue
            revisions.append(
                {"update_date": update_date.date(), "archive_link": str(archive_link).strip()}
            )
        return revisions

    def fetch(
        self, pathogen: str, as_of: Optional[date], locations: Optional[list[str]] = None
    ) -> pd.DataFrame:
        if pathogen not in PATHOGEN_COLUMNS:
            raise InvalidArgument(f"unsupported pathogen for {self.source_name}: {pathogen}")
        if self.client is None:
            raise ValueError("client is required for fetch operations")

        revision = select_revision(self.list_revisions(), as_of)
        if revision is None:
            raise UnsupportedVintage(f"no {self.source_name} revision on or before {as_of}")
        LOGGER.info(
            "using %s revision from %s for as_of=%s",
            self.source_name,
            revision["update_date"],
            as_of,
        )

        raw = self._read_csv(self.client.request_text(str(revision["archive_link"])), "archive")
        return self.normalize(raw, pathogen, locations)

    def normalize(
        self, raw: pd.DataFrame, pathogen: str, locations: Optional[list[str]] = None
    ) -> pd.DataFrame:
        value_columns = PATHOGEN_COLUMNS[pathogen]
        missing = {"state", "date", *value_columns} - set(raw.columns)
        if missing:
            raise UpstreamUnavailable(
                f"{self.source_name} data is missing columns: {sorted(missing)}"
            )

        values = raw[list(value_columns)].apply(pd.to_numeric, errors="coerce")
        frame = pd.DataFrame(
            {
                "location": raw["state"].astype(str).str.strip().str.upper(),
                # previous_day_* columns report admissions on the day before.
                "date": pd.to_datetime(raw["date"], format="mixed").dt.normalize()
                - pd.Timedelta(days=1),
                "value": values.sum(axis=1, min_count=len(value_columns)),
            }
        )
        if locations is not None:
            wanted = {location.upper() for location in locations}
            frame = frame[frame["location"].isin(wanted)]
        return frame[RECORD_COLUMNS].reset_index(drop=True)
