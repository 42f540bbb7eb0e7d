import logging
from collections.abc import Mapping
from datetime import date
from typing import Callable, Optional, Protocol
from urllib.parse import urlencode

import pandas as pd

from ..errors import InvalidArgument, UnsupportedVintage, UpstreamUnavailable
from ..models import RECORD_COLUMNS


LOGGER = logging.getLogger(__name__)

EPIDATA_URL = "https://api.delphi.cmu.edu/epidata/covidcast/"

PATHOGEN_SIGNALS = {
    "flu": "confirmed_admissions_influenza_1d",
    "covid": "confirmed_admissions_covid_1d",
}

NO_RESULTS = -2


class ApiClient(Protocol):
    def request_json(
        self, url: str, headers: Optional[Mapping[str, str]] = None
    ) -> dict[str, object]: ...


class CovidcastAdapter:
    """State hospital admissions from the Delphi Epidata covidcast endpoint.

    Only the current vintage is served; ``as_of`` must be ``None`` or today.
    """

    source_name: str = "covidcast"
    supports_vintages: bool = False

    def __init__(
        self,
        client: Optional[ApiClient] = None,
        today: Callable[[], date] = date.today,
        start_date: date = date(2020, 1, 1),
    ) -> None:
        self.client = client
        self.today = today
        self.start_date = start_date

    def check_vintage(self, as_of: Optional[date]) -> None:
        if as_of is not None and as_of != self.today():
            raise UnsupportedVintage(
                f"{self.source_name} only serves the current vintage, got as_of={as_of}"
            )

    def build_url(self, pathogen: str, locations: Optional[list[str]] = None) -> str:
        geo_value = "*" if not locations else ",".join(sorted(loc.lower() for loc in locations))
        query = urlencode(
            {
                "data_source": "hhs",
                "signal": PATHOGEN_SIGNALS[pathogen],
                "time_type": "day",
                "geo_type": "state",
                "time_values": f"{self.start_date:%Y%m%d}-{self.today():%Y%m%d}",
                "geo_value": geo_value,
            }
        )
        return f"{EPIDATA_URL}?{query}"

    def fetch(
        self, pathogen: str, as_of: Optional[date], locations: Optional[list[str]] = None
    ) -> pd.DataFrame:
        if pathogen not in PATHOGEN_SIGNALS:
            raise InvalidArgument(f"unsupported pathogen for {self.source_name}: {pathogen}")
        self.check_vintage(as_of)
        if self.client is None:
            raise ValueError("client is required for fetch operations")

        payload = self.client.request_json(self.build_url(pathogen, locations))
        result = payload.get("result")
        if result == NO_RESULTS:
            LOGGER.info("%s returned no rows for %s", self.source_name, pathogen)
            return pd.DataFrame(columns=RECORD_COLUMNS)
        if result != 1:
            raise UpstreamUnavailable(
                f"{self.source_name} request failed: {payload.get('message', result)}"
            )
        return self.normalize(payload.get("epidata") or [])

    def normalize(self, rows: list[object]) -> pd.DataFrame:
        raw = pd.DataFrame([row for row in rows if isinstance(row, Mapping)])
        if raw.empty:
            return pd.DataFrame(columns=RECORD_COLUMNS)
        frame = pd.DataFrame(
            {
                "location": raw["geo_value"].astype(str).str.strip().str.upper(),
                "date": pd.to_datetime(raw["time_value"].astype(str), format="%Y%m%d"),
                "value": pd.to_numeric(raw["value"], errors="coerce"),
            }
        )
        return frame[RECORD_COLUMNS]
