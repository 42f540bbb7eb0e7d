from dataclasses import dataclass
from datetime import date
from typing import Optional


SOURCES = ("healthdata", "covidcast")
TEMPORAL_RESOLUTIONS = ("daily", "weekly")
PATHOGENS = ("flu", "covid")

WILDCARD = "*"
NATIONAL_CODE = "US"

RECORD_COLUMNS = ["location", "date", "value"]


@dataclass(frozen=True)
class Location:
    code: str
    abbreviation: str
    name: str
    population: Optional[float] = None


@dataclass(frozen=True)
class SnapshotPoint:
    date: date
    value: Optional[float]

    def to_dict(self) -> dict[str, object]:
        value = self.value
        if value is not None and float(value).is_integer():
            value = int(value)
        return {"date": self.date.isoformat(), "value": value}


Snapshot = list[SnapshotPoint]
