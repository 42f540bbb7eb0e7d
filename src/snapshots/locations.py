import io
from collections.abc import Iterable, Mapping
from typing import Optional, Protocol, Union

import pandas as pd

from .errors import InvalidArgument
from .models import NATIONAL_CODE, WILDCARD, Location


class TextClient(Protocol):
    def request_text(self, url: str, headers: Optional[Mapping[str, str]] = None) -> str: ...


LocationRequest = Union[str, Iterable[str]]


class LocationReference:
    def __init__(self, locations: Iterable[Location]) -> None:
        self._by_code: dict[str, Location] = {}
        self._by_abbreviation: dict[str, Location] = {}
        for location in locations:
            self._by_code[location.code.upper()] = location
            self._by_abbreviation[location.abbreviation.upper()] = location

    @classmethod
    def from_csv_text(cls, text: str) -> "LocationReference":
        frame = pd.read_csv(io.StringIO(text), dtype={"location": str, "abbreviation": str})
        missing = {"abbreviation", "location", "location_name"} - set(frame.columns)
        if missing:
            raise InvalidArgument(f"locations table is missing columns: {sorted(missing)}")

        locations = []
        for row in frame.to_dict("records"):
            population = row.get("population")
            locations.append(
                Location(
                    code=str(row["location"]).strip(),
                    abbreviation=str(row["abbreviation"]).strip().upper(),
                    name=str(row["location_name"]).strip(),
                    population=None if pd.isna(population) else float(population),
                )
            )
        return cls(locations)

    @classmethod
    def load(cls, client: TextClient, url: str) -> "LocationReference":
        return cls.from_csv_text(client.request_text(url))

    def __len__(self) -> int:
        return len(self._by_code)

    def __contains__(self, code: object) -> bool:
        return isinstance(code, str) and code.upper() in self._by_code

    @property
    def locations(self) -> list[Location]:
        return list(self._by_code.values())

    def by_code(self, code: str) -> Location:
        return self._by_code[code.upper()]

    def code_for_abbreviation(self, abbreviation: str) -> Optional[str]:
        location = self._by_abbreviation.get(abbreviation.strip().upper())
        return location.code if location else None

    def resolve_token(self, token: str) -> Location:
        if not isinstance(token, str) or not token.strip():
            raise InvalidArgument(f"malformed location: {token!r}")
        key = token.strip().upper()
        location = self._by_code.get(key) or self._by_abbreviation.get(key)
        if location is None:
            raise InvalidArgument(f"unknown location: {token!r}")
        return location

    def resolve(self, request: LocationRequest) -> tuple[list[str], bool]:
        """Resolve a location request to sorted location codes.

        Returns the codes and whether the national aggregate is needed.
        """
        if isinstance(request, str):
            if request.strip() == WILDCARD:
                codes = {location.code for location in self.locations} | {NATIONAL_CODE}
                return sorted(codes), True
            request = [request]
        elif not isinstance(request, Iterable):
            raise InvalidArgument(f"locations must be a string or a list of strings: {request!r}")

        tokens = list(request)
        if not tokens:
            raise InvalidArgument("locations must not be empty")
        if any(isinstance(token, str) and token.strip() == WILDCARD for token in tokens):
            return self.resolve(WILDCARD)

        codes = set()
        for token in tokens:
            if isinstance(token, str) and token.strip().upper() == NATIONAL_CODE:
                codes.add(NATIONAL_CODE)
                continue
            codes.add(self.resolve_token(token).code)
        return sorted(codes), NATIONAL_CODE in codes

    def picker_options(self) -> list[dict[str, str]]:
        return [{"value": location.code, "text": location.name} for location in self.locations]
