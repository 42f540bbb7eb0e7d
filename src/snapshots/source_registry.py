from collections.abc import Mapping
from datetime import date
from typing import Callable, Optional, Protocol

import pandas as pd

from .adapters.covidcast import CovidcastAdapter
from .adapters.healthdata import HealthDataAdapter
from .errors import InvalidArgument
from .models import SOURCES


class SourceAdapter(Protocol):
    source_name: str
    supports_vintages: bool

    def fetch(
        self, pathogen: str, as_of: Optional[date], locations: Optional[list[str]] = None
    ) -> pd.DataFrame: ...


class HttpClient(Protocol):
    def request_json(
        self, url: str, headers: Optional[Mapping[str, str]] = None
    ) -> dict[str, object]: ...

    def request_text(self, url: str, headers: Optional[Mapping[str, str]] = None) -> str: ...


_FACTORIES: dict[str, Callable[[HttpClient], SourceAdapter]] = {
    "healthdata": lambda client: HealthDataAdapter(client=client),
    "covidcast": lambda client: CovidcastAdapter(client=client),
}


def validate_source(source: object) -> str:
    if not isinstance(source, str) or source not in SOURCES:
        raise InvalidArgument(f"unsupported source: {source!r}; expected one of {SOURCES}")
    return source


def build_adapter(source: str, client: HttpClient) -> SourceAdapter:
    return _FACTORIES[validate_source(source)](client)


def build_adapters(client: HttpClient) -> dict[str, SourceAdapter]:
    return {source: build_adapter(source, client) for source in SOURCES}
