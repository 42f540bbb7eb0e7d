import json
from dataclasses import dataclass
from typing import Callable, Mapping, Optional

import requests

from .errors import UpstreamUnavailable


@dataclass(frozen=True)
class HttpResponse:
    status_code: int
    body: bytes
    headers: Mapping[str, str]


class HttpError(UpstreamUnavailable):
    pass


Transport = Callable[[str, str, Mapping[str, str]], HttpResponse]


def requests_transport(timeout_seconds: float = 60.0) -> Transport:
    def _send(method: str, url: str, headers: Mapping[str, str]) -> HttpResponse:
        response = requests.request(method, url, headers=dict(headers), timeout=timeout_seconds)
        return HttpResponse(
            status_code=response.status_code,
            body=response.content,
            headers=dict(response.headers.items()),
        )

    return _send


class SimpleHttpClient:
    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    def _get(self, url: str, headers: Optional[Mapping[str, str]]) -> bytes:
        try:
            response = self._transport("GET", url, dict(headers or {}))
        except (requests.RequestException, OSError) as error:
            raise HttpError(f"GET {url} failed: {error}") from error

        if response.status_code != 200:
            raise HttpError(f"GET {url} failed with status {response.status_code}")
        return response.body

    def request_json(
        self, url: str, headers: Optional[Mapping[str, str]] = None
    ) -> dict[str, object]:
        body = self._get(url, headers)
        try:
            decoded = json.loads(body.decode("utf-8"))
        except ValueError as error:
            raise HttpError(f"GET {url} returned invalid JSON") from error
        if isinstance(decoded, dict):
            return decoded
        raise HttpError("response body is not a JSON object")

    def request_text(self, url: str, headers: Optional[Mapping[str, str]] = None) -> str:
        body = self._get(url, headers)
        try:
            return body.decode("utf-8")
        except UnicodeDecodeError as error:
            raise HttpError(f"GET {url} returned a body that is not UTF-8 text") from error
