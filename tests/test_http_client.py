import importlib

import pytest
import requests


http_client = importlib.import_module("src.snapshots.http_client")
errors = importlib.import_module("src.snapshots.errors")
HttpResponse = http_client.HttpResponse
HttpError = http_client.HttpError
SimpleHttpClient = http_client.SimpleHttpClient


class SequenceTransport:
    def __init__(self, responses):
        self.responses = responses
        self.calls = []

    def __call__(self, method, url, headers):
        self.calls.append((method, url, headers))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def test_http_client_decodes_json_object():
    transport = SequenceTransport([HttpResponse(status_code=200, body=b'{"ok": true}', headers={})])
    client = SimpleHttpClient(transport=transport)

    result = client.request_json("https://example.com/data", headers={"Accept": "application/json"})

    assert result["ok"] is True
    assert transport.calls == [
        ("GET", "https://example.com/data", {"Accept": "application/json"})
    ]


def test_http_client_returns_text_bodies():
    transport = SequenceTransport([HttpResponse(status_code=200, body=b"a,b\n1,2\n", headers={})])
    client = SimpleHttpClient(transport=transport)

    assert client.request_text("https://example.com/data.csv") == "a,b\n1,2\n"


def test_http_client_does_not_retry_server_errors():
    transport = SequenceTransport(
        [
            HttpResponse(status_code=503, body=b"{}", headers={}),
            HttpResponse(status_code=200, body=b"{}", headers={}),
        ]
    )
    client = SimpleHttpClient(transport=transport)

    with pytest.raises(HttpError):
        client.request_json("https://example.com/data")
    assert len(transport.calls) == 1


def test_http_client_wraps_transport_failures_as_upstream_unavailable():
    transport = SequenceTransport([requests.ConnectionError("connection refused")])
    client = SimpleHttpClient(transport=transport)

    with pytest.raises(errors.UpstreamUnavailable):
        client.request_text("https://example.com/data.csv")


def test_http_client_rejects_non_object_json():
    transport = SequenceTransport([HttpResponse(status_code=200, body=b"[1, 2]", headers={})])
    client = SimpleHttpClient(transport=transport)

    with pytest.raises(HttpError):
        client.request_json("https://example.com/data")


def test_http_client_rejects_text_that_is_not_utf8():
    transport = SequenceTransport(
        [HttpResponse(status_code=200, body=b"state\n\xff\xfe\n", headers={})]
    )
    client = SimpleHttpClient(transport=transport)

    with pytest.raises(errors.UpstreamUnavailable):
        client.request_text("https://example.com/data.csv")
