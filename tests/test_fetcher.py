from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

import pytest
import requests

from specwatch.errors import DecodeError, NetworkError
from specwatch.fetcher import (
    DEFAULT_USER_AGENT,
    DocumentFetcher,
    RemoteResource,
    changelog_resource,
    spec_resource,
)

CHANGELOG_URL = "https://www.openphone.com/docs/mdx/api-reference/changelog"
SPEC_URL = "https://example-bucket.s3.amazonaws.com/public/api-v1.json"


@dataclass
class _DummyResponse:
    status_code: int
    text: str
    headers: dict[str, str] = field(default_factory=dict)
    encoding: str | None = None

    def json(self) -> Any:
        return json.loads(self.text)


class _DummySession:
    def __init__(self, responses: dict[str, Any]):
        self._responses = responses
        self.request_log: list[tuple[str, str, dict[str, Any]]] = []

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str],
        timeout: float | None = None,
    ) -> Any:
        self.request_log.append((method, url, {"headers": headers, "timeout": timeout}))
        outcome = self._responses[url]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def test_remote_resource_round_trips_url():
    resource = RemoteResource.from_url("https://host.example/a/b?x=1")
    assert resource.host == "host.example"
    assert resource.path == "/a/b?x=1"
    assert resource.url == "https://host.example/a/b?x=1"


def test_remote_resource_requires_absolute_url():
    with pytest.raises(ValueError):
        RemoteResource.from_url("/relative/path")


def test_fetch_text_sends_headers_and_timeout():
    session = _DummySession({CHANGELOG_URL: _DummyResponse(200, "<html>1.0.0</html>")})
    fetcher = DocumentFetcher(session=session, timeout=5)

    body = fetcher.fetch(changelog_resource(CHANGELOG_URL))

    assert body == "<html>1.0.0</html>"
    method, url, meta = session.request_log[0]
    assert (method, url) == ("GET", CHANGELOG_URL)
    assert meta["headers"]["User-Agent"] == DEFAULT_USER_AGENT
    assert meta["headers"]["Accept"].startswith("text/html")
    assert meta["timeout"] == 5


def test_fetch_json_decodes_body():
    payload = {"info": {"version": "2.1.0"}}
    session = _DummySession({SPEC_URL: _DummyResponse(200, json.dumps(payload))})
    assert DocumentFetcher(session=session).fetch(spec_resource(SPEC_URL)) == payload


def test_invalid_json_raises_decode_error():
    session = _DummySession({SPEC_URL: _DummyResponse(200, "<Error>AccessDenied</Error>")})
    with pytest.raises(DecodeError) as excinfo:
        DocumentFetcher(session=session).fetch(spec_resource(SPEC_URL))
    assert excinfo.value.url == SPEC_URL


@pytest.mark.parametrize(
    "exc",
    [
        requests.ConnectionError("Name or service not known"),
        requests.Timeout("read timed out"),
        requests.exceptions.SSLError("certificate verify failed"),
    ],
)
def test_transport_failures_raise_network_error(exc):
    session = _DummySession({CHANGELOG_URL: exc})
    with pytest.raises(NetworkError) as excinfo:
        DocumentFetcher(session=session).fetch(changelog_resource(CHANGELOG_URL))
    assert excinfo.value.__cause__ is exc


def test_http_error_status_raises_network_error():
    session = _DummySession({CHANGELOG_URL: _DummyResponse(503, "unavailable")})
    with pytest.raises(NetworkError) as excinfo:
        DocumentFetcher(session=session).fetch(changelog_resource(CHANGELOG_URL))
    assert excinfo.value.status == 503


@pytest.mark.parametrize("concurrent", [False, True])
def test_fetch_all_preserves_order(concurrent):
    session = _DummySession(
        {
            CHANGELOG_URL: _DummyResponse(200, "<html/>"),
            SPEC_URL: _DummyResponse(200, '{"info": {"version": "1.0.0"}}'),
        }
    )
    results = DocumentFetcher(session=session).fetch_all(
        [changelog_resource(CHANGELOG_URL), spec_resource(SPEC_URL)], concurrent=concurrent
    )
    assert results == ["<html/>", {"info": {"version": "1.0.0"}}]
    assert len(session.request_log) == 2


@pytest.mark.parametrize("concurrent", [False, True])
def test_fetch_all_fails_when_any_fetch_fails(concurrent):
    session = _DummySession(
        {
            CHANGELOG_URL: _DummyResponse(200, "<html/>"),
            SPEC_URL: requests.ConnectionError("reset"),
        }
    )
    with pytest.raises(NetworkError):
        DocumentFetcher(session=session).fetch_all(
            [changelog_resource(CHANGELOG_URL), spec_resource(SPEC_URL)], concurrent=concurrent
        )


def _raw_response(body: bytes, content_type: str) -> requests.Response:
    response = requests.Response()
    response.status_code = 200
    response._content = body
    response.headers["Content-Type"] = content_type
    response.encoding = requests.utils.get_encoding_from_headers(response.headers)
    return response


def test_text_without_charset_is_decoded_as_utf8():
    body = "<p>January 22, 2025 Café numbers now support résumé links</p>".encode()
    session = _DummySession({CHANGELOG_URL: _raw_response(body, "text/html")})
    text = DocumentFetcher(session=session).fetch(changelog_resource(CHANGELOG_URL))
    assert "Café" in text
    assert "résumé" in text


def test_declared_charset_is_respected():
    body = "Café".encode("latin-1")
    response = _raw_response(body, "text/html; charset=ISO-8859-1")
    session = _DummySession({CHANGELOG_URL: response})
    assert DocumentFetcher(session=session).fetch(changelog_resource(CHANGELOG_URL)) == "Café"
