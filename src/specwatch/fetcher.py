from __future__ import annotations

from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlsplit

import requests

from .errors import DecodeError, NetworkError
from .logging import get_logger

DEFAULT_TIMEOUT = 30.0
DEFAULT_USER_AGENT = "OpenPhone-SDK-Monitor/1.0.0"
HTML_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
HTTP_ERROR_STATUS = 400


@dataclass(frozen=True)
class RemoteResource:
    """Descriptor of a single remote document."""

    host: str
    path: str
    method: str = "GET"
    headers: Mapping[str, str] = field(default_factory=dict)
    expects_json: bool = False
    scheme: str = "https"

    @property
    def url(self) -> str:
        return f"{self.scheme}://{self.host}/{self.path.lstrip('/')}"

    @classmethod
    def from_url(
        cls,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        expects_json: bool = False,
        method: str = "GET",
    ) -> RemoteResource:
        parts = urlsplit(url)
        if not parts.scheme or not parts.netloc:
            raise ValueError(f"Not an absolute URL: {url!r}")
        path = parts.path or "/"
        if parts.query:
            path = f"{path}?{parts.query}"
        return cls(
            host=parts.netloc,
            path=path,
            method=method,
            headers=dict(headers or {}),
            expects_json=expects_json,
            scheme=parts.scheme,
        )


def changelog_resource(url: str, user_agent: str = DEFAULT_USER_AGENT) -> RemoteResource:
    return RemoteResource.from_url(url, headers={"User-Agent": user_agent, "Accept": HTML_ACCEPT})


def spec_resource(url: str, user_agent: str = DEFAULT_USER_AGENT) -> RemoteResource:
    return RemoteResource.from_url(url, headers={"User-Agent": user_agent}, expects_json=True)


class DocumentFetcher:
    """Single-attempt HTTP(S) retrieval of remote documents.

    Every request carries an explicit timeout; a timeout or any other
    transport failure surfaces as :class:`NetworkError`. There are no retries.
    """

    def __init__(
        self, session: requests.Session | None = None, timeout: float = DEFAULT_TIMEOUT
    ) -> None:
        self._session = session or requests.Session()
        self.timeout = timeout
        self.logger = get_logger()

    def fetch(self, resource: RemoteResource) -> Any:
        url = resource.url
        self.logger.debug("fetching document", url=url, method=resource.method)
        try:
            response = self._session.request(
                resource.method,
                url,
                headers=dict(resource.headers),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise NetworkError(f"{resource.method} {url} failed: {exc}", url=url) from exc
        if response.status_code >= HTTP_ERROR_STATUS:
            raise NetworkError(
                f"{resource.method} {url} failed with {response.status_code}",
                url=url,
                status=response.status_code,
            )
        if not resource.expects_json:
            # requests assumes ISO-8859-1 for text/* without a charset
            if "charset" not in response.headers.get("Content-Type", "").lower():
                response.encoding = "utf-8"
            return response.text
        try:
            return response.json()
        except ValueError as exc:
            raise DecodeError(f"{url} did not return valid JSON: {exc}", url=url) from exc

    def fetch_all(
        self, resources: Sequence[RemoteResource], *, concurrent: bool = False
    ) -> list[Any]:
        """Fetch every resource; all succeed or the first failure propagates.

        Results keep the order of ``resources`` whichever mode is used.
        """
        if not concurrent or len(resources) < 2:  # noqa: PLR2004
            return [self.fetch(resource) for resource in resources]
        with ThreadPoolExecutor(max_workers=len(resources)) as executor:
            futures = [executor.submit(self.fetch, resource) for resource in resources]
            return [future.result() for future in futures]


__all__ = [
    "DEFAULT_TIMEOUT",
    "DEFAULT_USER_AGENT",
    "DocumentFetcher",
    "RemoteResource",
    "changelog_resource",
    "spec_resource",
]
