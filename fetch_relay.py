"""Fetch relay: retrieves SAPL listing pages with a browser-like identity."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from urllib.parse import urlparse

import requests

REQUEST_TIMEOUT_SECONDS = 30
DEFAULT_CONTENT_TYPE = "text/html; charset=utf-8"

# Advisory caching directive for anything that re-serves relayed pages:
# 10 minutes shared cache, 5 more minutes of client-side staleness.
RELAY_CACHE_CONTROL = "s-maxage=600, stale-while-revalidate=300"

# The SAPL portal rejects clients that do not look like a browser.
BROWSER_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "pt-BR,pt;q=0.9,en-US;q=0.8,en;q=0.7",
}

LOGGER = logging.getLogger(__name__)


class FetchError(RuntimeError):
    """Raised when a page cannot be retrieved.

    ``status`` is the upstream HTTP status (400 for a missing or invalid URL,
    ``None`` for transport failures such as timeouts or refused connections).
    """

    def __init__(self, message: str, status: int | None = None, reason: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.reason = reason

    @property
    def is_not_found(self) -> bool:
        return self.status == 404


@dataclass(frozen=True, slots=True)
class FetchedPage:
    url: str
    body: str
    content_type: str


def fetch_page(url: str, session: requests.Session | None = None) -> FetchedPage:
    """Fetch ``url`` and return its body and content type.

    Raises:
        FetchError: invalid URL, transport failure, non-2xx status or empty body.
    """
    _validate_url(url)
    parsed = urlparse(url)
    headers = dict(BROWSER_HEADERS)
    headers["Referer"] = f"{parsed.scheme}://{parsed.netloc}/"

    http = session or requests
    LOGGER.debug("Relay fetch: %s", url)
    try:
        response = http.get(url, headers=headers, timeout=REQUEST_TIMEOUT_SECONDS)
    except requests.RequestException as exc:
        raise FetchError(f"Request failed for {url}: {exc}") from exc

    if not response.ok:
        raise FetchError(
            f"Failed to fetch from target {url}: {response.status_code} {response.reason}",
            status=response.status_code,
            reason=response.reason or "",
        )

    body = response.text
    if not body:
        raise FetchError(f"Relay returned empty content for {url}", status=response.status_code)

    content_type = response.headers.get("Content-Type") or DEFAULT_CONTENT_TYPE
    LOGGER.info("Relay fetch: url=%s status=%s bytes=%s", url, response.status_code, len(body))
    return FetchedPage(url=url, body=body, content_type=content_type)


def _validate_url(url: str | None) -> None:
    if not url:
        raise FetchError('The "url" parameter is missing.', status=400, reason="Bad Request")
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise FetchError(f"Invalid URL: {url!r}", status=400, reason="Bad Request")
