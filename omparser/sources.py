"""Exposition sources: files, standard input and HTTP scrape targets."""

import logging
import sys
from pathlib import Path
from typing import Optional

import httpx

from omparser.config import FetchConfig, OPENMETRICS_CONTENT_TYPE

logger = logging.getLogger(__name__)


class SourceError(Exception):
    """Raised when an exposition cannot be read from its source."""


class HttpSource:
    """Scrape target serving an OpenMetrics exposition."""

    def __init__(self, url: str, timeout: int = 5, accept: str = OPENMETRICS_CONTENT_TYPE):
        """Initialize the source.

        Args:
            url: Metrics URL
            timeout: HTTP timeout in seconds
            accept: Accept header sent with the request
        """
        self.url = url
        self.timeout = timeout
        self.accept = accept
        self._client: Optional[httpx.Client] = None

    @property
    def client(self) -> httpx.Client:
        """Get HTTP client (lazy initialization)."""
        if self._client is None:
            self._client = httpx.Client(timeout=self.timeout, headers={"Accept": self.accept})
        return self._client

    def fetch(self) -> Optional[bytes]:
        """Fetch the raw exposition.

        Returns:
            Response body if successful, None if failed
        """
        try:
            response = self.client.get(self.url)
            response.raise_for_status()
            logger.debug(f"Fetched {len(response.content)} bytes from {self.url}")
            return response.content
        except httpx.HTTPStatusError as e:
            logger.warning(f"HTTP error scraping {self.url}: {e.response.status_code}")
            return None
        except httpx.RequestError as e:
            logger.warning(f"Request error scraping {self.url}: {e}")
            return None

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None


def is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def read_exposition(source: str, fetch_config: Optional[FetchConfig] = None) -> bytes:
    """Read a raw exposition from a file, standard input or a URL.

    Args:
        source: File path, '-' for standard input, or an http(s) URL
        fetch_config: HTTP settings used for URLs

    Returns:
        Raw exposition bytes

    Raises:
        SourceError: If the source cannot be read
    """
    if source == "-":
        logger.debug("Reading exposition from standard input")
        return sys.stdin.buffer.read()

    if is_url(source):
        fetch_config = fetch_config or FetchConfig()
        http_source = HttpSource(source, timeout=fetch_config.timeout, accept=fetch_config.accept)
        try:
            content = http_source.fetch()
        finally:
            http_source.close()
        if content is None:
            raise SourceError(f"Failed to fetch {source}")
        return content

    path = Path(source)
    try:
        return path.read_bytes()
    except FileNotFoundError as e:
        raise SourceError(f"File not found: {source}") from e
    except PermissionError as e:
        raise SourceError(f"Permission denied reading {source}") from e
    except IsADirectoryError as e:
        raise SourceError(f"Not a file: {source}") from e
