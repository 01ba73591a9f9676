"""
HTTP fetching and HTML parsing.

One GET per call, no retries: a transport failure is reported to the caller
as a :class:`FetchError` and the caller decides what it means for the batch.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Dict, Optional
from urllib.parse import urlparse

import aiohttp
import structlog
from bs4 import BeautifulSoup

from rvp.config.config import FetchConfig
from rvp.exceptions import FetchError

logger = structlog.get_logger(__name__)

DEFAULT_CHARSET = "utf-8"
HTML_PARSER = "html.parser"


@dataclass
class Document:
    """A fetched page and its parsed tree."""

    url: str
    final_url: str
    status: int
    html: str
    tree: BeautifulSoup
    elapsed: float = 0.0


def parse_document(
    html: str, *, url: str = "about:blank", final_url: Optional[str] = None, status: int = 200
) -> Document:
    """Build a :class:`Document` from HTML text.

    html.parser never rejects input; broken markup gives a best-effort tree.
    """
    tree = BeautifulSoup(html, HTML_PARSER)
    return Document(url=url, final_url=final_url or url, status=status, html=html, tree=tree)


def decode_body(body: bytes, charset: Optional[str]) -> str:
    """Decode with the response charset, falling back to UTF-8."""
    if charset:
        try:
            return body.decode(charset, errors="replace")
        except LookupError:
            logger.debug("Unknown charset, falling back", charset=charset, fallback=DEFAULT_CHARSET)
    return body.decode(DEFAULT_CHARSET, errors="replace")


class HtmlFetcher:
    """Fetches pages over a shared aiohttp session."""

    def __init__(self, config: Optional[FetchConfig] = None):
        self.config = config or FetchConfig()
        self.session: Optional[aiohttp.ClientSession] = None
        self._requests = 0

    async def initialize(self) -> None:
        """Open the HTTP session."""
        if self.session is None:
            timeout = aiohttp.ClientTimeout(total=self.config.timeout)
            self.session = aiohttp.ClientSession(timeout=timeout, headers={"User-Agent": self.config.user_agent})
            logger.debug("HTTP session opened", timeout=self.config.timeout, user_agent=self.config.user_agent)

    async def close(self) -> None:
        if self.session:
            await self.session.close()
            self.session = None
            logger.debug("HTTP session closed", requests=self._requests)

    async def __aenter__(self) -> "HtmlFetcher":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def fetch(self, url: str) -> Document:
        """
        GET ``url`` and parse the body.

        Args:
            url: Absolute http(s) URL

        Returns:
            Document with the decoded HTML and its parsed tree

        Raises:
            FetchError: on malformed URLs and on any transport failure
        """
        if self.session is None:
            raise RuntimeError("HtmlFetcher not initialized. Use 'async with' or call initialize() first.")

        try:
            parsed_url = urlparse(url)
        except ValueError as e:
            raise FetchError(url, f"malformed URL, {e}") from e
        if parsed_url.scheme not in ("http", "https") or not parsed_url.netloc:
            raise FetchError(url, "malformed URL, expected an absolute http(s) URL")

        start_time = time.monotonic()
        self._requests += 1
        try:
            async with self.session.get(url) as response:
                body = await response.read()
                status = response.status
                charset = response.charset
                final_url = str(response.url)
        except asyncio.TimeoutError as e:
            logger.warning("Request timed out", url=url, timeout=self.config.timeout)
            raise FetchError(url, f"timed out after {self.config.timeout}s") from e
        except aiohttp.ClientError as e:
            logger.warning("Request failed", url=url, error=str(e) or type(e).__name__)
            raise FetchError(url, str(e) or type(e).__name__) from e

        elapsed = time.monotonic() - start_time
        if status >= 400:
            logger.warning("Non-success status, parsing body anyway", url=url, status=status)

        html = decode_body(body, charset)

        # BeautifulSoup can be CPU-intensive on large pages
        loop = asyncio.get_running_loop()
        document = await loop.run_in_executor(
            None, lambda: parse_document(html, url=url, final_url=final_url, status=status)
        )
        document.elapsed = elapsed

        logger.info("Fetched page", url=url, status=status, bytes=len(body), elapsed=round(elapsed, 3))
        return document

    def get_stats(self) -> Dict[str, int]:
        return {"requests": self._requests}
