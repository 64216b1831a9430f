# pdf_scout/crawler/fetcher.py
"""
Fetcher module: loads a page and returns its rendered HTML plus anchor hrefs.

Two implementations share the :class:`PageFetcher` interface:

* :class:`BrowserFetcher` drives headless Chromium through Playwright, so
  client-side scripts run before links are read.
* :class:`HttpFetcher` issues a plain aiohttp GET; cheaper, but sees only
  server-rendered markup.
"""
from __future__ import annotations

import asyncio
from typing import Optional, Protocol, runtime_checkable

from aiohttp import ClientError, ClientSession, ClientTimeout
from playwright.async_api import (
    Browser,
    Error as PlaywrightError,
    Playwright,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)

from pdf_scout.config import ScoutConfig
from pdf_scout.crawler.link_extractor import extract_hrefs
from pdf_scout.crawler.models import PageData
from pdf_scout.logger import get_logger

__all__ = ("PageFetcher", "PageLoadError", "BrowserFetcher", "HttpFetcher", "make_fetcher")

log = get_logger("fetcher")


class PageLoadError(RuntimeError):
    """Navigation failed or the server answered with an error."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"failed to load {url}: {reason}")
        self.url = url
        self.reason = reason


@runtime_checkable
class PageFetcher(Protocol):
    """Anything that can load a page within a timeout."""

    async def load(self, url: str, timeout: float) -> PageData:
        ...


class BrowserFetcher:
    """Render pages in headless Chromium; one browser per run, one page per load."""

    def __init__(self, config: ScoutConfig) -> None:
        self.config = config
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None

    async def __aenter__(self) -> BrowserFetcher:
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(headless=True)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

    async def load(self, url: str, timeout: float) -> PageData:
        if self._browser is None:
            raise RuntimeError("Browser not started")
        context = await self._browser.new_context(user_agent=self.config.user_agent)
        try:
            page = await context.new_page()
            log.debug("Loading %s (wait_until=%s)", url, self.config.wait_until)
            try:
                await page.goto(url, wait_until=self.config.wait_until, timeout=timeout * 1000)
            except PlaywrightTimeoutError as exc:
                raise asyncio.TimeoutError(f"navigation to {url} timed out") from exc
            except PlaywrightError as exc:
                raise PageLoadError(url, exc.message) from exc
            html = await page.content()
        finally:
            await context.close()
        return PageData(url=url, content=html, links=extract_hrefs(html))


class HttpFetcher:
    """Fetch raw HTML with aiohttp; page scripts are not executed."""

    def __init__(self, config: ScoutConfig, session: Optional[ClientSession] = None) -> None:
        self.config = config
        self.session = session
        self._owns_session = session is None

    async def __aenter__(self) -> HttpFetcher:
        if self.session is None:
            self.session = ClientSession(
                headers={"User-Agent": self.config.user_agent},
                raise_for_status=False,
            )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()

    async def load(self, url: str, timeout: float) -> PageData:
        if not self.session:
            raise RuntimeError("Session not initialized")
        try:
            async with self.session.get(url, timeout=ClientTimeout(total=timeout)) as resp:
                if resp.status >= 400:
                    raise PageLoadError(url, f"HTTP {resp.status}")
                mime = resp.headers.get("Content-Type", "").split(";", 1)[0].strip().lower()
                if mime and "html" not in mime:
                    raise PageLoadError(url, f"unexpected content type {mime}")
                html = await resp.text()
        except ClientError as exc:
            raise PageLoadError(url, str(exc) or type(exc).__name__) from exc
        return PageData(url=url, content=html, links=extract_hrefs(html))


def make_fetcher(config: ScoutConfig):
    """Fetcher matching ``config.renderer``; use it as an async context manager."""
    if config.renderer == "http":
        return HttpFetcher(config)
    return BrowserFetcher(config)
