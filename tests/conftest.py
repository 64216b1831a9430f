# File: tests/conftest.py
import asyncio
import contextlib
from collections import Counter
from typing import AsyncIterator, Dict, Iterable, List, Optional

import pytest
from aiohttp import web

from pdf_scout.config import ScoutConfig
from pdf_scout.crawler.fetcher import PageLoadError
from pdf_scout.crawler.models import PageData
from pdf_scout.logger import configure
from pdf_scout.progress import ProgressReporter


class FakeFetcher:
    """
    In-memory fetcher over a synthetic site graph: ``{url: [href, ...]}``.
    URLs missing from the graph fail like an HTTP 404.
    """

    def __init__(
        self,
        graph: Dict[str, List[str]],
        *,
        delay: float = 0.0,
        delays: Optional[Dict[str, float]] = None,
        failing: Iterable[str] = (),
    ) -> None:
        self.graph = graph
        self.delay = delay
        self.delays = delays or {}
        self.failing = set(failing)
        self.calls: Counter = Counter()
        self.in_flight = 0
        self.max_in_flight = 0

    async def load(self, url: str, timeout: float) -> PageData:
        self.calls[url] += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(url, self.delay))
            if url in self.failing:
                raise PageLoadError(url, "navigation failed")
            if url not in self.graph:
                raise PageLoadError(url, "HTTP 404")
            return PageData(url=url, content="<html></html>", links=list(self.graph[url]))
        finally:
            self.in_flight -= 1


class RecordingReporter(ProgressReporter):
    def __init__(self) -> None:
        self.events: List[tuple] = []

    def on_page_visit_start(self, url: str) -> None:
        self.events.append(("page_start", url))

    def on_page_visit_end(self, url: str) -> None:
        self.events.append(("page_end", url))

    def on_download_start(self, url: str) -> None:
        self.events.append(("download_start", url))

    def on_download_end(self, url: str, ok: bool) -> None:
        self.events.append(("download_end", url, ok))


@pytest.fixture(autouse=True)
def reset_logging():
    """Rebuild the project handlers after each test so none keeps a closed stream."""
    yield
    configure(level="INFO")


@pytest.fixture()
def fake_fetcher():
    """Factory for FakeFetcher instances."""
    return FakeFetcher


@pytest.fixture()
def reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture()
def serve():
    """
    Return an async context manager that serves an aiohttp app on a free
    local port and yields its base URL.
    """

    @contextlib.asynccontextmanager
    async def _serve(app: web.Application) -> AsyncIterator[str]:
        runner = web.AppRunner(app)
        await runner.setup()
        site = web.TCPSite(runner, "127.0.0.1", 0)
        await site.start()
        port = runner.addresses[0][1]
        try:
            yield f"http://127.0.0.1:{port}"
        finally:
            await runner.cleanup()

    return _serve


@pytest.fixture()
def make_config(tmp_path):
    """Build a ScoutConfig writing into tmp_path unless told otherwise."""

    def _make(start_url: str = "http://example.com/", **kwargs) -> ScoutConfig:
        kwargs.setdefault("downloads_root", tmp_path / "downloads")
        kwargs.setdefault("renderer", "http")
        return ScoutConfig(start_url=start_url, **kwargs)

    return _make
