# === FILE: pdf_scout/crawler/crawler.py ===
from __future__ import annotations

import asyncio
import time
from typing import List, Optional, Sequence
from pdf_scout.config import ScoutConfig
from pdf_scout.crawler.fetcher import PageFetcher, PageLoadError
from pdf_scout.crawler.link_extractor import LinkResolver
from pdf_scout.crawler.models import CrawlResult
from pdf_scout.crawler.state import ConcurrencyBudget, CrawlState
from pdf_scout.logger import get_logger
from pdf_scout.progress import ProgressReporter

__all__ = ("CrawlCoordinator",)


class CrawlCoordinator:
    """Same-origin crawler that collects document links.

    Pages are claimed in the visited set when they are queued, so a URL is
    loaded at most once however many pages link to it.  A fixed pool of
    workers drains the queue; each load holds a seat of the concurrency
    budget.  The crawl is over when the queue is empty and every worker is
    idle.
    """

    def __init__(
        self,
        fetcher: PageFetcher,
        *,
        concurrency: int = 10,
        page_timeout: float = 60.0,
        document_extensions: Sequence[str] = (".pdf",),
        reporter: Optional[ProgressReporter] = None,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        if page_timeout <= 0:
            raise ValueError("page_timeout must be > 0")
        self.fetcher = fetcher
        self.concurrency = concurrency
        self.page_timeout = page_timeout
        self.document_extensions = tuple(document_extensions)
        self.reporter = reporter or ProgressReporter()
        self.logger = get_logger("crawler")
        self.state: Optional[CrawlState] = None

    @classmethod
    def from_config(
        cls,
        config: ScoutConfig,
        fetcher: PageFetcher,
        reporter: Optional[ProgressReporter] = None,
    ) -> CrawlCoordinator:
        return cls(
            fetcher,
            concurrency=config.concurrency,
            page_timeout=config.page_timeout,
            document_extensions=config.document_extensions,
            reporter=reporter,
        )

    async def crawl(self, start_url: str) -> CrawlResult:
        resolver = LinkResolver.for_start_url(start_url, self.document_extensions)
        state = CrawlState(base_origin=resolver.base_origin, budget=ConcurrencyBudget(self.concurrency))
        self.state = state
        self.logger.info("Crawl started: %s (origin %s)", start_url, state.base_origin)
        started = time.monotonic()

        queue: asyncio.Queue[str] = asyncio.Queue()
        root = resolver.resolve(start_url, start_url)
        self._schedule(root, queue, state)
        workers = [
            asyncio.create_task(self._worker(queue, state, resolver))
            for _ in range(self.concurrency)
        ]
        try:
            await queue.join()
        finally:
            for w in workers:
                w.cancel()
            await asyncio.gather(*workers, return_exceptions=True)

        duration = time.monotonic() - started
        self.logger.info(
            "Crawl finished: %d pages, %d documents, %d failures in %.2f s",
            len(state.visited), len(state.documents), len(state.failures), duration,
        )
        return state.result()

    @staticmethod
    def _schedule(url: str, queue: asyncio.Queue[str], state: CrawlState) -> bool:
        if not state.visited.claim(url):
            return False
        queue.put_nowait(url)
        return True

    async def _worker(self, queue: asyncio.Queue[str], state: CrawlState, resolver: LinkResolver) -> None:
        while True:
            try:
                url = await queue.get()
            except asyncio.CancelledError:
                break
            try:
                await self._visit(url, queue, state, resolver)
            except Exception as exc:  # pylint: disable=broad-except
                state.failures.setdefault(url, f"{type(exc).__name__}: {exc}")
                self.logger.exception("Crawl task for %s failed", url)
            finally:
                queue.task_done()

    async def _visit(self, url: str, queue: asyncio.Queue[str], state: CrawlState, resolver: LinkResolver) -> None:
        async with state.budget:
            self.reporter.on_page_visit_start(url)
            try:
                page = await asyncio.wait_for(self.fetcher.load(url, self.page_timeout), timeout=self.page_timeout)
            except asyncio.TimeoutError:
                state.failures[url] = f"timed out after {self.page_timeout:g} s"
                self.logger.warning("Failed to load page %s: timed out", url)
                return
            except PageLoadError as exc:
                state.failures[url] = exc.reason
                self.logger.warning("Failed to load page %s: %s", url, exc.reason)
                return
            except Exception as exc:  # pylint: disable=broad-except
                state.failures[url] = f"{type(exc).__name__}: {exc}"
                self.logger.exception("Unexpected error loading %s", url)
                return
            finally:
                self.reporter.on_page_visit_end(url)

        pages, documents, errors = resolver.sort_links(url, page.links)
        for err in errors:
            self.logger.warning("Skipping link: %s", err)
        for doc in documents:
            if state.documents.add(doc):
                self.logger.debug("Found document %s on %s", doc, url)
        scheduled: List[str] = [link for link in pages if self._schedule(link, queue, state)]
        self.logger.debug("Visited %s: %d links, %d new pages", url, len(page.links), len(scheduled))
