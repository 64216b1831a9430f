# File: pdf_scout/engine.py
"""pdf_scout.engine: orchestration layer that runs a crawl and downloads its documents."""

from __future__ import annotations

import asyncio
import contextlib
from typing import Optional

from pdf_scout.config import ScoutConfig
from pdf_scout.crawler.crawler import CrawlCoordinator
from pdf_scout.crawler.fetcher import PageFetcher, make_fetcher
from pdf_scout.crawler.models import HarvestSummary
from pdf_scout.downloader import download_all
from pdf_scout.logger import logger
from pdf_scout.progress import ProgressReporter
from pdf_scout.storage import create_run_directory

__all__ = ["Engine", "harvest"]


async def harvest(
    config: ScoutConfig,
    *,
    fetcher: Optional[PageFetcher] = None,
    reporter: Optional[ProgressReporter] = None,
) -> HarvestSummary:
    """
    Crawl from ``config.start_url``, then download every document found.

    Parameters
    ----------
    config : ScoutConfig
        Run settings.
    fetcher : PageFetcher, optional
        Page loader; defaults to the one selected by ``config.renderer``.
        A supplied fetcher is used as-is and not entered as a context manager.
    reporter : ProgressReporter, optional
        Receives page and download events.

    Returns
    -------
    HarvestSummary
        Run directory, crawl result and download report.

    Raises
    ------
    DownloadBatchError
        After all downloads were attempted, if any of them failed.
    """
    run_dir = create_run_directory(config.downloads_root)
    start_url = str(config.start_url)

    async with contextlib.AsyncExitStack() as stack:
        if fetcher is None:
            fetcher = await stack.enter_async_context(make_fetcher(config))
        coordinator = CrawlCoordinator.from_config(config, fetcher, reporter)
        crawl = await coordinator.crawl(start_url)

    logger.info("Found %d documents on %d pages", len(crawl.documents), len(crawl.visited))
    report = await download_all(crawl.documents, run_dir, config, reporter=reporter)
    return HarvestSummary(run_dir=run_dir, crawl=crawl, downloads=report)


class Engine:
    """Facade for the CLI and tests: holds the config and runs one harvest."""

    def __init__(self, config: ScoutConfig) -> None:
        self.config = config

    def run(
        self,
        fetcher: Optional[PageFetcher] = None,
        reporter: Optional[ProgressReporter] = None,
    ) -> HarvestSummary:
        """Run :func:`harvest` on a fresh event loop."""
        logger.info("Starting harvest of %s", self.config.start_url)
        try:
            return asyncio.run(harvest(self.config, fetcher=fetcher, reporter=reporter))
        except Exception as exc:
            logger.error("Harvest failed: %s", exc)
            raise
