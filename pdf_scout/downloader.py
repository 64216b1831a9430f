"""pdf_scout.downloader: batch download of discovered documents.

Every document is streamed to ``<destination>/<final path segment>``.  All
downloads are started together (optionally bounded by ``concurrency``); one
failure never stops the others.  When at least one download failed, a
:class:`DownloadBatchError` carrying the full report is raised after every
download has been attempted.
"""
from __future__ import annotations

import asyncio
import contextlib
from pathlib import Path
from typing import AsyncIterator, Iterable, List, Optional

import aiofiles
from aiohttp import ClientError, ClientSession, ClientTimeout

from pdf_scout.config import ScoutConfig
from pdf_scout.crawler.link_extractor import url_filename
from pdf_scout.crawler.models import DownloadJob, DownloadReport
from pdf_scout.logger import get_logger
from pdf_scout.progress import ProgressReporter
from pdf_scout.storage import unique_path

__all__ = ["DownloadError", "DownloadBatchError", "Downloader", "plan_jobs", "download_all"]

log = get_logger("downloader")


class DownloadError(RuntimeError):
    """A single document could not be fetched or written."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"failed to download {url}: {reason}")
        self.url = url
        self.reason = reason


class DownloadBatchError(RuntimeError):
    """Some downloads of a batch failed; raised once all were attempted."""

    def __init__(self, report: DownloadReport) -> None:
        super().__init__(f"{len(report.failed)} of {report.attempted} downloads failed")
        self.report = report


def plan_jobs(urls: Iterable[str], destination: Path) -> List[DownloadJob]:
    """One job per URL; clashing file names get a numeric suffix."""
    taken: set[str] = set()
    return [
        DownloadJob(url=url, destination=unique_path(destination, url_filename(url), taken))
        for url in sorted(set(urls))
    ]


class Downloader:
    """Streams documents to disk through a shared aiohttp session."""

    def __init__(
        self,
        session: ClientSession,
        *,
        timeout: float = 300.0,
        chunk_size: int = 64 * 1024,
        concurrency: Optional[int] = None,
        reporter: Optional[ProgressReporter] = None,
    ) -> None:
        self.session = session
        self.timeout = timeout
        self.chunk_size = chunk_size
        self.reporter = reporter or ProgressReporter()
        self._sem = asyncio.Semaphore(concurrency) if concurrency else None

    @contextlib.asynccontextmanager
    async def _slot(self) -> AsyncIterator[None]:
        if self._sem is None:
            yield
            return
        async with self._sem:
            yield

    async def fetch(self, job: DownloadJob) -> Path:
        """Download one document; raises DownloadError and leaves no partial file."""
        async with self._slot():
            self.reporter.on_download_start(job.url)
            log.info("Downloading %s to %s", job.url, job.destination)
            try:
                async with self.session.get(job.url, timeout=ClientTimeout(total=self.timeout)) as resp:
                    resp.raise_for_status()
                    async with aiofiles.open(job.destination, "wb") as fh:
                        async for chunk in resp.content.iter_chunked(self.chunk_size):
                            await fh.write(chunk)
            except (ClientError, asyncio.TimeoutError, OSError) as exc:
                self._discard(job.destination)
                self.reporter.on_download_end(job.url, False)
                raise DownloadError(job.url, str(exc) or type(exc).__name__) from exc
        self.reporter.on_download_end(job.url, True)
        return job.destination

    @staticmethod
    def _discard(path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            log.error("Could not remove partial file %s: %s", path, exc)

    async def download_all(self, urls: Iterable[str], destination: Path) -> DownloadReport:
        jobs = plan_jobs(urls, destination)
        report = DownloadReport()
        if not jobs:
            log.info("No documents to download")
            return report

        results = await asyncio.gather(*(self.fetch(job) for job in jobs), return_exceptions=True)
        for job, outcome in zip(jobs, results):
            if isinstance(outcome, Path):
                report.saved[job.url] = outcome
            elif isinstance(outcome, DownloadError):
                report.failed[job.url] = outcome.reason
                log.error("%s", outcome)
            elif isinstance(outcome, Exception):
                report.failed[job.url] = f"{type(outcome).__name__}: {outcome}"
                log.error("Unexpected error downloading %s: %s", job.url, outcome)
            else:
                raise outcome

        log.info("Downloaded %d of %d documents", len(report.saved), report.attempted)
        if report.failed:
            raise DownloadBatchError(report)
        return report


async def download_all(
    urls: Iterable[str],
    destination: Path,
    config: ScoutConfig,
    *,
    reporter: Optional[ProgressReporter] = None,
    session: Optional[ClientSession] = None,
) -> DownloadReport:
    """Download *urls* into *destination* with settings from *config*."""
    urls = list(urls)
    if not urls:
        log.info("No documents to download")
        return DownloadReport()

    async with contextlib.AsyncExitStack() as stack:
        if session is None:
            session = await stack.enter_async_context(
                ClientSession(headers={"User-Agent": config.user_agent})
            )
        downloader = Downloader(
            session,
            timeout=config.download_timeout,
            chunk_size=config.chunk_size,
            concurrency=config.download_concurrency,
            reporter=reporter,
        )
        return await downloader.download_all(urls, destination)
