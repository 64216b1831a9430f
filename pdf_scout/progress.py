"""pdf_scout.progress: crawl and download progress events.

The crawl and download stages call into a :class:`ProgressReporter`.  The
base class ignores every event, so passing no reporter is always valid.
:class:`TqdmProgress` renders two tqdm bars: pages and downloads.
"""
from __future__ import annotations

from typing import Optional

from tqdm import tqdm

__all__ = ["ProgressReporter", "TqdmProgress"]


class ProgressReporter:
    """No-op sink for progress events; subclass and override what you need."""

    def on_page_visit_start(self, url: str) -> None:
        pass

    def on_page_visit_end(self, url: str) -> None:
        pass

    def on_download_start(self, url: str) -> None:
        pass

    def on_download_end(self, url: str, ok: bool) -> None:
        pass

    def close(self) -> None:
        pass


class TqdmProgress(ProgressReporter):
    """Page and download counters drawn with tqdm.

    The total number of pages is unknown up front, so the page bar grows
    its total every time a visit starts.
    """

    def __init__(self, *, disable: bool = False) -> None:
        self._disable = disable
        self._pages: Optional[tqdm] = None
        self._downloads: Optional[tqdm] = None

    def _page_bar(self) -> tqdm:
        if self._pages is None:
            self._pages = tqdm(total=0, desc="Pages", unit="page", position=0, disable=self._disable)
        return self._pages

    def _download_bar(self) -> tqdm:
        if self._downloads is None:
            self._downloads = tqdm(total=0, desc="Downloads", unit="file", position=1, disable=self._disable)
        return self._downloads

    def on_page_visit_start(self, url: str) -> None:
        bar = self._page_bar()
        bar.total += 1
        bar.set_postfix_str(url, refresh=False)
        bar.refresh()

    def on_page_visit_end(self, url: str) -> None:
        self._page_bar().update(1)

    def on_download_start(self, url: str) -> None:
        bar = self._download_bar()
        bar.total += 1
        bar.refresh()

    def on_download_end(self, url: str, ok: bool) -> None:
        bar = self._download_bar()
        if not ok:
            bar.set_postfix_str(f"failed: {url}", refresh=False)
        bar.update(1)

    def close(self) -> None:
        for bar in (self._pages, self._downloads):
            if bar is not None:
                bar.close()
        self._pages = self._downloads = None
