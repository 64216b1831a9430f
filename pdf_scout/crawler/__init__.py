"""Crawl coordination, link resolution and page fetching."""
from pdf_scout.crawler.crawler import CrawlCoordinator
from pdf_scout.crawler.fetcher import BrowserFetcher, HttpFetcher, PageFetcher, PageLoadError
from pdf_scout.crawler.link_extractor import LinkResolver, ResolutionError
from pdf_scout.crawler.models import CrawlResult, LinkKind, Origin, PageData

__all__ = [
    "CrawlCoordinator",
    "BrowserFetcher",
    "HttpFetcher",
    "PageFetcher",
    "PageLoadError",
    "LinkResolver",
    "ResolutionError",
    "CrawlResult",
    "LinkKind",
    "Origin",
    "PageData",
]
