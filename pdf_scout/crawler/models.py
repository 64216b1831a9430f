# pdf_scout/crawler/models.py
"""
Data models shared by the PdfScout crawl and download stages.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, FrozenSet, List, NamedTuple


class Origin(NamedTuple):
    """Scheme, host and port of a web authority."""

    scheme: str
    host: str
    port: int

    def __str__(self) -> str:
        return f"{self.scheme}://{self.host}:{self.port}"


class LinkKind(Enum):
    PAGE = "page"
    DOCUMENT = "document"
    OUT_OF_SCOPE = "out_of_scope"


@dataclass(slots=True)
class PageData:
    """Rendered page: final HTML plus the raw anchor hrefs found in it."""

    url: str
    content: str
    links: List[str] = field(default_factory=list)


@dataclass(slots=True, frozen=True)
class DownloadJob:
    url: str
    destination: Path


@dataclass(slots=True)
class DownloadReport:
    """Outcome of one download stage: saved files and per-URL failures."""

    saved: Dict[str, Path] = field(default_factory=dict)
    failed: Dict[str, str] = field(default_factory=dict)

    @property
    def attempted(self) -> int:
        return len(self.saved) + len(self.failed)

    @property
    def ok(self) -> bool:
        return not self.failed


@dataclass(slots=True)
class CrawlResult:
    """Snapshot of a settled traversal."""

    visited: FrozenSet[str]
    documents: FrozenSet[str]
    failures: Dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class HarvestSummary:
    run_dir: Path
    crawl: CrawlResult
    downloads: DownloadReport
