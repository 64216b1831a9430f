# pdf_scout/crawler/state.py
"""
Shared mutable state of one crawl run.

All crawl workers run on a single event loop, so a check followed by an
insert with no ``await`` in between cannot interleave with another worker.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Set

from pdf_scout.crawler.models import CrawlResult, Origin


class VisitedSet:
    """Page URLs already dispatched for crawling."""

    def __init__(self) -> None:
        self._urls: Set[str] = set()

    def claim(self, url: str) -> bool:
        """Insert *url*; True only for the first caller."""
        if url in self._urls:
            return False
        self._urls.add(url)
        return True

    def __len__(self) -> int:
        return len(self._urls)

    def snapshot(self) -> FrozenSet[str]:
        return frozenset(self._urls)


class DocumentSet:
    """Document URLs found so far; duplicates collapse."""

    def __init__(self) -> None:
        self._urls: Set[str] = set()

    def add(self, url: str) -> bool:
        before = len(self._urls)
        self._urls.add(url)
        return len(self._urls) != before

    def __len__(self) -> int:
        return len(self._urls)

    def snapshot(self) -> FrozenSet[str]:
        return frozenset(self._urls)


class ConcurrencyBudget:
    """Fixed number of seats for in-flight page loads."""

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.capacity = capacity
        self._sem = asyncio.Semaphore(capacity)
        self.in_use = 0
        self.peak = 0

    async def __aenter__(self) -> ConcurrencyBudget:
        await self._sem.acquire()
        self.in_use += 1
        self.peak = max(self.peak, self.in_use)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.in_use -= 1
        self._sem.release()


@dataclass
class CrawlState:
    """Everything crawl workers share during one run."""

    base_origin: Origin
    budget: ConcurrencyBudget
    visited: VisitedSet = field(default_factory=VisitedSet)
    documents: DocumentSet = field(default_factory=DocumentSet)
    failures: Dict[str, str] = field(default_factory=dict)

    def result(self) -> CrawlResult:
        return CrawlResult(
            visited=self.visited.snapshot(),
            documents=self.documents.snapshot(),
            failures=dict(self.failures),
        )
