# File: tests/test_crawler.py
# Crawl coordinator tests over synthetic link graphs
from __future__ import annotations

import asyncio

import pytest

from pdf_scout.crawler.crawler import CrawlCoordinator
from pdf_scout.crawler.link_extractor import origin_of

ROOT = "http://example.com/"
A = ROOT
B = "http://example.com/b"
C = "http://example.com/c"
D = "http://example.com/d"
X = "http://external.org/"


async def run_crawl(fetcher, start: str = ROOT, **kwargs):
    coordinator = CrawlCoordinator(fetcher, **kwargs)
    result = await asyncio.wait_for(coordinator.crawl(start), timeout=10)
    return coordinator, result


@pytest.mark.asyncio()
async def test_same_origin_pages_and_documents(fake_fetcher):
    fetcher = fake_fetcher({
        A: ["/b", "/files/d1.pdf", X],
        B: [],
        X: ["/never"],
    })
    _, result = await run_crawl(fetcher)

    assert result.visited == {A, B}
    assert result.documents == {"http://example.com/files/d1.pdf"}
    assert X not in fetcher.calls
    assert result.failures == {}


@pytest.mark.asyncio()
async def test_cycle_terminates(fake_fetcher):
    fetcher = fake_fetcher({A: ["/b"], B: ["/", "/b"]})
    _, result = await run_crawl(fetcher)

    assert result.visited == {A, B}
    assert fetcher.calls == {A: 1, B: 1}


@pytest.mark.asyncio()
async def test_concurrent_discovery_spawns_one_task(fake_fetcher):
    """B and C finish together and both link to D; D is loaded once."""
    fetcher = fake_fetcher(
        {A: ["/b", "/c"], B: ["/d", "/d#top"], C: ["/d"], D: ["/b", "/c"]},
        delay=0.05,
    )
    _, result = await run_crawl(fetcher, concurrency=4)

    assert result.visited == {A, B, C, D}
    assert fetcher.calls[D] == 1
    assert all(count == 1 for count in fetcher.calls.values())


@pytest.mark.asyncio()
async def test_concurrency_budget_caps_in_flight_loads(fake_fetcher):
    children = [f"http://example.com/p{i}" for i in range(5)]
    graph = {A: [f"/p{i}" for i in range(5)]}
    graph.update({child: [] for child in children})
    fetcher = fake_fetcher(graph, delay=0.05)

    coordinator, result = await run_crawl(fetcher, concurrency=2)

    assert result.visited == {A, *children}
    assert fetcher.max_in_flight == 2
    assert coordinator.state.budget.peak <= 2


@pytest.mark.asyncio()
async def test_page_timeout_is_isolated(fake_fetcher):
    slow = "http://example.com/slow"
    fetcher = fake_fetcher(
        {
            A: ["/slow", "/b"],
            slow: ["/only-from-slow", "/hidden.pdf"],
            B: ["/report.pdf"],
        },
        delays={slow: 5.0},
    )
    _, result = await run_crawl(fetcher, page_timeout=0.2)

    assert slow in result.failures
    assert "timed out" in result.failures[slow]
    assert result.documents == {"http://example.com/report.pdf"}
    assert "http://example.com/only-from-slow" not in fetcher.calls


@pytest.mark.asyncio()
async def test_load_failure_is_isolated(fake_fetcher):
    fetcher = fake_fetcher({A: ["/b", "/c", "/missing"], B: ["/x.pdf"], C: []}, failing=[C])
    _, result = await run_crawl(fetcher)

    assert set(result.failures) == {C, "http://example.com/missing"}
    assert result.documents == {"http://example.com/x.pdf"}
    assert result.visited == {A, B, C, "http://example.com/missing"}


@pytest.mark.asyncio()
async def test_unexpected_fetcher_error_is_contained(fake_fetcher):
    class Exploding(fake_fetcher):
        async def load(self, url, timeout):
            if url == B:
                raise KeyError("boom")
            return await super().load(url, timeout)

    fetcher = Exploding({A: ["/b", "/c"], C: ["/c.pdf"]})
    _, result = await run_crawl(fetcher)

    assert "KeyError" in result.failures[B]
    assert result.documents == {"http://example.com/c.pdf"}


@pytest.mark.asyncio()
async def test_documents_stay_within_origin(fake_fetcher):
    fetcher = fake_fetcher({
        A: [
            "/a.pdf",
            "https://example.com/secure.pdf",
            "http://example.com:8080/other-port.pdf",
            "http://mirror.example.com/copy.pdf",
            "HTTP://EXAMPLE.COM/upper.PDF",
        ],
    })
    _, result = await run_crawl(fetcher)

    base = origin_of(ROOT)
    assert all(origin_of(doc) == base for doc in result.documents)
    assert result.documents == {"http://example.com/a.pdf", "http://example.com/upper.PDF"}


@pytest.mark.asyncio()
async def test_malformed_links_are_skipped(fake_fetcher):
    fetcher = fake_fetcher({A: ["http://[oops", "/b", "http://example.com:70000/"], B: []})
    _, result = await run_crawl(fetcher)

    assert result.visited == {A, B}
    assert result.failures == {}


@pytest.mark.asyncio()
async def test_duplicate_documents_collapse(fake_fetcher):
    fetcher = fake_fetcher({A: ["/b", "/doc.pdf", "doc.pdf#page=2"], B: ["/doc.pdf"]})
    _, result = await run_crawl(fetcher)

    assert result.documents == {"http://example.com/doc.pdf"}


@pytest.mark.asyncio()
async def test_progress_events(fake_fetcher, reporter):
    fetcher = fake_fetcher({A: ["/b"], B: []})
    await run_crawl(fetcher, reporter=reporter)

    starts = [url for kind, url in reporter.events if kind == "page_start"]
    ends = [url for kind, url in reporter.events if kind == "page_end"]
    assert sorted(starts) == sorted(ends) == sorted([A, B])
    assert reporter.events[0] == ("page_start", A)


@pytest.mark.asyncio()
async def test_start_page_failure_yields_empty_result(fake_fetcher):
    fetcher = fake_fetcher({}, failing=[A])
    _, result = await run_crawl(fetcher)

    assert result.visited == {A}
    assert result.documents == frozenset()
    assert A in result.failures


@pytest.mark.parametrize("kwargs", [{"concurrency": 0}, {"page_timeout": 0}])
def test_invalid_arguments(fake_fetcher, kwargs):
    with pytest.raises(ValueError):
        CrawlCoordinator(fake_fetcher({}), **kwargs)


@pytest.mark.asyncio()
async def test_start_url_is_canonicalised(fake_fetcher):
    """A mixed-case start host and the lower-case links back to it are one page."""
    fetcher = fake_fetcher({A: ["/b"], B: ["/", "http://example.com/"]})
    _, result = await run_crawl(fetcher, start="http://Example.com/#intro")

    assert result.visited == {A, B}
    assert fetcher.calls == {A: 1, B: 1}


@pytest.mark.asyncio()
async def test_reporter_error_does_not_stall_the_crawl(fake_fetcher, reporter):
    class BrokenReporter(type(reporter)):
        def on_page_visit_start(self, url):
            if url == B:
                raise RuntimeError("display gone")
            super().on_page_visit_start(url)

    fetcher = fake_fetcher({A: ["/b", "/c"], B: ["/b.pdf"], C: ["/c.pdf"]})
    _, result = await run_crawl(fetcher, concurrency=1, reporter=BrokenReporter())

    assert "RuntimeError: display gone" in result.failures[B]
    assert C in result.visited
    assert result.documents == {"http://example.com/c.pdf"}
    assert B not in fetcher.calls
